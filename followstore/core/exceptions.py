"""
Domain exceptions for the follows data-access layer.

Store and transport failures are not wrapped: botocore's ClientError and
BotoCoreError reach the caller unchanged.
"""


class FollowStoreError(Exception):
    """Base exception for followstore"""
    pass


class FollowValidationError(FollowStoreError, ValueError):
    """Raised when arguments are rejected before any store call"""
    pass


class FollowNotFoundError(FollowStoreError, LookupError):
    """Raised when a strict update targets a follow that does not exist"""

    def __init__(self, follower_handle: str, followee_handle: str):
        self.follower_handle = follower_handle
        self.followee_handle = followee_handle
        super().__init__(
            f"No follow from '{follower_handle}' to '{followee_handle}'"
        )
