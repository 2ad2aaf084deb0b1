"""
Domain models for follow relationships and paged results.
"""

from followstore.models.follow import (
    DataPage,
    Follow,
    FolloweeCursor,
    FollowerCursor,
)

__all__ = [
    "DataPage",
    "Follow",
    "FolloweeCursor",
    "FollowerCursor",
]
