"""
Follow Repository Interface (IFollowRepository)

Abstract base class defining the contract for follow relationship storage.
Provides point reads and writes keyed by the (follower, followee) pair and
paged queries over either side of the relationship.

Implementation guide:
- All methods must be async
- Arguments are validated before any store call (FollowValidationError)
- Not-found is never an error: get returns None, delete is idempotent
- Store and transport errors propagate unchanged (no retry, no suppression)
- Paged queries return typed cursors scoped to the query shape
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Union

from followstore.models.follow import DataPage, Follow, FolloweeCursor, FollowerCursor


class IFollowRepository(ABC):
    """
    Abstract interface for follow relationship data access.

    The repository manages:
    1. Unconditional upsert of a follow
    2. Exact-key lookup
    3. Update of the denormalized display names
    4. Idempotent delete
    5. Paged "who does X follow" and "who follows X" queries

    The repository holds no state between calls; concurrent writes to the
    same key resolve as last-writer-wins in the store.
    """

    @abstractmethod
    async def put_follow(self, follow: Union[Follow, Mapping[str, Any]]) -> None:
        """
        Store a follow, overwriting any follow with the same key pair.

        Args:
            follow: Follow to store, or a mapping of its four fields
                (all four required, each a non-empty string)

        Raises:
            FollowValidationError: If the follow or mapping is malformed
                or is neither a Follow nor a mapping

        Note:
            - No duplicate detection and no optimistic concurrency check
            - Overwrites both display names of an existing follow
        """
        pass

    @abstractmethod
    async def get_follow(
        self,
        follower_handle: str,
        followee_handle: str
    ) -> Optional[Follow]:
        """
        Fetch a follow by its primary key.

        Args:
            follower_handle: Handle of the follower (partition key)
            followee_handle: Handle of the followee (sort key)

        Returns:
            The stored Follow, or None if no follow matches

        Raises:
            FollowValidationError: If either handle is empty or not a string
        """
        pass

    @abstractmethod
    async def update_follow_names(
        self,
        follower_handle: str,
        followee_handle: str,
        new_follower_name: str,
        new_followee_name: str,
        require_existing: bool = False
    ) -> None:
        """
        Set both display names of a follow.

        Identity fields are never modified, so index placement is unchanged.

        Args:
            follower_handle: Handle of the follower
            followee_handle: Handle of the followee
            new_follower_name: New display name for the follower
            new_followee_name: New display name for the followee
            require_existing: Fail instead of creating a record when the
                follow does not exist (default: False)

        Raises:
            FollowValidationError: If any argument is empty or not a string
            FollowNotFoundError: If require_existing is True and the follow
                does not exist

        Note:
            With require_existing=False an update of a missing key creates a
            record holding only the key and the two names. Callers that care
            should check existence first or pass require_existing=True.
        """
        pass

    @abstractmethod
    async def delete_follow(
        self,
        follower_handle: str,
        followee_handle: str
    ) -> None:
        """
        Delete a follow by its primary key.

        Deleting a follow that does not exist succeeds silently.

        Raises:
            FollowValidationError: If either handle is empty or not a string
        """
        pass

    @abstractmethod
    async def get_page_of_followees(
        self,
        follower_handle: str,
        page_size: int,
        last_followee: Optional[Union[FolloweeCursor, str]] = None
    ) -> DataPage[Follow, FolloweeCursor]:
        """
        Fetch one page of the follows made by a follower.

        Results are ordered by followee_handle ascending and start strictly
        after last_followee when it is given.

        Args:
            follower_handle: Follower whose followees are listed
            page_size: Maximum number of items (positive integer)
            last_followee: Cursor from the previous page, or the bare
                followee_handle it carries; None starts at the beginning

        Returns:
            DataPage with up to page_size follows and a FolloweeCursor,
            or last_key=None when there are no more results

        Raises:
            FollowValidationError: If page_size is not a positive integer,
                the handle is empty, or the cursor is of the wrong kind or
                belongs to another follower
        """
        pass

    @abstractmethod
    async def get_page_of_followers(
        self,
        followee_handle: str,
        page_size: int,
        last_follower: Optional[Union[FollowerCursor, str]] = None
    ) -> DataPage[Follow, FollowerCursor]:
        """
        Fetch one page of the follows targeting a followee.

        Served by the secondary index; results are ordered by
        follower_handle ascending.

        Args:
            followee_handle: Followee whose followers are listed
            page_size: Maximum number of items (positive integer)
            last_follower: Cursor from the previous page, or the bare
                follower_handle it carries; None starts at the beginning

        Returns:
            DataPage with up to page_size follows and a FollowerCursor,
            or last_key=None when there are no more results

        Raises:
            FollowValidationError: Same conditions as get_page_of_followees
        """
        pass
