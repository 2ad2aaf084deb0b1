"""
Follow relationship models.

A Follow is a directed edge in the social graph: follower_handle follows
followee_handle. Display names for both ends are denormalized onto the edge.

Cursors are the typed continuation tokens of the two paged queries. Each
kind is only accepted by the query that produced it.
"""

from typing import Any, Dict, Generic, List, Literal, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class Follow(BaseModel):
    """
    A follow relationship as stored in the follows table.

    Attributes:
        follower_handle: Handle of the following party (partition key)
        follower_name: Display name of the follower
        followee_handle: Handle of the followed party (sort key, index partition key)
        followee_name: Display name of the followee
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "follower_handle": "@FredFlintstone",
                "follower_name": "Fred Flintstone",
                "followee_handle": "@ClintEastwood",
                "followee_name": "Clint Eastwood",
            }
        },
    )

    follower_handle: str = Field(..., min_length=1, description="Partition key")
    follower_name: str = Field(..., min_length=1, description="Follower display name")
    followee_handle: str = Field(..., min_length=1, description="Sort key")
    followee_name: str = Field(..., min_length=1, description="Followee display name")

    @property
    def key(self) -> Dict[str, str]:
        """Primary key of this follow in the base table."""
        return {
            "follower_handle": self.follower_handle,
            "followee_handle": self.followee_handle,
        }

    def to_item(self) -> Dict[str, str]:
        """Serialize to a DynamoDB item."""
        return self.model_dump()

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "Follow":
        """Build a Follow from a DynamoDB item, ignoring unknown attributes."""
        return cls.model_validate(dict(item))


class FolloweeCursor(BaseModel):
    """Continuation of a "who does X follow" query (base table)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["followee"] = "followee"
    follower_handle: str
    followee_handle: str

    @classmethod
    def from_key(cls, key: Mapping[str, Any]) -> "FolloweeCursor":
        return cls(
            follower_handle=key["follower_handle"],
            followee_handle=key["followee_handle"],
        )


class FollowerCursor(BaseModel):
    """Continuation of a "who follows X" query (secondary index)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["follower"] = "follower"
    followee_handle: str
    follower_handle: str

    @classmethod
    def from_key(cls, key: Mapping[str, Any]) -> "FollowerCursor":
        return cls(
            followee_handle=key["followee_handle"],
            follower_handle=key["follower_handle"],
        )


T = TypeVar("T")
C = TypeVar("C")


class DataPage(BaseModel, Generic[T, C]):
    """
    One page of a paged query.

    Attributes:
        items: Results in store order (ascending sort key within the partition)
        last_key: Cursor to pass back for the next page; None at end of results
    """

    items: List[T] = Field(default_factory=list)
    last_key: Optional[C] = None

    @property
    def has_more(self) -> bool:
        return self.last_key is not None
