"""
Follow repository backed by DynamoDB.

Implements IFollowRepository over the follows table and its follows_index
secondary index. Every operation is a single request on the resource's
low-level client, which is safe to share between executor threads.
Blocking calls run in the event loop's default executor.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from boto3.dynamodb.conditions import ConditionExpressionBuilder, Key
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

from followstore.core.config import settings
from followstore.core.exceptions import FollowNotFoundError, FollowValidationError
from followstore.core.logging_config import log_with_context
from followstore.models.follow import DataPage, Follow, FolloweeCursor, FollowerCursor
from followstore.repositories.interfaces.follow_repository import IFollowRepository

logger = logging.getLogger(__name__)

UPDATE_NAMES_EXPRESSION = "SET follower_name = :fName, followee_name = :feName"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_wire(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert plain attribute values to DynamoDB's typed wire format."""
    return {name: _serializer.serialize(value) for name, value in values.items()}


def _from_wire(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a typed DynamoDB item or key back to plain values."""
    return {name: _deserializer.deserialize(value) for name, value in values.items()}


def _key_condition(partition_field: str, partition_value: str) -> Dict[str, Any]:
    """Build the KeyConditionExpression parameters for one partition."""
    built = ConditionExpressionBuilder().build_expression(
        Key(partition_field).eq(partition_value),
        is_key_condition=True,
    )
    return {
        "KeyConditionExpression": built.condition_expression,
        "ExpressionAttributeNames": built.attribute_name_placeholders,
        "ExpressionAttributeValues": _to_wire(built.attribute_value_placeholders),
    }


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or value.strip() == "":
        raise FollowValidationError(f"{name} must be a non-empty string, got {value!r}")
    return value


def _require_page_size(page_size: Any) -> int:
    # bool is an int subclass; True must not pass as a page size of 1
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise FollowValidationError(
            f"page_size must be an integer, got {type(page_size).__name__}"
        )
    if page_size < 1:
        raise FollowValidationError(f"page_size must be positive, got {page_size}")
    return page_size


def _resolve_start(
    cursor: Any,
    cursor_type: Type[Union[FolloweeCursor, FollowerCursor]],
    partition_field: str,
    sort_field: str,
    partition_value: str,
) -> Optional[str]:
    """
    Reduce a caller-supplied cursor to the sort-key value to resume after.

    Accepts None, a bare sort-key string, or a cursor of cursor_type whose
    partition value matches the query's.
    """
    if cursor is None:
        return None
    if isinstance(cursor, str):
        return _require_text(f"last {sort_field}", cursor)
    if not isinstance(cursor, cursor_type):
        raise FollowValidationError(
            f"Expected {cursor_type.__name__} or str, got {type(cursor).__name__}"
        )
    if getattr(cursor, partition_field) != partition_value:
        raise FollowValidationError(
            f"{cursor_type.__name__} belongs to {partition_field}="
            f"{getattr(cursor, partition_field)!r}, not {partition_value!r}"
        )
    return _require_text(f"last {sort_field}", getattr(cursor, sort_field))


class FollowRepository(IFollowRepository):
    """
    Repository for follow relationships stored in DynamoDB.

    Attributes:
        client: Low-level DynamoDB client taken from the injected resource
        table_name: Name of the base table
        index_name: Name of the secondary index keyed by followee_handle
    """

    def __init__(
        self,
        dynamodb: Any,
        table_name: Optional[str] = None,
        index_name: Optional[str] = None
    ):
        """
        Initialize repository with a DynamoDB resource.

        Args:
            dynamodb: boto3 DynamoDB ServiceResource (lifecycle owned by caller)
            table_name: Base table name (defaults to settings.follows_table_name)
            index_name: Secondary index name (defaults to settings.follows_index_name)
        """
        self.table_name = table_name or settings.follows_table_name
        self.index_name = index_name or settings.follows_index_name
        self.client = dynamodb.meta.client

    async def _call(self, operation: Callable[..., Any], **kwargs: Any) -> Any:
        """Run a blocking DynamoDB client call without blocking the event loop."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(operation, **kwargs)
        )

    async def put_follow(self, follow: Union[Follow, Mapping[str, Any]]) -> None:
        """
        Store a follow, overwriting any existing follow with the same key.

        See IFollowRepository.put_follow for full documentation.
        """
        follow = self._coerce_follow(follow)

        await self._call(
            self.client.put_item,
            TableName=self.table_name,
            Item=_to_wire(follow.to_item()),
        )

        log_with_context(
            logger, "debug", "Put follow",
            table=self.table_name,
            operation="put_follow",
            follower_handle=follow.follower_handle,
            followee_handle=follow.followee_handle,
        )

    async def get_follow(
        self,
        follower_handle: str,
        followee_handle: str
    ) -> Optional[Follow]:
        """
        Fetch a follow by its primary key.

        See IFollowRepository.get_follow for full documentation.
        """
        _require_text("follower_handle", follower_handle)
        _require_text("followee_handle", followee_handle)

        response = await self._call(
            self.client.get_item,
            TableName=self.table_name,
            Key=_to_wire({
                "follower_handle": follower_handle,
                "followee_handle": followee_handle,
            }),
        )
        item = response.get("Item")

        log_with_context(
            logger, "debug", "Got follow" if item else "Follow not found",
            table=self.table_name,
            operation="get_follow",
            follower_handle=follower_handle,
            followee_handle=followee_handle,
        )

        if item is None:
            return None
        return Follow.from_item(_from_wire(item))

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

        See IFollowRepository.update_follow_names for full documentation.
        """
        _require_text("follower_handle", follower_handle)
        _require_text("followee_handle", followee_handle)
        _require_text("new_follower_name", new_follower_name)
        _require_text("new_followee_name", new_followee_name)

        request = {
            "TableName": self.table_name,
            "Key": _to_wire({
                "follower_handle": follower_handle,
                "followee_handle": followee_handle,
            }),
            "UpdateExpression": UPDATE_NAMES_EXPRESSION,
            "ExpressionAttributeValues": _to_wire({
                ":fName": new_follower_name,
                ":feName": new_followee_name,
            }),
        }
        if require_existing:
            request["ConditionExpression"] = "attribute_exists(follower_handle)"

        try:
            await self._call(self.client.update_item, **request)
        except ClientError as e:
            if (
                require_existing
                and e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
            ):
                raise FollowNotFoundError(follower_handle, followee_handle) from e
            raise

        log_with_context(
            logger, "debug", "Updated follow names",
            table=self.table_name,
            operation="update_follow_names",
            follower_handle=follower_handle,
            followee_handle=followee_handle,
        )

    async def delete_follow(
        self,
        follower_handle: str,
        followee_handle: str
    ) -> None:
        """
        Delete a follow by its primary key.

        See IFollowRepository.delete_follow for full documentation.
        """
        _require_text("follower_handle", follower_handle)
        _require_text("followee_handle", followee_handle)

        await self._call(
            self.client.delete_item,
            TableName=self.table_name,
            Key=_to_wire({
                "follower_handle": follower_handle,
                "followee_handle": followee_handle,
            }),
        )

        log_with_context(
            logger, "debug", "Deleted follow",
            table=self.table_name,
            operation="delete_follow",
            follower_handle=follower_handle,
            followee_handle=followee_handle,
        )

    async def get_page_of_followees(
        self,
        follower_handle: str,
        page_size: int,
        last_followee: Optional[Union[FolloweeCursor, str]] = None
    ) -> DataPage[Follow, FolloweeCursor]:
        """
        Fetch one page of the follows made by a follower.

        See IFollowRepository.get_page_of_followees for full documentation.
        """
        _require_text("follower_handle", follower_handle)
        _require_page_size(page_size)
        start_followee = _resolve_start(
            last_followee,
            FolloweeCursor,
            partition_field="follower_handle",
            sort_field="followee_handle",
            partition_value=follower_handle,
        )

        request = {
            "TableName": self.table_name,
            **_key_condition("follower_handle", follower_handle),
            "Limit": page_size,
            "ScanIndexForward": True,
        }
        if start_followee is not None:
            request["ExclusiveStartKey"] = _to_wire({
                "follower_handle": follower_handle,
                "followee_handle": start_followee,
            })

        response = await self._call(self.client.query, **request)

        items = [Follow.from_item(_from_wire(item)) for item in response.get("Items", [])]
        last_evaluated = response.get("LastEvaluatedKey")
        last_key = None
        if last_evaluated:
            last_key = FolloweeCursor.from_key(_from_wire(last_evaluated))

        log_with_context(
            logger, "debug", "Queried followees",
            table=self.table_name,
            operation="get_page_of_followees",
            follower_handle=follower_handle,
            page_size=page_size,
            item_count=len(items),
        )

        return DataPage[Follow, FolloweeCursor](items=items, last_key=last_key)

    async def get_page_of_followers(
        self,
        followee_handle: str,
        page_size: int,
        last_follower: Optional[Union[FollowerCursor, str]] = None
    ) -> DataPage[Follow, FollowerCursor]:
        """
        Fetch one page of the follows targeting a followee.

        See IFollowRepository.get_page_of_followers for full documentation.
        """
        _require_text("followee_handle", followee_handle)
        _require_page_size(page_size)
        start_follower = _resolve_start(
            last_follower,
            FollowerCursor,
            partition_field="followee_handle",
            sort_field="follower_handle",
            partition_value=followee_handle,
        )

        request = {
            "TableName": self.table_name,
            "IndexName": self.index_name,
            **_key_condition("followee_handle", followee_handle),
            "Limit": page_size,
            "ScanIndexForward": True,
        }
        if start_follower is not None:
            # Index start keys carry both index and table key attributes,
            # which here are the same two fields.
            request["ExclusiveStartKey"] = _to_wire({
                "followee_handle": followee_handle,
                "follower_handle": start_follower,
            })

        response = await self._call(self.client.query, **request)

        items = [Follow.from_item(_from_wire(item)) for item in response.get("Items", [])]
        last_evaluated = response.get("LastEvaluatedKey")
        last_key = None
        if last_evaluated:
            last_key = FollowerCursor.from_key(_from_wire(last_evaluated))

        log_with_context(
            logger, "debug", "Queried followers",
            table=self.table_name,
            index=self.index_name,
            operation="get_page_of_followers",
            followee_handle=followee_handle,
            page_size=page_size,
            item_count=len(items),
        )

        return DataPage[Follow, FollowerCursor](items=items, last_key=last_key)

    @staticmethod
    def _coerce_follow(follow: Any) -> Follow:
        """Validate a Follow (or a mapping of its fields) before writing it."""
        if isinstance(follow, Follow):
            candidate = follow
        elif isinstance(follow, Mapping):
            try:
                candidate = Follow.model_validate(dict(follow))
            except ValueError as e:
                # pydantic.ValidationError is a ValueError subclass
                raise FollowValidationError(f"Invalid follow: {e}") from e
        else:
            raise FollowValidationError(
                f"follow must be a Follow or mapping, got {type(follow).__name__}"
            )

        # Instances built with model_construct() skip field validation
        for field in ("follower_handle", "follower_name", "followee_handle", "followee_name"):
            _require_text(field, getattr(candidate, field, None))
        return candidate
