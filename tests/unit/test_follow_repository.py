"""
Unit tests for FollowRepository with a mocked DynamoDB client.

Tests cover:
- Request shapes sent to the store for each operation
- Validation before any store call
- Cursor handling and start-key reconstruction
- Store error propagation and strict-update translation
"""

import inspect

import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError, EndpointConnectionError

from followstore.core.exceptions import FollowNotFoundError, FollowValidationError
from followstore.models.follow import Follow, FolloweeCursor, FollowerCursor
from followstore.repositories.follow import FollowRepository
from followstore.repositories.interfaces.follow_repository import IFollowRepository


def _client_error(code: str, operation: str = "UpdateItem") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _wire(values: dict) -> dict:
    """String attributes in DynamoDB's typed wire format."""
    return {name: {"S": value} for name, value in values.items()}


@pytest.fixture
def client():
    """Mocked low-level DynamoDB client with empty default responses."""
    mock_client = MagicMock()
    mock_client.get_item.return_value = {}
    mock_client.query.return_value = {"Items": []}
    return mock_client


@pytest.fixture
def repo(client):
    dynamodb = MagicMock()
    dynamodb.meta.client = client
    return FollowRepository(dynamodb, table_name="follows", index_name="follows_index")


@pytest.fixture
def follow():
    return Follow(
        follower_handle="@FredFlintstone",
        follower_name="Fred Flintstone",
        followee_handle="@ClintEastwood",
        followee_name="Clint Eastwood",
    )


class TestConstruction:

    def test_uses_resource_client(self):
        dynamodb = MagicMock()

        repo = FollowRepository(dynamodb, table_name="follows_test", index_name="idx")

        assert repo.client is dynamodb.meta.client
        assert repo.table_name == "follows_test"
        assert repo.index_name == "idx"
        dynamodb.Table.assert_not_called()

    def test_defaults_come_from_settings(self):
        dynamodb = MagicMock()

        repo = FollowRepository(dynamodb)

        assert repo.table_name == "follows"
        assert repo.index_name == "follows_index"

    @pytest.mark.parametrize("method", [
        "put_follow", "get_follow", "update_follow_names", "delete_follow",
        "get_page_of_followees", "get_page_of_followers",
    ])
    def test_signatures_match_interface(self, method):
        assert inspect.signature(getattr(FollowRepository, method)) == inspect.signature(
            getattr(IFollowRepository, method)
        )


class TestPutFollow:

    @pytest.mark.anyio
    async def test_put_sends_full_item(self, repo, client, follow):
        await repo.put_follow(follow)

        client.put_item.assert_called_once_with(
            TableName="follows",
            Item=_wire(follow.to_item()),
        )

    @pytest.mark.anyio
    async def test_put_accepts_mapping(self, repo, client, follow):
        await repo.put_follow(follow.to_item())

        client.put_item.assert_called_once_with(
            TableName="follows",
            Item=_wire(follow.to_item()),
        )

    @pytest.mark.anyio
    async def test_put_rejects_incomplete_mapping(self, repo, client):
        with pytest.raises(FollowValidationError):
            await repo.put_follow({"follower_handle": "@a", "followee_handle": "@b"})

        client.put_item.assert_not_called()

    @pytest.mark.anyio
    async def test_put_rejects_unvalidated_instance(self, repo, client):
        bogus = Follow.model_construct(
            follower_handle="@a",
            follower_name="A",
            followee_handle="",
            followee_name="B",
        )

        with pytest.raises(FollowValidationError):
            await repo.put_follow(bogus)

        client.put_item.assert_not_called()

    @pytest.mark.anyio
    async def test_put_rejects_other_types(self, repo, client):
        with pytest.raises(FollowValidationError):
            await repo.put_follow("@a follows @b")

        client.put_item.assert_not_called()


class TestGetFollow:

    @pytest.mark.anyio
    async def test_get_uses_exact_key(self, repo, client, follow):
        client.get_item.return_value = {"Item": _wire(follow.to_item())}

        result = await repo.get_follow("@FredFlintstone", "@ClintEastwood")

        client.get_item.assert_called_once_with(
            TableName="follows",
            Key=_wire({"follower_handle": "@FredFlintstone", "followee_handle": "@ClintEastwood"}),
        )
        assert result == follow

    @pytest.mark.anyio
    async def test_get_missing_returns_none(self, repo, client):
        client.get_item.return_value = {}

        result = await repo.get_follow("@nobody", "@nothing")

        assert result is None

    @pytest.mark.anyio
    @pytest.mark.parametrize("follower, followee", [
        ("", "@b"),
        ("@a", ""),
        ("   ", "@b"),
        (None, "@b"),
        ("@a", 7),
    ])
    async def test_get_rejects_bad_handles(self, repo, client, follower, followee):
        with pytest.raises(FollowValidationError):
            await repo.get_follow(follower, followee)

        client.get_item.assert_not_called()


class TestUpdateFollowNames:

    @pytest.mark.anyio
    async def test_update_sets_both_names(self, repo, client):
        await repo.update_follow_names("@a", "@b", "New A", "New B")

        client.update_item.assert_called_once_with(
            TableName="follows",
            Key=_wire({"follower_handle": "@a", "followee_handle": "@b"}),
            UpdateExpression="SET follower_name = :fName, followee_name = :feName",
            ExpressionAttributeValues=_wire({":fName": "New A", ":feName": "New B"}),
        )

    @pytest.mark.anyio
    async def test_strict_update_adds_existence_condition(self, repo, client):
        await repo.update_follow_names("@a", "@b", "New A", "New B", require_existing=True)

        kwargs = client.update_item.call_args.kwargs
        assert kwargs["ConditionExpression"] == "attribute_exists(follower_handle)"

    @pytest.mark.anyio
    async def test_strict_update_of_missing_follow_raises_not_found(self, repo, client):
        client.update_item.side_effect = _client_error("ConditionalCheckFailedException")

        with pytest.raises(FollowNotFoundError) as exc_info:
            await repo.update_follow_names("@a", "@b", "A", "B", require_existing=True)

        assert exc_info.value.follower_handle == "@a"
        assert exc_info.value.followee_handle == "@b"
        assert isinstance(exc_info.value.__cause__, ClientError)

    @pytest.mark.anyio
    async def test_non_strict_update_propagates_condition_errors(self, repo, client):
        error = _client_error("ConditionalCheckFailedException")
        client.update_item.side_effect = error

        with pytest.raises(ClientError) as exc_info:
            await repo.update_follow_names("@a", "@b", "A", "B")

        assert exc_info.value is error

    @pytest.mark.anyio
    async def test_update_rejects_empty_name(self, repo, client):
        with pytest.raises(FollowValidationError):
            await repo.update_follow_names("@a", "@b", "", "B")

        client.update_item.assert_not_called()


class TestDeleteFollow:

    @pytest.mark.anyio
    async def test_delete_uses_exact_key(self, repo, client):
        await repo.delete_follow("@a", "@b")

        client.delete_item.assert_called_once_with(
            TableName="follows",
            Key=_wire({"follower_handle": "@a", "followee_handle": "@b"}),
        )

    @pytest.mark.anyio
    async def test_delete_rejects_empty_handle(self, repo, client):
        with pytest.raises(FollowValidationError):
            await repo.delete_follow("@a", "")

        client.delete_item.assert_not_called()


class TestGetPageOfFollowees:

    @pytest.mark.anyio
    async def test_first_page_request(self, repo, client):
        await repo.get_page_of_followees("@FredFlintstone", 10)

        kwargs = client.query.call_args.kwargs
        assert kwargs["TableName"] == "follows"
        assert kwargs["KeyConditionExpression"] == "#n0 = :v0"
        assert kwargs["ExpressionAttributeNames"] == {"#n0": "follower_handle"}
        assert kwargs["ExpressionAttributeValues"] == {":v0": {"S": "@FredFlintstone"}}
        assert kwargs["Limit"] == 10
        assert kwargs["ScanIndexForward"] is True
        assert "ExclusiveStartKey" not in kwargs
        assert "IndexName" not in kwargs

    @pytest.mark.anyio
    async def test_cursor_rebuilt_from_partition_and_token(self, repo, client):
        cursor = FolloweeCursor(
            follower_handle="@FredFlintstone",
            followee_handle="@ClintEastwood_18",
        )

        await repo.get_page_of_followees("@FredFlintstone", 10, cursor)

        assert client.query.call_args.kwargs["ExclusiveStartKey"] == _wire({
            "follower_handle": "@FredFlintstone",
            "followee_handle": "@ClintEastwood_18",
        })

    @pytest.mark.anyio
    async def test_bare_handle_token_accepted(self, repo, client):
        await repo.get_page_of_followees("@FredFlintstone", 10, "@ClintEastwood_18")

        assert client.query.call_args.kwargs["ExclusiveStartKey"] == _wire({
            "follower_handle": "@FredFlintstone",
            "followee_handle": "@ClintEastwood_18",
        })

    @pytest.mark.anyio
    async def test_response_mapped_to_page(self, repo, client, follow):
        client.query.return_value = {
            "Items": [_wire(follow.to_item())],
            "LastEvaluatedKey": _wire(follow.key),
        }

        page = await repo.get_page_of_followees("@FredFlintstone", 1)

        assert page.items == [follow]
        assert page.last_key == FolloweeCursor(
            follower_handle="@FredFlintstone",
            followee_handle="@ClintEastwood",
        )

    @pytest.mark.anyio
    async def test_no_last_evaluated_key_ends_results(self, repo, client, follow):
        client.query.return_value = {"Items": [_wire(follow.to_item())]}

        page = await repo.get_page_of_followees("@FredFlintstone", 10)

        assert page.last_key is None
        assert page.has_more is False

    @pytest.mark.anyio
    @pytest.mark.parametrize("page_size", [0, -1, True, 2.5, "10", None])
    async def test_invalid_page_size_rejected(self, repo, client, page_size):
        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followees("@FredFlintstone", page_size)

        client.query.assert_not_called()

    @pytest.mark.anyio
    async def test_follower_cursor_rejected(self, repo, client):
        wrong_kind = FollowerCursor(
            followee_handle="@FredFlintstone",
            follower_handle="@x",
        )

        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followees("@FredFlintstone", 10, wrong_kind)

        client.query.assert_not_called()

    @pytest.mark.anyio
    async def test_cursor_from_other_partition_rejected(self, repo, client):
        foreign = FolloweeCursor(follower_handle="@Barney", followee_handle="@x")

        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followees("@FredFlintstone", 10, foreign)

        client.query.assert_not_called()

    @pytest.mark.anyio
    async def test_empty_bare_token_rejected(self, repo, client):
        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followees("@FredFlintstone", 10, "")

        client.query.assert_not_called()

    @pytest.mark.anyio
    @pytest.mark.parametrize("followee_handle", ["", "   "])
    async def test_cursor_with_blank_followee_rejected(self, repo, client, followee_handle):
        cursor = FolloweeCursor(follower_handle="@fan", followee_handle=followee_handle)

        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followees("@fan", 10, cursor)

        client.query.assert_not_called()


class TestGetPageOfFollowers:

    @pytest.mark.anyio
    async def test_queries_secondary_index(self, repo, client):
        await repo.get_page_of_followers("@ClintEastwood", 5)

        kwargs = client.query.call_args.kwargs
        assert kwargs["TableName"] == "follows"
        assert kwargs["IndexName"] == "follows_index"
        assert kwargs["KeyConditionExpression"] == "#n0 = :v0"
        assert kwargs["ExpressionAttributeNames"] == {"#n0": "followee_handle"}
        assert kwargs["ExpressionAttributeValues"] == {":v0": {"S": "@ClintEastwood"}}
        assert kwargs["Limit"] == 5
        assert "ExclusiveStartKey" not in kwargs

    @pytest.mark.anyio
    async def test_cursor_rebuilt_for_index(self, repo, client):
        cursor = FollowerCursor(
            followee_handle="@ClintEastwood",
            follower_handle="@FredFlintstone_18",
        )

        await repo.get_page_of_followers("@ClintEastwood", 5, cursor)

        assert client.query.call_args.kwargs["ExclusiveStartKey"] == _wire({
            "followee_handle": "@ClintEastwood",
            "follower_handle": "@FredFlintstone_18",
        })

    @pytest.mark.anyio
    async def test_response_mapped_to_follower_cursor(self, repo, client, follow):
        client.query.return_value = {
            "Items": [_wire(follow.to_item())],
            "LastEvaluatedKey": _wire(follow.key),
        }

        page = await repo.get_page_of_followers("@ClintEastwood", 1)

        assert page.items == [follow]
        assert page.last_key == FollowerCursor(
            followee_handle="@ClintEastwood",
            follower_handle="@FredFlintstone",
        )

    @pytest.mark.anyio
    async def test_followee_cursor_rejected(self, repo, client):
        wrong_kind = FolloweeCursor(
            follower_handle="@x",
            followee_handle="@ClintEastwood",
        )

        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followers("@ClintEastwood", 5, wrong_kind)

        client.query.assert_not_called()

    @pytest.mark.anyio
    @pytest.mark.parametrize("follower_handle", ["", "   "])
    async def test_cursor_with_blank_follower_rejected(self, repo, client, follower_handle):
        cursor = FollowerCursor(followee_handle="@star", follower_handle=follower_handle)

        with pytest.raises(FollowValidationError):
            await repo.get_page_of_followers("@star", 5, cursor)

        client.query.assert_not_called()


class TestStoreErrors:
    """Store and transport errors reach the caller unchanged."""

    @pytest.mark.anyio
    async def test_throttling_propagates(self, repo, client, follow):
        error = _client_error("ProvisionedThroughputExceededException", "PutItem")
        client.put_item.side_effect = error

        with pytest.raises(ClientError) as exc_info:
            await repo.put_follow(follow)

        assert exc_info.value is error
        assert client.put_item.call_count == 1

    @pytest.mark.anyio
    async def test_connection_error_propagates(self, repo, client):
        client.query.side_effect = EndpointConnectionError(endpoint_url="http://localhost:8000")

        with pytest.raises(EndpointConnectionError):
            await repo.get_page_of_followers("@ClintEastwood", 5)

        assert client.query.call_count == 1

    @pytest.mark.anyio
    async def test_access_denied_on_get_propagates(self, repo, client):
        client.get_item.side_effect = _client_error("AccessDeniedException", "GetItem")

        with pytest.raises(ClientError):
            await repo.get_follow("@a", "@b")

    def test_validation_error_is_value_error(self):
        assert issubclass(FollowValidationError, ValueError)
        assert not issubclass(FollowValidationError, ClientError)
