"""
DynamoDB connection and table management.

Provides the boto3 resource factory, explicit close, and provisioning of the
follows table with its secondary index. Nothing here holds a module-level
connection: callers open a resource, pass it to repositories, and close it.
"""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from followstore.core.config import settings

logger = logging.getLogger(__name__)


def get_dynamodb_resource(
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> Any:
    """
    Create a boto3 DynamoDB service resource.

    Args:
        region_name: AWS region (defaults to settings.aws_region)
        endpoint_url: Endpoint override (defaults to settings.dynamodb_endpoint_url)

    Returns:
        boto3 DynamoDB ServiceResource

    Note:
        Credentials come from boto3's default provider chain
        (environment, shared config, instance role).
        The caller owns the resource and should release it with close_dynamodb().
    """
    region = region_name or settings.aws_region
    endpoint = endpoint_url if endpoint_url is not None else settings.dynamodb_endpoint_url

    resource_kwargs = {"region_name": region}
    if endpoint:
        resource_kwargs["endpoint_url"] = endpoint

    resource = boto3.resource("dynamodb", **resource_kwargs)
    logger.debug(
        "DynamoDB resource created",
        extra={"region": region, "endpoint_url": endpoint},
    )
    return resource


def close_dynamodb(dynamodb: Any) -> None:
    """
    Close the HTTP connection pool behind a DynamoDB resource.

    Args:
        dynamodb: Resource returned by get_dynamodb_resource()
    """
    dynamodb.meta.client.close()


def create_follows_table(
    dynamodb: Any,
    table_name: Optional[str] = None,
    index_name: Optional[str] = None,
) -> Any:
    """
    Provision the follows table and its secondary index.

    Layout:
    - Base table: HASH follower_handle, RANGE followee_handle
    - GSI: HASH followee_handle, RANGE follower_handle, projection ALL
    - On-demand billing

    Args:
        dynamodb: boto3 DynamoDB ServiceResource
        table_name: Table name (defaults to settings.follows_table_name)
        index_name: Index name (defaults to settings.follows_index_name)

    Returns:
        boto3 Table for the (new or already existing) table

    Example:
        dynamodb = get_dynamodb_resource()
        table = create_follows_table(dynamodb)

    Note:
        For local development, demos and tests. Production tables are
        expected to be provisioned by infrastructure tooling.
    """
    table_name = table_name or settings.follows_table_name
    index_name = index_name or settings.follows_index_name

    try:
        table = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "follower_handle", "KeyType": "HASH"},
                {"AttributeName": "followee_handle", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "follower_handle", "AttributeType": "S"},
                {"AttributeName": "followee_handle", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": index_name,
                    "KeySchema": [
                        {"AttributeName": "followee_handle", "KeyType": "HASH"},
                        {"AttributeName": "follower_handle", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceInUseException":
            raise
        logger.info("Table already exists", extra={"table": table_name})
        return dynamodb.Table(table_name)

    table.wait_until_exists()
    logger.info("Table created", extra={"table": table_name, "index": index_name})
    return table


def delete_follows_table(dynamodb: Any, table_name: Optional[str] = None) -> bool:
    """
    Delete the follows table.

    Args:
        dynamodb: boto3 DynamoDB ServiceResource
        table_name: Table name (defaults to settings.follows_table_name)

    Returns:
        True if the table was deleted, False if it did not exist
    """
    table_name = table_name or settings.follows_table_name
    table = dynamodb.Table(table_name)

    try:
        table.delete()
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise
        return False

    table.wait_until_not_exists()
    logger.info("Table deleted", extra={"table": table_name})
    return True


class DynamoDBHealthCheck:
    """
    DynamoDB health check utilities.

    Provides methods to verify store connectivity and readiness.
    """

    @staticmethod
    async def check_connection(dynamodb: Any, table_name: Optional[str] = None) -> bool:
        """
        Check that the follows table is reachable and active.

        Returns:
            True if DescribeTable succeeds and reports ACTIVE, False otherwise

        Example:
            is_healthy = await DynamoDBHealthCheck.check_connection(dynamodb)
        """
        table_name = table_name or settings.follows_table_name
        loop = asyncio.get_event_loop()

        try:
            response = await loop.run_in_executor(
                None,
                lambda: dynamodb.meta.client.describe_table(TableName=table_name)
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                f"DynamoDB health check failed: {e}",
                extra={"table": table_name},
            )
            return False

        return response["Table"]["TableStatus"] == "ACTIVE"

    @staticmethod
    def get_store_info() -> dict:
        """
        Get store information for monitoring.

        Returns:
            Dictionary with store metadata
        """
        return {
            "backend": "dynamodb",
            "region": settings.aws_region,
            "endpoint_url": settings.dynamodb_endpoint_url,
            "table": settings.follows_table_name,
            "index": settings.follows_index_name,
        }
