"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- moto-backed DynamoDB fixtures
- Repository fixtures
"""

import os

import pytest


# Set test environment variables BEFORE any imports
# This must happen first to ensure settings and boto3 load with test values
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["FOLLOWS_TABLE_NAME"] = "follows"
os.environ["FOLLOWS_INDEX_NAME"] = "follows_index"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ.pop("DYNAMODB_ENDPOINT_URL", None)


@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for async tests.

    Returns:
        str: Backend name ("asyncio")
    """
    return "asyncio"


@pytest.fixture
def dynamodb():
    """
    Provide an in-memory DynamoDB resource with the follows table.

    The table and index are created before the test; moto discards all
    state when the context exits.
    """
    from moto import mock_aws

    from followstore.core.dynamodb import (
        close_dynamodb,
        create_follows_table,
        get_dynamodb_resource,
    )

    with mock_aws():
        resource = get_dynamodb_resource(region_name="us-east-1")
        create_follows_table(resource)
        yield resource
        close_dynamodb(resource)


@pytest.fixture
def follow_repo(dynamodb):
    """Provide a FollowRepository bound to the moto-backed table."""
    from followstore.repositories.follow import FollowRepository

    return FollowRepository(dynamodb)


@pytest.fixture
def make_follow():
    """Factory for Follow instances with predictable names."""
    from followstore.models.follow import Follow

    def _make(follower_handle: str, followee_handle: str, suffix: str = "") -> Follow:
        return Follow(
            follower_handle=follower_handle,
            follower_name=f"Name of {follower_handle}{suffix}",
            followee_handle=followee_handle,
            followee_name=f"Name of {followee_handle}{suffix}",
        )

    return _make
