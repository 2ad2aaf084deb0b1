"""
Demo driver for the follows repository.

Exercises every repository operation against scripted sample data:
two batches of 25 follows, a point read, a names update, a delete, and
two pages of each paged query. For manual smoke-testing against DynamoDB
Local or a sandbox account.

Usage:
    followstore-demo --create-table
    python scripts/seed_follows.py --page-size 5 --plain-logs
"""

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from followstore.core.config import VALID_LOG_LEVELS, settings
from followstore.core.dynamodb import (
    close_dynamodb,
    create_follows_table,
    get_dynamodb_resource,
)
from followstore.core.logging_config import setup_logging
from followstore.models.follow import Follow
from followstore.repositories.follow import FollowRepository
from followstore.repositories.interfaces.follow_repository import IFollowRepository

logger = logging.getLogger(__name__)

COMMON_FOLLOWER_HANDLE = "@FredFlintstone"
COMMON_FOLLOWER_NAME = "Fred Flintstone"
COMMON_FOLLOWEE_HANDLE = "@ClintEastwood"
COMMON_FOLLOWEE_NAME = "Clint Eastwood"
BATCH_SIZE = 25


@dataclass
class DemoReport:
    """What the demo observed, step by step."""

    put_count: int = 0
    retrieved: Optional[Follow] = None
    updated: Optional[Follow] = None
    deleted_key: Optional[tuple] = None
    followee_pages: List[List[Follow]] = field(default_factory=list)
    follower_pages: List[List[Follow]] = field(default_factory=list)


def build_followee_batch(count: int = BATCH_SIZE) -> List[Follow]:
    """Follows from one follower to `count` distinct followees."""
    return [
        Follow(
            follower_handle=COMMON_FOLLOWER_HANDLE,
            follower_name=COMMON_FOLLOWER_NAME,
            followee_handle=f"{COMMON_FOLLOWEE_HANDLE}_{i}",
            followee_name=f"{COMMON_FOLLOWEE_NAME} {i}",
        )
        for i in range(1, count + 1)
    ]


def build_follower_batch(count: int = BATCH_SIZE) -> List[Follow]:
    """Follows from `count` distinct followers to one followee."""
    return [
        Follow(
            follower_handle=f"{COMMON_FOLLOWER_HANDLE}_{i}",
            follower_name=f"{COMMON_FOLLOWER_NAME} {i}",
            followee_handle=COMMON_FOLLOWEE_HANDLE,
            followee_name=COMMON_FOLLOWEE_NAME,
        )
        for i in range(1, count + 1)
    ]


def _handles(follows: Sequence[Follow], attr: str) -> List[str]:
    return [getattr(f, attr) for f in follows]


async def run_demo(repository: IFollowRepository, page_size: int = 10) -> DemoReport:
    """
    Run the scripted demo against a repository.

    Args:
        repository: Repository to exercise
        page_size: Page size for the paged queries

    Returns:
        DemoReport with everything the demo read back
    """
    report = DemoReport()

    logger.info(f"Putting {BATCH_SIZE} items with the same follower...")
    for follow in build_followee_batch():
        await repository.put_follow(follow)
        report.put_count += 1
    logger.info(f"Putting {BATCH_SIZE} items with the same followee...")
    for follow in build_follower_batch():
        await repository.put_follow(follow)
        report.put_count += 1

    key_follower = COMMON_FOLLOWER_HANDLE
    key_followee = f"{COMMON_FOLLOWEE_HANDLE}_1"

    logger.info("Getting one item using primary key...")
    report.retrieved = await repository.get_follow(key_follower, key_followee)
    logger.info(f"Retrieved item: {report.retrieved}")

    logger.info("Updating the retrieved item...")
    await repository.update_follow_names(
        key_follower,
        key_followee,
        "Updated Fred",
        "Updated Clint",
    )
    report.updated = await repository.get_follow(key_follower, key_followee)
    logger.info(f"Updated item: {report.updated}")

    deleted_follower = f"{COMMON_FOLLOWER_HANDLE}_1"
    logger.info("Deleting one item using primary key...")
    await repository.delete_follow(deleted_follower, COMMON_FOLLOWEE_HANDLE)
    report.deleted_key = (deleted_follower, COMMON_FOLLOWEE_HANDLE)
    logger.info(
        f"Deleted item: follower={deleted_follower}, followee={COMMON_FOLLOWEE_HANDLE}"
    )

    logger.info(f"Querying paged followees for follower: {COMMON_FOLLOWER_HANDLE}")
    page = await repository.get_page_of_followees(COMMON_FOLLOWER_HANDLE, page_size)
    report.followee_pages.append(page.items)
    logger.info(f"First page of followees: {_handles(page.items, 'followee_handle')}")
    if page.last_key is not None:
        page = await repository.get_page_of_followees(
            COMMON_FOLLOWER_HANDLE, page_size, page.last_key
        )
        report.followee_pages.append(page.items)
        logger.info(f"Second page of followees: {_handles(page.items, 'followee_handle')}")
    else:
        logger.info("No more pages for followees.")

    logger.info(f"Querying paged followers for followee: {COMMON_FOLLOWEE_HANDLE}")
    page = await repository.get_page_of_followers(COMMON_FOLLOWEE_HANDLE, page_size)
    report.follower_pages.append(page.items)
    logger.info(f"First page of followers: {_handles(page.items, 'follower_handle')}")
    if page.last_key is not None:
        page = await repository.get_page_of_followers(
            COMMON_FOLLOWEE_HANDLE, page_size, page.last_key
        )
        report.follower_pages.append(page.items)
        logger.info(f"Second page of followers: {_handles(page.items, 'follower_handle')}")
    else:
        logger.info("No more pages for followers.")

    return report


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Exercise the follows repository against sample data"
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=10,
        help="Page size for the paged queries (default: 10)"
    )
    parser.add_argument(
        "--create-table",
        action="store_true",
        help="Create the follows table and index first if missing"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})"
    )
    parser.add_argument(
        "--plain-logs",
        action="store_true",
        help="Human-readable log lines instead of JSON"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = parse_args(argv)
    setup_logging(
        level=args.log_level,
        json_format=settings.log_json and not args.plain_logs
    )

    dynamodb = get_dynamodb_resource()
    try:
        if args.create_table:
            create_follows_table(dynamodb)
        repository = FollowRepository(dynamodb)
        asyncio.run(run_demo(repository, page_size=args.page_size))
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error executing demo: {e}", exc_info=True)
        return 1
    finally:
        close_dynamodb(dynamodb)
    return 0
