"""
Repository interfaces.

Abstract contracts implemented by concrete store-backed repositories.
"""

from followstore.repositories.interfaces.follow_repository import IFollowRepository

__all__ = ["IFollowRepository"]
