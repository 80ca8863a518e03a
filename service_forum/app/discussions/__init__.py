"""
Discussions package: the read/write functions the forum pages call.
"""

from .service import DiscussionsService

__all__ = ["DiscussionsService"]
