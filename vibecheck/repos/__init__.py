"""
Repository layer for Vibe Check.

All SQL lives here and ONLY here. No database access outside this module.
"""

from vibecheck.repos.analytics_repo import AnalyticsRepo
from vibecheck.repos.guardian_link_repo import GuardianLinkRepo
from vibecheck.repos.user_repo import UserRepo

__all__ = [
    "UserRepo",
    "GuardianLinkRepo",
    "AnalyticsRepo",
]
