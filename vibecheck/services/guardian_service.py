"""
Guardian verification flow.

A child account asks a guardian to confirm a parent/child link. Start
issues a 6-digit code by email; Verify checks it and links the child's
account to the guardian's. All counters and state live in guardian_links,
never in process memory, so any number of workers can serve the flow.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from vibecheck import config
from vibecheck.errors import (
    DependencyFailure,
    Expired,
    GuardianAccountRequired,
    GuardianError,
    InvalidCode,
    NotFound,
    RateLimitExceeded,
)
from vibecheck.models.guardian import (
    GuardianStatusResponse,
    StartGuardianRequest,
    StartGuardianResponse,
    VerifyGuardianRequest,
    VerifyGuardianResponse,
)
from vibecheck.models.user import User
from vibecheck.repos.analytics_repo import AnalyticsRepo
from vibecheck.repos.guardian_link_repo import GuardianLinkRepo
from vibecheck.repos.user_repo import UserRepo
from vibecheck.services.email import send_guardian_code
from vibecheck.services.guardian_codes import code_matches, generate_code, hash_code

logger = logging.getLogger(__name__)

T = TypeVar("T")

DAILY_CAP_MESSAGE = "Rate limit exceeded. Please try again tomorrow."
DEFAULT_CHILD_NAME = "your child"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class GuardianService:
    """Guardian link flows for the calling child."""

    def __init__(
        self,
        link_repo: GuardianLinkRepo | None = None,
        user_repo: UserRepo | None = None,
        analytics_repo: AnalyticsRepo | None = None,
        send_code: Callable[..., Awaitable[None]] = send_guardian_code,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._links = link_repo or GuardianLinkRepo()
        self._users = user_repo or UserRepo()
        self._analytics = analytics_repo or AnalyticsRepo()
        self._send_code = send_code
        self._clock = clock

    # ── start ───────────────────────────────────────────────────────────────

    async def start(self, child: User, req: StartGuardianRequest) -> StartGuardianResponse:
        """
        Issue a new code for (child, guardian email) and email it.

        Rate limits, both read from the stored link:
        - 5 codes per pair per rolling 24 hours (from the link's created_at)
        - 60 seconds between sends

        Raises:
            RateLimitExceeded: Daily cap reached or cooldown still running
            DependencyFailure: Store or email provider failed
        """
        settings = config.settings
        email = req.guardian_email
        now = self._clock()
        expiry = timedelta(minutes=settings.GUARDIAN_CODE_EXPIRY_MINUTES)
        window = timedelta(hours=settings.GUARDIAN_ATTEMPT_WINDOW_HOURS)
        cooldown = timedelta(seconds=settings.GUARDIAN_RESEND_COOLDOWN_SECONDS)
        window_start = now - window

        link = await self._store("load link", self._links.get(child.id, email))

        if link is not None and link.status == "verified":
            logger.info("Guardian already verified for child %s, no code sent", child.id)
            return StartGuardianResponse(message="Guardian already verified", expires_in=0)

        if link is not None and link.created_at >= window_start:
            if link.attempts >= settings.GUARDIAN_DAILY_ATTEMPT_LIMIT:
                retry_after = _ceil_seconds(link.created_at + window - now)
                logger.warning("Daily guardian code cap reached for child %s", child.id)
                raise RateLimitExceeded(DAILY_CAP_MESSAGE, retry_after=retry_after)

        if link is not None and link.last_sent_at is not None:
            elapsed = now - link.last_sent_at
            if elapsed < cooldown:
                remaining = _ceil_seconds(cooldown - elapsed)
                logger.warning("Guardian code resend throttled for child %s (%ss left)", child.id, remaining)
                raise _cooldown_error(remaining)

        code = generate_code()
        code_expires_at = now + expiry

        stored = await self._store(
            "issue code",
            self._links.issue_code(
                child.id,
                email,
                hash_code(code),
                code_expires_at,
                now=now,
                window_start=window_start,
                max_attempts=settings.GUARDIAN_DAILY_ATTEMPT_LIMIT,
                cooldown_cutoff=now - cooldown,
            ),
        )
        if stored is None:
            # A concurrent request changed the row between our read and write
            current = await self._store("reload link", self._links.get(child.id, email))
            if current is not None and current.status == "verified":
                return StartGuardianResponse(message="Guardian already verified", expires_in=0)
            if (
                current is not None
                and current.created_at >= window_start
                and current.attempts >= settings.GUARDIAN_DAILY_ATTEMPT_LIMIT
            ):
                raise RateLimitExceeded(
                    DAILY_CAP_MESSAGE,
                    retry_after=_ceil_seconds(current.created_at + window - now),
                )
            raise _cooldown_error(_ceil_seconds(cooldown))

        logger.info(
            "Guardian code issued for child %s to %s (attempt %d)",
            child.id,
            email,
            stored.attempts,
        )

        display_name = req.child_name or child.first_name or DEFAULT_CHILD_NAME
        try:
            await self._send_code(
                email,
                code,
                display_name,
                child.language,
                settings.GUARDIAN_CODE_EXPIRY_MINUTES,
            )
        except Exception as e:
            # The code stays issued; the guardian can ask for a resend after the cooldown
            logger.exception("Failed to send guardian verification email for child %s", child.id)
            raise DependencyFailure() from e

        await self._track(child, "guardian_code_sent", {"guardian_email": email, "method": "email_code"})

        return StartGuardianResponse(expires_in=int(expiry.total_seconds()))

    # ── verify ──────────────────────────────────────────────────────────────

    async def verify(self, child: User, req: VerifyGuardianRequest) -> VerifyGuardianResponse:
        """
        Check a submitted code and link the child to the guardian's account.

        Raises:
            NotFound: No link for this (child, guardian email)
            Expired: Code expired; the link is persisted as expired
            InvalidCode: Code does not match
            GuardianAccountRequired: No parent-capable account for the email
            DependencyFailure: Store failed
        """
        email = req.guardian_email
        now = self._clock()

        link = await self._store("load link", self._links.get(child.id, email))
        if link is None:
            raise NotFound()

        if link.status == "verified":
            return VerifyGuardianResponse(message="Guardian already verified")

        if link.status == "expired" or link.code_expires_at is None or link.code_expires_at <= now:
            if link.status == "pending":
                await self._store("expire link", self._links.mark_expired(link.id))
            logger.info("Expired guardian code submitted for child %s", child.id)
            raise Expired()

        if not code_matches(req.code, link.code_hash):
            logger.info("Invalid guardian code submitted for child %s", child.id)
            raise InvalidCode()

        # Every check runs before the status flip so a failure leaves the link pending
        guardian = await self._store("load guardian account", self._users.get_by_email(email))
        if guardian is None or not guardian.is_guardian_capable or guardian.id == child.id:
            logger.info("No parent-capable account for guardian of child %s", child.id)
            raise GuardianAccountRequired()

        won = await self._store(
            "complete verification",
            self._links.complete_verification(link, guardian.id, now),
        )
        if not won:
            logger.info("Guardian link for child %s was verified by a concurrent request", child.id)
            return VerifyGuardianResponse(message="Guardian already verified")

        logger.info("Guardian %s verified for child %s", guardian.id, child.id)
        await self._track(child, "guardian_verified", {"guardian_email": email, "method": link.method})

        return VerifyGuardianResponse()

    # ── status ──────────────────────────────────────────────────────────────

    async def status(self, child: User) -> GuardianStatusResponse:
        """Latest link for the child with the guardian email masked."""
        link = await self._store("load latest link", self._links.get_latest_for_child(child.id))
        return GuardianStatusResponse.from_link(link)

    # ── helpers ─────────────────────────────────────────────────────────────

    async def _store(self, what: str, call: Awaitable[T]) -> T:
        """Await a repository call, turning storage errors into DependencyFailure."""
        try:
            return await call
        except GuardianError:
            raise
        except Exception as e:
            logger.exception("Guardian store operation failed: %s", what)
            raise DependencyFailure() from e

    async def _track(self, child: User, event_type: str, metadata: dict[str, Any]) -> None:
        """Record an analytics event. Never fails the request."""
        try:
            await self._analytics.record_event(child.id, event_type, metadata)
        except Exception:
            logger.warning("Failed to record analytics event %s", event_type, exc_info=True)


def _ceil_seconds(delta: timedelta) -> int:
    return max(1, math.ceil(delta.total_seconds()))


def _cooldown_error(remaining: int) -> RateLimitExceeded:
    return RateLimitExceeded(
        f"Please wait {remaining} seconds before resending.",
        retry_after=remaining,
    )
