"""
Approval Token Service

One implementation of the magic-link lifecycle for every kind of subject:

1. Issue:
   - Check the requester owns the subject and it is not finalized
   - Rate limit issuance per subject (Redis, fail closed)
   - Supersede outstanding links, store the new token's hash, mark pending
   - Email the link (failure is logged, not retried, not rolled back)

2. Resolve:
   - Pure read: not found, already approved and expired are distinct errors
   - Returns the subject view the approval form renders

3. Commit:
   - Claim the token with one conditional write, then write the approval
     and terminal status in the same transaction
   - Concurrent submissions for one token: exactly one claims it

Security considerations:
- Tokens are 32 random bytes (hex) from the secrets module
- Only the SHA-256 hash is stored; plain tokens are never logged
- A token only resolves for the subject kind it was issued for
"""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Generic
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from accreda.core.auth import CurrentUser
from accreda.core.config import settings
from accreda.modules.approvals import repository
from accreda.modules.approvals.adapters import FieldsT, SubjectAdapter, SubjectT
from accreda.modules.approvals.errors import (
    NotSubjectOwnerError,
    RateLimitExceededError,
    ServiceUnavailableError,
    SubjectFinalizedError,
    SubjectNotFoundError,
    TokenAlreadyConsumedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from accreda.modules.approvals.models import ConsumptionMode, SubjectStatus
from accreda.modules.approvals.schemas import SubjectView

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a plain token, as stored in the database."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_token() -> str:
    """A new opaque token: 32 random bytes as 64 hex characters."""
    return secrets.token_hex(TOKEN_BYTES)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (some drivers drop the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class IssuedToken:
    token: str
    link: str
    subject_id: UUID
    recipient_email: str
    expires_at: datetime
    email_sent: bool


@dataclass
class CommitResult:
    subject_id: UUID
    status: SubjectStatus


class ApprovalTokenService(Generic[SubjectT, FieldsT]):
    """
    Issue, resolve and commit approval tokens for one kind of subject.

    Args:
        adapter: Access to the subject table
        expiry: How long an issued token stays valid
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        adapter: SubjectAdapter[SubjectT, FieldsT],
        expiry: timedelta,
        clock: Callable[[], datetime] = utc_now,
        rate_limit_max_requests: int = settings.issue_rate_limit_max_requests,
        rate_limit_window_seconds: int = settings.issue_rate_limit_window_seconds,
    ):
        self.adapter = adapter
        self.expiry = expiry
        self.clock = clock
        self.rate_limit_max_requests = rate_limit_max_requests
        self.rate_limit_window_seconds = rate_limit_window_seconds

    @property
    def kind(self):
        return self.adapter.kind

    @property
    def expires_in_hours(self) -> int:
        return int(self.expiry.total_seconds() // 3600)

    # ============================================
    # Issue
    # ============================================

    def _rate_limit_key(self, scope: str) -> str:
        return f"approval_issue:{self.kind.value}:{scope}"

    async def _check_rate_limit(self, redis_client: Redis | None, scope: str) -> None:
        """
        Allow at most N issues per scope (normally one subject) per window.

        Fails closed: without a working Redis no request is sent, which
        prevents email bombing during an outage.

        Raises:
            ServiceUnavailableError: If Redis is unavailable or errors
            RateLimitExceededError: If the limit is reached
        """
        if redis_client is None:
            logger.error("Redis unavailable for rate limiting - failing request")
            raise ServiceUnavailableError()

        key = self._rate_limit_key(scope)
        try:
            current_count = await redis_client.get(key)
            ttl = None
            if current_count is not None and int(current_count) >= self.rate_limit_max_requests:
                ttl = await redis_client.ttl(key)
        except RedisError as e:
            logger.error(f"Redis error during rate limit check - failing request: {e}")
            raise ServiceUnavailableError() from e

        if ttl is not None:
            logger.warning(
                f"Issue rate limit exceeded for {self.kind.value} {scope}: "
                f"{current_count} requests in window"
            )
            raise RateLimitExceededError(retry_after_seconds=max(ttl, 60))

    async def _record_issue(self, redis_client: Redis, scope: str) -> None:
        """Count a stored token against the scope's quota."""
        key = self._rate_limit_key(scope)
        try:
            pipe = redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.rate_limit_window_seconds)
            await pipe.execute()
        except RedisError as e:
            logger.error(f"Failed to record issue for rate limiting on {key}: {e}")

    async def issue(
        self,
        db: AsyncSession,
        subject_id: UUID,
        recipient_email: str,
        requested_by: CurrentUser,
        redis_client: Redis | None,
    ) -> IssuedToken:
        """
        Create a token for a subject and email its link.

        Raises:
            SubjectNotFoundError: If the subject does not exist
            NotSubjectOwnerError: If the requester does not own the subject
            SubjectFinalizedError: If the subject is already validated or rejected
            RateLimitExceededError: If too many requests were sent recently
            ServiceUnavailableError: If Redis is unavailable or errors
        """
        logger.info(f"Issuing {self.kind.value} approval token for subject {subject_id}")

        subject = await self.adapter.fetch_subject(db, subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)

        if not requested_by.is_admin and self.adapter.owner_id(subject) != requested_by.id:
            logger.warning(
                f"User {requested_by.id} tried to issue a token for {self.kind.value} {subject_id}"
            )
            raise NotSubjectOwnerError()

        if self.adapter.is_terminal(subject):
            raise SubjectFinalizedError(self.adapter.get_status(subject).value)

        scope = self.adapter.rate_limit_scope(subject_id, subject)
        await self._check_rate_limit(redis_client, scope)

        now = self.clock()
        superseded = await repository.delete_outstanding_tokens(db, self.kind, subject_id)
        if superseded:
            logger.info(f"Superseded {superseded} outstanding token(s) for subject {subject_id}")

        token = generate_token()
        expires_at = now + self.expiry

        await repository.create_token(
            db=db,
            token_hash=hash_token(token),
            subject_kind=self.kind,
            subject_id=subject_id,
            recipient_email=recipient_email,
            expires_at=expires_at,
        )
        await self.adapter.mark_subject_pending(db, subject_id, now)

        # Persist before sending; a storage failure propagates and nothing is sent
        await db.commit()
        logger.info(f"Stored {self.kind.value} approval token for subject {subject_id}")
        await self._record_issue(redis_client, scope)

        link = self.adapter.link_for(token)
        email_sent = False
        try:
            email_sent = await self.adapter.send_request(
                subject, recipient_email, link, self.expires_in_hours
            )
            if not email_sent:
                logger.error(f"Failed to send approval email for {self.kind.value} {subject_id}")
        except Exception as e:
            logger.error(f"Exception sending approval email for {self.kind.value} {subject_id}: {e}")

        return IssuedToken(
            token=token,
            link=link,
            subject_id=subject_id,
            recipient_email=recipient_email,
            expires_at=expires_at,
            email_sent=email_sent,
        )

    # ============================================
    # Resolve
    # ============================================

    async def resolve(self, db: AsyncSession, token: str) -> SubjectView:
        """
        Return the subject view for a live token. Has no side effects.

        Raises:
            TokenNotFoundError: If no token of this kind matches
            TokenAlreadyConsumedError: If the token (or its subject) is already approved
            TokenExpiredError: If the token is past its expiry
            SubjectNotFoundError: If the subject was deleted
        """
        approval_token = await repository.get_by_token_hash(db, hash_token(token))

        if approval_token is None or approval_token.subject_kind != self.kind:
            logger.warning(f"{self.kind.value} token resolve failed: token not found")
            raise TokenNotFoundError()

        if approval_token.consumed_at is not None:
            logger.warning(f"{self.kind.value} token resolve failed: already consumed")
            raise TokenAlreadyConsumedError()

        expires_at = as_utc(approval_token.expires_at)
        if self.clock() >= expires_at:
            logger.warning(f"{self.kind.value} token resolve failed: expired")
            raise TokenExpiredError()

        subject = await self.adapter.fetch_subject(db, approval_token.subject_id)
        if subject is None:
            logger.error(f"Subject not found for token: {approval_token.subject_id}")
            raise SubjectNotFoundError(approval_token.subject_id)

        if self.adapter.is_terminal(subject):
            raise TokenAlreadyConsumedError()

        return self.adapter.build_view(subject, expires_at)

    # ============================================
    # Commit
    # ============================================

    async def _raise_unclaimable(self, db: AsyncSession, token_hash: str) -> None:
        """Work out why a claim matched nothing and raise the matching error."""
        approval_token = await repository.get_by_token_hash(db, token_hash)

        if approval_token is None or approval_token.subject_kind != self.kind:
            raise TokenNotFoundError()
        if approval_token.consumed_at is not None:
            raise TokenAlreadyConsumedError()
        raise TokenExpiredError()

    async def commit(self, db: AsyncSession, token: str, fields: FieldsT) -> CommitResult:
        """
        Record an approval and consume the token in one transaction.

        If any step fails the whole unit is rolled back: the token stays
        usable and the subject is left untouched.

        Raises:
            TokenNotFoundError: If no token of this kind matches (or it was deleted on use)
            TokenAlreadyConsumedError: If the token was already used
            TokenExpiredError: If the token is past its expiry
            SubjectNotFoundError: If the subject was deleted
            SubjectFinalizedError: If the subject is already validated or rejected
        """
        token_hash = hash_token(token)
        now = self.clock()

        try:
            claimed = await repository.claim_token(
                db, token_hash, self.kind, now, self.adapter.consumption
            )
            if claimed is None:
                await self._raise_unclaimable(db, token_hash)

            subject_id = claimed.subject_id
            subject = await self.adapter.fetch_subject(db, subject_id)
            if subject is None:
                raise SubjectNotFoundError(subject_id)
            if self.adapter.is_terminal(subject):
                raise SubjectFinalizedError(self.adapter.get_status(subject).value)

            status = self.adapter.decision_for(fields)
            await self.adapter.write_approval(db, subject_id, fields)
            await self.adapter.mark_subject_terminal(db, subject_id, status, now)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        action = "deleted" if self.adapter.consumption == ConsumptionMode.DELETE else "flagged"
        logger.info(
            f"{self.kind.value} {subject_id} marked {status.value}; token {action} as consumed"
        )
        return CommitResult(subject_id=subject_id, status=status)

    # ============================================
    # Administration
    # ============================================

    async def revoke(self, db: AsyncSession, subject_id: UUID) -> int:
        """Delete a subject's outstanding tokens. Returns the number revoked."""
        revoked = await repository.delete_outstanding_tokens(db, self.kind, subject_id)
        await db.commit()
        logger.info(f"Revoked {revoked} token(s) for {self.kind.value} {subject_id}")
        return revoked

    async def override_status(
        self,
        db: AsyncSession,
        subject_id: UUID,
        status: SubjectStatus,
        admin: CurrentUser,
        reason: str | None = None,
    ) -> tuple[SubjectStatus, int]:
        """
        Force a subject's status, bypassing the normal transitions.

        Outstanding tokens are revoked so no old link can overwrite the
        admin's decision.

        Returns:
            Tuple of (previous status, number of revoked tokens)

        Raises:
            SubjectNotFoundError: If the subject does not exist
        """
        subject = await self.adapter.fetch_subject(db, subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)

        previous = self.adapter.get_status(subject)
        try:
            revoked = await repository.delete_outstanding_tokens(db, self.kind, subject_id)
            await self.adapter.set_status(db, subject_id, status, self.clock())
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Admin {admin.id} overrode {self.kind.value} {subject_id}: "
            f"{previous.value} -> {status.value} (reason: {reason or 'none given'})"
        )
        return previous, revoked
