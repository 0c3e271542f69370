"""
Unit tests for the approval token service.

These tests cover:
- Token generation and hashing
- Issue (ownership, finalized subjects, rate limiting, email failures)
- Resolve (not found, consumed, expired, terminal subjects)
- Commit (atomic claim, classification of failed claims, rollback)
- Revoke and administrative status override
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from accreda.modules.approvals.errors import (
    InvalidApprovalRequestError,
    NotSubjectOwnerError,
    RateLimitExceededError,
    ServiceUnavailableError,
    SubjectFinalizedError,
    SubjectNotFoundError,
    TokenAlreadyConsumedError,
    TokenExpiredError,
    TokenNotFoundError,
)
from accreda.modules.approvals.models import ConsumptionMode, SubjectKind, SubjectStatus
from accreda.modules.approvals.repository import ClaimedToken
from accreda.modules.approvals.service import (
    ApprovalTokenService,
    CommitResult,
    generate_token,
    hash_token,
)

REPOSITORY = "accreda.modules.approvals.service.repository"
EXPIRY = timedelta(hours=168)


@pytest.fixture
def service(mock_adapter, clock):
    return ApprovalTokenService(
        adapter=mock_adapter,
        expiry=EXPIRY,
        clock=clock,
        rate_limit_max_requests=3,
        rate_limit_window_seconds=3600,
    )


class TestHashToken:
    """Tests for token hashing and generation."""

    def test_hash_token_returns_sha256_hex(self):
        result = hash_token("test_token")
        assert isinstance(result, str)
        assert len(result) == 64

    def test_hash_token_is_deterministic(self):
        assert hash_token("my_secure_token") == hash_token("my_secure_token")

    def test_different_tokens_have_different_hashes(self):
        assert hash_token("token1") != hash_token("token2")

    def test_generated_token_is_64_hex_chars(self):
        token = generate_token()
        assert len(token) == 64
        int(token, 16)

    def test_generated_tokens_are_unique(self):
        assert len({generate_token() for _ in range(50)}) == 50


class TestIssue:
    """Tests for ApprovalTokenService.issue."""

    @pytest.mark.asyncio
    async def test_issue_success(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user, clock
    ):
        """Issuing stores only the hash, marks the subject pending and sends the link."""
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

            assert issued.expires_at == clock.now + EXPIRY
            assert issued.email_sent is True
            assert issued.link == f"https://forms.test/reference/{issued.token}"

            create_kwargs = mock_repo.create_token.call_args.kwargs
            assert create_kwargs["token_hash"] == hash_token(issued.token)
            assert create_kwargs["token_hash"] != issued.token
            assert create_kwargs["subject_kind"] == SubjectKind.REFERENCE
            assert create_kwargs["recipient_email"] == "referee@example.com"

            mock_adapter.mark_subject_pending.assert_awaited_once_with(
                mock_db, sample_subject.id, clock.now
            )
            mock_db.commit.assert_awaited_once()
            mock_adapter.send_request.assert_awaited_once_with(
                sample_subject, "referee@example.com", issued.link, 168
            )

    @pytest.mark.asyncio
    async def test_issue_supersedes_outstanding_tokens(
        self, service, mock_db, mock_redis, sample_subject, eit_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=1)
            mock_repo.create_token = AsyncMock()

            await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

            mock_repo.delete_outstanding_tokens.assert_awaited_once_with(
                mock_db, SubjectKind.REFERENCE, sample_subject.id
            )

    @pytest.mark.asyncio
    async def test_issue_subject_not_found(self, service, mock_db, mock_redis, mock_adapter, eit_user):
        mock_adapter.fetch_subject.return_value = None

        with pytest.raises(SubjectNotFoundError):
            await service.issue(mock_db, uuid4(), "referee@example.com", eit_user, mock_redis)

    @pytest.mark.asyncio
    async def test_issue_rejects_non_owner(
        self, service, mock_db, mock_redis, sample_subject, other_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.create_token = AsyncMock()

            with pytest.raises(NotSubjectOwnerError) as exc_info:
                await service.issue(
                    mock_db, sample_subject.id, "referee@example.com", other_user, mock_redis
                )

            assert exc_info.value.status_code == 403
            mock_repo.create_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_admin_may_issue_for_any_subject(
        self, service, mock_db, mock_redis, sample_subject, admin_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", admin_user, mock_redis
            )

            assert issued.subject_id == sample_subject.id

    @pytest.mark.asyncio
    async def test_issue_refuses_finalized_subject(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        mock_adapter.is_terminal.return_value = True
        mock_adapter.get_status.return_value = SubjectStatus.VALIDATED

        with pytest.raises(SubjectFinalizedError) as exc_info:
            await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_issue_fails_closed_without_redis(
        self, service, mock_db, mock_adapter, sample_subject, eit_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.create_token = AsyncMock()

            with pytest.raises(ServiceUnavailableError) as exc_info:
                await service.issue(
                    mock_db, sample_subject.id, "referee@example.com", eit_user, None
                )

            assert exc_info.value.status_code == 503
            mock_repo.create_token.assert_not_called()
            mock_adapter.send_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_fails_closed_when_redis_errors(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        mock_redis.get.side_effect = RedisConnectionError("Connection refused")

        with patch(REPOSITORY) as mock_repo:
            mock_repo.create_token = AsyncMock()

            with pytest.raises(ServiceUnavailableError) as exc_info:
                await service.issue(
                    mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
                )

            assert exc_info.value.status_code == 503
            assert isinstance(exc_info.value.__cause__, RedisConnectionError)
            mock_repo.create_token.assert_not_called()
            mock_adapter.send_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_fails_closed_when_ttl_lookup_errors(
        self, service, mock_db, mock_redis, sample_subject, eit_user
    ):
        mock_redis.get.return_value = "3"
        mock_redis.ttl.side_effect = RedisTimeoutError("Timeout reading from socket")

        with pytest.raises(ServiceUnavailableError):
            await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

    @pytest.mark.asyncio
    async def test_issue_rate_limit_exceeded(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        mock_redis.get.return_value = "3"
        mock_redis.ttl.return_value = 1200

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        assert exc_info.value.retry_after_seconds == 1200
        assert exc_info.value.status_code == 429
        mock_adapter.send_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_counts_requests_in_redis(
        self, service, mock_db, mock_redis, sample_subject, eit_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        key = f"approval_issue:reference:{sample_subject.id}"
        pipe = mock_redis.pipeline.return_value
        pipe.incr.assert_called_once_with(key)
        pipe.expire.assert_called_once_with(key, 3600)

    @pytest.mark.asyncio
    async def test_issue_email_failure_keeps_token(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        """A failed send is reported but the stored token is not rolled back."""
        mock_adapter.send_request.return_value = False

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        assert issued.email_sent is False
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_email_exception_is_logged_not_raised(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        mock_adapter.send_request.side_effect = RuntimeError("provider down")

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        assert issued.email_sent is False

    @pytest.mark.asyncio
    async def test_issue_storage_failure_sends_nothing(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock(side_effect=RuntimeError("db down"))

            with pytest.raises(RuntimeError):
                await service.issue(
                    mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
                )

        mock_db.commit.assert_not_called()
        mock_adapter.send_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_storage_failure_does_not_use_quota(
        self, service, mock_db, mock_redis, sample_subject, eit_user
    ):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock(side_effect=RuntimeError("db down"))

            with pytest.raises(RuntimeError):
                await service.issue(
                    mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
                )

        pipe = mock_redis.pipeline.return_value
        pipe.incr.assert_not_called()
        pipe.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_issue_counter_failure_after_commit_still_sends(
        self, service, mock_db, mock_redis, mock_adapter, sample_subject, eit_user
    ):
        """Once the token is stored, a failed counter update does not undo the issue."""
        mock_redis.pipeline.return_value.execute.side_effect = RedisConnectionError("gone")

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock()

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

        assert issued.email_sent is True
        mock_db.commit.assert_awaited_once()
        mock_adapter.send_request.assert_awaited_once()


class TestResolve:
    """Tests for ApprovalTokenService.resolve."""

    @pytest.mark.asyncio
    async def test_resolve_success(
        self, service, mock_db, mock_adapter, sample_subject, clock, make_token_row
    ):
        row = make_token_row(sample_subject.id, clock.now + timedelta(hours=1))

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            view = await service.resolve(mock_db, "plain-token")

            mock_repo.get_by_token_hash.assert_awaited_once_with(mock_db, hash_token("plain-token"))

        assert view == {"expires_at": row.expires_at}
        mock_db.commit.assert_not_called()
        mock_adapter.mark_subject_terminal.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolve_unknown_token(self, service, mock_db):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=None)

            with pytest.raises(TokenNotFoundError) as exc_info:
                await service.resolve(mock_db, "unknown")

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "TOKEN_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_resolve_token_of_other_kind_is_not_found(
        self, service, mock_db, sample_subject, clock, make_token_row
    ):
        row = make_token_row(
            sample_subject.id, clock.now + timedelta(hours=1), kind=SubjectKind.VALIDATOR
        )

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenNotFoundError):
                await service.resolve(mock_db, "validator-token")

    @pytest.mark.asyncio
    async def test_resolve_consumed_token(
        self, service, mock_db, sample_subject, clock, make_token_row
    ):
        row = make_token_row(
            sample_subject.id,
            clock.now + timedelta(hours=1),
            consumed_at=clock.now - timedelta(minutes=5),
        )

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenAlreadyConsumedError) as exc_info:
                await service.resolve(mock_db, "used")

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Already approved."

    @pytest.mark.asyncio
    async def test_resolve_expires_at_the_expiry_instant(
        self, service, mock_db, sample_subject, clock, make_token_row
    ):
        row = make_token_row(sample_subject.id, clock.now)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenExpiredError) as exc_info:
                await service.resolve(mock_db, "expired")

        assert exc_info.value.status_code == 410

    @pytest.mark.asyncio
    async def test_resolve_treats_naive_expiry_as_utc(
        self, service, mock_db, sample_subject, clock, make_token_row
    ):
        row = make_token_row(sample_subject.id, (clock.now - timedelta(seconds=1)).replace(tzinfo=None))

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenExpiredError):
                await service.resolve(mock_db, "expired")

    @pytest.mark.asyncio
    async def test_resolve_deleted_subject(
        self, service, mock_db, mock_adapter, sample_subject, clock, make_token_row
    ):
        mock_adapter.fetch_subject.return_value = None
        row = make_token_row(sample_subject.id, clock.now + timedelta(hours=1))

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(SubjectNotFoundError):
                await service.resolve(mock_db, "orphan")

    @pytest.mark.asyncio
    async def test_resolve_finalized_subject_reads_as_already_approved(
        self, service, mock_db, mock_adapter, sample_subject, clock, make_token_row
    ):
        mock_adapter.is_terminal.return_value = True
        row = make_token_row(sample_subject.id, clock.now + timedelta(hours=1))

        with patch(REPOSITORY) as mock_repo:
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenAlreadyConsumedError):
                await service.resolve(mock_db, "finalized")


class TestIssueThenResolve:
    """Issue, resolve, advance the clock past expiry, resolve again."""

    @pytest.mark.asyncio
    async def test_link_expires_after_configured_duration(
        self, service, mock_db, mock_redis, sample_subject, eit_user, clock
    ):
        rows = {}

        async def create_token(db, token_hash, subject_kind, subject_id, recipient_email, expires_at):
            row = MagicMock()
            row.subject_kind = subject_kind
            row.subject_id = subject_id
            row.expires_at = expires_at
            row.consumed_at = None
            rows[token_hash] = row
            return row

        async def get_by_token_hash(db, token_hash):
            return rows.get(token_hash)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)
            mock_repo.create_token = AsyncMock(side_effect=create_token)
            mock_repo.get_by_token_hash = AsyncMock(side_effect=get_by_token_hash)

            issued = await service.issue(
                mock_db, sample_subject.id, "referee@example.com", eit_user, mock_redis
            )

            view = await service.resolve(mock_db, issued.token)
            assert view["expires_at"] == issued.expires_at

            clock.advance(hours=167, minutes=59)
            await service.resolve(mock_db, issued.token)

            clock.advance(minutes=1)
            with pytest.raises(TokenExpiredError):
                await service.resolve(mock_db, issued.token)


class TestCommit:
    """Tests for ApprovalTokenService.commit."""

    @pytest.mark.asyncio
    async def test_commit_success(self, service, mock_db, mock_adapter, sample_subject, clock):
        fields = MagicMock()
        claimed = ClaimedToken(id=uuid4(), subject_kind=SubjectKind.REFERENCE, subject_id=sample_subject.id)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=claimed)

            result = await service.commit(mock_db, "plain-token", fields)

            mock_repo.claim_token.assert_awaited_once_with(
                mock_db,
                hash_token("plain-token"),
                SubjectKind.REFERENCE,
                clock.now,
                ConsumptionMode.DELETE,
            )

        assert result == CommitResult(subject_id=sample_subject.id, status=SubjectStatus.VALIDATED)
        mock_adapter.write_approval.assert_awaited_once_with(mock_db, sample_subject.id, fields)
        mock_adapter.mark_subject_terminal.assert_awaited_once_with(
            mock_db, sample_subject.id, SubjectStatus.VALIDATED, clock.now
        )
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_uses_flag_mode_for_flag_subjects(
        self, service, mock_db, mock_adapter, sample_subject
    ):
        mock_adapter.consumption = ConsumptionMode.FLAG
        claimed = ClaimedToken(id=uuid4(), subject_kind=SubjectKind.REFERENCE, subject_id=sample_subject.id)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=claimed)

            await service.commit(mock_db, "plain-token", MagicMock())

            assert mock_repo.claim_token.call_args.args[4] == ConsumptionMode.FLAG

    @pytest.mark.asyncio
    async def test_commit_unknown_token(self, service, mock_db, mock_adapter):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=None)
            mock_repo.get_by_token_hash = AsyncMock(return_value=None)

            with pytest.raises(TokenNotFoundError):
                await service.commit(mock_db, "unknown", MagicMock())

        mock_adapter.write_approval.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_consumed_token(
        self, service, mock_db, sample_subject, clock, make_token_row
    ):
        row = make_token_row(
            sample_subject.id, clock.now + timedelta(hours=1), consumed_at=clock.now
        )

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=None)
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenAlreadyConsumedError):
                await service.commit(mock_db, "used", MagicMock())

    @pytest.mark.asyncio
    async def test_commit_expired_token(
        self, service, mock_db, mock_adapter, sample_subject, clock, make_token_row
    ):
        row = make_token_row(sample_subject.id, clock.now - timedelta(seconds=1))

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=None)
            mock_repo.get_by_token_hash = AsyncMock(return_value=row)

            with pytest.raises(TokenExpiredError):
                await service.commit(mock_db, "expired", MagicMock())

        mock_adapter.write_approval.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_refuses_finalized_subject_and_rolls_back(
        self, service, mock_db, mock_adapter, sample_subject
    ):
        mock_adapter.is_terminal.return_value = True
        mock_adapter.get_status.return_value = SubjectStatus.REJECTED
        claimed = ClaimedToken(id=uuid4(), subject_kind=SubjectKind.REFERENCE, subject_id=sample_subject.id)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=claimed)

            with pytest.raises(SubjectFinalizedError):
                await service.commit(mock_db, "plain-token", MagicMock())

        mock_adapter.write_approval.assert_not_called()
        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_subject_write_failure_rolls_back_claim(
        self, service, mock_db, mock_adapter, sample_subject
    ):
        """The claim and the subject write succeed or fail together."""
        mock_adapter.write_approval.side_effect = RuntimeError("constraint violated")
        claimed = ClaimedToken(id=uuid4(), subject_kind=SubjectKind.REFERENCE, subject_id=sample_subject.id)

        with patch(REPOSITORY) as mock_repo:
            mock_repo.claim_token = AsyncMock(return_value=claimed)

            with pytest.raises(RuntimeError):
                await service.commit(mock_db, "plain-token", MagicMock())

        mock_adapter.mark_subject_terminal.assert_not_called()
        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_commits_only_one_succeeds(
        self, service, mock_db, sample_subject
    ):
        claimed = ClaimedToken(id=uuid4(), subject_kind=SubjectKind.REFERENCE, subject_id=sample_subject.id)

        with patch(REPOSITORY) as mock_repo:
            # The conditional delete returns the row to the first claimant only
            mock_repo.claim_token = AsyncMock(side_effect=[claimed, None])
            mock_repo.get_by_token_hash = AsyncMock(return_value=None)

            results = await asyncio.gather(
                service.commit(mock_db, "plain-token", MagicMock()),
                service.commit(mock_db, "plain-token", MagicMock()),
                return_exceptions=True,
            )

        successes = [r for r in results if isinstance(r, CommitResult)]
        failures = [r for r in results if isinstance(r, TokenNotFoundError)]
        assert len(successes) == 1
        assert len(failures) == 1


class TestRevokeAndOverride:
    """Tests for revoke and override_status."""

    @pytest.mark.asyncio
    async def test_revoke_deletes_outstanding_tokens(self, service, mock_db, sample_subject):
        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=2)

            revoked = await service.revoke(mock_db, sample_subject.id)

        assert revoked == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_override_leaves_terminal_state(
        self, service, mock_db, mock_adapter, sample_subject, admin_user, clock
    ):
        mock_adapter.get_status.return_value = SubjectStatus.VALIDATED

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=0)

            previous, revoked = await service.override_status(
                mock_db, sample_subject.id, SubjectStatus.PENDING, admin=admin_user, reason="typo"
            )

        assert previous == SubjectStatus.VALIDATED
        assert revoked == 0
        mock_adapter.set_status.assert_awaited_once_with(
            mock_db, sample_subject.id, SubjectStatus.PENDING, clock.now
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_override_unknown_subject(self, service, mock_db, mock_adapter, admin_user):
        mock_adapter.fetch_subject.return_value = None

        with pytest.raises(SubjectNotFoundError):
            await service.override_status(
                mock_db, uuid4(), SubjectStatus.PENDING, admin=admin_user
            )

    @pytest.mark.asyncio
    async def test_override_rejected_by_adapter_rolls_back(
        self, service, mock_db, mock_adapter, sample_subject, admin_user
    ):
        mock_adapter.set_status.side_effect = InvalidApprovalRequestError("not allowed")

        with patch(REPOSITORY) as mock_repo:
            mock_repo.delete_outstanding_tokens = AsyncMock(return_value=1)

            with pytest.raises(InvalidApprovalRequestError):
                await service.override_status(
                    mock_db, sample_subject.id, SubjectStatus.REJECTED, admin=admin_user
                )

        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_awaited_once()
