"""
Fixtures for approval token tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from accreda.core.auth import CurrentUser
from accreda.modules.approvals.models import (
    ApprovalToken,
    ConsumptionMode,
    SubjectKind,
    SubjectStatus,
)

EIT_ID = UUID("11111111-1111-1111-1111-111111111111")


class FrozenClock:
    """A clock tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.ttl = AsyncMock(return_value=3600)
    redis.pipeline = MagicMock()
    pipe = AsyncMock()
    pipe.incr = MagicMock()
    pipe.expire = MagicMock()
    pipe.execute = AsyncMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.fixture
def eit_id():
    return EIT_ID


@pytest.fixture
def eit_user():
    return CurrentUser(id=EIT_ID, email="eit@example.com", role="eit")


@pytest.fixture
def other_user():
    return CurrentUser(id=uuid4(), email="someone@example.com", role="eit")


@pytest.fixture
def admin_user():
    return CurrentUser(id=uuid4(), email="admin@example.com", role="admin")


@pytest.fixture
def sample_subject():
    subject = MagicMock()
    subject.id = uuid4()
    return subject


@pytest.fixture
def mock_adapter(sample_subject):
    """An adapter for a delete-mode subject owned by EIT_ID."""
    adapter = MagicMock()
    adapter.kind = SubjectKind.REFERENCE
    adapter.consumption = ConsumptionMode.DELETE
    adapter.fetch_subject = AsyncMock(return_value=sample_subject)
    adapter.write_approval = AsyncMock()
    adapter.set_status = AsyncMock()
    adapter.mark_subject_pending = AsyncMock()
    adapter.mark_subject_terminal = AsyncMock()
    adapter.send_request = AsyncMock(return_value=True)
    adapter.owner_id = MagicMock(return_value=EIT_ID)
    adapter.is_terminal = MagicMock(return_value=False)
    adapter.get_status = MagicMock(return_value=SubjectStatus.PENDING)
    adapter.decision_for = MagicMock(return_value=SubjectStatus.VALIDATED)
    adapter.rate_limit_scope = MagicMock(side_effect=lambda subject_id, subject: str(subject_id))
    adapter.link_for = MagicMock(side_effect=lambda token: f"https://forms.test/reference/{token}")
    adapter.build_view = MagicMock(side_effect=lambda subject, expires_at: {"expires_at": expires_at})
    return adapter


@pytest.fixture
def make_token_row():
    """Factory for token rows as returned by the repository."""
    return _make_token_row


def _make_token_row(
    subject_id: UUID,
    expires_at: datetime,
    kind: SubjectKind = SubjectKind.REFERENCE,
    consumed_at: datetime | None = None,
):
    token = MagicMock(spec=ApprovalToken)
    token.id = uuid4()
    token.subject_kind = kind
    token.subject_id = subject_id
    token.recipient_email = "referee@example.com"
    token.expires_at = expires_at
    token.consumed_at = consumed_at
    return token
