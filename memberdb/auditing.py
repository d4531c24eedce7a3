"""감사(Auditing) 모듈 — 생성/수정 일시 및 작업자 자동 기록.

Auditing module — Populates creation/modification metadata at flush time.

Layers:
    - CreatedDateMixin: 생성 일시만 (creation timestamp only)
    - BaseTimeEntity: 생성/수정 일시 (creation + modification timestamps)
    - BaseEntity: 일시 + 작업자 (timestamps + acting user identifiers)

생성일과 수정일은 대부분의 테이블에 필요하지만, 작업자는 테이블마다 다르다.
Timestamps are needed almost everywhere, actors only on some tables, so an entity
picks the layer it needs.

The acting user is explicit per unit of work: callers bind it to the session with
``bind_auditor`` and the flush hook reads it back from ``Session.info``.
Bulk UPDATE statements bypass the hook because they never touch in-memory objects.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, Session, mapped_column

# Session.info 키 — Key under which the current auditor is stored
AUDITOR_KEY: str = "auditor"


def utc_now() -> datetime:
    """현재 UTC 시각 — Current time in UTC."""
    return datetime.now(timezone.utc)


class CreatedDateMixin:
    """생성 일시 컬럼 믹스인.

    Creation timestamp, written once by the flush hook.
    """

    # 생성 일시 — Set on INSERT, never updated afterwards
    created_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BaseTimeEntity(CreatedDateMixin):
    """생성/수정 일시 믹스인 — Creation and last-modification timestamps."""

    # 수정 일시 — Refreshed on every flushed change
    last_modified_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BaseEntity(BaseTimeEntity):
    """일시 + 작업자 믹스인 — Timestamps plus creator/modifier identifiers."""

    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


class AuditingSession(Session):
    """감사 훅이 연결된 세션 클래스.

    Session class carrying the auditing ``before_flush`` hook.
    Used as ``sync_session_class`` for every AsyncSession the project creates.
    """


def bind_auditor(session: Session | AsyncSession, auditor: str | None) -> None:
    """작업 단위(세션)에 현재 작업자를 바인딩합니다.

    Bind the acting user to a unit of work.

    Args:
        session: 동기 또는 비동기 세션 (Sync or async session)
        auditor: 작업자 식별자, None이면 해제 (Actor identifier; None clears it)
    """
    if auditor is None:
        session.info.pop(AUDITOR_KEY, None)
    else:
        session.info[AUDITOR_KEY] = auditor


def current_auditor(session: Session | AsyncSession) -> str | None:
    """세션에 바인딩된 작업자 — Actor bound to the session, if any."""
    return session.info.get(AUDITOR_KEY)


def _mark_created(obj: CreatedDateMixin, now: datetime, auditor: str | None) -> None:
    if obj.created_date is None:
        obj.created_date = now
    if isinstance(obj, BaseTimeEntity):
        obj.last_modified_date = now
    if isinstance(obj, BaseEntity):
        if obj.created_by is None:
            obj.created_by = auditor
        obj.last_modified_by = auditor


def _mark_modified(obj: BaseTimeEntity, now: datetime, auditor: str | None) -> None:
    obj.last_modified_date = now
    if isinstance(obj, BaseEntity):
        obj.last_modified_by = auditor


@event.listens_for(AuditingSession, "before_flush")
def _audit_before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    """flush 직전 감사 필드를 채웁니다.

    Fill audit fields on new and modified objects right before they are flushed.
    ``created_*`` fields are never overwritten once set.
    """
    now: datetime = utc_now()
    auditor: str | None = session.info.get(AUDITOR_KEY)

    for obj in session.new:
        if isinstance(obj, CreatedDateMixin):
            _mark_created(obj, now, auditor)

    for obj in session.dirty:
        # 컬렉션 변경만 있는 경우는 수정으로 보지 않음 — Only real column changes count
        if isinstance(obj, BaseTimeEntity) and session.is_modified(obj, include_collections=False):
            _mark_modified(obj, now, auditor)
