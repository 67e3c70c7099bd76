"""Progress tracking: one row per (user, module), derived completion flag, guest no-ops."""
import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.security import KIND_REGISTERED, Identity
from app.db.base import Base
from app.models import LearningModule, Progress, User
from app.services.progress import (
    complete_progress,
    get_or_create_progress,
    list_progress,
    progress_summary,
    upsert_progress,
)


async def _count_rows(session_factory, **filters) -> int:
    # fresh session so nothing is served from the identity map
    async with session_factory() as session:
        stmt = select(func.count(Progress.id))
        for name, value in filters.items():
            stmt = stmt.where(getattr(Progress, name) == value)
        return (await session.execute(stmt)).scalar_one()


@pytest.mark.asyncio
@pytest.mark.parametrize("pct,completed", [(0, False), (50, False), (99, False), (100, True)])
async def test_completed_flag_follows_percentage(db, user_identity, module, pct, completed):
    progress = await upsert_progress(db, user_identity, module.id, completion_percentage=pct)
    assert progress.completion_percentage == pct
    assert progress.is_completed is completed


@pytest.mark.asyncio
@pytest.mark.parametrize("pct", [-1, 101, 1000])
async def test_out_of_range_percentage_rejected(db, session_factory, user_identity, module, pct):
    with pytest.raises(ValidationError) as exc:
        await upsert_progress(db, user_identity, module.id, completion_percentage=pct)
    assert exc.value.field == "completion_percentage"
    assert await _count_rows(session_factory) == 0


@pytest.mark.asyncio
async def test_out_of_range_leaves_existing_row_unchanged(db, user_identity, module):
    await upsert_progress(db, user_identity, module.id, completion_percentage=40, time_spent=30, score=5)
    with pytest.raises(ValidationError):
        await upsert_progress(db, user_identity, module.id, completion_percentage=150)
    with pytest.raises(ValidationError):
        await upsert_progress(db, user_identity, module.id, completion_percentage=50, time_spent=-1)
    with pytest.raises(ValidationError):
        await upsert_progress(db, user_identity, module.id, completion_percentage=50, score=-3)

    progress = await get_or_create_progress(db, user_identity, module.id)
    assert (progress.completion_percentage, progress.time_spent, progress.score) == (40, 30, 5)


@pytest.mark.asyncio
async def test_repeated_upserts_keep_a_single_row(db, session_factory, user_identity, module):
    for pct in (10, 60, 30, 100, 100, 0):
        await upsert_progress(db, user_identity, module.id, completion_percentage=pct, time_spent=pct)

    assert await _count_rows(session_factory, user_id=user_identity.id, module_id=module.id) == 1
    progress = await get_or_create_progress(db, user_identity, module.id)
    assert progress.completion_percentage == 0
    assert progress.is_completed is False


@pytest.mark.asyncio
async def test_writers_in_separate_sessions_share_one_row(session_factory, user_identity, module):
    async with session_factory() as first, session_factory() as second:
        a = await get_or_create_progress(first, user_identity, module.id)
        b = await upsert_progress(second, user_identity, module.id, completion_percentage=70)
        c = await upsert_progress(first, user_identity, module.id, completion_percentage=80)

    assert a.id == b.id == c.id
    assert c.completion_percentage == 80
    assert await _count_rows(session_factory) == 1


@pytest.mark.asyncio
async def test_simultaneous_first_writes_share_one_row(tmp_path):
    # file-backed database so every session gets its own connection
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", connect_args={"timeout": 30})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with factory() as setup:
        owner = User(name="Grace", email="grace@example.com", hashed_password="not-a-real-hash")
        target = LearningModule(title="Waves 101", content_type="theory", order_index=1)
        setup.add_all([owner, target])
        await setup.commit()
        identity = Identity(id=owner.id, kind=KIND_REGISTERED)
        module_id = target.id

    async def writer(i: int) -> Progress:
        async with factory() as session:
            if i % 2:
                return await get_or_create_progress(session, identity, module_id)
            return await upsert_progress(session, identity, module_id, completion_percentage=i, time_spent=i)

    try:
        rows = await asyncio.gather(*(writer(i) for i in range(40)))
        assert len({row.id for row in rows}) == 1
        assert await _count_rows(factory) == 1
    finally:
        await engine.dispose()


def test_unique_constraint_on_user_and_module():
    names = {c.name for c in Progress.__table__.constraints}
    assert "uq_progress_user_module" in names


@pytest.mark.asyncio
async def test_get_creates_empty_row_once(db, session_factory, user_identity, module):
    first = await get_or_create_progress(db, user_identity, module.id)
    assert first.id is not None
    assert (first.completion_percentage, first.time_spent, first.score, first.is_completed) == (0, 0, 0, False)
    assert first.module.title == "Waves 101"

    second = await get_or_create_progress(db, user_identity, module.id)
    assert second.id == first.id
    assert await _count_rows(session_factory) == 1


@pytest.mark.asyncio
async def test_unknown_module(db, session_factory, user_identity):
    with pytest.raises(NotFoundError):
        await get_or_create_progress(db, user_identity, 999)
    with pytest.raises(NotFoundError):
        await upsert_progress(db, user_identity, 999, completion_percentage=10)
    with pytest.raises(NotFoundError):
        await complete_progress(db, user_identity, 999)
    assert await _count_rows(session_factory) == 0


@pytest.mark.asyncio
async def test_guests_never_persist(db, session_factory, guest_identity, module):
    assert await get_or_create_progress(db, guest_identity, module.id) is None
    assert await upsert_progress(db, guest_identity, module.id, completion_percentage=100) is None
    assert await complete_progress(db, guest_identity, module.id, score=10) is None
    # guest writes are absorbed even when the values are bad
    assert await upsert_progress(db, guest_identity, module.id, completion_percentage=500) is None
    assert await list_progress(db, guest_identity) == []
    assert await _count_rows(session_factory) == 0


@pytest.mark.asyncio
async def test_complete_keeps_score_and_time_when_not_given(db, user_identity, module):
    await upsert_progress(db, user_identity, module.id, completion_percentage=40, time_spent=120, score=8)

    progress = await complete_progress(db, user_identity, module.id)
    assert progress.completion_percentage == 100
    assert progress.is_completed is True
    assert progress.score == 8
    assert progress.time_spent == 120

    progress = await complete_progress(db, user_identity, module.id, score=15)
    assert progress.score == 15


@pytest.mark.asyncio
async def test_complete_without_existing_row(db, user_identity, module):
    progress = await complete_progress(db, user_identity, module.id, score=9)
    assert (progress.completion_percentage, progress.is_completed, progress.score, progress.time_spent) == (
        100,
        True,
        9,
        0,
    )


@pytest.mark.asyncio
async def test_complete_rejects_negative_score(db, user_identity, module):
    with pytest.raises(ValidationError):
        await complete_progress(db, user_identity, module.id, score=-1)


@pytest.mark.asyncio
async def test_percentage_may_go_down_by_default(db, user_identity, module):
    await upsert_progress(db, user_identity, module.id, completion_percentage=100)
    progress = await upsert_progress(db, user_identity, module.id, completion_percentage=20)
    assert progress.completion_percentage == 20
    assert progress.is_completed is False


@pytest.mark.asyncio
async def test_reject_policy_refuses_regressions(db, user_identity, module, monkeypatch):
    monkeypatch.setattr(get_settings(), "progress_regression_policy", "reject")
    # rollback expires every loaded instance, the module fixture included
    module_id = module.id

    await upsert_progress(db, user_identity, module_id, completion_percentage=60, score=4)
    with pytest.raises(ValidationError):
        await upsert_progress(db, user_identity, module_id, completion_percentage=30, score=9)
    await db.rollback()

    stored = await get_or_create_progress(db, user_identity, module_id)
    assert (stored.completion_percentage, stored.score) == (60, 4)

    progress = await upsert_progress(db, user_identity, module_id, completion_percentage=60, score=5)
    assert progress.completion_percentage == 60
    assert progress.score == 5

    progress = await upsert_progress(db, user_identity, module_id, completion_percentage=90)
    assert progress.completion_percentage == 90


@pytest.mark.asyncio
async def test_last_accessed_is_stamped_on_every_write(db, user_identity, module):
    first = await upsert_progress(db, user_identity, module.id, completion_percentage=50)
    stamp = first.last_accessed
    second = await upsert_progress(db, user_identity, module.id, completion_percentage=10)
    assert second.last_accessed >= stamp


@pytest.mark.asyncio
async def test_list_and_summary(db, user_identity, module):
    other = LearningModule(title="Equations", content_type="equations", order_index=0)
    inactive = LearningModule(title="Old", content_type="theory", order_index=5, is_active=False)
    db.add_all([other, inactive])
    await db.commit()

    await upsert_progress(db, user_identity, module.id, completion_percentage=50, time_spent=100, score=3)
    await complete_progress(db, user_identity, other.id, score=10)

    rows = await list_progress(db, user_identity)
    assert [p.module.title for p in rows] == ["Equations", "Waves 101"]

    summary = await progress_summary(db, user_identity)
    assert summary["total_modules_started"] == 2
    assert summary["completed_modules"] == 1
    assert summary["average_completion"] == 75.0
    assert summary["total_time_spent"] == 100
    assert summary["total_score"] == 13
    assert summary["best_score"] == 10
    assert summary["total_available_modules"] == 2
    assert summary["completion_rate"] == 50


@pytest.mark.asyncio
async def test_summary_for_guest_is_empty(db, guest_identity):
    summary = await progress_summary(db, guest_identity)
    assert summary["total_modules_started"] == 0
    assert summary["last_access"] is None
