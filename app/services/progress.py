"""Per-user module progress: one row per (user, module), written with atomic upserts.

Guests never persist progress: every entry point returns ``None`` for a guest
identity without touching the store.

Writes go through a single ``INSERT ... ON CONFLICT (user_id, module_id)``
statement (``ON DUPLICATE KEY UPDATE`` on MySQL) against the
``uq_progress_user_module`` constraint, so two concurrent first writes for the
same pair end up updating one row instead of inserting two.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import case, func, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.errors import InternalError, NotFoundError, NotFoundResource, ValidationError, ValidationReason
from app.core.security import Identity
from app.models.module import LearningModule
from app.models.progress import Progress

logger = logging.getLogger(__name__)

CONFLICT_KEYS = ["user_id", "module_id"]
COMPLETE_PERCENTAGE = 100

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
    "mysql": mysql.insert,
    "mariadb": mysql.insert,
}


def _dialect_name(db: AsyncSession) -> str:
    name = db.get_bind().dialect.name
    if name not in _DIALECT_INSERTS:
        raise InternalError(f"Progress upserts are not supported on {name}")
    return name


def _require_non_negative(value: int, field: str) -> None:
    if value < 0:
        raise ValidationError(ValidationReason.OUT_OF_RANGE, field, f"{field} cannot be negative")


def validate_progress_values(completion_percentage: int, time_spent: int, score: int) -> None:
    if completion_percentage < 0 or completion_percentage > COMPLETE_PERCENTAGE:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "completion_percentage",
            "completion_percentage must be between 0 and 100",
        )
    _require_non_negative(time_spent, "time_spent")
    _require_non_negative(score, "score")


async def _ensure_module(db: AsyncSession, module_id: int) -> None:
    result = await db.execute(select(LearningModule.id).where(LearningModule.id == module_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError(NotFoundResource.MODULE, "Module not found")


async def _load(db: AsyncSession, user_id: int, module_id: int) -> Progress | None:
    result = await db.execute(
        select(Progress)
        .where(Progress.user_id == user_id, Progress.module_id == module_id)
        .options(selectinload(Progress.module))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _write(
    db: AsyncSession,
    user_id: int,
    module_id: int,
    values: dict,
    update_columns: list[str],
    guard_regression: bool = False,
) -> bool:
    """Insert-or-update the (user, module) row in one statement.

    Returns False when ``guard_regression`` is set and the stored percentage is
    higher than the new one; the row is left untouched in that case.
    """
    dialect = _dialect_name(db)
    stmt = _DIALECT_INSERTS[dialect](Progress).values(user_id=user_id, module_id=module_id, **values)

    if dialect in ("mysql", "mariadb"):
        if guard_regression:
            # completion_percentage is assigned first, so every later guard sees the same outcome
            keep = Progress.completion_percentage <= stmt.inserted.completion_percentage
            assignments = [
                (name, func.if_(keep, stmt.inserted[name], Progress.__table__.c[name]))
                for name in update_columns
            ]
        else:
            assignments = [(name, stmt.inserted[name]) for name in update_columns]
        await db.execute(stmt.on_duplicate_key_update(assignments))
        if guard_regression:
            row = await _load(db, user_id, module_id)
            return row.completion_percentage <= values["completion_percentage"]
        return True

    where = None
    if guard_regression:
        where = Progress.completion_percentage <= stmt.excluded.completion_percentage
    stmt = stmt.on_conflict_do_update(
        index_elements=CONFLICT_KEYS,
        set_={name: stmt.excluded[name] for name in update_columns},
        where=where,
    ).returning(Progress.id)
    result = await db.execute(stmt)
    return result.first() is not None


async def _insert_if_absent(db: AsyncSession, user_id: int, module_id: int) -> None:
    dialect = _dialect_name(db)
    stmt = _DIALECT_INSERTS[dialect](Progress).values(
        user_id=user_id,
        module_id=module_id,
        completion_percentage=0,
        time_spent=0,
        score=0,
        is_completed=False,
        last_accessed=datetime.now(timezone.utc),
    )
    if dialect in ("mysql", "mariadb"):
        stmt = stmt.prefix_with("IGNORE")
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=CONFLICT_KEYS)
    await db.execute(stmt)


async def get_or_create_progress(db: AsyncSession, identity: Identity, module_id: int) -> Progress | None:
    """Return the user's progress for a module, creating an empty row on first access.

    This is not a pure read: the first call for a (user, module) pair inserts
    a row with 0%, 0s and score 0. Guests get ``None`` and nothing is stored.
    """
    if identity.is_guest:
        return None

    await _ensure_module(db, module_id)
    await _insert_if_absent(db, identity.id, module_id)
    await db.commit()
    return await _load(db, identity.id, module_id)


async def upsert_progress(
    db: AsyncSession,
    identity: Identity,
    module_id: int,
    completion_percentage: int = 0,
    time_spent: int = 0,
    score: int = 0,
) -> Progress | None:
    """Write the submitted values for (user, module); ``None`` for guests."""
    if identity.is_guest:
        return None

    validate_progress_values(completion_percentage, time_spent, score)
    await _ensure_module(db, module_id)

    values = {
        "completion_percentage": completion_percentage,
        "time_spent": time_spent,
        "score": score,
        "is_completed": completion_percentage >= COMPLETE_PERCENTAGE,
        "last_accessed": datetime.now(timezone.utc),
    }
    guard = get_settings().progress_regression_policy == "reject"
    written = await _write(db, identity.id, module_id, values, list(values), guard_regression=guard)
    if not written:
        logger.info("Rejected progress regression for user %s module %s", identity.id, module_id)
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "completion_percentage",
            "completion_percentage cannot be lower than the stored value",
        )

    await db.commit()
    return await _load(db, identity.id, module_id)


async def complete_progress(
    db: AsyncSession,
    identity: Identity,
    module_id: int,
    score: int | None = None,
) -> Progress | None:
    """Mark a module as 100% complete; the stored score is kept when none is given."""
    if identity.is_guest:
        return None

    if score is not None:
        _require_non_negative(score, "score")
    await _ensure_module(db, module_id)

    values = {
        "completion_percentage": COMPLETE_PERCENTAGE,
        "is_completed": True,
        "time_spent": 0,
        "score": score or 0,
        "last_accessed": datetime.now(timezone.utc),
    }
    update_columns = ["completion_percentage", "is_completed", "last_accessed"]
    if score is not None:
        update_columns.append("score")
    await _write(db, identity.id, module_id, values, update_columns)

    await db.commit()
    return await _load(db, identity.id, module_id)


async def list_progress(db: AsyncSession, identity: Identity) -> list[Progress]:
    if identity.is_guest:
        return []

    result = await db.execute(
        select(Progress)
        .join(LearningModule, Progress.module_id == LearningModule.id)
        .where(Progress.user_id == identity.id)
        .options(selectinload(Progress.module))
        .order_by(LearningModule.order_index.asc(), Progress.id.asc())
    )
    return list(result.scalars().all())


async def progress_summary(db: AsyncSession, identity: Identity) -> dict:
    """Aggregate the user's progress rows against the number of active modules."""
    empty = {
        "total_modules_started": 0,
        "completed_modules": 0,
        "average_completion": 0.0,
        "total_time_spent": 0,
        "total_score": 0,
        "best_score": 0,
        "first_access": None,
        "last_access": None,
        "total_available_modules": 0,
        "completion_rate": 0,
    }
    if identity.is_guest:
        return empty

    result = await db.execute(
        select(
            func.count(Progress.id),
            func.sum(case((Progress.is_completed.is_(True), 1), else_=0)),
            func.avg(Progress.completion_percentage),
            func.sum(Progress.time_spent),
            func.sum(Progress.score),
            func.max(Progress.score),
            func.min(Progress.last_accessed),
            func.max(Progress.last_accessed),
        ).where(Progress.user_id == identity.id)
    )
    started, completed, avg_pct, total_time, total_score, best, first, last = result.one()

    available = (
        await db.execute(select(func.count(LearningModule.id)).where(LearningModule.is_active.is_(True)))
    ).scalar_one()

    completed = int(completed or 0)
    summary = dict(empty)
    summary.update(
        total_modules_started=started,
        completed_modules=completed,
        average_completion=round(float(avg_pct or 0), 2),
        total_time_spent=int(total_time or 0),
        total_score=int(total_score or 0),
        best_score=int(best or 0),
        first_access=first,
        last_access=last,
        total_available_modules=available,
        completion_rate=round(completed / available * 100) if available else 0,
    )
    return summary
