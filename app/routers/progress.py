"""Progress routes: per-module progress for registered users. Guests get non-persisting answers."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import CurrentIdentity
from app.db.session import get_db
from app.models.progress import Progress
from app.schemas.progress import (
    ProgressCompleteSchema,
    ProgressOutSchema,
    ProgressSummarySchema,
    ProgressUpdateSchema,
    ProgressWriteOutSchema,
)
from app.services.progress import (
    complete_progress,
    get_or_create_progress,
    list_progress,
    progress_summary,
    upsert_progress,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])

GUEST_MESSAGE = "Progress is not saved for guest users"
GUEST_TIP = "Create an account to save your progress"


def _to_schema(progress: Progress) -> ProgressOutSchema:
    module = progress.module
    return ProgressOutSchema(
        id=progress.id,
        module_id=progress.module_id,
        completion_percentage=progress.completion_percentage,
        time_spent=progress.time_spent,
        score=progress.score,
        is_completed=progress.is_completed,
        last_accessed=progress.last_accessed,
        module_title=module.title if module else None,
        content_type=module.content_type if module else None,
        difficulty_level=module.difficulty_level if module else None,
    )


def _guest_ack() -> ProgressWriteOutSchema:
    return ProgressWriteOutSchema(message=GUEST_MESSAGE, persisted=False, tip=GUEST_TIP)


@router.get("", response_model=list[ProgressOutSchema])
async def get_all_progress(
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return [_to_schema(p) for p in await list_progress(db, identity)]


@router.get("/stats/summary", response_model=ProgressSummarySchema)
async def get_progress_summary(
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return ProgressSummarySchema(**await progress_summary(db, identity))


@router.get("/{module_id}", response_model=ProgressOutSchema)
async def get_module_progress(
    module_id: int,
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Progress for one module. Creates an empty row on first access for registered users."""
    progress = await get_or_create_progress(db, identity, module_id)
    if progress is None:
        return ProgressOutSchema(
            module_id=module_id,
            completion_percentage=0,
            time_spent=0,
            score=0,
            is_completed=False,
            persisted=False,
        )
    return _to_schema(progress)


@router.put("/{module_id}", response_model=ProgressWriteOutSchema)
async def update_module_progress(
    module_id: int,
    body: ProgressUpdateSchema,
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    progress = await upsert_progress(
        db,
        identity,
        module_id,
        completion_percentage=body.completion_percentage,
        time_spent=body.time_spent,
        score=body.score,
    )
    if progress is None:
        return _guest_ack()
    return ProgressWriteOutSchema(message="Progress updated", persisted=True, progress=_to_schema(progress))


@router.post("/{module_id}/complete", response_model=ProgressWriteOutSchema)
async def complete_module(
    module_id: int,
    body: ProgressCompleteSchema,
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    progress = await complete_progress(db, identity, module_id, score=body.score)
    if progress is None:
        return _guest_ack()
    return ProgressWriteOutSchema(message="Module completed", persisted=True, progress=_to_schema(progress))
