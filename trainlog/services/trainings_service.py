from __future__ import annotations
import logging
from typing import Dict, List, Optional
from fastapi import HTTPException
from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session as DBSession, select


from ..models import (
    Training,
    TrainingExercise,
    TrainingSession,
    Exercise,
)
from ..schemas import (
    TrainingCreate,
    TrainingUpdate,
    TrainingRead,
    TrainingDetail,
    TrainingExerciseCreate,
    TrainingExerciseUpdate,
    TrainingExerciseRead,
    TrainingPickerItem,
    ExerciseSummary,
    ReorderRequest,
)
from .common import get_owned, normalize_whitespace, case_insensitive_equal, now_utc

logger = logging.getLogger(__name__)


def _exercise_counts(db: DBSession, training_ids: List[int]) -> Dict[int, int]:
    if not training_ids:
        return {}
    rows = db.exec(
        select(TrainingExercise.training_id, func.count(TrainingExercise.id))
        .where(TrainingExercise.training_id.in_(training_ids))
        .group_by(TrainingExercise.training_id)
    ).all()
    return {tid: count for tid, count in rows}


def _to_read(t: Training, exercise_count: int) -> TrainingRead:
    return TrainingRead(
        id=t.id,
        name=t.name,
        description=t.description,
        notes=t.notes,
        exercise_count=exercise_count,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


def _link_to_read(link: TrainingExercise, ex: Optional[Exercise]) -> TrainingExerciseRead:
    return TrainingExerciseRead(
        id=link.id,
        training_id=link.training_id,
        exercise_id=link.exercise_id,
        order_index=link.order_index,
        default_sets=link.default_sets,
        default_reps=link.default_reps,
        default_rest_seconds=link.default_rest_seconds,
        notes=link.notes,
        exercise=(
            ExerciseSummary(id=ex.id, name=ex.name, type=ex.type, muscle_group=ex.muscle_group)
            if ex else None
        ),
    )


def _name_taken(db: DBSession, user_id: int, name: str) -> bool:
    dup = db.exec(
        select(Training)
        .where(Training.user_id == user_id)
        .where(func.lower(Training.name) == name.lower())
    ).first()
    return dup is not None


def _touch(db: DBSession, t: Training) -> None:
    t.updated_at = now_utc()
    db.add(t)


def _commit_named(db: DBSession) -> None:
    # a concurrent insert can slip past _name_taken
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Training with that name already exists")


# ---------- Trainings ----------
def list_trainings(db: DBSession, user_id: int, q: Optional[str]) -> List[TrainingRead]:
    stmt = select(Training).where(Training.user_id == user_id)
    needle = normalize_whitespace(q)
    if needle:
        stmt = stmt.where(func.lower(Training.name).contains(needle.lower(), autoescape=True))
    stmt = stmt.order_by(Training.name.asc())
    rows = db.exec(stmt).all()
    counts = _exercise_counts(db, [t.id for t in rows])
    return [_to_read(t, counts.get(t.id, 0)) for t in rows]


def list_for_picker(db: DBSession, user_id: int) -> List[TrainingPickerItem]:
    rows = db.exec(
        select(Training)
        .where(Training.user_id == user_id)
        .order_by(Training.updated_at.desc(), Training.id.desc())
    ).all()
    counts = _exercise_counts(db, [t.id for t in rows])
    return [
        TrainingPickerItem(
            id=t.id,
            name=t.name,
            description=t.description,
            exercise_count=counts.get(t.id, 0),
            updated_at=t.updated_at,
        )
        for t in rows
    ]


def create_training(db: DBSession, user_id: int, payload: TrainingCreate) -> TrainingRead:
    name = normalize_whitespace(payload.name)
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    if _name_taken(db, user_id, name):
        raise HTTPException(status_code=409, detail="Training with that name already exists")
    t = Training(
        user_id=user_id,
        name=name,
        description=(payload.description or None),
        notes=(payload.notes or None),
    )
    db.add(t)
    _commit_named(db)
    db.refresh(t)
    return _to_read(t, 0)


def get_training(db: DBSession, user_id: int, training_id: int) -> TrainingDetail:
    t = get_owned(db, Training, training_id, user_id, "training")
    links = list_training_exercises(db, user_id, training_id)
    return TrainingDetail(**_to_read(t, len(links)).model_dump(), exercises=links)


def update_training(db: DBSession, user_id: int, training_id: int, payload: TrainingUpdate) -> TrainingRead:
    t = get_owned(db, Training, training_id, user_id, "training")
    data = payload.model_dump(exclude_unset=True)

    if "name" in data and data["name"] is not None:
        new_name = normalize_whitespace(data["name"]) or ""
        if not new_name:
            raise HTTPException(status_code=400, detail="name cannot be empty")
        if not case_insensitive_equal(new_name, t.name) and _name_taken(db, user_id, new_name):
            raise HTTPException(status_code=409, detail="Training with that name already exists")
        t.name = new_name
    if "description" in data:
        t.description = data["description"] or None
    if "notes" in data:
        t.notes = data["notes"] or None

    _touch(db, t)
    _commit_named(db)
    db.refresh(t)
    return _to_read(t, _exercise_counts(db, [t.id]).get(t.id, 0))


def delete_training(db: DBSession, user_id: int, training_id: int) -> None:
    t = get_owned(db, Training, training_id, user_id, "training")
    # performed sessions survive their template
    db.execute(
        update(TrainingSession)
        .where(TrainingSession.training_id == training_id)
        .values(training_id=None)
    )
    db.execute(delete(TrainingExercise).where(TrainingExercise.training_id == training_id))
    db.delete(t)
    db.commit()


# ---------- Training exercises ----------
def list_training_exercises(db: DBSession, user_id: int, training_id: int) -> List[TrainingExerciseRead]:
    get_owned(db, Training, training_id, user_id, "training")
    links = db.exec(
        select(TrainingExercise)
        .where(TrainingExercise.training_id == training_id)
        .order_by(TrainingExercise.order_index.asc(), TrainingExercise.id.asc())
    ).all()
    ex_ids = {link.exercise_id for link in links}
    ex_map = (
        {e.id: e for e in db.exec(select(Exercise).where(Exercise.id.in_(ex_ids))).all()}
        if ex_ids else {}
    )
    return [_link_to_read(link, ex_map.get(link.exercise_id)) for link in links]


def add_training_exercise(
    db: DBSession, user_id: int, training_id: int, payload: TrainingExerciseCreate
) -> TrainingExerciseRead:
    t = get_owned(db, Training, training_id, user_id, "training")
    ex = get_owned(db, Exercise, payload.exercise_id, user_id, "exercise")

    cur_max = db.exec(
        select(func.max(TrainingExercise.order_index)).where(TrainingExercise.training_id == training_id)
    ).first()
    next_order = 0 if cur_max is None else cur_max + 1

    link = TrainingExercise(
        training_id=training_id,
        exercise_id=ex.id,
        order_index=next_order,
        default_sets=payload.default_sets,
        default_reps=payload.default_reps,
        default_rest_seconds=(
            payload.default_rest_seconds if payload.default_rest_seconds is not None else 90
        ),
        notes=(payload.notes or None),
    )
    db.add(link)
    _touch(db, t)
    db.commit()
    db.refresh(link)
    return _link_to_read(link, ex)


def update_training_exercise(
    db: DBSession, user_id: int, link_id: int, payload: TrainingExerciseUpdate
) -> TrainingExerciseRead:
    link = get_owned(db, TrainingExercise, link_id, user_id, "training exercise")

    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        setattr(link, field, value)
    link.updated_at = now_utc()

    db.add(link)
    db.commit()
    db.refresh(link)
    return _link_to_read(link, db.get(Exercise, link.exercise_id))


def reorder_training_exercises(
    db: DBSession, user_id: int, training_id: int, payload: ReorderRequest
) -> List[TrainingExerciseRead]:
    t = get_owned(db, Training, training_id, user_id, "training")

    links = {
        link.id: link
        for link in db.exec(
            select(TrainingExercise).where(TrainingExercise.training_id == training_id)
        ).all()
    }

    new_order: Dict[int, int] = {}
    for entry in payload.exercises:
        if entry.id not in links:
            raise HTTPException(status_code=404, detail="training exercise not found")
        if entry.id in new_order:
            raise HTTPException(status_code=422, detail=f"training exercise {entry.id} listed more than once")
        new_order[entry.id] = entry.order_index

    # links left out of the request keep their current position
    resulting = [new_order.get(link_id, link.order_index) for link_id, link in links.items()]
    if len(resulting) != len(set(resulting)):
        raise HTTPException(status_code=422, detail="order_index values must be unique within a training")

    try:
        for link_id, order_index in new_order.items():
            link = links[link_id]
            link.order_index = order_index
            link.updated_at = now_utc()
            db.add(link)
        _touch(db, t)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("reorder failed for training id=%s", training_id)
        raise HTTPException(status_code=500, detail="Failed to reorder exercises. Please try again.")

    return list_training_exercises(db, user_id, training_id)


def delete_training_exercise(db: DBSession, user_id: int, link_id: int) -> None:
    link = get_owned(db, TrainingExercise, link_id, user_id, "training exercise")
    t = db.get(Training, link.training_id)
    db.delete(link)
    if t is not None:
        _touch(db, t)
    db.commit()
