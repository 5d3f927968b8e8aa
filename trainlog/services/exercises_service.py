"""Per-user exercise library.

Names are compared case-insensitively after whitespace is collapsed, so
"Bench  press" and "bench press" are the same exercise for one user.
"""
from __future__ import annotations
import logging
from typing import List, Optional
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DBSession, select


from ..models import Exercise, ExerciseType, SessionExercise, Training, TrainingExercise, TrainingSession
from ..schemas import ExerciseCreate, ExerciseUpdate, ExerciseUsage, NamedRef, SessionRef, UsageCounts
from .common import get_owned, normalize_whitespace, case_insensitive_equal, now_utc

logger = logging.getLogger(__name__)


def _clean_name(raw: Optional[str]) -> str:
    name = normalize_whitespace(raw)
    if not name:
        raise HTTPException(status_code=400, detail="Exercise name cannot be blank")
    return name


def _ensure_name_free(db: DBSession, user_id: int, name: str) -> None:
    clash = db.exec(
        select(Exercise.id)
        .where(Exercise.user_id == user_id)
        .where(func.lower(Exercise.name) == name.lower())
    ).first()
    if clash is not None:
        raise HTTPException(status_code=409, detail=f"You already have an exercise named '{name}'")


def _commit_named(db: DBSession, name: str) -> None:
    # a concurrent insert can slip past _ensure_name_free
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"You already have an exercise named '{name}'")


def create_exercise(db: DBSession, user_id: int, payload: ExerciseCreate) -> Exercise:
    name = _clean_name(payload.name)
    _ensure_name_free(db, user_id, name)

    ex = Exercise(
        user_id=user_id,
        name=name,
        type=payload.type,
        description=payload.description or None,
        muscle_group=normalize_whitespace(payload.muscle_group),
    )
    db.add(ex)
    _commit_named(db, name)
    db.refresh(ex)
    logger.info("user=%s created exercise id=%s", user_id, ex.id)
    return ex


def list_exercises(
    db: DBSession,
    user_id: int,
    q: Optional[str],
    type_: Optional[ExerciseType],
    limit: int,
    offset: int,
) -> List[Exercise]:
    stmt = select(Exercise).where(Exercise.user_id == user_id)
    needle = normalize_whitespace(q)
    if needle:
        stmt = stmt.where(func.lower(Exercise.name).contains(needle.lower(), autoescape=True))
    if type_ is not None:
        stmt = stmt.where(Exercise.type == type_)
    stmt = stmt.order_by(func.lower(Exercise.name), Exercise.id).offset(offset).limit(limit)
    return db.exec(stmt).all()


def get_exercise(db: DBSession, user_id: int, exercise_id: int) -> Exercise:
    return get_owned(db, Exercise, exercise_id, user_id, "exercise")


def update_exercise(db: DBSession, user_id: int, exercise_id: int, payload: ExerciseUpdate) -> Exercise:
    ex = get_owned(db, Exercise, exercise_id, user_id, "exercise")
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        name = _clean_name(changes["name"])
        if not case_insensitive_equal(name, ex.name):
            _ensure_name_free(db, user_id, name)
        ex.name = name
    # type is required on the row, so an explicit null leaves it alone
    if changes.get("type") is not None:
        ex.type = changes["type"]
    if "description" in changes:
        ex.description = changes["description"] or None
    if "muscle_group" in changes:
        ex.muscle_group = normalize_whitespace(changes["muscle_group"])

    ex.updated_at = now_utc()
    db.add(ex)
    _commit_named(db, ex.name)
    db.refresh(ex)
    return ex


def delete_exercise(db: DBSession, user_id: int, exercise_id: int) -> None:
    ex = get_owned(db, Exercise, exercise_id, user_id, "exercise")
    db.delete(ex)
    try:
        db.commit()
    except IntegrityError:
        # still referenced by a template link or a session row
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Cannot delete exercise: it is used by trainings or sessions.",
        )
    logger.info("user=%s deleted exercise id=%s", user_id, exercise_id)


def get_exercise_usage(db: DBSession, user_id: int, exercise_id: int) -> ExerciseUsage:
    ex = get_owned(db, Exercise, exercise_id, user_id, "exercise")

    trainings = db.exec(
        select(Training.id, Training.name)
        .join(TrainingExercise, TrainingExercise.training_id == Training.id)
        .where(Training.user_id == user_id, TrainingExercise.exercise_id == exercise_id)
        .distinct()
        .order_by(Training.name)
    ).all()

    sessions = db.exec(
        select(TrainingSession.id, TrainingSession.name, TrainingSession.started_at)
        .join(SessionExercise, SessionExercise.session_id == TrainingSession.id)
        .where(TrainingSession.user_id == user_id, SessionExercise.exercise_id == exercise_id)
        .distinct()
        .order_by(TrainingSession.started_at.desc())
    ).all()

    return ExerciseUsage(
        exercise=NamedRef(id=ex.id, name=ex.name),
        trainings=[NamedRef(id=tid, name=name) for tid, name in trainings],
        sessions=[SessionRef(id=sid, name=name, started_at=started) for sid, name, started in sessions],
        counts=UsageCounts(trainings=len(trainings), sessions=len(sessions)),
    )
