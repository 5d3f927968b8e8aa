from __future__ import annotations
import logging
from typing import Dict, List, Optional
import datetime as dt
from fastapi import HTTPException
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession, select


from ..models import (
    TrainingSession,
    SessionExercise,
    SessionSet,
    Exercise,
    Training,
    TrainingExercise,
)
from ..schemas import (
    SessionCreate,
    SessionRead,
    SessionDetail,
    SessionExerciseCreate,
    SessionExerciseRead,
    SessionSetRead,
    ExerciseSummary,
    TrainingRef,
)
from .common import get_owned, normalize_whitespace, now_utc

logger = logging.getLogger(__name__)


def to_set_read(s: SessionSet) -> SessionSetRead:
    return SessionSetRead(
        id=s.id,
        session_exercise_id=s.session_exercise_id,
        set_index=s.set_index,
        reps=s.reps,
        weight=s.weight,
        duration_seconds=s.duration_seconds,
        distance=s.distance,
        rest_seconds_actual=s.rest_seconds_actual,
        notes=s.notes,
        completed_at=s.completed_at,
        is_completed=s.is_completed,
    )


def to_session_read(s: TrainingSession) -> SessionRead:
    return SessionRead(
        id=s.id,
        training_id=s.training_id,
        name=s.name,
        notes=s.notes,
        started_at=s.started_at,
        completed_at=s.completed_at,
        is_completed=s.is_completed,
        is_in_progress=s.is_in_progress,
    )


def _summary(ex: Optional[Exercise]) -> Optional[ExerciseSummary]:
    if ex is None:
        return None
    return ExerciseSummary(id=ex.id, name=ex.name, type=ex.type, muscle_group=ex.muscle_group)


def _duration_minutes(s: TrainingSession) -> Optional[int]:
    if s.completed_at is None or s.started_at is None:
        return None
    return int((s.completed_at - s.started_at).total_seconds() // 60)


def create_session(db: DBSession, user_id: int, payload: SessionCreate) -> TrainingSession:
    training = None
    if payload.training_id is not None:
        training = get_owned(db, Training, payload.training_id, user_id, "training")
        name = training.name
    else:
        name = normalize_whitespace(payload.name)
        if not name:
            raise HTTPException(status_code=422, detail="name is required for a blank session")

    try:
        s = TrainingSession(
            user_id=user_id,
            training_id=training.id if training else None,
            name=name,
            notes=(payload.notes or None),
            started_at=now_utc(),
            completed_at=None,
        )
        db.add(s)
        db.flush()

        if training is not None:
            links = db.exec(
                select(TrainingExercise)
                .where(TrainingExercise.training_id == training.id)
                .order_by(TrainingExercise.order_index.asc(), TrainingExercise.id.asc())
            ).all()
            # defaults stay on the template; sets are recorded live
            for link in links:
                db.add(SessionExercise(
                    session_id=s.id,
                    exercise_id=link.exercise_id,
                    order_index=link.order_index,
                    notes=link.notes,
                ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to start session for user=%s", user_id)
        raise HTTPException(status_code=500, detail="Failed to start session. Please try again.")

    db.refresh(s)
    logger.info("user=%s started session id=%s from training=%s", user_id, s.id, s.training_id)
    return s


def list_sessions(
    db: DBSession,
    user_id: int,
    start_date: Optional[dt.date],
    end_date: Optional[dt.date],
) -> List[TrainingSession]:
    stmt = select(TrainingSession).where(TrainingSession.user_id == user_id)
    if start_date:
        stmt = stmt.where(TrainingSession.started_at >= dt.datetime.combine(start_date, dt.time.min))
    if end_date:
        stmt = stmt.where(TrainingSession.started_at <= dt.datetime.combine(end_date, dt.time.max))
    stmt = stmt.order_by(TrainingSession.started_at.desc(), TrainingSession.id.desc())
    return db.exec(stmt).all()


def read_session(db: DBSession, user_id: int, session_id: int) -> SessionDetail:
    s = get_owned(db, TrainingSession, session_id, user_id, "session")

    items = db.exec(
        select(SessionExercise)
        .where(SessionExercise.session_id == session_id)
        .order_by(SessionExercise.order_index.asc(), SessionExercise.id.asc())
    ).all()
    item_ids = [it.id for it in items]
    ex_ids = {it.exercise_id for it in items}

    ex_map = (
        {e.id: e for e in db.exec(select(Exercise).where(Exercise.id.in_(ex_ids))).all()}
        if ex_ids else {}
    )
    sets_by_item: Dict[int, List[SessionSetRead]] = {i: [] for i in item_ids}
    if item_ids:
        rows = db.exec(
            select(SessionSet)
            .where(SessionSet.session_exercise_id.in_(item_ids))
            .order_by(SessionSet.session_exercise_id.asc(), SessionSet.set_index.asc())
        ).all()
        for row in rows:
            sets_by_item[row.session_exercise_id].append(to_set_read(row))

    training = db.get(Training, s.training_id) if s.training_id else None
    exercises = [
        SessionExerciseRead(
            id=it.id,
            session_id=it.session_id,
            exercise_id=it.exercise_id,
            order_index=it.order_index,
            notes=it.notes,
            exercise=_summary(ex_map.get(it.exercise_id)),
            sets=sets_by_item[it.id],
        )
        for it in items
    ]

    return SessionDetail(
        **to_session_read(s).model_dump(),
        training=TrainingRef(id=training.id, name=training.name) if training else None,
        duration_minutes=_duration_minutes(s),
        total_exercises=len(exercises),
        total_sets=sum(len(e.sets) for e in exercises),
        exercises=exercises,
    )


def complete_session(db: DBSession, user_id: int, session_id: int) -> TrainingSession:
    s = get_owned(db, TrainingSession, session_id, user_id, "session")
    if s.completed_at is None:
        s.completed_at = now_utc()
        s.updated_at = s.completed_at
        db.add(s)
        db.commit()
        db.refresh(s)
    return s


def add_exercise(
    db: DBSession, user_id: int, session_id: int, payload: SessionExerciseCreate
) -> SessionExerciseRead:
    get_owned(db, TrainingSession, session_id, user_id, "session")
    ex = get_owned(db, Exercise, payload.exercise_id, user_id, "exercise")

    cur_max = db.exec(
        select(func.max(SessionExercise.order_index)).where(SessionExercise.session_id == session_id)
    ).first()
    next_order = 0 if cur_max is None else cur_max + 1

    it = SessionExercise(
        session_id=session_id,
        exercise_id=ex.id,
        order_index=next_order,
        notes=(payload.notes or None),
    )
    db.add(it)
    db.commit()
    db.refresh(it)

    return SessionExerciseRead(
        id=it.id,
        session_id=it.session_id,
        exercise_id=it.exercise_id,
        order_index=it.order_index,
        notes=it.notes,
        exercise=_summary(ex),
        sets=[],
    )


def remove_exercise(db: DBSession, user_id: int, session_exercise_id: int) -> None:
    it = get_owned(db, SessionExercise, session_exercise_id, user_id, "session exercise")
    db.execute(delete(SessionSet).where(SessionSet.session_exercise_id == it.id))
    db.delete(it)
    db.commit()


def delete_session(db: DBSession, user_id: int, session_id: int) -> None:
    get_owned(db, TrainingSession, session_id, user_id, "session")
    item_ids = db.exec(select(SessionExercise.id).where(SessionExercise.session_id == session_id)).all()
    if item_ids:
        db.execute(delete(SessionSet).where(SessionSet.session_exercise_id.in_(item_ids)))
        db.execute(delete(SessionExercise).where(SessionExercise.id.in_(item_ids)))
    db.execute(delete(TrainingSession).where(TrainingSession.id == session_id))
    db.commit()
