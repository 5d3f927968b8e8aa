"""Recording, editing and removing the sets performed within a session.

Set indices are 1-based and kept contiguous per session exercise: appends
take ``max + 1`` and deletes shift every later sibling down by one.
"""
from __future__ import annotations
import logging
from typing import List
from fastapi import HTTPException
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as DBSession, select


from ..models import SessionExercise, SessionSet
from ..schemas import SessionSetCreate, SessionSetUpdate, SessionSetComplete
from .common import get_owned, now_utc

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("reps", "weight", "duration_seconds", "distance", "notes", "rest_seconds_actual")


def list_sets(db: DBSession, session_exercise_id: int) -> List[SessionSet]:
    return db.exec(
        select(SessionSet)
        .where(SessionSet.session_exercise_id == session_exercise_id)
        .order_by(SessionSet.set_index.asc())
    ).all()


def append_set(db: DBSession, user_id: int, session_exercise_id: int, payload: SessionSetCreate) -> SessionSet:
    item = get_owned(db, SessionExercise, session_exercise_id, user_id, "session exercise")

    cur_max = db.exec(
        select(func.max(SessionSet.set_index)).where(SessionSet.session_exercise_id == item.id)
    ).first()
    next_index = (cur_max or 0) + 1

    stamp = now_utc()
    new_set = SessionSet(
        session_exercise_id=item.id,
        set_index=next_index,
        reps=payload.reps,
        weight=payload.weight,
        duration_seconds=payload.duration_seconds,
        distance=payload.distance,
        notes=(payload.notes or None),
        completed_at=stamp,
    )

    try:
        db.add(new_set)
        # rest belongs to the gap before this set, so it lands on the previous one
        if payload.rest_seconds_actual is not None and next_index > 1:
            previous = db.exec(
                select(SessionSet)
                .where(SessionSet.session_exercise_id == item.id)
                .where(SessionSet.set_index == next_index - 1)
            ).first()
            if previous is not None:
                previous.rest_seconds_actual = payload.rest_seconds_actual
                previous.updated_at = stamp
                db.add(previous)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to add set to session exercise id=%s", item.id)
        raise HTTPException(status_code=500, detail="Failed to add set. Please try again.")

    db.refresh(new_set)
    return new_set


def update_set(db: DBSession, user_id: int, set_id: int, payload: SessionSetUpdate) -> SessionSet:
    s = get_owned(db, SessionSet, set_id, user_id, "set")

    # only keys present in the request body; explicit nulls clear the column
    data = payload.model_dump(exclude_unset=True)
    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(s, field, data[field])
    s.updated_at = now_utc()

    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def complete_set(db: DBSession, user_id: int, set_id: int, payload: SessionSetComplete) -> SessionSet:
    s = get_owned(db, SessionSet, set_id, user_id, "set")

    if s.completed_at is None:
        s.completed_at = now_utc()
    if payload.rest_seconds_actual is not None:
        s.rest_seconds_actual = payload.rest_seconds_actual
    s.updated_at = now_utc()

    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def delete_set(db: DBSession, user_id: int, set_id: int) -> List[SessionSet]:
    s = get_owned(db, SessionSet, set_id, user_id, "set")
    item_id = s.session_exercise_id
    deleted_index = s.set_index

    try:
        db.delete(s)
        db.flush()
        db.execute(
            update(SessionSet)
            .where(SessionSet.session_exercise_id == item_id)
            .where(SessionSet.set_index > deleted_index)
            .values(set_index=SessionSet.set_index - 1)
            .execution_options(synchronize_session="fetch")
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("failed to delete set id=%s", set_id)
        raise HTTPException(status_code=500, detail="Failed to delete set. Please try again.")

    return list_sets(db, item_id)
