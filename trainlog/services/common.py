from __future__ import annotations
from functools import singledispatch
from typing import Optional, Any
import datetime as dt
from fastapi import HTTPException
from sqlmodel import Session as DBSession

from ..models import (
    Exercise,
    Training,
    TrainingExercise,
    TrainingSession,
    SessionExercise,
    SessionSet,
)


@singledispatch
def owner_of(obj: Any, db: DBSession) -> Optional[int]:
    """Resolve the id of the user who owns ``obj``, walking parent rows when needed."""
    raise TypeError(f"no ownership rule for {type(obj).__name__}")


@owner_of.register
def _(obj: Exercise, db: DBSession) -> Optional[int]:
    return obj.user_id


@owner_of.register
def _(obj: Training, db: DBSession) -> Optional[int]:
    return obj.user_id


@owner_of.register
def _(obj: TrainingSession, db: DBSession) -> Optional[int]:
    return obj.user_id


@owner_of.register
def _(obj: TrainingExercise, db: DBSession) -> Optional[int]:
    training = db.get(Training, obj.training_id)
    return owner_of(training, db) if training else None


@owner_of.register
def _(obj: SessionExercise, db: DBSession) -> Optional[int]:
    session = db.get(TrainingSession, obj.session_id)
    return owner_of(session, db) if session else None


@owner_of.register
def _(obj: SessionSet, db: DBSession) -> Optional[int]:
    item = db.get(SessionExercise, obj.session_exercise_id)
    return owner_of(item, db) if item else None


def ensure_owner(db: DBSession, obj: Any, user_id: int, what: str = "resource") -> None:
    # foreign rows look exactly like missing ones
    if obj is None or owner_of(obj, db) != user_id:
        raise HTTPException(status_code=404, detail=f"{what} not found")


def get_owned(db: DBSession, model: Any, obj_id: int, user_id: int, what: str) -> Any:
    obj = db.get(model, obj_id)
    ensure_owner(db, obj, user_id, what)
    return obj


def normalize_whitespace(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    compact = " ".join(value.strip().split())
    return compact or None


def case_insensitive_equal(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def now_utc() -> dt.datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def today_utc() -> dt.date:
    return now_utc().date()
