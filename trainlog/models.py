from __future__ import annotations
from typing import Optional
import datetime as dt
from enum import Enum
from sqlalchemy import Column, Text, UniqueConstraint, Index
from sqlmodel import SQLModel, Field


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


# ---------- Enums ----------
class ExerciseType(str, Enum):
    strength = "strength"
    cardio = "cardio"
    flexibility = "flexibility"
    other = "other"


# ---------- Master user ----------
class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: dt.datetime = Field(default_factory=_utcnow)


# ---------- Exercises ----------
class Exercise(SQLModel, table=True):
    """
    Library of movements, scoped by user_id.
    """
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_exercise_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str = Field(index=True, max_length=255)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    type: ExerciseType = Field(default=ExerciseType.strength)
    muscle_group: Optional[str] = Field(default=None, max_length=255)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


# ---------- Trainings (templates) ----------
class Training(SQLModel, table=True):
    """
    Blueprint you build once and reuse. Scoped by user_id.
    """
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_training_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


class TrainingExercise(SQLModel, table=True):
    """
    Links live under a training. No user_id here because ownership
    comes via the parent training.
    """
    __table_args__ = (Index("ix_trainingexercise_training_order", "training_id", "order_index"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    training_id: int = Field(foreign_key="training.id", index=True)
    exercise_id: int = Field(foreign_key="exercise.id", index=True)
    order_index: int = Field(default=0)
    default_sets: Optional[int] = None
    default_reps: Optional[int] = None
    default_rest_seconds: Optional[int] = Field(default=90)
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


# ---------- Sessions (performed) ----------
class TrainingSession(SQLModel, table=True):
    """
    One dated performance of a training, or a blank ad-hoc workout.
    completed_at is None while the session is in progress.
    """
    __table_args__ = (Index("ix_trainingsession_user_started", "user_id", "started_at"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    training_id: Optional[int] = Field(default=None, foreign_key="training.id", index=True)
    name: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    started_at: dt.datetime = Field(default_factory=_utcnow)
    completed_at: Optional[dt.datetime] = None
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def is_in_progress(self) -> bool:
        return self.completed_at is None


class SessionExercise(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: int = Field(foreign_key="trainingsession.id", index=True)
    exercise_id: int = Field(foreign_key="exercise.id", index=True)
    order_index: int = Field(default=0, index=True)
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


class SessionSet(SQLModel, table=True):
    __table_args__ = (Index("ix_sessionset_exercise_index", "session_exercise_id", "set_index"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    session_exercise_id: int = Field(foreign_key="sessionexercise.id", index=True)
    set_index: int = Field(default=1)
    reps: Optional[int] = None
    weight: Optional[float] = None
    duration_seconds: Optional[int] = None
    distance: Optional[float] = None
    # rest taken after this set, before the next one
    rest_seconds_actual: Optional[int] = None
    notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    completed_at: Optional[dt.datetime] = Field(default=None, index=True)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None
