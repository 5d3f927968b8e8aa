"""Read-only progress statistics for one exercise of one user.

Range-scoped figures filter on the session's ``started_at``, not on the
set's completion time; personal records ignore the range entirely.
"""
from __future__ import annotations
import os
from typing import List, Optional, Tuple
import datetime as dt
from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session as DBSession, select


from ..models import Exercise, SessionExercise, SessionSet, TrainingSession
from ..schemas import (
    ExerciseStats,
    ExerciseSummary,
    StatsFilters,
    MaxWeightPoint,
    SessionVolumePoint,
    PersonalRecords,
    MaxWeightRecord,
    MaxRepsRecord,
    MaxVolumeRecord,
    SummaryStats,
)
from .common import get_owned, today_utc

DEFAULT_RANGE_DAYS = int(os.getenv("STATS_DEFAULT_DAYS", "90"))

VOLUME = SessionSet.reps * SessionSet.weight


def resolve_range(
    start_date: Optional[dt.date], end_date: Optional[dt.date]
) -> Tuple[dt.datetime, dt.datetime]:
    today = today_utc()
    end_day = end_date or today
    start_day = start_date or (today - dt.timedelta(days=DEFAULT_RANGE_DAYS))
    if end_day < start_day:
        raise HTTPException(
            status_code=422,
            detail="The end date must be after or equal to the start date.",
        )
    return dt.datetime.combine(start_day, dt.time.min), dt.datetime.combine(end_day, dt.time.max)


def _sets_query(*columns, exercise_id: int, user_id: int):
    return (
        select(*columns)
        .select_from(SessionSet)
        .join(SessionExercise, SessionSet.session_exercise_id == SessionExercise.id)
        .join(TrainingSession, SessionExercise.session_id == TrainingSession.id)
        .where(SessionExercise.exercise_id == exercise_id)
        .where(TrainingSession.user_id == user_id)
    )


def _in_range(stmt, start: dt.datetime, end: dt.datetime):
    return stmt.where(TrainingSession.started_at.between(start, end))


def max_weight_by_date(
    db: DBSession, exercise_id: int, user_id: int, start: dt.datetime, end: dt.datetime
) -> List[MaxWeightPoint]:
    day = func.date(TrainingSession.started_at)
    stmt = _in_range(
        _sets_query(day, func.max(SessionSet.weight), exercise_id=exercise_id, user_id=user_id)
        .where(SessionSet.completed_at.is_not(None))
        .where(SessionSet.weight.is_not(None)),
        start, end,
    ).group_by(day).order_by(day)
    return [MaxWeightPoint(date=str(d), max_weight=float(w)) for d, w in db.exec(stmt).all()]


def volume_per_session(
    db: DBSession, exercise_id: int, user_id: int, start: dt.datetime, end: dt.datetime
) -> List[SessionVolumePoint]:
    day = func.date(TrainingSession.started_at)
    stmt = _in_range(
        _sets_query(
            TrainingSession.id, TrainingSession.name, day, func.sum(VOLUME),
            exercise_id=exercise_id, user_id=user_id,
        )
        .where(SessionSet.completed_at.is_not(None))
        .where(SessionSet.weight.is_not(None))
        .where(SessionSet.reps.is_not(None)),
        start, end,
    ).group_by(TrainingSession.id, TrainingSession.name, day).order_by(day, TrainingSession.id)
    return [
        SessionVolumePoint(
            session_id=sid,
            session_name=name,
            date=str(d),
            total_volume=round(float(total or 0), 2),
        )
        for sid, name, d, total in db.exec(stmt).all()
    ]


def average_rest(
    db: DBSession, exercise_id: int, user_id: int, start: dt.datetime, end: dt.datetime
) -> Optional[float]:
    stmt = _in_range(
        _sets_query(func.avg(SessionSet.rest_seconds_actual), exercise_id=exercise_id, user_id=user_id)
        .where(SessionSet.rest_seconds_actual.is_not(None)),
        start, end,
    )
    avg = db.exec(stmt).first()
    return None if avg is None else float(round(float(avg)))


def personal_records(db: DBSession, exercise_id: int, user_id: int) -> PersonalRecords:
    done = SessionSet.completed_at.is_not(None)

    heaviest = db.exec(
        _sets_query(SessionSet.weight, SessionSet.reps, exercise_id=exercise_id, user_id=user_id)
        .where(done)
        .where(SessionSet.weight.is_not(None))
        .order_by(SessionSet.weight.desc(), SessionSet.id.asc())
        .limit(1)
    ).first()

    most_reps = db.exec(
        _sets_query(SessionSet.reps, SessionSet.weight, exercise_id=exercise_id, user_id=user_id)
        .where(done)
        .where(SessionSet.reps.is_not(None))
        .order_by(SessionSet.reps.desc(), SessionSet.id.asc())
        .limit(1)
    ).first()

    biggest = db.exec(
        _sets_query(SessionSet.reps, SessionSet.weight, VOLUME, exercise_id=exercise_id, user_id=user_id)
        .where(done)
        .where(SessionSet.weight.is_not(None))
        .where(SessionSet.reps.is_not(None))
        .order_by(VOLUME.desc(), SessionSet.id.asc())
        .limit(1)
    ).first()

    return PersonalRecords(
        max_weight=(
            MaxWeightRecord(weight=float(heaviest[0]), reps=heaviest[1]) if heaviest else None
        ),
        max_reps=(
            MaxRepsRecord(
                reps=int(most_reps[0]),
                weight=float(most_reps[1]) if most_reps[1] is not None else None,
            )
            if most_reps else None
        ),
        max_volume=(
            MaxVolumeRecord(
                reps=int(biggest[0]),
                weight=float(biggest[1]),
                volume=round(float(biggest[2]), 2),
            )
            if biggest else None
        ),
    )


def summary_stats(
    db: DBSession, exercise_id: int, user_id: int, start: dt.datetime, end: dt.datetime
) -> SummaryStats:
    total_sessions = db.exec(
        select(func.count(func.distinct(TrainingSession.id)))
        .select_from(SessionExercise)
        .join(TrainingSession, SessionExercise.session_id == TrainingSession.id)
        .where(SessionExercise.exercise_id == exercise_id)
        .where(TrainingSession.user_id == user_id)
        .where(TrainingSession.completed_at.is_not(None))
        .where(TrainingSession.started_at.between(start, end))
    ).first()

    total_sets = db.exec(
        _in_range(
            _sets_query(func.count(SessionSet.id), exercise_id=exercise_id, user_id=user_id)
            .where(SessionSet.completed_at.is_not(None)),
            start, end,
        )
    ).first()

    total_volume = db.exec(
        _in_range(
            _sets_query(func.sum(VOLUME), exercise_id=exercise_id, user_id=user_id)
            .where(SessionSet.completed_at.is_not(None))
            .where(SessionSet.weight.is_not(None))
            .where(SessionSet.reps.is_not(None)),
            start, end,
        )
    ).first()

    return SummaryStats(
        total_sessions=total_sessions or 0,
        total_sets=total_sets or 0,
        total_volume=round(float(total_volume), 2) if total_volume else 0,
    )


def exercise_stats(
    db: DBSession,
    user_id: int,
    exercise_id: int,
    start_date: Optional[dt.date],
    end_date: Optional[dt.date],
) -> ExerciseStats:
    ex: Exercise = get_owned(db, Exercise, exercise_id, user_id, "exercise")
    start, end = resolve_range(start_date, end_date)

    return ExerciseStats(
        exercise=ExerciseSummary(id=ex.id, name=ex.name, type=ex.type, muscle_group=ex.muscle_group),
        filters=StatsFilters(start_date=start.date(), end_date=end.date()),
        max_weight_by_date=max_weight_by_date(db, ex.id, user_id, start, end),
        volume_per_session=volume_per_session(db, ex.id, user_id, start, end),
        avg_rest_seconds=average_rest(db, ex.id, user_id, start, end),
        personal_records=personal_records(db, ex.id, user_id),
        summary=summary_stats(db, ex.id, user_id, start, end),
    )
