"""Populate a database with a demo exercise library, templates and history.

    python -m trainlog.seed --email demo@example.com --password secret123
"""
from __future__ import annotations

import argparse
import datetime as dt
import logging
import random
from typing import Dict, List, Optional, Tuple

from sqlmodel import Session as DBSession, select

from .auth import hash_password
from .db import engine, init_db
from .models import (
    Exercise,
    ExerciseType,
    SessionExercise,
    SessionSet,
    Training,
    TrainingExercise,
    TrainingSession,
    User,
)
from .services.common import now_utc

logger = logging.getLogger(__name__)

EXERCISES: List[Tuple[str, ExerciseType, Optional[str], str]] = [
    ("Bench Press", ExerciseType.strength, "Chest", "Barbell bench press for chest development"),
    ("Incline Dumbbell Press", ExerciseType.strength, "Chest", "Upper chest focus with dumbbells"),
    ("Pull-ups", ExerciseType.strength, "Back", "Bodyweight back exercise"),
    ("Barbell Row", ExerciseType.strength, "Back", "Bent over row for back thickness"),
    ("Overhead Press", ExerciseType.strength, "Shoulders", "Standing shoulder press"),
    ("Lateral Raises", ExerciseType.strength, "Shoulders", "Dumbbell side raises"),
    ("Barbell Curl", ExerciseType.strength, "Biceps", "Standard bicep curl"),
    ("Barbell Squat", ExerciseType.strength, "Legs", "Back squat"),
    ("Romanian Deadlift", ExerciseType.strength, "Hamstrings", "Hamstring focused deadlift"),
    ("Leg Press", ExerciseType.strength, "Legs", "Machine leg press"),
    ("Plank", ExerciseType.strength, "Core", "Isometric core hold"),
    ("Running", ExerciseType.cardio, None, "Outdoor or treadmill running"),
    ("Rowing Machine", ExerciseType.cardio, None, "Full body cardio"),
    ("Hamstring Stretch", ExerciseType.flexibility, "Hamstrings", "Static hamstring stretching"),
]

# name, description, notes, [(exercise, default_sets, default_reps, default_rest_seconds)]
TRAININGS = [
    ("Push Day", "Chest, shoulders, and triceps", "Focus on progressive overload", [
        ("Bench Press", 4, 8, 180),
        ("Incline Dumbbell Press", 3, 10, 120),
        ("Overhead Press", 3, 8, 120),
        ("Lateral Raises", 3, 15, 90),
    ]),
    ("Pull Day", "Back and biceps", "Focus on back width and thickness", [
        ("Pull-ups", 4, 8, 120),
        ("Barbell Row", 4, 8, 120),
        ("Barbell Curl", 3, 12, 90),
    ]),
    ("Leg Day", "Complete lower body", "Never skip leg day", [
        ("Barbell Squat", 5, 5, 180),
        ("Romanian Deadlift", 3, 8, 150),
        ("Leg Press", 3, 12, 120),
        ("Running", 1, None, 0),
    ]),
]

# starting working weight per exercise, kg
BASE_WEIGHTS: Dict[str, float] = {
    "Bench Press": 60.0,
    "Incline Dumbbell Press": 22.5,
    "Overhead Press": 40.0,
    "Lateral Raises": 8.0,
    "Barbell Row": 55.0,
    "Barbell Curl": 25.0,
    "Barbell Squat": 80.0,
    "Romanian Deadlift": 70.0,
    "Leg Press": 140.0,
}


def _get_or_create_user(db: DBSession, email: str, password: str) -> User:
    email = email.lower().strip()
    user = db.exec(select(User).where(User.email == email)).first()
    if user is None:
        user = User(email=email, password_hash=hash_password(password))
        db.add(user)
        db.flush()
    return user


def _build_sets(
    item: SessionExercise, name: str, ex_type: ExerciseType, planned: int, reps: Optional[int],
    rest: int, week: int, completed: dt.datetime, rng: random.Random,
) -> List[SessionSet]:
    if ex_type == ExerciseType.cardio:
        return [SessionSet(
            session_exercise_id=item.id,
            set_index=1,
            duration_seconds=rng.randint(15, 35) * 60,
            distance=round(rng.uniform(3.0, 7.0), 2),
            completed_at=completed,
        )]

    base = BASE_WEIGHTS.get(name)
    sets = []
    for idx in range(1, planned + 1):
        weight = None if base is None else round(base + 2.5 * week, 2)
        sets.append(SessionSet(
            session_exercise_id=item.id,
            set_index=idx,
            reps=max(1, (reps or 8) - rng.randint(0, 2)),
            weight=weight,
            completed_at=completed,
        ))
    # rest is recorded on the set it followed
    for earlier in sets[:-1]:
        earlier.rest_seconds_actual = rest + rng.randint(-15, 30)
    return sets


def seed(db: DBSession, email: str, password: str, weeks: int = 6, rng: Optional[random.Random] = None) -> User:
    rng = rng or random.Random(42)
    user = _get_or_create_user(db, email, password)

    existing = {e.name: e for e in db.exec(select(Exercise).where(Exercise.user_id == user.id)).all()}
    for name, ex_type, muscle, description in EXERCISES:
        if name not in existing:
            ex = Exercise(user_id=user.id, name=name, type=ex_type, muscle_group=muscle, description=description)
            db.add(ex)
            existing[name] = ex
    db.flush()

    templates = []
    for t_name, description, notes, links in TRAININGS:
        training = db.exec(
            select(Training).where(Training.user_id == user.id).where(Training.name == t_name)
        ).first()
        if training is None:
            training = Training(user_id=user.id, name=t_name, description=description, notes=notes)
            db.add(training)
            db.flush()
            for order, (ex_name, sets, reps, rest) in enumerate(links):
                db.add(TrainingExercise(
                    training_id=training.id,
                    exercise_id=existing[ex_name].id,
                    order_index=order,
                    default_sets=sets,
                    default_reps=reps,
                    default_rest_seconds=rest,
                ))
        templates.append((training, links))
    db.flush()

    has_history = db.exec(
        select(TrainingSession.id).where(TrainingSession.user_id == user.id).limit(1)
    ).first() is not None
    if has_history:
        db.commit()
        logger.info("%s already has sessions, leaving history alone", user.email)
        return user

    today = now_utc().replace(hour=0, minute=0, second=0, microsecond=0)
    first_day = today - dt.timedelta(weeks=weeks)
    count = 0
    for week in range(weeks):
        for slot, (training, links) in enumerate(templates):
            started = first_day + dt.timedelta(
                weeks=week, days=slot * 2, hours=rng.randint(7, 19), minutes=rng.randint(0, 59)
            )
            if started >= now_utc():
                continue
            finished = started + dt.timedelta(minutes=rng.randint(45, 75))
            session = TrainingSession(
                user_id=user.id,
                training_id=training.id,
                name=training.name,
                notes="Felt great today!" if count % 5 == 0 else None,
                started_at=started,
                completed_at=finished,
            )
            db.add(session)
            db.flush()
            for order, (ex_name, planned, reps, rest) in enumerate(links):
                ex = existing[ex_name]
                item = SessionExercise(session_id=session.id, exercise_id=ex.id, order_index=order)
                db.add(item)
                db.flush()
                for s in _build_sets(item, ex_name, ex.type, planned, reps, rest, week, finished, rng):
                    db.add(s)
            count += 1

    db.commit()
    logger.info("seeded %s sessions for %s", count, user.email)
    return user


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed demo training data")
    parser.add_argument("--email", default="demo@example.com")
    parser.add_argument("--password", default="secret123")
    parser.add_argument("--weeks", type=int, default=6)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    init_db()
    with DBSession(engine) as db:
        seed(db, args.email, args.password, weeks=args.weeks, rng=random.Random(args.seed))


if __name__ == "__main__":
    main()
