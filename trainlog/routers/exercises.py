from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession


from ..db import get_session
from ..auth import get_current_user
from ..models import ExerciseType, User
from ..schemas import ExerciseCreate, ExerciseRead, ExerciseUpdate, ExerciseUsage
from ..services import exercises_service as svc


router = APIRouter(prefix="/api/exercises", tags=["exercises"])


@router.get("", response_model=List[ExerciseRead])
def list_exercises(
    q: Optional[str] = Query(None, description="Part of the name, any case"),
    type: Optional[ExerciseType] = Query(None),
    limit: int = Query(100, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.list_exercises(db, user.id, q=q, type_=type, limit=limit, offset=offset)


@router.post("", response_model=ExerciseRead, status_code=201)
def create_exercise(
    payload: ExerciseCreate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.create_exercise(db, user.id, payload)


@router.get("/{exercise_id}", response_model=ExerciseRead)
def read_exercise(
    exercise_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.get_exercise(db, user.id, exercise_id)


@router.patch("/{exercise_id}", response_model=ExerciseRead)
def patch_exercise(
    exercise_id: int,
    payload: ExerciseUpdate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.update_exercise(db, user.id, exercise_id, payload)


@router.delete("/{exercise_id}", status_code=204)
def remove_exercise(
    exercise_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    svc.delete_exercise(db, user.id, exercise_id)


@router.get("/{exercise_id}/usage", response_model=ExerciseUsage)
def exercise_usage(
    exercise_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    """Templates and sessions that still reference the exercise."""
    return svc.get_exercise_usage(db, user.id, exercise_id)
