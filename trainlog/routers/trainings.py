from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession


from ..db import get_session
from ..auth import get_current_user
from ..models import User
from ..schemas import (
    TrainingCreate,
    TrainingUpdate,
    TrainingRead,
    TrainingDetail,
    TrainingExerciseCreate,
    TrainingExerciseUpdate,
    TrainingExerciseRead,
    ReorderRequest,
)
from ..services import trainings_service as svc


router = APIRouter(prefix="/api", tags=["trainings"])


# ---------- Trainings ----------
@router.get("/trainings", response_model=List[TrainingRead])
def list_trainings(
    db: DBSession = Depends(get_session),
    q: Optional[str] = Query(None, description="Search by name (case-insensitive)"),
    user: User = Depends(get_current_user),
):
    return svc.list_trainings(db=db, user_id=user.id, q=q)


@router.post("/trainings", response_model=TrainingRead, status_code=201)
def create_training(
    payload: TrainingCreate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.create_training(db=db, user_id=user.id, payload=payload)


@router.get("/trainings/{training_id}", response_model=TrainingDetail)
def get_training(
    training_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.get_training(db=db, user_id=user.id, training_id=training_id)


@router.patch("/trainings/{training_id}", response_model=TrainingRead)
def update_training(
    training_id: int,
    payload: TrainingUpdate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.update_training(db=db, user_id=user.id, training_id=training_id, payload=payload)


@router.delete("/trainings/{training_id}", status_code=204)
def delete_training(
    training_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    svc.delete_training(db=db, user_id=user.id, training_id=training_id)
    return None


# ---------- Training exercises ----------
@router.get("/trainings/{training_id}/exercises", response_model=List[TrainingExerciseRead])
def list_training_exercises(
    training_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.list_training_exercises(db=db, user_id=user.id, training_id=training_id)


@router.post("/trainings/{training_id}/exercises", response_model=TrainingExerciseRead, status_code=201)
def add_training_exercise(
    training_id: int,
    payload: TrainingExerciseCreate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.add_training_exercise(
        db=db, user_id=user.id, training_id=training_id, payload=payload
    )


@router.patch("/trainings/{training_id}/exercises/reorder", response_model=List[TrainingExerciseRead])
def reorder_training_exercises(
    training_id: int,
    payload: ReorderRequest,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.reorder_training_exercises(
        db=db, user_id=user.id, training_id=training_id, payload=payload
    )


@router.patch("/training-exercises/{link_id}", response_model=TrainingExerciseRead)
def update_training_exercise(
    link_id: int,
    payload: TrainingExerciseUpdate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.update_training_exercise(
        db=db, user_id=user.id, link_id=link_id, payload=payload
    )


@router.delete("/training-exercises/{link_id}", status_code=204)
def delete_training_exercise(
    link_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    svc.delete_training_exercise(db=db, user_id=user.id, link_id=link_id)
    return None
