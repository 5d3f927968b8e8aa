from fastapi import APIRouter, Depends
from sqlmodel import Session as DBSession


from ..db import get_session
from ..auth import get_current_user
from ..models import User
from ..schemas import (
    SessionSetCreate,
    SessionSetUpdate,
    SessionSetComplete,
    SessionSetRead,
    SessionSetList,
)
from ..services import sets_service as svc
from ..services.sessions_service import to_set_read


router = APIRouter(prefix="/api", tags=["sets"])


@router.post("/session-exercises/{session_exercise_id}/sets", response_model=SessionSetRead, status_code=201)
def append_set(
    session_exercise_id: int,
    payload: SessionSetCreate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    s = svc.append_set(db=db, user_id=user.id, session_exercise_id=session_exercise_id, payload=payload)
    return to_set_read(s)


@router.patch("/session-sets/{set_id}", response_model=SessionSetRead)
def update_set(
    set_id: int,
    payload: SessionSetUpdate,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return to_set_read(svc.update_set(db=db, user_id=user.id, set_id=set_id, payload=payload))


@router.post("/session-sets/{set_id}/complete", response_model=SessionSetRead)
def complete_set(
    set_id: int,
    payload: SessionSetComplete = SessionSetComplete(),
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return to_set_read(svc.complete_set(db=db, user_id=user.id, set_id=set_id, payload=payload))


@router.delete("/session-sets/{set_id}", response_model=SessionSetList)
def delete_set(
    set_id: int,
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    remaining = svc.delete_set(db=db, user_id=user.id, set_id=set_id)
    return SessionSetList(sets=[to_set_read(s) for s in remaining])
