from typing import List, Optional
import datetime as dt


from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession


from ..db import get_session
from ..auth import get_current_user
from ..models import User
from ..schemas import (
   SessionCreate,
   SessionRead,
   SessionDetail,
   SessionExerciseCreate,
   SessionExerciseRead,
   TrainingPickerItem,
)
from ..services import sessions_service as svc
from ..services import trainings_service as trainings_svc


router = APIRouter(prefix="/api", tags=["sessions"])


@router.get("/sessions/start", response_model=List[TrainingPickerItem])
def start_options(
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   return trainings_svc.list_for_picker(db=db, user_id=user.id)


@router.post("/sessions", response_model=SessionRead, status_code=201)
def create_session(
   payload: SessionCreate,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   s = svc.create_session(db=db, user_id=user.id, payload=payload)
   return svc.to_session_read(s)


@router.get("/sessions", response_model=List[SessionRead])
def list_sessions(
   start_date: Optional[dt.date] = Query(None, description="YYYY-MM-DD"),
   end_date: Optional[dt.date] = Query(None, description="YYYY-MM-DD (inclusive)"),
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   rows = svc.list_sessions(db=db, user_id=user.id, start_date=start_date, end_date=end_date)
   return [svc.to_session_read(s) for s in rows]


@router.get("/sessions/{session_id}", response_model=SessionDetail)
def read_session(
   session_id: int,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   return svc.read_session(db=db, user_id=user.id, session_id=session_id)


@router.patch("/sessions/{session_id}/complete", response_model=SessionRead)
def complete_session(
   session_id: int,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   s = svc.complete_session(db=db, user_id=user.id, session_id=session_id)
   return svc.to_session_read(s)


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(
   session_id: int,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   svc.delete_session(db=db, user_id=user.id, session_id=session_id)
   return None


@router.post("/sessions/{session_id}/exercises", response_model=SessionExerciseRead, status_code=201)
def add_exercise(
   session_id: int,
   payload: SessionExerciseCreate,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   return svc.add_exercise(db=db, user_id=user.id, session_id=session_id, payload=payload)


@router.delete("/session-exercises/{session_exercise_id}", status_code=204)
def remove_exercise(
   session_exercise_id: int,
   db: DBSession = Depends(get_session),
   user: User = Depends(get_current_user),
):
   svc.remove_exercise(db=db, user_id=user.id, session_exercise_id=session_exercise_id)
   return None
