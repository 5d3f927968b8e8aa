import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession


from ..db import get_session
from ..auth import get_current_user
from ..models import User
from ..schemas import ExerciseStats
from ..services import stats_service as svc


router = APIRouter(prefix="/api/exercises", tags=["stats"])


@router.get("/{exercise_id}/stats", response_model=ExerciseStats)
def exercise_stats(
    exercise_id: int,
    start_date: Optional[dt.date] = Query(None, description="YYYY-MM-DD, defaults to 90 days ago"),
    end_date: Optional[dt.date] = Query(None, description="YYYY-MM-DD (inclusive), defaults to today"),
    db: DBSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return svc.exercise_stats(
        db=db, user_id=user.id, exercise_id=exercise_id, start_date=start_date, end_date=end_date
    )
