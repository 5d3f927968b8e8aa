from typing import Annotated, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .models import ExerciseType


NameStr = Annotated[str, Field(max_length=255)]
DescriptionStr = Annotated[str, Field(max_length=1000)]
NotesStr = Annotated[str, Field(max_length=1000)]
LongNotesStr = Annotated[str, Field(max_length=2000)]

Reps = Annotated[int, Field(ge=1, le=500)]
Weight = Annotated[float, Field(ge=0, le=9999.99)]
Distance = Annotated[float, Field(ge=0, le=9999.99)]
DurationSeconds = Annotated[int, Field(ge=1, le=86400)]
RestSeconds = Annotated[int, Field(ge=0, le=3600)]


# ---------- Accounts ----------
class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def fold_email(cls, v: str) -> str:
        return v.strip().lower()


class Registration(Credentials):
    password: str = Field(min_length=6, max_length=256)


class UserRead(BaseModel):
    id: int
    email: str


# ---------- Exercises ----------
class ExerciseCreate(BaseModel):
    name: NameStr
    type: ExerciseType
    description: Optional[DescriptionStr] = None
    muscle_group: Optional[NameStr] = None


class ExerciseUpdate(BaseModel):
    name: Optional[NameStr] = None
    type: Optional[ExerciseType] = None
    description: Optional[DescriptionStr] = None
    muscle_group: Optional[NameStr] = None


class ExerciseRead(BaseModel):
    id: int
    name: str
    type: ExerciseType
    description: Optional[str] = None
    muscle_group: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExerciseSummary(BaseModel):
    id: int
    name: str
    type: ExerciseType
    muscle_group: Optional[str] = None


class NamedRef(BaseModel):
    id: int
    name: Optional[str] = None


class SessionRef(NamedRef):
    started_at: datetime


class UsageCounts(BaseModel):
    trainings: int
    sessions: int


class ExerciseUsage(BaseModel):
    exercise: NamedRef
    trainings: List[NamedRef]
    sessions: List[SessionRef]
    counts: UsageCounts


# ---------- Trainings ----------
class TrainingCreate(BaseModel):
    name: NameStr
    description: Optional[DescriptionStr] = None
    notes: Optional[LongNotesStr] = None


class TrainingUpdate(BaseModel):
    name: Optional[NameStr] = None
    description: Optional[DescriptionStr] = None
    notes: Optional[LongNotesStr] = None


class TrainingRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    notes: Optional[str] = None
    exercise_count: int = 0
    created_at: datetime
    updated_at: datetime


class TrainingExerciseCreate(BaseModel):
    exercise_id: int
    default_sets: Optional[Annotated[int, Field(ge=1, le=20)]] = None
    default_reps: Optional[Reps] = None
    default_rest_seconds: Optional[Annotated[int, Field(ge=0, le=600)]] = None
    notes: Optional[NotesStr] = None


class TrainingExerciseUpdate(BaseModel):
    default_sets: Optional[Annotated[int, Field(ge=1, le=20)]] = None
    default_reps: Optional[Reps] = None
    default_rest_seconds: Optional[Annotated[int, Field(ge=0, le=600)]] = None
    notes: Optional[NotesStr] = None


class TrainingExerciseRead(BaseModel):
    id: int
    training_id: int
    exercise_id: int
    order_index: int
    default_sets: Optional[int] = None
    default_reps: Optional[int] = None
    default_rest_seconds: Optional[int] = None
    notes: Optional[str] = None
    exercise: Optional[ExerciseSummary] = None


class TrainingDetail(TrainingRead):
    exercises: List[TrainingExerciseRead] = []


class ReorderEntry(BaseModel):
    id: int
    order_index: Annotated[int, Field(ge=0)]


class ReorderRequest(BaseModel):
    exercises: Annotated[List[ReorderEntry], Field(min_length=1)]


class TrainingPickerItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    exercise_count: int
    updated_at: datetime


# ---------- Sessions ----------
class SessionCreate(BaseModel):
    training_id: Optional[int] = None
    name: Optional[NameStr] = None
    notes: Optional[LongNotesStr] = None

    @model_validator(mode="after")
    def name_required_for_blank(self):
        if self.training_id is None and not (self.name or "").strip():
            raise ValueError("name is required when no training_id is given")
        return self


class SessionRead(BaseModel):
    id: int
    training_id: Optional[int] = None
    name: Optional[str] = None
    notes: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    is_completed: bool
    is_in_progress: bool


class SessionExerciseCreate(BaseModel):
    exercise_id: int
    notes: Optional[NotesStr] = None


class SessionSetRead(BaseModel):
    id: int
    session_exercise_id: int
    set_index: int
    reps: Optional[int] = None
    weight: Optional[float] = None
    duration_seconds: Optional[int] = None
    distance: Optional[float] = None
    rest_seconds_actual: Optional[int] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    is_completed: bool


class SessionExerciseRead(BaseModel):
    id: int
    session_id: int
    exercise_id: int
    order_index: int
    notes: Optional[str] = None
    exercise: Optional[ExerciseSummary] = None
    sets: List[SessionSetRead] = []


class TrainingRef(BaseModel):
    id: int
    name: str


class SessionDetail(SessionRead):
    training: Optional[TrainingRef] = None
    duration_minutes: Optional[int] = None
    total_exercises: int
    total_sets: int
    exercises: List[SessionExerciseRead] = []


# ---------- Sets ----------
class SessionSetCreate(BaseModel):
    reps: Optional[Reps] = None
    weight: Optional[Weight] = None
    duration_seconds: Optional[DurationSeconds] = None
    distance: Optional[Distance] = None
    notes: Optional[NotesStr] = None
    rest_seconds_actual: Optional[RestSeconds] = None


class SessionSetUpdate(BaseModel):
    reps: Optional[Reps] = None
    weight: Optional[Weight] = None
    duration_seconds: Optional[DurationSeconds] = None
    distance: Optional[Distance] = None
    notes: Optional[NotesStr] = None
    rest_seconds_actual: Optional[RestSeconds] = None


class SessionSetComplete(BaseModel):
    rest_seconds_actual: Optional[Annotated[int, Field(ge=0)]] = None


class SessionSetList(BaseModel):
    sets: List[SessionSetRead]


# ---------- Stats ----------
class StatsFilters(BaseModel):
    start_date: date
    end_date: date


class MaxWeightPoint(BaseModel):
    date: str
    max_weight: float


class SessionVolumePoint(BaseModel):
    session_id: int
    session_name: Optional[str] = None
    date: str
    total_volume: float


class MaxWeightRecord(BaseModel):
    weight: float
    reps: Optional[int] = None


class MaxRepsRecord(BaseModel):
    reps: int
    weight: Optional[float] = None


class MaxVolumeRecord(BaseModel):
    reps: int
    weight: float
    volume: float


class PersonalRecords(BaseModel):
    max_weight: Optional[MaxWeightRecord] = None
    max_reps: Optional[MaxRepsRecord] = None
    max_volume: Optional[MaxVolumeRecord] = None


class SummaryStats(BaseModel):
    total_sessions: int
    total_sets: int
    total_volume: float


class ExerciseStats(BaseModel):
    exercise: ExerciseSummary
    filters: StatsFilters
    max_weight_by_date: List[MaxWeightPoint]
    volume_per_session: List[SessionVolumePoint]
    avg_rest_seconds: Optional[float] = None
    personal_records: PersonalRecords
    summary: SummaryStats
