import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import init_db
from .observability import configure_logging, metrics_response, observe_request
from .routers import auth, exercises, session_sets, sessions, stats, trainings

configure_logging()

app = FastAPI(
    title="trainlog",
    description="Exercise library, training templates, live sessions and progress stats.",
    openapi_tags=[
        {"name": "auth", "description": "Registration & login"},
        {"name": "exercises", "description": "Exercise library"},
        {"name": "trainings", "description": "Training templates and their ordered exercises"},
        {"name": "sessions", "description": "Performed training sessions"},
        {"name": "sets", "description": "Sets recorded within a session"},
        {"name": "stats", "description": "Per-exercise progress statistics"},
    ],
)


def _allowed_origins():
    raw = os.getenv("ALLOW_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(observe_request)


@app.on_event("startup")
def on_startup() -> None:
    init_db()


for module in (auth, exercises, stats, trainings, sessions, session_sets):
    app.include_router(module.router)


@app.get("/health", tags=["ops"])
def health():
    return {"status": "ok"}


@app.get("/metrics", tags=["ops"], include_in_schema=False)
def metrics():
    return metrics_response()
