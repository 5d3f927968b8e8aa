"""Local mirror of one training session, kept in step with the API.

Every mutation is applied optimistically, then reconciled: on success the
affected part of the mirror is replaced with what the server returned, on
failure the mirror is restored to the snapshot taken before the call.
"""
from __future__ import annotations

import copy
import datetime as dt
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class SessionStore:
    """Client-side state container for the nested session view."""

    def __init__(self, http: httpx.Client, session: Dict[str, Any]) -> None:
        self.http = http
        self.session = session
        self.error: Optional[str] = None
        self.loading = False

    @classmethod
    def load(cls, http: httpx.Client, session_id: int) -> "SessionStore":
        resp = http.get(f"/api/sessions/{session_id}")
        resp.raise_for_status()
        return cls(http, resp.json())

    # ---- lookups ----
    @property
    def exercises(self) -> List[Dict[str, Any]]:
        return self.session.get("exercises") or []

    @property
    def is_completed(self) -> bool:
        return bool(self.session.get("is_completed"))

    def exercise(self, session_exercise_id: int) -> Optional[Dict[str, Any]]:
        for ex in self.exercises:
            if ex["id"] == session_exercise_id:
                return ex
        return None

    def _locate_set(self, set_id: int):
        for ex in self.exercises:
            for pos, s in enumerate(ex["sets"]):
                if s["id"] == set_id:
                    return ex, pos
        return None, None

    # ---- reconciliation ----
    def _run(self, action: str, optimistic, request, apply):
        snapshot = copy.deepcopy(self.session)
        self.loading = True
        self.error = None
        try:
            optimistic()
            resp = request()
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.session = snapshot
            self.error = _error_message(exc, f"Failed to {action}")
            logger.warning("%s rolled back: %s", action, self.error)
            raise
        finally:
            self.loading = False
        apply(body)
        return body

    def _recount(self) -> None:
        self.session["total_sets"] = sum(len(ex["sets"]) for ex in self.exercises)

    # ---- mutations ----
    def add_set(self, session_exercise_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        ex = self.exercise(session_exercise_id)
        if ex is None:
            raise KeyError(f"session exercise {session_exercise_id} is not part of this session")
        placeholder = {"id": None, "session_exercise_id": session_exercise_id,
                       "set_index": len(ex["sets"]) + 1, **data}

        def optimistic():
            ex["sets"].append(placeholder)

        def apply(body):
            target = self.exercise(session_exercise_id)
            sets = [s for s in target["sets"] if s is not placeholder and s["id"] is not None]
            rest = data.get("rest_seconds_actual")
            if rest is not None and sets:
                sets[-1]["rest_seconds_actual"] = rest
            sets.append(body)
            target["sets"] = sets
            self._recount()

        return self._run(
            "add set",
            optimistic,
            lambda: self.http.post(f"/api/session-exercises/{session_exercise_id}/sets", json=data),
            apply,
        )

    def update_set(self, set_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        def optimistic():
            ex, pos = self._locate_set(set_id)
            if ex is not None:
                ex["sets"][pos].update(data)

        def apply(body):
            ex, pos = self._locate_set(set_id)
            if ex is not None:
                ex["sets"][pos] = body

        return self._run(
            "update set",
            optimistic,
            lambda: self.http.patch(f"/api/session-sets/{set_id}", json=data),
            apply,
        )

    def complete_set(self, set_id: int, rest_seconds_actual: Optional[int] = None) -> Dict[str, Any]:
        payload = {} if rest_seconds_actual is None else {"rest_seconds_actual": rest_seconds_actual}

        def optimistic():
            ex, pos = self._locate_set(set_id)
            if ex is not None:
                ex["sets"][pos]["is_completed"] = True

        def apply(body):
            ex, pos = self._locate_set(set_id)
            if ex is not None:
                ex["sets"][pos] = body

        return self._run(
            "complete set",
            optimistic,
            lambda: self.http.post(f"/api/session-sets/{set_id}/complete", json=payload),
            apply,
        )

    def delete_set(self, set_id: int) -> Dict[str, Any]:
        ex, _ = self._locate_set(set_id)
        if ex is None:
            raise KeyError(f"set {set_id} is not part of this session")
        session_exercise_id = ex["id"]

        def optimistic():
            target = self.exercise(session_exercise_id)
            target["sets"] = [s for s in target["sets"] if s["id"] != set_id]

        def apply(body):
            # the server reindexed the siblings, take its list wholesale
            self.exercise(session_exercise_id)["sets"] = body["sets"]
            self._recount()

        return self._run(
            "delete set",
            optimistic,
            lambda: self.http.delete(f"/api/session-sets/{set_id}"),
            apply,
        )

    def refresh(self) -> Dict[str, Any]:
        def apply(body):
            self.session = body

        return self._run(
            "refresh session",
            lambda: None,
            lambda: self.http.get(f"/api/sessions/{self.session['id']}"),
            apply,
        )

    # ---- derived ----
    def progress(self, now: Optional[dt.datetime] = None) -> Dict[str, int]:
        now = now or dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
        started = dt.datetime.fromisoformat(self.session["started_at"]).replace(tzinfo=None)
        return {
            "total_exercises": len(self.exercises),
            "started_exercises": sum(1 for ex in self.exercises if ex["sets"]),
            "total_sets": sum(len(ex["sets"]) for ex in self.exercises),
            "elapsed_minutes": max(0, int((now - started).total_seconds() // 60)),
        }


def _error_message(exc: Exception, fallback: str) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, str):
            return detail
    return fallback
