import datetime as dt

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from trainlog.models import SessionExercise, TrainingSession


def _login(client, email="sessions@example.com"):
    client.post("/api/auth/register", json={"email": email, "password": "secret123"})
    r = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert r.status_code == 200


def _push_day(client):
    bench = client.post("/api/exercises", json={"name": "Bench Press", "type": "strength"}).json()
    fly = client.post("/api/exercises", json={"name": "Cable Fly", "type": "strength"}).json()
    t = client.post("/api/trainings", json={"name": "Push Day"}).json()
    client.post(
        f"/api/trainings/{t['id']}/exercises",
        json={"exercise_id": bench["id"], "default_sets": 4, "default_reps": 8, "notes": "pause reps"},
    )
    client.post(f"/api/trainings/{t['id']}/exercises", json={"exercise_id": fly["id"], "default_sets": 3})
    return t, bench, fly


def test_session_from_template_clones_order_and_notes(client):
    _login(client)
    t, bench, fly = _push_day(client)

    r = client.post("/api/sessions", json={"training_id": t["id"]})
    assert r.status_code == 201
    s = r.json()
    assert s["name"] == "Push Day"
    assert s["training_id"] == t["id"]
    assert s["completed_at"] is None
    assert s["is_in_progress"] is True

    r = client.get(f"/api/sessions/{s['id']}")
    assert r.status_code == 200
    detail = r.json()
    assert detail["training"] == {"id": t["id"], "name": "Push Day"}
    assert detail["total_exercises"] == 2
    assert detail["total_sets"] == 0
    items = detail["exercises"]
    assert [it["exercise_id"] for it in items] == [bench["id"], fly["id"]]
    assert [it["order_index"] for it in items] == [0, 1]
    assert items[0]["notes"] == "pause reps"
    # targets stay on the template, nothing is pre-filled
    assert all(it["sets"] == [] for it in items)
    assert "default_sets" not in items[0]


def test_blank_session_requires_name(client):
    _login(client)
    r = client.post("/api/sessions", json={})
    assert r.status_code == 422
    r = client.post("/api/sessions", json={"name": "   "})
    assert r.status_code == 422

    r = client.post("/api/sessions", json={"name": "Quick pump", "notes": "hotel gym"})
    assert r.status_code == 201
    s = r.json()
    assert s["training_id"] is None
    assert s["notes"] == "hotel gym"
    detail = client.get(f"/api/sessions/{s['id']}").json()
    assert detail["exercises"] == []
    assert detail["training"] is None


def test_session_from_unknown_training_is_404(client):
    _login(client)
    r = client.post("/api/sessions", json={"training_id": 9999})
    assert r.status_code == 404


def test_add_and_remove_session_exercise(client):
    _login(client)
    t, bench, _ = _push_day(client)
    s = client.post("/api/sessions", json={"training_id": t["id"]}).json()
    dips = client.post("/api/exercises", json={"name": "Dips", "type": "strength"}).json()

    r = client.post(f"/api/sessions/{s['id']}/exercises", json={"exercise_id": dips["id"]})
    assert r.status_code == 201
    item = r.json()
    assert item["order_index"] == 2
    assert item["sets"] == []

    client.post(f"/api/session-exercises/{item['id']}/sets", json={"reps": 10})
    r = client.delete(f"/api/session-exercises/{item['id']}")
    assert r.status_code == 204

    detail = client.get(f"/api/sessions/{s['id']}").json()
    assert detail["total_exercises"] == 2
    assert dips["id"] not in [it["exercise_id"] for it in detail["exercises"]]


def test_complete_session_is_idempotent(client):
    _login(client)
    s = client.post("/api/sessions", json={"name": "Cardio"}).json()

    r = client.patch(f"/api/sessions/{s['id']}/complete")
    assert r.status_code == 200
    first = r.json()
    assert first["is_completed"] is True
    assert first["is_in_progress"] is False
    assert first["completed_at"] is not None

    r = client.patch(f"/api/sessions/{s['id']}/complete")
    assert r.status_code == 200
    assert r.json()["completed_at"] == first["completed_at"]

    detail = client.get(f"/api/sessions/{s['id']}").json()
    assert detail["duration_minutes"] is not None
    assert detail["duration_minutes"] >= 0


def test_list_sessions_newest_first_with_date_filter(client):
    _login(client)
    a = client.post("/api/sessions", json={"name": "A"}).json()
    b = client.post("/api/sessions", json={"name": "B"}).json()

    r = client.get("/api/sessions")
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == [b["id"], a["id"]]

    today = dt.datetime.now(dt.timezone.utc).date()
    r = client.get(f"/api/sessions?start_date={today}&end_date={today}")
    assert len(r.json()) == 2

    past = today - dt.timedelta(days=30)
    r = client.get(f"/api/sessions?end_date={past}")
    assert r.json() == []


def test_delete_session_removes_children(client):
    _login(client)
    t, _, _ = _push_day(client)
    s = client.post("/api/sessions", json={"training_id": t["id"]}).json()
    item = client.get(f"/api/sessions/{s['id']}").json()["exercises"][0]
    set_row = client.post(f"/api/session-exercises/{item['id']}/sets", json={"reps": 5, "weight": 80}).json()

    r = client.delete(f"/api/sessions/{s['id']}")
    assert r.status_code == 204

    assert client.get(f"/api/sessions/{s['id']}").status_code == 404
    assert client.patch(f"/api/session-sets/{set_row['id']}", json={"reps": 6}).status_code == 404
    # the exercise is free to go once no session uses it
    assert client.get(f"/api/exercises/{item['exercise_id']}/usage").json()["counts"]["sessions"] == 0


def _flush_then_fail(self):
    self.flush()
    raise SQLAlchemyError("disk I/O error")


def test_failed_start_leaves_no_session_or_clones(client, db, monkeypatch):
    _login(client)
    t, _, _ = _push_day(client)

    monkeypatch.setattr(Session, "commit", _flush_then_fail)
    r = client.post("/api/sessions", json={"training_id": t["id"]})
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to start session. Please try again."
    assert db.exec(select(TrainingSession)).all() == []
    assert db.exec(select(SessionExercise)).all() == []
    assert client.get("/api/sessions").json() == []
