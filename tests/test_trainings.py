from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from trainlog.services import trainings_service


def _login(client, email="trainer@example.com"):
    client.post("/api/auth/register", json={"email": email, "password": "secret123"})
    r = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert r.status_code == 200


def _exercise(client, name, type_="strength"):
    r = client.post("/api/exercises", json={"name": name, "type": type_})
    assert r.status_code == 201
    return r.json()


def _training_with(client, name, *exercise_names):
    t = client.post("/api/trainings", json={"name": name}).json()
    links = []
    for ex_name in exercise_names:
        ex = _exercise(client, ex_name)
        r = client.post(f"/api/trainings/{t['id']}/exercises", json={"exercise_id": ex["id"]})
        assert r.status_code == 201
        links.append(r.json())
    return t, links


def test_training_crud(client):
    _login(client)
    r = client.post("/api/trainings", json={"name": "Push Day", "description": "Chest", "notes": "Go heavy"})
    assert r.status_code == 201
    t = r.json()
    assert t["exercise_count"] == 0

    r = client.patch(f"/api/trainings/{t['id']}", json={"notes": None})
    assert r.status_code == 200
    assert r.json()["notes"] is None
    assert r.json()["description"] == "Chest"

    r = client.get("/api/trainings?q=push")
    assert [row["name"] for row in r.json()] == ["Push Day"]

    r = client.delete(f"/api/trainings/{t['id']}")
    assert r.status_code == 204
    assert client.get(f"/api/trainings/{t['id']}").status_code == 404


def test_training_name_validation(client):
    _login(client)
    assert client.post("/api/trainings", json={"name": "  "}).status_code == 400
    assert client.post("/api/trainings", json={"name": "Legs"}).status_code == 201
    assert client.post("/api/trainings", json={"name": "LEGS"}).status_code == 409


def test_added_exercises_get_increasing_order(client):
    _login(client)
    t, links = _training_with(client, "Full Body", "Squat", "Bench", "Row")
    assert [l["order_index"] for l in links] == [0, 1, 2]
    assert all(l["default_rest_seconds"] == 90 for l in links)
    assert links[0]["exercise"]["name"] == "Squat"

    r = client.get(f"/api/trainings/{t['id']}")
    assert r.status_code == 200
    detail = r.json()
    assert detail["exercise_count"] == 3
    assert [e["exercise"]["name"] for e in detail["exercises"]] == ["Squat", "Bench", "Row"]


def test_removing_a_link_leaves_gap_and_next_add_goes_after_max(client):
    _login(client)
    t, links = _training_with(client, "Gappy", "A1", "B1", "C1")

    r = client.delete(f"/api/training-exercises/{links[1]['id']}")
    assert r.status_code == 204

    ex = _exercise(client, "D1")
    r = client.post(f"/api/trainings/{t['id']}/exercises", json={"exercise_id": ex["id"]})
    assert r.json()["order_index"] == 3

    r = client.get(f"/api/trainings/{t['id']}/exercises")
    assert [l["order_index"] for l in r.json()] == [0, 2, 3]


def test_update_training_exercise_defaults(client):
    _login(client)
    _, links = _training_with(client, "Tweak", "Curl")
    r = client.patch(
        f"/api/training-exercises/{links[0]['id']}",
        json={"default_sets": 4, "default_reps": 12, "notes": "slow negatives"},
    )
    assert r.status_code == 200
    body = r.json()
    assert (body["default_sets"], body["default_reps"], body["notes"]) == (4, 12, "slow negatives")
    assert body["default_rest_seconds"] == 90

    r = client.patch(f"/api/training-exercises/{links[0]['id']}", json={"default_sets": 21})
    assert r.status_code == 422


def test_reorder_applies_mapping(client):
    _login(client)
    t, (a, b, c) = _training_with(client, "Shuffle", "A", "B", "C")

    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": a["id"], "order_index": 2}, {"id": c["id"], "order_index": 0}]},
    )
    assert r.status_code == 200
    assert [l["id"] for l in r.json()] == [c["id"], b["id"], a["id"]]
    assert [l["order_index"] for l in r.json()] == [0, 1, 2]


def test_reorder_rejects_colliding_indices(client):
    _login(client)
    t, (a, b, c) = _training_with(client, "Collide", "A", "B", "C")

    # b keeps index 1, so moving a onto 1 would duplicate it
    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": a["id"], "order_index": 1}]},
    )
    assert r.status_code == 422

    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": a["id"], "order_index": 5}, {"id": a["id"], "order_index": 6}]},
    )
    assert r.status_code == 422

    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": a["id"], "order_index": -1}]},
    )
    assert r.status_code == 422

    r = client.patch(f"/api/trainings/{t['id']}/exercises/reorder", json={"exercises": []})
    assert r.status_code == 422

    # nothing changed
    r = client.get(f"/api/trainings/{t['id']}/exercises")
    assert [l["id"] for l in r.json()] == [a["id"], b["id"], c["id"]]


def test_reorder_rejects_links_from_another_training(client):
    _login(client)
    t1, (a,) = _training_with(client, "First", "A")
    _, (x,) = _training_with(client, "Second", "X")

    r = client.patch(
        f"/api/trainings/{t1['id']}/exercises/reorder",
        json={"exercises": [{"id": x["id"], "order_index": 3}]},
    )
    assert r.status_code == 404


def test_delete_training_keeps_sessions(client):
    _login(client)
    t, _ = _training_with(client, "Doomed", "Squat")
    s = client.post("/api/sessions", json={"training_id": t["id"]}).json()

    assert client.delete(f"/api/trainings/{t['id']}").status_code == 204

    r = client.get(f"/api/sessions/{s['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["training_id"] is None
    assert body["name"] == "Doomed"
    assert body["total_exercises"] == 1


def test_start_picker_lists_recently_touched_first(client):
    _login(client)
    old, _ = _training_with(client, "Old", "E1")
    new, _ = _training_with(client, "New", "E2")
    # touching a training bumps it to the top
    client.patch(f"/api/trainings/{old['id']}", json={"description": "refreshed"})

    r = client.get("/api/sessions/start")
    assert r.status_code == 200
    rows = r.json()
    assert [row["name"] for row in rows] == ["Old", "New"]
    assert rows[0]["exercise_count"] == 1


def test_failed_reorder_keeps_previous_order(client, monkeypatch):
    _login(client)
    t, (a, b, c) = _training_with(client, "Fragile", "A", "B", "C")

    def _flush_then_fail(self):
        self.flush()
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(Session, "commit", _flush_then_fail)
    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": a["id"], "order_index": 2}, {"id": c["id"], "order_index": 0}]},
    )
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to reorder exercises. Please try again."
    r = client.get(f"/api/trainings/{t['id']}/exercises")
    assert [(l["id"], l["order_index"]) for l in r.json()] == [(a["id"], 0), (b["id"], 1), (c["id"], 2)]


def test_name_clash_caught_at_commit_is_409(client, monkeypatch):
    _login(client)
    client.post("/api/trainings", json={"name": "Legs"})
    other = client.post("/api/trainings", json={"name": "Arms"}).json()

    # another request inserted the same name after the lookup ran
    monkeypatch.setattr(trainings_service, "_name_taken", lambda db, user_id, name: False)

    r = client.post("/api/trainings", json={"name": "Legs"})
    assert r.status_code == 409
    r = client.patch(f"/api/trainings/{other['id']}", json={"name": "Legs"})
    assert r.status_code == 409
    assert client.get(f"/api/trainings/{other['id']}").json()["name"] == "Arms"


def test_search_treats_wildcards_literally(client):
    _login(client)
    client.post("/api/trainings", json={"name": "100% Effort"})
    client.post("/api/trainings", json={"name": "Upper_Lower"})
    client.post("/api/trainings", json={"name": "Push Day"})

    assert [row["name"] for row in client.get("/api/trainings?q=%25").json()] == ["100% Effort"]
    assert [row["name"] for row in client.get("/api/trainings?q=_").json()] == ["Upper_Lower"]
