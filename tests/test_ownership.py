import pytest


def _login(client, email):
    client.post("/api/auth/register", json={"email": email, "password": "secret123"})
    r = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert r.status_code == 200


@pytest.fixture
def alice_rows(client):
    """Build one of everything as alice, then switch the client over to mallory."""
    _login(client, "alice@example.com")
    ex = client.post("/api/exercises", json={"name": "Squat", "type": "strength"}).json()
    t = client.post("/api/trainings", json={"name": "Legs"}).json()
    link = client.post(f"/api/trainings/{t['id']}/exercises", json={"exercise_id": ex["id"]}).json()
    s = client.post("/api/sessions", json={"training_id": t["id"]}).json()
    item = client.get(f"/api/sessions/{s['id']}").json()["exercises"][0]
    set_row = client.post(f"/api/session-exercises/{item['id']}/sets", json={"reps": 5, "weight": 100}).json()
    client.post("/api/auth/logout")

    _login(client, "mallory@example.com")
    return {
        "exercise": ex["id"],
        "training": t["id"],
        "link": link["id"],
        "session": s["id"],
        "item": item["id"],
        "set": set_row["id"],
    }


# (method, url template, key into alice_rows, json body)
CASES = [
    ("get", "/api/exercises/{}", "exercise", None),
    ("patch", "/api/exercises/{}", "exercise", {"name": "Mine now"}),
    ("delete", "/api/exercises/{}", "exercise", None),
    ("get", "/api/exercises/{}/usage", "exercise", None),
    ("get", "/api/exercises/{}/stats", "exercise", None),
    ("get", "/api/trainings/{}", "training", None),
    ("patch", "/api/trainings/{}", "training", {"notes": "hi"}),
    ("delete", "/api/trainings/{}", "training", None),
    ("get", "/api/trainings/{}/exercises", "training", None),
    ("patch", "/api/training-exercises/{}", "link", {"default_sets": 5}),
    ("delete", "/api/training-exercises/{}", "link", None),
    ("get", "/api/sessions/{}", "session", None),
    ("patch", "/api/sessions/{}/complete", "session", None),
    ("delete", "/api/sessions/{}", "session", None),
    ("post", "/api/session-exercises/{}/sets", "item", {"reps": 1}),
    ("delete", "/api/session-exercises/{}", "item", None),
    ("patch", "/api/session-sets/{}", "set", {"reps": 1}),
    ("post", "/api/session-sets/{}/complete", "set", {}),
    ("delete", "/api/session-sets/{}", "set", None),
]


@pytest.mark.parametrize("method,url,key,body", CASES)
def test_foreign_rows_look_like_missing_rows(client, alice_rows, method, url, key, body):
    kwargs = {} if body is None else {"json": body}
    foreign = client.request(method, url.format(alice_rows[key]), **kwargs)
    missing = client.request(method, url.format(987654), **kwargs)

    assert foreign.status_code == 404
    assert missing.status_code == 404
    assert foreign.json() == missing.json()


def test_foreign_rows_are_untouched(client, alice_rows):
    client.patch(f"/api/session-sets/{alice_rows['set']}", json={"reps": 1})
    client.delete(f"/api/sessions/{alice_rows['session']}")
    client.post("/api/auth/logout")

    _login(client, "alice@example.com")
    detail = client.get(f"/api/sessions/{alice_rows['session']}").json()
    assert detail["exercises"][0]["sets"][0]["reps"] == 5


def test_cannot_reference_foreign_exercise_or_training(client, alice_rows):
    r = client.post("/api/sessions", json={"training_id": alice_rows["training"]})
    assert r.status_code == 404

    t = client.post("/api/trainings", json={"name": "Mine"}).json()
    r = client.post(f"/api/trainings/{t['id']}/exercises", json={"exercise_id": alice_rows["exercise"]})
    assert r.status_code == 404

    s = client.post("/api/sessions", json={"name": "Mine"}).json()
    r = client.post(f"/api/sessions/{s['id']}/exercises", json={"exercise_id": alice_rows["exercise"]})
    assert r.status_code == 404

    r = client.patch(
        f"/api/trainings/{t['id']}/exercises/reorder",
        json={"exercises": [{"id": alice_rows["link"], "order_index": 0}]},
    )
    assert r.status_code == 404
