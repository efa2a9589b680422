from __future__ import annotations
import pytest
from app import create_app
from extensions import db
from models import Availability, ClassSubjectRequirement, TimetableEntry

@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        with app.test_client() as c:
            yield c
        db.session.remove()
        db.drop_all()

def _subject(client, name="Mathematics", **kw):
    r = client.post("/api/subjects", json={"name": name, "color": "#3B82F6", **kw})
    assert r.status_code == 201, r.get_json()
    return r.get_json()["id"]

def _teacher(client, subjects, name="Alice"):
    r = client.post("/api/teachers", json={"name": name, "email": f"{name.lower()}@example.com",
                                           "subjects": subjects})
    assert r.status_code == 201, r.get_json()
    return r.get_json()["id"]

def _class(client, name="7A"):
    r = client.post("/api/classes", json={"name": name, "grade": "7", "student_count": 25})
    assert r.status_code == 201, r.get_json()
    return r.get_json()["id"]

def test_subject_crud(client):
    sid = _subject(client, lessons_per_week=2)
    r = client.get(f"/api/subjects/{sid}")
    assert r.get_json() == {"id": sid, "name": "Mathematics", "color": "#3b82f6", "lessons_per_week": 2}

    r = client.patch(f"/api/subjects/{sid}", json={"name": "Algebra", "color": "#10b981"})
    assert r.status_code == 200
    assert r.get_json()["name"] == "Algebra"
    assert r.get_json()["lessons_per_week"] == 0

    assert len(client.get("/api/subjects").get_json()) == 1
    assert client.delete(f"/api/subjects/{sid}").status_code == 204
    assert client.get(f"/api/subjects/{sid}").status_code == 404

def test_subject_bad_color(client):
    r = client.post("/api/subjects", json={"name": "Art", "color": "blue"})
    assert r.status_code == 422
    assert r.get_json()["error"] == "validation_error"

def test_teacher_crud_with_subjects(client):
    math = _subject(client)
    art = _subject(client, "Art")
    tid = _teacher(client, [math])
    assert client.get(f"/api/teachers/{tid}").get_json()["subjects"] == [math]

    r = client.put(f"/api/teachers/{tid}", json={"name": "Alice B.", "email": "alice@example.com",
                                                 "subjects": [art, math]})
    assert r.status_code == 200
    assert r.get_json()["subjects"] == [math, art]

    r = client.post("/api/teachers", json={"name": "Bob", "email": "bob@example.com", "subjects": [404]})
    assert r.status_code == 400
    assert r.get_json()["code"] == "SUBJECT_NOT_FOUND"

def test_teacher_bad_email(client):
    r = client.post("/api/teachers", json={"name": "Bob", "email": "not-an-email"})
    assert r.status_code == 422

def test_class_crud(client):
    cid = _class(client)
    r = client.patch(f"/api/classes/{cid}", json={"name": "7A", "grade": "7", "student_count": 30})
    assert r.status_code == 200
    assert r.get_json()["student_count"] == 30
    assert client.delete(f"/api/classes/{cid}").status_code == 204
    assert client.get("/api/classes").get_json() == []

def test_class_negative_students(client):
    r = client.post("/api/classes", json={"name": "7A", "grade": "7", "student_count": -1})
    assert r.status_code == 422

def test_availability_upsert(client):
    tid = _teacher(client, [])
    body = {"teacher_id": tid, "day": "Monday", "period": "8:00-9:00", "available": False}
    first = client.post("/api/availability", json=body).get_json()
    second = client.post("/api/availability", json={**body, "available": True}).get_json()
    assert first["id"] == second["id"]
    assert second["available"] is True

    rows = client.get(f"/api/availability/{tid}").get_json()
    assert len(rows) == 1

def test_availability_unknown_teacher_and_bad_period(client):
    r = client.post("/api/availability", json={"teacher_id": 5, "day": "Monday", "period": "8:00-9:00"})
    assert r.status_code == 404
    assert client.get("/api/availability/5").status_code == 404

    tid = _teacher(client, [])
    r = client.post("/api/availability", json={"teacher_id": tid, "day": "Monday", "period": "7:00-8:00"})
    assert r.status_code == 422

def test_requirement_upsert_and_delete(client):
    cid = _class(client)
    sid = _subject(client)
    first = client.post(f"/api/classes/{cid}/requirements", json={"subject_id": sid, "periods_per_week": 3})
    assert first.status_code == 200
    second = client.post(f"/api/classes/{cid}/requirements", json={"subject_id": sid, "periods_per_week": 5})
    assert second.get_json()["id"] == first.get_json()["id"]

    rows = client.get(f"/api/classes/{cid}/requirements").get_json()
    assert len(rows) == 1
    assert rows[0]["periods_per_week"] == 5

    assert client.delete(f"/api/classes/requirements/{rows[0]['id']}").status_code == 204
    assert client.get(f"/api/classes/{cid}/requirements").get_json() == []

def test_requirement_validation(client):
    cid = _class(client)
    sid = _subject(client)
    r = client.post(f"/api/classes/{cid}/requirements", json={"subject_id": sid, "periods_per_week": -2})
    assert r.status_code == 422
    r = client.post(f"/api/classes/{cid}/requirements", json={"subject_id": 999, "periods_per_week": 2})
    assert r.status_code == 400
    assert client.post("/api/classes/999/requirements", json={"subject_id": sid}).status_code == 404

def test_delete_teacher_cascades_availability_but_keeps_entries(client):
    sid = _subject(client)
    cid = _class(client)
    tid = _teacher(client, [sid])
    client.post("/api/availability", json={"teacher_id": tid, "day": "Monday", "period": "8:00-9:00",
                                           "available": False})
    r = client.post("/api/timetable", json={"class_id": cid, "teacher_id": tid, "subject_id": sid,
                                            "day": "Tuesday", "period": "8:00-9:00"})
    assert r.status_code == 201

    assert client.delete(f"/api/teachers/{tid}").status_code == 204
    assert Availability.query.count() == 0
    assert TimetableEntry.query.count() == 1

def test_delete_class_cascades_requirements_and_entries(client):
    sid = _subject(client)
    cid = _class(client)
    tid = _teacher(client, [sid])
    client.post(f"/api/classes/{cid}/requirements", json={"subject_id": sid, "periods_per_week": 2})
    client.post("/api/timetable", json={"class_id": cid, "teacher_id": tid, "subject_id": sid,
                                        "day": "Monday", "period": "8:00-9:00"})

    assert client.delete(f"/api/classes/{cid}").status_code == 204
    assert ClassSubjectRequirement.query.count() == 0
    assert TimetableEntry.query.count() == 0
