"""
Tests for HOD routes; the HOD token is scoped to department 10.
"""


def test_classes_are_department_scoped(client, db, hod_headers):
    db.add("classes", {"id": 1, "name": "SE-A", "year": 2, "department_id": 10,
                       "class_teacher": {"id": 3, "name": "Ms. Iyer"}})
    db.add("classes", {"id": 2, "name": "TE-A", "year": 3, "department_id": 11})

    resp = client.get("/api/hod/classes", headers=hod_headers)
    assert resp.status_code == 200
    classes = resp.json()["classes"]
    assert [c["id"] for c in classes] == [1]
    assert classes[0]["teacher"] == "Ms. Iyer"
    assert classes[0]["total_students"] == 0


def test_create_class_moves_teacher_into_department(client, db, hod_headers):
    db.add("users", {"id": 3, "name": "Ms. Iyer", "role": "class_teacher", "department_id": None})
    resp = client.post(
        "/api/hod/classes",
        json={"name": "SE-A", "year": 2, "class_teacher_id": 3},
        headers=hod_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["department_id"] == 10
    assert db.rows("users", id=3)[0]["department_id"] == 10


def test_create_class_rejects_second_teacher(client, db, hod_headers):
    db.add("classes", {"name": "SE-A", "year": 2, "department_id": 10, "class_teacher_id": 3})
    resp = client.post(
        "/api/hod/classes",
        json={"name": "SE-A", "year": 2, "class_teacher_id": 4},
        headers=hod_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "A class teacher is already assigned to this class."
    assert len(db.rows("classes")) == 1


def test_create_class_requires_fields(client, hod_headers):
    resp = client.post("/api/hod/classes", json={"name": "SE-A"}, headers=hod_headers)
    assert resp.status_code == 400


def test_update_class_outside_department_is_404(client, db, hod_headers):
    db.add("classes", {"id": 2, "name": "TE-A", "year": 3, "department_id": 11, "class_teacher_id": 8})
    resp = client.put(
        "/api/hod/classes/2",
        json={"name": "Renamed", "year": 3, "class_teacher_id": 3},
        headers=hod_headers,
    )
    assert resp.status_code == 404
    assert db.rows("classes", id=2)[0]["name"] == "TE-A"


def test_delete_class(client, db, hod_headers):
    db.add("classes", {"id": 1, "name": "SE-A", "year": 2, "department_id": 10})
    db.add("classes", {"id": 2, "name": "TE-A", "year": 3, "department_id": 11})

    assert client.delete("/api/hod/classes/2", headers=hod_headers).status_code == 404
    assert client.delete("/api/hod/classes/1", headers=hod_headers).status_code == 200
    assert [c["id"] for c in db.rows("classes")] == [2]


def test_class_teacher_candidates(client, db, hod_headers):
    db.add("users", {"id": 3, "name": "A", "role": "class_teacher", "department_id": 10})
    db.add("users", {"id": 4, "name": "B", "role": "faculty", "department_id": None})
    db.add("users", {"id": 5, "name": "C", "role": "faculty", "department_id": 11})
    db.add("users", {"id": 6, "name": "D", "role": "director", "department_id": None})

    resp = client.get("/api/hod/class-teachers", headers=hod_headers)
    assert [t["id"] for t in resp.json()["teachers"]] == [3, 4]


def test_add_offered_subject(client, db, hod_headers):
    db.add("users", {"id": 30, "name": "Dr. Sen", "role": "faculty"})
    db.add("users", {"id": 31, "name": "Dr. Das", "role": "faculty"})

    resp = client.post("/api/hod/add-offered-subject", json={
        "name": "Data Science", "subject_code": "OE101", "type": "OE",
        "faculty_ids": [30, 31], "semester": 5, "year": 3,
    }, headers=hod_headers)
    assert resp.status_code == 201

    subject = db.rows("subjects")[0]
    assert subject["class_id"] is None and subject["department_id"] == 10
    assert len(db.rows("department_offered_subjects", subject_id=subject["id"])) == 1
    edges = db.rows("faculty_subjects", subject_id=subject["id"])
    assert sorted(e["faculty_id"] for e in edges) == [30, 31]
    assert all(e["class_id"] is None and e["batch_id"] is None for e in edges)

    listing = client.get("/api/hod/offered-subjects", headers=hod_headers).json()["subjects"]
    assert sorted(listing[0]["faculties"]) == ["Dr. Das", "Dr. Sen"]


def test_add_offered_subject_duplicate_code(client, db, hod_headers):
    db.add("subjects", {"name": "Old", "subject_code": "OE101", "department_id": 10})
    resp = client.post("/api/hod/add-offered-subject", json={
        "name": "Data Science", "subject_code": "OE101", "type": "OE", "faculty_ids": [30],
    }, headers=hod_headers)
    assert resp.status_code == 400
    assert db.rows("department_offered_subjects") == []


def test_delete_offered_subject_scoped(client, db, hod_headers):
    db.add("department_offered_subjects", {"id": 1, "subject_id": 5, "department_id": 11})
    resp = client.delete("/api/hod/offered-subjects/1", headers=hod_headers)
    assert resp.status_code == 404
    assert len(db.rows("department_offered_subjects")) == 1
