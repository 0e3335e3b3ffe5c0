"""
Faculty router — Subjects a faculty member teaches and the students they reach.
All queries use the caller's id from the token.
"""

from fastapi import APIRouter, Depends

from app.core.database import get_supabase
from app.core.middleware import same_id
from app.core.security import require_role
from app.services.students import STUDENT_COLUMNS, with_batch_name
from app.utils.response import success_response

router = APIRouter(prefix="/api/faculty", tags=["Faculty"])

ASSIGNMENT_COLUMNS = "subject_id, batch_id, class_id, subjects ( id, name, subject_code, type )"


def _subject_view(subject: dict) -> dict:
    return {
        "id": subject["id"],
        "name": subject.get("name"),
        "code": subject.get("subject_code"),
        "type": subject.get("type"),
    }


def _my_assignments(db, faculty_id) -> list[dict]:
    result = (
        db.table("faculty_subjects")
        .select(ASSIGNMENT_COLUMNS)
        .eq("faculty_id", faculty_id)
        .execute()
    )
    return result.data or []


def edge_applies(edge: dict, student: dict) -> bool:
    """A null batch covers the whole class; otherwise only that batch."""
    if not same_id(edge.get("class_id"), student.get("class_id")):
        return False
    return edge.get("batch_id") is None or same_id(edge["batch_id"], student.get("batch_id"))


@router.get("/subjects")
async def get_my_subjects(user=Depends(require_role(["faculty"]))):
    db = get_supabase()
    subjects = {}
    for edge in _my_assignments(db, user.id):
        subject = edge.get("subjects")
        if subject and str(subject["id"]) not in subjects:
            subjects[str(subject["id"])] = _subject_view(subject)
    return success_response(subjects=list(subjects.values()))


@router.get("/students")
async def get_my_students(user=Depends(require_role(["faculty"]))):
    """One entry per (student, subject) pair the caller teaches."""
    db = get_supabase()
    assignments = [a for a in _my_assignments(db, user.id) if a.get("subjects")]

    class_ids = list({str(a["class_id"]) for a in assignments if a.get("class_id") is not None})
    if not class_ids:
        return success_response(students=[])

    result = (
        db.table("students")
        .select(STUDENT_COLUMNS)
        .in_("class_id", class_ids)
        .order("roll_no")
        .execute()
    )

    rows = []
    for student in (with_batch_name(s) for s in result.data):
        for edge in assignments:
            if not edge_applies(edge, student):
                continue
            subject = edge["subjects"]
            rows.append({
                **student,
                "subject_id": subject["id"],
                "subject_name": subject.get("name"),
                "subject_code": subject.get("subject_code"),
                "subject_type": subject.get("type"),
            })
    return success_response(students=rows)
