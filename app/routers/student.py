"""
Student router — Profile, subjects, elective selection, defaulter work and submissions.
All queries use the student id and class/batch from the token.
"""

from fastapi import APIRouter, Depends, Response, status

from app.core.database import get_supabase
from app.core.exceptions import NotFoundError, ValidationError
from app.core.middleware import get_class_id, same_id
from app.core.security import require_role
from app.schemas.students import ElectiveSelect
from app.utils.response import success_response

router = APIRouter(prefix="/api/students", tags=["Student"])

# Elective type -> (subject column, faculty column) on student_subject_selection
ELECTIVE_SLOTS = {
    "MDM": ("mdm_id", "mdm_faculty_id"),
    "OE": ("oe_id", "oe_faculty_id"),
    "PE": ("pe_id", "pe_faculty_id"),
}


@router.get("/me")
async def get_profile(user=Depends(require_role(["student"]))):
    db = get_supabase()
    result = (
        db.table("students")
        .select("id, roll_no, name, hall_ticket_number, email, mobile, attendance_percent, "
                "defaulter, class_id, batch_id, classes ( name, year ), batches ( name )")
        .eq("id", user.id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError("Student not found")
    student = {k: v for k, v in result.data[0].items() if k != "password"}
    return success_response(student=student)


@router.get("/subjects")
async def get_my_subjects(user=Depends(require_role(["student"]))):
    """Class-wide subjects plus those taught to the student's own batch."""
    db = get_supabase()
    class_id = get_class_id(user)
    edges = (
        db.table("faculty_subjects")
        .select("subject_id, batch_id, faculty_id, subjects ( id, name, subject_code, type ), "
                "users ( id, name )")
        .eq("class_id", class_id)
        .execute()
    )

    subjects = {}
    for edge in edges.data:
        if edge.get("subject_id") is None:
            continue
        if edge.get("batch_id") is not None and not same_id(edge["batch_id"], user.batch_id):
            continue
        subject = edge.get("subjects") or {}
        faculty = edge.get("users") or {}
        key = str(edge["subject_id"])
        if key not in subjects:
            subjects[key] = {
                "id": edge["subject_id"],
                "name": subject.get("name"),
                "code": subject.get("subject_code"),
                "type": subject.get("type"),
                "faculty": [],
            }
        if faculty.get("name"):
            subjects[key]["faculty"].append(faculty["name"])

    return success_response(subjects=list(subjects.values()))


@router.post("/select-elective")
async def select_elective(
    body: ElectiveSelect,
    response: Response,
    user=Depends(require_role(["student"])),
):
    if body.subject_id is None or body.faculty_id is None or not body.type:
        raise ValidationError("subject_id, faculty_id, and type are required.")
    if body.type not in ELECTIVE_SLOTS:
        raise ValidationError("Invalid type. Must be one of: MDM, OE, or PE.")

    db = get_supabase()

    # The faculty must teach the subject; this also proves the subject exists
    teaches = (
        db.table("faculty_subjects")
        .select("subject_id, faculty_id")
        .eq("subject_id", body.subject_id)
        .eq("faculty_id", body.faculty_id)
        .limit(1)
        .execute()
    )
    if not teaches.data:
        raise ValidationError("Selected faculty does not teach the given subject.")

    subject_col, faculty_col = ELECTIVE_SLOTS[body.type]
    slot = {subject_col: body.subject_id, faculty_col: body.faculty_id}

    existing = (
        db.table("student_subject_selection")
        .select("id")
        .eq("student_id", user.id)
        .limit(1)
        .execute()
    )
    if existing.data:
        db.table("student_subject_selection").update(slot).eq("student_id", user.id).execute()
        return success_response(message=f"{body.type} subject selection updated successfully.")

    db.table("student_subject_selection").insert({"student_id": user.id, **slot}).execute()
    response.status_code = status.HTTP_201_CREATED
    return success_response(message=f"{body.type} subject selected successfully.")


@router.get("/electives")
async def get_my_electives(user=Depends(require_role(["student"]))):
    db = get_supabase()
    result = (
        db.table("student_subject_selection")
        .select("*")
        .eq("student_id", user.id)
        .limit(1)
        .execute()
    )
    return success_response(selection=result.data[0] if result.data else None)


@router.get("/defaulter-work")
async def get_my_defaulter_work(user=Depends(require_role(["student"]))):
    db = get_supabase()
    result = (
        db.table("defaulter_submissions")
        .select("*, subjects ( name, subject_code ), users ( name )")
        .eq("student_id", user.id)
        .order("created_at", desc=True)
        .execute()
    )
    return success_response(work=result.data)


@router.get("/submissions")
async def get_my_submissions(user=Depends(require_role(["student"]))):
    db = get_supabase()
    result = (
        db.table("student_submissions")
        .select("id, subject_id, status, marked_at, subjects ( name, subject_code ), "
                "submission_types ( name )")
        .eq("student_id", user.id)
        .execute()
    )
    return success_response(submissions=result.data)
