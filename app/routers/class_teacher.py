"""
Class teacher router — Students, batches and subject assignment for one class.
The class comes from the class_id claim; rows of other classes are never touched.
"""

import logging
import os
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile, status
from postgrest.exceptions import APIError

from app.core.config import settings
from app.core.database import get_supabase, inserted_row
from app.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from app.core.middleware import get_class_id, same_id
from app.core.security import get_password_hash, require_role
from app.schemas.academic import BatchCreate, SubjectAssign
from app.schemas.students import StudentCreate, StudentUpdate
from app.services.student_import import import_students, read_student_sheet
from app.services.students import (
    STUDENT_COLUMNS, is_defaulter, text_value, to_attendance, with_batch_name,
)
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/class-teacher", tags=["Class Teacher"])

CLASS_STAFF = ["class_teacher", "faculty"]


def _student_in_class(db, student_id: str, class_id, action: str) -> dict:
    """Missing row → 404, row of another class → 403."""
    result = db.table("students").select("id, class_id").eq("id", student_id).limit(1).execute()
    if not result.data:
        raise NotFoundError("Student not found")
    student = result.data[0]
    if not same_id(student.get("class_id"), class_id):
        raise AuthorizationError(f"Unauthorized to {action} this student")
    return student


# ═══════════════════════════════════════════════════════════
# LOOKUPS
# ═══════════════════════════════════════════════════════════

@router.get("/faculties")
async def list_faculties(user=Depends(require_role(CLASS_STAFF))):
    db = get_supabase()
    result = (
        db.table("users")
        .select("id, name, email, role")
        .neq("role", "director")
        .order("name")
        .execute()
    )
    return success_response(faculties=result.data)


@router.get("/students")
async def list_students(user=Depends(require_role(CLASS_STAFF))):
    db = get_supabase()
    class_id = get_class_id(user)
    result = (
        db.table("students")
        .select(STUDENT_COLUMNS)
        .eq("class_id", class_id)
        .order("roll_no")
        .execute()
    )
    return success_response(students=[with_batch_name(s) for s in result.data])


@router.get("/batches")
async def list_batches(user=Depends(require_role(CLASS_STAFF))):
    db = get_supabase()
    class_id = get_class_id(user)
    result = (
        db.table("batches")
        .select("id, name, roll_start, roll_end, faculty_id, class_id")
        .eq("class_id", class_id)
        .order("name")
        .execute()
    )
    return success_response(batches=result.data)


# ═══════════════════════════════════════════════════════════
# STUDENTS
# ═══════════════════════════════════════════════════════════

@router.post("/student", status_code=status.HTTP_201_CREATED)
async def create_student(
    body: StudentCreate,
    user=Depends(require_role(CLASS_STAFF)),
):
    class_id = get_class_id(user)
    roll_no = body.roll_no.strip()
    ticket = body.hall_ticket_number.strip()
    if not roll_no or not body.name.strip() or not ticket:
        raise ValidationError("roll_no, name, and hall_ticket_number are required.")

    db = get_supabase()
    existing = (
        db.table("students")
        .select("roll_no, hall_ticket_number")
        .eq("class_id", class_id)
        .execute()
    )
    for s in existing.data:
        if text_value(s.get("roll_no")) == roll_no or text_value(s.get("hall_ticket_number")) == ticket:
            raise ConflictError("A student with this roll number or hall ticket number already exists.")

    attendance = to_attendance(body.attendance_percent)
    result = db.table("students").insert({
        "roll_no": roll_no,
        "name": body.name.strip(),
        "hall_ticket_number": ticket,
        "email": body.email,
        "mobile": body.mobile,
        "attendance_percent": attendance,
        "defaulter": is_defaulter(attendance),
        "class_id": class_id,
        "batch_id": body.batch_id,
        "password": get_password_hash(ticket),
    }).execute()

    student = {k: v for k, v in inserted_row(result, "students").items() if k != "password"}
    return success_response(message="Student created successfully", student=student)


@router.put("/student/{student_id}")
async def update_student(
    student_id: str,
    body: StudentUpdate,
    user=Depends(require_role(CLASS_STAFF)),
):
    class_id = get_class_id(user)
    db = get_supabase()
    _student_in_class(db, student_id, class_id, "edit")

    changes = body.model_dump(exclude_unset=True, exclude={"defaulter"})
    if "attendance_percent" in changes:
        changes["attendance_percent"] = to_attendance(changes["attendance_percent"])

    # An explicit boolean wins; otherwise follow the attendance
    if body.defaulter is not None:
        changes["defaulter"] = body.defaulter
    elif "attendance_percent" in changes:
        changes["defaulter"] = is_defaulter(changes["attendance_percent"])

    if not changes:
        raise ValidationError("No fields to update.")

    # Same uniqueness rule as create: roll_no and hall ticket are unique within the class
    keys = {f: text_value(changes[f]) for f in ("roll_no", "hall_ticket_number") if f in changes}
    if keys:
        if not all(keys.values()):
            raise ValidationError("roll_no and hall_ticket_number cannot be empty.")
        changes.update(keys)
        others = (
            db.table("students")
            .select("id, roll_no, hall_ticket_number")
            .eq("class_id", class_id)
            .neq("id", student_id)
            .execute()
        )
        for s in others.data:
            if any(text_value(s.get(f)) == value for f, value in keys.items()):
                raise ConflictError("A student with this roll number or hall ticket number already exists.")

    result = db.table("students").update(changes).eq("id", student_id).execute()
    updated = {k: v for k, v in result.data[0].items() if k != "password"} if result.data else None
    return success_response(message="Student updated successfully", student=updated)


@router.delete("/student/{student_id}")
async def delete_student(
    student_id: str,
    user=Depends(require_role(CLASS_STAFF)),
):
    class_id = get_class_id(user)
    db = get_supabase()
    _student_in_class(db, student_id, class_id, "delete")
    db.table("students").delete().eq("id", student_id).execute()
    return success_response(message="Student deleted successfully")


@router.post("/import-students")
async def import_students_from_sheet(
    file: UploadFile | None = File(None),
    user=Depends(require_role(CLASS_STAFF)),
):
    """
    Import students from an .xlsx/.csv sheet with columns
    roll_no, name, hall_ticket_number, attendance_percent.
    The uploaded copy is removed whatever the outcome.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    class_id = get_class_id(user)

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename).suffix.lower() or ".xlsx"
    temp_path = upload_dir / f"{uuid.uuid4().hex}{suffix}"

    try:
        temp_path.write_bytes(await file.read())
        rows = read_student_sheet(temp_path)
        result = import_students(get_supabase(), rows, class_id)
    finally:
        await file.close()
        if temp_path.exists():
            os.remove(temp_path)

    return success_response(
        message=result.message,
        inserted=result.inserted,
        skipped=result.skipped,
    )


# ═══════════════════════════════════════════════════════════
# SUBJECTS & BATCHES
# ═══════════════════════════════════════════════════════════

@router.post("/subjects/assign", status_code=status.HTTP_201_CREATED)
async def assign_subject(
    body: SubjectAssign,
    user=Depends(require_role(CLASS_STAFF)),
):
    """
    Create a subject for a class and record who teaches it.
    Theory: one class-wide edge (batch_id null).
    Practical: one edge per {batch_id, faculty_id} pair.
    """
    if body.class_id is None or body.department_id is None or not body.subject_code \
            or not body.subject_name or not body.type:
        raise ValidationError("Missing required fields.")
    if not same_id(body.class_id, get_class_id(user)):
        raise AuthorizationError("You can only assign subjects to your own class.")

    if body.type == "theory" and body.faculty_id is None:
        raise ValidationError("Faculty ID required for theory subject.")
    if body.type == "practical":
        if body.faculty_assignments is None:
            raise ValidationError("faculty_assignments array required for practical subjects.")
        if any(fa.batch_id is None or fa.faculty_id is None for fa in body.faculty_assignments):
            raise ValidationError("Each batch assignment must have batch_id and faculty_id.")

    db = get_supabase()
    subject = inserted_row(db.table("subjects").insert({
        "name": body.subject_name,
        "subject_code": body.subject_code,
        "type": body.type,
        "department_id": body.department_id,
        "class_id": body.class_id,
    }).execute(), "subjects")

    if body.type == "theory":
        edges = [{
            "faculty_id": body.faculty_id,
            "subject_id": subject["id"],
            "batch_id": None,
            "class_id": body.class_id,
        }]
        message = "Theory subject created and assigned successfully."
    else:
        edges = [
            {
                "faculty_id": fa.faculty_id,
                "subject_id": subject["id"],
                "batch_id": fa.batch_id,
                "class_id": body.class_id,
            }
            for fa in body.faculty_assignments
        ]
        message = "Practical subject created and assigned to all batches successfully."

    assigned = db.table("faculty_subjects").insert(edges).execute() if edges else None
    return success_response(
        message=message,
        subject=subject,
        assignments=assigned.data if assigned else [],
    )


@router.post("/create-batch")
async def create_batch(
    body: BatchCreate,
    user=Depends(require_role(CLASS_STAFF)),
):
    """
    1. insert the batch
    2. move class students with roll_no in [roll_start, roll_end] into it
    3. link the batch faculty through faculty_subjects
    Steps are independent writes; a failure part-way leaves earlier ones in place.
    """
    class_id = get_class_id(user)
    if not body.name or not body.roll_start or not body.roll_end or body.faculty_id is None:
        raise ValidationError("All fields are required")

    db = get_supabase()
    batch = inserted_row(db.table("batches").insert({
        "name": body.name,
        "roll_start": body.roll_start,
        "roll_end": body.roll_end,
        "faculty_id": body.faculty_id,
        "class_id": class_id,
    }).execute(), "batches")

    moved = (
        db.table("students")
        .update({"batch_id": batch["id"]})
        .eq("class_id", class_id)
        .gte("roll_no", body.roll_start)
        .lte("roll_no", body.roll_end)
        .execute()
    )

    message = "Batch created and faculty linked successfully"
    try:
        db.table("faculty_subjects").insert({
            "faculty_id": body.faculty_id,
            "class_id": class_id,
            "batch_id": batch["id"],
        }).execute()
    except APIError:
        logger.exception("Batch %s created but faculty link failed", batch["id"])
        message = "Batch created, but linking the faculty failed"

    return success_response(
        message=message,
        batch=batch,
        students_assigned=len(moved.data or []),
    )
