"""
HOD router — Classes, faculty listing and elective offerings of the HOD's department.
Every query is filtered by the department_id claim in the token.
"""

import logging

from fastapi import APIRouter, Depends, status

from app.core.database import get_supabase, inserted_row
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.middleware import get_department_id, same_id
from app.core.security import require_role
from app.schemas.academic import ClassCreate, OfferedSubjectCreate
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/hod", tags=["HOD"])


def _class_in_department(db, class_id: str, department_id):
    result = (
        db.table("classes")
        .select("id")
        .eq("id", class_id)
        .eq("department_id", department_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise NotFoundError("Class not found or access denied")
    return result.data[0]


def _validate_class_body(body: ClassCreate):
    if not body.name or body.year is None or body.class_teacher_id is None:
        raise ValidationError("Name, year, and class_teacher_id are required")


# ═══════════════════════════════════════════════════════════
# CLASSES
# ═══════════════════════════════════════════════════════════

@router.get("/classes")
async def list_classes(user=Depends(require_role(["hod"]))):
    db = get_supabase()
    department_id = get_department_id(user)
    result = (
        db.table("classes")
        .select("id, name, year, total_students, created_at, class_teacher:class_teacher_id ( id, name )")
        .eq("department_id", department_id)
        .order("year")
        .order("name")
        .execute()
    )

    classes = []
    for cls in result.data:
        teacher = cls.get("class_teacher") or {}
        classes.append({
            "id": cls["id"],
            "name": cls.get("name"),
            "year": cls.get("year"),
            "total_students": cls.get("total_students") or 0,
            "teacher": teacher.get("name") or "Not Assigned",
            "teacher_id": teacher.get("id"),
            "created_at": cls.get("created_at"),
        })
    return success_response(classes=classes)


@router.post("/classes", status_code=status.HTTP_201_CREATED)
async def create_class(
    body: ClassCreate,
    user=Depends(require_role(["hod"])),
):
    _validate_class_body(body)
    db = get_supabase()
    department_id = get_department_id(user)

    existing = (
        db.table("classes")
        .select("id, class_teacher_id")
        .eq("name", body.name)
        .eq("year", body.year)
        .eq("department_id", department_id)
        .limit(1)
        .execute()
    )
    if existing.data and existing.data[0].get("class_teacher_id"):
        raise ConflictError("A class teacher is already assigned to this class.")

    # The class teacher joins the department
    db.table("users").update({"department_id": department_id}).eq("id", body.class_teacher_id).execute()

    result = db.table("classes").insert({
        "name": body.name,
        "year": body.year,
        "department_id": department_id,
        "class_teacher_id": body.class_teacher_id,
    }).execute()
    return success_response(message="Class created successfully", data=inserted_row(result, "classes"))


@router.put("/classes/{class_id}")
async def update_class(
    class_id: str,
    body: ClassCreate,
    user=Depends(require_role(["hod"])),
):
    department_id = get_department_id(user)
    _validate_class_body(body)
    db = get_supabase()
    _class_in_department(db, class_id, department_id)

    db.table("users").update({"department_id": department_id}).eq("id", body.class_teacher_id).execute()

    result = (
        db.table("classes")
        .update({"name": body.name, "year": body.year, "class_teacher_id": body.class_teacher_id})
        .eq("id", class_id)
        .execute()
    )
    return success_response(
        message="Class updated successfully",
        data=result.data[0] if result.data else None,
    )


@router.delete("/classes/{class_id}")
async def delete_class(
    class_id: str,
    user=Depends(require_role(["hod"])),
):
    department_id = get_department_id(user)
    db = get_supabase()
    _class_in_department(db, class_id, department_id)
    db.table("classes").delete().eq("id", class_id).execute()
    return success_response(message="Class deleted successfully")


# ═══════════════════════════════════════════════════════════
# FACULTY
# ═══════════════════════════════════════════════════════════

@router.get("/faculties")
async def list_faculties(user=Depends(require_role(["hod"]))):
    db = get_supabase()
    department_id = get_department_id(user)
    result = (
        db.table("users")
        .select("id, name, email, role, created_at")
        .eq("department_id", department_id)
        .in_("role", ["class_teacher", "faculty", "hod"])
        .order("name")
        .execute()
    )
    return success_response(faculties=result.data)


@router.get("/class-teachers")
async def list_class_teacher_candidates(user=Depends(require_role(["hod"]))):
    """Teachers of this department plus teachers not yet in any department."""
    db = get_supabase()
    department_id = get_department_id(user)
    result = (
        db.table("users")
        .select("id, name, email, role, department_id")
        .in_("role", ["class_teacher", "faculty"])
        .order("name")
        .execute()
    )
    available = [
        t for t in result.data
        if t.get("department_id") is None or same_id(t["department_id"], department_id)
    ]
    logger.debug(
        "%d of %d teachers available for department %s",
        len(available), len(result.data), department_id,
    )
    return success_response(teachers=available)


# ═══════════════════════════════════════════════════════════
# OFFERED SUBJECTS (electives)
# ═══════════════════════════════════════════════════════════

@router.get("/offered-subjects")
async def list_offered_subjects(user=Depends(require_role(["hod"]))):
    db = get_supabase()
    department_id = get_department_id(user)
    offerings = (
        db.table("department_offered_subjects")
        .select("id, semester, year, faculty_ids, created_at, subject:subject_id ( id, name, subject_code, type )")
        .eq("department_id", department_id)
        .order("year")
        .order("semester")
        .execute()
    )

    # One lookup for every faculty named by any offering
    faculty_ids = {fid for o in offerings.data for fid in (o.get("faculty_ids") or [])}
    names = {}
    if faculty_ids:
        faculties = db.table("users").select("id, name").in_("id", list(faculty_ids)).execute()
        names = {str(f["id"]): f["name"] for f in faculties.data}

    subjects = []
    for o in offerings.data:
        subject = o.get("subject") or {}
        subjects.append({
            "id": o["id"],
            "subject_code": subject.get("subject_code") or "N/A",
            "subject_name": subject.get("name") or "N/A",
            "type": subject.get("type") or "N/A",
            "faculties": [names[str(fid)] for fid in (o.get("faculty_ids") or []) if str(fid) in names],
            "semester": o.get("semester"),
            "year": o.get("year"),
            "created_at": o.get("created_at"),
        })
    return success_response(subjects=subjects)


@router.delete("/offered-subjects/{offering_id}")
async def delete_offered_subject(
    offering_id: str,
    user=Depends(require_role(["hod"])),
):
    department_id = get_department_id(user)
    db = get_supabase()
    existing = (
        db.table("department_offered_subjects")
        .select("id, subject_id")
        .eq("id", offering_id)
        .eq("department_id", department_id)
        .limit(1)
        .execute()
    )
    if not existing.data:
        raise NotFoundError("Subject not found or access denied")

    db.table("department_offered_subjects").delete().eq("id", offering_id).execute()
    return success_response(message="Subject deleted successfully")


@router.post("/add-offered-subject", status_code=status.HTTP_201_CREATED)
async def add_offered_subject(
    body: OfferedSubjectCreate,
    user=Depends(require_role(["hod"])),
):
    """
    Create a department-offered elective:
    1. the subject itself (no class)
    2. the offering row for semester/year
    3. a faculty_subjects edge for each listed faculty not already mapped
    """
    department_id = get_department_id(user)
    if not body.name or not body.type or not body.faculty_ids:
        raise ValidationError("Name, type, and faculty_ids (array) are required.")

    db = get_supabase()

    existing_subject = (
        db.table("subjects")
        .select("id")
        .eq("subject_code", body.subject_code)
        .eq("department_id", department_id)
        .limit(1)
        .execute()
    )
    if existing_subject.data:
        raise ConflictError("A subject with this code already exists in your department.")

    subject = inserted_row(db.table("subjects").insert({
        "name": body.name,
        "subject_code": body.subject_code,
        "type": body.type,
        "department_id": department_id,
        "class_id": None,
    }).execute(), "subjects")
    subject_id = subject["id"]

    offering = inserted_row(db.table("department_offered_subjects").insert({
        "subject_id": subject_id,
        "department_id": department_id,
        "faculty_ids": body.faculty_ids,
        "semester": body.semester,
        "year": body.year,
    }).execute(), "department_offered_subjects")

    mapped = (
        db.table("faculty_subjects")
        .select("faculty_id")
        .eq("subject_id", subject_id)
        .in_("faculty_id", body.faculty_ids)
        .execute()
    )
    already = {str(m["faculty_id"]) for m in mapped.data}
    mappings = []
    for faculty_id in body.faculty_ids:
        if str(faculty_id) in already:
            continue
        already.add(str(faculty_id))
        mappings.append({
            "faculty_id": faculty_id,
            "subject_id": subject_id,
            "class_id": None,
            "batch_id": None,
        })
    if mappings:
        db.table("faculty_subjects").insert(mappings).execute()

    return success_response(
        message=f'{body.type} subject "{body.name}" added successfully with {len(mappings)} faculty assigned.',
        data={
            "subject": subject,
            "department_offered_subject": offering,
            "faculty_subjects": mappings,
        },
    )
