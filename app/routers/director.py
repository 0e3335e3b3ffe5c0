"""
Director router — Departments and HOD assignment.
"""

import logging

from fastapi import APIRouter, Depends, status

from app.core.database import get_supabase, inserted_row
from app.core.exceptions import NotFoundError, ValidationError
from app.core.middleware import same_id
from app.core.security import require_role
from app.schemas.academic import DepartmentCreate, HodAssign
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/director", tags=["Director"])


@router.get("/departments")
async def list_departments(user=Depends(require_role(["director"]))):
    db = get_supabase()
    departments = (
        db.table("departments")
        .select("id, name, created_at")
        .order("id")
        .execute()
    )
    hods = (
        db.table("users")
        .select("id, name, department_id, role")
        .eq("role", "hod")
        .execute()
    )

    formatted = []
    for dept in departments.data:
        hod = next((h for h in hods.data if same_id(h.get("department_id"), dept["id"])), None)
        formatted.append({
            "id": dept["id"],
            "name": dept["name"],
            "hod": hod["name"] if hod else None,
            "hod_id": hod["id"] if hod else None,
        })
    return success_response(departments=formatted)


@router.get("/hods")
async def list_hod_candidates(user=Depends(require_role(["director"]))):
    """Users who are, or could become, an HOD."""
    db = get_supabase()
    result = (
        db.table("users")
        .select("id, name, email, role")
        .in_("role", ["hod", "faculty"])
        .execute()
    )
    return success_response(hods=result.data)


@router.post("/departments", status_code=status.HTTP_201_CREATED)
async def create_department(
    body: DepartmentCreate,
    user=Depends(require_role(["director"])),
):
    name = body.name.strip()
    if not name:
        raise ValidationError("Department name is required")

    db = get_supabase()
    result = db.table("departments").insert({"name": name}).execute()
    return success_response(department=inserted_row(result, "departments"))


@router.post("/assign-hod")
async def assign_hod(
    body: HodAssign,
    user=Depends(require_role(["director"])),
):
    """
    Make a user the HOD of a department.
    Any previous HOD of that department loses the department reference first,
    so at most one HOD points at it afterwards. The two writes are not atomic.
    """
    if body.user_id is None or body.department_id is None:
        raise ValidationError("user_id and department_id are required")

    db = get_supabase()

    dept = db.table("departments").select("id, name").eq("id", body.department_id).limit(1).execute()
    if not dept.data:
        raise NotFoundError("Department not found")

    target = db.table("users").select("id, name, role").eq("id", body.user_id).limit(1).execute()
    if not target.data:
        raise NotFoundError("User not found")

    cleared = (
        db.table("users")
        .update({"department_id": None})
        .eq("department_id", body.department_id)
        .eq("role", "hod")
        .execute()
    )

    result = (
        db.table("users")
        .update({"role": "hod", "department_id": body.department_id})
        .eq("id", body.user_id)
        .execute()
    )

    logger.info(
        "HOD of department %s set to user %s (%d previous cleared)",
        body.department_id, body.user_id, len(cleared.data or []),
    )
    updated = [{k: v for k, v in u.items() if k != "password"} for u in result.data]
    return success_response(
        message="HOD assigned successfully",
        data=updated[0] if updated else None,
    )


@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: str,
    user=Depends(require_role(["director"])),
):
    """Detach every user from the department, then delete it. Not atomic."""
    db = get_supabase()
    db.table("users").update({"department_id": None}).eq("department_id", department_id).execute()
    db.table("departments").delete().eq("id", department_id).execute()
    logger.info("Department %s deleted", department_id)
    return success_response(message="Department deleted successfully")
