"""
Login-time scope resolution.

Turns a users/students row into the claims variant carried by the session
token. A staff account whose scope cannot be resolved is refused rather than
issued an unscoped token.
"""

import logging

from supabase import Client

from app.core.exceptions import ValidationError
from app.schemas.auth import (
    DirectorClaims, HodClaims, StaffClaims, StudentClaims, TokenClaims,
)

logger = logging.getLogger(__name__)

NO_CLASS_MESSAGE = (
    "No class assigned to this user. "
    "Please contact the administrator to assign you to a class."
)
NO_DEPARTMENT_MESSAGE = (
    "No department assigned to this HOD. "
    "Please contact the administrator to assign you to a department."
)


def find_class_for_staff(db: Client, user_id, role: str):
    """
    Class teachers (and faculty who are class teachers) resolve to the class
    they own. Other faculty fall back to the first class they teach in.
    """
    owned = (
        db.table("classes")
        .select("id")
        .eq("class_teacher_id", user_id)
        .limit(1)
        .execute()
    )
    if owned.data:
        return owned.data[0]["id"]

    if role != "faculty":
        return None

    taught = (
        db.table("faculty_subjects")
        .select("class_id")
        .eq("faculty_id", user_id)
        .execute()
    )
    for edge in taught.data or []:
        if edge.get("class_id") is not None:
            return edge["class_id"]
    return None


def resolve_staff_claims(db: Client, user: dict) -> TokenClaims:
    role = user.get("role")
    user_id = user["id"]

    if role in ("class_teacher", "faculty"):
        class_id = find_class_for_staff(db, user_id, role)
        if class_id is None:
            logger.warning("Login refused: no class for %s user %s", role, user_id)
            raise ValidationError(NO_CLASS_MESSAGE)
        return StaffClaims(id=user_id, role=role, class_id=class_id)

    if role == "hod":
        department_id = user.get("department_id")
        if department_id is None:
            logger.warning("Login refused: no department for HOD %s", user_id)
            raise ValidationError(NO_DEPARTMENT_MESSAGE)
        return HodClaims(id=user_id, department_id=department_id)

    if role == "director":
        return DirectorClaims(id=user_id)

    logger.error("User %s has unknown role %r", user_id, role)
    raise ValidationError(f"Unsupported role: {role}")


def student_claims(student: dict) -> StudentClaims:
    return StudentClaims(
        id=student["id"],
        class_id=student.get("class_id"),
        batch_id=student.get("batch_id"),
    )
