"""
Auth router — Register staff, staff login, student login, current identity.

Rules:
- Staff log in by email, students by hall ticket number
- Tokens carry the role's scope (class or department), resolved at login
- A staff account whose scope cannot be resolved is refused
"""

import logging

from fastapi import APIRouter, Depends, status

from app.core.database import get_supabase
from app.core.exceptions import ConflictError, InvalidCredentials, ValidationError
from app.core.security import (
    create_access_token, get_current_user, get_password_hash, verify_password,
)
from app.schemas.auth import StudentLogin, TokenClaims, UserLogin, UserRegister
from app.services.scope import resolve_staff_claims, student_claims
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: UserRegister):
    if not all([body.name, body.email, body.password, body.role]):
        raise ValidationError("All fields are required.")

    db = get_supabase()

    existing = db.table("users").select("id").eq("email", body.email).limit(1).execute()
    if existing.data:
        raise ConflictError("User already exists.")

    result = db.table("users").insert({
        "name": body.name,
        "email": body.email,
        "password": get_password_hash(body.password),
        "role": body.role,
        "department_id": body.department_id,
    }).execute()

    created = [{k: v for k, v in u.items() if k != "password"} for u in result.data]
    logger.info("Registered %s account %s", body.role, body.email)
    return success_response(message="User registered successfully", data=created)


@router.post("/login")
async def login(body: UserLogin):
    """
    Staff login. Verifies the password, then resolves the scope claim:
    class for class_teacher/faculty, department for hod, none for director.
    """
    if not body.email or not body.password:
        raise ValidationError("Email and password are required.")

    db = get_supabase()
    result = db.table("users").select("*").eq("email", body.email).limit(1).execute()
    if not result.data:
        raise InvalidCredentials("Invalid credentials.")

    user = result.data[0]
    if not verify_password(body.password, user.get("password") or ""):
        raise InvalidCredentials("Invalid credentials.")

    claims = resolve_staff_claims(db, user)
    token = create_access_token(claims)

    return success_response(
        message="Login successful",
        token=token,
        user={
            "id": user["id"],
            "name": user.get("name"),
            "role": user["role"],
            "email": user.get("email"),
            "class_id": getattr(claims, "class_id", None),
            "department_id": getattr(claims, "department_id", None),
        },
    )


@router.post("/student/login")
async def student_login(body: StudentLogin):
    """Student login. The initial password is the hall ticket number itself."""
    if not body.hall_ticket_number or not body.password:
        raise ValidationError("Hall ticket number and password are required.")

    db = get_supabase()
    result = (
        db.table("students")
        .select("*")
        .eq("hall_ticket_number", body.hall_ticket_number)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise InvalidCredentials("Invalid hall ticket number or password.")

    student = result.data[0]
    if not verify_password(body.password, student.get("password") or ""):
        raise InvalidCredentials("Invalid hall ticket number or password.")

    token = create_access_token(student_claims(student))

    return success_response(
        message="Student login successful.",
        token=token,
        student={
            "id": student["id"],
            "name": student.get("name"),
            "roll_no": student.get("roll_no"),
            "hall_ticket_number": student.get("hall_ticket_number"),
            "email": student.get("email"),
            "mobile": student.get("mobile"),
            "class_id": student.get("class_id"),
            "batch_id": student.get("batch_id"),
            "defaulter": student.get("defaulter"),
        },
    )


@router.get("/me")
async def get_me(user: TokenClaims = Depends(get_current_user)):
    """Return the claims carried by the caller's token."""
    return success_response(user=user.model_dump())
