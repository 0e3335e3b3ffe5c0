"""
Defaulter router — Fan out work (or a skip marker) to every defaulter
student of the class a subject is taught in.
"""

from fastapi import APIRouter, Depends, Response, status

from app.core.database import get_supabase
from app.core.exceptions import ValidationError
from app.core.security import require_role
from app.schemas.workflow import DefaulterWorkAssign
from app.services.defaulter import assign_defaulter_work
from app.utils.response import success_response

router = APIRouter(prefix="/api/defaulter", tags=["Defaulter"])


@router.post("/assign-defaulter-work")
async def assign_work(
    body: DefaulterWorkAssign,
    response: Response,
    user=Depends(require_role(["faculty", "hod", "class_teacher"])),
):
    if body.subject_id is None:
        raise ValidationError("subject_id is required.")

    total = assign_defaulter_work(
        get_supabase(),
        faculty_id=user.id,
        subject_id=body.subject_id,
        instruction_text=body.instruction_text,
        reference_link=body.reference_link,
        skip=body.skip,
    )

    if not total:
        return success_response(
            message="No defaulter students found for this class.",
            total_assigned=0,
        )

    response.status_code = status.HTTP_201_CREATED
    return success_response(
        message="Marked as skipped for all defaulter students." if body.skip
        else "Defaulter work assigned successfully.",
        total_assigned=total,
    )
