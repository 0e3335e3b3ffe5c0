"""
Submissions router — Mark a student's submission status per subject and type.
"""

from fastapi import APIRouter, Depends, Response, status

from app.core.database import get_supabase
from app.core.exceptions import ValidationError
from app.core.security import require_role
from app.schemas.workflow import SubmissionMark
from app.services.submissions import mark_submission
from app.utils.response import success_response

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])


@router.post("/mark-submission")
async def mark(
    body: SubmissionMark,
    response: Response,
    user=Depends(require_role(["faculty", "class_teacher", "hod"])),
):
    if body.student_id is None or body.subject_id is None or not body.submission_type or not body.status:
        raise ValidationError("student_id, subject_id, submission_type, and status are required.")

    created = mark_submission(
        get_supabase(),
        marked_by=user.id,
        student_id=body.student_id,
        subject_id=body.subject_id,
        submission_type=body.submission_type,
        status=body.status,
    )

    status_text = body.status.lower()
    if created:
        response.status_code = status.HTTP_201_CREATED
        return success_response(
            message=f"{body.submission_type} submission marked as {status_text} successfully."
        )
    return success_response(
        message=f"{body.submission_type} submission updated to {status_text} successfully."
    )


@router.get("/types")
async def list_types(user=Depends(require_role(["faculty", "class_teacher", "hod", "student"]))):
    db = get_supabase()
    result = db.table("submission_types").select("id, name").order("name").execute()
    return success_response(types=result.data)
