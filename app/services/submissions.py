"""
Submission status marking with upsert semantics on
(student, subject, submission_type).
"""

import logging
from datetime import datetime, timezone

from supabase import Client

from app.core.exceptions import AuthorizationError, ValidationError

logger = logging.getLogger(__name__)

SUBMISSION_STATUSES = ("pending", "completed")


def mark_submission(
    db: Client,
    marked_by,
    student_id,
    subject_id,
    submission_type: str,
    status: str,
) -> bool:
    """Returns True when a new row was inserted, False when one was updated."""
    status = status.lower()
    if status not in SUBMISSION_STATUSES:
        raise ValidationError("Status must be 'pending' or 'completed'.")

    allowed = (
        db.table("faculty_subjects")
        .select("id")
        .eq("faculty_id", marked_by)
        .eq("subject_id", subject_id)
        .limit(1)
        .execute()
    )
    if not allowed.data:
        raise AuthorizationError("You are not authorized to mark submissions for this subject.")

    sub_type = (
        db.table("submission_types")
        .select("id")
        .eq("name", submission_type)
        .limit(1)
        .execute()
    )
    if not sub_type.data:
        raise ValidationError(f"Invalid submission_type: {submission_type}.")
    submission_type_id = sub_type.data[0]["id"]

    now = datetime.now(timezone.utc).isoformat()
    existing = (
        db.table("student_submissions")
        .select("id")
        .eq("student_id", student_id)
        .eq("subject_id", subject_id)
        .eq("submission_type_id", submission_type_id)
        .limit(1)
        .execute()
    )

    if existing.data:
        db.table("student_submissions").update({
            "status": status,
            "marked_by": marked_by,
            "marked_at": now,
        }).eq("id", existing.data[0]["id"]).execute()
        logger.debug("Submission %s updated to %s", existing.data[0]["id"], status)
        return False

    db.table("student_submissions").insert({
        "student_id": student_id,
        "subject_id": subject_id,
        "submission_type_id": submission_type_id,
        "status": status,
        "marked_by": marked_by,
        "marked_at": now,
    }).execute()
    return True
