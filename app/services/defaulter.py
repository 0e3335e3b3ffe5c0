"""
Defaulter work fan-out.

One defaulter_submissions row is created per defaulter student of the class
the faculty teaches the subject in. Repeated calls append new rows.
"""

import logging
from datetime import datetime, timezone

from supabase import Client

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

SKIPPED_TEXT = "Skipped by faculty"
DEFAULT_INSTRUCTION = "No instructions provided."


def find_class_for_subject(db: Client, faculty_id, subject_id):
    edges = (
        db.table("faculty_subjects")
        .select("class_id")
        .eq("faculty_id", faculty_id)
        .eq("subject_id", subject_id)
        .execute()
    )
    for edge in edges.data or []:
        if edge.get("class_id") is not None:
            return edge["class_id"]
    return None


def assign_defaulter_work(
    db: Client,
    faculty_id,
    subject_id,
    instruction_text: str | None = None,
    reference_link: str | None = None,
    skip: bool = False,
) -> int:
    """Returns the number of rows created."""
    class_id = find_class_for_subject(db, faculty_id, subject_id)
    if class_id is None:
        raise ValidationError("No class found for this faculty and subject.")

    defaulters = (
        db.table("students")
        .select("id")
        .eq("class_id", class_id)
        .eq("defaulter", True)
        .execute()
    )
    if not defaulters.data:
        return 0

    now = datetime.now(timezone.utc).isoformat()
    text = SKIPPED_TEXT if skip else (instruction_text or DEFAULT_INSTRUCTION)
    records = [
        {
            "student_id": s["id"],
            "subject_id": subject_id,
            "faculty_id": faculty_id,
            "submission_text": text,
            "reference_link": reference_link or None,
            "skip": bool(skip),
            "created_at": now,
        }
        for s in defaulters.data
    ]
    db.table("defaulter_submissions").insert(records).execute()

    logger.info(
        "Defaulter work %s for %d students (class %s, subject %s)",
        "skipped" if skip else "assigned", len(records), class_id, subject_id,
    )
    return len(records)
