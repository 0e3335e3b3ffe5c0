"""
Pydantic schemas for defaulter work and submission tracking.
"""

from pydantic import BaseModel
from typing import Optional

from app.schemas.auth import RowId


# ---- Defaulter work ----
class DefaulterWorkAssign(BaseModel):
    subject_id: Optional[RowId] = None
    instruction_text: Optional[str] = None
    reference_link: Optional[str] = None
    skip: bool = False


# ---- Submissions ----
class SubmissionMark(BaseModel):
    student_id: Optional[RowId] = None
    subject_id: Optional[RowId] = None
    submission_type: str = ""
    status: str = ""
