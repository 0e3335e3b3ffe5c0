"""
Pydantic schemas for academic structure management.
"""

from pydantic import BaseModel
from typing import List, Literal, Optional

from app.schemas.auth import RowId

SubjectType = Literal["theory", "practical"]


# ---- Department ----
class DepartmentCreate(BaseModel):
    name: str = ""


class HodAssign(BaseModel):
    user_id: Optional[RowId] = None
    department_id: Optional[RowId] = None


# ---- Class ----
class ClassCreate(BaseModel):
    name: str = ""
    year: Optional[RowId] = None
    class_teacher_id: Optional[RowId] = None


# ---- Batch ----
class BatchCreate(BaseModel):
    name: str = ""
    roll_start: Optional[str] = None
    roll_end: Optional[str] = None
    faculty_id: Optional[RowId] = None


# ---- Subject ----
class BatchFacultyAssignment(BaseModel):
    batch_id: Optional[RowId] = None
    faculty_id: Optional[RowId] = None


class SubjectAssign(BaseModel):
    class_id: Optional[RowId] = None
    department_id: Optional[RowId] = None
    subject_code: str = ""
    subject_name: str = ""
    type: Optional[SubjectType] = None
    faculty_id: Optional[RowId] = None                                   # theory
    faculty_assignments: Optional[List[BatchFacultyAssignment]] = None   # practical


class OfferedSubjectCreate(BaseModel):
    name: str = ""
    subject_code: Optional[str] = None
    type: str = ""
    faculty_ids: List[RowId] = []
    semester: Optional[int] = None
    year: Optional[RowId] = None
