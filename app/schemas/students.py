"""
Pydantic schemas for student records and student self-service.
"""

from pydantic import BaseModel
from typing import Optional, Union

from app.schemas.auth import RowId

Number = Union[int, float, str]


class StudentCreate(BaseModel):
    roll_no: str = ""
    name: str = ""
    hall_ticket_number: str = ""
    attendance_percent: Number = 0
    email: Optional[str] = None
    mobile: Optional[str] = None
    batch_id: Optional[RowId] = None


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    roll_no: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    attendance_percent: Optional[Number] = None
    hall_ticket_number: Optional[str] = None
    batch_id: Optional[RowId] = None
    defaulter: Optional[bool] = None   # explicit override


class ElectiveSelect(BaseModel):
    subject_id: Optional[RowId] = None
    faculty_id: Optional[RowId] = None
    type: str = ""
