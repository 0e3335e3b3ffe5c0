"""
Pydantic schemas for authentication and the session token payload.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

RowId = Union[int, str]

StaffRole = Literal["director", "hod", "class_teacher", "faculty"]


class UserRegister(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""
    role: Optional[StaffRole] = None
    department_id: Optional[RowId] = None


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class StudentLogin(BaseModel):
    hall_ticket_number: str = ""
    password: str = ""


# ---- Token claims ----
# One variant per role; the variant is chosen once at login and the token
# carries it unchanged.

class DirectorClaims(BaseModel):
    id: RowId
    role: Literal["director"] = "director"


class HodClaims(BaseModel):
    id: RowId
    role: Literal["hod"] = "hod"
    department_id: RowId


class StaffClaims(BaseModel):
    id: RowId
    role: Literal["class_teacher", "faculty"]
    class_id: RowId


class StudentClaims(BaseModel):
    id: RowId
    role: Literal["student"] = "student"
    class_id: Optional[RowId] = None
    batch_id: Optional[RowId] = None


TokenClaims = Annotated[
    Union[DirectorClaims, HodClaims, StaffClaims, StudentClaims],
    Field(discriminator="role"),
]

token_claims_adapter = TypeAdapter(TokenClaims)
