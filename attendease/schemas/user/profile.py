"""
Role-tagged user profile.

The profile is a discriminated union on ``role``: a student profile never
carries teacher fields and vice versa.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from attendease.schemas.common.base import CamelSchema

__all__ = [
    "BatchInfo",
    "TeachingAssignment",
    "StudentProfile",
    "TeacherProfile",
    "Profile",
]


class BatchInfo(CamelSchema):
    id: str
    code: str
    name: str


class TeachingAssignment(CamelSchema):
    enrollment_id: str
    subject_code: str
    subject_name: str
    batch_code: str
    semester: str


class StudentProfile(CamelSchema):
    role: Literal["STUDENT"] = "STUDENT"
    user_id: str
    email: str
    student_id: str = Field(..., description="Student profile id")
    student_code: str = Field(..., description="Institution roll number")
    first_name: str
    last_name: str
    phone: Optional[str] = None
    batch: Optional[BatchInfo] = None


class TeacherProfile(CamelSchema):
    role: Literal["TEACHER"] = "TEACHER"
    user_id: str
    email: str
    teacher_id: str = Field(..., description="Teacher profile id")
    employee_id: str
    first_name: str
    last_name: str
    department: Optional[str] = None
    phone: Optional[str] = None
    enrollments: List[TeachingAssignment] = Field(default_factory=list)


Profile = Annotated[Union[StudentProfile, TeacherProfile], Field(discriminator="role")]
