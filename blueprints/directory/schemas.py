from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .validators import ensure_day, ensure_period, ensure_hex_color

# ---------- Teachers ----------
class TeacherIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    subjects: List[int] = Field(default_factory=list)  # id предметов, которые ведёт учитель

class TeacherOut(TeacherIn):
    id: int

# ---------- Classes ----------
class ClassIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    grade: str = Field(min_length=1, max_length=50)
    student_count: int = Field(ge=0, default=0)

class ClassOut(ClassIn):
    id: int

# ---------- Subjects ----------
class SubjectIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    color: str = "#3b82f6"
    lessons_per_week: int = Field(ge=0, default=0)

    @field_validator("color")
    @classmethod
    def check_color(cls, v: str) -> str:
        return ensure_hex_color(v)

class SubjectOut(SubjectIn):
    id: int

# ---------- Availability ----------
class AvailabilityIn(BaseModel):
    teacher_id: int
    day: str
    period: str
    available: bool = True

    @field_validator("day")
    @classmethod
    def check_day(cls, v: str) -> str:
        return ensure_day(v)

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        return ensure_period(v)

class AvailabilityOut(AvailabilityIn):
    id: int

# ---------- Class subject requirements ----------
class RequirementIn(BaseModel):
    subject_id: int
    periods_per_week: int = Field(ge=0, default=1)

class RequirementOut(RequirementIn):
    id: int
    class_id: int
