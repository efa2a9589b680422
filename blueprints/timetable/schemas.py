from __future__ import annotations
from pydantic import BaseModel, Field, field_validator

from blueprints.directory.validators import ensure_day, ensure_period


class EntryIn(BaseModel):
    class_id: int = Field(ge=1)
    teacher_id: int = Field(ge=1)
    subject_id: int = Field(ge=1)
    day: str
    period: str

    @field_validator("day")
    @classmethod
    def check_day(cls, v: str) -> str:
        return ensure_day(v)

    @field_validator("period")
    @classmethod
    def check_period(cls, v: str) -> str:
        return ensure_period(v)
