from __future__ import annotations
from enum import Enum as PyEnum

from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, Integer, CheckConstraint
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db

# ---------- Weekly grid ----------
DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

# школьный день: восемь уроков по часу
PERIODS = (
    "8:00-9:00",
    "9:00-10:00",
    "10:00-11:00",
    "11:00-12:00",
    "12:00-13:00",
    "13:00-14:00",
    "14:00-15:00",
    "15:00-16:00",
)

# ---------- Enums ----------
class ConflictType(str, PyEnum):
    TEACHER_DOUBLE_BOOKING = "teacher_double_booking"
    TEACHER_UNAVAILABLE = "teacher_unavailable"
    UNASSIGNED_PERIOD = "unassigned_period"
    MISSING_SUBJECT = "missing_subject"


# ---------- Association Tables ----------
teacher_subjects = db.Table(
    "teacher_subjects",
    db.Column("teacher_id", db.Integer, db.ForeignKey("teacher.id", ondelete="CASCADE"), primary_key=True),
    db.Column("subject_id", db.Integer, db.ForeignKey("subject.id", ondelete="CASCADE"), primary_key=True),
    db.UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_subjects_pair"),
)


# ---------- Core Entities ----------
class Subject(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    color: Mapped[str] = mapped_column(db.String(7), nullable=False, default="#3b82f6")
    # 0 = предмет не ставится, если у класса нет явного требования
    lessons_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    requirements = relationship("ClassSubjectRequirement", back_populates="subject", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Subject {self.name}>"


class Teacher(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    email: Mapped[str] = mapped_column(db.String(255), nullable=False)

    subjects = relationship("Subject", secondary=teacher_subjects, backref="teachers", order_by="Subject.id")
    availabilities = relationship("Availability", back_populates="teacher", cascade="all, delete-orphan")

    @property
    def subject_ids(self) -> set[int]:
        return {s.id for s in self.subjects}

    def __repr__(self):
        return f"<Teacher {self.name}>"


class SchoolClass(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)
    grade: Mapped[str] = mapped_column(db.String(50), nullable=False)
    student_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    requirements = relationship("ClassSubjectRequirement", back_populates="school_class", cascade="all, delete-orphan")
    entries = relationship("TimetableEntry", back_populates="school_class", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SchoolClass {self.name}>"


class Availability(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    teacher_id: Mapped[int] = mapped_column(ForeignKey("teacher.id", ondelete="CASCADE"), nullable=False, index=True)
    day: Mapped[str] = mapped_column(db.String(16), nullable=False)
    period: Mapped[str] = mapped_column(db.String(16), nullable=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    teacher = relationship("Teacher", back_populates="availabilities")

    __table_args__ = (
        UniqueConstraint("teacher_id", "day", "period", name="uq_availability_teacher_slot"),
    )


class ClassSubjectRequirement(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    class_id: Mapped[int] = mapped_column(ForeignKey("school_class.id", ondelete="CASCADE"), nullable=False)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subject.id", ondelete="CASCADE"), nullable=False)
    periods_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    school_class = relationship("SchoolClass", back_populates="requirements")
    subject = relationship("Subject", back_populates="requirements")

    __table_args__ = (
        UniqueConstraint("class_id", "subject_id", name="uq_requirement_class_subject"),
        CheckConstraint("periods_per_week >= 0", name="ck_requirement_periods_non_negative"),
    )


class TimetableEntry(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    class_id: Mapped[int] = mapped_column(ForeignKey("school_class.id", ondelete="CASCADE"), nullable=False)
    # без FK: при удалении учителя/предмета записи остаются, аудит помечает их общим ярлыком
    teacher_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[str] = mapped_column(db.String(16), nullable=False)
    period: Mapped[str] = mapped_column(db.String(16), nullable=False)

    school_class = relationship("SchoolClass", back_populates="entries")

    __table_args__ = (
        UniqueConstraint("class_id", "day", "period", name="uq_entry_class_slot"),
        Index("ix_entry_teacher_slot", "teacher_id", "day", "period"),
        Index("ix_entry_subject", "subject_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "class_id": self.class_id,
            "teacher_id": self.teacher_id,
            "subject_id": self.subject_id,
            "day": self.day,
            "period": self.period,
        }
