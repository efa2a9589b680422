"""
Доступ к данным расписания для генератора и аудита.

Генератор и проверка конфликтов работают только через протокол
TimetableStorage; SqlStorage реализует его поверх сессии SQLAlchemy.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Protocol, Sequence

from extensions import db
from models import (
    Teacher, SchoolClass, Subject, Availability, ClassSubjectRequirement, TimetableEntry,
)


class TimetableStorage(Protocol):
    def list_teachers(self) -> Sequence[Teacher]:
        ...

    def list_classes(self) -> Sequence[SchoolClass]:
        ...

    def list_subjects(self) -> Sequence[Subject]:
        ...

    def list_requirements(self, class_id: int) -> Dict[int, int]:
        ...

    def list_availability(self, teacher_id: int) -> Sequence[Availability]:
        ...

    def list_entries(self, class_id: Optional[int] = None) -> Sequence[TimetableEntry]:
        ...

    def create_entry(self, *, class_id: int, teacher_id: int, subject_id: int,
                     day: str, period: str) -> TimetableEntry:
        ...

    def clear_all_entries(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class SqlStorage:
    """Снимки упорядочены по id, чтобы порядок обхода был стабильным."""

    def __init__(self, session=None):
        self.session = session or db.session

    def list_teachers(self) -> List[Teacher]:
        return self.session.query(Teacher).order_by(Teacher.id.asc()).all()

    def list_classes(self) -> List[SchoolClass]:
        return self.session.query(SchoolClass).order_by(SchoolClass.id.asc()).all()

    def list_subjects(self) -> List[Subject]:
        return self.session.query(Subject).order_by(Subject.id.asc()).all()

    def list_requirements(self, class_id: int) -> Dict[int, int]:
        rows = self.session.query(ClassSubjectRequirement).filter_by(class_id=class_id).all()
        return {r.subject_id: r.periods_per_week for r in rows}

    def list_availability(self, teacher_id: int) -> List[Availability]:
        return (self.session.query(Availability)
                .filter_by(teacher_id=teacher_id)
                .order_by(Availability.id.asc())
                .all())

    def list_entries(self, class_id: Optional[int] = None) -> List[TimetableEntry]:
        q = self.session.query(TimetableEntry)
        if class_id is not None:
            q = q.filter_by(class_id=class_id)
        return q.order_by(TimetableEntry.id.asc()).all()

    def create_entry(self, *, class_id: int, teacher_id: int, subject_id: int,
                     day: str, period: str) -> TimetableEntry:
        # upsert по (class_id, day, period): последний записавший выигрывает
        entry = (self.session.query(TimetableEntry)
                 .filter_by(class_id=class_id, day=day, period=period)
                 .first())
        if entry is None:
            entry = TimetableEntry(class_id=class_id, day=day, period=period,
                                   teacher_id=teacher_id, subject_id=subject_id)
            self.session.add(entry)
        else:
            entry.teacher_id = teacher_id
            entry.subject_id = subject_id
        self.session.flush()
        return entry

    def clear_all_entries(self) -> None:
        self.session.query(TimetableEntry).delete(synchronize_session="fetch")
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
