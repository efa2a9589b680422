# blueprints/constraints/services.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from models import DAYS, PERIODS, ConflictType
from storage import TimetableStorage
from blueprints.planning.slots import AvailabilityLookup, build_availability_lookup, is_unavailable

log = logging.getLogger(__name__)

GENERIC_TEACHER_LABEL = "Teacher"


@dataclass
class CheckError:
    code: str
    details: dict


class EntryValidationError(Exception):
    """Ручная запись нарушает правила квалификации, доступности или занятости."""

    def __init__(self, errors: List[CheckError]):
        self.errors = errors
        super().__init__(", ".join(e.code for e in errors))


@dataclass
class Conflict:
    type: ConflictType
    message: str
    day: str
    period: str
    teacher_id: Optional[int] = None
    class_id: Optional[int] = None
    subject_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"type": self.type.value, "message": self.message, "day": self.day, "period": self.period}
        for key in ("teacher_id", "class_id", "subject_id"):
            val = getattr(self, key)
            if val is not None:
                out[key] = val
        return out


# ===== аудит конфликтов =====
def _teacher_label(by_id: Dict[int, Any], teacher_id: int) -> str:
    t = by_id.get(teacher_id)
    return getattr(t, "name", None) or GENERIC_TEACHER_LABEL


def detect_conflicts(entries: Iterable[Any], teachers: Iterable[Any],
                     availability: AvailabilityLookup) -> List[Conflict]:
    """
    Два независимых прохода по записям, ничего не изменяет:
    1) двойное бронирование учителя: помечается второе и последующие
       вхождения одного (day, period), первое никогда;
    2) запись в слот, который учитель явно отметил недоступным.
    Сначала все находки первого прохода, затем второго, каждый в порядке записей.
    """
    entries = list(entries)
    by_id = {t.id: t for t in teachers}
    conflicts: List[Conflict] = []

    seen: Dict[int, set] = {}
    for e in entries:
        slots = seen.setdefault(e.teacher_id, set())
        key = (e.day, e.period)
        if key in slots:
            conflicts.append(Conflict(
                type=ConflictType.TEACHER_DOUBLE_BOOKING,
                message=f"{_teacher_label(by_id, e.teacher_id)} is double-booked",
                day=e.day, period=e.period, teacher_id=e.teacher_id, class_id=e.class_id,
            ))
        slots.add(key)

    for e in entries:
        if is_unavailable(availability, e.teacher_id, e.day, e.period):
            conflicts.append(Conflict(
                type=ConflictType.TEACHER_UNAVAILABLE,
                message=f"{_teacher_label(by_id, e.teacher_id)} is not available",
                day=e.day, period=e.period, teacher_id=e.teacher_id, class_id=e.class_id,
            ))

    return conflicts


def list_conflicts(storage: TimetableStorage) -> List[Conflict]:
    entries = storage.list_entries()
    teachers = storage.list_teachers()
    # доступность и у учителей, которых уже удалили, но записи остались
    teacher_ids = {t.id for t in teachers} | {e.teacher_id for e in entries}
    availability = build_availability_lookup(storage, sorted(teacher_ids))
    conflicts = detect_conflicts(entries, teachers, availability)
    log.debug("conflicts listed", extra={"event": "conflicts_listed", "conflicts": len(conflicts)})
    return conflicts


# ===== проверки ручной записи =====
def check_slot(day: str, period: str) -> List[CheckError]:
    errors: List[CheckError] = []
    if day not in DAYS:
        errors.append(CheckError(code="INVALID_DAY", details={"day": day}))
    if period not in PERIODS:
        errors.append(CheckError(code="INVALID_PERIOD", details={"period": period}))
    return errors


def check_references(storage: TimetableStorage, class_id: int, teacher_id: int, subject_id: int) -> List[CheckError]:
    errors: List[CheckError] = []
    if not any(c.id == class_id for c in storage.list_classes()):
        errors.append(CheckError(code="CLASS_NOT_FOUND", details={"class_id": class_id}))
    if not any(t.id == teacher_id for t in storage.list_teachers()):
        errors.append(CheckError(code="TEACHER_NOT_FOUND", details={"teacher_id": teacher_id}))
    if not any(s.id == subject_id for s in storage.list_subjects()):
        errors.append(CheckError(code="SUBJECT_NOT_FOUND", details={"subject_id": subject_id}))
    return errors


def check_qualification(teacher, subject_id: int) -> List[CheckError]:
    if teacher is None or subject_id in teacher.subject_ids:
        return []
    return [CheckError(
        code="TEACHER_NOT_QUALIFIED",
        details={"teacher_id": teacher.id, "subject_id": subject_id},
    )]


def check_availability(storage: TimetableStorage, teacher_id: int, day: str, period: str) -> List[CheckError]:
    for av in storage.list_availability(teacher_id):
        if av.day == day and av.period == period and not av.available:
            return [CheckError(
                code="TEACHER_NOT_AVAILABLE",
                details={"teacher_id": teacher_id, "day": day, "period": period},
            )]
    return []


def check_busy(storage: TimetableStorage, teacher_id: int, day: str, period: str,
               exclude_entry_id: Optional[int] = None) -> List[CheckError]:
    for e in storage.list_entries():
        if e.id == exclude_entry_id:
            continue
        if e.teacher_id == teacher_id and e.day == day and e.period == period:
            return [CheckError(code="TEACHER_BUSY", details={"entry_id": e.id, "class_id": e.class_id})]
    return []


def run_all_checks(storage: TimetableStorage, payload: dict, exclude_entry_id: Optional[int] = None) -> tuple[bool, list[CheckError]]:
    class_id = payload["class_id"]
    teacher_id = payload["teacher_id"]
    subject_id = payload["subject_id"]
    day = payload["day"]
    period = payload["period"]

    errors: list[CheckError] = []

    # 1) слот из сетки и существующие сущности
    errors += check_slot(day, period)
    errors += check_references(storage, class_id, teacher_id, subject_id)
    if errors:
        return False, errors

    teacher = next(t for t in storage.list_teachers() if t.id == teacher_id)

    # 2) квалификация
    errors += check_qualification(teacher, subject_id)

    # 3) доступность
    errors += check_availability(storage, teacher_id, day, period)

    # 4) учитель уже ведёт урок в этот слот
    errors += check_busy(storage, teacher_id, day, period, exclude_entry_id=exclude_entry_id)

    ok = len(errors) == 0
    return ok, errors


def validate_entry(storage: TimetableStorage, payload: dict, exclude_entry_id: Optional[int] = None) -> None:
    ok, errors = run_all_checks(storage, payload, exclude_entry_id=exclude_entry_id)
    if not ok:
        raise EntryValidationError(errors)
