# blueprints/planning/services.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from storage import TimetableStorage
from .slots import AvailabilityLookup, build_availability_lookup, is_unavailable, shuffled_slots

log = logging.getLogger(__name__)

RequirementsMap = Dict[int, Dict[int, int]]  # class_id -> subject_id -> уроков в неделю


class PreconditionError(Exception):
    """Нельзя строить расписание без учителей, классов и предметов."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__("Cannot generate timetable without " + ", ".join(missing))


# ===== DTO =====
@dataclass
class ProposedEntry:
    class_id: int
    teacher_id: int
    subject_id: int
    day: str
    period: str


class PlanningStrategy(Protocol):
    def generate(self, teachers: Sequence[Any], classes: Sequence[Any], subjects: Sequence[Any],
                 requirements: Mapping[int, Mapping[int, int]], availability: AvailabilityLookup,
                 existing: Iterable[Any] = ()) -> List[ProposedEntry]:
        ...


# ===== требования =====
def resolve_requirements(storage: TimetableStorage, classes: Sequence[Any], subjects: Sequence[Any],
                         override: Optional[Mapping[Any, Mapping[Any, int]]] = None) -> RequirementsMap:
    """
    Для каждого класса: карта из запроса (если класс в ней есть) целиком
    заменяет сохранённые требования; иначе берём записи ClassSubjectRequirement.
    Предмет без записи не ставится (0 уроков).
    """
    override = {int(cid): {int(sid): int(n) for sid, n in (reqs or {}).items()}
                for cid, reqs in (override or {}).items()}
    out: RequirementsMap = {}
    for c in classes:
        if c.id in override:
            out[c.id] = dict(override[c.id])
            continue
        stored = storage.list_requirements(c.id)
        out[c.id] = {s.id: stored.get(s.id, 0) for s in subjects}
    return out


# ===== жадная стратегия =====
class GreedyGenerator:
    """
    Для каждого класса перемешивает 40 слотов недели и раздаёт их предметам
    по порядку. Слот расходуется, даже если учителя на него не нашлось.
    Берётся первый подходящий учитель: квалифицирован, не отмечен недоступным,
    не занят в этот слот.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng

    def generate(self, teachers, classes, subjects, requirements, availability, existing=()):
        busy_teacher = {(e.teacher_id, e.day, e.period) for e in existing}
        proposed: List[ProposedEntry] = []

        for c in classes:
            class_reqs = requirements.get(c.id) or {}
            slots = shuffled_slots(self.rng)
            slot_index = 0

            for subj in subjects:
                periods_per_week = class_reqs.get(subj.id, 0) or 0
                if periods_per_week <= 0:
                    continue

                for _ in range(periods_per_week):
                    if slot_index >= len(slots):
                        break
                    day, period = slots[slot_index]
                    slot_index += 1

                    teacher = self._pick_teacher(teachers, subj.id, day, period, availability, busy_teacher)
                    if teacher is None:
                        continue
                    proposed.append(ProposedEntry(
                        class_id=c.id, teacher_id=teacher.id, subject_id=subj.id,
                        day=day, period=period,
                    ))
                    busy_teacher.add((teacher.id, day, period))

        return proposed

    @staticmethod
    def _pick_teacher(teachers, subject_id, day, period, availability, busy_teacher):
        for t in teachers:
            if subject_id not in t.subject_ids:
                continue
            if is_unavailable(availability, t.id, day, period):
                continue
            if (t.id, day, period) in busy_teacher:
                continue
            return t
        return None


# ===== фасад генерации =====
def generate_timetable(storage: TimetableStorage, requirements_override: Optional[Mapping] = None,
                       rng: random.Random | None = None,
                       strategy: Optional[PlanningStrategy] = None) -> Dict[str, int]:
    """
    Полная пересборка: проверка справочников, очистка всех записей,
    генерация и сохранение. При PreconditionError база не трогается.
    """
    teachers = storage.list_teachers()
    classes = storage.list_classes()
    subjects = storage.list_subjects()

    missing = [name for name, rows in (("teachers", teachers), ("classes", classes), ("subjects", subjects))
               if not rows]
    if missing:
        log.warning("timetable generation rejected", extra={"event": "timetable_precondition_failed"})
        raise PreconditionError(missing)

    requirements = resolve_requirements(storage, classes, subjects, requirements_override)
    availability = build_availability_lookup(storage, [t.id for t in teachers])
    strategy = strategy or GreedyGenerator(rng)

    try:
        storage.clear_all_entries()
        # после очистки занятых слотов нет
        proposed = strategy.generate(teachers, classes, subjects, requirements, availability)
        for p in proposed:
            storage.create_entry(**asdict(p))
        storage.commit()
    except Exception:
        storage.rollback()
        raise

    created = len(storage.list_entries())
    log.info("timetable generated", extra={
        "event": "timetable_generated",
        "entries_created": created,
        "classes": len(classes),
    })
    return {"entries_created": created}
