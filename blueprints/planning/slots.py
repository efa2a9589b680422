# blueprints/planning/slots.py
from __future__ import annotations
import random
from typing import Dict, Iterable, List, Tuple

from models import DAYS, PERIODS
from storage import TimetableStorage

Slot = Tuple[str, str]                      # (day, period)
AvailabilityLookup = Dict[Tuple[int, str, str], bool]


def all_slots() -> List[Slot]:
    """Вся сетка недели в базовом порядке: день за днём, урок за уроком."""
    return [(day, period) for day in DAYS for period in PERIODS]


def shuffled_slots(rng: random.Random | None = None) -> List[Slot]:
    # Fisher–Yates
    rnd = rng or random
    slots = all_slots()
    for i in range(len(slots) - 1, 0, -1):
        j = rnd.randint(0, i)
        slots[i], slots[j] = slots[j], slots[i]
    return slots


def build_availability_lookup(storage: TimetableStorage, teacher_ids: Iterable[int]) -> AvailabilityLookup:
    lookup: AvailabilityLookup = {}
    for tid in teacher_ids:
        for av in storage.list_availability(tid):
            lookup[(tid, av.day, av.period)] = bool(av.available)
    return lookup


def is_unavailable(lookup: AvailabilityLookup, teacher_id: int, day: str, period: str) -> bool:
    # нет записи: учитель доступен
    return lookup.get((teacher_id, day, period)) is False
