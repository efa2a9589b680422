"""
Idempotent seed-скрипт.
Запуск:
  python seed.py --reset      # дропнуть и пересоздать БД + демо-данные
  python seed.py --generate   # наполнить недостающее и сразу построить расписание
  python seed.py              # мягкое наполнение недостающих данных (idempotent)
"""
import argparse
import logging

from extensions import db
from models import (
    Teacher, SchoolClass, Subject, Availability, ClassSubjectRequirement,
)

log = logging.getLogger(__name__)

DEMO_SUBJECTS = [
    # name, color, lessons_per_week
    ("Mathematics", "#3b82f6", 0),
    ("English", "#10b981", 0),
    ("Physics", "#f59e0b", 0),
    ("History", "#ef4444", 0),
    ("Art", "#8b5cf6", 1),
]

DEMO_TEACHERS = [
    # name, email, предметы
    ("Alice Moreau", "alice@school.example", ["Mathematics", "Physics"]),
    ("Brian Okafor", "brian@school.example", ["English", "History"]),
    ("Chen Wei", "chen@school.example", ["Mathematics", "Art"]),
]

DEMO_CLASSES = [
    # name, grade, students, требования {предмет: уроков в неделю}
    ("7A", "7", 24, {"Mathematics": 5, "English": 4, "Physics": 2, "History": 2}),
    ("8B", "8", 27, {"Mathematics": 4, "English": 4, "Physics": 3, "History": 2, "Art": 1}),
]

# Brian не ведёт уроки в пятницу после обеда
DEMO_UNAVAILABLE = [
    ("Brian Okafor", "Friday", "13:00-14:00"),
    ("Brian Okafor", "Friday", "14:00-15:00"),
    ("Brian Okafor", "Friday", "15:00-16:00"),
]

def get_or_create(model, defaults=None, **filters):
    """Идемпотентное создание по уникальным ключам."""
    inst = db.session.query(model).filter_by(**filters).first()
    if inst:
        return inst, False
    data = dict(filters)
    if defaults:
        data.update(defaults)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True

def seed_demo() -> int:
    """Возвращает количество созданных объектов."""
    created = 0
    subjects = {}
    for name, color, per_week in DEMO_SUBJECTS:
        subjects[name], was_new = get_or_create(Subject, name=name,
                                                defaults={"color": color, "lessons_per_week": per_week})
        created += was_new

    teachers = {}
    for name, email, subj_names in DEMO_TEACHERS:
        t, was_new = get_or_create(Teacher, name=name, defaults={"email": email})
        if was_new:
            t.subjects = [subjects[s] for s in subj_names]
        teachers[name] = t
        created += was_new

    for name, grade, students, reqs in DEMO_CLASSES:
        c, was_new = get_or_create(SchoolClass, name=name,
                                   defaults={"grade": grade, "student_count": students})
        created += was_new
        for subj_name, per_week in reqs.items():
            _, was_new = get_or_create(ClassSubjectRequirement, class_id=c.id,
                                       subject_id=subjects[subj_name].id,
                                       defaults={"periods_per_week": per_week})
            created += was_new

    for teacher_name, day, period in DEMO_UNAVAILABLE:
        _, was_new = get_or_create(Availability, teacher_id=teachers[teacher_name].id, day=day, period=period,
                                   defaults={"available": False})
        created += was_new

    db.session.commit()
    if created:
        log.info("demo data seeded", extra={"event": "demo_seeded"})
    return created

def main():
    from app import create_app
    from storage import SqlStorage
    from blueprints.planning.services import generate_timetable

    parser = argparse.ArgumentParser(description="Seed demo school data")
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    parser.add_argument("--generate", action="store_true", help="generate the timetable after seeding")
    args = parser.parse_args()

    app = create_app("dev")
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        created = seed_demo()
        print(f"Seed complete: {created} new rows")
        if args.generate:
            result = generate_timetable(SqlStorage())
            print(f"Timetable generated: {result['entries_created']} entries")

if __name__ == "__main__":
    main()
