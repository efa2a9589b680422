from __future__ import annotations
import logging
from typing import Any
from pydantic import ValidationError

from flask import abort, jsonify, request, url_for
from sqlalchemy.exc import IntegrityError

from . import bp
from .schemas import (
    AvailabilityIn, AvailabilityOut,
    ClassIn, ClassOut,
    RequirementIn, RequirementOut,
    SubjectIn, SubjectOut,
    TeacherIn, TeacherOut,
)
from extensions import db
from models import (
    Availability,
    ClassSubjectRequirement,
    SchoolClass,
    Subject,
    Teacher,
)

log = logging.getLogger(__name__)

# ----------------------- Helpers -----------------------
def ok(data: Any, status: int = 200):
    return jsonify(data), status

def created(location: str, data: Any):
    resp = jsonify(data)
    resp.status_code = 201
    resp.headers["Location"] = location
    return resp

def error(msg: str, status: int = 400, code: str | None = None, field: str | None = None):
    payload = {"error": msg}
    if code: payload["code"] = code
    if field: payload["field"] = field
    return jsonify(payload), status

def _handle_integrity_error(ex: IntegrityError):
    log.info("integrity error: %s", getattr(ex, "orig", ex))
    return error("Unique constraint violation", status=409, code="UNIQUE_CONSTRAINT")

def _pydantic_errors_safe(ve: ValidationError):
    errs = ve.errors(include_url=False)
    for e in errs:
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
    return errs

def _validation_error(ve: ValidationError):
    return jsonify({"error": "validation_error", "detail": _pydantic_errors_safe(ve)}), 422

def _commit():
    try:
        db.session.commit()
    except IntegrityError as ex:
        db.session.rollback()
        return _handle_integrity_error(ex)
    return None

def _teacher_out(t: Teacher) -> dict:
    return TeacherOut.model_validate({
        "id": t.id, "name": t.name, "email": t.email,
        "subjects": sorted(s.id for s in t.subjects),
    }).model_dump(mode="json")

def _class_out(c: SchoolClass) -> dict:
    return ClassOut.model_validate({
        "id": c.id, "name": c.name, "grade": c.grade, "student_count": c.student_count,
    }).model_dump(mode="json")

def _subject_out(s: Subject) -> dict:
    return SubjectOut.model_validate({
        "id": s.id, "name": s.name, "color": s.color, "lessons_per_week": s.lessons_per_week,
    }).model_dump(mode="json")

def _availability_out(a: Availability) -> dict:
    return AvailabilityOut.model_validate({
        "id": a.id, "teacher_id": a.teacher_id, "day": a.day, "period": a.period, "available": a.available,
    }).model_dump(mode="json")

def _requirement_out(r: ClassSubjectRequirement) -> dict:
    return RequirementOut.model_validate({
        "id": r.id, "class_id": r.class_id, "subject_id": r.subject_id,
        "periods_per_week": r.periods_per_week,
    }).model_dump(mode="json")

def _resolve_subjects(ids: list[int]) -> list[Subject] | None:
    if not ids:
        return []
    found = Subject.query.filter(Subject.id.in_(ids)).order_by(Subject.id.asc()).all()
    if len(found) != len(set(ids)):
        return None
    return found

# ---- Teachers ----
@bp.get("/teachers")
def api_teachers_list():
    rows = Teacher.query.order_by(Teacher.id.asc()).all()
    return ok([_teacher_out(t) for t in rows])

@bp.post("/teachers")
def api_teachers_create():
    try:
        parsed = TeacherIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    subjects = _resolve_subjects(parsed.subjects)
    if subjects is None:
        return error("Unknown subject id", code="SUBJECT_NOT_FOUND", field="subjects")
    t = Teacher(name=parsed.name.strip(), email=parsed.email, subjects=subjects)
    db.session.add(t)
    failed = _commit()
    if failed:
        return failed
    return created(url_for("directory.api_teachers_get", id=t.id), _teacher_out(t))

@bp.get("/teachers/<int:id>")
def api_teachers_get(id: int):
    t = db.session.get(Teacher, id) or abort(404)
    return ok(_teacher_out(t))

@bp.route("/teachers/<int:id>", methods=["PUT", "PATCH"])
def api_teachers_update(id: int):
    t = db.session.get(Teacher, id) or abort(404)
    try:
        parsed = TeacherIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    subjects = _resolve_subjects(parsed.subjects)
    if subjects is None:
        return error("Unknown subject id", code="SUBJECT_NOT_FOUND", field="subjects")
    t.name = parsed.name.strip()
    t.email = parsed.email
    t.subjects = subjects
    failed = _commit()
    if failed:
        return failed
    return ok(_teacher_out(t))

@bp.delete("/teachers/<int:id>")
def api_teachers_delete(id: int):
    t = db.session.get(Teacher, id) or abort(404)
    # доступность удаляется каскадом; записи расписания остаются
    db.session.delete(t)
    db.session.commit()
    return "", 204

# ---- Classes ----
@bp.get("/classes")
def api_classes_list():
    rows = SchoolClass.query.order_by(SchoolClass.id.asc()).all()
    return ok([_class_out(c) for c in rows])

@bp.post("/classes")
def api_classes_create():
    try:
        parsed = ClassIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    c = SchoolClass(name=parsed.name.strip(), grade=parsed.grade.strip(), student_count=parsed.student_count)
    db.session.add(c)
    failed = _commit()
    if failed:
        return failed
    return created(url_for("directory.api_classes_get", id=c.id), _class_out(c))

@bp.get("/classes/<int:id>")
def api_classes_get(id: int):
    c = db.session.get(SchoolClass, id) or abort(404)
    return ok(_class_out(c))

@bp.route("/classes/<int:id>", methods=["PUT", "PATCH"])
def api_classes_update(id: int):
    c = db.session.get(SchoolClass, id) or abort(404)
    try:
        parsed = ClassIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    c.name = parsed.name.strip()
    c.grade = parsed.grade.strip()
    c.student_count = parsed.student_count
    failed = _commit()
    if failed:
        return failed
    return ok(_class_out(c))

@bp.delete("/classes/<int:id>")
def api_classes_delete(id: int):
    c = db.session.get(SchoolClass, id) or abort(404)
    db.session.delete(c)
    db.session.commit()
    return "", 204

# ---- Subjects ----
@bp.get("/subjects")
def api_subjects_list():
    rows = Subject.query.order_by(Subject.id.asc()).all()
    return ok([_subject_out(s) for s in rows])

@bp.post("/subjects")
def api_subjects_create():
    try:
        parsed = SubjectIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    s = Subject(name=parsed.name.strip(), color=parsed.color, lessons_per_week=parsed.lessons_per_week)
    db.session.add(s)
    failed = _commit()
    if failed:
        return failed
    return created(url_for("directory.api_subjects_get", id=s.id), _subject_out(s))

@bp.get("/subjects/<int:id>")
def api_subjects_get(id: int):
    s = db.session.get(Subject, id) or abort(404)
    return ok(_subject_out(s))

@bp.route("/subjects/<int:id>", methods=["PUT", "PATCH"])
def api_subjects_update(id: int):
    s = db.session.get(Subject, id) or abort(404)
    try:
        parsed = SubjectIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    s.name = parsed.name.strip()
    s.color = parsed.color
    s.lessons_per_week = parsed.lessons_per_week
    failed = _commit()
    if failed:
        return failed
    return ok(_subject_out(s))

@bp.delete("/subjects/<int:id>")
def api_subjects_delete(id: int):
    s = db.session.get(Subject, id) or abort(404)
    db.session.delete(s)
    db.session.commit()
    return "", 204

# ---- Availability ----
@bp.get("/availability/<int:teacher_id>")
def api_availability_list(teacher_id: int):
    db.session.get(Teacher, teacher_id) or abort(404)
    rows = Availability.query.filter_by(teacher_id=teacher_id).order_by(Availability.id.asc()).all()
    return ok([_availability_out(a) for a in rows])

@bp.post("/availability")
def api_availability_set():
    try:
        parsed = AvailabilityIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    db.session.get(Teacher, parsed.teacher_id) or abort(404)

    # одна запись на (teacher_id, day, period): повторная установка перезаписывает
    av = Availability.query.filter_by(teacher_id=parsed.teacher_id, day=parsed.day, period=parsed.period).first()
    if av is None:
        av = Availability(teacher_id=parsed.teacher_id, day=parsed.day, period=parsed.period)
        db.session.add(av)
    av.available = parsed.available
    failed = _commit()
    if failed:
        return failed
    return ok(_availability_out(av))

# ---- Class subject requirements ----
@bp.get("/classes/<int:id>/requirements")
def api_requirements_list(id: int):
    db.session.get(SchoolClass, id) or abort(404)
    rows = (ClassSubjectRequirement.query.filter_by(class_id=id)
            .order_by(ClassSubjectRequirement.id.asc()).all())
    return ok([_requirement_out(r) for r in rows])

@bp.post("/classes/<int:id>/requirements")
def api_requirements_set(id: int):
    db.session.get(SchoolClass, id) or abort(404)
    try:
        parsed = RequirementIn.model_validate(request.get_json(silent=True) or {})
    except ValidationError as ve:
        return _validation_error(ve)
    if db.session.get(Subject, parsed.subject_id) is None:
        return error("Subject not found", code="SUBJECT_NOT_FOUND", field="subject_id")

    req = ClassSubjectRequirement.query.filter_by(class_id=id, subject_id=parsed.subject_id).first()
    if req is None:
        req = ClassSubjectRequirement(class_id=id, subject_id=parsed.subject_id)
        db.session.add(req)
    req.periods_per_week = parsed.periods_per_week
    failed = _commit()
    if failed:
        return failed
    return ok(_requirement_out(req))

@bp.delete("/classes/requirements/<int:id>")
def api_requirements_delete(id: int):
    req = db.session.get(ClassSubjectRequirement, id) or abort(404)
    db.session.delete(req)
    db.session.commit()
    return "", 204
