# blueprints/timetable/routes.py
from __future__ import annotations
from flask import Blueprint, abort, jsonify, request, url_for
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import TimetableEntry
from storage import SqlStorage
from blueprints.constraints.routes import normalize_errors
from blueprints.constraints.services import EntryValidationError, validate_entry
from .schemas import EntryIn

api_bp = Blueprint("timetable_api", __name__)


def _parse_entry():
    return EntryIn.model_validate(request.get_json(silent=True) or {})


@api_bp.errorhandler(ValidationError)
def handle_validation_error(ve: ValidationError):
    return jsonify({"error": "validation_error",
                    "detail": ve.errors(include_url=False, include_context=False)}), 422


@api_bp.errorhandler(EntryValidationError)
def handle_entry_validation_error(err: EntryValidationError):
    db.session.rollback()
    return jsonify({"ok": False, "errors": normalize_errors(err.errors)}), 409


@api_bp.get("/timetable")
def entries_list():
    class_id = request.args.get("class_id", type=int)
    rows = SqlStorage().list_entries(class_id=class_id)
    return jsonify([e.to_dict() for e in rows]), 200


@api_bp.get("/timetable/<int:id>")
def entries_get(id: int):
    e = db.session.get(TimetableEntry, id) or abort(404)
    return jsonify(e.to_dict()), 200


@api_bp.post("/timetable")
def entries_create():
    parsed = _parse_entry()
    storage = SqlStorage()
    validate_entry(storage, parsed.model_dump())

    # если у класса уже есть урок в этом слоте, перезаписываем его
    entry = storage.create_entry(**parsed.model_dump())
    storage.commit()
    resp = jsonify(entry.to_dict())
    resp.status_code = 201
    resp.headers["Location"] = url_for("timetable_api.entries_get", id=entry.id)
    return resp


@api_bp.route("/timetable/<int:id>", methods=["PUT", "PATCH"])
def entries_update(id: int):
    entry = db.session.get(TimetableEntry, id) or abort(404)
    parsed = _parse_entry()
    validate_entry(SqlStorage(), parsed.model_dump(), exclude_entry_id=id)

    for key, value in parsed.model_dump().items():
        setattr(entry, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        # у класса уже есть другой урок в этом слоте
        db.session.rollback()
        return jsonify({"ok": False, "errors": [{"code": "CLASS_SLOT_TAKEN",
                                                 "details": {"class_id": parsed.class_id,
                                                             "day": parsed.day, "period": parsed.period}}]}), 409
    return jsonify(entry.to_dict()), 200


@api_bp.delete("/timetable/<int:id>")
def entries_delete(id: int):
    entry = db.session.get(TimetableEntry, id) or abort(404)
    db.session.delete(entry)
    db.session.commit()
    return "", 204
