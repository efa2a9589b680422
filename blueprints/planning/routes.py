# blueprints/planning/routes.py
from __future__ import annotations
from typing import Annotated, Dict, Optional

from flask import Blueprint, request, jsonify
from pydantic import BaseModel, Field, ValidationError

from storage import SqlStorage
from .services import generate_timetable, PreconditionError

api_bp = Blueprint("planning_api", __name__)


class GenerateIn(BaseModel):
    # { class_id: { subject_id: уроков в неделю } }, ключи JSON приходят строками
    requirements: Optional[Dict[int, Dict[int, Annotated[int, Field(ge=0)]]]] = None


@api_bp.post("/timetable/generate")
def generate():
    payload = request.get_json(silent=True) or {}
    try:
        parsed = GenerateIn.model_validate(payload)
    except ValidationError as ve:
        return jsonify({
            "ok": False,
            "errors": [{"code": "BAD_REQUEST", "details": ve.errors(include_url=False, include_context=False)}],
        }), 400

    try:
        result = generate_timetable(SqlStorage(), requirements_override=parsed.requirements)
    except PreconditionError as e:
        return jsonify({
            "ok": False,
            "errors": [{"code": "PRECONDITION_FAILED", "details": {"missing": e.missing}}],
        }), 400

    return jsonify({"ok": True, **result}), 200
