# blueprints/constraints/routes.py
from flask import Blueprint, request, jsonify
from pydantic import BaseModel, Field, ValidationError

from storage import SqlStorage
from .services import list_conflicts, run_all_checks

api_bp = Blueprint("constraints_api", __name__)


class CheckIn(BaseModel):
    # день и урок не сверяем с сеткой здесь: это делает check_slot (INVALID_DAY / INVALID_PERIOD)
    class_id: int = Field(ge=1)
    teacher_id: int = Field(ge=1)
    subject_id: int = Field(ge=1)
    day: str
    period: str


def normalize_errors(errors):
    """CheckError / dict -> список {"code", "details"}."""
    norm = []
    for e in (errors or []):
        if isinstance(e, dict):
            norm.append(e)
        else:
            norm.append({
                "code": getattr(e, "code", str(e)),
                "details": getattr(e, "details", None),
            })
    return norm


@api_bp.get("/conflicts")
def conflicts():
    found = list_conflicts(SqlStorage())
    return jsonify([c.to_dict() for c in found]), 200


@api_bp.post("/constraints/check")
def constraints_check():
    payload = request.get_json(silent=True) or {}
    try:
        parsed = CheckIn.model_validate(payload)
    except ValidationError as ve:
        return jsonify({"ok": False, "errors": [{"code": "BAD_REQUEST",
                                                 "details": ve.errors(include_url=False, include_context=False)}]}), 400

    exclude = request.args.get("exclude_entry_id", type=int)
    ok, errors = run_all_checks(SqlStorage(), parsed.model_dump(), exclude_entry_id=exclude)
    if ok:
        return jsonify({"ok": True, "errors": []}), 200
    # все бизнес-ошибки: 409
    return jsonify({"ok": False, "errors": normalize_errors(errors)}), 409
