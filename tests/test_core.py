from __future__ import annotations
import json
import logging
import re
from http.cookies import SimpleCookie

from app import create_app
from blueprints.core.routes import JSONFormatter

VISITOR_COOKIE = "visitor_id"
MAX_AGE = 60 * 60 * 24 * 180  # 180 дней

def _get_cookie_from_headers(headers, name: str):
    for raw in headers.getlist("Set-Cookie"):
        c = SimpleCookie()
        c.load(raw)
        morsel = c.get(name)
        if morsel is not None:
            return morsel
    return None

def test_health_ok():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health")
        assert rv.status_code == 200
        data = rv.get_json()
        assert data["status"] == "ok"
        assert "visitor_id" in data

def test_sets_visitor_id_cookie():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/health")
        assert rv.status_code == 200

        cookie = _get_cookie_from_headers(rv.headers, VISITOR_COOKIE)
        assert cookie is not None, "должен быть установлен visitor_id"
        assert re.fullmatch(r"[0-9a-f]{32}", cookie.value), "ожидаем uuid4 hex"
        assert cookie["max-age"] == str(MAX_AGE)

        # с тем же cookie новый не выдаём
        rv2 = c.get("/health", headers={"Cookie": f"{VISITOR_COOKIE}={cookie.value}"})
        assert rv2.get_json()["visitor_id"] == cookie.value
        cookie2 = _get_cookie_from_headers(rv2.headers, VISITOR_COOKIE)
        if cookie2:
            assert cookie2.value == cookie.value

def test_csrf_token_endpoint():
    app = create_app("test")
    with app.test_client() as c:
        rv = c.get("/api/csrf")
        assert rv.status_code == 200
        token = rv.get_json()["csrf"]
        assert token
        cookie = _get_cookie_from_headers(rv.headers, "csrf_token")
        assert cookie is not None and cookie.value == token

def test_json_formatter_includes_extra_keys():
    record = logging.LogRecord("timetable", logging.INFO, __file__, 1, "generated", None, None)
    record.event = "timetable_generated"
    record.entries_created = 12
    payload = json.loads(JSONFormatter().format(record))
    assert payload["msg"] == "generated"
    assert payload["level"] == "INFO"
    assert payload["event"] == "timetable_generated"
    assert payload["entries_created"] == 12
    assert payload["ts"].endswith("Z")
