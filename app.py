from __future__ import annotations
import os
from flask import Flask
from config import config_map
from extensions import db, migrate
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_DEMO_DATA"):
        return
    with app.app_context():
        # таблицы может ещё не быть (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("teacher"):
            return

        from seed import seed_demo  # локальный импорт, чтобы избежать циклов
        seed_demo()

def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.directory import bp as directory_bp
    from blueprints.timetable.routes import api_bp as timetable_api_bp
    from blueprints.planning.routes import api_bp as planning_api_bp
    from blueprints.constraints.routes import api_bp as constraints_api_bp

    # core без префикса → '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api")
    app.register_blueprint(directory_bp, url_prefix="/api")
    app.register_blueprint(timetable_api_bp, url_prefix="/api")
    app.register_blueprint(planning_api_bp, url_prefix="/api")
    app.register_blueprint(constraints_api_bp, url_prefix="/api")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest всегда выставляет PYTEST_CURRENT_TEST: база в памяти, чтобы тесты не протекали друг в друга
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config["SEED_DEMO_DATA"] = False
    app.config.setdefault("WTF_CSRF_TIME_LIMIT", None)
    app.config.setdefault("WTF_CSRF_HEADERS", ["X-CSRF-Token", "X-CSRFToken"])

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    register_blueprints(app)
    _seed_from_config(app)
    return app
