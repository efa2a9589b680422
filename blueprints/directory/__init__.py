from flask import Blueprint

# url_prefix="/api" задаётся в app.register_blueprint
bp = Blueprint("directory", __name__)
from . import routes  # noqa
