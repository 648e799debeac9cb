from flask import Blueprint

documents_bp = Blueprint("documents", __name__, url_prefix="/collections")

# import routes so they register on the blueprint
from . import routes  # noqa: E402,F401
