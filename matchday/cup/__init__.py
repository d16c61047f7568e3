"""Cup blueprint."""

from flask import Blueprint

bp = Blueprint("cup", __name__, url_prefix="/cups")

from . import routes  # noqa: E402, F401
from .bracket import BracketEngine  # noqa: E402
from .models import BracketMatch, Cup  # noqa: E402
from .services import CupService  # noqa: E402

__all__ = ["BracketEngine", "BracketMatch", "Cup", "CupService", "routes"]
