"""Scheduled event blueprint."""

from flask import Blueprint

bp = Blueprint("event", __name__, url_prefix="/events")

from . import routes  # noqa: E402, F401
from .models import DateProposal, Invitation, ScheduledEvent  # noqa: E402
from .services import DateVotingService, InvitationService  # noqa: E402

__all__ = [
    "DateProposal",
    "DateVotingService",
    "Invitation",
    "InvitationService",
    "ScheduledEvent",
    "routes",
]
