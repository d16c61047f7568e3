"""Services for scheduled events."""

from .invitations import InvitationService
from .voting import DateVotingService

__all__ = ["DateVotingService", "InvitationService"]
