"""Routes for the event blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g

from matchday.auth.decorators import login_required
from matchday.cup.forms import split_ids
from matchday.utils import api_response, form_error_response

from . import bp
from .forms import InviteForm, ProposeDateForm, RespondForm
from .services import DateVotingService, InvitationService


@bp.route("/<string:event_id>/invite", methods=["POST"])
@login_required
def invite(event_id: str) -> Any:
    """Invite extra players to an event."""
    form = InviteForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    invited = InvitationService.invite_participants(
        event_id,
        g.user["uid"],
        split_ids(form.user_ids.data),
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
    )
    return api_response({"invited": invited}, f"{len(invited)} players invited.")


@bp.route("/<string:event_id>/respond", methods=["POST"])
@login_required
def respond(event_id: str) -> Any:
    """Answer the invitation of the logged-in participant."""
    form = RespondForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    result = InvitationService.respond(
        event_id,
        g.user["uid"],
        form.response.data,
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
    )
    if result["waitlisted"]:
        return api_response(result, "The match is full, you are on the waitlist.")
    return api_response(result, "Response saved.")


@bp.route("/<string:event_id>/waitlist/promote", methods=["POST"])
@login_required
def promote_waitlist(event_id: str) -> Any:
    """Fill open spots from the waitlist."""
    db = firestore.client()
    result = InvitationService.promote_from_waitlist(
        event_id,
        g.user["uid"],
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
    )
    return api_response(result, f"{len(result['promoted'])} players promoted.")


@bp.route("/<string:event_id>/invitations", methods=["GET"])
@login_required
def list_invitations(event_id: str) -> Any:
    """List every invitation of an event."""
    db = firestore.client()
    return api_response(InvitationService.list_invitations(event_id, db=db))


@bp.route("/<string:event_id>/proposals", methods=["POST"])
@login_required
def propose_date(event_id: str) -> Any:
    """Propose a new date and time."""
    form = ProposeDateForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    proposal_id = DateVotingService.propose(
        event_id, g.user["uid"], form.date.data, form.time.data, db=db
    )
    return api_response({"proposalId": proposal_id}, "Proposal created.", 201)


@bp.route("/<string:event_id>/proposals/<string:proposal_id>/vote", methods=["POST"])
@login_required
def vote(event_id: str, proposal_id: str) -> Any:
    """Toggle the logged-in participant's vote on a proposal."""
    db = firestore.client()
    result = DateVotingService.vote(
        event_id,
        proposal_id,
        g.user["uid"],
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
    )
    return api_response(result, "Vote saved." if result["voted"] else "Vote removed.")


@bp.route("/<string:event_id>/proposals", methods=["GET"])
@login_required
def list_proposals(event_id: str) -> Any:
    """List proposals, most voted first."""
    db = firestore.client()
    return api_response(DateVotingService.list_proposals(event_id, db=db))
