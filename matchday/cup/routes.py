"""Routes for the cup blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, g

from matchday.auth.decorators import login_required
from matchday.utils import api_response, form_error_response

from . import bp
from .forms import CupForm, RecordWinnerForm, StartCupForm, split_ids
from .services import CupService


@bp.route("/", methods=["POST"])
@login_required
def create_cup() -> Any:
    """Create a draft cup."""
    form = CupForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    start_date = form.start_date.data
    cup_id = CupService.create_cup(
        {
            "name": form.name.data,
            "teams": split_ids(form.teams.data),
            "seeding": form.seeding.data,
            "start_date": start_date.isoformat() if start_date else None,
            "max_players": form.max_players.data,
            "group_id": form.group_id.data or None,
        },
        g.user["uid"],
        db=db,
    )
    return api_response({"cupId": cup_id}, "Cup created.", 201)


@bp.route("/<string:cup_id>", methods=["GET"])
@login_required
def view_cup(cup_id: str) -> Any:
    """Show a cup and its bracket."""
    db = firestore.client()
    return api_response(CupService.get_cup(cup_id, db=db))


@bp.route("/<string:cup_id>/start", methods=["POST"])
@login_required
def start_cup(cup_id: str) -> Any:
    """Seed the bracket and open the cup."""
    form = StartCupForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    result = CupService.start_cup(
        cup_id,
        g.user["uid"],
        seeding=form.seeding.data or None,
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
        match_time=current_app.config["CUP_MATCH_TIME"],
    )
    return api_response(result, "Cup started.")


@bp.route("/<string:cup_id>/matches/<string:match_id>/winner", methods=["POST"])
@login_required
def record_winner(cup_id: str, match_id: str) -> Any:
    """Report the winner of a bracket match."""
    form = RecordWinnerForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    db = firestore.client()
    result = CupService.record_winner(
        cup_id,
        match_id,
        form.winner_id.data.strip(),
        db=db,
        max_attempts=current_app.config["TRANSACTION_MAX_ATTEMPTS"],
        match_time=current_app.config["CUP_MATCH_TIME"],
    )
    message = "Result already recorded." if result["replayed"] else "Result recorded."
    return api_response(result, message)
