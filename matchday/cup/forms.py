"""Forms for the cup blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, NumberRange, Optional

SEEDING_CHOICES = [("random", "Random draw"), ("ranked", "Ranked by strength")]


def split_ids(raw):
    """Split a comma or newline separated id list, dropping blanks."""
    return [part.strip() for part in (raw or "").replace("\n", ",").split(",") if part.strip()]


class CupForm(FlaskForm):
    """Form for creating a cup."""

    name = StringField("Cup Name", validators=[DataRequired()])

    teams = TextAreaField("Team IDs", validators=[DataRequired()])

    seeding = SelectField(
        "Seeding",
        choices=SEEDING_CHOICES,
        validators=[DataRequired()],
        default="random",
    )

    start_date = DateField("Start Date", validators=[Optional()])

    max_players = IntegerField(
        "Max Players per Match", validators=[Optional(), NumberRange(min=1)]
    )

    group_id = StringField("Group", validators=[Optional()])


class StartCupForm(FlaskForm):
    """Form for starting a cup, optionally overriding its seeding."""

    seeding = SelectField(
        "Seeding",
        choices=[("", "Keep")] + SEEDING_CHOICES,
        default="",
    )


class RecordWinnerForm(FlaskForm):
    """Form for reporting the winner of a bracket match."""

    winner_id = StringField("Winner", validators=[DataRequired()])
