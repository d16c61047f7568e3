"""Forms for the event blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateField, SelectField, StringField, TimeField
from wtforms.validators import DataRequired


class RespondForm(FlaskForm):
    """Form for answering an event invitation."""

    response = SelectField(
        "Response",
        choices=[
            ("confirmed", "I'm in"),
            ("declined", "Can't make it"),
            ("maybe", "Maybe"),
        ],
        validators=[DataRequired()],
    )


class InviteForm(FlaskForm):
    """Form for inviting extra players to an event."""

    user_ids = StringField("Players", validators=[DataRequired()])


class ProposeDateForm(FlaskForm):
    """Form for proposing a new date and time."""

    date = DateField("Date", validators=[DataRequired()])

    time = TimeField("Time", validators=[DataRequired()])
