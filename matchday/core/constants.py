"""Global constants for the matchday application."""

# Collection names
CUPS_COLLECTION = "cups"
TEAMS_COLLECTION = "teams"
EVENTS_COLLECTION = "matches"
INVITATIONS_COLLECTION = "invitations"
DATE_PROPOSALS_COLLECTION = "dateProposals"

# Cup lifecycle
CUP_STATUS_DRAFT = "draft"
CUP_STATUS_IN_PROGRESS = "in_progress"
CUP_STATUS_COMPLETED = "completed"

SEEDING_RANDOM = "random"
SEEDING_RANKED = "ranked"
SEEDING_MODES = (SEEDING_RANDOM, SEEDING_RANKED)

# Bracket match states
MATCH_EMPTY = "empty"
MATCH_PENDING = "pending"
MATCH_DECIDED = "decided"

# Invitation responses
RESPONSE_PENDING = "pending"
RESPONSE_CONFIRMED = "confirmed"
RESPONSE_DECLINED = "declined"
RESPONSE_MAYBE = "maybe"
RESPONSES = (RESPONSE_CONFIRMED, RESPONSE_DECLINED, RESPONSE_MAYBE)

# Event counter field per response
RESPONSE_COUNTERS = {
    RESPONSE_CONFIRMED: "confirmedCount",
    RESPONSE_DECLINED: "declinedCount",
    RESPONSE_MAYBE: "maybeCount",
}

EVENT_TYPE_CUP = "cup"
EVENT_STATUS_UPCOMING = "upcoming"

# Transactions
DEFAULT_TRANSACTION_ATTEMPTS = 5
DEFAULT_CUP_MATCH_TIME = "19:00"

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
