"""
Fixed feed layout rules.

The results sheet is not a general CSV: a few columns are read by position
no matter what the header row says.
"""

FEED_DELIMITER = ","
QUOTE_CHAR = '"'

# Positional overrides, applied after the by-name fill
POSITION_COLUMN = 2
GRADE_COLUMN = 4
STATUS_COLUMN = 14

POSITIONAL_OVERRIDES = {
    "position": POSITION_COLUMN,
    "grade": GRADE_COLUMN,
    "status": STATUS_COLUMN,
}

# Status text that triggers auto-publication (compared case-insensitively)
PUBLISHED_STATUS = "published"

TEAM_NAMES = {
    "AR": "ALMARIA",
    "TD": "TOLIDO",
    "ZR": "ZARAGOZA",
}


def team_full_name(team_code: str) -> str:
    return TEAM_NAMES.get(team_code, team_code)
