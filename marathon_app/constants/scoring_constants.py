"""Point values shared by the scoring rules and the reading catalog."""

FULL_SCORE: int = 10
LATE_SCORE: int = 5
DEFAULT_BONUS_POINTS: int = 2
LEADERBOARD_DEFAULT_LIMIT: int = 10
