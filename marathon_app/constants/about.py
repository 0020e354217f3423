"""Static metadata describing the marathon application."""

APP_NAME = "Reading Marathon"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Reading Marathon tracks a daily reading challenge: participants mark each "
    "day's reading complete, answer an optional quiz for bonus points, and "
    "compete on individual and group leaderboards."
)
