import os
from zoneinfo import ZoneInfo


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL")
    DATABASE_NAME = os.getenv("DATABASE_NAME")
    PORT = int(os.getenv("PORT", 8000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Local zone for calendar days and slot times of day
    ACTIVITY_TIMEZONE = os.getenv("ACTIVITY_TIMEZONE", "Asia/Ho_Chi_Minh")
    ON_TIME_TOLERANCE_MINUTES = int(os.getenv("ON_TIME_TOLERANCE_MINUTES", 15))
    # Check-ins after the on-time window but within this many minutes are late yet acceptable
    LATE_WINDOW_MINUTES = int(os.getenv("LATE_WINDOW_MINUTES", 30))

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(Settings, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.ACTIVITY_TIMEZONE)


settings = Settings()
