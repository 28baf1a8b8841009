import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as studio.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "studio.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Platform-level key for POST /api/admin/generate-classes (Bearer token)
    PLATFORM_ADMIN_KEY = os.getenv("PLATFORM_ADMIN_KEY")

    # Class generation window
    DEFAULT_WEEKS_AHEAD = int(os.getenv("DEFAULT_WEEKS_AHEAD", "4"))
    # upper bound for weeksAhead on the generate endpoints and CLI
    MAX_WEEKS_AHEAD = int(os.getenv("MAX_WEEKS_AHEAD", "52"))

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = int(os.getenv("SESSION_LIFETIME_SECONDS", str(8 * 60 * 60)))

    # Idle timeout: 2 hours (staff keep the check-in screen open during class)
    IDLE_TIMEOUT_SECONDS = int(os.getenv("IDLE_TIMEOUT_SECONDS", str(2 * 60 * 60)))

    # Push notifications (Expo)
    PUSH_ENABLED = os.getenv("PUSH_ENABLED", "false").lower() == "true"
    EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
    EXPO_ACCESS_TOKEN = os.getenv("EXPO_ACCESS_TOKEN")
    PUSH_TIMEOUT_SECONDS = int(os.getenv("PUSH_TIMEOUT_SECONDS", "10"))

    # iCal export
    ICAL_PRODID = os.getenv("ICAL_PRODID", "-//Studio Co-op//Booking Engine//EN")
    ICAL_UID_DOMAIN = os.getenv("ICAL_UID_DOMAIN", "studiocoop")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    PLATFORM_ADMIN_KEY = "test-platform-key"
    PUSH_ENABLED = False
