from .health import health_bp
from .admin import admin_bp
from .schedule import schedule_bp
from .templates import templates_bp
from .settings import settings_bp
from .checkin import checkin_bp
from .booking import booking_bp
from .audit_logs import audit_bp
