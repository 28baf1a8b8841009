from .db import db
from .user import User
from .studio import Studio, Membership
from .class_template import ClassTemplate
from .class_instance import ClassInstance
from .booking import Booking
from .attendance import Attendance
from .notification import Notification
from .push_token import PushToken
from .session import Session
from .audit_log import AuditLog
