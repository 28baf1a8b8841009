import hmac
from functools import wraps
from flask import g, jsonify, request, current_app

from models import db
from models.studio import MEMBER_ROLES, Membership
from models.class_instance import ClassInstance

STAFF_ROLES = ("teacher", "admin", "owner")


def get_membership(user_id: int, studio_id: int):
    return Membership.query.filter_by(user_id=user_id, studio_id=studio_id, status="active").first()


def require_studio_role(*role_names: str):
    """
    Usage: @require_studio_role("admin", "owner") on a route with <int:studio_id>.
    Sets g.studio_id and g.member_role.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            studio_id = kwargs.get("studio_id")
            membership = get_membership(user.id, studio_id)
            if not membership:
                return jsonify(error="Studio membership not found"), 404

            if membership.role not in role_names:
                return jsonify(error=f"Requires one of: {', '.join(role_names)}"), 403

            g.studio_id = studio_id
            g.member_role = membership.role
            return fn(*args, **kwargs)
        return wrapper
    return decorator


require_member = require_studio_role(*MEMBER_ROLES)
require_admin = require_studio_role("admin", "owner")
require_owner = require_studio_role("owner")


def require_class_staff(fn):
    """
    For /api/classes/<int:class_id>/... routes: the caller must be teacher,
    admin or owner of the studio that owns the class. Sets g.class_instance.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = getattr(g, "user", None)
        if user is None:
            return jsonify(error="Authentication required"), 401

        cls = db.session.get(ClassInstance, kwargs.get("class_id"))
        if not cls:
            return jsonify(error="Class instance not found"), 404

        membership = get_membership(user.id, cls.studio_id)
        if not membership:
            return jsonify(error="Not a member of this studio"), 403
        if membership.role not in STAFF_ROLES:
            return jsonify(error="Staff access required"), 403

        g.class_instance = cls
        g.studio_id = cls.studio_id
        g.member_role = membership.role
        return fn(*args, **kwargs)
    return wrapper


def require_platform_admin(fn):
    """Bearer <PLATFORM_ADMIN_KEY>, compared in constant time."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        admin_key = current_app.config.get("PLATFORM_ADMIN_KEY")
        header = request.headers.get("Authorization") or ""
        if not admin_key or not hmac.compare_digest(
            header.encode("utf-8"), f"Bearer {admin_key}".encode("utf-8")
        ):
            return jsonify(error="Invalid platform admin key"), 403
        return fn(*args, **kwargs)
    return wrapper
