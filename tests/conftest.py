import itertools

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.booking import Booking
from models.class_instance import ClassInstance
from models.class_template import ClassTemplate
from models.studio import Membership, Studio
from models.user import User
from security.session import create_session

_seq = itertools.count(1)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(name="Member", email=None):
        n = next(_seq)
        user = User(email=email or f"user{n}@example.com", name=name)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def studio(app):
    s = Studio(name="Kiln & Co", slug=f"kiln-{next(_seq)}", timezone="America/New_York",
               email="hello@kiln.example", location="12 Clay St")
    db.session.add(s)
    db.session.commit()
    return s


@pytest.fixture
def add_member(app):
    def _add(user, studio, role="member", notes=None):
        m = Membership(user_id=user.id, studio_id=studio.id, role=role, notes=notes)
        db.session.add(m)
        db.session.commit()
        return m
    return _add


@pytest.fixture
def auth_header(app):
    def _header(user):
        return {"Authorization": f"Bearer {create_session(user.id)}"}
    return _header


@pytest.fixture
def owner(make_user, add_member, studio):
    user = make_user(name="Olive Owner")
    add_member(user, studio, role="owner")
    return user


@pytest.fixture
def teacher(make_user, add_member, studio):
    user = make_user(name="Terry Teacher")
    add_member(user, studio, role="teacher")
    return user


@pytest.fixture
def make_template(app, studio):
    def _make(**kwargs):
        fields = dict(
            studio_id=studio.id,
            name="Wheel Throwing",
            day_of_week=2,
            start_time="18:00",
            duration_min=90,
            max_capacity=8,
            recurrence="weekly",
            active=True,
        )
        fields.update(kwargs)
        t = ClassTemplate(**fields)
        db.session.add(t)
        db.session.commit()
        return t
    return _make


@pytest.fixture
def make_instance(app, studio):
    def _make(template=None, date="2026-03-10", status="scheduled", **kwargs):
        fields = dict(
            template_id=template.id if template else None,
            studio_id=studio.id,
            teacher_id=template.teacher_id if template else None,
            date=date,
            start_time=template.start_time if template else "18:00",
            end_time="19:30:00",
            status=status,
            max_capacity=template.max_capacity if template else None,
        )
        fields.update(kwargs)
        inst = ClassInstance(**fields)
        db.session.add(inst)
        db.session.commit()
        return inst
    return _make


@pytest.fixture
def book(app):
    def _book(user, instance, status="booked"):
        b = Booking(class_instance_id=instance.id, user_id=user.id, status=status)
        db.session.add(b)
        db.session.commit()
        return b
    return _book
