from datetime import datetime, timedelta

import pytest

from models import db
from models.class_instance import ClassInstance
from models.session import Session
from security.session import create_session


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_unknown_route_is_json(client):
    resp = client.get("/api/nowhere")

    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_unhandled_error_is_json_500(client, studio, owner, auth_header, monkeypatch):
    import routes.schedule as schedule_routes

    def boom(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(schedule_routes, "generate_class_instances", boom)

    resp = client.post(f"/api/studios/{studio.id}/generate-classes", json={}, headers=auth_header(owner))

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Internal server error"}


def test_expired_session_is_rejected(client, studio, owner, auth_header):
    headers = auth_header(owner)
    sess = Session.query.filter_by(user_id=owner.id).one()
    sess.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.session.commit()

    resp = client.post(f"/api/studios/{studio.id}/generate-classes", json={}, headers=headers)

    assert resp.status_code == 401


def test_idle_session_is_rejected(client, studio, owner, auth_header):
    headers = auth_header(owner)
    sess = Session.query.filter_by(user_id=owner.id).one()
    sess.last_seen_at = datetime.utcnow() - timedelta(hours=3)
    db.session.commit()

    resp = client.post(f"/api/studios/{studio.id}/generate-classes", json={}, headers=headers)

    assert resp.status_code == 401


def test_cli_generate_dry_run(app, studio, make_template):
    make_template()
    runner = app.test_cli_runner()

    result = runner.invoke(args=["generate-classes", str(studio.id), "--dry-run"])

    assert result.exit_code == 0
    assert "would be generated" in result.output


def test_cli_issue_token(app, owner):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["issue-token", owner.email])

    assert result.exit_code == 0
    assert Session.query.filter_by(user_id=owner.id).count() == 1


def test_cli_issue_token_marks_source(app, owner):
    app.test_cli_runner().invoke(args=["issue-token", owner.email])

    assert Session.query.filter_by(user_id=owner.id).one().source == "cli"


def test_cli_revoke_sessions(app, client, studio, owner, auth_header):
    headers = auth_header(owner)

    result = app.test_cli_runner().invoke(args=["revoke-sessions", owner.email])

    assert "Revoked 1 session(s)" in result.output
    resp = client.post(f"/api/studios/{studio.id}/generate-classes", json={}, headers=headers)
    assert resp.status_code == 401


def test_create_session_rejects_unknown_source(app, owner):
    with pytest.raises(ValueError):
        create_session(owner.id, source="magic-link")

    assert Session.query.count() == 0


def test_cli_generate_rejects_weeks_over_limit(app, studio, make_template):
    make_template()

    result = app.test_cli_runner().invoke(args=["generate-classes", str(studio.id), "--weeks", "5000"])

    assert "--weeks must be between 1 and 52" in result.output
    assert ClassInstance.query.count() == 0
