from models import db
from models.class_template import ClassTemplate


def _url(studio, suffix=""):
    return f"/api/studios/{studio.id}/templates{suffix}"


def test_create_template(client, studio, owner, auth_header):
    resp = client.post(
        _url(studio),
        json={"name": " Hand Building ", "day_of_week": 3, "start_time": "10:00",
              "duration_min": 120, "max_capacity": 10, "recurrence": "biweekly"},
        headers=auth_header(owner),
    )

    assert resp.status_code == 201
    tpl = resp.get_json()["template"]
    assert tpl["name"] == "Hand Building"
    assert tpl["recurrence"] == "biweekly"
    assert tpl["active"] is True


def test_create_template_defaults_to_weekly(client, studio, owner, auth_header):
    resp = client.post(
        _url(studio),
        json={"name": "Open Studio", "day_of_week": 6, "start_time": "09:00", "duration_min": 180},
        headers=auth_header(owner),
    )
    assert resp.get_json()["template"]["recurrence"] == "weekly"


def test_create_template_validation(client, studio, owner, auth_header):
    headers = auth_header(owner)
    base = {"name": "Open Studio", "day_of_week": 6, "start_time": "09:00", "duration_min": 60}

    for patch in (
        {"duration_min": 10},
        {"duration_min": 241},
        {"day_of_week": 7},
        {"start_time": "9am"},
        {"recurrence": "daily"},
        {"max_capacity": 0},
    ):
        resp = client.post(_url(studio), json={**base, **patch}, headers=headers)
        assert resp.status_code == 400, patch

    assert ClassTemplate.query.count() == 0


def test_list_templates_hides_inactive(client, studio, owner, auth_header, make_template):
    make_template(name="Active")
    make_template(name="Retired", active=False)
    headers = auth_header(owner)

    active = client.get(_url(studio), headers=headers).get_json()["templates"]
    everything = client.get(_url(studio), query_string={"active": "false"}, headers=headers).get_json()["templates"]

    assert [t["name"] for t in active] == ["Active"]
    assert sorted(t["name"] for t in everything) == ["Active", "Retired"]


def test_update_template(client, studio, owner, auth_header, make_template):
    tpl = make_template()

    resp = client.put(_url(studio, f"/{tpl.id}"), json={"max_capacity": 4}, headers=auth_header(owner))

    assert resp.status_code == 200
    assert resp.get_json()["template"]["max_capacity"] == 4


def test_update_template_errors(client, studio, owner, auth_header, make_template):
    tpl = make_template()
    headers = auth_header(owner)

    missing = client.put(_url(studio, "/9999"), json={"name": "x"}, headers=headers)
    empty = client.put(_url(studio, f"/{tpl.id}"), json={"unknown": 1}, headers=headers)

    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Template not found"
    assert empty.status_code == 400
    assert empty.get_json()["error"] == "No valid fields to update"


def test_delete_template_is_soft(client, studio, owner, auth_header, make_template):
    tpl = make_template()

    resp = client.delete(_url(studio, f"/{tpl.id}"), headers=auth_header(owner))

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    assert db.session.get(ClassTemplate, tpl.id).active is False


def test_member_cannot_create_template(client, studio, make_user, add_member, auth_header):
    member = make_user()
    add_member(member, studio)

    resp = client.post(
        _url(studio),
        json={"name": "Open Studio", "day_of_week": 6, "start_time": "09:00", "duration_min": 60},
        headers=auth_header(member),
    )

    assert resp.status_code == 403
