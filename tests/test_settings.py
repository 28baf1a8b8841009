from datetime import date

from models import db
from models.studio import Studio
from services.class_generator import generate_class_instances


def _url(studio):
    return f"/api/studios/{studio.id}/settings/closures"


def test_closures_start_empty(client, studio, owner, auth_header):
    resp = client.get(_url(studio), headers=auth_header(owner))

    assert resp.status_code == 200
    assert resp.get_json() == {"closureDates": []}


def test_update_closures_dedups_and_sorts(client, studio, owner, auth_header):
    resp = client.put(
        _url(studio),
        json={"closureDates": ["2026-12-25", "2026-03-10", "2026-12-25"]},
        headers=auth_header(owner),
    )

    assert resp.status_code == 200
    assert resp.get_json() == {"closureDates": ["2026-03-10", "2026-12-25"]}
    assert db.session.get(Studio, studio.id).settings["closureDates"] == ["2026-03-10", "2026-12-25"]


def test_update_closures_rejects_bad_dates(client, studio, owner, auth_header):
    resp = client.put(_url(studio), json={"closureDates": ["2026-02-30"]}, headers=auth_header(owner))

    assert resp.status_code == 400
    assert resp.get_json()["invalid"] == ["2026-02-30"]


def test_update_closures_requires_owner(client, studio, teacher, auth_header):
    resp = client.put(_url(studio), json={"closureDates": []}, headers=auth_header(teacher))
    assert resp.status_code == 403


def test_closures_feed_the_generator(client, studio, owner, auth_header, make_template):
    make_template()
    client.put(_url(studio), json={"closureDates": ["2026-03-10"]}, headers=auth_header(owner))

    assert generate_class_instances(studio.id, 4, today=date(2026, 3, 2)) == 3
