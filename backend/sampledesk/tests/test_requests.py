import uuid

import pytest
from sqlalchemy.orm import Session

from sampledesk import models, schemas
from sampledesk.auth import ActorContext
from sampledesk.errors import StaleStatusError
from sampledesk.services import requests as request_service
from sampledesk.tests.factories import (
    create_production_item,
    create_request,
    create_sample_item,
    create_team,
    request_fixture,
)


def _move(client, request_id, status, **extra):
    return client.post(f"/api/requests/{request_id}/status", json={"status": status, **extra})


def test_denim_jacket_walkthrough(client):
    item = create_production_item(client, name="Denim Jacket X")
    sample = create_sample_item(
        client, item["id"], stage="PROTOTYPE", color="BLACK", size="M", revision="A"
    )
    units = client.post(
        "/api/inventory/units",
        json={"sample_item_id": sample["id"], "count": 3, "location": "STUDIO_A"},
    )
    assert units.status_code == 201
    team = create_team(client, name="Marketing")

    def available():
        resp = client.get(f"/api/inventory/samples/{sample['id']}/availability")
        return resp.json()["available_count"]

    request = create_request(client, sample["id"], team["id"], quantity=1)
    assert request["status"] == "REQUESTED"
    assert request["approved_at"] is None
    assert available() == 3

    approved = _move(client, request["id"], "APPROVED")
    assert approved.status_code == 200
    assert approved.json()["status"] == "APPROVED"
    assert approved.json()["approved_at"] is not None
    assert available() == 3

    rejected = _move(client, request["id"], "RETURNED")
    assert rejected.status_code == 422
    assert "APPROVED" in rejected.json()["detail"]
    assert client.get(f"/api/requests/{request['id']}").json()["status"] == "APPROVED"

    shipped = _move(client, request["id"], "SHIPPED")
    assert shipped.status_code == 200
    assert shipped.json()["shipped_at"] is not None
    assert available() == 3

    returned = _move(client, request["id"], "RETURNED")
    assert returned.status_code == 200
    body = returned.json()
    assert body["returned_at"] is not None
    assert body["approved_at"] == approved.json()["approved_at"]
    assert body["allowed_transitions"] == ["CLOSED"]
    assert available() == 3


def test_reentering_current_status_keeps_timestamp(client):
    request = request_fixture(client)
    first = _move(client, request["id"], "APPROVED").json()

    again = _move(client, request["id"], "APPROVED")
    assert again.status_code == 200
    assert again.json()["approved_at"] == first["approved_at"]

    shipped = _move(client, request["id"], "SHIPPED").json()
    assert shipped["approved_at"] == first["approved_at"]

    trail = client.get(f"/api/audit/SampleRequest/{request['id']}").json()
    status_events = [e for e in trail if e["action"] == "STATUS_CHANGED"]
    assert [e["metadata"] for e in status_events] == [
        {"from": "APPROVED", "to": "SHIPPED"},
        {"from": "REQUESTED", "to": "APPROVED"},
    ]


def test_closed_requests_cannot_move(client):
    request = request_fixture(client)
    assert _move(client, request["id"], "CLOSED").status_code == 200
    for status in ("REQUESTED", "APPROVED", "RETURNED"):
        assert _move(client, request["id"], status).status_code == 422
    transitions = client.get(f"/api/requests/{request['id']}/transitions").json()
    assert transitions == {"status": "CLOSED", "allowed": []}


def test_unknown_status_is_rejected_by_schema(client):
    request = request_fixture(client)
    assert _move(client, request["id"], "LOST").status_code == 422


def test_expected_status_mismatch_is_a_conflict(client):
    request = request_fixture(client)
    resp = _move(client, request["id"], "SHIPPED", expected_status="APPROVED")
    assert resp.status_code == 409
    ok = _move(client, request["id"], "APPROVED", expected_status="REQUESTED")
    assert ok.status_code == 200


def test_field_edits_do_not_touch_timestamps(client):
    request = request_fixture(client)
    approved = _move(client, request["id"], "APPROVED").json()

    resp = client.patch(
        f"/api/requests/{request['id']}",
        json={"quantity": 4, "shipping_method": "Courier", "notes": "Rush"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["quantity"] == 4
    assert body["shipping_method"] == "Courier"
    assert body["status"] == "APPROVED"
    assert body["approved_at"] == approved["approved_at"]
    assert body["shipped_at"] is None

    trail = client.get(f"/api/audit/SampleRequest/{request['id']}").json()
    assert trail[0]["action"] == "UPDATED"
    assert trail[0]["metadata"] == {"quantity": 4, "shipping_method": "Courier", "notes": "Rush"}


def test_status_and_fields_in_one_patch_write_both_events(client):
    request = request_fixture(client)
    resp = client.patch(
        f"/api/requests/{request['id']}",
        json={"status": "APPROVED", "shipping_address": "1 Loading Dock"},
    )
    assert resp.status_code == 200
    assert resp.json()["approved_at"] is not None
    actions = [e["action"] for e in client.get(f"/api/audit/SampleRequest/{request['id']}").json()]
    assert actions[:2] == ["UPDATED", "STATUS_CHANGED"]
    assert actions[-1] == "CREATED"


def test_invalid_quantity_is_rejected(client):
    request = request_fixture(client)
    assert client.patch(f"/api/requests/{request['id']}", json={"quantity": 0}).status_code == 422
    item = create_production_item(client)
    sample = create_sample_item(client, item["id"])
    team = create_team(client)
    resp = client.post(
        "/api/requests/",
        json={"sample_item_id": sample["id"], "team_id": team["id"], "quantity": 0},
    )
    assert resp.status_code == 422


def test_create_requires_existing_sample_and_team(client):
    item = create_production_item(client)
    sample = create_sample_item(client, item["id"])
    team = create_team(client)
    missing_team = client.post(
        "/api/requests/", json={"sample_item_id": sample["id"], "team_id": str(uuid.uuid4())}
    )
    assert missing_team.status_code == 409
    missing_sample = client.post(
        "/api/requests/", json={"sample_item_id": str(uuid.uuid4()), "team_id": team["id"]}
    )
    assert missing_sample.status_code == 409


def test_missing_request_is_not_found(client):
    missing = uuid.uuid4()
    assert client.get(f"/api/requests/{missing}").status_code == 404
    assert _move(client, missing, "APPROVED").status_code == 404


def test_stats_cover_every_status(client):
    before = client.get("/api/requests/stats").json()
    assert set(before["by_status"]) == {
        "REQUESTED",
        "APPROVED",
        "SHIPPED",
        "HANDED_OFF",
        "IN_USE",
        "RETURNED",
        "CLOSED",
    }
    first = request_fixture(client)
    request_fixture(client)
    _move(client, first["id"], "APPROVED")

    after = client.get("/api/requests/stats").json()
    assert after["total"] == before["total"] + 2
    assert after["by_status"]["REQUESTED"] == before["by_status"]["REQUESTED"] + 1
    assert after["by_status"]["APPROVED"] == before["by_status"]["APPROVED"] + 1


def test_list_filters_by_team_and_status(client):
    item = create_production_item(client)
    sample = create_sample_item(client, item["id"])
    team = create_team(client)
    first = create_request(client, sample["id"], team["id"])
    create_request(client, sample["id"], team["id"])
    _move(client, first["id"], "APPROVED")

    by_team = client.get("/api/requests/", params={"team_id": team["id"]}).json()
    assert len(by_team) == 2
    approved = client.get(
        "/api/requests/", params={"team_id": team["id"], "status": "APPROVED"}
    ).json()
    assert [r["id"] for r in approved] == [first["id"]]


def test_concurrent_status_change_is_detected(db):
    actor = ActorContext(user_id="coordinator-a")
    item = models.ProductionItem(name="Overshirt", image_urls=[])
    team = models.Team(name="Wholesale")
    db.add_all([item, team])
    db.flush()
    sample = models.SampleItem(production_item_id=item.id, image_urls=[])
    db.add(sample)
    db.flush()
    request = request_service.create_request(
        db,
        schemas.SampleRequestCreate(sample_item_id=sample.id, team_id=team.id),
        actor=actor,
    )
    db.commit()
    request_id = request.id

    assert request_service.get_request(db, request_id).status == "REQUESTED"

    other = Session(bind=db.get_bind())
    try:
        request_service.change_status(
            other, request_id, "APPROVED", actor=ActorContext(user_id="coordinator-b")
        )
        other.commit()
    finally:
        other.close()

    with pytest.raises(StaleStatusError):
        request_service.change_status(db, request_id, "CLOSED", actor=actor)
    db.rollback()

    assert request_service.get_request(db, request_id).status == "APPROVED"
