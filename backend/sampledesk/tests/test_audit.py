from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from sampledesk import audit, models
from sampledesk.tests.factories import create_production_item, create_sample_item


def test_trail_is_newest_first(client):
    item = create_production_item(client, name="Knit Polo")
    client.patch(f"/api/inventory/production-items/{item['id']}", json={"description": "Pique"})
    client.patch(f"/api/inventory/production-items/{item['id']}", json={"name": "Knit Polo II"})

    resp = client.get(f"/api/audit/ProductionItem/{item['id']}")
    assert resp.status_code == 200
    trail = resp.json()
    assert [e["action"] for e in trail] == ["UPDATED", "UPDATED", "CREATED"]
    assert trail[0]["metadata"] == {"name": "Knit Polo II"}
    assert trail[-1]["metadata"] == {"name": "Knit Polo"}
    assert {e["user_id"] for e in trail} == {"coordinator-1"}
    assert trail[0]["entity_type"] == "ProductionItem"


def test_rejected_mutation_leaves_no_event(client):
    item = create_production_item(client)
    sample = create_sample_item(client, item["id"], color="TEAL")
    dup = client.post(
        "/api/inventory/samples",
        json={"production_item_id": item["id"], "color": "TEAL"},
    )
    assert dup.status_code == 409
    trail = client.get(f"/api/audit/SampleItem/{sample['id']}").json()
    assert [e["action"] for e in trail] == ["CREATED"]


def test_deleted_entities_keep_their_trail(client):
    item = create_production_item(client)
    client.delete(f"/api/inventory/production-items/{item['id']}")
    trail = client.get(f"/api/audit/ProductionItem/{item['id']}").json()
    assert [e["action"] for e in trail] == ["DELETED", "CREATED"]


def test_report_counts_actions_per_actor(client):
    headers = {"X-Actor-Id": "auditor-42"}
    resp = client.post("/api/teams/", json={"name": "Audit Team"}, headers=headers)
    team_id = resp.json()["id"]
    client.patch(f"/api/teams/{team_id}", json={"shipping_address": "Dock 4"}, headers=headers)
    client.delete(f"/api/teams/{team_id}", headers=headers)

    now = datetime.now(timezone.utc)
    report = client.get(
        "/api/audit/report",
        params={
            "start": (now - timedelta(hours=1)).isoformat(),
            "end": (now + timedelta(hours=1)).isoformat(),
            "user_id": "auditor-42",
        },
    )
    assert report.status_code == 200
    counts = {row["action"]: row["count"] for row in report.json()}
    assert counts == {"CREATED": 1, "UPDATED": 1, "DELETED": 1}


def test_record_event_serializes_metadata(db, actor):
    item = models.ProductionItem(name="Service Tee", image_urls=[])
    db.add(item)
    db.flush()
    moment = datetime(2026, 3, 1, tzinfo=timezone.utc)
    event = audit.record_event(
        db,
        actor,
        "UPDATED",
        "ProductionItem",
        item.id,
        {"owner": item.id, "at": moment, "tags": ("a", "b")},
    )
    assert event.meta == {"owner": str(item.id), "at": moment.isoformat(), "tags": ["a", "b"]}
    assert audit.events_for(db, "ProductionItem", item.id)[0].id == event.id


def test_unknown_action_is_rejected(db, actor):
    item = models.ProductionItem(name="Audit Tee", image_urls=[])
    db.add(item)
    db.flush()
    with pytest.raises(IntegrityError):
        audit.record_event(db, actor, "ARCHIVED", "ProductionItem", item.id)
