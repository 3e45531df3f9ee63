import uuid

from sampledesk import audit, models
from sampledesk.services import stock
from sampledesk.tests.factories import create_production_item, create_sample_item


def _sample(client, **fields):
    item = create_production_item(client)
    return item, create_sample_item(client, item["id"], **fields)


def test_units_are_counted_not_stored(client):
    _, sample = _sample(client, color="BLACK", size="M")
    resp = client.post(
        "/api/inventory/units",
        json={"sample_item_id": sample["id"], "count": 3, "location": "SHOWROOM"},
    )
    assert resp.status_code == 201
    units = resp.json()
    assert len(units) == 3
    assert len({u["id"] for u in units}) == 3

    availability = client.get(f"/api/inventory/samples/{sample['id']}/availability").json()
    assert availability["total"] == 3
    assert availability["available_count"] == 3
    assert availability["by_status"]["AVAILABLE"] == 3

    moved = client.patch(f"/api/inventory/units/{units[0]['id']}", json={"status": "IN_USE"})
    assert moved.status_code == 200
    assert moved.json()["status"] == "IN_USE"

    availability = client.get(f"/api/inventory/samples/{sample['id']}/availability").json()
    assert availability["available_count"] == 2
    assert availability["by_status"]["IN_USE"] == 1

    client.patch(f"/api/inventory/units/{units[0]['id']}", json={"status": "AVAILABLE"})
    availability = client.get(f"/api/inventory/samples/{sample['id']}/availability").json()
    assert availability["available_count"] == 3


def test_delete_unit_reduces_total(client):
    _, sample = _sample(client)
    units = client.post("/api/inventory/units", json={"sample_item_id": sample["id"], "count": 2}).json()
    assert client.delete(f"/api/inventory/units/{units[0]['id']}").status_code == 204
    availability = client.get(f"/api/inventory/samples/{sample['id']}/availability").json()
    assert availability["total"] == 1
    assert client.delete(f"/api/inventory/units/{units[0]['id']}").status_code == 404


def test_update_missing_unit_is_not_found(client):
    resp = client.patch(f"/api/inventory/units/{uuid.uuid4()}", json={"status": "DAMAGED"})
    assert resp.status_code == 404


def test_unit_requires_existing_sample(client):
    resp = client.post("/api/inventory/units", json={"sample_item_id": str(uuid.uuid4())})
    assert resp.status_code == 409


def test_unit_status_and_location_are_validated(client):
    _, sample = _sample(client)
    bad_status = client.post(
        "/api/inventory/units", json={"sample_item_id": sample["id"], "status": "LOST"}
    )
    assert bad_status.status_code == 422
    bad_location = client.post(
        "/api/inventory/units", json={"sample_item_id": sample["id"], "location": "GARAGE"}
    )
    assert bad_location.status_code == 422


def test_production_item_availability_spans_variations(client):
    item = create_production_item(client)
    black = create_sample_item(client, item["id"], color="BLACK", size="S")
    white = create_sample_item(client, item["id"], color="WHITE", size="S")
    client.post(
        "/api/inventory/units",
        json={"sample_item_id": black["id"], "count": 2, "location": "STUDIO_B"},
    )
    client.post(
        "/api/inventory/units",
        json={"sample_item_id": white["id"], "count": 1, "location": "STUDIO_B", "status": "RESERVED"},
    )
    client.post("/api/inventory/units", json={"sample_item_id": white["id"]})

    resp = client.get(f"/api/inventory/production-items/{item['id']}/availability")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 4
    assert data["available_count"] == 3
    assert [g["location"] for g in data["locations"]] == ["STUDIO_B", None]
    studio = data["locations"][0]
    assert studio["total"] == 3
    assert studio["available"] == 2
    assert [c["color"] for c in studio["sizes"][0]["colors"]] == ["BLACK", "WHITE"]


def test_sample_detail_embeds_availability(client):
    item, sample = _sample(client, color="OLIVE")
    client.post("/api/inventory/units", json={"sample_item_id": sample["id"], "count": 2})
    detail = client.get(f"/api/inventory/samples/{sample['id']}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["production_item"]["id"] == item["id"]
    assert body["availability"]["total"] == 2
    assert body["requests"] == []


def test_missing_sample_availability_is_not_found(client):
    assert client.get(f"/api/inventory/samples/{uuid.uuid4()}/availability").status_code == 404
    assert client.get(f"/api/inventory/production-items/{uuid.uuid4()}/availability").status_code == 404


def test_single_unit_defaults(db, actor):
    item = models.ProductionItem(name="Trench", image_urls=[])
    db.add(item)
    db.flush()
    sample = models.SampleItem(production_item_id=item.id, image_urls=[])
    db.add(sample)
    db.flush()

    unit = stock.create_inventory_unit(db, sample.id, actor=actor)
    db.commit()

    assert unit.status == "AVAILABLE"
    assert unit.location is None
    assert unit.sample_item_id == sample.id
    assert stock.availability_for_sample(db, sample.id).total == 1
    trail = audit.events_for(db, "SampleInventory", unit.id)
    assert [e.action for e in trail] == ["CREATED"]
    assert trail[0].user_id == actor.user_id


def test_single_unit_route_returns_one_unit(client):
    _, sample = _sample(client)
    resp = client.post(
        "/api/inventory/units",
        json={"sample_item_id": sample["id"], "notes": "loose button"},
    )
    assert resp.status_code == 201
    units = resp.json()
    assert len(units) == 1
    assert units[0]["status"] == "AVAILABLE"
    assert units[0]["notes"] == "loose button"
