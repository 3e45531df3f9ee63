import uuid

from sampledesk.tests.factories import create_request, create_team, request_fixture


def test_create_and_update_team(client):
    team = create_team(client, name="Photo Studio", contact_email="shoots@example.com", is_internal=False)
    assert team["is_internal"] is False
    assert team["contact_email"] == "shoots@example.com"

    resp = client.patch(
        f"/api/teams/{team['id']}",
        json={"contact_phone": "555-0100", "contact_email": ""},
    )
    assert resp.status_code == 200
    assert resp.json()["contact_phone"] == "555-0100"
    assert resp.json()["contact_email"] is None
    assert resp.json()["name"] == "Photo Studio"


def test_invalid_email_is_rejected(client):
    resp = client.post("/api/teams/", json={"name": "Bad Mail", "contact_email": "not-an-email"})
    assert resp.status_code == 422


def test_list_searches_and_counts_requests(client):
    marker = uuid.uuid4().hex[:8]
    busy = create_team(client, name=f"Retail {marker}")
    create_team(client, name=f"Press {marker}", is_internal=False)
    request = request_fixture(client)
    create_request(client, request["sample_item_id"], busy["id"])
    create_request(client, request["sample_item_id"], busy["id"])

    resp = client.get("/api/teams/", params={"search": marker.upper()})
    assert resp.status_code == 200
    rows = {t["name"]: t for t in resp.json()}
    assert rows[f"Retail {marker}"]["request_count"] == 2
    assert rows[f"Press {marker}"]["request_count"] == 0

    external = client.get("/api/teams/", params={"search": marker, "is_internal": False}).json()
    assert [t["name"] for t in external] == [f"Press {marker}"]


def test_team_detail_lists_requests(client):
    request = request_fixture(client)
    detail = client.get(f"/api/teams/{request['team_id']}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["request_count"] == 1
    assert [r["id"] for r in body["requests"]] == [request["id"]]


def test_delete_guard(client):
    idle = create_team(client)
    assert client.delete(f"/api/teams/{idle['id']}").status_code == 204
    assert client.get(f"/api/teams/{idle['id']}").status_code == 404

    request = request_fixture(client)
    team_id = request["team_id"]
    before = client.get(f"/api/teams/{team_id}").json()
    resp = client.delete(f"/api/teams/{team_id}")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot delete team with existing requests"
    after = client.get(f"/api/teams/{team_id}").json()
    assert after == before


def test_missing_team_is_not_found(client):
    missing = uuid.uuid4()
    assert client.get(f"/api/teams/{missing}").status_code == 404
    assert client.patch(f"/api/teams/{missing}", json={"name": "x"}).status_code == 404
    assert client.delete(f"/api/teams/{missing}").status_code == 404
