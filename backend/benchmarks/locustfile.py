import uuid

from locust import HttpUser, task, between

class CoordinatorUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = {"X-Actor-Id": f"load-{uuid.uuid4().hex[:8]}", "X-Actor-Name": "Load Test"}
        item = self.client.post(
            "/api/inventory/production-items",
            json={"name": "bench jacket"},
            headers=self.headers,
        ).json()
        self.production_item_id = item["id"]
        sample = self.client.post(
            "/api/inventory/samples",
            json={"production_item_id": item["id"], "revision": uuid.uuid4().hex[:8]},
            headers=self.headers,
        ).json()
        self.sample_item_id = sample["id"]
        team = self.client.post("/api/teams/", json={"name": "bench team"}, headers=self.headers).json()
        self.team_id = team["id"]

    @task(3)
    def list_production_items(self):
        self.client.get("/api/inventory/production-items", headers=self.headers)

    @task(2)
    def availability(self):
        self.client.get(
            f"/api/inventory/production-items/{self.production_item_id}/availability",
            headers=self.headers,
        )

    @task(1)
    def add_unit(self):
        data = {"sample_item_id": self.sample_item_id, "location": "WAREHOUSE_A"}
        self.client.post("/api/inventory/units", json=data, headers=self.headers)

    @task(1)
    def request_and_approve(self):
        data = {"sample_item_id": self.sample_item_id, "team_id": self.team_id}
        r = self.client.post("/api/requests/", json=data, headers=self.headers)
        if r.status_code == 201:
            self.client.post(
                f"/api/requests/{r.json()['id']}/status",
                json={"status": "APPROVED"},
                headers=self.headers,
            )
