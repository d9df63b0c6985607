from conftest import TODAY, YESTERDAY, make_order, make_task


def _seed(source):
    source.orders = [
        make_order(1, 10, make_task(1, YESTERDAY, member="Jamie")),
        make_order(2, 11, make_task(1, TODAY, done="2024-01-02T14:00:00Z")),
    ]
    source.sites = {10: {"address": "1 Main St", "city": "Springfield", "user": {"firstname": "Ada"}}}


def test_refresh_then_list_jobs(client, source):
    _seed(source)

    res = client.post("/refresh")
    assert res.status_code == 200
    body = res.json()
    assert body["refreshed"] == 2
    assert body["success"] is True

    res = client.get("/jobs")
    assert res.status_code == 200
    jobs = res.json()
    assert [j["id"] for j in jobs] == ["2-1", "1-1"]
    assert set(jobs[0]) == {
        "id", "orderId", "taskId", "siteId", "address", "photographer",
        "clientName", "status", "apptDate", "deliveryDate",
    }
    assert jobs[0]["status"] == "Delivered"
    assert jobs[0]["deliveryDate"].startswith("2024-01-02T14:00:00")
    assert jobs[1]["address"] == "1 Main St, Springfield"
    assert jobs[1]["clientName"] == "Ada"
    assert jobs[1]["photographer"] == "Jamie"
    assert jobs[1]["deliveryDate"] is None


def test_refresh_accepts_get(client, source):
    _seed(source)
    res = client.get("/refresh")
    assert res.status_code == 200
    assert res.json()["refreshed"] == 2


def test_refresh_failure_reports_zero_and_keeps_jobs(client, source):
    _seed(source)
    client.post("/refresh")

    source.fail_orders = True
    res = client.post("/refresh")
    assert res.status_code == 200
    assert res.json() == {"refreshed": 0, "success": False, "error_code": "source_unavailable"}
    assert len(client.get("/jobs").json()) == 2


def test_webhooks_always_acknowledge(client):
    res = client.post("/webhook/listingCreated", json={"orderId": 5, "taskId": 2, "siteId": 9})
    assert res.status_code == 200
    assert res.json() == {"ok": True}

    res = client.post("/webhook/listingDelivered", json={"orderId": 5, "taskId": 2})
    assert res.json() == {"ok": True}

    jobs = client.get("/jobs").json()
    assert len(jobs) == 1
    assert jobs[0]["id"] == "5-2" and jobs[0]["status"] == "Delivered"


def test_malformed_webhooks_are_acknowledged_and_ignored(client):
    assert client.post("/webhook/listingCreated", json={}).json() == {"ok": True}
    assert client.post("/webhook/listingDelivered", json={"orderId": 5}).json() == {"ok": True}
    res = client.post(
        "/webhook/listingCreated",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert client.post("/webhook/listingDelivered").json() == {"ok": True}

    assert client.get("/jobs").json() == []


def test_health_reports_counts(client, source):
    _seed(source)
    client.post("/refresh")

    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "healthy"
    assert body["jobs"] == 2
    assert body["cached_sites"] == 1
    assert body["last_refresh_success"] is True


def test_request_id_header_is_echoed(client):
    res = client.get("/jobs", headers={"X-Request-ID": "abc-123"})
    assert res.headers["X-Request-ID"] == "abc-123"
