from conftest import person_spec


def test_metrics_snapshot_endpoint_exists(client):
    # generate some traffic
    client.get("/api/v1/health/live")
    r = client.get("/api/v1/metrics/snapshot")
    assert r.status_code == 200
    body = r.json()
    assert "requests" in body
    assert isinstance(body["requests"], dict)


def test_generation_counters(client):
    client.post("/api/v1/generate", json=person_spec())
    client.post("/api/v1/generate", json={"name": "Broken", "versions": ["v1"], "items": [{"name": "a"}]})

    data = client.get("/metrics").json()
    assert data["containers_ok"] == 1
    assert data["containers_invalid"] == 1
    assert data["requests_total"] >= 2
