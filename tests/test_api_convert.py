from conftest import person_spec

GROUP = "example.com"


def _person(**k8s):
    options = {"group": GROUP}
    options.update(k8s)
    return person_spec(k8s=options)


def _review(desired, *objects):
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "ConversionReview",
        "request": {"uid": "u-1", "desiredAPIVersion": f"{GROUP}/{desired}", "objects": list(objects)},
    }


def test_convert_review(client):
    obj = {"apiVersion": f"{GROUP}/v1alpha1", "kind": "Person", "spec": {"name": "ann", "age": 2}}
    r = client.post("/api/v1/convert", json={"container": _person(), "review": _review("v1", obj)})
    assert r.status_code == 200

    response = r.json()["response"]
    assert response["uid"] == "u-1"
    assert response["result"]["status"] == "Success"
    (converted,) = response["convertedObjects"]
    assert converted["apiVersion"] == f"{GROUP}/v1"
    assert converted["spec"] == {"username": "ann", "age": 2, "email": "unknown@example.com"}


def test_convert_failures_stay_inside_the_review(client):
    obj = {"apiVersion": "other.io/v1", "kind": "Person", "spec": {}}
    r = client.post("/api/v1/convert", json={"container": _person(), "review": _review("v1", obj)})
    assert r.status_code == 200
    result = r.json()["response"]["result"]
    assert result["status"] == "Failure"
    assert result["code"] == 400


def test_convert_needs_an_api_group(client):
    r = client.post("/api/v1/convert", json={"container": person_spec(), "review": _review("v1")})
    assert r.status_code == 400


def test_convert_tracks_values_when_enabled(client, monkeypatch):
    monkeypatch.setenv("SCHEMAEVO_TRACK_CONVERSIONS", "1")
    obj = {"apiVersion": f"{GROUP}/v1", "kind": "Person", "spec": {"username": "ann", "email": "a@b.c"}}
    r = client.post("/api/v1/convert", json={"container": _person(), "review": _review("v1alpha1", obj)})

    (converted,) = r.json()["response"]["convertedObjects"]
    assert converted["spec"] == {"name": "ann"}
    assert converted["status"]["changedValues"] == [{"jsonPath": ".email", "value": "a@b.c"}]


def test_convert_nested_containers(client):
    address = {
        "name": "Address",
        "versions": ["v1", "v2"],
        "items": [
            {"name": "street", "type": "str"},
            {"name": "zip", "type": "str", "added": {"since": "v2", "default_value": "00000"}},
        ],
    }
    customer = {
        "name": "Customer",
        "versions": ["v1", "v2"],
        "k8s": {"group": GROUP},
        "items": [{"name": "home", "type": "Address", "nested": True}],
    }
    obj = {"apiVersion": f"{GROUP}/v1", "kind": "Customer", "spec": {"home": {"street": "Main"}}}
    r = client.post(
        "/api/v1/convert",
        json={"container": customer, "nested": [address], "review": _review("v2", obj)},
    )
    (converted,) = r.json()["response"]["convertedObjects"]
    assert converted["spec"] == {"home": {"street": "Main", "zip": "00000"}}


def test_crd(client):
    r = client.post(
        "/api/v1/crd",
        json={"container": _person(), "storage_version": "v1beta1", "webhook_url": "https://hook.example.com"},
    )
    assert r.status_code == 200
    crd = r.json()
    assert crd["metadata"]["name"] == "persons.example.com"
    assert [v["name"] for v in crd["spec"]["versions"] if v["storage"]] == ["v1beta1"]
    assert crd["spec"]["conversion"]["strategy"] == "Webhook"


def test_crd_without_k8s_options(client):
    r = client.post("/api/v1/crd", json={"container": person_spec()})
    assert r.status_code == 400
    assert r.json()["detail"]["diagnostics"][0]["code"] == "k8s.missing_options"


def test_crd_with_undeclared_storage_version(client):
    r = client.post("/api/v1/crd", json={"container": _person(), "storage_version": "v3"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "UnknownVersionError"


def _job(upgrade_with, downgrade_with="builtins.str"):
    return {
        "name": "Job",
        "versions": ["v1", "v2"],
        "k8s": {"group": GROUP},
        "items": [
            {
                "name": "cmd",
                "type": "int",
                "changed": [
                    {"since": "v2", "from_type": "str", "upgrade_with": upgrade_with, "downgrade_with": downgrade_with}
                ],
            }
        ],
    }


def test_convert_refuses_functions_outside_the_allowlist(client, monkeypatch, tmp_path):
    monkeypatch.delenv("SCHEMAEVO_FUNCTION_MODULES", raising=False)
    marker = tmp_path / "marker"
    obj = {"apiVersion": f"{GROUP}/v1", "kind": "Job", "spec": {"cmd": f"touch {marker}"}}
    r = client.post("/api/v1/convert", json={"container": _job("os.system"), "review": _review("v2", obj)})

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["error"] == "ConversionError"
    assert "os.system" in detail["message"]
    assert not marker.exists()


def test_convert_imports_functions_from_allowed_modules(client, monkeypatch):
    monkeypatch.setenv("SCHEMAEVO_FUNCTION_MODULES", "builtins")
    obj = {"apiVersion": f"{GROUP}/v1", "kind": "Job", "spec": {"cmd": "42"}}
    r = client.post("/api/v1/convert", json={"container": _job("builtins.int"), "review": _review("v2", obj)})

    assert r.status_code == 200
    (converted,) = r.json()["response"]["convertedObjects"]
    assert converted["spec"] == {"cmd": 42}

    # A function that fails is reported inside the review.
    obj["spec"] = {"cmd": "abc"}
    r = client.post("/api/v1/convert", json={"container": _job("builtins.int"), "review": _review("v2", obj)})
    result = r.json()["response"]["result"]
    assert result["status"] == "Failure"
    assert result["code"] == 500


def test_convert_refuses_modules_that_only_share_a_prefix(client, monkeypatch):
    monkeypatch.setenv("SCHEMAEVO_FUNCTION_MODULES", "os.path")
    obj = {"apiVersion": f"{GROUP}/v1", "kind": "Job", "spec": {"cmd": "true"}}
    r = client.post("/api/v1/convert", json={"container": _job("os.system"), "review": _review("v2", obj)})
    assert r.status_code == 400
