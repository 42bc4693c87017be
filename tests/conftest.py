import os

import pytest
from fastapi.testclient import TestClient

from schemaevo.api.main import app
from schemaevo.core.actions.models import ContainerSpec
from schemaevo.core.observability.metrics import reset_metrics


@pytest.fixture(scope="session", autouse=True)
def _force_test_env():
    # Make runtime behave deterministically in tests
    os.environ.setdefault("SCHEMAEVO_LOG_LEVEL", "WARNING")
    os.environ.pop("SCHEMAEVO_TRACK_CONVERSIONS", None)


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def client():
    return TestClient(app)


def person_spec(**overrides) -> dict:
    """v1alpha1 → v1beta1 → v1 struct exercising every action kind."""
    spec = {
        "name": "Person",
        "doc": "A person record.",
        "versions": ["v1alpha1", "v1beta1", {"name": "v1", "doc": "Stable."}],
        "items": [
            {"name": "username", "type": "str", "changed": [{"since": "v1beta1", "from_name": "name"}]},
            {"name": "age", "type": "int"},
            {"name": "email", "type": "str", "added": {"since": "v1beta1", "default_value": "unknown@example.com"}},
            {"name": "deprecated_nickname", "type": "str", "deprecated": {"since": "v1", "note": "use username"}},
        ],
    }
    spec.update(overrides)
    return spec


def color_spec(**overrides) -> dict:
    spec = {
        "name": "Color",
        "kind": "enum",
        "versions": ["v1", "v2"],
        "items": [
            {"name": "Red"},
            {"name": "Green"},
            {"name": "Magenta", "added": {"since": "v2", "downgrade_fallback": "Red"}},
            {"name": "Custom", "type": "str"},
        ],
    }
    spec.update(overrides)
    return spec


@pytest.fixture()
def person() -> ContainerSpec:
    return ContainerSpec.model_validate(person_spec())


@pytest.fixture()
def color() -> ContainerSpec:
    return ContainerSpec.model_validate(color_spec())
