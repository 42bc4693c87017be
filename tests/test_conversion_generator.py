import pytest

from schemaevo.core.actions import ContainerSpec, validate_container
from schemaevo.core.chain import build_item_chains
from schemaevo.core.conversion import (
    CopyExpr,
    DefaultExpr,
    Direction,
    FunctionExpr,
    NestedConvertExpr,
    VariantFallbackExpr,
    VariantMapExpr,
    generate_edge,
)
from schemaevo.core.errors import IrreversibleConversionError
from schemaevo.core.pipeline import generate_container


def _by_item(edge):
    return {e.item: e for e in edge.expressions}


def test_upgrade_edge_expressions(person):
    result = generate_container(person)
    edge = result.edge("v1alpha1", "v1beta1")
    assert edge.direction is Direction.UPGRADE
    assert edge.function_name == "upgrade_v1alpha1_to_v1beta1"

    exprs = _by_item(edge)
    assert exprs["username"] == CopyExpr(item="username", source="name", target="username")
    assert exprs["age"] == CopyExpr(item="age", source="age", target="age")
    assert exprs["email"] == DefaultExpr(
        item="email", target="email", type="str", value="unknown@example.com", has_value=True
    )
    assert exprs["deprecated_nickname"] == CopyExpr(item="deprecated_nickname", source="nickname", target="nickname")
    assert edge.dropped == ()


def test_downgrade_edge_drops_added_fields(person):
    result = generate_container(person)
    edge = result.edge("v1beta1", "v1alpha1")
    assert edge.direction is Direction.DOWNGRADE

    exprs = _by_item(edge)
    assert "email" not in exprs
    assert exprs["username"] == CopyExpr(item="username", source="username", target="name")
    assert [(d.item, d.source, d.json_path) for d in edge.dropped] == [("email", "email", ".email")]


def test_deprecation_edges_rename_both_ways(person):
    result = generate_container(person)
    up = _by_item(result.edge("v1beta1", "v1"))
    down = _by_item(result.edge("v1", "v1beta1"))
    assert up["deprecated_nickname"] == CopyExpr(
        item="deprecated_nickname", source="nickname", target="deprecated_nickname"
    )
    assert down["deprecated_nickname"] == CopyExpr(
        item="deprecated_nickname", source="deprecated_nickname", target="nickname"
    )


def test_every_adjacent_pair_gets_two_edges(person):
    result = generate_container(person)
    assert sorted(result.edges) == sorted(
        [("v1alpha1", "v1beta1"), ("v1beta1", "v1alpha1"), ("v1beta1", "v1"), ("v1", "v1beta1")]
    )


def test_type_change_uses_functions_or_nested_conversion():
    spec = ContainerSpec.model_validate(
        {
            "name": "Job",
            "versions": ["v1", "v2"],
            "items": [
                {
                    "name": "timeout",
                    "type": "int",
                    "changed": [
                        {
                            "since": "v2",
                            "from_type": "str",
                            "upgrade_with": "builtins.int",
                            "downgrade_with": "builtins.str",
                        }
                    ],
                },
                {"name": "retries", "type": "int", "changed": [{"since": "v2", "from_type": "float"}]},
                {"name": "spec", "type": "Inner", "nested": True},
            ],
        }
    )
    result = generate_container(spec)
    up = _by_item(result.edge("v1", "v2"))
    down = _by_item(result.edge("v2", "v1"))

    assert up["timeout"] == FunctionExpr(item="timeout", source="timeout", target="timeout", function="builtins.int")
    assert down["timeout"] == FunctionExpr(item="timeout", source="timeout", target="timeout", function="builtins.str")
    assert up["retries"] == NestedConvertExpr(
        item="retries", source="retries", target="retries", from_type="float", to_type="int"
    )
    assert isinstance(up["spec"], NestedConvertExpr)
    assert up["spec"].from_type == up["spec"].to_type == "Inner"


def test_enum_edges(color):
    result = generate_container(color)
    up = _by_item(result.edge("v1", "v2"))
    down = _by_item(result.edge("v2", "v1"))

    assert "Magenta" not in up
    assert up["Red"] == VariantMapExpr(item="Red", source="Red", target="Red")
    assert down["Magenta"] == VariantFallbackExpr(item="Magenta", source="Magenta", target="Red")
    assert down["Custom"] == VariantMapExpr(item="Custom", source="Custom", target="Custom")


def test_enum_variant_without_fallback_is_irreversible():
    spec = ContainerSpec.model_validate(
        {
            "name": "Color",
            "kind": "enum",
            "versions": ["v1", "v2"],
            "items": [{"name": "Red"}, {"name": "Cyan", "added": {"since": "v2"}}],
        }
    )
    with pytest.raises(IrreversibleConversionError) as exc:
        generate_container(spec)
    assert exc.value.item == "Cyan"
    assert exc.value.source_version == "v2"
    assert exc.value.target_version == "v1"


def test_enum_fallback_must_exist_in_older_version():
    spec = ContainerSpec.model_validate(
        {
            "name": "Color",
            "kind": "enum",
            "versions": ["v1", "v2"],
            "items": [{"name": "Red"}, {"name": "Cyan", "added": {"since": "v2", "downgrade_fallback": "Blue"}}],
        }
    )
    with pytest.raises(IrreversibleConversionError) as exc:
        generate_container(spec)
    assert "Blue" in exc.value.reason


def test_skip_from_on_a_version_skips_that_pair_only():
    spec = ContainerSpec.model_validate(
        {
            "name": "Foo",
            "versions": ["v1", {"name": "v2", "skip_from": True}, "v3"],
            "items": [{"name": "a", "type": "int"}],
        }
    )
    result = generate_container(spec)
    assert sorted(result.edges) == [("v1", "v2"), ("v2", "v1")]


def test_generate_edge_requires_adjacent_versions(person):
    validated = validate_container(person)
    chains = build_item_chains(validated)
    reg = validated.registry
    with pytest.raises(ValueError):
        generate_edge(validated, chains, reg.get("v1alpha1"), reg.get("v1"), Direction.UPGRADE)
