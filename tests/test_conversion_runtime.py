import pytest

from schemaevo.core.actions import ContainerSpec
from schemaevo.core.conversion import (
    ConversionRuntime,
    ConversionTracker,
    FunctionRegistry,
    base_type,
    edge_functions,
    type_default,
)
from schemaevo.core.errors import ConversionError
from schemaevo.core.observability.metrics import snapshot_named
from schemaevo.core.pipeline import generate_container

ANN_V1 = {"username": "ann", "age": 30, "email": "ann@example.com", "deprecated_nickname": "annie"}


def test_downgrade_then_upgrade_restores_tracked_values(person):
    runtime = ConversionRuntime(generate_container(person))
    tracker = ConversionTracker()

    old = runtime.convert(ANN_V1, "v1", "v1alpha1", tracker=tracker)
    assert old == {"name": "ann", "age": 30, "nickname": "annie"}
    assert ".email" in tracker

    back = runtime.convert(old, "v1alpha1", "v1", tracker=tracker)
    assert back == ANN_V1
    assert len(tracker) == 0


def test_upgrade_without_tracker_uses_declared_default(person):
    runtime = ConversionRuntime(generate_container(person))
    new = runtime.convert({"name": "bob", "age": 4, "nickname": "b"}, "v1alpha1", "v1")
    assert new == {"username": "bob", "age": 4, "email": "unknown@example.com", "deprecated_nickname": "b"}


def test_conversions_compose(person):
    runtime = ConversionRuntime(generate_container(person))
    src = {"name": "c", "age": 1, "nickname": "cc"}
    direct = runtime.convert(src, "v1alpha1", "v1")
    stepwise = runtime.convert(runtime.convert(src, "v1alpha1", "v1beta1"), "v1beta1", "v1")
    assert direct == stepwise


def test_same_version_is_identity(person):
    runtime = ConversionRuntime(generate_container(person))
    assert runtime.convert(ANN_V1, "v1", "v1") == ANN_V1


def test_absent_members_stay_absent(person):
    runtime = ConversionRuntime(generate_container(person))
    assert runtime.convert({"name": "d"}, "v1alpha1", "v1beta1") == {"username": "d", "email": "unknown@example.com"}


def test_non_mapping_struct_instance_is_rejected(person):
    runtime = ConversionRuntime(generate_container(person))
    with pytest.raises(ConversionError):
        runtime.convert(["not", "a", "mapping"], "v1alpha1", "v1")


def test_conversion_metrics(person):
    runtime = ConversionRuntime(generate_container(person))
    runtime.convert({"name": "e"}, "v1alpha1", "v1")
    runtime.convert({"username": "e"}, "v1", "v1beta1")
    named = snapshot_named()
    assert named["conversions_upgrade"] == 2
    assert named["conversions_downgrade"] == 1


def _job_spec():
    return ContainerSpec.model_validate(
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
                {"name": "id", "type": "str", "added": {"since": "v2", "default": "make_id"}},
                {"name": "tags", "type": "List[str]", "added": {"since": "v2"}},
            ],
        }
    )


def test_functions_suppliers_and_coercion():
    functions = FunctionRegistry({"make_id": lambda: "job-1"})
    runtime = ConversionRuntime(generate_container(_job_spec()), functions)

    up = runtime.convert({"timeout": "30", "retries": 2.0}, "v1", "v2")
    assert up == {"timeout": 30, "retries": 2, "id": "job-1", "tags": []}

    down = runtime.convert(up, "v2", "v1")
    assert down == {"timeout": "30", "retries": 2.0}


def test_unresolvable_function_is_a_server_error():
    runtime = ConversionRuntime(generate_container(_job_spec()))
    with pytest.raises(ConversionError) as exc:
        runtime.convert({"timeout": "1", "retries": 1.0}, "v1", "v2")
    assert exc.value.http_status_code == 500


def test_function_registry_decorator_and_imports():
    functions = FunctionRegistry()

    @functions.register("double")
    def double(x):
        return x * 2

    assert functions.resolve("double")(2) == 4
    assert functions.resolve("json:dumps")([1]) == "[1]"
    assert functions.resolve("os.path.join")("a", "b").endswith("b")


def test_function_registry_allowlist():
    functions = FunctionRegistry({"make_id": lambda: "x"}, allowed_modules=["json"])
    assert functions.resolve("make_id")() == "x"
    assert functions.resolve("json:dumps")([1]) == "[1]"
    assert functions.resolve("json.decoder.JSONDecoder") is not None

    with pytest.raises(ConversionError) as exc:
        functions.resolve("os.system")
    assert exc.value.http_status_code == 400
    with pytest.raises(ConversionError):
        functions.resolve("jsonpickle.decode")

    closed = FunctionRegistry(allowed_modules=[])
    with pytest.raises(ConversionError) as exc:
        closed.resolve("builtins.int")
    assert "not allowed" in str(exc.value)


def test_failing_functions_become_conversion_errors():
    runtime = ConversionRuntime(generate_container(_job_spec()), FunctionRegistry({"make_id": lambda: 1 / 0}))
    with pytest.raises(ConversionError) as exc:
        runtime.convert({"timeout": "abc", "retries": 1.0}, "v1", "v2")
    assert exc.value.http_status_code == 500
    assert "builtins.int" in str(exc.value)

    with pytest.raises(ConversionError) as exc:
        runtime.convert({"timeout": "1", "retries": 1.0}, "v1", "v2")
    assert exc.value.http_status_code == 500
    assert "make_id" in str(exc.value)


def test_check_functions_reports_every_refused_name():
    result = generate_container(_job_spec())
    assert sorted(edge_functions(result.edges.values())) == ["builtins.int", "builtins.str", "make_id"]

    runtime = ConversionRuntime(result, FunctionRegistry(allowed_modules=()))
    with pytest.raises(ConversionError) as exc:
        runtime.check_functions()
    assert exc.value.http_status_code == 400
    assert "builtins.int" in str(exc.value)
    assert "make_id" in str(exc.value)

    allowed = FunctionRegistry({"make_id": str}, allowed_modules=["builtins"])
    ConversionRuntime(result, allowed).check_functions()


def _nested_specs():
    inner = ContainerSpec.model_validate(
        {
            "name": "Address",
            "versions": ["v1", "v2"],
            "items": [
                {"name": "street", "type": "str"},
                {"name": "zip", "type": "str", "added": {"since": "v2", "default_value": "00000"}},
            ],
        }
    )
    outer = ContainerSpec.model_validate(
        {
            "name": "Customer",
            "versions": ["v1", "v2"],
            "items": [
                {"name": "home", "type": "Address", "nested": True},
                {"name": "others", "type": "Address", "nested": True, "hint": "list"},
            ],
        }
    )
    return inner, outer


def test_nested_containers_follow_the_same_edge():
    inner, outer = _nested_specs()
    runtime = ConversionRuntime(generate_container(outer))
    runtime.register_nested(ConversionRuntime(generate_container(inner)))

    v1 = {"home": {"street": "Main"}, "others": [{"street": "A"}, {"street": "B"}]}
    v2 = runtime.convert(v1, "v1", "v2")
    assert v2 == {
        "home": {"street": "Main", "zip": "00000"},
        "others": [{"street": "A", "zip": "00000"}, {"street": "B", "zip": "00000"}],
    }

    tracker = ConversionTracker()
    modified = {"home": {"street": "Main", "zip": "12345"}, "others": []}
    down = runtime.convert(modified, "v2", "v1", tracker=tracker)
    assert down == {"home": {"street": "Main"}, "others": []}
    assert tracker.to_list() == [{"jsonPath": ".home.zip", "value": "12345"}]
    assert runtime.convert(down, "v1", "v2", tracker=tracker)["home"]["zip"] == "12345"


def test_nested_values_without_a_registered_runtime_pass_through():
    _, outer = _nested_specs()
    runtime = ConversionRuntime(generate_container(outer))
    assert runtime.convert({"home": None}, "v1", "v2") == {"home": None}
    assert runtime.convert({"home": {"street": "x"}}, "v1", "v2") == {"home": {"street": "x"}}


def test_changed_application_type_without_converter_fails():
    spec = ContainerSpec.model_validate(
        {
            "name": "Foo",
            "versions": ["v1", "v2"],
            "items": [{"name": "a", "type": "B", "changed": [{"since": "v2", "from_type": "A"}]}],
        }
    )
    with pytest.raises(ConversionError):
        ConversionRuntime(generate_container(spec)).convert({"a": {}}, "v1", "v2")


def test_registered_type_converter_is_used():
    spec = ContainerSpec.model_validate(
        {
            "name": "Foo",
            "versions": ["v1", "v2"],
            "items": [{"name": "a", "type": "B", "changed": [{"since": "v2", "from_type": "A"}]}],
        }
    )
    functions = FunctionRegistry()
    functions.register_type_converter("A", "B", lambda v: {"b": v["a"]})
    runtime = ConversionRuntime(generate_container(spec), functions)
    assert runtime.convert({"a": {"a": 1}}, "v1", "v2") == {"a": {"b": 1}}


def test_enum_instances(color):
    runtime = ConversionRuntime(generate_container(color))
    assert runtime.convert("Magenta", "v2", "v1") == "Red"
    assert runtime.convert("Green", "v1", "v2") == "Green"
    assert runtime.convert({"Custom": "#fff"}, "v2", "v1") == {"Custom": "#fff"}
    with pytest.raises(ConversionError):
        runtime.convert("Purple", "v1", "v2")
    with pytest.raises(ConversionError):
        runtime.convert({"Red": 1, "Green": 2}, "v1", "v2")


def test_nested_enum_variant_payload_follows_the_same_edge():
    inner, _ = _nested_specs()
    place = ContainerSpec.model_validate(
        {
            "name": "Place",
            "kind": "enum",
            "versions": ["v1", "v2"],
            "items": [{"name": "Home", "type": "Address", "nested": True}, {"name": "Nowhere"}],
        }
    )
    runtime = ConversionRuntime(generate_container(place))
    runtime.register_nested(ConversionRuntime(generate_container(inner)))

    assert runtime.convert({"Home": {"street": "x"}}, "v1", "v2") == {"Home": {"street": "x", "zip": "00000"}}
    assert runtime.convert({"Home": {"street": "x", "zip": "1"}}, "v2", "v1") == {"Home": {"street": "x"}}
    assert runtime.convert("Nowhere", "v1", "v2") == "Nowhere"


@pytest.mark.parametrize(
    "type_str,expected",
    [
        ("str", ""),
        ("int", 0),
        ("float", 0.0),
        ("bool", False),
        ("List[int]", []),
        ("list", []),
        ("Dict[str, int]", {}),
        ("Optional[int]", None),
        ("int | None", None),
        ("Address", None),
        (None, None),
    ],
)
def test_type_default(type_str, expected):
    assert type_default(type_str) == expected


def test_base_type():
    assert base_type("Optional[List[Address]]") == "Address"
    assert base_type("Address | None") == "Address"
    assert base_type("int") == "int"
