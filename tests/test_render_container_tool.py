import json

from conftest import person_spec

from tools.render_container import main


def _write(tmp_path, name, data):
    f = tmp_path / name
    f.write_text(json.dumps(data), encoding="utf-8")
    return f


def test_prints_rendered_files(tmp_path, capsys):
    f = _write(tmp_path, "person.json", person_spec())
    assert main([str(f), "--format", "python"]) == 0
    out = capsys.readouterr().out
    assert "# --- person.py" in out
    assert "def upgrade_v1alpha1_to_v1beta1" in out


def test_writes_to_out_dir(tmp_path, capsys):
    f = _write(tmp_path, "person.json", person_spec())
    out_dir = tmp_path / "build"
    assert main([str(f), "--format", "yaml", "--out", str(out_dir)]) == 0
    assert (out_dir / "person" / "v1beta1.yaml").exists()
    assert capsys.readouterr().out.count("Wrote: ") == 3


def test_module_failures_are_reported(tmp_path, capsys):
    module = {
        "name": "shop",
        "versions": ["v1", "v2"],
        "containers": [
            {"name": "Order", "items": [{"name": "id", "type": "int"}]},
            {"name": "Broken", "items": [{"name": "x"}]},
        ],
    }
    f = _write(tmp_path, "shop.json", module)
    assert main([str(f), "--format", "json"]) == 0
    captured = capsys.readouterr()
    assert "# --- order/v2.json" in captured.out
    assert "ERROR: Broken" in captured.err


def test_missing_file_exits_2(tmp_path, capsys):
    assert main([str(tmp_path / "nope.yaml")]) == 2
    assert "missing" in capsys.readouterr().err


def test_invalid_container_exits_1(tmp_path, capsys):
    f = _write(tmp_path, "bad.json", person_spec(items=[{"name": "a"}]))
    assert main([str(f), "--format", "yaml"]) == 1
    assert "field.missing_type" in capsys.readouterr().err
