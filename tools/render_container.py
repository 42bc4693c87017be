"""Render a container (or module) description file to disk.

    python -m tools.render_container examples/widget.yaml --format python --out build/
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from schemaevo.core.config import (
    configure_logging,
    get_settings,
    is_module_description,
    load_container_file,
    load_module_file,
    parse_description,
)
from schemaevo.core.errors import SchemaEvoError
from schemaevo.core.pipeline import generate_container, generate_module
from schemaevo.core.renderers import RENDER_FORMATS, get_renderer, render_module


def _render(path: Path, fmt: str) -> Dict[str, str]:
    renderer = get_renderer(fmt)
    data = parse_description(path.read_text(encoding="utf-8"), source=str(path))
    if is_module_description(data):
        module = generate_module(load_module_file(path))
        for name, exc in sorted(module.failures.items()):
            print(f"ERROR: {name}: {exc}", file=sys.stderr)
        return render_module(renderer, module)
    return renderer.render(generate_container(load_container_file(path)))


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(prog="render_container")
    ap.add_argument("file", help="Container or module description (JSON or YAML)")
    ap.add_argument("--format", default=settings.render_format, choices=RENDER_FORMATS)
    ap.add_argument("--out", default=None, help="Output directory (default: print to stdout)")
    args = ap.parse_args(argv)

    configure_logging(settings)

    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: {path} missing", file=sys.stderr)
        return 2

    try:
        files = _render(path, args.format)
    except SchemaEvoError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if args.out is None:
        for name, text in files.items():
            print(f"# --- {name}")
            print(text)
        return 0

    out_dir = Path(args.out)
    for name, text in files.items():
        target = out_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        print(f"Wrote: {target}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
