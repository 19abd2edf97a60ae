#!/usr/bin/env python
"""Export the FastAPI OpenAPI schema to openapi.yaml at the repository root."""

from __future__ import annotations

import sys
from pathlib import Path

import yaml


def main() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    output_path = repo_root / "openapi.yaml"

    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from orchestrator.main import app  # noqa: WPS433

    schema = app.openapi()
    output_path.write_text(yaml.dump(schema, sort_keys=False), encoding="utf-8")
    print(f"Wrote {output_path.relative_to(repo_root)}")


if __name__ == "__main__":
    main()
