# scripts/generate_schemas.py
"""Write the model-output and HTTP API JSON schemas to disk."""

from __future__ import annotations

import argparse
from pathlib import Path

from pollwise.models.schemas import write_schemas

DEFAULT_OUT_DIR = Path(__file__).resolve().parents[1] / "docs" / "schemas"


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - script entry
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--out-dir", type=Path, default=DEFAULT_OUT_DIR)
    args = parser.parse_args(argv)
    for path in write_schemas(args.out_dir):
        print(path)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI execution
    raise SystemExit(main())
