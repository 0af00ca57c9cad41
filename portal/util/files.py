"""File I/O helpers for report exports and dashboard outputs."""
import json
from pathlib import Path


def write_json(path: Path, data) -> None:
    """Write the dashboard payload (or any JSON-ready data) as pretty-printed JSON.

    Parent directories are created as needed; non-ASCII text is kept as-is.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def read_json(path: Path):
    """Read a report export (a JSON list, or an object with a "reports" list)."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_text(path: Path) -> str:
    """Read a Markdown prompt template."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
