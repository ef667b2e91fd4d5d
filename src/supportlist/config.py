"""
config.py — Engine configuration

Defaults match the reference protocol family. A JSON file may override any
field; unknown keys are rejected so typos do not silently fall back to
defaults. CLI flags override the file.

Example config.json:
  {
    "relay_path": "lists/relay.ndjson",
    "base_url": "https://lists.example.org",
    "query_limit": 50
  }
"""

from __future__ import annotations
import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .events import LIST_KIND
from .models import LIST_D_TAG


@dataclass
class SupportListConfig:
    event_kind: int = LIST_KIND
    d_tag: str = LIST_D_TAG
    query_limit: int = 20
    base_url: str = "http://localhost:8080"
    relay_path: str = "relay.ndjson"
    verify_signatures: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[Path] = None, **overrides: Any) -> SupportListConfig:
    """
    Load configuration from a JSON file, then apply non-None overrides.

    Raises:
        ValueError: unknown keys, or a file that is not a JSON object.
    """
    known = {f.name for f in fields(SupportListConfig)}
    values: Dict[str, Any] = {}

    if path is not None:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        values.update(data)

    for key, value in overrides.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {key}")
        if value is not None:
            values[key] = value

    return SupportListConfig(**values)
