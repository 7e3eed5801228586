# manifest.py - load the events manifest (JSON) given on the command line
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Event:
    title: str
    time: str  # YYYY-MM-DD


class ManifestError(Exception):
    """Raised when the manifest cannot be read or decoded."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


def _field(entry: dict, name: str, index: int, path) -> str:
    value = entry.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ManifestError(path, f"events[{index}].{name} must be a string, got {type(value).__name__}")
    return value


def parse_manifest(data, path="<manifest>") -> list[Event]:
    """Turn decoded JSON into Event records. Shape errors are fatal."""
    if data is None:  # top-level null decodes to an empty manifest
        return []
    if not isinstance(data, dict):
        raise ManifestError(path, "top level must be an object")
    raw = data.get("events")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ManifestError(path, "'events' must be a list")

    events: list[Event] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ManifestError(path, f"events[{i}] must be an object")
        events.append(Event(title=_field(entry, "title", i, path),
                            time=_field(entry, "time", i, path)))
    return events


def load_manifest(path: str | Path) -> list[Event]:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ManifestError(path, f"read manifest: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(path, f"unmarshal manifest: {e}") from e
    return parse_manifest(data, path)
