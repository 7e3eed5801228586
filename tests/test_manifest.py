import json

import pytest

from manifest import Event, ManifestError, load_manifest, parse_manifest


def _write(tmp_path, payload):
    path = tmp_path / "events.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False),
                    encoding="utf-8")
    return path


def test_load_manifest_keeps_order(tmp_path):
    path = _write(tmp_path, {"events": [
        {"title": "Dentist", "time": "2025-06-01"},
        {"title": "生日", "time": "2025-06-03"},
    ]})
    assert load_manifest(path) == [Event("Dentist", "2025-06-01"), Event("生日", "2025-06-03")]


def test_missing_events_key_is_empty(tmp_path):
    assert load_manifest(_write(tmp_path, {})) == []


def test_missing_fields_default_to_empty_string():
    assert parse_manifest({"events": [{"title": "No date"}]}) == [Event("No date", "")]


def test_top_level_null_is_empty(tmp_path):
    assert load_manifest(_write(tmp_path, "null")) == []


def test_unreadable_file(tmp_path):
    with pytest.raises(ManifestError) as exc:
        load_manifest(tmp_path / "nope.json")
    assert "read manifest" in str(exc.value)


def test_malformed_json(tmp_path):
    with pytest.raises(ManifestError) as exc:
        load_manifest(_write(tmp_path, '{"events": ['))
    assert "unmarshal manifest" in str(exc.value)


@pytest.mark.parametrize("data", [
    [],
    {"events": {"title": "x"}},
    {"events": ["x"]},
    {"events": [None]},
    {"events": [{"title": 3, "time": "2025-06-01"}]},
    {"events": [{"title": "x", "time": 20250601}]},
])
def test_shape_errors_are_fatal(data):
    with pytest.raises(ManifestError):
        parse_manifest(data)
