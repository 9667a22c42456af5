# Copyright 2025 Edward Clewer
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from smoothing_aggregates.config_validation.schema_registry import resolve_schema_version
from smoothing_aggregates.exceptions import ConfigError

OUTPUT_MODES = ("final", "window")

_PREFIX = "Invalid forecast configuration"


def _require_mapping(value: Any, label: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{_PREFIX}: '{label}' must be a mapping")
    return dict(value)


def _check_keys(section: Dict[str, Any], label: str, allowed: set, required: set) -> None:
    extra = sorted(set(section.keys()) - allowed)
    if extra:
        raise ValueError(f"{_PREFIX}: '{label}' has unexpected keys {extra}")
    missing = sorted(required - set(section.keys()))
    if missing:
        raise ValueError(f"{_PREFIX}: '{label}' missing keys {missing}")


def _require_str(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{_PREFIX}: '{label}' must be a non-empty string")
    return value.strip()


def _require_bool(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{_PREFIX}: '{label}' must be a boolean")
    return value


def _to_path(value: Any, label: str) -> Path:
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise ValueError(f"{_PREFIX}: '{label}' must be a path string")
    return Path(value)


def _validate_input(raw: Any) -> Dict[str, Any]:
    section = _require_mapping(raw, "input")
    _check_keys(
        section,
        "input",
        allowed={"path", "value_column", "timestamp_column", "group_by"},
        required={"path", "value_column"},
    )
    timestamp_column = section.get("timestamp_column")
    if timestamp_column is not None:
        timestamp_column = _require_str(timestamp_column, "input.timestamp_column")

    group_by = section.get("group_by") or []
    if isinstance(group_by, str):
        group_by = [group_by]
    if not isinstance(group_by, list):
        raise ValueError(f"{_PREFIX}: 'input.group_by' must be a list of column names")
    group_by = [_require_str(column, "input.group_by[]") for column in group_by]
    if len(set(group_by)) != len(group_by):
        raise ValueError(f"{_PREFIX}: 'input.group_by' contains duplicate columns")

    return {
        "path": _to_path(section["path"], "input.path"),
        "value_column": _require_str(section["value_column"], "input.value_column"),
        "timestamp_column": timestamp_column,
        "group_by": group_by,
    }


def _validate_output(raw: Any) -> Dict[str, Any]:
    section = _require_mapping(raw, "output")
    _check_keys(section, "output", allowed={"path", "mode", "include_state"}, required={"path"})
    mode = _require_str(section.get("mode", "final"), "output.mode").lower()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"{_PREFIX}: 'output.mode' must be one of {list(OUTPUT_MODES)}, got '{mode}'")
    return {
        "path": _to_path(section["path"], "output.path"),
        "mode": mode,
        "include_state": _require_bool(section.get("include_state", False), "output.include_state"),
    }


def _validate_settings(raw: Any) -> Dict[str, Any]:
    section = _require_mapping(raw, "settings")
    _check_keys(section, "settings", allowed={"max_fill_gap"}, required=set())
    normalized: Dict[str, Any] = {}
    if "max_fill_gap" in section:
        max_fill_gap = section["max_fill_gap"]
        if max_fill_gap is not None and (
            isinstance(max_fill_gap, bool) or not isinstance(max_fill_gap, int) or max_fill_gap < 0
        ):
            raise ValueError(f"{_PREFIX}: 'settings.max_fill_gap' must be a non-negative integer or null")
        normalized["max_fill_gap"] = max_fill_gap
    return normalized


def _validate_aggregates(raw: Any) -> List[Dict[str, Any]]:
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ValueError(f"{_PREFIX}: 'aggregates' must be a list")

    normalized = []
    for idx, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"{_PREFIX}: aggregate #{idx} must be a mapping")
        _check_keys(
            entry,
            f"aggregates[{idx}]",
            allowed={"name", "function", "enabled", "use_timestamp", "params"},
            required={"name", "function"},
        )
        params = entry.get("params", {})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ValueError(f"{_PREFIX}: aggregate #{idx} 'params' must be a mapping")
        normalized.append(
            {
                "name": _require_str(entry["name"], f"aggregates[{idx}].name"),
                "function": _require_str(entry["function"], f"aggregates[{idx}].function"),
                "enabled": _require_bool(entry.get("enabled", True), f"aggregates[{idx}].enabled"),
                "use_timestamp": _require_bool(
                    entry.get("use_timestamp", False), f"aggregates[{idx}].use_timestamp"
                ),
                "params": dict(params),
            }
        )
    return normalized


def validate_forecast_config(raw: dict) -> dict:
    """Validate a forecast YAML payload and return a normalized mapping."""
    if not isinstance(raw, dict):
        raise ValueError(f"{_PREFIX}: root must be a mapping")

    try:
        schema_version = resolve_schema_version(raw.get("schema_version"))
    except ConfigError as exc:
        raise ValueError(str(exc)) from exc

    allowed_root = {"schema_version", "input", "output", "settings", "aggregates"}
    extra_root = sorted(set(raw.keys()) - allowed_root)
    if extra_root:
        raise ValueError(f"{_PREFIX}: unexpected keys {extra_root}")
    missing_root = sorted({"input", "output"} - set(raw.keys()))
    if missing_root:
        raise ValueError(f"{_PREFIX}: missing keys {missing_root}")

    input_section = _validate_input(raw["input"])
    aggregates = _validate_aggregates(raw.get("aggregates"))
    if any(entry["use_timestamp"] for entry in aggregates) and input_section["timestamp_column"] is None:
        raise ValueError(
            f"{_PREFIX}: 'input.timestamp_column' is required when an aggregate sets use_timestamp"
        )

    return {
        "schema_version": schema_version,
        "input": input_section,
        "output": _validate_output(raw["output"]),
        "settings": _validate_settings(raw.get("settings")),
        "aggregates": aggregates,
    }
