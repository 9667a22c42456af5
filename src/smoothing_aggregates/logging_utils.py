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

"""JSON log lines tagged with the run, group and aggregate being evaluated."""

from __future__ import annotations

import json
import logging
import math
import subprocess
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

import numpy as np

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "configure_logging",
    "generate_run_id",
    "get_git_hash",
    "log_context",
    "log_run_metadata",
]

CONTEXT_FIELDS = ("run_id", "group", "aggregate", "function")

_CONTEXT: ContextVar[Mapping[str, Any]] = ContextVar("smoothing_aggregates_log_context", default={})

# attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    """Convert log payloads (numpy scalars and arrays, seeds, paths) into JSON types."""
    if isinstance(value, Mapping):
        return {str(key): _to_json(item) for key, item in value.items()}
    if isinstance(value, np.ndarray):
        return _to_json(value.tolist())
    if isinstance(value, np.generic):
        return _to_json(value.item())
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_json(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if is_dataclass(value) and not isinstance(value, type):
        return _to_json(asdict(value))
    return value


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: context fields at top level, the rest under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        context = _CONTEXT.get()
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            payload[name] = getattr(record, name, context.get(name))

        extra = {
            key: _to_json(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr)


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level {level!r}")
    return resolved


def configure_logging(
    *,
    run_id: str,
    log_dir: Optional[Path] = None,
    level: int | str = logging.INFO,
) -> None:
    """Route the root logger to stderr, and to ``<log_dir>/<run_id>.log`` when given."""
    resolved = _resolve_level(level)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / f"{run_id}.log", encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = StructuredFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(resolved)
        root.addHandler(handler)
    root.setLevel(resolved)

    _CONTEXT.set({**_CONTEXT.get(), "run_id": run_id})


def generate_run_id() -> str:
    """Timestamped run identifier with a random suffix, e.g. ``20251019T101500-1a2b3c4d``."""
    return f"{datetime.now(timezone.utc):%Y%m%dT%H%M%S}-{uuid.uuid4().hex[:8]}"


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Tag every record logged inside the block with ``fields``."""
    unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
    if unknown:
        raise ValueError(f"unknown log context fields {unknown}; expected a subset of {list(CONTEXT_FIELDS)}")
    token = _CONTEXT.set({**_CONTEXT.get(), **fields})
    try:
        yield
    finally:
        _CONTEXT.reset(token)


def get_git_hash(cwd: Optional[Path] = None) -> Optional[str]:
    """Commit of the checkout at ``cwd`` (default: the working directory), if any."""
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout.strip() or None


def log_run_metadata(
    logger: logging.Logger,
    *,
    forecast_config: Any,
    config_path: Path,
    git_hash: Optional[str],
) -> None:
    """Log what the run will evaluate, plus the raw YAML it was configured with."""
    aggregates = [
        {"name": cfg.name, "function": cfg.function, "enabled": cfg.enabled, "params": cfg.to_params()}
        for cfg in forecast_config.aggregates
    ]
    try:
        config_yaml: Optional[str] = Path(config_path).read_text(encoding="utf-8")
    except OSError:
        config_yaml = None

    logger.info(
        "run metadata snapshot",
        extra={
            "git_hash": git_hash,
            "config_path": str(config_path),
            "schema_version": forecast_config.schema_version,
            "input": forecast_config.input,
            "output": forecast_config.output,
            "max_fill_gap": forecast_config.settings.max_fill_gap,
            "aggregates": aggregates,
            "config_yaml": config_yaml,
        },
    )
