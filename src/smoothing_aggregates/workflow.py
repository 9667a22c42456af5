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

"""End-to-end forecast run: config, input table, aggregation, artefacts."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import yaml

from smoothing_aggregates.aggregates.runner import AggregationRunner, RunResult
from smoothing_aggregates.config_parsers.forecast.config_dataclass import ForecastConfigData
from smoothing_aggregates.config_parsers.forecast.config_parser import ForecastConfigParser
from smoothing_aggregates.exceptions import ConfigError
from smoothing_aggregates.logging_utils import (
    configure_logging,
    generate_run_id,
    get_git_hash,
    log_run_metadata,
)

logger = logging.getLogger(__name__)

__all__ = [
    "run_forecast",
    "load_config",
    "read_input",
    "write_output",
]

OUTPUT_FILENAME = "forecast.parquet"


def load_config(config_path: Path | str) -> ForecastConfigData:
    """Parse a forecast configuration file."""
    return ForecastConfigParser(Path(config_path)).load()


def setup_logging(run_id: str, log_dir: Path | None, level: str | int):
    configure_logging(run_id=run_id, log_dir=log_dir, level=level)
    return logging.getLogger(__name__)


def read_input(path: Path) -> pd.DataFrame:
    """Read the input table; the reader is chosen by file suffix."""
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix in (".csv", ".txt"):
        return pd.read_csv(path)
    raise ConfigError(f"unsupported input format '{suffix}' for {path}; expected .csv or .parquet")


def write_output(frame: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_parquet(path, index=False)
    return path


def _snapshot_config(source: Path, dest_dir: Path) -> Dict[str, object]:
    dest_dir.mkdir(parents=True, exist_ok=True)
    text = source.read_text(encoding="utf-8")
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    dest_path = dest_dir / source.name
    shutil.copy2(source, dest_path)
    schema_version: Optional[str] = None
    try:
        parsed = yaml.safe_load(text)
        if isinstance(parsed, dict) and parsed.get("schema_version") is not None:
            schema_version = str(parsed["schema_version"])
    except yaml.YAMLError:
        schema_version = None
    return {
        "source_path": str(source.resolve()),
        "copied_path": str(dest_path.resolve()),
        "sha256": digest,
        "schema_version": schema_version,
    }


def _hash_file(path: Path, chunk_size: int = 1024 * 1024) -> Optional[str]:
    hasher = hashlib.sha256()
    try:
        with path.open("rb") as handle:
            while True:
                chunk = handle.read(chunk_size)
                if not chunk:
                    break
                hasher.update(chunk)
    except OSError:
        return None
    return hasher.hexdigest()


def _summarize_aggregates(config: ForecastConfigData) -> List[Dict[str, object]]:
    return [
        {
            "name": cfg.name,
            "function": cfg.function,
            "enabled": cfg.enabled,
            "use_timestamp": cfg.use_timestamp,
            "params": cfg.to_params(),
        }
        for cfg in config.aggregates
    ]


def _write_manifest(run_root: Path, manifest: Dict[str, object]) -> Path:
    manifest_path = run_root / "manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return manifest_path


def run_forecast(
    config_path: Path | str,
    *,
    log_level: str | int = "INFO",
    run_id: str | None = None,
    output_root: Path | str | None = None,
) -> Dict[str, object]:
    """
    Evaluate the configured aggregates over the configured input table.

    Returns metadata about the run, including the manifest contents and the
    in-memory RunResult.
    """
    run_identifier = run_id or generate_run_id()
    initial_logger = setup_logging(run_identifier, None, log_level)

    try:
        config = load_config(config_path)
    except ConfigError:
        initial_logger.exception(
            "failed to load forecast configuration",
            extra={"config_path": str(Path(config_path).resolve())},
        )
        raise

    base_output_root = Path(output_root).expanduser() if output_root else config.output.path
    run_root = base_output_root / run_identifier
    run_output_dir = run_root / "output"
    log_dir = run_output_dir / "logs"
    configs_dir = run_root / "configs"
    for directory in (run_output_dir, log_dir, configs_dir):
        directory.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(run_identifier, log_dir, log_level)
    log_run_metadata(
        logger,
        forecast_config=config,
        config_path=Path(config_path).resolve(),
        git_hash=get_git_hash(),
    )

    manifest: Dict[str, object] = {
        "run_id": run_identifier,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "code_ref": get_git_hash(),
        "cli": {"config": str(Path(config_path).resolve())},
        "output_root": str(run_output_dir.resolve()),
        "log_path": str((log_dir / f"{run_identifier}.log").resolve()),
        "schema_version": config.schema_version,
        "aggregates": _summarize_aggregates(config),
        "input": {
            "path": str(config.input.path),
            "sha256": _hash_file(config.input.path),
        },
        "status": "pending",
    }
    try:
        manifest["config"] = _snapshot_config(Path(config_path), configs_dir)
    except OSError as exc:
        logger.warning("failed to snapshot config", extra={"error": str(exc)})

    output_path = run_output_dir / OUTPUT_FILENAME
    try:
        frame = read_input(config.input.path)
        logger.info("loaded input table", extra={"rows": len(frame), "columns": list(frame.columns)})
        result: RunResult = AggregationRunner(config).run(frame)
        write_output(result.frame, output_path)
    except Exception:
        manifest["status"] = "failed"
        _write_manifest(run_root, manifest)
        logger.exception("forecast run failed")
        raise

    manifest["status"] = "completed"
    manifest["outputs"] = [{"path": str(output_path.resolve()), "rows": len(result.frame)}]
    manifest["aggregate_failures"] = [failure.as_dict() for failure in result.failures]
    manifest_path = _write_manifest(run_root, manifest)
    logger.info("run complete", extra={"failures": len(result.failures)})

    return {
        "run_id": run_identifier,
        "run_root": run_root,
        "output_dir": run_output_dir,
        "output_path": output_path,
        "log_dir": log_dir,
        "manifest": manifest,
        "manifest_path": manifest_path,
        "result": result,
    }
