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

import argparse
import logging
import sys
from pathlib import Path

from smoothing_aggregates.workflow import run_forecast

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate smoothing aggregates over a table.")
    parser.add_argument(
        "--config",
        required=True,
        type=Path,
        help="Path to the forecast YAML configuration file.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level for the run (default: INFO).",
    )
    parser.add_argument(
        "--run-id",
        default=None,
        help="Optional run identifier; generated when omitted.",
    )
    parser.add_argument(
        "--output-root",
        type=Path,
        default=None,
        help="Optional override for the output root directory.",
    )
    return parser.parse_args(argv)


def _setup_logging(level: str) -> None:
    resolved = getattr(logging, level.upper(), None)
    if not isinstance(resolved, int):
        logger.warning("invalid log level supplied; defaulting to INFO", extra={"log_level": level})
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.log_level)

    try:
        result = run_forecast(
            config_path=args.config,
            log_level=args.log_level,
            run_id=args.run_id,
            output_root=args.output_root,
        )
    except Exception:  # pragma: no cover - CLI wrapping
        logger.exception("forecast execution failed", extra={"config": str(args.config)})
        return 1

    failures = result["manifest"].get("aggregate_failures", [])
    if failures:
        logger.warning("forecast completed with aggregate failures", extra={"failures": failures})

    logger.info(
        "run complete",
        extra={"run_id": result["run_id"], "output_path": str(result["output_path"])},
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
