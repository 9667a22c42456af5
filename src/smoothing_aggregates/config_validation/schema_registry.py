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

"""Schema versions a forecast YAML may declare."""

from __future__ import annotations

from typing import Any, Tuple

from smoothing_aggregates.exceptions import ConfigError

# oldest first; the last entry is what new configs should declare
FORECAST_SCHEMA_VERSIONS: Tuple[str, ...] = ("1.0",)


def resolve_schema_version(declared: Any) -> str:
    """Return the canonical spelling of ``declared``.

    YAML reads ``schema_version: 1.0`` as a float, so numeric values are
    compared by their string form.
    """
    if declared is None:
        raise ConfigError(
            f"forecast configuration must declare 'schema_version' "
            f"(supported: {list(FORECAST_SCHEMA_VERSIONS)})"
        )
    version = str(declared).strip()
    if version not in FORECAST_SCHEMA_VERSIONS:
        raise ConfigError(
            f"forecast configuration references unsupported schema_version '{declared}'. "
            f"Supported versions: [{', '.join(FORECAST_SCHEMA_VERSIONS)}]"
        )
    return version
