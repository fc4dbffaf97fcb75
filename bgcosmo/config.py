"""Keyed parameter access and YAML parameter files.

Cosmologies read their parameters through :class:`ParameterMap`, a thin
wrapper around a mapping that converts values to the requested type and
reports the offending key when something is missing or malformed.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml

from bgcosmo.errors import ConfigValidationError

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


class ParameterMap(Mapping):
    """Read-only mapping of configuration keys to values.

    Example:
        >>> param = ParameterMap({"cosmology_h": 0.7})
        >>> param.get("cosmology_h")
        0.7
        >>> param.get("cosmology_OmegaK", 0.0)
        0.0
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values = dict(values or {})

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterMap({self._values!r})"

    def get(self, key: str, default: Any = MISSING, dtype: type = float) -> Any:
        """Return ``param[key]`` converted to ``dtype``.

        Args:
            key: configuration key
            default: value returned when the key is absent. If not given,
                the key is required.
            dtype: target type; ``float`` values must also be finite

        Raises:
            ConfigValidationError: if a required key is absent or the value
                cannot be converted
        """
        if key not in self._values:
            if default is MISSING:
                raise ConfigValidationError(f"Missing required parameter '{key}'")
            logger.debug("Parameter %s not set, using default %r", key, default)
            return default

        raw = self._values[key]
        if dtype is float and isinstance(raw, bool):
            raise ConfigValidationError(f"Parameter '{key}' must be numeric, got {raw!r}")
        try:
            value = dtype(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(
                f"Parameter '{key}' has invalid value {raw!r} (expected {dtype.__name__})"
            ) from exc
        if dtype is float and not math.isfinite(value):
            raise ConfigValidationError(f"Parameter '{key}' must be finite, got {raw!r}")
        return value


def load_parameter_file(path: str | Path) -> ParameterMap:
    """Load a YAML parameter file into a :class:`ParameterMap`.

    The file must contain a mapping at the top level. An empty file gives an
    empty map.
    """
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise ConfigValidationError(f"Parameter file not found: {resolved}")

    with resolved.open("r", encoding="utf-8") as handle:
        try:
            loaded = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"Could not parse parameter file {resolved}: {exc}") from exc

    if loaded is None:
        return ParameterMap()
    if not isinstance(loaded, dict):
        raise ConfigValidationError(
            f"Parameter file {resolved} must contain a mapping at the top level"
        )
    logger.debug("Read %d parameters from %s", len(loaded), resolved)
    return ParameterMap(loaded)
