"""Inspector configuration for pyjamstate."""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_log_level(value: str | None, default: int) -> int:
    if value is None:
        return default
    normalized = value.strip().upper()
    if normalized.isdigit():
        return int(normalized)
    level = logging.getLevelName(normalized)
    return level if isinstance(level, int) else default


@dataclasses.dataclass(frozen=True)
class InspectorConfig:
    """Inspector configuration.

    Parameters
    ----------
    emit_phantom_lookups : bool
        When a preimage is found, a lookup-history entry is reported for
        its derived key even if the snapshot holds nothing at that key
        (the entry then carries an empty value). Set to ``False`` to only
        report lookup entries that are actually present.
    log_level : int
        Level applied to the ``pyjamstate`` logger by the command line
        tool. The library itself never configures logging.
    """

    emit_phantom_lookups: bool = True
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, **overrides: Any) -> InspectorConfig:
        """Create configuration from environment variables.

        Reads ``PYJAMSTATE_EMIT_PHANTOM_LOOKUPS`` and
        ``PYJAMSTATE_LOG_LEVEL``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        InspectorConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "emit_phantom_lookups" not in overrides:
            config_kwargs["emit_phantom_lookups"] = _env_bool(env.get("PYJAMSTATE_EMIT_PHANTOM_LOOKUPS"), True)

        if "log_level" not in overrides:
            config_kwargs["log_level"] = _env_log_level(env.get("PYJAMSTATE_LOG_LEVEL"), logging.WARNING)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
