"""laminat.config.

Environment-driven settings for pact file output and logging.

Recognized variables
--------------------
- LAMINAT_PACT_DIR: directory pact files are written to (default: ``pacts``).
- LAMINAT_PACT_SPEC_VERSION: pact file format, ``2.0.0``, ``3.0.0`` or
  ``4.0.0`` (default: ``3.0.0``).
- LAMINAT_LOG_LEVEL: optional level name applied by `configure_logging`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .errors import raise_invalid_setting

if TYPE_CHECKING:
    from collections.abc import Mapping

PACT_DIR_ENV: Final[str] = "LAMINAT_PACT_DIR"
PACT_SPEC_VERSION_ENV: Final[str] = "LAMINAT_PACT_SPEC_VERSION"
LOG_LEVEL_ENV: Final[str] = "LAMINAT_LOG_LEVEL"

DEFAULT_PACT_DIR: Final[str] = "pacts"
DEFAULT_SPEC_VERSION: Final[str] = "3.0.0"

# pact file format -> specification name understood by pact.Pact.with_specification
PACT_SPECIFICATIONS: Final[dict[str, str]] = {
    "2.0.0": "V2",
    "3.0.0": "V3",
    "4.0.0": "V4",
}
SUPPORTED_SPEC_VERSIONS: tuple[str, ...] = tuple(PACT_SPECIFICATIONS)

_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
)


def check_spec_version(version: str) -> str:
    """Return `version` stripped if it is a supported pact file format.

    Args:
        version: Pact specification version string.

    Returns:
        The normalized version string.
    """
    value = str(version).strip()
    if value not in PACT_SPECIFICATIONS:
        raise_invalid_setting(
            variable=PACT_SPEC_VERSION_ENV,
            value=value,
            detail=f"pact files are written as one of {list(SUPPORTED_SPEC_VERSIONS)}",
        )
    return value


def pact_specification(version: str) -> str:
    """Return the pact-python specification name of a pact file format."""
    return PACT_SPECIFICATIONS[check_spec_version(version)]


@dataclass(frozen=True, slots=True)
class LaminatSettings:
    """Resolved laminat settings.

    Attributes:
        pact_dir: Directory pact files are written to.
        spec_version: Pact file format version.
        log_level: Optional logging level name for the ``laminat`` logger.
    """

    pact_dir: Path
    spec_version: str = DEFAULT_SPEC_VERSION
    log_level: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LaminatSettings:
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from instead of ``os.environ``.

        Returns:
            LaminatSettings: Validated settings.
        """
        env = os.environ if environ is None else environ

        pact_dir = env.get(PACT_DIR_ENV, DEFAULT_PACT_DIR).strip()
        if not pact_dir:
            raise_invalid_setting(
                variable=PACT_DIR_ENV,
                value=env.get(PACT_DIR_ENV),
                detail="the pact directory must not be empty",
            )

        spec_version = check_spec_version(
            env.get(PACT_SPEC_VERSION_ENV, DEFAULT_SPEC_VERSION)
        )

        log_level = env.get(LOG_LEVEL_ENV)
        if log_level is not None:
            log_level = log_level.strip().upper()
            if log_level not in _LOG_LEVELS:
                raise_invalid_setting(
                    variable=LOG_LEVEL_ENV,
                    value=log_level,
                    detail=f"expected one of {sorted(_LOG_LEVELS)}",
                )

        return cls(
            pact_dir=Path(pact_dir),
            spec_version=spec_version,
            log_level=log_level,
        )


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Apply a level to the ``laminat`` logger.

    Args:
        level: Level name or number. Falls back to LAMINAT_LOG_LEVEL; when that is
            unset as well the logger is left untouched.

    Returns:
        The ``laminat`` logger.
    """
    logger = logging.getLogger("laminat")
    if level is None:
        level = LaminatSettings.from_env().log_level
    if level is not None:
        logger.setLevel(level)
    return logger
