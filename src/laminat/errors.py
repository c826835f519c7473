"""
Core error types and helpers for laminat.

Design intent:
- Lean on built-in exception classes for ergonomics (ValueError/NotImplementedError).
- Provide machine-readable error codes via a single lightweight base error that
  can be used as an exception cause for structured handling.
- Keep one dedicated exception type, `PactBuildError`, for values that are
  rejected while a pact is being built, so fixtures can catch it directly.

Contract:
- Public raiser helpers raise built-in exceptions and chain a LaminatError as
  the cause, carrying an ErrorCode.
- `raise_missing_field` and `raise_pact_build_error` raise `PactBuildError`,
  which is itself a LaminatError and a ValueError.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class ErrorCode(StrEnum):
    """Machine-readable classification for laminat failures."""

    PACT_BUILD_FAILED = "pact_build_failed"
    MISSING_FIELD = "missing_field"
    INVALID_MATCHER = "invalid_matcher"
    INVALID_PACT = "invalid_pact"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INVALID_SETTING = "invalid_setting"


class LaminatError(Exception):
    """Lightweight, structured error carrying an ErrorCode.

    Most helpers do not raise this directly. They raise built-in exceptions and
    set a LaminatError as the exception cause (`raise X from LaminatError(...)`).
    """

    def __init__(self, message: str, *, code: ErrorCode | None = None) -> None:
        """
        Initialize LaminatError.

        Args:
            message: Human-readable error message.
            code: Optional ErrorCode classifying the error.
        """
        super().__init__(message)
        self.code: ErrorCode | None = code


class PactBuildError(LaminatError, ValueError):
    """Raised when a value cannot be placed into a pact under construction."""


# -----------------------------------------------------------------------------
# Standardized message prefixes
# -----------------------------------------------------------------------------

_BUILD_PREFIX: Final[str] = "Pact could not be built."
_INVALID_MATCHER_PREFIX: Final[str] = "Invalid laminat matcher."
_INVALID_PACT_PREFIX: Final[str] = "Invalid laminat pact."
_INVALID_SETTING_PREFIX: Final[str] = "Invalid laminat setting"


# -----------------------------------------------------------------------------
# Raiser helpers
# -----------------------------------------------------------------------------


def raise_missing_field(*, name: str) -> None:
    """Raise the standard rejection for a required field that was not set.

    Raises:
        PactBuildError: Always, with code MISSING_FIELD.
    """
    msg = f"Expected field {name} to be set!"
    raise PactBuildError(msg, code=ErrorCode.MISSING_FIELD)


def raise_pact_build_error(*, detail: str) -> None:
    """Raise a standardized pact build error.

    Raises:
        PactBuildError: Always, with code PACT_BUILD_FAILED.
    """
    msg = f"{_BUILD_PREFIX} Detail: {detail}"
    raise PactBuildError(msg, code=ErrorCode.PACT_BUILD_FAILED)


def raise_invalid_matcher(*, detail: str) -> None:
    """Raise a standardized matcher error.

    Raises:
        ValueError: Always, chained from LaminatError(code=INVALID_MATCHER).
    """
    msg = f"{_INVALID_MATCHER_PREFIX} Detail: {detail}"
    raise ValueError(msg) from LaminatError(msg, code=ErrorCode.INVALID_MATCHER)


def raise_invalid_pact(*, detail: str) -> None:
    """Raise a standardized pact consistency error.

    Raises:
        ValueError: Always, chained from LaminatError(code=INVALID_PACT).
    """
    msg = f"{_INVALID_PACT_PREFIX} Detail: {detail}"
    raise ValueError(msg) from LaminatError(msg, code=ErrorCode.INVALID_PACT)


def raise_unsupported_operation(*, operation: str, detail: str) -> None:
    """Raise a standardized error for an operation a builder does not allow.

    Args:
        operation: Name of the rejected operation (e.g. 'given').
        detail: Message explaining what to do instead.

    Raises:
        NotImplementedError: Chained from LaminatError(code=UNSUPPORTED_OPERATION).
    """
    msg = f"{detail} (operation: {operation})"
    raise NotImplementedError(msg) from LaminatError(
        msg, code=ErrorCode.UNSUPPORTED_OPERATION
    )


def raise_invalid_setting(*, variable: str, value: object, detail: str) -> None:
    """Raise a standardized error for an environment setting laminat rejects.

    Args:
        variable: Name of the environment variable (e.g. LAMINAT_PACT_DIR).
        value: The rejected value as read from the environment.
        detail: What an acceptable value looks like.

    Raises:
        ValueError: Always, chained from LaminatError(code=INVALID_SETTING).
    """
    msg = f"{_INVALID_SETTING_PREFIX} {variable}={value!r}: {detail}"
    raise ValueError(msg) from LaminatError(msg, code=ErrorCode.INVALID_SETTING)
