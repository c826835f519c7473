"""laminat.

Lazily evaluated builders for consumer-driven contract ("pact") fixtures.

Public API
----------
Primary user entrypoints:
- `pact`: Lazily build a pact from a DSL chain.
- `duplicate` / `duplicate_from_request`: Derive a pact with a new provider
  state and response from an existing pact or request.
- `get_all_pacts`: Collect the pacts declared on a class, instance or module.
- `write_pacts`: Collect the pacts of a holder and write them as pact files.
- `render_pact`: Replay a recorded pact onto a pact-python `Pact`.

Builders:
- `ConsumerPactBuilder` and the request/response chain it starts.
- `JsonBody` / `JsonArray` for JSON bodies, plus the block helpers
  `obj`, `array`, `min_array_like`, `max_array_like` and the null-rejecting
  `string_type` / `string_matcher`.

Core data structures:
- `ProviderState`, `Request`, `Response`, `RequestResponseInteraction`,
  `RequestResponsePact`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .body import DslPart, JsonArray, JsonBody
from .builders import (
    ConsumerPactBuilder,
    PactDslRequest,
    PactDslResponse,
    PactDslWithProvider,
    PactDslWithState,
)
from .config import SUPPORTED_SPEC_VERSIONS, LaminatSettings, configure_logging
from .duplicate import DuplicatePactDslResponse
from .errors import ErrorCode, LaminatError, PactBuildError
from .extension import (
    PactDirectory,
    array,
    duplicate,
    duplicate_from_request,
    get_all_pacts,
    max_array_like,
    min_array_like,
    obj,
    pact,
    request,
    response,
    string_matcher,
    string_type,
)
from .jsonifier import generate_json, merge_pacts, render_pact
from .lazy import Lazy
from .model import (
    ProviderState,
    Request,
    RequestResponseInteraction,
    RequestResponsePact,
    Response,
)

if TYPE_CHECKING:
    from pathlib import Path

# -----------------------------------------------------------------------------
# Versioning & capability metadata
# -----------------------------------------------------------------------------

__version__ = "0.1.0"

SUPPORTED_PACT_SPEC_VERSIONS: tuple[str, ...] = SUPPORTED_SPEC_VERSIONS  # noqa: RUF067

# -----------------------------------------------------------------------------
# High-level public façade
# -----------------------------------------------------------------------------


def write_pacts(  # noqa: RUF067
    holder: object,
    directory: str | Path | None = None,
    spec_version: str | None = None,
) -> list[Path]:
    """
    Collect every pact declared on `holder` and write them as pact files.

    Args:
        holder: Class, instance or module declaring pacts.
        directory: Target directory; defaults to LAMINAT_PACT_DIR.
        spec_version: Pact file format; defaults to LAMINAT_PACT_SPEC_VERSION.

    Returns:
        Paths of the written files.
    """
    pacts = holder.pacts() if _is_directory(holder) else get_all_pacts(holder)
    return generate_json(pacts, directory, spec_version)


def _is_directory(holder: object) -> bool:  # noqa: RUF067
    if isinstance(holder, type):
        return issubclass(holder, PactDirectory)
    return isinstance(holder, PactDirectory)


# -----------------------------------------------------------------------------
# Public export surface
# -----------------------------------------------------------------------------

__all__ = [
    "SUPPORTED_PACT_SPEC_VERSIONS",
    "ConsumerPactBuilder",
    "DslPart",
    "DuplicatePactDslResponse",
    "ErrorCode",
    "JsonArray",
    "JsonBody",
    "LaminatError",
    "LaminatSettings",
    "Lazy",
    "PactBuildError",
    "PactDirectory",
    "PactDslRequest",
    "PactDslResponse",
    "PactDslWithProvider",
    "PactDslWithState",
    "ProviderState",
    "Request",
    "RequestResponseInteraction",
    "RequestResponsePact",
    "Response",
    "__version__",
    "array",
    "configure_logging",
    "duplicate",
    "duplicate_from_request",
    "generate_json",
    "get_all_pacts",
    "max_array_like",
    "merge_pacts",
    "min_array_like",
    "obj",
    "pact",
    "render_pact",
    "request",
    "response",
    "string_matcher",
    "string_type",
    "write_pacts",
]
