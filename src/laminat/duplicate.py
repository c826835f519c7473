"""laminat.duplicate.

Response builder used when an existing pact is duplicated with a new response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, NoReturn

from .builders import PactDslResponse
from .errors import raise_unsupported_operation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .builders import PactDslRequest, PactDslWithState
    from .model import RequestResponsePact

_NO_CHAINING: Final[str] = "Chaining interactions is not supported for duplicates."
_NO_PACT: Final[str] = (
    "Duplicate pact responses may not be used in pacts directly. "
    "Use to_response() instead."
)


class DuplicatePactDslResponse(PactDslResponse):
    """A response builder with no request behind it.

    Only the response-shaping methods and `to_response()` may be used. Anything
    that would record an interaction or start a new one raises
    NotImplementedError.
    """

    def __init__(self) -> None:
        """Initialize a detached response builder."""
        super().__init__(None, None)

    def given(
        self, state: str, params: Mapping[str, Any] | None = None
    ) -> PactDslWithState:
        """Reject chaining a further interaction.

        Raises:
            NotImplementedError: Always.
        """
        _reject("given")

    def upon_receiving(self, description: str) -> PactDslRequest:
        """Reject chaining a further interaction.

        Raises:
            NotImplementedError: Always.
        """
        _reject("upon_receiving")

    def to_pact(self) -> RequestResponsePact:
        """Reject building a pact from a detached response.

        Raises:
            NotImplementedError: Always.
        """
        raise_unsupported_operation(operation="to_pact", detail=_NO_PACT)
        raise AssertionError("unreachable")  # pragma: no cover


def _reject(operation: str) -> NoReturn:
    raise_unsupported_operation(operation=operation, detail=_NO_CHAINING)
    raise AssertionError("unreachable")  # pragma: no cover
