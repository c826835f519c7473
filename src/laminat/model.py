"""laminat.model.

Immutable records of the interactions a DSL chain declared.

Entities
--------
- `ProviderState`: named precondition, optionally parameterized.
- `Request` / `Response`: the HTTP halves of an interaction.
- `RequestResponseInteraction`: one request/response exchange.
- `RequestResponsePact`: all interactions between one consumer and one provider.

Values that carry a matcher (a matched path, header, query parameter or any
part of a JSON body) are stored the way pact-python hands them to the pact
FFI: as JSON text in the pact integration format. Every record is therefore
built from strings, ints and tuples, so records compare by value, hash, and
can be shared between a pact and its duplicates.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

Pairs = tuple[tuple[str, str], ...]


def to_pairs(items: Mapping[str, str] | Pairs | None) -> Pairs:
    """Return `items` as a tuple of ``(name, value)`` pairs, keeping order."""
    if items is None:
        return ()
    if isinstance(items, Mapping):
        return tuple((str(k), str(v)) for k, v in items.items())
    return tuple((str(k), str(v)) for k, v in items)


@dataclass(frozen=True, slots=True)
class ProviderState:
    """A named provider state, e.g. ``ProviderState("ERROR")``.

    Parameters may be given as a mapping; they are stored as sorted
    ``(name, value)`` pairs.
    """

    name: str
    params: tuple[tuple[str, Any], ...] = ()

    def __post_init__(self) -> None:
        params = self.params
        if isinstance(params, Mapping):
            params = params.items()
        object.__setattr__(self, "params", tuple(sorted(params)))

    @property
    def parameters(self) -> dict[str, Any]:
        """The parameters as a dict."""
        return dict(self.params)


@dataclass(frozen=True, slots=True)
class Request:
    """The request half of an interaction.

    Attributes:
        method: Upper-case HTTP method.
        path: Plain path, or a path matcher in integration JSON.
        query: Query parameters in order; repeated names are repeated pairs.
        headers: Header pairs in order.
        body: Body text (JSON bodies in integration JSON), or None.
        content_type: Content type of the body.
    """

    method: str = "GET"
    path: str = "/"
    query: Pairs = ()
    headers: Pairs = ()
    body: str | None = None
    content_type: str | None = None

    def json_body(self) -> Any:
        """Return the body decoded from JSON, or None."""
        return None if self.body is None else json.loads(self.body)


@dataclass(frozen=True, slots=True)
class Response:
    """The response half of an interaction."""

    status: int = 200
    headers: Pairs = ()
    body: str | None = None
    content_type: str | None = None

    def json_body(self) -> Any:
        """Return the body decoded from JSON, or None."""
        return None if self.body is None else json.loads(self.body)


@dataclass(frozen=True, slots=True)
class RequestResponseInteraction:
    """One request/response exchange, optionally scoped to provider states."""

    description: str
    provider_states: tuple[ProviderState, ...]
    request: Request
    response: Response

    def display_state(self) -> str:
        """Return the provider state names for display, or ``"None"``."""
        if not self.provider_states or not self.provider_states[0].name:
            return "None"
        return ", ".join(state.name for state in self.provider_states)

    def unique_key(self) -> tuple[str, tuple[str, ...]]:
        """Return the key that identifies this interaction within a pact."""
        return self.description, tuple(s.name for s in self.provider_states)


@dataclass(frozen=True, slots=True)
class RequestResponsePact:
    """All interactions recorded between one consumer and one provider."""

    provider: str
    consumer: str
    interactions: tuple[RequestResponseInteraction, ...] = ()

    @property
    def request_response_interactions(self) -> tuple[RequestResponseInteraction, ...]:
        """Alias of `interactions`."""
        return self.interactions
