"""laminat.builders.

Fluent DSL for declaring request/response interactions.

A chain starts at `ConsumerPactBuilder(consumer).has_pact_with(provider)` and
reads like the interaction it declares::

    (
        ConsumerPactBuilder("app")
        .has_pact_with("api")
        .given("SUCCESS")
        .upon_receiving("GET user")
        .method("GET")
        .path("/user")
        .will_respond_with()
        .status(200)
        .body(JsonBody().string_type("name", "Jane"))
        .to_pact()
    )

The chain records what it is told in `laminat.model` records; pact-python
only sees the interactions when they are written (`laminat.jsonifier`).
Every interaction finished on a chain (by `given`, `upon_receiving` or
`to_pact` on a response) is recorded on the shared `PactDslWithProvider`, so a
single chain can declare several interactions for the same consumer and
provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl

from .body import DslPart, encode_json, regex_matcher
from .errors import raise_pact_build_error
from .lazy import resolve
from .model import (
    ProviderState,
    Request,
    RequestResponseInteraction,
    RequestResponsePact,
    Response,
    to_pairs,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

JSON_CONTENT_TYPE = "application/json"


# -----------------------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------------------


def _require_name(value: object, *, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise_pact_build_error(detail=f"{what} must be a non-empty string")
    return value.strip()


def _body_payload(
    body: object, content_type: str | None, headers: Mapping[str, str]
) -> tuple[str | None, str | None]:
    """Turn a body argument into its text and content type.

    Args:
        body: A `DslPart`, a `Lazy` of one, a JSON value (matchers allowed), a
            raw string, or None.
        content_type: Explicit content type, if any.
        headers: Headers declared so far. A raw string takes its content type
            from them, or leaves it to pact-python when there is none.

    Returns:
        Tuple of (body text, content type).
    """
    body = resolve(body)
    if body is None:
        return None, None
    if isinstance(body, DslPart):
        return body.to_json(), content_type or JSON_CONTENT_TYPE
    if isinstance(body, str):
        return body, content_type or headers.get("Content-Type")
    return encode_json(body), content_type or JSON_CONTENT_TYPE


def _normalize_headers(
    headers: Mapping[str, str] | str, value: str | None
) -> dict[str, str]:
    if isinstance(headers, str):
        if value is None:
            raise_pact_build_error(detail=f"header {headers!r} needs a value")
        return {headers: value}
    return {str(k): str(v) for k, v in headers.items()}


def _normalize_query(
    query: Mapping[str, str | Iterable[str]] | str,
) -> list[tuple[str, str]]:
    if isinstance(query, str):
        return parse_qsl(query, keep_blank_values=True)
    pairs: list[tuple[str, str]] = []
    for key, vals in query.items():
        if isinstance(vals, str):
            pairs.append((key, vals))
        else:
            pairs.extend((key, str(v)) for v in vals)
    return pairs


# -----------------------------------------------------------------------------
# Chain entry points
# -----------------------------------------------------------------------------


class ConsumerPactBuilder:
    """Entry point of the DSL, naming the consumer side of a pact."""

    def __init__(self, consumer_name: str) -> None:
        """
        Initialize the builder.

        Args:
            consumer_name: Name of the consumer.
        """
        self.consumer_name = _require_name(consumer_name, what="consumer name")

    def has_pact_with(self, provider_name: str) -> PactDslWithProvider:
        """Name the provider and start declaring interactions."""
        return PactDslWithProvider(self.consumer_name, provider_name)


class PactDslWithProvider:
    """A consumer/provider pair collecting the interactions of one chain."""

    def __init__(self, consumer_name: str, provider_name: str) -> None:
        """
        Initialize the pair.

        Args:
            consumer_name: Name of the consumer.
            provider_name: Name of the provider.
        """
        self.consumer_name = _require_name(consumer_name, what="consumer name")
        self.provider_name = _require_name(provider_name, what="provider name")
        self.interactions: list[RequestResponseInteraction] = []

    def given(
        self, state: str, params: Mapping[str, Any] | None = None
    ) -> PactDslWithState:
        """Scope the next interaction to a provider state."""
        return PactDslWithState(self, [ProviderState(state, params or {})])

    def upon_receiving(self, description: str) -> PactDslRequest:
        """Start a stateless interaction with the given description."""
        return PactDslRequest(self, description, ())

    def to_pact(self) -> RequestResponsePact:
        """Return a pact of every interaction recorded so far."""
        return RequestResponsePact(
            provider=self.provider_name,
            consumer=self.consumer_name,
            interactions=tuple(self.interactions),
        )


class PactDslWithState:
    """The provider states of an interaction that has not been described yet."""

    def __init__(
        self, provider: PactDslWithProvider, states: list[ProviderState]
    ) -> None:
        """Initialize with the owning provider pair and the states so far."""
        self.provider = provider
        self.states = states

    def given(
        self, state: str, params: Mapping[str, Any] | None = None
    ) -> PactDslWithState:
        """Add another provider state."""
        self.states.append(ProviderState(state, params or {}))
        return self

    def upon_receiving(self, description: str) -> PactDslRequest:
        """Describe the interaction and start its request."""
        return PactDslRequest(self.provider, description, tuple(self.states))


# -----------------------------------------------------------------------------
# Request
# -----------------------------------------------------------------------------


class PactDslRequest:
    """Builder for the request half of an interaction."""

    def __init__(
        self,
        provider: PactDslWithProvider,
        description: str,
        states: tuple[ProviderState, ...],
    ) -> None:
        """
        Initialize the request builder.

        Args:
            provider: Owning consumer/provider pair.
            description: Interaction description.
            states: Provider states of the interaction.
        """
        self.provider = provider
        self.description = _require_name(description, what="description")
        self.states = states
        self._method = "GET"
        self._path: str | None = None
        self._query: list[tuple[str, str]] = []
        self._headers: dict[str, str] = {}
        self._body: str | None = None
        self._content_type: str | None = None

    def method(self, method: str) -> PactDslRequest:
        """Set the HTTP method."""
        self._method = _require_name(method, what="method").upper()
        return self

    def path(self, path: str) -> PactDslRequest:
        """Set the request path."""
        self._path = _require_name(path, what="path")
        return self

    def match_path(self, regex: str, example: str) -> PactDslRequest:
        """Set the request path to `example`, matched by `regex`."""
        self._path = encode_json(regex_matcher(regex, example, name="path"))
        return self

    def query(self, query: Mapping[str, str | Iterable[str]] | str) -> PactDslRequest:
        """Add query parameters, given as ``a=1&b=2`` or as a mapping."""
        self._query.extend(_normalize_query(query))
        return self

    def match_query(self, name: str, regex: str, example: str) -> PactDslRequest:
        """Set query parameter `name` to `example`, matched by `regex`."""
        matcher = regex_matcher(regex, example, name=f"query parameter {name!r}")
        self._query = [pair for pair in self._query if pair[0] != name]
        self._query.append((name, encode_json(matcher)))
        return self

    def headers(
        self, headers: Mapping[str, str] | str, value: str | None = None
    ) -> PactDslRequest:
        """Add headers, either as a mapping or as a single name and value."""
        self._headers.update(_normalize_headers(headers, value))
        return self

    def match_header(self, name: str, regex: str, example: str) -> PactDslRequest:
        """Add a header matched by `regex`."""
        matcher = regex_matcher(regex, example, name=f"header {name!r}")
        self._headers[name] = encode_json(matcher)
        return self

    def body(self, body: object, content_type: str | None = None) -> PactDslRequest:
        """Set the request body from a `DslPart`, a JSON value, or a string."""
        self._body, self._content_type = _body_payload(
            body, content_type, self._headers
        )
        return self

    def to_request(self) -> Request:
        """Return the request record."""
        if self._path is None:
            raise_pact_build_error(
                detail=f"request of {self.description!r} has no path"
            )
        return Request(
            method=self._method,
            path=self._path,
            query=tuple(self._query),
            headers=to_pairs(self._headers),
            body=self._body,
            content_type=self._content_type,
        )

    def will_respond_with(self) -> PactDslResponse:
        """Finish the request and start declaring the response."""
        return PactDslResponse(self, self.provider)


# -----------------------------------------------------------------------------
# Response
# -----------------------------------------------------------------------------


class PactDslResponse:
    """Builder for the response half of an interaction."""

    def __init__(
        self,
        request: PactDslRequest | None,
        provider: PactDslWithProvider | None,
    ) -> None:
        """
        Initialize the response builder.

        Args:
            request: Request this response answers.
            provider: Owning consumer/provider pair.
        """
        self.request = request
        self.provider = provider
        self._status = 200
        self._headers: dict[str, str] = {}
        self._body: str | None = None
        self._content_type: str | None = None
        self._recorded = False

    def status(self, status: int) -> PactDslResponse:
        """Set the HTTP status code."""
        if isinstance(status, bool) or not isinstance(status, int):
            raise_pact_build_error(detail=f"status must be an integer, got {status!r}")
        self._status = status
        return self

    def headers(
        self, headers: Mapping[str, str] | str, value: str | None = None
    ) -> PactDslResponse:
        """Add headers, either as a mapping or as a single name and value."""
        self._headers.update(_normalize_headers(headers, value))
        return self

    def match_header(self, name: str, regex: str, example: str) -> PactDslResponse:
        """Add a header matched by `regex`."""
        matcher = regex_matcher(regex, example, name=f"header {name!r}")
        self._headers[name] = encode_json(matcher)
        return self

    def body(self, body: object, content_type: str | None = None) -> PactDslResponse:
        """Set the response body from a `DslPart`, a JSON value, or a string."""
        self._body, self._content_type = _body_payload(
            body, content_type, self._headers
        )
        return self

    def to_response(self) -> Response:
        """Return the response record."""
        return Response(
            status=self._status,
            headers=to_pairs(self._headers),
            body=self._body,
            content_type=self._content_type,
        )

    # -- chaining ---------------------------------------------------------------

    def _record(self) -> None:
        if self._recorded or self.request is None or self.provider is None:
            return
        self.provider.interactions.append(
            RequestResponseInteraction(
                description=self.request.description,
                provider_states=tuple(self.request.states),
                request=self.request.to_request(),
                response=self.to_response(),
            )
        )
        self._recorded = True

    def given(
        self, state: str, params: Mapping[str, Any] | None = None
    ) -> PactDslWithState:
        """Record this interaction and start another one in a provider state."""
        self._record()
        return self.provider.given(state, params)

    def upon_receiving(self, description: str) -> PactDslRequest:
        """Record this interaction and start another stateless one."""
        self._record()
        return self.provider.upon_receiving(description)

    def to_pact(self) -> RequestResponsePact:
        """Record this interaction and return the pact of the whole chain."""
        self._record()
        return self.provider.to_pact()
