"""Unit tests for laminat.extension (pytest).

These tests cover:
- Lazy evaluates once, on first access, and does not cache failures
- pact/duplicate/duplicate_from_request build lazily
- duplication keeps requests, renames descriptions and swaps responses
- get_all_pacts collects exactly the pact-typed members of a holder
- PactDirectory registers pacts at class creation
- null-rejecting and block-style body helpers
"""

from __future__ import annotations

import json
import threading
import time
import types
from typing import Any, Optional

import pytest

from laminat import (
    JsonArray,
    JsonBody,
    Lazy,
    PactBuildError,
    PactDirectory,
    PactDslRequest,
    ProviderState,
    RequestResponsePact,
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
from laminat.lazy import resolve

NULLABLE_ERROR_TYPE: str | None = "FATAL"
NULLABLE_EXAMPLE_STRING: str | None = "NullableExampleString"

DEFAULT_REQUEST_HEADERS = {"We": "will have to see about this!"}
DEFAULT_RESPONSE_HEADERS = {"We": "will have to see about this as well."}


def _values(node: Any) -> Any:
    """Strip matchers from a decoded body, keeping their example values."""
    if isinstance(node, dict):
        if "pact:matcher:type" in node:
            return _values(node["value"])
        return {key: _values(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_values(item) for item in node]
    return node


def _request(initializer) -> PactDslRequest:  # noqa: ANN001
    return request("testconsumer", "testproducer", initializer)


def initial_request() -> PactDslRequest:
    """Request shared by the example pacts."""
    return _request(
        lambda p: p.given("SUCCESS")
        .upon_receiving("GET testRequest")
        .method("GET")
        .path("test/path")
        .headers(DEFAULT_REQUEST_HEADERS)
    )


def _messages(messages: JsonArray) -> None:
    obj(
        messages,
        lambda o: o.decimal_type("opacity", 0.9).string_type("message", "Error message."),
    )
    obj(
        messages,
        lambda o: o.decimal_type("opacity", 0.3).string_type("message", "Info message."),
    )


def _error_body(body: JsonBody) -> JsonBody:
    string_matcher(body, "errorType", ".*", NULLABLE_ERROR_TYPE)
    array(body, "messages", _messages)
    return obj(
        body,
        "exampleObj",
        lambda o: string_type(o, "exampleString", NULLABLE_EXAMPLE_STRING),
    )


class Responses:
    """Example response bodies."""

    initial_response = response(lambda body: body)
    error_response = response(_error_body)


class Pacts(PactDirectory):
    """Example pacts: a success pact and its error duplicate."""

    initial_pact = pact(
        lambda: initial_request()
        .will_respond_with()
        .status(200)
        .headers(DEFAULT_RESPONSE_HEADERS)
        .body(Responses.initial_response)
    )

    error_pact = duplicate(
        ProviderState("ERROR"),
        lambda: Pacts.initial_pact,
        lambda r: r.status(500)
        .headers(DEFAULT_RESPONSE_HEADERS)
        .body(Responses.error_response),
    )


# -----------------------------------------------------------------------------
# Lazy
# -----------------------------------------------------------------------------


def test_lazy_evaluates_once_on_first_access() -> None:
    """The initializer runs on first access only."""
    calls: list[int] = []
    lazy = Lazy(lambda: calls.append(1) or len(calls))

    assert not lazy.is_initialized()
    assert calls == []
    assert lazy.value == 1
    assert lazy() == 1
    assert lazy.is_initialized()
    assert calls == [1]


def test_lazy_does_not_cache_failures() -> None:
    """A failing initializer is retried on the next access."""
    attempts: list[int] = []

    def flaky() -> str:
        attempts.append(1)
        if len(attempts) == 1:
            msg = "first attempt fails"
            raise RuntimeError(msg)
        return "ok"

    lazy = Lazy(flaky)
    with pytest.raises(RuntimeError, match=r"first attempt fails"):
        _ = lazy.value
    assert not lazy.is_initialized()
    assert lazy.value == "ok"
    assert len(attempts) == 2


def test_lazy_concurrent_first_access_runs_once() -> None:
    """Concurrent first accesses share one evaluation."""
    calls: list[int] = []

    def slow() -> object:
        calls.append(1)
        time.sleep(0.05)
        return object()

    lazy = Lazy(slow)
    results: list[object] = []
    threads = [
        threading.Thread(target=lambda: results.append(lazy.value)) for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert len({id(r) for r in results}) == 1


def test_lazy_class_attribute_resolves_to_value() -> None:
    """As a class attribute a Lazy resolves on class and instance access."""

    class Holder:
        value = Lazy(lambda: 42)

    assert Holder.value == 42
    assert Holder().value == 42
    assert "Holder.value" in repr(vars(Holder)["value"])


def test_resolve_unwraps_only_lazies() -> None:
    """resolve evaluates a Lazy and passes other values through."""
    assert resolve(Lazy(lambda: "built")) == "built"
    assert resolve("plain") == "plain"
    assert resolve(None) is None


# -----------------------------------------------------------------------------
# pact / duplicate
# -----------------------------------------------------------------------------


def test_pact_is_built_lazily() -> None:
    """pact() does not run the chain until first access."""
    calls: list[int] = []

    def chain():  # noqa: ANN202
        calls.append(1)
        return initial_request().will_respond_with()

    lazy = pact(chain)
    assert calls == []
    built = lazy.value
    assert isinstance(built, RequestResponsePact)
    assert lazy.value is built
    assert calls == [1]


def test_initial_pact_contents() -> None:
    """The example success pact carries one SUCCESS interaction."""
    built = Pacts.initial_pact
    (interaction,) = built.interactions
    assert interaction.description == "GET testRequest"
    assert interaction.display_state() == "SUCCESS"
    assert interaction.response.status == 200
    assert interaction.response.json_body() == {}


def test_duplicate_swaps_response_and_state() -> None:
    """Duplication keeps the request and replaces state, description, response."""
    base = Pacts.initial_pact
    dup = Pacts.error_pact

    assert dup.consumer == base.consumer
    assert dup.provider == base.provider
    assert len(dup.interactions) == 1
    (interaction,) = dup.interactions
    assert interaction.description == "GET testRequest ERROR"
    assert interaction.provider_states == (ProviderState("ERROR"),)
    assert interaction.request == base.interactions[0].request
    assert interaction.request is base.interactions[0].request

    assert interaction.response.status == 500
    assert dict(interaction.response.headers) == DEFAULT_RESPONSE_HEADERS
    assert interaction.response.content_type == "application/json"
    body = interaction.response.json_body()
    assert _values(body) == {
        "errorType": "FATAL",
        "messages": [
            {"opacity": 0.9, "message": "Error message."},
            {"opacity": 0.3, "message": "Info message."},
        ],
        "exampleObj": {"exampleString": "NullableExampleString"},
    }
    assert body["errorType"]["pact:matcher:type"] == "regex"
    assert body["errorType"]["regex"] == ".*"
    assert body["messages"][1]["opacity"]["pact:matcher:type"] == "decimal"
    assert body["exampleObj"]["exampleString"]["pact:matcher:type"] == "type"


def test_duplicate_maps_every_interaction() -> None:
    """Each base interaction gets its own duplicate with the shared response."""
    base = pact(
        lambda: _request(lambda p: p.upon_receiving("one").path("/1"))
        .will_respond_with()
        .upon_receiving("two")
        .path("/2")
        .will_respond_with()
    )
    dup = duplicate("DOWN", base, lambda r: r.status(503)).value

    assert [i.description for i in dup.interactions] == ["one DOWN", "two DOWN"]
    assert [i.request.path for i in dup.interactions] == ["/1", "/2"]
    assert all(i.response.status == 503 for i in dup.interactions)
    assert all(i.display_state() == "DOWN" for i in dup.interactions)


def test_duplicate_is_lazy() -> None:
    """Neither the base nor the response is built before first access."""
    calls: list[str] = []

    def base() -> RequestResponsePact:
        calls.append("base")
        return Pacts.initial_pact

    def shape(r):  # noqa: ANN001, ANN202
        calls.append("response")
        return r.status(500)

    lazy = duplicate("ERROR", base, shape)
    assert calls == []
    _ = lazy.value
    assert calls == ["base", "response"]


def test_duplicate_from_request() -> None:
    """A request can be duplicated without declaring a base response."""
    dup = duplicate_from_request(
        ProviderState("EMPTY", {"items": 0}),
        initial_request,
        lambda r: r.status(204),
    ).value

    (interaction,) = dup.interactions
    assert interaction.description == "GET testRequest EMPTY"
    assert interaction.provider_states == (ProviderState("EMPTY", {"items": 0}),)
    assert interaction.request.path == "test/path"
    assert interaction.response.status == 204


def test_duplicate_rejects_missing_state() -> None:
    """A missing state is rejected when the duplicate is built."""
    lazy = duplicate(None, lambda: Pacts.initial_pact, lambda r: r)  # type: ignore[arg-type]
    with pytest.raises(PactBuildError, match=r"Expected field state to be set!"):
        _ = lazy.value


def test_duplicate_response_cannot_chain() -> None:
    """Chaining inside the response initializer fails."""
    lazy = duplicate("ERROR", lambda: Pacts.initial_pact, lambda r: r.given("X"))
    with pytest.raises(NotImplementedError, match=r"Chaining interactions"):
        _ = lazy.value


# -----------------------------------------------------------------------------
# Collecting pacts
# -----------------------------------------------------------------------------


def test_get_all_pacts_from_class() -> None:
    """The reflective collect grabs all pacts of the example holder."""
    pacts = get_all_pacts(Pacts)
    assert len(pacts) == 2
    states = {p.interactions[0].display_state() for p in pacts}
    assert states == {"SUCCESS", "ERROR"}


def test_get_all_pacts_only_evaluates_pact_members() -> None:
    """Non-pact lazies and other members are neither evaluated nor returned."""
    body_calls: list[int] = []

    class Holder:
        only = pact(lambda: initial_request().will_respond_with())
        body = response(lambda b: body_calls.append(1) or b)
        plain = Pacts.initial_pact
        number = 3

        def method(self) -> RequestResponsePact:
            return Pacts.initial_pact

    pacts = get_all_pacts(Holder)
    assert len(pacts) == 2
    assert pacts[1] is Pacts.initial_pact
    assert body_calls == []


def test_get_all_pacts_from_instance_includes_typed_properties() -> None:
    """On instances, properties annotated to return a pact are collected."""

    class Holder:
        def __init__(self) -> None:
            self.own = Pacts.error_pact

        @property
        def typed(self) -> RequestResponsePact:
            return Pacts.initial_pact

        @property
        def untyped(self):  # noqa: ANN202
            msg = "must not be called"
            raise AssertionError(msg)

    pacts = get_all_pacts(Holder())
    assert pacts == [Pacts.error_pact, Pacts.initial_pact]


def test_get_all_pacts_collects_optional_pact_properties() -> None:
    """Properties annotated as an optional pact are collected when set."""

    class Holder:
        @property
        def present(self) -> RequestResponsePact | None:
            return Pacts.initial_pact

        @property
        def absent(self) -> RequestResponsePact | None:
            return None

        @property
        def legacy(self) -> Optional[RequestResponsePact]:  # noqa: UP045
            return Pacts.error_pact

    assert get_all_pacts(Holder()) == [Pacts.initial_pact, Pacts.error_pact]


def test_module_level_lazies_are_resolved() -> None:
    """Module globals stay plain Lazy objects and are unwrapped where used."""
    module = types.ModuleType("module_pacts")
    module.body = response(lambda b: b.string_type("name", "Jane"))
    module.base_request = Lazy(initial_request)
    module.base = pact(
        lambda: initial_request().will_respond_with().body(module.body)
    )
    module.error = duplicate(
        "ERROR",
        lambda: module.base,
        lambda r: r.status(500).body(module.body),
    )
    module.empty = duplicate_from_request(
        "EMPTY", lambda: module.base_request, lambda r: r.status(204)
    )

    base, error, empty = get_all_pacts(module)
    assert base.interactions[0].response.json_body()["name"]["value"] == "Jane"
    assert error.interactions[0].description == "GET testRequest ERROR"
    assert error.interactions[0].request is base.interactions[0].request
    assert error.interactions[0].response.json_body() == (
        base.interactions[0].response.json_body()
    )
    assert empty.interactions[0].description == "GET testRequest EMPTY"
    assert empty.interactions[0].response.status == 204


def test_get_all_pacts_from_module() -> None:
    """Module globals are scanned as well."""
    module = types.ModuleType("example_pacts")
    module.first = pact(lambda: initial_request().will_respond_with())
    module.second = Pacts.error_pact
    module.other = "not a pact"

    pacts = get_all_pacts(module)
    assert len(pacts) == 2
    assert pacts[1] is Pacts.error_pact


def test_pact_directory_registers_in_declaration_order() -> None:
    """Subclasses list their pacts, inherited ones first."""
    assert Pacts.pact_names() == ("initial_pact", "error_pact")

    class MorePacts(Pacts):
        extra = duplicate("GONE", lambda: Pacts.initial_pact, lambda r: r.status(410))
        ignored = response(lambda b: b)

    assert MorePacts.pact_names() == ("initial_pact", "error_pact", "extra")
    pacts = MorePacts.pacts()
    assert [p.interactions[0].display_state() for p in pacts] == [
        "SUCCESS",
        "ERROR",
        "GONE",
    ]


# -----------------------------------------------------------------------------
# Body helpers
# -----------------------------------------------------------------------------


def test_string_helpers_reject_none() -> None:
    """None values for required string fields raise PactBuildError."""
    with pytest.raises(PactBuildError, match=r"Expected field errorType to be set!"):
        string_matcher(JsonBody(), "errorType", ".*", None)
    with pytest.raises(PactBuildError, match=r"Expected field name to be set!"):
        string_type(JsonBody(), "name", None)


def test_string_helpers_forward_values() -> None:
    """Non-null values are added like the builder methods would."""
    body = JsonBody()
    assert string_type(body, "name", "Jane") is body
    assert string_matcher(body, "code", "[0-9]+", "42") is body
    out = json.loads(body.to_json())
    assert out["name"]["value"] == "Jane"
    assert out["code"]["value"] == "42"
    assert out["code"]["regex"] == "[0-9]+"


def test_array_like_helpers_close_their_arrays() -> None:
    """min/max_array_like helpers fill the example and replicate it."""
    body = JsonBody()
    min_array_like(body, "many", 2, lambda e: e.integer_type("id", 1))
    max_array_like(body, "few", 3, lambda e: e.string_type("tag", "a"))
    out = json.loads(body.to_json())
    assert _values(out) == {"many": [{"id": 1}, {"id": 1}], "few": [{"tag": "a"}]}
    assert out["many"]["min"] == 2
    assert out["few"]["max"] == 3


def test_obj_rejects_unsupported_parts() -> None:
    """obj only nests into JsonBody and JsonArray."""
    with pytest.raises(PactBuildError, match=r"cannot open an object"):
        obj("not a part", lambda o: o)
