"""laminat.extension.

Lazily evaluated pact declarations and block-style body helpers.

Pacts are declared as class attributes (or module globals) that evaluate on
first access, so a test only builds the interactions it actually uses::

    class UserPacts(PactDirectory):
        user = pact(lambda: user_request().will_respond_with().status(200))
        user_error = duplicate(
            "ERROR",
            lambda: UserPacts.user,
            lambda r: r.status(500),
        )

    get_all_pacts(UserPacts)  # -> [user, user_error]

The body helpers wrap the `JsonBody`/`JsonArray` builders so that nested
objects and arrays are opened, filled by a callable and closed in one call,
and so that required string fields reject ``None`` with a `PactBuildError`.
"""

from __future__ import annotations

import logging
import typing
from functools import cached_property, singledispatch
from types import ModuleType, NoneType, UnionType
from typing import TYPE_CHECKING, Any, ClassVar, cast

from .body import DslPart, JsonArray, JsonBody
from .builders import ConsumerPactBuilder
from .duplicate import DuplicatePactDslResponse
from .errors import raise_missing_field, raise_pact_build_error
from .lazy import Lazy, resolve
from .model import ProviderState, RequestResponseInteraction, RequestResponsePact

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from .builders import PactDslRequest, PactDslResponse, PactDslWithProvider

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Pact declarations
# -----------------------------------------------------------------------------


def pact(initializer: Callable[[], PactDslResponse]) -> Lazy[RequestResponsePact]:
    """
    Lazily define a pact from a DSL chain ending in a response.

    Args:
        initializer: Callable returning the response builder of the chain.

    Returns:
        Lazy pact, built by `to_pact()` on first access.
    """
    return Lazy(lambda: initializer().to_pact(), produces=RequestResponsePact)


def duplicate(
    state: ProviderState | str,
    base_initializer: Callable[[], RequestResponsePact | Lazy[RequestResponsePact]],
    response_initializer: Callable[[PactDslResponse], object],
) -> Lazy[RequestResponsePact]:
    """
    Lazily duplicate a pact with a different provider state and response.

    Both inputs are callables so the base pact is only built when the
    duplicate is.

    Args:
        state: Provider state of the duplicate, or its name.
        base_initializer: Callable returning the pact to duplicate, or a
            `Lazy` of it such as a module-level `pact`.
        response_initializer: Callable shaping the new response; it receives a
            `DuplicatePactDslResponse` and its return value is ignored.

    Returns:
        Lazy duplicated pact.
    """
    return Lazy(
        lambda: _duplicate(
            _as_state(state), resolve(base_initializer()), response_initializer
        ),
        produces=RequestResponsePact,
    )


def duplicate_from_request(
    state: ProviderState | str,
    base_initializer: Callable[[], PactDslRequest | Lazy[PactDslRequest]],
    response_initializer: Callable[[PactDslResponse], object],
) -> Lazy[RequestResponsePact]:
    """
    Lazily duplicate a request into a pact with its own state and response.

    Useful to reuse a request declaration without declaring a base response
    for it.

    Args:
        state: Provider state of the duplicate, or its name.
        base_initializer: Callable returning the request builder to reuse, or
            a `Lazy` of it.
        response_initializer: Callable shaping the new response.

    Returns:
        Lazy duplicated pact.
    """
    return Lazy(
        lambda: _duplicate(
            _as_state(state),
            resolve(base_initializer()).will_respond_with().to_pact(),
            response_initializer,
        ),
        produces=RequestResponsePact,
    )


def _as_state(state: ProviderState | str | None) -> ProviderState:
    if state is None:
        raise_missing_field(name="state")
    if isinstance(state, ProviderState):
        return state
    if isinstance(state, str):
        return ProviderState(state)
    raise_pact_build_error(detail=f"not a provider state: {state!r}")
    raise AssertionError("unreachable")  # pragma: no cover


def _duplicate(
    state: ProviderState,
    base_pact: RequestResponsePact,
    response_initializer: Callable[[PactDslResponse], object],
) -> RequestResponsePact:
    response_dsl = DuplicatePactDslResponse()
    response_initializer(response_dsl)
    response = response_dsl.to_response()

    interactions = tuple(
        RequestResponseInteraction(
            description=f"{base.description} {state.name}",
            provider_states=(state,),
            request=base.request,
            response=response,
        )
        for base in base_pact.interactions
    )
    logger.debug(
        "Duplicated %d interaction(s) of %s -> %s for state %r",
        len(interactions),
        base_pact.consumer,
        base_pact.provider,
        state.name,
    )
    return RequestResponsePact(
        provider=base_pact.provider,
        consumer=base_pact.consumer,
        interactions=interactions,
    )


# -----------------------------------------------------------------------------
# Collecting pacts
# -----------------------------------------------------------------------------


def _iter_members(holder: object) -> Iterator[tuple[str, object]]:
    if isinstance(holder, ModuleType):
        namespaces = [vars(holder)]
    else:
        klass = holder if isinstance(holder, type) else type(holder)
        namespaces = []
        if not isinstance(holder, type) and hasattr(holder, "__dict__"):
            namespaces.append(vars(holder))
        namespaces.extend(vars(k) for k in klass.__mro__ if k is not object)

    seen: set[str] = set()
    for namespace in namespaces:
        for name, member in list(namespace.items()):
            if (name.startswith("__") and name.endswith("__")) or name in seen:
                continue
            seen.add(name)
            yield name, member


_PACT_HINT_STRINGS = frozenset(
    {
        "RequestResponsePact",
        "RequestResponsePact|None",
        "None|RequestResponsePact",
        "Optional[RequestResponsePact]",
    }
)


def _returns_pact(fn: Callable[..., object]) -> bool:
    try:
        hint = typing.get_type_hints(fn).get("return")
    except (NameError, TypeError):
        hint = getattr(fn, "__annotations__", {}).get("return")
    if isinstance(hint, str):
        return "".join(hint.split()) in _PACT_HINT_STRINGS
    if typing.get_origin(hint) in (typing.Union, UnionType):
        return set(typing.get_args(hint)) == {RequestResponsePact, NoneType}
    return hint is RequestResponsePact


def _resolve_member(holder: object, member: object) -> object:
    if isinstance(member, Lazy):
        return member.value if member.produces is RequestResponsePact else None
    if isinstance(member, (property, cached_property)):
        getter = member.fget if isinstance(member, property) else member.func
        if isinstance(holder, type) or getter is None or not _returns_pact(getter):
            return None
        return member.__get__(holder, type(holder))
    return member


def get_all_pacts(holder: object) -> list[RequestResponsePact]:
    """
    Return the pacts reachable through the members of `holder`.

    Collected are lazies created by `pact`/`duplicate`, plain attributes that
    hold a `RequestResponsePact`, and (on instances) properties annotated to
    return one. Other lazies, such as `response` bodies, are not evaluated.

    Args:
        holder: A class, an instance, or a module.

    Returns:
        Pacts in declaration order, instance members first.
    """
    pacts: list[RequestResponsePact] = []
    for _, member in _iter_members(holder):
        value = _resolve_member(holder, member)
        if isinstance(value, RequestResponsePact):
            pacts.append(value)
    return pacts


class PactDirectory:
    """Base class that registers its pact lazies when a subclass is created.

    Subclasses list their pacts explicitly through `pacts()`, in declaration
    order with inherited pacts first, without scanning members at call time.
    """

    _pact_names: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        names = list(cls._pact_names)
        for name, member in vars(cls).items():
            if (
                isinstance(member, Lazy)
                and member.produces is RequestResponsePact
                and name not in names
            ):
                names.append(name)
        cls._pact_names = tuple(names)

    @classmethod
    def pact_names(cls) -> tuple[str, ...]:
        """Return the registered attribute names."""
        return cls._pact_names

    @classmethod
    def pacts(cls) -> list[RequestResponsePact]:
        """Return the registered pacts, evaluating them as needed."""
        return [
            value
            for value in (getattr(cls, name) for name in cls._pact_names)
            if isinstance(value, RequestResponsePact)
        ]


# -----------------------------------------------------------------------------
# Request / response shortcuts
# -----------------------------------------------------------------------------


def request(
    consumer_name: str,
    provider_name: str,
    initializer: Callable[[PactDslWithProvider], PactDslRequest],
) -> PactDslRequest:
    """
    Define a request by applying `initializer` to a fresh consumer/provider pair.

    Wrap this in a helper of your own to fix the consumer and provider names.

    Args:
        consumer_name: Name of the consumer.
        provider_name: Name of the provider.
        initializer: Callable declaring the request.

    Returns:
        The request builder returned by `initializer`.
    """
    return initializer(ConsumerPactBuilder(consumer_name).has_pact_with(provider_name))


def response(initializer: Callable[[JsonBody], DslPart | None]) -> Lazy[DslPart | None]:
    """Lazily define a JSON body by applying `initializer` to a fresh `JsonBody`."""
    return Lazy(lambda: initializer(JsonBody()), produces=DslPart)


# -----------------------------------------------------------------------------
# Null-rejecting field helpers
# -----------------------------------------------------------------------------


def string_matcher(body: JsonBody, name: str, regex: str, value: str | None) -> JsonBody:
    """Add a regex-matched string field, rejecting a missing value.

    Raises:
        PactBuildError: If `value` is None.
    """
    if value is None:
        raise_missing_field(name=name)
    return body.string_matcher(name, regex, value)


def string_type(body: JsonBody, name: str, value: str | None) -> JsonBody:
    """Add a type-matched string field, rejecting a missing value.

    Raises:
        PactBuildError: If `value` is None.
    """
    if value is None:
        raise_missing_field(name=name)
    return body.string_type(name, value)


# -----------------------------------------------------------------------------
# Block-style nesting helpers
# -----------------------------------------------------------------------------


@singledispatch
def obj(part: DslPart, *args: Any) -> DslPart:
    """Open a nested object, fill it with an initializer and close it.

    ``obj(body, name, initializer)`` nests under a field of a `JsonBody`;
    ``obj(array, initializer)`` appends to a `JsonArray`. The receiver is
    returned so calls can be chained.
    """
    raise_pact_build_error(
        detail=f"cannot open an object inside {type(part).__name__}"
    )
    raise AssertionError("unreachable")  # pragma: no cover


@obj.register(JsonBody)
def _obj_in_body(
    part: JsonBody, name: str, initializer: Callable[[JsonBody], object]
) -> JsonBody:
    child = part.object(name)
    initializer(child)
    child.close_object()
    return part


@obj.register(JsonArray)
def _obj_in_array(part: JsonArray, initializer: Callable[[JsonBody], object]) -> JsonArray:
    child = part.object()
    initializer(child)
    child.close_object()
    return part


def array(
    body: JsonBody, name: str, initializer: Callable[[JsonArray], object]
) -> JsonBody:
    """Open an array under `name`, fill it with `initializer` and close it."""
    child = body.array(name)
    initializer(child)
    child.close_array()
    return body


def min_array_like(
    body: JsonBody,
    name: str,
    count: int,
    example_initializer: Callable[[JsonBody], object],
) -> JsonBody:
    """Add an array of at least `count` items shaped like the example object."""
    example = body.min_array_like(name, count)
    example_initializer(example)
    cast(JsonArray, example.close_object()).close_array()
    return body


def max_array_like(
    body: JsonBody,
    name: str,
    count: int,
    example_initializer: Callable[[JsonBody], object],
) -> JsonBody:
    """Add an array of at most `count` items shaped like the example object."""
    example = body.max_array_like(name, count)
    example_initializer(example)
    cast(JsonArray, example.close_object()).close_array()
    return body
