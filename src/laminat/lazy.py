"""laminat.lazy.

Evaluate-once values for pact declarations.

A `Lazy` is a descriptor when assigned as a class attribute, so reading the
attribute yields its value. Assigned as a module global it stays a plain
`Lazy`; `resolve` unwraps either form so builders accept both.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


class Lazy(Generic[T]):
    """A value computed by `initializer` on first access, then cached.

    Evaluation is guarded by a lock, so concurrent first accesses run the
    initializer once. If the initializer raises, nothing is cached and the next
    access tries again.

    Used as a class attribute, a Lazy is a descriptor that resolves to its
    value; the cache is shared by the class and all of its instances.

    Attributes:
        produces: Type the initializer is declared to produce, if known.
        name: Attribute name the lazy was assigned to, if any.
    """

    def __init__(
        self, initializer: Callable[[], T], *, produces: type | None = None
    ) -> None:
        """
        Initialize the lazy value.

        Args:
            initializer: Zero-argument callable producing the value.
            produces: Type of the produced value, used for collection.
        """
        self._initializer = initializer
        self._value: Any = _UNSET
        self._lock = threading.RLock()
        self.produces = produces
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = f"{owner.__qualname__}.{name}"

    @property
    def value(self) -> T:
        """The computed value, evaluating it on first access."""
        if self._value is _UNSET:
            with self._lock:
                if self._value is _UNSET:
                    logger.debug("Evaluating lazy %s", self.name or "<anonymous>")
                    self._value = self._initializer()
        return cast(T, self._value)

    def is_initialized(self) -> bool:
        """Return whether the value has been computed."""
        return self._value is not _UNSET

    def __call__(self) -> T:
        return self.value

    def __get__(self, instance: object, owner: type | None = None) -> T:
        return self.value

    def __repr__(self) -> str:
        state = "initialized" if self.is_initialized() else "pending"
        return f"Lazy({self.name or '<anonymous>'}, {state})"


def resolve(value: Lazy[T] | T) -> T:
    """Return the value of `value` if it is a Lazy, else `value` itself."""
    if isinstance(value, Lazy):
        return value.value
    return value
