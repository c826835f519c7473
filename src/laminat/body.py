"""laminat.body.

JSON body builders for pact requests and responses.

A body is built as a tree of `DslPart` objects: `JsonBody` for JSON objects and
`JsonArray` for JSON arrays. Opening a child (`object`, `array`,
`min_array_like`, ...) returns the child; closing it (`close_object`,
`close_array`) returns the parent. Typed fields are stored as `pact.match`
matchers, so the finished tree is exactly what pact-python expects as a body.

Plain objects and arrays are placed into their parent when opened. Array-like
templates (`min_array_like`, `max_array_like`, `each_like`) hold one example
item and are placed into their parent as an array matcher when closed.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any, Final

import numpy as np
from pact import match

from .errors import raise_invalid_matcher, raise_pact_build_error

DEFAULT_STRING_EXAMPLE: Final[str] = "string"
DEFAULT_INTEGER_EXAMPLE: Final[int] = 100
DEFAULT_DECIMAL_EXAMPLE: Final[float] = 100.0


# -----------------------------------------------------------------------------
# Example value helpers
# -----------------------------------------------------------------------------


def to_json_value(value: object) -> Any:
    """Convert numpy scalars and arrays into plain JSON-compatible values.

    Args:
        value: Example value.

    Returns:
        The value, with numpy types replaced by their Python equivalents.
    """
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


def _integration_json(value: object) -> Any:
    to_integration_json = getattr(value, "to_integration_json", None)
    if to_integration_json is None:
        msg = f"Object of type {type(value).__name__} is not JSON serializable"
        raise TypeError(msg)
    return to_integration_json()


def encode_json(value: object) -> str:
    """Serialize a JSON value that may contain `pact.match` matchers.

    Matchers are written in the pact integration format, the text pact-python
    passes to the FFI for bodies, headers, paths and query parameters.
    """
    return json.dumps(to_json_value(value), default=_integration_json)


def _integer_example(value: object, *, name: str) -> int:
    value = to_json_value(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise_pact_build_error(detail=f"{name} expects an integer, got {value!r}")
    return value


def _decimal_example(value: object, *, name: str) -> float:
    value = to_json_value(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise_pact_build_error(detail=f"{name} expects a decimal, got {value!r}")
    return float(value)


def _number_example(value: object, *, name: str) -> int | float:
    value = to_json_value(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise_pact_build_error(detail=f"{name} expects a number, got {value!r}")
    return value


def _boolean_example(value: object, *, name: str) -> bool:
    value = to_json_value(value)
    if not isinstance(value, bool):
        raise_pact_build_error(detail=f"{name} expects a boolean, got {value!r}")
    return value


def regex_matcher(regex: str, example: object, *, name: str) -> Any:
    """Return a regex matcher after checking that `example` fully matches.

    Raises:
        ValueError: If the regex is invalid or the example does not match.
    """
    try:
        pattern = re.compile(regex)
    except re.error as exc:
        raise_invalid_matcher(detail=f"{name} has an invalid regex {regex!r}: {exc}")
    if example is None:
        raise_invalid_matcher(detail=f"{name} needs an example for regex {regex!r}")
    example = to_json_value(example)
    if not isinstance(example, str) or pattern.fullmatch(example) is None:
        raise_invalid_matcher(
            detail=f"example {example!r} for {name} does not match regex {regex!r}"
        )
    return match.regex(example, regex=regex)


# -----------------------------------------------------------------------------
# Base part
# -----------------------------------------------------------------------------


class DslPart:
    """Common base of JSON body builders.

    Attributes:
        parent: Enclosing part, or None for the root.
    """

    def __init__(self, parent: DslPart | None = None) -> None:
        """
        Initialize a part.

        Args:
            parent: Enclosing part, or None for a root.
        """
        self.parent = parent

    @property
    def body(self) -> Any:
        """The JSON value built so far, matchers included."""
        raise NotImplementedError

    def close(self) -> DslPart | None:
        """Close this part and return its parent."""
        return self.parent

    def to_json(self) -> str:
        """Return the body in integration JSON."""
        return encode_json(self.body)

    def _insert(self, key: str | None, value: Any) -> None:
        raise NotImplementedError


# -----------------------------------------------------------------------------
# JSON object
# -----------------------------------------------------------------------------


class JsonBody(DslPart):
    """Builder for a JSON object body."""

    def __init__(self, parent: DslPart | None = None) -> None:
        """Initialize an empty JSON object builder."""
        super().__init__(parent)
        self._body: dict[str, Any] = {}

    @property
    def body(self) -> dict[str, Any]:
        """The JSON object built so far."""
        return self._body

    def _insert(self, key: str | None, value: Any) -> None:
        self._body[str(key)] = value

    # -- primitives -------------------------------------------------------------

    def string_type(self, name: str, example: str | None = None) -> JsonBody:
        """Add a string field matched by type."""
        value = DEFAULT_STRING_EXAMPLE if example is None else to_json_value(example)
        self._insert(name, match.like(value))
        return self

    def string_value(self, name: str, value: str | None) -> JsonBody:
        """Add a string field matched by equality."""
        self._insert(name, to_json_value(value))
        return self

    def string_matcher(self, name: str, regex: str, example: str) -> JsonBody:
        """Add a string field matched by a regular expression."""
        self._insert(name, regex_matcher(regex, example, name=name))
        return self

    def integer_type(self, name: str, example: int = DEFAULT_INTEGER_EXAMPLE) -> JsonBody:
        """Add an integer field."""
        self._insert(name, match.integer(_integer_example(example, name=name)))
        return self

    def decimal_type(
        self, name: str, example: float = DEFAULT_DECIMAL_EXAMPLE
    ) -> JsonBody:
        """Add a decimal field."""
        self._insert(name, match.decimal(_decimal_example(example, name=name)))
        return self

    def number_type(
        self, name: str, example: float = DEFAULT_INTEGER_EXAMPLE
    ) -> JsonBody:
        """Add a numeric field."""
        self._insert(name, match.number(_number_example(example, name=name)))
        return self

    def boolean_type(self, name: str, example: bool = True) -> JsonBody:  # noqa: FBT001, FBT002
        """Add a boolean field matched by type."""
        self._insert(name, match.like(_boolean_example(example, name=name)))
        return self

    def null_value(self, name: str) -> JsonBody:
        """Add a field whose value is null."""
        self._insert(name, None)
        return self

    # -- nesting ----------------------------------------------------------------

    def object(self, name: str) -> JsonBody:
        """Open a nested object under `name` and return it."""
        child = JsonBody(self)
        self._insert(name, child.body)
        return child

    def close_object(self) -> DslPart | None:
        """Close this object and return its parent."""
        return self.close()

    def array(self, name: str) -> JsonArray:
        """Open a nested array under `name` and return it."""
        child = JsonArray(self)
        self._insert(name, child.body)
        return child

    def each_like(self, name: str, number_examples: int = 1) -> JsonBody:
        """Open an array whose items all match the returned example object."""
        return self._array_like(name, number_examples)

    def min_array_like(
        self, name: str, size: int, number_examples: int | None = None
    ) -> JsonBody:
        """Open an array with at least `size` items like the returned example.

        Args:
            name: Field name.
            size: Minimum number of items.
            number_examples: Items written to the pact; defaults to `size`.

        Returns:
            The example object. Close it, then close the array.
        """
        if number_examples is None:
            number_examples = size
        if number_examples < size:
            raise_invalid_matcher(
                detail=(
                    f"{name}: number of examples {number_examples} is less than "
                    f"the minimum size {size}"
                )
            )
        return self._array_like(name, number_examples, min_size=size)

    def max_array_like(
        self, name: str, size: int, number_examples: int = 1
    ) -> JsonBody:
        """Open an array with at most `size` items like the returned example.

        Args:
            name: Field name.
            size: Maximum number of items.
            number_examples: Items written to the pact.

        Returns:
            The example object. Close it, then close the array.
        """
        if number_examples > size:
            raise_invalid_matcher(
                detail=(
                    f"{name}: number of examples {number_examples} is more than "
                    f"the maximum size {size}"
                )
            )
        return self._array_like(name, number_examples, max_size=size)

    def _array_like(
        self,
        name: str,
        number_examples: int,
        *,
        min_size: int | None = None,
        max_size: int | None = None,
    ) -> JsonBody:
        if number_examples < 1:
            raise_invalid_matcher(detail=f"{name}: at least one example is required")
        template = JsonArray(
            self,
            key=name,
            number_examples=number_examples,
            min_size=min_size,
            max_size=max_size,
        )
        return template.object()


# -----------------------------------------------------------------------------
# JSON array
# -----------------------------------------------------------------------------


class JsonArray(DslPart):
    """Builder for a JSON array body, or for the example of an array-like field."""

    def __init__(
        self,
        parent: DslPart | None = None,
        *,
        key: str | None = None,
        number_examples: int | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ) -> None:
        """
        Initialize an empty JSON array builder.

        Args:
            parent: Enclosing part, or None for a root.
            key: Field of `parent` an array-like template is placed under.
            number_examples: Copies of the example written; set for templates.
            min_size: Minimum item count of an array-like template.
            max_size: Maximum item count of an array-like template.
        """
        super().__init__(parent)
        self.key = key
        self.number_examples = number_examples
        self.min_size = min_size
        self.max_size = max_size
        self._body: list[Any] = []

    @property
    def template(self) -> bool:
        """Whether this array is the example of an array-like field."""
        return self.number_examples is not None

    @property
    def body(self) -> list[Any]:
        """The JSON array built so far."""
        return self._body

    def _insert(self, key: str | None, value: Any) -> None:
        self._body.append(value)

    def _position(self) -> str:
        return f"[{len(self._body)}]"

    # -- primitives -------------------------------------------------------------

    def string_type(self, example: str | None = None) -> JsonArray:
        """Append a string matched by type."""
        value = DEFAULT_STRING_EXAMPLE if example is None else to_json_value(example)
        self._insert(None, match.like(value))
        return self

    def string_value(self, value: str | None) -> JsonArray:
        """Append a string matched by equality."""
        self._insert(None, to_json_value(value))
        return self

    def string_matcher(self, regex: str, example: str) -> JsonArray:
        """Append a string matched by a regular expression."""
        self._insert(None, regex_matcher(regex, example, name=self._position()))
        return self

    def integer_type(self, example: int = DEFAULT_INTEGER_EXAMPLE) -> JsonArray:
        """Append an integer."""
        value = _integer_example(example, name=self._position())
        self._insert(None, match.integer(value))
        return self

    def decimal_type(self, example: float = DEFAULT_DECIMAL_EXAMPLE) -> JsonArray:
        """Append a decimal."""
        value = _decimal_example(example, name=self._position())
        self._insert(None, match.decimal(value))
        return self

    def number_type(self, example: float = DEFAULT_INTEGER_EXAMPLE) -> JsonArray:
        """Append a number."""
        value = _number_example(example, name=self._position())
        self._insert(None, match.number(value))
        return self

    def boolean_type(self, example: bool = True) -> JsonArray:  # noqa: FBT001, FBT002
        """Append a boolean matched by type."""
        value = _boolean_example(example, name=self._position())
        self._insert(None, match.like(value))
        return self

    def null_value(self) -> JsonArray:
        """Append a null."""
        self._insert(None, None)
        return self

    # -- nesting ----------------------------------------------------------------

    def object(self) -> JsonBody:
        """Append a nested object and return it."""
        child = JsonBody(self)
        self._insert(None, child.body)
        return child

    def array(self) -> JsonArray:
        """Append a nested array and return it."""
        child = JsonArray(self)
        self._insert(None, child.body)
        return child

    def close_array(self) -> DslPart | None:
        """Close this array and return its parent.

        A template is placed into its parent as an array matcher built from
        its example item.
        """
        if self.template and self.parent is not None:
            self.parent._insert(self.key, self._array_matcher())  # noqa: SLF001
        return self.close()

    def _array_matcher(self) -> Any:
        example = self._body[0] if self._body else {}
        if self.number_examples == 1:
            return match.each_like(example, min=self.min_size, max=self.max_size)
        examples = [example] + [
            copy.deepcopy(example) for _ in range(self.number_examples - 1)
        ]
        return match.like(examples, min=self.min_size, max=self.max_size)
