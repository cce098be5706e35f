"""Runtime values of the language and their textual display."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Iterator, Mapping, Tuple

from tagvm.env import Env


class FieldError(Exception):
    """Raised on access to a missing field or assignment to an immutable one."""


@dataclass(frozen=True)
class Case:
    """A tagged value."""

    tag: str
    value: Any

    def __hash__(self) -> int:
        return hash(self.tag)


class _Field:
    __slots__ = ("value", "mutable")

    def __init__(self, value: Any, mutable: bool) -> None:
        self.value = value
        self.mutable = mutable

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Field):
            return NotImplemented
        return self.mutable == other.mutable and self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)


class Record:
    """A record of named fields, some of which may be mutable.

    Records compare structurally so they can serve as dictionary keys.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Iterable[Tuple[str, Any, bool]] = ()) -> None:
        self._fields = {name: _Field(value, bool(mutable)) for name, value, mutable in fields}

    def get_field(self, field: str) -> Any:
        """Return the current value of ``field``."""
        try:
            return self._fields[field].value
        except KeyError:
            raise FieldError(f"No field {field!r}") from None

    def set_field(self, field: str, value: Any) -> Any:
        """Assign a mutable field and return its previous value."""
        try:
            slot = self._fields[field]
        except KeyError:
            raise FieldError(f"No field {field!r}") from None
        if not slot.mutable:
            raise FieldError("Cannot set immutable field")
        old, slot.value = slot.value, value
        return old

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate over (field name, current value) pairs."""
        return ((name, slot.value) for name, slot in self._fields.items())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field: object) -> bool:
        return field in self._fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self is other or self._fields == other._fields

    def __hash__(self) -> int:
        return hash(tuple((name, self._fields[name]) for name in sorted(self._fields)))

    def __repr__(self) -> str:
        inner = ", ".join(
            f"{'mut ' if slot.mutable else ''}{name}={slot.value!r}"
            for name, slot in self._fields.items()
        )
        return f"Record({inner})"


@dataclass(eq=False)
class Closure:
    """A compiled function body together with the environment it captured."""

    body: Tuple[Any, ...]
    env: Env


@dataclass(eq=False)
class Builtin:
    """A function provided by the runtime."""

    func: Callable[[Any], Any]
    name: str = "<builtin>"

    def __call__(self, arg: Any) -> Any:
        return self.func(arg)


_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\0": "\\0",
}

_ESCAPED_CATEGORIES = {"Cc", "Cf", "Cs", "Co", "Cn", "Zl", "Zp", "Zs", "Mn", "Me"}


def _debug_str(text: str) -> str:
    parts = []
    for ch in text:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ch != " " and unicodedata.category(ch) in _ESCAPED_CATEGORIES:
            parts.append(f"\\u{{{ord(ch):x}}}")
        else:
            parts.append(ch)
    return '"' + "".join(parts) + '"'


def _show_float(x: float) -> str:
    if x != x:
        return "NaN"
    if x in (float("inf"), float("-inf")):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def show(value: Any) -> str:
    """Render a runtime value the way the language prints it."""
    if value is None:
        return "()"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _show_float(value)
    if isinstance(value, str):
        return _debug_str(value)
    if isinstance(value, Case):
        return f"`{value.tag} {show(value.value)}"
    if isinstance(value, Record):
        return "{" + "".join(f"{name}={show(v)}; " for name, v in value.items()) + "}"
    if isinstance(value, Closure):
        return "<fun>"
    if isinstance(value, Builtin):
        return "<builtin function>"
    if isinstance(value, Env):
        return "<env>"
    if isinstance(value, (tuple, list)):
        return "#[" + ", ".join(show(item) for item in value) + "]"
    if isinstance(value, Mapping):
        return "#{" + ", ".join(f"{show(k)}: {show(v)}" for k, v in value.items()) + "}"
    raise TypeError(f"Not a runtime value: {value!r}")