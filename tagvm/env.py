"""Persistent variable environments used by the bytecode machine."""

from __future__ import annotations

from typing import Any, Iterator, Optional, Union


class EnvError(Exception):
    """Raised when a recursive placeholder is misused."""


_UNSET: Any = object()


class _Entry:
    """An immutable binding."""

    __slots__ = ("name", "value", "parent")

    def __init__(self, name: str, value: Any, parent: Optional[_Node]) -> None:
        self.name = name
        self.value = value
        self.parent = parent


class _Lazy:
    """A binding whose value is filled in later, used for recursive definitions."""

    __slots__ = ("name", "value", "parent")

    def __init__(self, name: str, parent: Optional[_Node]) -> None:
        self.name = name
        self.value = _UNSET
        self.parent = parent


_Node = Union[_Entry, _Lazy]


class Env:
    """A linked chain of bindings; binding returns a new environment.

    Two environments are equal only when they share the same innermost binding.
    """

    __slots__ = ("_node",)

    def __init__(self, _node: Optional[_Node] = None) -> None:
        self._node = _node

    def _chain(self) -> Iterator[_Node]:
        node = self._node
        while node is not None:
            yield node
            node = node.parent

    def bind(self, name: str, value: Any) -> "Env":
        """Return a new environment with ``name`` bound to ``value``."""
        return Env(_Entry(name, value, self._node))

    def lookup(self, name: str) -> Any:
        """Return the innermost value bound to ``name``.

        Raises KeyError if the name is unbound and EnvError if it refers to a
        recursive placeholder that has not been initialized yet.
        """
        for node in self._chain():
            if node.name != name:
                continue
            if node.value is _UNSET:
                raise EnvError("Uninitialized recursive value")
            return node.value
        raise KeyError(name)

    def bind_placeholder(self, name: str) -> "Env":
        """Return a new environment with an uninitialized binding for ``name``."""
        return Env(_Lazy(name, self._node))

    def set_placeholder(self, name: str, value: Any) -> None:
        """Initialize the innermost placeholder bound to ``name``."""
        for node in self._chain():
            if node.name != name:
                continue
            if isinstance(node, _Entry):
                raise EnvError("immutable binding")
            if node.value is not _UNSET:
                node.value = value
                raise EnvError("Placeholder assigned twice")
            node.value = value
            return
        raise EnvError("unbound name")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Env):
            return NotImplemented
        return self._node is other._node

    def __hash__(self) -> int:
        return 0 if self._node is None else id(self._node)

    def __repr__(self) -> str:
        names = [node.name for node in self._chain()]
        return f"Env({names!r})"