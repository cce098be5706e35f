"""Functions every program starts with, bound into the initial environment."""

from __future__ import annotations

import math
import re
import sys
from typing import Any, Callable, Dict, Optional, Tuple

from frozendict import frozendict

from tagvm.env import Env
from tagvm.value import Builtin, Case, Record, show


class LanguagePanic(Exception):
    """Raised when a program calls ``panic``."""


_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1

_FIRST, _SECOND, _THIRD = "_0", "_1", "_2"

_NO_VALUE = Case("None", None)
_EOF = Case("Eof", None)

_ESCAPE_BYTES = {0: "\\0", 9: "\\t", 10: "\\n", 13: "\\r", 92: "\\\\"}
_UNESCAPE_CHARS = {ord("0"): 0, ord("t"): 9, ord("n"): 10, ord("r"): 13, ord("\\"): 92}
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_INT_SYNTAX = re.compile(r"[+-]?[0-9]+")
_FLOAT_SYNTAX = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


def escape(text: str) -> str:
    """Escape the UTF-8 bytes of ``text`` that are not printable ASCII."""
    parts = []
    for byte in text.encode("utf-8"):
        if byte in _ESCAPE_BYTES:
            parts.append(_ESCAPE_BYTES[byte])
        elif 0x20 <= byte <= 0x7E:
            parts.append(chr(byte))
        else:
            parts.append(f"\\x{byte:02x}")
    return "".join(parts)


def unescape(text: str) -> str:
    """Undo :func:`escape`; raises ValueError on malformed escapes or invalid UTF-8."""
    out = bytearray()
    stream = iter(text.encode("utf-8"))
    for byte in stream:
        if byte != 92:
            out.append(byte)
            continue
        marker = next(stream, None)
        if marker is None:
            raise ValueError("Escape sequence at end of input")
        if marker in _UNESCAPE_CHARS:
            out.append(_UNESCAPE_CHARS[marker])
        elif marker == ord("x"):
            digits = bytes(d for d in (next(stream, None), next(stream, None)) if d is not None)
            if len(digits) != 2 or not all(d in _HEX_DIGITS for d in digits):
                raise ValueError("Invalid hex escape")
            out.append(int(digits, 16))
        else:
            raise ValueError(f"Unknown escape character {chr(marker)!r}")
    return out.decode("utf-8")


def _some(value: Any) -> Case:
    return Case("Some", value)


def _index(value: int) -> Optional[int]:
    return value if value >= 0 else None


def _pair(args: Record) -> Tuple[Any, Any]:
    return args.get_field(_FIRST), args.get_field(_SECOND)


def _panic(msg: Any) -> Any:
    raise LanguagePanic(show(msg))


def _read_line(_arg: Any) -> Case:
    try:
        line = sys.stdin.readline()
    except OSError as exc:
        return Case("Err", str(exc))
    if not line:
        return _EOF
    if line.endswith("\n"):
        line = line[:-1]
    return Case("Ok", line)


def _write_str(text: str) -> None:
    sys.stdout.write(text)
    return None


def _chars(text: str) -> Case:
    return _some(text[0]) if text else _NO_VALUE


def _split(text: str) -> Case:
    parts = text.split()
    return _some(parts[0]) if parts else _NO_VALUE


def _int_to_float(value: int) -> float:
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _float_to_int(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= 2.0**63:
        return _I64_MAX
    if value < -(2.0**63):
        return _I64_MIN
    return int(value)


def _str_to_int(text: str) -> Case:
    if _INT_SYNTAX.fullmatch(text) is None:
        return _NO_VALUE
    return _some(int(text))


def _str_to_float(text: str) -> Case:
    if _FLOAT_SYNTAX.fullmatch(text) is None:
        return _NO_VALUE
    return _some(float(text))


def _vec_push_back(args: Record) -> tuple:
    vec, item = _pair(args)
    return tuple(vec) + (item,)


def _vec_push_front(args: Record) -> tuple:
    vec, item = _pair(args)
    return (item,) + tuple(vec)


def _vec_peek_back(vec: tuple) -> Case:
    return _some(vec[-1]) if vec else _NO_VALUE


def _vec_peek_front(vec: tuple) -> Case:
    return _some(vec[0]) if vec else _NO_VALUE


def _vec_get(args: Record) -> Case:
    vec, raw_index = _pair(args)
    index = _index(raw_index)
    if index is None or index >= len(vec):
        return _NO_VALUE
    return _some(vec[index])


def _vec_set(args: Record) -> Case:
    vec, raw_index = _pair(args)
    value = args.get_field(_THIRD)
    index = _index(raw_index)
    if index is None or index >= len(vec):
        return _NO_VALUE
    return _some(tuple(vec[:index]) + (value,) + tuple(vec[index + 1 :]))


def _vec_split(args: Record) -> Record:
    vec, raw_index = _pair(args)
    index = _index(raw_index)
    if index is None or index > len(vec):
        raise IndexError(f"Cannot split vector of length {len(vec)} at {raw_index}")
    vec = tuple(vec)
    return Record([(_FIRST, vec[:index], False), (_SECOND, vec[index:], False)])


def _dict_insert(args: Record) -> frozendict:
    table, key = _pair(args)
    updated = dict(table)
    updated[key] = args.get_field(_THIRD)
    return frozendict(updated)


def _dict_contains(args: Record) -> bool:
    table, key = _pair(args)
    return key in table


def _dict_remove(args: Record) -> frozendict:
    table, key = _pair(args)
    updated = dict(table)
    updated.pop(key, None)
    return frozendict(updated)


def _dict_get(args: Record) -> Case:
    table, key = _pair(args)
    return _some(table[key]) if key in table else _NO_VALUE


_BUILTINS: Dict[str, Callable[[Any], Any]] = {
    "panic": _panic,
    "__read_line": _read_line,
    "__write_str": _write_str,
    "__chars": _chars,
    "__split": _split,
    "__escape": escape,
    "__unescape": unescape,
    "__int_to_float": _int_to_float,
    "__float_to_int": _float_to_int,
    "__str_to_int": _str_to_int,
    "__str_to_float": _str_to_float,
    "__int_to_str": str,
    "__float_to_str": show,
    "__vec_new": lambda _arg: tuple(),
    "__vec_length": len,
    "__vec_push_back": _vec_push_back,
    "__vec_pop_back": lambda vec: tuple(vec[:-1]),
    "__vec_peek_back": _vec_peek_back,
    "__vec_push_front": _vec_push_front,
    "__vec_pop_front": lambda vec: tuple(vec[1:]),
    "__vec_peek_front": _vec_peek_front,
    "__vec_get": _vec_get,
    "__vec_set": _vec_set,
    "__vec_split": _vec_split,
    "__dict_new": lambda _arg: frozendict(),
    "__dict_length": len,
    "__dict_insert": _dict_insert,
    "__dict_contains": _dict_contains,
    "__dict_remove": _dict_remove,
    "__dict_get": _dict_get,
}


def define_builtins(env: Env) -> Env:
    """Return ``env`` extended with every builtin function."""
    for name, func in _BUILTINS.items():
        env = env.bind(name, Builtin(func, name))
    return env