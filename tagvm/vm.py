"""The stack machine that executes compiled instructions."""

from __future__ import annotations

import math
import operator
import sys
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TextIO

from frozendict import frozendict

from tagvm.builtins import define_builtins
from tagvm.compiler import (
    AnyOp,
    BindPlaceholder,
    BindVar,
    BoolOp,
    Call,
    Drop,
    Dup,
    FloatOp,
    GetField,
    InitializePlaceholder,
    Instruction,
    IntOp,
    Jump,
    JumpAndPopWhenTag,
    JumpWhenFalse,
    MakeCase,
    MakeClosure,
    MakeDict,
    MakeRecord,
    MakeVector,
    PeekAndJumpNotTag,
    PopEnv,
    PrintValues,
    PushConstant,
    PushEnv,
    PushVar,
    Return,
    SetField,
    StrOp,
    Swap,
    UnwrapCase,
    compile_script,
)
from tagvm.env import Env
from tagvm.optimize import optimize
from tagvm.runtime_ast import Op, Statement
from tagvm.value import Builtin, Case, Closure, Record, show


class VMError(Exception):
    """Raised when the machine meets an instruction it cannot execute."""


def _trunc_div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _float_div(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _float_rem(a: float, b: float) -> float:
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


_COMPARISONS: Dict[Op, Callable[[Any, Any], Any]] = {
    Op.LT: operator.lt,
    Op.LTE: operator.le,
    Op.GT: operator.gt,
    Op.GTE: operator.ge,
}

_INT_OPS = {
    Op.ADD: operator.add,
    Op.SUB: operator.sub,
    Op.MULT: operator.mul,
    Op.DIV: _trunc_div,
    Op.REM: _trunc_rem,
    **_COMPARISONS,
}

_FLOAT_OPS = {
    Op.ADD: operator.add,
    Op.SUB: operator.sub,
    Op.MULT: operator.mul,
    Op.DIV: _float_div,
    Op.REM: _float_rem,
    **_COMPARISONS,
}

_BOOL_OPS = {Op.ADD: operator.or_, Op.MULT: operator.and_}
_STR_OPS = {Op.ADD: operator.add}
_ANY_OPS = {Op.EQ: operator.eq, Op.NEQ: operator.ne}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_float(value: Any) -> bool:
    return isinstance(value, float)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_any(value: Any) -> bool:
    return True


def _pop(stack: List[Any]) -> Any:
    if not stack:
        raise VMError("Stack underflow")
    return stack.pop()


def _pop_many(stack: List[Any], count: int) -> List[Any]:
    if count > len(stack):
        raise VMError("Stack underflow")
    if count == 0:
        return []
    values = stack[-count:]
    del stack[-count:]
    return values


def _expect_case(value: Any) -> Case:
    if not isinstance(value, Case):
        raise VMError(f"{value!r} is not a case")
    return value


def _expect_record(value: Any) -> Record:
    if not isinstance(value, Record):
        raise VMError(f"{value!r} is not a record")
    return value


def _binary(
    stack: List[Any],
    table: Dict[Op, Callable[[Any, Any], Any]],
    accepts: Callable[[Any], bool],
    op: Op,
) -> None:
    rhs = _pop(stack)
    lhs = _pop(stack)
    if not (accepts(lhs) and accepts(rhs)):
        raise VMError(f"Invalid operands for {op.value}: {lhs!r}, {rhs!r}")
    try:
        func = table[op]
    except KeyError:
        raise VMError(f"Unsupported operator {op.value}") from None
    stack.append(func(lhs, rhs))


def _run(ops: Sequence[Instruction], stack: List[Any], env: Env, out: TextIO) -> Env:
    ip = 0
    count = len(ops)
    while 0 <= ip < count:
        match ops[ip]:
            case Return():
                return env
            case PushConstant(value):
                stack.append(value)
            case Drop():
                if stack:
                    stack.pop()
            case Dup():
                if not stack:
                    raise VMError("Stack underflow")
                stack.append(stack[-1])
            case Swap():
                top = _pop(stack)
                below = _pop(stack)
                stack.append(top)
                stack.append(below)
            case PushVar(name):
                try:
                    stack.append(env.lookup(name))
                except KeyError:
                    raise VMError(f"Unbound variable {name!r}") from None
            case BindVar(name):
                env = env.bind(name, _pop(stack))
            case BindPlaceholder(name):
                env = env.bind_placeholder(name)
            case InitializePlaceholder(name):
                env.set_placeholder(name, _pop(stack))
            case PushEnv():
                stack.append(env)
            case PopEnv():
                saved = _pop(stack)
                if not isinstance(saved, Env):
                    raise VMError(f"{saved!r} is not an environment")
                env = saved
            case MakeCase(tag):
                stack.append(Case(tag, _pop(stack)))
            case UnwrapCase():
                stack.append(_expect_case(_pop(stack)).value)
            case MakeRecord(fields):
                values = _pop_many(stack, len(fields))
                stack.append(
                    Record((name, value, mutable) for (name, mutable), value in zip(fields, values))
                )
            case MakeVector(size):
                stack.append(tuple(_pop_many(stack, size)))
            case MakeDict(size):
                values = _pop_many(stack, 2 * size)
                stack.append(frozendict(dict(zip(values[::2], values[1::2]))))
            case GetField(field):
                stack.append(_expect_record(_pop(stack)).get_field(field))
            case SetField(field):
                value = _pop(stack)
                record = _expect_record(_pop(stack))
                stack.append(record.set_field(field, value))
            case Jump(offset):
                ip += offset
            case JumpWhenFalse(offset):
                cond = _pop(stack)
                if not _is_bool(cond):
                    raise VMError(f"{cond!r} is not a boolean")
                if not cond:
                    ip += offset
            case JumpAndPopWhenTag(tag, offset):
                value = _pop(stack)
                if _expect_case(value).tag == tag:
                    ip += offset
                else:
                    stack.append(value)
            case PeekAndJumpNotTag(tag, offset):
                if not stack:
                    raise VMError("Stack underflow")
                if _expect_case(stack[-1]).tag != tag:
                    ip += offset
            case AnyOp(op):
                _binary(stack, _ANY_OPS, _is_any, op)
            case IntOp(op):
                _binary(stack, _INT_OPS, _is_int, op)
            case FloatOp(op):
                _binary(stack, _FLOAT_OPS, _is_float, op)
            case BoolOp(op):
                _binary(stack, _BOOL_OPS, _is_bool, op)
            case StrOp(op):
                _binary(stack, _STR_OPS, _is_str, op)
            case Call():
                if len(stack) < 2:
                    raise VMError("Stack underflow")
                func = stack.pop(-2)
                if isinstance(func, Closure):
                    _run(func.body, stack, func.env, out)
                elif isinstance(func, Builtin):
                    stack.append(func(_pop(stack)))
                else:
                    raise VMError(f"{func!r} is not callable")
            case MakeClosure(body):
                stack.append(Closure(body, env))
            case PrintValues(size):
                values = _pop_many(stack, size)
                print(" ".join(show(value) for value in values), file=out)
            case other:
                raise VMError(f"Unknown instruction {other!r}")
        ip += 1
    return env


def run_script(
    ops: Sequence[Instruction], env: Env, out: Optional[TextIO] = None
) -> Env:
    """Execute top-level code and return the environment it leaves behind.

    Printed output goes to ``out`` (standard output by default).
    """
    stream = sys.stdout if out is None else out
    stack: List[Any] = []
    env = _run(ops, stack, env, stream)
    if stack:
        raise VMError(f"Stack not empty: {stack!r}")
    return env


class BytecodeBackend:
    """Compiles, optimizes and runs scripts, keeping bindings between runs."""

    def __init__(self, env: Optional[Env] = None, out: Optional[TextIO] = None) -> None:
        self.env = define_builtins(Env()) if env is None else env
        self.out = out

    def run_script(self, script: Iterable[Statement]) -> None:
        """Run a list of statements in the backend's environment."""
        ops = optimize(compile_script(script))
        self.env = run_script(ops, self.env, self.out)