"""Compilation of the runtime syntax tree into stack-machine instructions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple, Union

from tagvm.runtime_ast import (
    ArrayExpr,
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    CasePattern,
    DictExpr,
    EmptyStatement,
    Expr,
    ExprStatement,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LetDef,
    LetPattern,
    LetRecDef,
    Literal,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    Op,
    Println,
    RecordExpr,
    RecordPattern,
    Statement,
    Variable,
    VariableExpr,
    VarPattern,
)


@dataclass(frozen=True)
class Return:
    """Leave the current function."""


@dataclass(frozen=True, eq=False)
class PushConstant:
    """Push a constant value onto the stack."""

    value: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PushConstant):
            return NotImplemented
        return type(self.value) is type(other.value) and self.value == other.value

    def __hash__(self) -> int:
        return hash((type(self.value), self.value))


@dataclass(frozen=True)
class Drop:
    """Drop the top of the stack."""


@dataclass(frozen=True)
class Dup:
    """Duplicate the top of the stack."""


@dataclass(frozen=True)
class Swap:
    """Swap the top two values on the stack."""


@dataclass(frozen=True)
class PushVar:
    """Push the value of a variable."""

    name: str


@dataclass(frozen=True)
class BindVar:
    """Pop a value and bind it to a variable."""

    name: str


@dataclass(frozen=True)
class BindPlaceholder:
    """Bind an uninitialized value to a variable."""

    name: str


@dataclass(frozen=True)
class InitializePlaceholder:
    """Pop a value and initialize the placeholder bound to a variable."""

    name: str


@dataclass(frozen=True)
class PushEnv:
    """Push the current environment."""


@dataclass(frozen=True)
class PopEnv:
    """Pop an environment and make it current."""


@dataclass(frozen=True)
class MakeCase:
    """Pop a value and push it wrapped in a tagged case."""

    tag: str


@dataclass(frozen=True)
class UnwrapCase:
    """Pop a case and push its inner value."""


@dataclass(frozen=True)
class MakeRecord:
    """Pop one value per field and push a record."""

    fields: Tuple[Tuple[str, bool], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(tuple(f) for f in self.fields))


@dataclass(frozen=True)
class MakeVector:
    """Pop ``count`` values and push a vector."""

    count: int


@dataclass(frozen=True)
class MakeDict:
    """Pop ``count`` key/value pairs and push a dictionary."""

    count: int


@dataclass(frozen=True)
class GetField:
    """Pop a record and push the value of a field."""

    field: str


@dataclass(frozen=True)
class SetField:
    """Pop a value and a record, assign the field and push its old value."""

    field: str


@dataclass(frozen=True)
class Jump:
    """Jump unconditionally by ``offset``."""

    offset: int


@dataclass(frozen=True)
class JumpWhenFalse:
    """Pop a boolean and jump by ``offset`` if it is false."""

    offset: int


@dataclass(frozen=True)
class JumpAndPopWhenTag:
    """Jump and pop if the top of the stack carries ``tag``."""

    tag: str
    offset: int


@dataclass(frozen=True)
class PeekAndJumpNotTag:
    """Jump, without popping, if the top of the stack does not carry ``tag``."""

    tag: str
    offset: int


@dataclass(frozen=True)
class IntOp:
    """Pop two integers and push the result."""

    op: Op


@dataclass(frozen=True)
class FloatOp:
    """Pop two floats and push the result."""

    op: Op


@dataclass(frozen=True)
class BoolOp:
    """Pop two booleans and push the result."""

    op: Op


@dataclass(frozen=True)
class StrOp:
    """Pop two strings and push the result."""

    op: Op


@dataclass(frozen=True)
class AnyOp:
    """Pop two values of any type and push the result."""

    op: Op


@dataclass(frozen=True)
class Call:
    """Pop a function and its argument (on top) and push the result."""


@dataclass(frozen=True)
class MakeClosure:
    """Capture the current environment and push a function."""

    body: Tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", tuple(self.body))


@dataclass(frozen=True)
class PrintValues:
    """Pop ``count`` values and print them on one line."""

    count: int


Instruction = Union[
    Return, PushConstant, Drop, Dup, Swap, PushVar, BindVar, BindPlaceholder,
    InitializePlaceholder, PushEnv, PopEnv, MakeCase, UnwrapCase, MakeRecord,
    MakeVector, MakeDict, GetField, SetField, Jump, JumpWhenFalse, JumpAndPopWhenTag,
    PeekAndJumpNotTag, IntOp, FloatOp, BoolOp, StrOp, AnyOp, Call, MakeClosure,
    PrintValues,
]

_TYPED_OPS = {
    Literal.INT: IntOp,
    Literal.FLOAT: FloatOp,
    Literal.BOOL: BoolOp,
    Literal.STR: StrOp,
    None: AnyOp,
}


def compile_script(stmts: Iterable[Statement]) -> List[Instruction]:
    """Compile top-level statements into a flat instruction list ending in Return."""
    ops: List[Instruction] = []
    for stmt in stmts:
        ops += _statement(stmt)
    ops.append(Return())
    return ops


def _statement(stmt: Statement) -> List[Instruction]:
    match stmt:
        case EmptyStatement():
            return []
        case ExprStatement(expr):
            return _expr(expr) + [Drop()]
        case LetDef(pattern, expr):
            return _expr(expr) + _pattern(pattern)
        case LetRecDef(defs):
            ops: List[Instruction] = [BindPlaceholder(name) for name, _ in defs]
            for name, expr in defs:
                ops += _expr(expr)
                ops.append(InitializePlaceholder(name))
            return ops
        case Println(exprs):
            ops = [op for expr in exprs for op in _expr(expr)]
            ops.append(PrintValues(len(exprs)))
            return ops
    raise TypeError(f"Not a statement: {stmt!r}")


def _pattern(pattern: LetPattern) -> List[Instruction]:
    match pattern:
        case VarPattern(var):
            return _var(var)
        case CasePattern(_, inner):
            return [UnwrapCase()] + _pattern(inner)
        case RecordPattern(fields):
            ops: List[Instruction] = []
            for position, (field, inner) in reversed(list(enumerate(fields))):
                if position > 0:
                    # keep the record for the remaining fields
                    ops.append(Dup())
                ops.append(GetField(field))
                ops += _pattern(inner)
            return ops
    raise TypeError(f"Not a pattern: {pattern!r}")


def _var(var: Variable) -> List[Instruction]:
    return [BindVar(var.name)] if var.name is not None else [Drop()]


def _literal(lit: LiteralExpr) -> Any:
    text = lit.value
    if lit.lit_type is Literal.BOOL:
        if text not in ("true", "false"):
            raise ValueError(f"Invalid boolean literal {text!r}")
        return text == "true"
    if lit.lit_type is Literal.INT:
        return int(text)
    if lit.lit_type is Literal.FLOAT:
        return float(text)
    if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
        raise ValueError(f"Invalid string literal {text!r}")
    return text[1:-1]


def _expr(expr: Expr) -> List[Instruction]:
    match expr:
        case BinOpExpr(lhs, rhs, op_type, op):
            return _expr(lhs) + _expr(rhs) + [_TYPED_OPS[op_type](op)]
        case BlockExpr(statements, result):
            ops: List[Instruction] = [PushEnv()]
            for stmt in statements:
                ops += _statement(stmt)
            return ops + _expr(result) + [Swap(), PopEnv()]
        case CallExpr(func, arg, eval_arg_first):
            if eval_arg_first:
                return _expr(arg) + _expr(func) + [Swap(), Call()]
            return _expr(func) + _expr(arg) + [Call()]
        case CaseExpr(tag, inner):
            return _expr(inner) + [MakeCase(tag)]
        case FieldAccessExpr(inner, field):
            return _expr(inner) + [GetField(field)]
        case FieldSetExpr(target, field, value):
            return _expr(target) + _expr(value) + [SetField(field)]
        case FuncDefExpr(param, body):
            return [MakeClosure(tuple(_pattern(param) + _expr(body) + [Return()]))]
        case IfExpr(cond, then_expr, else_expr):
            else_ops = _expr(else_expr)
            then_ops = _expr(then_expr) + [Jump(len(else_ops))]
            return _expr(cond) + [JumpWhenFalse(len(then_ops))] + then_ops + else_ops
        case LiteralExpr():
            return [PushConstant(_literal(expr))]
        case LoopExpr(body):
            body_ops = _expr(body)
            offset = 1 + len(body_ops)
            return body_ops + [JumpAndPopWhenTag("Continue", -offset), UnwrapCase()]
        case MatchExpr(scrutinee, cases, wildcard):
            branches: List[Instruction] = []
            if wildcard is not None:
                var, arm = wildcard
                branches = _var(var) + _expr(arm)
            for tag, pattern, arm in cases:
                branch = [UnwrapCase()] + _pattern(pattern) + _expr(arm)
                branch.append(Jump(len(branches)))
                branches = [PeekAndJumpNotTag(tag, len(branch))] + branch + branches
            return _expr(scrutinee) + [PushEnv(), Swap()] + branches + [Swap(), PopEnv()]
        case RecordExpr(fields):
            ops = [op for _, value, _ in fields for op in _expr(value)]
            ops.append(MakeRecord(tuple((name, mutable) for name, _, mutable in fields)))
            return ops
        case VariableExpr(name):
            return [PushVar(name)]
        case ArrayExpr(items):
            ops = [op for item in items for op in _expr(item)]
            ops.append(MakeVector(len(items)))
            return ops
        case DictExpr(items):
            ops = [op for key, value in items for op in _expr(key) + _expr(value)]
            ops.append(MakeDict(len(items)))
            return ops
    raise TypeError(f"Not an expression: {expr!r}")