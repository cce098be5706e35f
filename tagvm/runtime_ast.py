"""Simplified syntax tree consumed by the execution backends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple, Union


class Literal(Enum):
    """Kind of a literal value, also used as the operand type of binary operators."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STR = "str"


class Op(Enum):
    """Binary operators; the value is the operator's surface symbol."""

    ADD = "+"
    SUB = "-"
    MULT = "*"
    DIV = "/"
    REM = "%"
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    EQ = "=="
    NEQ = "!="


@dataclass(frozen=True)
class Variable:
    """A binding target; ``name`` is None for the wildcard ``_``."""

    name: Optional[str] = None


@dataclass(frozen=True)
class CasePattern:
    tag: str
    pattern: "LetPattern"


@dataclass(frozen=True)
class RecordPattern:
    fields: Tuple[Tuple[str, "LetPattern"], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class VarPattern:
    var: Variable


LetPattern = Union[CasePattern, RecordPattern, VarPattern]


@dataclass(frozen=True)
class EmptyStatement:
    pass


@dataclass(frozen=True)
class ExprStatement:
    expr: "Expr"


@dataclass(frozen=True)
class LetDef:
    pattern: LetPattern
    expr: "Expr"


@dataclass(frozen=True)
class LetRecDef:
    defs: Tuple[Tuple[str, "Expr"], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "defs", tuple(self.defs))


@dataclass(frozen=True)
class Println:
    exprs: Tuple["Expr", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "exprs", tuple(self.exprs))


Statement = Union[EmptyStatement, ExprStatement, LetDef, LetRecDef, Println]


@dataclass(frozen=True)
class BinOpExpr:
    lhs: "Expr"
    rhs: "Expr"
    op_type: Optional[Literal]
    op: Op


@dataclass(frozen=True)
class BlockExpr:
    statements: Tuple[Statement, ...]
    expr: "Expr"

    def __post_init__(self) -> None:
        object.__setattr__(self, "statements", tuple(self.statements))


@dataclass(frozen=True)
class CallExpr:
    func: "Expr"
    arg: "Expr"
    eval_arg_first: bool = False


@dataclass(frozen=True)
class CaseExpr:
    tag: str
    expr: "Expr"


@dataclass(frozen=True)
class FieldAccessExpr:
    expr: "Expr"
    field: str


@dataclass(frozen=True)
class FieldSetExpr:
    expr: "Expr"
    field: str
    value: "Expr"


@dataclass(frozen=True)
class FuncDefExpr:
    param: LetPattern
    body: "Expr"


@dataclass(frozen=True)
class IfExpr:
    cond: "Expr"
    then_expr: "Expr"
    else_expr: "Expr"


@dataclass(frozen=True)
class LiteralExpr:
    lit_type: Literal
    value: str


@dataclass(frozen=True)
class LoopExpr:
    body: "Expr"


@dataclass(frozen=True)
class MatchExpr:
    expr: "Expr"
    cases: Tuple[Tuple[str, LetPattern, "Expr"], ...]
    wildcard: Optional[Tuple[Variable, "Expr"]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "cases", tuple(self.cases))


@dataclass(frozen=True)
class RecordExpr:
    fields: Tuple[Tuple[str, "Expr", bool], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class VariableExpr:
    name: str


@dataclass(frozen=True)
class ArrayExpr:
    items: Tuple["Expr", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class DictExpr:
    items: Tuple[Tuple["Expr", "Expr"], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


Expr = Union[
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    RecordExpr,
    VariableExpr,
    ArrayExpr,
    DictExpr,
]


def block(stmts: Iterable[Statement], expr: Expr) -> Expr:
    """Build a block, dropping empty statements and flattening a nested block result."""
    statements = [stmt for stmt in stmts if not isinstance(stmt, EmptyStatement)]
    if not statements:
        return expr
    if isinstance(expr, BlockExpr):
        statements.extend(expr.statements)
        expr = expr.expr
    return BlockExpr(tuple(statements), expr)


def match_(
    expr: Expr,
    cases: Iterable[Tuple[str, LetPattern, Expr]],
    wildcard: Optional[Tuple[Variable, Expr]],
) -> Expr:
    """Build a match expression, reducing trivial matches to blocks or the scrutinee."""
    cases = list(cases)
    if not cases and wildcard is not None:
        var, arm = wildcard
        return block([LetDef(VarPattern(var), expr)], arm)

    if len(cases) == 1 and wildcard is None:
        tag, inner_pat, arm = cases[0]
        pat = CasePattern(tag, inner_pat)
        if _expr_rebuilds_pattern(pat, arm):
            # e.g. (match x with | `A y -> `A y) is just x
            return expr
        return block([LetDef(pat, expr)], arm)

    return MatchExpr(expr, tuple(cases), wildcard)


def case(tag: str, expr: Expr) -> Expr:
    """Wrap an expression in a tagged case."""
    return CaseExpr(tag, expr)


def field_access(field: str, expr: Expr) -> Expr:
    """Access a field of a record expression."""
    return FieldAccessExpr(expr, field)


def _expr_rebuilds_pattern(pat: LetPattern, expr: Expr) -> bool:
    match pat, expr:
        case VarPattern(Variable(name)), VariableExpr(var_name) if name is not None:
            return name == var_name
        case CasePattern(tag, inner), CaseExpr(expr_tag, inner_expr):
            return tag == expr_tag and _expr_rebuilds_pattern(inner, inner_expr)
        case RecordPattern(pat_fields), RecordExpr(rec_fields):
            if any(mutable for _, _, mutable in rec_fields):
                return False
            patterns = dict(pat_fields)
            record = {name: value for name, value, _ in rec_fields}
            if len(patterns) != len(record):
                return False
            return all(
                name in record and _expr_rebuilds_pattern(sub, record[name])
                for name, sub in patterns.items()
            )
    return False