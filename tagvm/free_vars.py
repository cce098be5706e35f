"""Free-variable analysis over the runtime syntax tree."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, Iterator, Set, Union

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
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    Println,
    RecordExpr,
    RecordPattern,
    Statement,
    VariableExpr,
    VarPattern,
)

Node = Union[Expr, Statement]


def _bound_names(pattern: LetPattern) -> Iterator[str]:
    match pattern:
        case VarPattern(var):
            if var.name is not None:
                yield var.name
        case CasePattern(_, inner):
            yield from _bound_names(inner)
        case RecordPattern(fields):
            for _, sub in fields:
                yield from _bound_names(sub)


class _Collector:
    """Accumulates variable usages, forgetting names as their binders are seen."""

    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def unbind(self, pattern: LetPattern) -> None:
        for name in _bound_names(pattern):
            self.counts.pop(name, None)

    def statement(self, stmt: Statement) -> None:
        match stmt:
            case EmptyStatement():
                pass
            case ExprStatement(expr):
                self.expr(expr)
            case LetDef(_, expr):
                self.expr(expr)
            case LetRecDef(defs):
                for _, expr in defs:
                    self.expr(expr)
                for name, _ in defs:
                    self.counts.pop(name, None)
            case Println(exprs):
                for expr in exprs:
                    self.expr(expr)

    def expr(self, expr: Expr) -> None:
        match expr:
            case VariableExpr(name):
                self.counts[name] += 1
            case LiteralExpr():
                pass
            case BlockExpr(statements, result):
                self.expr(result)
                for stmt in reversed(statements):
                    if isinstance(stmt, LetDef):
                        self.unbind(stmt.pattern)
                        self.expr(stmt.expr)
                    else:
                        self.statement(stmt)
            case MatchExpr(scrutinee, cases, wildcard):
                for _, pattern, arm in cases:
                    self.expr(arm)
                    self.unbind(pattern)
                if wildcard is not None:
                    var, arm = wildcard
                    self.expr(arm)
                    self.unbind(VarPattern(var))
                self.expr(scrutinee)
            case FuncDefExpr(param, body):
                self.expr(body)
                self.unbind(param)
            case BinOpExpr(lhs, rhs, _, _):
                self.expr(lhs)
                self.expr(rhs)
            case CallExpr(func, arg, _):
                self.expr(func)
                self.expr(arg)
            case CaseExpr(_, inner) | FieldAccessExpr(inner, _) | LoopExpr(inner):
                self.expr(inner)
            case FieldSetExpr(target, _, value):
                self.expr(target)
                self.expr(value)
            case IfExpr(cond, then_expr, else_expr):
                self.expr(cond)
                self.expr(then_expr)
                self.expr(else_expr)
            case RecordExpr(fields):
                for _, value, _ in fields:
                    self.expr(value)
            case ArrayExpr(items):
                for item in items:
                    self.expr(item)
            case DictExpr(items):
                for key, value in items:
                    self.expr(key)
                    self.expr(value)

    def node(self, node: Node) -> None:
        if isinstance(node, (EmptyStatement, ExprStatement, LetDef, LetRecDef, Println)):
            self.statement(node)
        else:
            self.expr(node)


def free_vars(node: Node) -> Set[str]:
    """Return the names used but not bound within an expression or statement."""
    collector = _Collector()
    collector.node(node)
    return set(collector.counts)


def free_var_usage_counts(stmts: Iterable[Node]) -> Dict[str, int]:
    """Count how often each free variable is used across a sequence of statements."""
    collector = _Collector()
    for stmt in stmts:
        collector.node(stmt)
    return dict(collector.counts)