"""Human-readable rendering of the runtime syntax tree."""

from __future__ import annotations

from typing import Union

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
    Variable,
    VariableExpr,
    VarPattern,
)

Printable = Union[Statement, Expr, LetPattern, Variable]


def _indent(level: int) -> str:
    return " " * (level * 4)


def simple_print(node: Printable, indent: int = 0) -> str:
    """Render a statement, expression, pattern or variable as source-like text."""
    inner = indent + 1
    match node:
        # statements
        case EmptyStatement():
            return "<nop>"
        case ExprStatement(expr):
            return simple_print(expr, indent)
        case LetDef(pattern, expr):
            return f"let {simple_print(pattern, indent)} = {simple_print(expr, indent)}"
        case LetRecDef(defs):
            lines = "".join(
                f"{_indent(inner)}{name} = {simple_print(expr, inner)}\n" for name, expr in defs
            )
            return "let rec\n" + lines + _indent(indent)
        case Println(exprs):
            return "print " + ", ".join(simple_print(e, indent) for e in exprs)

        # patterns
        case Variable(name):
            return "_" if name is None else name
        case VarPattern(var):
            return simple_print(var, indent)
        case CasePattern(tag, pattern):
            return f"`{tag} {simple_print(pattern, indent)}"
        case RecordPattern(fields):
            body = "; ".join(f"{name}={simple_print(p, indent)}" for name, p in fields)
            return "{" + body + "}"

        # expressions
        case BinOpExpr(lhs, rhs, _, op):
            return f"({simple_print(lhs, indent)} {op.value} {simple_print(rhs, indent)})"
        case BlockExpr(statements, result):
            lines = "".join(
                f"{_indent(inner)}{simple_print(stmt, inner)};\n" for stmt in statements
            )
            return (
                "begin\n"
                + lines
                + f"{_indent(inner)}{simple_print(result, inner)}\n"
                + _indent(indent)
                + "end"
            )
        case CallExpr(func, arg, _):
            return f"({simple_print(func, indent)} {simple_print(arg, indent)})"
        case CaseExpr(tag, expr):
            return f"`{tag} {simple_print(expr, indent)}"
        case FieldAccessExpr(expr, field):
            return f"{simple_print(expr, indent)}.{field}"
        case FieldSetExpr(expr, field, value):
            return f"({simple_print(expr, indent)}.{field} <- {simple_print(value, indent)})"
        case FuncDefExpr(param, body):
            return f"(fun {simple_print(param, indent)} -> {simple_print(body, indent)})"
        case IfExpr(cond, then_expr, else_expr):
            return (
                f"if {simple_print(cond, indent)}\n"
                + f"{_indent(inner)}then {simple_print(then_expr, inner)}\n"
                + f"{_indent(inner)}else {simple_print(else_expr, inner)}\n"
                + _indent(indent)
            )
        case LiteralExpr(_, value):
            return value
        case LoopExpr(body):
            return f"loop\n{_indent(inner)}{simple_print(body, inner)}\n{_indent(indent)}"
        case MatchExpr(expr, cases, wildcard):
            out = f"match {simple_print(expr, indent)} with\n"
            for tag, pattern, arm in cases:
                out += (
                    f"{_indent(inner)}{tag} {simple_print(pattern, inner)}"
                    f" -> {simple_print(arm, inner)}\n"
                )
            if wildcard is not None:
                var, arm = wildcard
                out += f"{_indent(inner)}{simple_print(var, inner)} -> {simple_print(arm, inner)}\n"
            return out + _indent(indent)
        case RecordExpr(fields):
            body = "; ".join(
                f"{'mut ' if mutable else ''}{name}={simple_print(value, indent)}"
                for name, value, mutable in fields
            )
            return "{" + body + "}"
        case VariableExpr(name):
            return name
        case ArrayExpr(items):
            return "#[" + ", ".join(simple_print(item, indent) for item in items) + "]"
        case DictExpr(items):
            body = ", ".join(
                f"{simple_print(k, indent)}: {simple_print(v, indent)}" for k, v in items
            )
            return "#{" + body + "}"
    raise TypeError(f"Cannot print {node!r}")