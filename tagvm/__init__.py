"""Syntax tree, bytecode compiler, optimizer and stack machine for a small ML-style language."""

__version__ = "0.1.0"

__all__ = [
    "builtins",
    "compiler",
    "env",
    "free_vars",
    "optimize",
    "printer",
    "runtime_ast",
    "value",
    "vm",
]