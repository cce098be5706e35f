# tagvm

`tagvm` runs programs of a small ML-style language once they have been
turned into a syntax tree. It holds the tree types, a compiler from the tree
to stack bytecode, a bytecode optimizer and a virtual machine. The language
is built around tagged unions (`` `Some x ``, `` `None () ``), records with
optionally mutable fields, first-class closures, recursive bindings, loops,
and immutable vectors and dictionaries.

## Modules

- `tagvm.runtime_ast` – the tree. Statements: `EmptyStatement`,
  `ExprStatement`, `LetDef`, `LetRecDef`, `Println`. Patterns: `VarPattern`
  (holding a `Variable`, whose `name` is `None` for `_`), `CasePattern`,
  `RecordPattern`. Expressions: `BinOpExpr`, `BlockExpr`, `CallExpr`,
  `CaseExpr`, `FieldAccessExpr`, `FieldSetExpr`, `FuncDefExpr`, `IfExpr`,
  `LiteralExpr`, `LoopExpr`, `MatchExpr`, `RecordExpr`, `VariableExpr`,
  `ArrayExpr`, `DictExpr`. `Literal` names the literal kinds (`BOOL`, `INT`,
  `FLOAT`, `STR`) and `Op` the binary operators. All nodes are frozen
  dataclasses. The helpers `block`, `match_`, `case` and `field_access`
  build nodes: `block` drops empty statements and flattens a nested block
  result; `match_` turns a match with only a wildcard, or with a single
  tagged arm, into a pattern binding, and a single arm that merely rebuilds
  its pattern into the scrutinee itself.
- `tagvm.free_vars` – `free_vars(node)` returns the set of variables a node
  uses without binding them; `free_var_usage_counts(stmts)` returns a dict
  of how often each is used.
- `tagvm.env` – `Env`, a persistent chain of bindings. `bind` and
  `bind_placeholder` return a new environment; `lookup` raises `KeyError`
  for an unbound name; `set_placeholder` fills in a recursive binding.
  Reading an unset placeholder, setting one twice, or setting an ordinary
  binding raises `EnvError`.
- `tagvm.value` – runtime values. Unit is `None`; booleans, integers,
  floats and strings are Python's own; vectors are tuples and dictionaries
  are `frozendict`s. `Case` is a tagged value, `Record` has `get_field` and
  `set_field` (a missing field, or writing an immutable one, raises
  `FieldError`), `Closure` is a compiled function with its environment and
  `Builtin` a runtime-provided function. `show(value)` renders a value the
  way the language prints it.
- `tagvm.builtins` – the functions every program starts with: `panic`
  (raises `LanguagePanic`), line input and string output, string and number
  conversions, and vector and dictionary operations (`__vec_push_back`,
  `__vec_get`, `__dict_insert`, `__dict_get`, ...). `define_builtins(env)`
  binds them all. `escape` and `unescape` convert between text and its
  escaped byte form.
- `tagvm.compiler` – `compile_script(stmts)` returns a flat list of
  instructions (`PushConstant`, `PushVar`, `BindVar`, `MakeCase`,
  `MakeRecord`, `Jump`, `JumpWhenFalse`, `Call`, `MakeClosure`,
  `PrintValues`, ...) ending in `Return`.
- `tagvm.optimize` – `optimize(ops)` optimizes closure bodies as well,
  points each jump straight at the end of its chain of jumps, turns a jump
  that leads to a return into a return, turns a jump caught in a cycle into
  `Jump(-1)`, and inside each basic block replaces an empty record with the
  unit constant and a repeated variable load with `Dup`.
  `reduce_jump_chains(ops)` and `find_final_jump_target(ops, pos)` (which
  answers `JumpNever`, `JumpReturn` or `JumpTo(pos)`) are usable alone.
- `tagvm.vm` – `run_script(ops, env, out=None)` executes instructions,
  printing to `out` (standard output by default), and returns the
  environment left behind. Malformed code raises `VMError`.
  `BytecodeBackend(env=None, out=None)` starts from the builtins and keeps
  its environment between calls of `run_script(script)`, which compiles,
  optimizes and runs a list of statements.
- `tagvm.printer` – `simple_print(node, indent=0)` renders statements,
  expressions, patterns and variables as readable source text.

## Example

```python
from tagvm.runtime_ast import (
    BinOpExpr, LetDef, Literal, LiteralExpr, Op, Println, Variable,
    VariableExpr, VarPattern,
)
from tagvm.vm import BytecodeBackend

backend = BytecodeBackend()
backend.run_script([LetDef(VarPattern(Variable("x")), LiteralExpr(Literal.INT, "40"))])
backend.run_script([
    Println([BinOpExpr(VariableExpr("x"), LiteralExpr(Literal.INT, "2"), Literal.INT, Op.ADD)])
])
# prints: 42
```

Literal values are given as source text; string literals keep their
quotes, as in `LiteralExpr(Literal.STR, '"hello"')`.

To look at the bytecode instead of running it:

```python
from tagvm.compiler import compile_script
from tagvm.optimize import optimize

for op in optimize(compile_script(statements)):
    print(op)
```

## What it does not do

There is no parser, no type checker and no module or import handling: the
package starts from a tree that has already been built and checked. There
is no command-line program or interactive prompt; it is used as a library.

## Requirements

Python 3.10 or later and `frozendict`. Tests use `pytest`
(`pip install .[test]`).