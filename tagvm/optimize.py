"""Optimization passes over compiled stack-machine instructions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence, Union

from tagvm.compiler import (
    Dup,
    Instruction,
    Jump,
    JumpAndPopWhenTag,
    JumpWhenFalse,
    MakeClosure,
    MakeRecord,
    PeekAndJumpNotTag,
    PushConstant,
    PushVar,
    Return,
)

_JUMPS = (Jump, JumpWhenFalse, JumpAndPopWhenTag, PeekAndJumpNotTag)
_EXITS = (Return,) + _JUMPS


@dataclass(frozen=True)
class JumpNever:
    """A chain of jumps that cycles back on itself and never finishes."""


@dataclass(frozen=True)
class JumpReturn:
    """A chain of jumps that ends at a return instruction."""


@dataclass(frozen=True)
class JumpTo:
    """A chain of jumps that ends at an ordinary instruction."""

    pos: int


JumpTarget = Union[JumpNever, JumpReturn, JumpTo]


def optimize(ops: Iterable[Instruction]) -> List[Instruction]:
    """Optimize a block of code, including the bodies of the closures it creates."""
    ops = [_optimize_closure(op) for op in ops]
    ops = reduce_jump_chains(ops)
    return [op for block in _basic_blocks(ops) for op in _peephole(block)]


def _optimize_closure(op: Instruction) -> Instruction:
    if isinstance(op, MakeClosure):
        return MakeClosure(tuple(optimize(op.body)))
    return op


def _basic_blocks(ops: Sequence[Instruction]) -> List[List[Instruction]]:
    cuts = {0, len(ops)}
    for pos, op in enumerate(ops):
        if isinstance(op, _EXITS):
            cuts.add(pos + 1)
        if isinstance(op, _JUMPS):
            cuts.add(pos + op.offset + 1)
    if any(cut < 0 or cut > len(ops) for cut in cuts):
        raise ValueError("Jump target outside of the code block")
    bounds = sorted(cuts)
    return [list(ops[start:end]) for start, end in zip(bounds, bounds[1:])]


def _peephole(block: Iterable[Instruction]) -> List[Instruction]:
    out: List[Instruction] = []
    for op in block:
        out.append(op)
        while True:
            last = out[-1]
            if isinstance(last, MakeRecord) and not last.fields:
                # empty records are the unit value
                out[-1] = PushConstant(None)
            elif len(out) >= 2 and isinstance(last, PushVar) and out[-2] == last:
                # load a variable once and duplicate it
                out[-1] = Dup()
            else:
                break
    return out


def reduce_jump_chains(ops: Iterable[Instruction]) -> List[Instruction]:
    """Point every jump directly at the final destination of its chain of jumps."""
    ops = list(ops)
    changed = True
    while changed:
        changed = False
        for pos, op in enumerate(ops):
            if isinstance(op, _JUMPS):
                target = find_final_jump_target(ops, pos + op.offset + 1)
                changed |= _retarget(target, pos, ops)
    return ops


def find_final_jump_target(ops: Sequence[Instruction], pos: int) -> JumpTarget:
    """Follow unconditional jumps from ``pos`` to where they finally lead."""
    visited = set()
    while True:
        if pos in visited:
            return JumpNever()
        visited.add(pos)
        if not 0 <= pos < len(ops):
            raise IndexError(f"Jump target {pos} outside of the code block")
        match ops[pos]:
            case Jump(-1):
                return JumpNever()
            case Jump(offset):
                pos = pos + offset + 1
            case Return():
                return JumpReturn()
            case _:
                return JumpTo(pos)


def _retarget(target: JumpTarget, pos: int, ops: List[Instruction]) -> bool:
    op = ops[pos]
    match target:
        case JumpNever():
            if isinstance(op, Jump) and op.offset != -1:
                ops[pos] = Jump(-1)
                return True
            return False
        case JumpReturn():
            if isinstance(op, Jump):
                ops[pos] = Return()
                return True
            return False
        case JumpTo(dest):
            if not isinstance(op, _JUMPS):
                return False
            new_offset = dest - pos - 1
            if new_offset != op.offset:
                ops[pos] = replace(op, offset=new_offset)
                return True
            return False
    return False