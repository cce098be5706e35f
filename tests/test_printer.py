import pytest

from tagvm.printer import simple_print
from tagvm.runtime_ast import (
    ArrayExpr,
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CaseExpr,
    CasePattern,
    DictExpr,
    EmptyStatement,
    ExprStatement,
    FieldAccessExpr,
    FieldSetExpr,
    FuncDefExpr,
    IfExpr,
    LetDef,
    LetRecDef,
    Literal,
    LiteralExpr,
    LoopExpr,
    MatchExpr,
    Op,
    Println,
    RecordExpr,
    RecordPattern,
    Variable,
    VariableExpr,
    VarPattern,
)

ONE = LiteralExpr(Literal.INT, "1")
X = VariableExpr("x")
Y = VariableExpr("y")


def test_empty_statement():
    assert simple_print(EmptyStatement()) == "<nop>"


def test_wildcard_variable_and_pattern():
    assert simple_print(Variable(None)) == "_"
    assert simple_print(VarPattern(Variable(None))) == "_"
    assert simple_print(VarPattern(Variable("x"))) == "x"


def test_literal_and_variable_are_verbatim():
    assert simple_print(ONE) == "1"
    assert simple_print(X) == "x"
    assert simple_print(ExprStatement(X)) == "x"


@pytest.mark.parametrize("op", list(Op))
def test_binop_uses_operator_symbol(op):
    assert simple_print(BinOpExpr(X, Y, Literal.INT, op)) == "(x " + op.value + " y)"


def test_call_case_and_field_access():
    assert simple_print(CallExpr(X, Y)) == "(x y)"
    assert simple_print(CaseExpr("Some", X)) == "`Some x"
    assert simple_print(FieldAccessExpr(X, "a")) == "x.a"
    assert simple_print(FieldSetExpr(X, "a", ONE)) == "(x.a <- 1)"


def test_func_def():
    fn = FuncDefExpr(VarPattern(Variable("x")), X)
    assert simple_print(fn) == "(fun x -> x)"


def test_record_expr_marks_mutable_fields():
    rec = RecordExpr((("a", ONE, True), ("b", X, False)))
    assert simple_print(rec) == "{mut a=1; b=x}"
    assert simple_print(RecordExpr(())) == "{}"


def test_patterns():
    pat = RecordPattern((("a", VarPattern(Variable("x"))), ("b", VarPattern(Variable(None)))))
    assert simple_print(pat) == "{a=x; b=_}"
    assert simple_print(CasePattern("Ok", VarPattern(Variable("y")))) == "`Ok y"


def test_array_and_dict():
    assert simple_print(ArrayExpr((ONE, X))) == "#[1, x]"
    assert simple_print(ArrayExpr(())) == "#[]"
    assert simple_print(DictExpr(((X, ONE),))) == "#{x: 1}"


def test_let_and_println():
    assert simple_print(LetDef(VarPattern(Variable("x")), ONE)) == "let x = 1"
    assert simple_print(Println((ONE, X))) == "print 1, x"


def test_block_layout():
    blk = BlockExpr((LetDef(VarPattern(Variable("x")), ONE),), X)
    text = simple_print(blk)
    assert text == "begin\n    let x = 1;\n    x\nend"


def test_block_indentation_follows_level():
    blk = BlockExpr((ExprStatement(ONE),), X)
    text = simple_print(blk, 2)
    lines = text.split("\n")
    assert lines[0] == "begin"
    assert lines[1] == " " * 12 + "1;"
    assert lines[2] == " " * 12 + "x"
    assert lines[-1] == " " * 8 + "end"


def test_if_layout():
    text = simple_print(IfExpr(X, ONE, Y))
    assert text == "if x\n    then 1\n    else y\n"


def test_loop_layout():
    text = simple_print(LoopExpr(X), 1)
    assert text == "loop\n" + " " * 8 + "x\n" + " " * 4


def test_match_with_wildcard():
    mx = MatchExpr(
        X,
        (("Some", VarPattern(Variable("y")), Y),),
        (Variable(None), ONE),
    )
    text = simple_print(mx)
    assert text == "match x with\n    Some y -> y\n    _ -> 1\n"


def test_let_rec():
    fn = FuncDefExpr(VarPattern(Variable("n")), VariableExpr("n"))
    text = simple_print(LetRecDef((("f", fn),)))
    assert text.startswith("let rec\n")
    assert "    f = " + simple_print(fn, 1) + "\n" in text


def test_unknown_node_raises():
    with pytest.raises(TypeError):
        simple_print(42)