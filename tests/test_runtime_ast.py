import pytest

from tagvm.runtime_ast import (
    BlockExpr,
    CaseExpr,
    CasePattern,
    EmptyStatement,
    ExprStatement,
    FieldAccessExpr,
    LetDef,
    Literal,
    LiteralExpr,
    MatchExpr,
    RecordExpr,
    RecordPattern,
    Variable,
    VariableExpr,
    VarPattern,
    block,
    case,
    field_access,
    match_,
)


def lit(n):
    return LiteralExpr(Literal.INT, str(n))


def var(name):
    return VariableExpr(name)


def test_block_without_statements_returns_expr():
    expr = lit(1)
    assert block([], expr) is expr
    assert block([EmptyStatement(), EmptyStatement()], expr) is expr


def test_block_filters_empty_statements():
    stmt = ExprStatement(lit(2))
    result = block([EmptyStatement(), stmt, EmptyStatement()], lit(3))
    assert result == BlockExpr((stmt,), lit(3))


def test_block_flattens_inner_block():
    first = ExprStatement(lit(1))
    second = ExprStatement(lit(2))
    inner = BlockExpr((second,), var("x"))
    assert block([first], inner) == BlockExpr((first, second), var("x"))


def test_match_with_only_wildcard_becomes_let():
    result = match_(var("x"), [], (Variable("y"), var("y")))
    assert result == BlockExpr((LetDef(VarPattern(Variable("y")), var("x")),), var("y"))


def test_match_rebuilding_case_returns_scrutinee():
    scrutinee = var("x")
    arm = CaseExpr("A", var("y"))
    result = match_(scrutinee, [("A", VarPattern(Variable("y")), arm)], None)
    assert result is scrutinee


def test_match_single_case_becomes_destructuring_let():
    arm = var("y")
    result = match_(var("x"), [("A", VarPattern(Variable("y")), arm)], None)
    expected_pat = CasePattern("A", VarPattern(Variable("y")))
    assert result == BlockExpr((LetDef(expected_pat, var("x")),), arm)


def test_match_rebuilding_record_returns_scrutinee():
    pat = RecordPattern((("a", VarPattern(Variable("p"))), ("b", VarPattern(Variable("q")))))
    arm = CaseExpr("T", RecordExpr((("b", var("q"), False), ("a", var("p"), False))))
    scrutinee = var("x")
    assert match_(scrutinee, [("T", pat, arm)], None) is scrutinee


def test_match_mutable_record_is_not_a_rebuild():
    pat = RecordPattern((("a", VarPattern(Variable("p"))),))
    arm = CaseExpr("T", RecordExpr((("a", var("p"), True),)))
    result = match_(var("x"), [("T", pat, arm)], None)
    assert isinstance(result, BlockExpr)
    assert result.expr == arm


def test_match_record_with_missing_field_is_not_a_rebuild():
    pat = RecordPattern((("a", VarPattern(Variable("p"))),))
    arm = CaseExpr("T", RecordExpr((("a", var("p"), False), ("b", var("p"), False))))
    result = match_(var("x"), [("T", pat, arm)], None)
    assert result == BlockExpr((LetDef(CasePattern("T", pat), var("x")),), arm)


def test_match_wildcard_pattern_is_not_a_rebuild():
    arm = CaseExpr("A", var("y"))
    result = match_(var("x"), [("A", VarPattern(Variable(None)), arm)], None)
    assert isinstance(result, BlockExpr)
    assert result.expr == arm


@pytest.mark.parametrize("wildcard", [None, (Variable("z"), var("z"))])
def test_match_with_several_cases_stays_a_match(wildcard):
    cases = [
        ("A", VarPattern(Variable("a")), var("a")),
        ("B", VarPattern(Variable("b")), var("b")),
    ]
    result = match_(var("x"), cases, wildcard)
    assert result == MatchExpr(var("x"), tuple(cases), wildcard)


def test_single_case_with_wildcard_stays_a_match():
    cases = [("A", VarPattern(Variable("a")), var("a"))]
    wildcard = (Variable("z"), var("z"))
    result = match_(var("x"), cases, wildcard)
    assert isinstance(result, MatchExpr)
    assert result.wildcard == wildcard


def test_case_and_field_access_builders():
    assert case("Some", lit(1)) == CaseExpr("Some", lit(1))
    assert field_access("f", var("r")) == FieldAccessExpr(var("r"), "f")