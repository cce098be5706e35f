from tagvm.free_vars import free_var_usage_counts, free_vars
from tagvm.runtime_ast import (
    BinOpExpr,
    BlockExpr,
    CallExpr,
    CasePattern,
    ExprStatement,
    FuncDefExpr,
    LetDef,
    LetRecDef,
    Literal,
    LiteralExpr,
    MatchExpr,
    Op,
    Println,
    RecordPattern,
    Variable,
    VariableExpr,
    VarPattern,
)


def var(name):
    return VariableExpr(name)


def vpat(name):
    return VarPattern(Variable(name))


def test_variable_is_free():
    assert free_vars(var("x")) == {"x"}


def test_literal_has_no_free_vars():
    assert free_vars(LiteralExpr(Literal.INT, "1")) == set()


def test_function_parameter_is_bound():
    fn = FuncDefExpr(vpat("x"), BinOpExpr(var("x"), var("y"), Literal.INT, Op.ADD))
    assert free_vars(fn) == {"y"}


def test_record_parameter_binds_all_fields():
    param = RecordPattern((("a", vpat("p")), ("b", vpat("q"))))
    fn = FuncDefExpr(param, CallExpr(var("p"), CallExpr(var("q"), var("r"))))
    assert free_vars(fn) == {"r"}


def test_block_let_binds_later_uses():
    blk = BlockExpr((LetDef(vpat("x"), var("a")),), var("x"))
    assert free_vars(blk) == {"a"}


def test_block_let_value_sees_outer_name():
    blk = BlockExpr((LetDef(vpat("x"), var("x")),), var("x"))
    assert free_vars(blk) == {"x"}


def test_use_before_let_in_block_stays_free():
    blk = BlockExpr(
        (ExprStatement(var("x")), LetDef(vpat("x"), var("a"))),
        var("x"),
    )
    assert free_vars(blk) == {"x", "a"}


def test_match_patterns_bind_in_arms():
    mx = MatchExpr(
        var("s"),
        (("A", vpat("a"), var("a")), ("B", CasePattern("C", vpat("b")), var("c"))),
        (Variable("w"), CallExpr(var("w"), var("d"))),
    )
    assert free_vars(mx) == {"s", "c", "d"}


def test_let_rec_removes_its_names():
    stmt = LetRecDef((("f", CallExpr(var("g"), var("h"))), ("g", var("f"))))
    assert free_vars(stmt) == {"h"}


def test_usage_counts_count_each_use():
    stmts = [
        Println((var("x"), var("x"))),
        ExprStatement(var("y")),
    ]
    counts = free_var_usage_counts(stmts)
    assert counts == {"x": 2, "y": 1}


def test_usage_counts_ignore_bound_names():
    fn = FuncDefExpr(vpat("x"), BinOpExpr(var("x"), var("x"), Literal.INT, Op.MULT))
    counts = free_var_usage_counts([ExprStatement(fn)])
    assert counts == {}


def test_counts_agree_with_free_vars():
    stmt = ExprStatement(
        BlockExpr((LetDef(vpat("t"), var("u")),), CallExpr(var("t"), var("v")))
    )
    assert set(free_var_usage_counts([stmt])) == free_vars(stmt)