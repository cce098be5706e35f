import pytest

from tagvm.env import Env, EnvError


def test_bind_and_lookup():
    env = Env().bind("x", 1).bind("y", 2)
    assert env.lookup("x") == 1
    assert env.lookup("y") == 2


def test_shadowing_uses_innermost():
    outer = Env().bind("x", 1)
    inner = outer.bind("x", 5)
    assert inner.lookup("x") == 5
    assert outer.lookup("x") == 1


def test_lookup_unbound_raises_key_error():
    with pytest.raises(KeyError):
        Env().bind("a", 1).lookup("b")


def test_nothing_value_is_found():
    env = Env().bind("u", None)
    assert env.lookup("u") is None


def test_placeholder_uninitialized():
    env = Env().bind_placeholder("f")
    with pytest.raises(EnvError, match="Uninitialized"):
        env.lookup("f")


def test_placeholder_initialized_visible_to_earlier_captures():
    env = Env().bind_placeholder("f")
    captured = env.bind("other", 0)
    env.set_placeholder("f", "value")
    assert captured.lookup("f") == "value"
    assert env.lookup("f") == "value"


def test_placeholder_assigned_twice():
    env = Env().bind_placeholder("f")
    env.set_placeholder("f", 1)
    with pytest.raises(EnvError, match="twice"):
        env.set_placeholder("f", 2)


def test_set_placeholder_on_immutable_binding():
    env = Env().bind_placeholder("f").bind("f", 3)
    with pytest.raises(EnvError, match="immutable"):
        env.set_placeholder("f", 1)


def test_set_placeholder_unbound():
    with pytest.raises(EnvError, match="unbound"):
        Env().set_placeholder("g", 1)


def test_equality_is_identity_of_chain():
    base = Env()
    assert Env() == base
    a = base.bind("x", 1)
    b = base.bind("x", 1)
    assert a != b
    assert a == a
    assert hash(Env()) == hash(base)


def test_copy_of_reference_equal():
    a = Env().bind("x", 1)
    alias = Env(a._node)
    assert alias == a
    assert {a: "ok"}[alias] == "ok"