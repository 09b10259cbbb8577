"""Tests for the block-structured scope table."""

from symtab import ScopeTable, SymbolEntry, Type


def test_declare_and_lookup():
    st = ScopeTable()
    st.enter_scope()
    assert st.declare("x", Type.INT)
    assert st.lookup("x") is Type.INT
    assert st.lookup("y") is None


def test_redeclare_in_same_frame_keeps_original():
    st = ScopeTable()
    st.enter_scope()
    assert st.declare("x", Type.INT)
    assert not st.declare("x", Type.BOOL)
    assert st.lookup("x") is Type.INT
    assert st.history == [SymbolEntry(0, "x", Type.INT)]


def test_shadowing_and_pop():
    st = ScopeTable()
    st.enter_scope()
    st.declare("x", Type.INT)
    st.enter_scope()
    assert st.declare("x", Type.CHAR)
    assert st.lookup("x") is Type.CHAR
    st.exit_scope()
    assert st.lookup("x") is Type.INT


def test_inner_names_discarded_on_exit():
    st = ScopeTable()
    st.enter_scope()
    st.enter_scope()
    st.declare("tmp", Type.BOOL)
    st.exit_scope()
    assert st.lookup("tmp") is None
    # still in the log
    assert st.history[-1] == SymbolEntry(1, "tmp", Type.BOOL)


def test_exit_on_empty_table_is_noop():
    st = ScopeTable()
    st.exit_scope()
    assert st.depth == -1
    st.enter_scope()
    assert st.depth == 0


def test_dump():
    st = ScopeTable()
    st.enter_scope()
    st.declare("x", Type.INT)
    lines = st.dump().splitlines()
    assert lines[0] == "SYMBOL TABLE (insertion order)"
    assert lines[2] == "SCOPE 0  x            : INT"
