import pytest
from nerode.automata.fsa import DFA, NFA
from nerode.automata.reader import (
    MalformedInput,
    parse_description,
    parse_dfa,
    parse_nfa,
    parse_transition,
    read_dfa,
    read_nfa,
)

DFA_TEXT = """q0
q2
q0 q1 : 0
q1 q2 : 1
"""

NFA_TEXT = """q0
q3
q0 q0 : 0
q0 q0 : 1
q0 q1 : 1
q1 q2 : 0
q1 q2 : 1
q2 q3 : 0
q2 q3 : 1
"""


def test_parse_transition():
    assert parse_transition("q0 q1 : 0") == ("q0", "q1", "0")
    assert parse_transition("  a   b:x  ") == ("a", "b", "x")
    assert parse_transition("a b : :") == ("a", "b", ":")
    assert parse_transition("a b : long letter") == ("a", "b", "long letter")


def test_parse_description():
    starts, finals, transitions = parse_description(DFA_TEXT)
    assert starts == ["q0"]
    assert finals == ["q2"]
    assert transitions == [("q0", "q1", "0"), ("q1", "q2", "1")]


def test_parse_dfa():
    dfa = parse_dfa(DFA_TEXT)
    assert dfa == DFA.from_transitions(
        "q0", ["q2"], [("q0", "q1", "0"), ("q1", "q2", "1")]
    )
    assert dfa.accepts_str("0 1")
    assert not dfa.accepts_str("1 0")


def test_parse_nfa():
    nfa = parse_nfa(NFA_TEXT)
    assert nfa.start() == frozenset({"q0"})
    assert nfa.accepts_str("0 1 1 0")
    assert not nfa.accepts_str("0 1")

    nfa = parse_nfa("a b\nc\na c : x\nb c : y\n")
    assert isinstance(nfa, NFA)
    assert nfa.start() == frozenset({"a", "b"})
    assert nfa.accepts_str("y")


def test_empty_final_line_and_blank_lines():
    dfa = parse_dfa("s\n\ns s : a\n\n   \n")
    assert dfa.final_states == set()
    assert dfa.delta == {("s", "a"): "s"}


def test_final_state_without_transitions():
    dfa = parse_dfa("s\ns t\ns s : a\n")
    assert dfa.final_states == {"s", "t"}
    assert "t" in dfa.states


def test_not_enough_lines():
    with pytest.raises(MalformedInput) as exc:
        parse_dfa("q0\n")
    assert exc.value.lineno is None

    with pytest.raises(MalformedInput):
        parse_dfa("")


def test_missing_start():
    with pytest.raises(MalformedInput) as exc:
        parse_nfa("   \nq1\n")
    assert exc.value.lineno == 1


def test_missing_colon():
    with pytest.raises(MalformedInput) as exc:
        parse_dfa("q0\nq2\nq0 q1 : 0\nq1 q2 1\n")
    assert exc.value.lineno == 4
    assert str(exc.value).startswith("line 4:")


def test_wrong_number_of_states():
    with pytest.raises(MalformedInput) as exc:
        parse_dfa("q0\nq2\nq0 : 0\n")
    assert exc.value.lineno == 3

    with pytest.raises(MalformedInput):
        parse_dfa("q0\nq2\nq0 q1 q2 : 0\n")


def test_missing_letter():
    with pytest.raises(MalformedInput) as exc:
        parse_dfa("q0\nq2\nq0 q1 :   \n")
    assert exc.value.lineno == 3
    assert "letter" in exc.value.message


def test_dfa_needs_one_start():
    with pytest.raises(MalformedInput) as exc:
        parse_dfa("a b\nc\na c : x\n")
    assert exc.value.lineno == 1


def test_read_files(tmp_path):
    path = tmp_path / "machine.txt"
    path.write_text(DFA_TEXT, encoding="utf-8")
    assert read_dfa(path) == parse_dfa(DFA_TEXT)

    path.write_text(NFA_TEXT, encoding="utf-8")
    assert read_nfa(str(path)) == parse_nfa(NFA_TEXT)

    with pytest.raises(OSError):
        read_dfa(tmp_path / "missing.txt")
