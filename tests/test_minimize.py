import random
from functools import partial
from itertools import product

import pytest
from nerode.automata import equiv
from nerode.automata.fsa import DFA, NFA, IncompleteAutomatonError, concat_states


def words(alphabet, maxlen):
    for n in range(maxlen + 1):
        yield from product(alphabet, repeat=n)


def ends_with_a():
    # A redundant DFA for the words ending in "a"
    return DFA.from_transitions(
        "q0",
        ["q1", "q3"],
        [
            ("q0", "q1", "a"),
            ("q0", "q2", "b"),
            ("q1", "q3", "a"),
            ("q1", "q2", "b"),
            ("q2", "q1", "a"),
            ("q2", "q0", "b"),
            ("q3", "q3", "a"),
            ("q3", "q4", "b"),
            ("q4", "q3", "a"),
            ("q4", "q4", "b"),
        ],
    )


def scenario_dfa():
    return DFA.from_transitions("q0", ["q2"], [("q0", "q1", "0"), ("q1", "q2", "1")])


def random_dfa(rng, size=6, alphabet="ab"):
    dfa = DFA("s0")
    for src in range(size):
        for label in alphabet:
            dfa.add_transition(f"s{src}", f"s{rng.randrange(size)}", label)
    for state in range(size):
        if rng.random() < 0.4:
            dfa.add_final_state(f"s{state}")
    return dfa


def test_minimize():
    dfa = ends_with_a()
    minimal = dfa.minimize()
    assert minimal.start() == "q0q2q4"
    assert minimal.states == {"q0q2q4", "q1q3"}
    assert minimal.final_states == {"q1q3"}
    assert minimal.delta == {
        ("q0q2q4", "a"): "q1q3",
        ("q0q2q4", "b"): "q0q2q4",
        ("q1q3", "a"): "q1q3",
        ("q1q3", "b"): "q0q2q4",
    }
    for word in words("ab", 5):
        assert minimal.accepts(word) == dfa.accepts(word)


def test_minimize_combiner():
    minimal = ends_with_a().minimize(partial(concat_states, sep="+"))
    assert minimal.states == {"q0+q2+q4", "q1+q3"}


def test_minimize_merges_finals():
    dfa = DFA.from_transitions("s0", ["s0", "s1"], [("s0", "s1", "a"), ("s1", "s1", "a")])
    minimal = dfa.minimize()
    assert minimal.start() == "s0s1"
    assert minimal.final_states == {"s0s1"}
    assert minimal.delta == {("s0s1", "a"): "s0s1"}


def test_minimize_already_minimal():
    total = scenario_dfa().completed("T")
    assert total.minimize() == total

    dfa = NFA.from_transitions(
        ["q0"],
        ["q3"],
        [
            ("q0", "q0", "0"),
            ("q0", "q0", "1"),
            ("q0", "q1", "1"),
            ("q1", "q2", "0"),
            ("q1", "q2", "1"),
            ("q2", "q3", "0"),
            ("q2", "q3", "1"),
        ],
    ).to_dea()
    assert dfa.minimize() == dfa


def test_minimize_needs_total_dfa():
    with pytest.raises(IncompleteAutomatonError):
        scenario_dfa().minimize()
    with pytest.raises(ValueError):
        scenario_dfa().minimize()

    table = equiv.DistinguishabilityTable(scenario_dfa())
    with pytest.raises(IncompleteAutomatonError):
        table.fill()


def clashing_dfa():
    # a and b are equivalent, and "ab" is already a state
    return DFA.from_transitions(
        "a", ["ab"], [("a", "ab", "x"), ("b", "ab", "x"), ("ab", "c", "x"), ("c", "c", "x")]
    )


def test_minimize_name_clash():
    with pytest.raises(ValueError):
        clashing_dfa().minimize()

    dfa = clashing_dfa()
    minimal = dfa.minimize(partial(concat_states, sep="+"))
    assert minimal.states == {"a+b", "ab", "c"}
    assert minimal.start() == "a+b"
    for word in words("x", 4):
        assert minimal.accepts(word) == dfa.accepts(word)
    assert not minimal.accepts([])


def test_minimize_leaves_original():
    dfa = ends_with_a()
    dfa.minimize()
    assert dfa == ends_with_a()


def test_random_minimize():
    rng = random.Random(42)
    combiner = partial(concat_states, sep="+")
    for _ in range(30):
        dfa = random_dfa(rng)
        minimal = dfa.minimize(combiner)
        assert len(minimal) <= len(dfa)
        for word in words("ab", 6):
            assert minimal.accepts(word) == dfa.accepts(word)

        # No two states of the result are equivalent
        classes = equiv.equivalence_classes(minimal)
        assert all(len(group) == 1 for group in classes)
        assert len(classes) == len(minimal)


def test_minimize_after_subset_construction():
    rng = random.Random(7)
    for _ in range(10):
        nfa = NFA([0])
        for src in range(4):
            for label in "ab":
                for dest in range(4):
                    if rng.random() < 0.3:
                        nfa.add_transition(src, dest, label)
        nfa.add_final_state(rng.randrange(4))

        minimal = nfa.to_dea(partial(concat_states, sep=",")).minimize(
            partial(concat_states, sep="|")
        )
        for word in words("ab", 5):
            assert minimal.accepts(word) == nfa.accepts(word)


def test_table():
    total = scenario_dfa().completed("T")
    table = equiv.DistinguishabilityTable(total)
    assert table.order == ["T", "q0", "q1", "q2"]
    assert len(table.pairs) == 6
    assert ("T", "q0") in table.pairs

    table.fill()
    assert table.passes == 3
    assert table.unmarked() == []
    assert table.is_marked("q2", "q0")
    assert table.is_marked("q0", "q2")
    assert not table.is_marked("q1", "q1")
    assert table.classes() == [
        frozenset({"T"}),
        frozenset({"q0"}),
        frozenset({"q1"}),
        frozenset({"q2"}),
    ]


def test_fill_twice():
    events = []
    total = scenario_dfa().completed("T")
    table = equiv.DistinguishabilityTable(
        total, trace=lambda event, data: events.append((event, data))
    )
    table.fill()
    first = list(events)
    marked = set(table.marked)

    table.fill()
    assert table.passes == 3
    assert table.marked == marked
    assert events == first + first


def test_distinguishable_unknown_state():
    with pytest.raises(ValueError, match="nope"):
        equiv.distinguishable(ends_with_a(), "q0", "nope")
    with pytest.raises(ValueError):
        equiv.distinguishable(ends_with_a(), "nope", "nope")

    table = equiv.DistinguishabilityTable(ends_with_a()).fill()
    with pytest.raises(ValueError):
        table.is_marked("q1", "nope")


def test_equivalence_classes():
    classes = equiv.equivalence_classes(ends_with_a())
    assert classes == [frozenset({"q0", "q2", "q4"}), frozenset({"q1", "q3"})]

    assert equiv.distinguishable(ends_with_a(), "q0", "q1")
    assert not equiv.distinguishable(ends_with_a(), "q0", "q4")


def test_classes_are_transitive():
    # Chains of unmarked pairs end up in one class
    dfa = DFA.from_transitions(
        "a",
        [],
        [("a", "b", "x"), ("b", "c", "x"), ("c", "d", "x"), ("d", "a", "x")],
    )
    assert equiv.equivalence_classes(dfa) == [frozenset({"a", "b", "c", "d"})]
    assert len(dfa.minimize()) == 1


def test_trace():
    events = []
    ends_with_a().minimize(trace=lambda event, data: events.append((event, data)))

    assert events[-1] == (equiv.FIXPOINT_REACHED, 1)
    marked = [data for event, data in events if event == equiv.PAIR_MARKED]
    # Every final state against every non-final state, all marked up front
    assert len(marked) == 6
    assert all(pass_number == 0 for _, pass_number in marked)
    assert (("q0", "q1"), 0) in marked


def test_trace_passes():
    events = []
    total = scenario_dfa().completed("T")
    total.minimize(trace=lambda event, data: events.append((event, data)))
    assert (equiv.PAIR_MARKED, (("T", "q1"), 1)) in events
    assert (equiv.PAIR_MARKED, (("q0", "q1"), 1)) in events
    assert (equiv.PAIR_MARKED, (("T", "q0"), 2)) in events
    assert events[-1] == (equiv.FIXPOINT_REACHED, 3)


def test_minimize_partial():
    dfa = scenario_dfa()
    minimal = dfa.minimize_partial()
    assert minimal == dfa


def test_minimize_partial_dead_states():
    # d1 and d2 can never reach a final state
    dfa = DFA.from_transitions(
        "s",
        ["f"],
        [("s", "f", "a"), ("s", "d1", "b"), ("d1", "d2", "a"), ("d2", "d1", "a")],
    )
    minimal = dfa.minimize_partial()
    assert minimal.states == {"s", "f", "d1d2"}
    assert minimal.delta[("d1d2", "a")] == "d1d2"
    assert not minimal.is_total()
    for word in words("ab", 5):
        assert minimal.accepts(word) == dfa.accepts(word)


def test_minimize_partial_missing_vs_dead():
    # x has no transitions at all, d only loops on itself
    dfa = DFA.from_transitions(
        "s",
        ["f"],
        [("s", "f", "c"), ("s", "x", "a"), ("s", "d", "b"), ("d", "d", "a")],
    )
    assert equiv.equivalence_classes(dfa, partial=True) == [
        frozenset({"d", "x"}),
        frozenset({"f"}),
        frozenset({"s"}),
    ]

    minimal = dfa.minimize_partial()
    assert minimal.states == {"s", "f", "dx"}
    assert len(minimal) == len(dfa.completed("T").minimize()) == 3
    for word in words("abc", 4):
        assert minimal.accepts(word) == dfa.accepts(word)


def test_minimize_partial_live_successor():
    # p and r only differ in a transition to a state that can still accept
    dfa = DFA.from_transitions(
        "s",
        ["f"],
        [("s", "p", "a"), ("s", "r", "b"), ("p", "m", "a"), ("m", "f", "a")],
    )
    assert equiv.distinguishable(dfa, "p", "r", partial=True)
    minimal = dfa.minimize_partial()
    for word in words("ab", 5):
        assert minimal.accepts(word) == dfa.accepts(word)
