# Copyright 2012 Matt Chaput. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MATT CHAPUT ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL MATT CHAPUT OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of Matt Chaput.

import sys
from collections import deque
from itertools import count

from loguru import logger

from nerode.automata import equiv
from nerode.automata.equiv import IncompleteAutomatonError
from nerode.util import ordered


# Combiners


def concat_states(states, sep=""):
    """
    Names a set of states by joining their sorted string forms.

    This is the default combiner used when several states are collapsed into
    one, for example by subset construction or minimization. The result only
    depends on the contents of the set, never on its iteration order.

    Args:
        states (iterable): The states to name.
        sep (str, optional): The separator placed between names. Defaults to
            the empty string.

    Returns:
        str: The combined name.

    Example:
        >>> concat_states({"q1", "q0"})
        'q0q1'
        >>> concat_states({"q1", "q0"}, sep=",")
        'q0,q1'
        >>> concat_states(set())
        ''
    """
    return sep.join(sorted(str(state) for state in states))


def frozen_states(states):
    """
    A combiner that names a set of states by the frozenset itself.

    Useful when the members of a combined state need to stay recoverable.
    """
    return frozenset(states)


# Base class


class FSA:
    """
    Finite State Automaton (FSA) base class.

    Holds the structure shared by deterministic and nondeterministic automata
    and implements the operations that only depend on :meth:`next_state` and
    :meth:`is_final`.

    Attributes:
        initial (object): The start state (DFA) or frozenset of start states
            (NFA).
        alphabet (set): Every letter used by at least one transition.
        states (set): Every transition endpoint, start state and final state.
        transitions (dict): Maps source states to a dictionary of letters and
            destinations.
        final_states (set): The accepting states.

    Both :class:`DFA` and :class:`NFA` are built incrementally with
    :meth:`add_transition` and :meth:`add_final_state`, or in one call with
    :meth:`from_transitions`. Every transformation (completion, subset
    construction, minimization, merging) returns a new automaton and leaves
    the receiver untouched.
    """

    def __init__(self, initial):
        self.initial = initial
        self.alphabet = set()
        self.states = set()
        self.transitions = {}
        self.final_states = set()

    @classmethod
    def from_transitions(cls, initial, final_states=(), transitions=()):
        """
        Builds an automaton from a start specification, final states and
        transition triples.

        The transitions are added first and the final states second, so a
        state may be final without appearing in any transition.

        Args:
            initial (object): The start state (DFA) or an iterable of start
                states (NFA).
            final_states (iterable): The accepting states.
            transitions (iterable): ``(src, dest, label)`` triples.

        Returns:
            FSA: The new automaton.

        Example:
            >>> dfa = DFA.from_transitions(
            ...     "q0", ["q2"], [("q0", "q1", "0"), ("q1", "q2", "1")]
            ... )
            >>> dfa.accepts(["0", "1"])
            True
        """
        fsa = cls(initial)
        for src, dest, label in transitions:
            fsa.add_transition(src, dest, label)
        for state in final_states:
            fsa.add_final_state(state)
        return fsa

    def __len__(self):
        """
        Returns the number of states in the automaton.

        :rtype: int
        """
        return len(self.states)

    def __eq__(self, other):
        """
        Checks if two automata of the same kind have the same structure.

        Two automata are equal when their start, states, final states and
        transitions are equal. The alphabet is implied by the transitions.
        """
        if type(self) is not type(other):
            return NotImplemented
        return (
            self.initial == other.initial
            and self.states == other.states
            and self.final_states == other.final_states
            and self.transitions == other.transitions
        )

    def __repr__(self):
        return "<{} states={} letters={} finals={}>".format(
            type(self).__name__,
            len(self.states),
            len(self.alphabet),
            len(self.final_states),
        )

    def copy(self):
        """Returns an independent copy of this automaton."""
        return type(self).from_transitions(
            self.initial, self.final_states, self.triples()
        )

    def start(self):
        """
        Returns the start of the automaton: the initial state of a DFA or the
        frozenset of initial states of an NFA.
        """
        return self.initial

    def _note_transition(self, src, dest, label):
        self.states.add(src)
        self.states.add(dest)
        self.alphabet.add(label)

    def add_transition(self, src, dest, label):
        raise NotImplementedError

    def add_final_state(self, state):
        """
        Marks a state as final.

        The state does not need to appear in any transition; it is added to
        :attr:`states` if necessary.
        """
        self.final_states.add(state)
        self.states.add(state)

    def next_state(self, state, label):
        raise NotImplementedError

    def is_final(self, state):
        raise NotImplementedError

    def is_stuck(self, state):
        """Returns True if ``state`` is the result of a failed transition."""
        raise NotImplementedError

    def triples(self):
        raise NotImplementedError

    def simulate(self, start, word):
        """
        Runs the automaton over a word.

        Args:
            start (object): The state (DFA) or set of states (NFA) to start
                from.
            word (iterable): The letters to read, in order.

        Returns:
            object: The state (DFA) or frozenset of states (NFA) reached after
            the last letter, or None if the automaton got stuck on the way.
            Once stuck, the remaining letters are not read.

        Example:
            >>> dfa.simulate("q0", ["0", "1"])
            'q2'
            >>> dfa.simulate("q0", ["1"]) is None
            True
        """
        state = start
        for label in word:
            state = self.next_state(state, label)
            if self.is_stuck(state):
                return None
        return state

    def accepts(self, word):
        """
        Checks if the automaton accepts a word.

        The word is simulated from :meth:`start`. A simulation that gets stuck
        rejects the word. The empty word is accepted iff the start is final.

        Args:
            word (iterable): The letters of the word.

        Returns:
            bool: True if the word is accepted, False otherwise.
        """
        state = self.simulate(self.start(), word)
        return state is not None and self.is_final(state)

    def accepts_str(self, text):
        """
        Checks if the automaton accepts the whitespace-separated letters in
        ``text``.

        Example:
            >>> dfa.accepts_str("0 1")
            True
        """
        return self.accepts(text.split())


# Implementations


class DFA(FSA):
    """
    Deterministic Finite Automaton (DFA).

    Each (state, letter) pair has at most one destination. The transition
    function may be partial: a missing entry in :attr:`transitions` means "no
    transition", which makes simulation fail, and is different from an
    explicit transition into a trap state. Use :meth:`completed` to make the
    function total.

    Attributes:
        initial (object): The start state.
        transitions (dict): Maps a source state to a dictionary of
            ``letter -> destination``.
    """

    def __init__(self, initial):
        super().__init__(initial)
        self.states.add(initial)

    def add_transition(self, src, dest, label):
        """
        Adds a transition from ``src`` to ``dest`` on ``label``.

        A transition that already exists for ``(src, label)`` is replaced.

        Example:
            >>> dfa = DFA("A")
            >>> dfa.add_transition("A", "B", "a")
            >>> dfa.add_transition("A", "C", "a")
            >>> dfa.next_state("A", "a")
            'C'
        """
        self.transitions.setdefault(src, {})[label] = dest
        self._note_transition(src, dest, label)

    def next_state(self, src, label):
        """
        Returns the destination of the transition from ``src`` on ``label``,
        or None if there is no such transition.
        """
        return self.transitions.get(src, {}).get(label)

    def is_final(self, state):
        return state in self.final_states

    def is_stuck(self, state):
        return state is None

    def get_labels(self, src):
        """Returns an iterator of the letters with a transition out of
        ``src``."""
        return iter(self.transitions.get(src, ()))

    def triples(self):
        """Yields every transition as a ``(src, dest, label)`` triple."""
        for src, trans in self.transitions.items():
            for label, dest in trans.items():
                yield src, dest, label

    @property
    def delta(self):
        """The transition function as a flat ``(state, letter) -> state``
        dictionary."""
        return {(src, label): dest for src, dest, label in self.triples()}

    def is_total(self):
        """
        Returns True if every state has a transition on every letter of the
        alphabet.
        """
        return all(
            self.next_state(state, label) is not None
            for state in self.states
            for label in self.alphabet
        )

    def completed(self, trap):
        """
        Returns a total copy of this DFA.

        Every (state, letter) pair without a transition is sent to ``trap``.
        The trap takes part in the completion itself, so it gets a self-loop
        on every letter. The trap is not final, and the start and final states
        are unchanged. If the DFA is already total the trap is not added (a
        ``trap`` that is already one of the states is completed like any other
        state).

        Args:
            trap (object): The state that absorbs undefined transitions.

        Returns:
            DFA: The completed automaton.

        Example:
            >>> total = dfa.completed("T")
            >>> total.next_state("q2", "0")
            'T'
            >>> total.next_state("T", "1")
            'T'
        """
        domain = set(self.states)
        if not self.is_total():
            domain.add(trap)

        dfa = DFA(self.initial)
        for src in domain:
            for label in self.alphabet:
                dest = self.next_state(src, label)
                dfa.add_transition(src, trap if dest is None else dest, label)
        for state in self.final_states:
            dfa.add_final_state(state)
        return dfa

    def reachable_from(self, src, inclusive=True):
        """
        Returns the set of states that can be reached from ``src``.

        Args:
            src (object): The source state.
            inclusive (bool, optional): Whether ``src`` itself is included
                even when no path leads back to it. Defaults to True.

        Returns:
            set: The reachable states.
        """
        transitions = self.transitions
        reached = set()
        if inclusive:
            reached.add(src)

        stack = [src]
        seen = {src}
        while stack:
            state = stack.pop()
            for dest in transitions.get(state, {}).values():
                reached.add(dest)
                if dest not in seen:
                    seen.add(dest)
                    stack.append(dest)
        return reached

    def trimmed(self):
        """Returns a copy of this DFA without the states that can't be
        reached from the start state."""
        keep = self.reachable_from(self.initial)
        return DFA.from_transitions(
            self.initial,
            self.final_states & keep,
            ((s, d, label) for s, d, label in self.triples() if s in keep),
        )

    def combine_states(self, groups, combiner=concat_states):
        """
        Collapses groups of states into single states.

        Each group becomes one state named ``combiner(frozenset(group))``.
        Transitions, the start state and the final states are rewritten
        through this renaming; a transition between two members of a group
        becomes a self-loop. States that are not in any group keep their
        names. The result is built from scratch with :meth:`from_transitions`.

        No check is made that the merged states behave the same: merging
        states that are distinguishable changes the language, and when they
        disagree on a letter the transition added last wins.

        Args:
            groups (iterable): Disjoint iterables of states.
            combiner (callable, optional): Names a frozenset of states.
                Defaults to :func:`concat_states`.

        Returns:
            DFA: The quotient automaton.

        Raises:
            ValueError: If a state appears in more than one group, or if a
                group's name is also the name of another group or of a
                state outside every group.

        Example:
            >>> merged = dfa.combine_states([{"q1", "q3"}])
            >>> sorted(merged.states)
            ['q0', 'q1q3', 'q2']
        """
        mapping = {}
        owners = {}
        for group in groups:
            group = frozenset(group)
            name = combiner(group)
            for state in group:
                if state in mapping:
                    raise ValueError(f"State {state!r} is in more than one group")
                mapping[state] = name
            if name in owners:
                raise ValueError(
                    f"Groups {ordered(owners[name])!r} and {ordered(group)!r} "
                    f"are both named {name!r}"
                )
            owners[name] = group
        for state in self.states:
            if state in owners and state not in mapping:
                raise ValueError(
                    f"Group {ordered(owners[state])!r} is named {state!r}, "
                    f"which is already a state"
                )

        def rename(state):
            return mapping.get(state, state)

        return DFA.from_transitions(
            rename(self.initial),
            [rename(state) for state in self.final_states],
            [(rename(s), rename(d), label) for s, d, label in self.triples()],
        )

    def minimize(self, combiner=concat_states, trace=None):
        """
        Returns an equivalent DFA with the fewest possible states.

        The DFA must be total (see :meth:`completed`). Indistinguishable
        states are found with the table-filling algorithm in
        :mod:`nerode.automata.equiv` and merged with :meth:`combine_states`,
        so every merged state is named by ``combiner`` and every state that
        is equivalent to no other keeps its name.

        Unreachable states are not removed; call :meth:`trimmed` first for
        that.

        Args:
            combiner (callable, optional): Names a frozenset of merged
                states. Defaults to :func:`concat_states`.
            trace (callable, optional): A ``trace(event, data)`` hook called
                when a pair of states is marked distinguishable and when the
                fixpoint is reached.

        Returns:
            DFA: The minimized automaton.

        Raises:
            IncompleteAutomatonError: If the transition function is partial.
            ValueError: If ``combiner`` names a merged class after a state
                that stays unmerged, or names two classes alike.
        """
        if not self.is_total():
            raise IncompleteAutomatonError(
                "minimize() needs a total DFA: call completed() first, "
                "or use minimize_partial()"
            )
        return self._minimize(combiner, trace, partial=False)

    def minimize_partial(self, combiner=concat_states, trace=None):
        """
        Minimizes a DFA whose transition function may be partial.

        A missing transition is treated as a move into an implicit dead
        state. For one letter, two missing transitions say nothing about a
        pair of states, and a single missing transition makes the pair
        distinguishable iff a final state is reachable from the other
        destination. The result accepts the same words as this DFA and is not
        completed.
        """
        return self._minimize(combiner, trace, partial=True)

    def _minimize(self, combiner, trace, partial):
        classes = equiv.equivalence_classes(self, partial=partial, trace=trace)
        groups = [group for group in classes if len(group) > 1]
        logger.debug(
            "Merging {} groups, {} states become {}",
            len(groups),
            len(self.states),
            len(classes),
        )
        return self.combine_states(groups, combiner)

    def to_dea(self, combiner=concat_states):
        """A DFA is already deterministic: returns a copy."""
        return self.copy()

    to_dfa = to_dea

    def dump(self, stream=sys.stdout):
        """
        Prints a textual representation of the DFA to the specified stream.

        Each state is printed on its own line, prefixed with ``@`` if it is
        the start state and followed by ``||`` if it is final, then each of
        its transitions is printed as ``letter -> destination``.

        Example:
            >>> dfa.dump()
            @ q0
                0 -> q1
              q1
                1 -> q2 ||
              q2 ||
        """
        for src in ordered(self.states):
            beg = "@" if src == self.initial else " "
            end = " ||" if self.is_final(src) else ""
            print(f"{beg} {src}{end}", file=stream)
            xs = self.transitions.get(src, {})
            for label in ordered(xs):
                dest = xs[label]
                mark = " ||" if self.is_final(dest) else ""
                print(f"    {label} -> {dest}{mark}", file=stream)


class NFA(FSA):
    """
    Nondeterministic Finite Automaton (NFA).

    Each (state, letter) pair may have any number of destinations, and there
    may be several start states. Simulation follows every path at once: the
    current state of an NFA is a frozenset of its states.

    Attributes:
        initial (frozenset): The start states.
        transitions (dict): Maps a source state to a dictionary of
            ``letter -> set of destinations``.
    """

    def __init__(self, initial):
        super().__init__(frozenset(initial))
        self.states.update(self.initial)

    def add_transition(self, src, dest, label):
        """
        Adds ``dest`` to the destinations of ``src`` on ``label``.
        """
        self.transitions.setdefault(src, {}).setdefault(label, set()).add(dest)
        self._note_transition(src, dest, label)

    def targets(self, state, label):
        """Returns the frozenset of destinations of a single state on
        ``label``."""
        return frozenset(self.transitions.get(state, {}).get(label, ()))

    def next_state(self, states, label):
        """
        Returns the set of states that can be reached from any of the given
        states with the specified letter.

        Args:
            states (iterable): The states to start from.
            label (object): The letter.

        Returns:
            frozenset: The reachable states, empty if there are none.

        Example:
            >>> nfa.next_state({"q0"}, "1")
            frozenset({'q0', 'q1'})
        """
        transitions = self.transitions
        dest_states = set()
        for state in states:
            if state in transitions:
                xs = transitions[state]
                if label in xs:
                    dest_states.update(xs[label])
        return frozenset(dest_states)

    def is_final(self, states):
        """Returns True if any of the given states is final."""
        return bool(self.final_states.intersection(states))

    def is_stuck(self, states):
        return not states

    def get_labels(self, states):
        """Returns the set of letters with a transition out of any of the
        given states."""
        transitions = self.transitions
        labels = set()
        for state in states:
            if state in transitions:
                labels.update(transitions[state])
        return labels

    def triples(self):
        """Yields every transition as a ``(src, dest, label)`` triple."""
        for src, trans in self.transitions.items():
            for label, dests in trans.items():
                for dest in dests:
                    yield src, dest, label

    @property
    def delta(self):
        """The transition function as a flat ``(state, letter) -> frozenset``
        dictionary."""
        return {
            (src, label): frozenset(dests)
            for src, trans in self.transitions.items()
            for label, dests in trans.items()
        }

    def to_dea(self, combiner=concat_states):
        """
        Converts the NFA to an equivalent DFA with the subset construction.

        The sets of NFA states reachable from the start set are explored
        breadth-first. Each set becomes one DFA state named
        ``combiner(frozenset)``; the combiner must depend only on the contents
        of the set. A set containing a final state is final. The empty set is
        a valid subset: once reached it becomes a non-final state that loops
        to itself, so the resulting DFA is total over the alphabet.

        Args:
            combiner (callable, optional): Names a frozenset of NFA states.
                Defaults to :func:`concat_states`.

        Returns:
            DFA: The equivalent DFA.

        Raises:
            ValueError: If the combiner gives two different subsets the same
                name.

        Example:
            >>> dfa = nfa.to_dea()
            >>> dfa.start()
            'q0'
        """
        start = self.start()
        start_name = combiner(start)
        dfa = DFA(start_name)

        subsets = {start_name: start}
        frontier = deque([start])
        while frontier:
            current = frontier.popleft()
            src = combiner(current)
            if self.is_final(current):
                dfa.add_final_state(src)

            for label in self.alphabet:
                new_states = self.next_state(current, label)
                dest = combiner(new_states)
                dfa.add_transition(src, dest, label)
                if dest not in subsets:
                    subsets[dest] = new_states
                    frontier.append(new_states)
                elif subsets[dest] != new_states:
                    raise ValueError(
                        f"Subsets {ordered(subsets[dest])!r} and "
                        f"{ordered(new_states)!r} are both named {dest!r}"
                    )

        logger.debug(
            "Subset construction: {} NFA states gave {} DFA states",
            len(self.states),
            len(dfa.states),
        )
        return dfa

    def to_dfa(self):
        """Converts the NFA to a DFA, naming subsets with
        :func:`concat_states`."""
        return self.to_dea()

    def dump(self, stream=sys.stdout):
        """
        Prints a textual representation of the NFA to the specified stream,
        in the same layout as :meth:`DFA.dump` with sets of destinations.
        """
        starts = self.start()
        for src in ordered(self.states):
            beg = "@" if src in starts else " "
            end = " ||" if src in self.final_states else ""
            print(f"{beg} {src}{end}", file=stream)
            xs = self.transitions.get(src, {})
            for label in ordered(xs):
                dests = ", ".join(str(dest) for dest in ordered(xs[label]))
                print(f"    {label} -> {{{dests}}}", file=stream)


# Useful functions


def renumber_dfa(dfa, base=0):
    """
    Renumber the states of a DFA with consecutive integers.

    States are numbered in breadth-first order from the start state, visiting
    letters in sorted order, so the start state gets ``base``. States that
    can't be reached from the start are numbered last, in sorted order.

    Args:
        dfa (DFA): The DFA to renumber.
        base (int, optional): The first number. Defaults to 0.

    Returns:
        DFA: The renumbered DFA.

    Example:
        >>> renumber_dfa(nfa.to_dea()).start()
        0
    """
    c = count(base)
    mapping = {}

    def remap(state):
        if state not in mapping:
            mapping[state] = next(c)
        return mapping[state]

    remap(dfa.initial)
    queue = deque([dfa.initial])
    while queue:
        src = queue.popleft()
        xs = dfa.transitions.get(src, {})
        for label in ordered(xs):
            dest = xs[label]
            if dest not in mapping:
                remap(dest)
                queue.append(dest)
    for state in ordered(dfa.states):
        remap(state)

    return DFA.from_transitions(
        mapping[dfa.initial],
        [mapping[state] for state in dfa.final_states],
        [(mapping[s], mapping[d], label) for s, d, label in dfa.triples()],
    )
