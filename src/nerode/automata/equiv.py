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

"""
This module computes the Myhill-Nerode equivalence on the states of a DFA
using the table-filling algorithm.

Every unordered pair of distinct states starts out unmarked. Pairs where
exactly one state is final are marked first, then the table is swept
repeatedly: a pair is marked when some letter leads it to a marked pair (or to
a pair that disagrees on finality). When a full sweep marks nothing the
remaining unmarked pairs are exactly the indistinguishable ones, and they are
grouped into equivalence classes with a union-find structure.

The table normally requires a total transition function. With
``partial=True`` an undefined transition is treated as a move into an implicit
dead state, so a pair where only one successor is defined is distinguishable
iff a final state can be reached from the defined successor.

An optional ``trace`` callable is invoked at the algorithm's checkpoints as
``trace(event, data)``:

``PAIR_MARKED``
    ``data`` is ``(pair, pass_number)``. Pairs marked because of finality are
    reported with pass number 0.

``FIXPOINT_REACHED``
    ``data`` is the number of refinement passes that were run.
"""

from itertools import combinations

from cached_property import cached_property
from loguru import logger

from nerode.util import ordered

# Trace events
PAIR_MARKED = "pair_marked"
FIXPOINT_REACHED = "fixpoint_reached"


class IncompleteAutomatonError(ValueError):
    """
    Raised when an operation that needs a total transition function finds a
    (state, letter) pair with no transition.
    """


class DistinguishabilityTable:
    """
    The table of state pairs used by the table-filling algorithm.

    The table reads the DFA it was created with but never modifies it, and the
    DFA must not change while the table is in use: the state order, the pair
    list and the set of live states are computed once and cached.

    Attributes:
        dfa (DFA): The automaton whose states are compared.
        partial (bool): Whether undefined transitions are allowed (see the
            module documentation for the policy).
        trace (callable): Optional ``trace(event, data)`` hook.
        marked (set): The pairs known to be distinguishable.
        passes (int): The number of refinement passes run by :meth:`fill`.

    Example:
        >>> table = DistinguishabilityTable(dfa).fill()
        >>> table.is_marked("q0", "q2")
        True
        >>> table.classes()
        [frozenset({'q0'}), frozenset({'q1', 'q3'}), frozenset({'q2'})]
    """

    def __init__(self, dfa, partial=False, trace=None):
        self.dfa = dfa
        self.partial = partial
        self.trace = trace
        self.marked = set()
        self.passes = 0

    @cached_property
    def order(self):
        """The states of the DFA in the order used to build pairs."""
        return ordered(self.dfa.states)

    @cached_property
    def positions(self):
        return {state: i for i, state in enumerate(self.order)}

    @cached_property
    def pairs(self):
        """Every unordered pair of distinct states, each listed once as
        ``(earlier, later)`` in :attr:`order`."""
        return list(combinations(self.order, 2))

    @cached_property
    def live_states(self):
        """The states from which some final state can be reached."""
        predecessors = {}
        for src, dest, _ in self.dfa.triples():
            predecessors.setdefault(dest, set()).add(src)

        live = set(self.dfa.final_states)
        stack = list(live)
        while stack:
            state = stack.pop()
            for src in predecessors.get(state, ()):
                if src not in live:
                    live.add(src)
                    stack.append(src)
        return frozenset(live)

    def key(self, s, t):
        """Returns the canonical pair for two distinct states.

        Raises:
            ValueError: If either state is not a state of the automaton.
        """
        positions = self.positions
        for state in (s, t):
            if state not in positions:
                raise ValueError(f"{state!r} is not a state of the automaton")
        if positions[s] < positions[t]:
            return s, t
        return t, s

    def is_marked(self, s, t):
        """
        Returns True if the states ``s`` and ``t`` are known to be
        distinguishable. A state is never distinguishable from itself.
        """
        pair = self.key(s, t)
        if s == t:
            return False
        return pair in self.marked

    def _mark(self, pair):
        self.marked.add(pair)
        if self.trace is not None:
            self.trace(PAIR_MARKED, (pair, self.passes))

    def _successors_differ(self, s, t, label):
        dfa = self.dfa
        s2 = dfa.next_state(s, label)
        t2 = dfa.next_state(t, label)

        if s2 is None or t2 is None:
            if not self.partial:
                missing = s if s2 is None else t
                raise IncompleteAutomatonError(
                    f"No transition from {missing!r} on {label!r}"
                )
            if s2 is None and t2 is None:
                return False
            defined = t2 if s2 is None else s2
            return defined in self.live_states

        if dfa.is_final(s2) != dfa.is_final(t2):
            return True
        return self.is_marked(s2, t2)

    def fill(self):
        """
        Runs the table-filling algorithm until no pair changes in a full pass.
        Filling again starts over from an empty table.

        Returns:
            DistinguishabilityTable: This table, for chaining.

        Raises:
            IncompleteAutomatonError: If the table is not partial and a pair
                of states reaches an undefined transition.
        """
        dfa = self.dfa
        labels = ordered(dfa.alphabet)
        self.marked = set()
        self.passes = 0

        for s, t in self.pairs:
            if dfa.is_final(s) != dfa.is_final(t):
                self._mark((s, t))

        changed = True
        while changed:
            changed = False
            self.passes += 1
            for pair in self.pairs:
                if pair in self.marked:
                    continue
                s, t = pair
                if any(self._successors_differ(s, t, label) for label in labels):
                    self._mark(pair)
                    changed = True

        logger.debug(
            "Table filled after {} passes: {} of {} pairs distinguishable",
            self.passes,
            len(self.marked),
            len(self.pairs),
        )
        if self.trace is not None:
            self.trace(FIXPOINT_REACHED, self.passes)
        return self

    def unmarked(self):
        """Returns the pairs that were never marked, in pair order."""
        return [pair for pair in self.pairs if pair not in self.marked]

    def classes(self):
        """
        Groups the states into equivalence classes.

        Two states end up in the same class when they are connected through
        unmarked pairs. Classes are returned as frozensets, ordered by their
        first member in :attr:`order`; states equivalent to no other state
        form singleton classes.
        """
        parent = {state: state for state in self.order}

        def find(x):
            while parent[x] != x:
                parent[x] = parent[parent[x]]
                x = parent[x]
            return x

        for s, t in self.unmarked():
            rs, rt = find(s), find(t)
            if rs != rt:
                parent[rt] = rs

        groups = {}
        for state in self.order:
            groups.setdefault(find(state), []).append(state)
        return [frozenset(group) for group in groups.values()]


def equivalence_classes(dfa, partial=False, trace=None):
    """
    Returns the Myhill-Nerode equivalence classes of the states of ``dfa``.

    Args:
        dfa (DFA): The automaton. It must be total unless ``partial`` is True.
        partial (bool, optional): Allow undefined transitions. Defaults to
            False.
        trace (callable, optional): A ``trace(event, data)`` hook.

    Returns:
        list: A list of frozensets covering every state of the DFA.
    """
    return DistinguishabilityTable(dfa, partial=partial, trace=trace).fill().classes()


def distinguishable(dfa, s, t, partial=False):
    """Returns True if some word leads exactly one of ``s`` and ``t`` to a
    final state.

    Raises:
        ValueError: If ``s`` or ``t`` is not a state of ``dfa``.
    """
    table = DistinguishabilityTable(dfa, partial=partial)
    table.key(s, t)
    return table.fill().is_marked(s, t)
