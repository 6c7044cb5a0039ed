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
Reads automata from their textual description.

The description is line oriented::

    q0
    q2
    q0 q1 : 0
    q1 q2 : 1

The first line holds the start state (or, for an NFA, the start states
separated by whitespace), the second line holds the final states separated by
whitespace (it may be empty), and every following line is a transition
``<from> <to> : <letter>``.

The letter is everything after the first colon, stripped, so it may itself
contain a colon. Two further rules apply:

* A transition with nothing after the colon is rejected with
  :class:`MalformedInput`, since words read from whitespace-separated input
  never contain an empty letter.
* Blank transition lines, such as a trailing empty line, are skipped rather
  than reported as a missing colon.
"""

from loguru import logger

from nerode.automata.fsa import DFA, NFA


class MalformedInput(Exception):
    """
    Raised when an automaton description does not have the expected shape.

    Attributes:
        message (str): What is wrong with the input.
        lineno (int): The 1-based line number of the offending line, or None
            if the problem is not tied to one line.
    """

    def __init__(self, message, lineno=None):
        self.message = message
        self.lineno = lineno
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


def parse_transition(line, lineno=None):
    """
    Parses a ``<from> <to> : <letter>`` line.

    The part before the first colon must split into exactly two states. The
    rest of the line, stripped, is the letter.

    Returns:
        tuple: A ``(src, dest, label)`` triple.

    Raises:
        MalformedInput: If the line doesn't have this shape.

    Example:
        >>> parse_transition("q0 q1 : 0")
        ('q0', 'q1', '0')
    """
    head, colon, label = line.partition(":")
    if not colon:
        raise MalformedInput("Missing ':' between the states and the letter", lineno)

    ends = head.split()
    if len(ends) != 2:
        raise MalformedInput(
            f"Expected 2 states before ':', found {len(ends)}", lineno
        )

    label = label.strip()
    if not label:
        raise MalformedInput("Missing letter after ':'", lineno)

    return ends[0], ends[1], label


def parse_description(text):
    """
    Splits an automaton description into its parts.

    Args:
        text (str): The description.

    Returns:
        tuple: ``(start_states, final_states, transitions)`` where the first
        two are lists of state names and the last is a list of
        ``(src, dest, label)`` triples.

    Raises:
        MalformedInput: If the description is malformed.
    """
    lines = text.splitlines()
    if len(lines) < 2:
        raise MalformedInput(
            "Not enough lines: expected the start state and the final states"
        )

    starts = lines[0].split()
    if not starts:
        raise MalformedInput("Missing start state", 1)
    finals = lines[1].split()

    transitions = []
    for lineno, line in enumerate(lines[2:], 3):
        if line.strip():
            transitions.append(parse_transition(line, lineno))

    logger.debug(
        "Parsed description: {} start, {} final, {} transitions",
        len(starts),
        len(finals),
        len(transitions),
    )
    return starts, finals, transitions


def parse_dfa(text):
    """Builds a :class:`DFA` from a description. The first line must name
    exactly one start state."""
    starts, finals, transitions = parse_description(text)
    if len(starts) != 1:
        raise MalformedInput(
            f"A DFA has exactly one start state, found {len(starts)}", 1
        )
    return DFA.from_transitions(starts[0], finals, transitions)


def parse_nfa(text):
    """Builds an :class:`NFA` from a description."""
    starts, finals, transitions = parse_description(text)
    return NFA.from_transitions(starts, finals, transitions)


def read_dfa(path):
    """Reads a :class:`DFA` from a description file."""
    with open(path, encoding="utf-8") as f:
        return parse_dfa(f.read())


def read_nfa(path):
    """Reads an :class:`NFA` from a description file."""
    with open(path, encoding="utf-8") as f:
        return parse_nfa(f.read())
