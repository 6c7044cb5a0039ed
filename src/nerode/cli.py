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
Command line interface: loads an automaton description, optionally transforms
it, and answers whether each line read from standard input is accepted.

Usage::

    nerode machine.txt
    nerode --nfa --determinize --minimize --dump machine.txt

Each input line is split on whitespace into letters and answered with
``true`` or ``false``. The loop stops at end of input or at a line reading
``exit``.
"""

import argparse
import sys
from functools import partial

from loguru import logger

from nerode import versionstring
from nerode.automata.fsa import concat_states
from nerode.automata.reader import MalformedInput, read_dfa, read_nfa

EXIT_WORD = "exit"
LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser():
    parser = argparse.ArgumentParser(
        prog="nerode",
        description="Simulate a finite automaton on words read from standard input.",
    )
    parser.add_argument("path", help="Automaton description file")
    parser.add_argument(
        "--nfa",
        action="store_true",
        help="Read the description as an NFA (several start states allowed)",
    )
    parser.add_argument(
        "--determinize",
        action="store_true",
        help="Convert an NFA to a DFA with the subset construction",
    )
    parser.add_argument(
        "--complete",
        metavar="TRAP",
        help="Send undefined transitions to the trap state TRAP",
    )
    parser.add_argument(
        "--minimize",
        action="store_true",
        help="Merge indistinguishable states",
    )
    parser.add_argument(
        "--separator",
        default="",
        help="Separator used when naming combined states (default: none)",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the automaton before reading words",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {versionstring()}"
    )
    return parser


def configure_logging(level):
    logger.remove()
    logger.add(sys.stderr, level=level, format="{level}: {message}")
    logger.enable("nerode")


def load_automaton(args):
    """
    Reads the automaton named on the command line and applies the requested
    transformations in order: determinize, complete, minimize.
    """
    combiner = partial(concat_states, sep=args.separator)

    if args.nfa:
        fsa = read_nfa(args.path)
        logger.info("Read NFA with {} states from {}", len(fsa), args.path)
        # Completion and minimization only apply to DFAs
        if args.determinize or args.complete is not None or args.minimize:
            fsa = fsa.to_dea(combiner)
            logger.info("Determinized: {} states", len(fsa))
    else:
        fsa = read_dfa(args.path)
        logger.info("Read DFA with {} states from {}", len(fsa), args.path)

    if args.complete is not None:
        fsa = fsa.completed(args.complete)
        logger.info("Completed with trap {!r}: {} states", args.complete, len(fsa))

    if args.minimize:
        if fsa.is_total():
            fsa = fsa.minimize(combiner)
        else:
            fsa = fsa.minimize_partial(combiner)
        logger.info("Minimized: {} states", len(fsa))

    return fsa


def accept_loop(fsa, lines, out):
    """
    Prints ``true`` or ``false`` for every line until ``exit`` or the end of
    ``lines``. Returns the number of words answered.
    """
    answered = 0
    for line in lines:
        word = line.strip()
        if word == EXIT_WORD:
            break
        print("true" if fsa.accepts_str(word) else "false", file=out)
        answered += 1
    return answered


def main(argv=None):
    """
    Runs the command line tool and returns its exit status: 0 on success,
    1 when the automaton can't be read or transformed. Bad arguments make
    argparse raise ``SystemExit(2)``, and ``--version`` raises
    ``SystemExit(0)``.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        fsa = load_automaton(args)
    except MalformedInput as e:
        logger.error("{}: {}", args.path, e)
        return 1
    except OSError as e:
        logger.error("Can't read {}: {}", args.path, e)
        return 1
    except ValueError as e:
        logger.error("Can't transform {}: {}", args.path, e)
        return 1

    if args.dump:
        fsa.dump(sys.stdout)

    answered = accept_loop(fsa, sys.stdin, sys.stdout)
    logger.debug("Answered {} words", answered)
    return 0


if __name__ == "__main__":
    sys.exit(main())
