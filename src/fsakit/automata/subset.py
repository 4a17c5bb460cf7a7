# Copyright 2024 The fsakit contributors. All rights reserved.
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
# THIS SOFTWARE IS PROVIDED BY THE FSAKIT CONTRIBUTORS ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL THE FSAKIT CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of the fsakit contributors.


import itertools
from collections import deque

from loguru import logger

from fsakit.automata.fsa import DFA
from fsakit.util import now, strings_upto

# Subset construction


def determinize(nfa, prefix="q"):
    """
    Converts an NFA to an equivalent DFA using breadth-first subset
    construction.

    Each DFA state stands for a set of NFA states (a "meta-state"). Meta-states
    are frozensets, so two subsets with the same members are the same DFA state
    regardless of the order in which their members were discovered.

    Starting from the epsilon closure of the NFA's start state, every
    meta-state taken from the FIFO work queue is expanded on each alphabet
    symbol with :meth:`NFA.move` (move, then close over epsilon transitions).
    Non-empty results become transitions; results not seen before are queued.
    Only meta-states reachable from the start are created, and each one is
    expanded exactly once.

    Once the queue is empty, meta-states are named ``prefix + n`` in the order
    they were discovered, so the start state is always ``prefix + "0"``.

    Args:
        nfa (NFA): The automaton to convert. It is not modified.
        prefix (str, optional): The prefix for the generated state names.
            Defaults to "q".

    Returns:
        DFA: A new DFA with the NFA's alphabet, accepting exactly the strings
        the NFA accepts. The DFA is partial: a symbol that leads nowhere from a
        meta-state has no transition.

    Example:
        >>> nfa = NFA(
        ...     {"q0", "q1", "q2"},
        ...     "ab",
        ...     {("q0", "a"): {"q0", "q1"}, ("q1", "b"): {"q2"}, ("q2", EPSILON): {"q0"}},
        ...     "q0",
        ...     {"q2"},
        ... )
        >>> dfa = determinize(nfa)
        >>> dfa.accepts("ab"), dfa.accepts("aa")
        (True, False)
    """
    t = now()

    start = nfa.epsilon_closure_set((nfa.initial,))
    # Maps each discovered meta-state to its discovery number
    seen = {start: 0}
    frontier = deque([start])
    moves = {}
    finals = set()

    while frontier:
        current = frontier.popleft()
        if nfa.is_final(current):
            finals.add(current)
        for label in nfa.ordered_alphabet:
            new_state = nfa.move(current, label)
            if not new_state:
                continue
            if new_state not in seen:
                seen[new_state] = len(seen)
                frontier.append(new_state)
            moves[current, label] = new_state

    c = itertools.count()
    names = {metastate: f"{prefix}{next(c)}" for metastate in seen}

    transitions = {
        (names[src], label): names[dest] for (src, label), dest in moves.items()
    }
    dfa = DFA(
        names.values(),
        nfa.alphabet,
        transitions,
        names[start],
        [names[metastate] for metastate in finals],
    )

    logger.debug(
        "Determinized NFA with {} states into DFA with {} states ({} transitions) in {:0.4f} s",
        len(nfa),
        len(dfa),
        len(transitions),
        now() - t,
    )
    return dfa


# Useful functions


def renumber_dfa(dfa, base=0, prefix="q"):
    """
    Renames the states of a DFA in breadth-first order from the start state.

    Outgoing edges are followed in :attr:`FSA.ordered_alphabet` order, so the
    result depends only on the DFA's structure and not on its state names.
    Two DFAs that are isomorphic (identical up to renaming of their reachable
    states) renumber to equal DFAs. Unreachable states, and transitions on
    labels outside the alphabet, are dropped.

    Args:
        dfa (DFA): The DFA to renumber.
        base (int, optional): The first number to assign. Defaults to 0.
        prefix (str, optional): The prefix for the new names. Defaults to "q".

    Returns:
        DFA: The renumbered DFA.

    Example:
        >>> dfa = DFA({"x", "y"}, "a", {("x", "a"): "y"}, "x", {"y"})
        >>> renumber_dfa(dfa).transition_function
        {('q0', 'a'): 'q1'}
    """
    c = itertools.count(base)
    mapping = {}

    def remap(state):
        if state in mapping:
            newname = mapping[state]
        else:
            newname = f"{prefix}{next(c)}"
            mapping[state] = newname
        return newname

    remap(dfa.initial)
    frontier = deque([dfa.initial])
    transitions = {}
    while frontier:
        src = frontier.popleft()
        for label in dfa.ordered_alphabet:
            for dest in dfa.transition(src, label):
                if dest not in mapping:
                    frontier.append(dest)
                transitions[remap(src), label] = remap(dest)

    finals = [mapping[state] for state in dfa.final_states if state in mapping]
    return DFA(mapping.values(), dfa.alphabet, transitions, mapping[dfa.initial], finals)


def find_counterexample(fsa1, fsa2, maxlen):
    """
    Searches for a string on which two automata disagree.

    Strings over the union of both alphabets are tried shortest first, up to
    ``maxlen`` symbols, including the empty string.

    Args:
        fsa1 (FSA): The first automaton (DFA or NFA).
        fsa2 (FSA): The second automaton (DFA or NFA).
        maxlen (int): The maximum string length to try.

    Returns:
        tuple: The first distinguishing string as a tuple of symbols, or None
        if the automata agree on every string tried.
    """
    for string in strings_upto(fsa1.alphabet | fsa2.alphabet, maxlen):
        if fsa1.accepts(string) != fsa2.accepts(string):
            return string
    return None


def equivalent(fsa1, fsa2, maxlen):
    """Returns True if the two automata agree on every string of at most
    ``maxlen`` symbols.
    """
    return find_counterexample(fsa1, fsa2, maxlen) is None
