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


"""
Passive learning from labelled samples.

Only the prefix-tree acceptor is provided: a DFA shaped like a trie that
accepts exactly the positive example strings and generalizes nothing.
"""

import itertools

from loguru import logger

from fsakit.automata.fsa import DFA


class SampleConflictError(ValueError):
    """Raised when a string is both a positive and a negative example.

    Attributes:
        conflicts (list): The conflicting strings, sorted.
    """

    def __init__(self, conflicts):
        self.conflicts = sorted(conflicts)
        super().__init__(
            f"Negative samples accepted by the prefix tree: {self.conflicts!r}"
        )


class Sample:
    """
    A set of positive and a set of negative example strings.

    Attributes:
        positive (frozenset): Strings that must be accepted.
        negative (frozenset): Strings that must be rejected.
    """

    def __init__(self, positive=(), negative=()):
        self.positive = frozenset(positive)
        self.negative = frozenset(negative)

    def __repr__(self):
        return "%s(positive=%r, negative=%r)" % (
            type(self).__name__,
            sorted(self.positive),
            sorted(self.negative),
        )

    def __eq__(self, other):
        if not isinstance(other, Sample):
            return NotImplemented
        return self.positive == other.positive and self.negative == other.negative

    def __hash__(self):
        return hash((self.positive, self.negative))


def build_pta(sample, prefix="q"):
    """
    Builds the prefix-tree acceptor (PTA) of a sample.

    Every distinct prefix of a positive string gets its own state, so the
    states form a tree rooted at the start state ``prefix + "0"``. The state
    reached at the end of each positive string is accepting; the empty string
    makes the start state accepting. The alphabet is the set of characters
    used by the positive strings. Positive strings are inserted in sorted
    order, so state names are reproducible.

    The negative strings are checked against the finished tree. Because the
    PTA accepts exactly the positive strings, a negative string is accepted
    only if it is also a positive example, which makes the sample
    contradictory.

    Args:
        sample (Sample): The labelled examples.
        prefix (str, optional): The prefix for state names. Defaults to "q".

    Returns:
        DFA: The prefix-tree acceptor.

    Raises:
        SampleConflictError: If a negative string is accepted.

    Example:
        >>> dfa = build_pta(Sample({"ab", "ac"}, {"a"}))
        >>> sorted(dfa.generate_all(3))
        ['ab', 'ac']
    """
    c = itertools.count(1)
    start = f"{prefix}0"
    states = {start}
    alphabet = set()
    transitions = {}
    finals = set()

    for string in sorted(sample.positive):
        state = start
        for label in string:
            alphabet.add(label)
            key = (state, label)
            if key not in transitions:
                newstate = f"{prefix}{next(c)}"
                states.add(newstate)
                transitions[key] = newstate
            state = transitions[key]
        finals.add(state)

    dfa = DFA(states, alphabet, transitions, start, finals)

    conflicts = [string for string in sample.negative if dfa.accepts(string)]
    if conflicts:
        raise SampleConflictError(conflicts)

    logger.debug(
        "Built prefix tree with {} states from {} positive and {} negative samples",
        len(dfa),
        len(sample.positive),
        len(sample.negative),
    )
    return dfa

