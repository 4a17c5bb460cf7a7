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
Deterministic and non-deterministic finite state automata.

Both variants are immutable once constructed: the state set, alphabet and
accept states are frozensets, and the transition tables are private copies
of the mappings passed to the constructor. Every query (``accepts``,
``transition``, ``epsilon_closure``...) is a pure function of the automaton
and its arguments.
"""

import sys

from cached_property import cached_property
from loguru import logger

# Marker constants


class Marker:
    """
    Represents a marker object.

    Markers are unique, named sentinels used as special transition labels.
    They compare by identity, so a marker can never collide with an ordinary
    alphabet symbol.

    Attributes:
        name (str): The name of the marker.

    Example:
        >>> marker = Marker("start")
        >>> marker.name
        'start'
        >>> repr(marker)
        '<start>'
    """

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f"<{self.name}>"


EPSILON = Marker("EPSILON")


class InvalidAutomatonError(ValueError):
    """Raised when an automaton is constructed from inconsistent parts, for
    example a start state or transition target missing from the state set.
    """


# Base class


class FSA:
    """
    Finite State Automaton (FSA) interface.

    This class defines the capabilities every automaton variant supports, so
    that code which only asks "is this string in the language" can work with
    either a :class:`DFA` or an :class:`NFA`. It carries no state of its own;
    each variant owns its fields.

    Subclasses provide these attributes:
        states (frozenset): All declared states.
        alphabet (frozenset): The input symbols.
        initial (object): The start state.
        final_states (frozenset): The accepting states.

    Methods:
        start_state(): Returns the start state.
        is_accepting(state): Checks if a single state is accepting.
        transition(state, symbol): Returns the frozenset of target states.
        accepts(string): Checks if a string is in the automaton's language.
        triples(): Generates all (source, label, destination) triples.
        to_dfa(): Returns an equivalent DFA.
    """

    def __len__(self):
        """
        Returns the number of declared states in the automaton.

        :return: The number of states.
        :rtype: int
        """
        return len(self.states)

    def __contains__(self, string):
        return self.accepts(string)

    def __repr__(self):
        return "<%s %d states, %d symbols, start=%r>" % (
            type(self).__name__,
            len(self.states),
            len(self.alphabet),
            self.initial,
        )

    @cached_property
    def ordered_alphabet(self):
        """
        The alphabet as a tuple in a fixed order.

        Symbols are sorted by their ``repr`` so that mixed symbol types still
        have a stable order. Algorithms that walk the alphabet use this order
        to produce reproducible results.

        Returns:
            tuple: The sorted alphabet symbols.
        """
        return tuple(sorted(self.alphabet, key=repr))

    def all_labels(self):
        """
        Returns a set of all labels used by at least one transition.

        Unlike :attr:`alphabet`, this only includes symbols that actually
        appear on an edge (and, for an NFA, may include :data:`EPSILON`).

        Returns:
            set: A set of all labels used in the automaton.

        Example:
            >>> dfa = DFA({"A", "B"}, "ab", {("A", "a"): "B"}, "A", {"B"})
            >>> dfa.all_labels()
            {'a'}
        """
        return {label for _, label, _ in self.triples()}

    def start_state(self):
        """
        Returns the start state of the automaton.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def start(self):
        return self.start_state()

    def is_accepting(self, state):
        """
        Checks if a given state is an accepting state.

        Args:
            state (object): The state to check.

        Returns:
            bool: True if the state is accepting, False otherwise.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def transition(self, state, symbol):
        """
        Returns the set of states reached from ``state`` on ``symbol``.

        A DFA returns a set with at most one element. An empty set means the
        move is undefined.

        Args:
            state (object): The source state.
            symbol (object): The input symbol.

        Returns:
            frozenset: The destination states.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def accepts(self, string, debug=False):
        """
        Checks if a given string is accepted by the automaton.

        Args:
            string (iterable): The input symbols, for example a ``str``.
            debug (bool, optional): Whether to log every step at DEBUG level.
                Defaults to False.

        Returns:
            bool: True if the string is accepted, False otherwise.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def triples(self):
        """
        Generates all (source state, label, destination state) triples.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def to_dfa(self):
        """
        Converts the automaton to a deterministic finite automaton (DFA).

        Returns:
            DFA: A DFA accepting the same language.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError


def _is_state(state, states):
    # Unhashable values (e.g. a set given as a DFA target) are never states
    try:
        return state in states
    except TypeError:
        return False


def _validate(fsa, allow_epsilon):
    kind = type(fsa).__name__
    states = fsa.states

    if EPSILON in fsa.alphabet:
        raise InvalidAutomatonError(f"{kind} alphabet cannot contain EPSILON")
    if not _is_state(fsa.initial, states):
        raise InvalidAutomatonError(
            f"{kind} start state {fsa.initial!r} is not a declared state"
        )
    stray = fsa.final_states - states
    if stray:
        raise InvalidAutomatonError(
            f"{kind} accept states {sorted(stray, key=repr)!r} are not declared states"
        )

    for src, label, dest in fsa.triples():
        if src not in states:
            raise InvalidAutomatonError(
                f"{kind} transition source {src!r} is not a declared state"
            )
        if label not in fsa.alphabet and not (allow_epsilon and label is EPSILON):
            raise InvalidAutomatonError(
                f"{kind} transition label {label!r} from {src!r} is not in the alphabet"
            )
        if not _is_state(dest, states):
            raise InvalidAutomatonError(
                f"{kind} transition target {dest!r} ({src!r} on {label!r}) "
                f"is not a declared state"
            )


# Implementations


class NFA(FSA):
    """
    NFA (Non-Deterministic Finite Automaton) class.

    A state may have zero, one or many destinations for each input symbol, as
    well as transitions labelled :data:`EPSILON` which are taken without
    consuming input.

    Attributes:
        states (frozenset): All declared states.
        alphabet (frozenset): The input symbols. Never contains EPSILON.
        initial (object): The start state.
        final_states (frozenset): The accepting states.

    Methods:
        epsilon_closure(state): The states reachable through epsilon moves.
        epsilon_closure_set(states): The union of the closures of states.
        transition_nfa(state, label): Direct relation lookup.
        move(states, label): Move on a symbol, then close over epsilon moves.
        accepts(string): Simulates the NFA over sets of active states.
        to_dfa(): Converts the NFA to a DFA by subset construction.
    """

    def __init__(self, states, alphabet, transitions, start, accept, validate=True):
        """
        Initializes an NFA.

        Args:
            states (iterable): The declared states.
            alphabet (iterable): The input symbols.
            transitions (dict): Maps ``(state, symbol)`` pairs, where symbol
                may be :data:`EPSILON`, to an iterable of destination states.
                Empty destination sets are dropped.
            start (object): The start state.
            accept (iterable): The accepting states.
            validate (bool, optional): Check that every referenced state is
                declared and every label is in the alphabet. Defaults to True.

        Raises:
            InvalidAutomatonError: If ``validate`` is True and the parts are
                inconsistent.

        Example:
            >>> nfa = NFA(
            ...     {"q0", "q1"},
            ...     {"a"},
            ...     {("q0", "a"): {"q0", "q1"}},
            ...     "q0",
            ...     {"q1"},
            ... )
            >>> nfa.accepts("aa")
            True
        """
        self.states = frozenset(states)
        self.alphabet = frozenset(alphabet)
        self.initial = start
        self.final_states = frozenset(accept)

        self._transitions = {}
        for (src, label), dests in dict(transitions).items():
            dests = frozenset(dests)
            if dests:
                self._transitions.setdefault(src, {})[label] = dests

        if validate:
            _validate(self, allow_epsilon=True)

    def __eq__(self, other):
        if not isinstance(other, NFA):
            return NotImplemented
        return (
            self.initial == other.initial
            and self.states == other.states
            and self.alphabet == other.alphabet
            and self.final_states == other.final_states
            and self._transitions == other._transitions
        )

    @property
    def transition_function(self):
        """
        Returns a copy of the transition relation.

        Returns:
            dict: Maps ``(state, label)`` to a frozenset of destinations.
        """
        return {
            (src, label): dests
            for src, trans in self._transitions.items()
            for label, dests in trans.items()
        }

    def dump(self, stream=sys.stdout):
        """
        Prints a textual representation of the NFA to the specified stream.

        The start state is marked with ``@`` and accepting states with ``||``.

        Args:
            stream (file): The stream to print to. Defaults to sys.stdout.
        """
        for src in sorted(self.states, key=repr):
            beg = "@" if src == self.initial else " "
            if self.is_accepting(src):
                print(beg, src, "||", file=stream)
            else:
                print(beg, src, file=stream)
            xs = self._transitions.get(src, {})
            for label in sorted(xs, key=repr):
                dests = sorted(xs[label], key=repr)
                print("   ", label, "->", ", ".join(map(str, dests)), file=stream)

    def start_state(self):
        return self.initial

    def is_accepting(self, state):
        return state in self.final_states

    def is_final(self, states):
        """
        Checks if any of the given states is an accepting state.

        Args:
            states (set): The set of states to check.

        Returns:
            bool: True if any of the states is accepting, False otherwise.
        """
        return not self.final_states.isdisjoint(states)

    def triples(self):
        """
        Generates all (source state, label, destination state) triples in the
        NFA, one per destination.

        Yields:
            tuple: A triple (source state, label, destination state).
        """
        for src, trans in self._transitions.items():
            for label, dests in trans.items():
                for dest in dests:
                    yield src, label, dest

    def get_labels(self, states):
        """
        Returns the set of labels on transitions leaving any of the given
        states, including :data:`EPSILON` if present.

        Args:
            states (set): The set of states.

        Returns:
            set: The set of labels.
        """
        transitions = self._transitions
        labels = set()
        for state in states:
            if state in transitions:
                labels.update(transitions[state])
        return labels

    def transition_nfa(self, state, label):
        """
        Returns the destinations of ``state`` on ``label``.

        Args:
            state (object): The source state.
            label (object): An alphabet symbol or :data:`EPSILON`.

        Returns:
            frozenset: The destination states. Empty if the move is undefined.
        """
        return self._transitions.get(state, {}).get(label, frozenset())

    def transition(self, state, symbol):
        return self.transition_nfa(state, symbol)

    def epsilon_closure(self, state):
        """
        Returns the set of states reachable from ``state`` using zero or more
        epsilon transitions. The result always includes ``state`` itself.

        Each state is expanded at most once, so cycles of epsilon transitions
        terminate.

        Args:
            state (object): The state to close over.

        Returns:
            frozenset: The epsilon closure of the state.

        Example:
            >>> nfa = NFA({0, 1, 2}, "", {(0, EPSILON): {1}, (1, EPSILON): {2}}, 0, ())
            >>> sorted(nfa.epsilon_closure(0))
            [0, 1, 2]
        """
        transitions = self._transitions
        closure = {state}
        stack = [state]
        while stack:
            src = stack.pop()
            if src in transitions and EPSILON in transitions[src]:
                for dest in transitions[src][EPSILON]:
                    if dest not in closure:
                        closure.add(dest)
                        stack.append(dest)
        return frozenset(closure)

    def epsilon_closure_set(self, states):
        """
        Expands the given set of states by following epsilon transitions.

        Closing an already closed set returns the same set.

        Args:
            states (iterable): The states to expand.

        Returns:
            frozenset: The union of the epsilon closures of the states.
        """
        transitions = self._transitions
        closure = set(states)
        frontier = set(closure)
        while frontier:
            state = frontier.pop()
            if state in transitions and EPSILON in transitions[state]:
                new_states = transitions[state][EPSILON].difference(closure)
                frontier.update(new_states)
                closure.update(new_states)
        return frozenset(closure)

    def move(self, states, label):
        """
        Returns the set of states that can be reached from the given states
        by reading ``label``, closed over epsilon transitions.

        Args:
            states (iterable): The set of states to start from.
            label (object): The input symbol.

        Returns:
            frozenset: The reachable states. Empty if none of the states has
            a transition on ``label``.
        """
        dest_states = set()
        for state in states:
            dest_states.update(self.transition_nfa(state, label))
        return self.epsilon_closure_set(dest_states)

    def accepts(self, string, debug=False):
        """
        Checks if a given string is accepted by the NFA.

        The simulation tracks the set of active states, starting from the
        epsilon closure of the start state. The string is accepted if the
        final active set contains an accepting state. Once the active set is
        empty the string can only be rejected, so the loop stops early.

        Args:
            string (iterable): The input symbols.
            debug (bool, optional): Whether to log the active set after each
                symbol. Defaults to False.

        Returns:
            bool: True if the string is accepted, False otherwise.
        """
        active = self.epsilon_closure(self.initial)
        for label in string:
            # EPSILON is never an input symbol
            if label is EPSILON:
                return False
            active = self.move(active, label)
            if debug:
                logger.debug("{!r} -> {}", label, sorted(active, key=repr))
            if not active:
                return False
        return self.is_final(active)

    def to_dfa(self):
        """
        Converts the NFA to a DFA by subset construction.

        Returns:
            DFA: A new DFA accepting the same language. See
            :func:`fsakit.automata.subset.determinize`.
        """
        from fsakit.automata.subset import determinize

        return determinize(self)


class DFA(FSA):
    """
    Deterministic Finite Automaton (DFA) class.

    Each (state, symbol) pair has at most one destination. The transition
    function may be partial: a missing transition behaves like a move to an
    implicit trap state, and the input is rejected.

    Attributes:
        states (frozenset): All declared states.
        alphabet (frozenset): The input symbols.
        initial (object): The start state.
        final_states (frozenset): The accepting states.
    """

    def __init__(self, states, alphabet, transitions, start, accept, validate=True):
        """
        Initializes a DFA.

        Args:
            states (iterable): The declared states.
            alphabet (iterable): The input symbols.
            transitions (dict): Maps ``(state, symbol)`` pairs to a single
                destination state.
            start (object): The start state.
            accept (iterable): The accepting states.
            validate (bool, optional): Check that every referenced state is
                declared and every label is in the alphabet. Defaults to True.

        Raises:
            InvalidAutomatonError: If ``validate`` is True and the parts are
                inconsistent.
        """
        self.states = frozenset(states)
        self.alphabet = frozenset(alphabet)
        self.initial = start
        self.final_states = frozenset(accept)

        self._transitions = {}
        for (src, label), dest in dict(transitions).items():
            self._transitions.setdefault(src, {})[label] = dest

        if validate:
            _validate(self, allow_epsilon=False)

    def __eq__(self, other):
        if not isinstance(other, DFA):
            return NotImplemented
        return (
            self.initial == other.initial
            and self.states == other.states
            and self.alphabet == other.alphabet
            and self.final_states == other.final_states
            and self._transitions == other._transitions
        )

    @property
    def transition_function(self):
        """
        Returns a copy of the transition function.

        Returns:
            dict: Maps ``(state, symbol)`` to the destination state.
        """
        return {
            (src, label): dest
            for src, trans in self._transitions.items()
            for label, dest in trans.items()
        }

    def dump(self, stream=sys.stdout):
        """
        Prints a textual representation of the DFA to the specified stream.

        Args:
            stream (file-like object, optional): The stream to print the
                representation to. Defaults to sys.stdout.

        Example:
            >>> dfa = DFA({0, 1}, "a", {(0, "a"): 1}, 0, {1})
            >>> dfa.dump()
            @ 0
                a -> 1
              1 ||
        """
        for src in sorted(self.states, key=repr):
            beg = "@" if src == self.initial else " "
            if self.is_accepting(src):
                print(beg, src, "||", file=stream)
            else:
                print(beg, src, file=stream)
            xs = self._transitions.get(src, {})
            for label in sorted(xs, key=repr):
                print("   ", label, "->", xs[label], file=stream)

    def start_state(self):
        return self.initial

    def is_accepting(self, state):
        """
        Checks if the specified state is an accepting state of the DFA.

        Args:
            state (object): The state to check.

        Returns:
            bool: True if the state is accepting, False otherwise.

        Examples:
            >>> dfa = DFA({"q0", "q1"}, "", {}, "q0", {"q1"})
            >>> dfa.is_accepting("q1")
            True
            >>> dfa.is_accepting("q0")
            False
        """
        return state in self.final_states

    def triples(self):
        for src, trans in self._transitions.items():
            for label, dest in trans.items():
                yield src, label, dest

    def get_labels(self, state):
        """
        Returns an iterator of labels leaving the given state.

        Args:
            state (object): The source state.

        Returns:
            iterator: The labels. Empty if the state has no transitions.
        """
        return iter(self._transitions.get(state, ()))

    def transition_dfa(self, state, symbol):
        """
        Returns the destination of ``state`` on ``symbol``.

        Args:
            state (object): The current state.
            symbol (object): The input symbol.

        Returns:
            object: The next state, or None if the move is undefined.

        Example:
            >>> dfa = DFA({"A", "B"}, "ab", {("A", "a"): "B"}, "A", ())
            >>> dfa.transition_dfa("A", "a")
            'B'
            >>> dfa.transition_dfa("B", "b") is None
            True
        """
        return self._transitions.get(state, {}).get(symbol)

    def transition(self, state, symbol):
        trans = self._transitions.get(state, {})
        if symbol in trans:
            return frozenset((trans[symbol],))
        return frozenset()

    def accepts(self, string, debug=False):
        """
        Checks if a given string is accepted by the DFA.

        Starting from the start state, each symbol is looked up in the
        transition function. An undefined move rejects the string at once;
        no error is raised. A symbol outside the alphabet is indistinguishable
        from an undefined move and is rejected the same way.

        Args:
            string (iterable): The input symbols.
            debug (bool, optional): Whether to log every step at DEBUG level.
                Defaults to False.

        Returns:
            bool: True if the string is accepted, False otherwise.

        Examples:
            >>> dfa = DFA({"q0", "q1"}, "ab", {("q0", "a"): "q1", ("q1", "b"): "q0"}, "q0", {"q1"})
            >>> dfa.accepts("a")
            True
            >>> dfa.accepts("aa")
            False
        """
        transitions = self._transitions
        state = self.initial
        for label in string:
            trans = transitions.get(state)
            if trans is None or label not in trans:
                if debug:
                    logger.debug("{!r} -> {!r} -> (undefined)", state, label)
                return False
            if debug:
                logger.debug("{!r} -> {!r} -> {!r}", state, label, trans[label])
            state = trans[label]
        return self.is_accepting(state)

    def reachable_from(self, src, inclusive=True):
        """
        Returns the set of states that can be reached from the specified
        source state.

        Args:
            src (object): The source state.
            inclusive (bool, optional): Specifies whether the source state
                should be included in the result. Defaults to True.

        Returns:
            set: The set of reachable states.
        """
        transitions = self._transitions

        reached = set()
        if inclusive:
            reached.add(src)

        stack = [src]
        seen = set()
        while stack:
            src = stack.pop()
            seen.add(src)
            for dest in transitions.get(src, {}).values():
                reached.add(dest)
                if dest not in seen:
                    stack.append(dest)
        return reached

    def generate_all(self, maxlen, state=None, sofar=""):
        """
        Generates the strings of at most ``maxlen`` symbols accepted by the
        DFA, in lexicographic order of the labels.

        Labels are joined by string concatenation, so this is meant for
        automata over character symbols.

        Args:
            maxlen (int): The maximum length of the generated strings.
            state (object, optional): The state to start from. Defaults to
                the start state.
            sofar (str, optional): The prefix generated so far.

        Yields:
            str: The accepted strings.
        """
        state = self.initial if state is None else state
        if self.is_accepting(state):
            yield sofar
        if maxlen <= 0:
            return
        trans = self._transitions.get(state, {})
        for label in sorted(trans, key=repr):
            yield from self.generate_all(maxlen - 1, trans[label], sofar + label)

    def to_dfa(self):
        return self
