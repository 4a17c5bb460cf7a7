from io import StringIO

import pytest
from fsakit.automata import DFA, EPSILON, FSA, NFA, InvalidAutomatonError
from loguru import logger


def alternating_dfa():
    return DFA(
        {"q0", "q1"},
        {"a", "b"},
        {("q0", "a"): "q1", ("q1", "b"): "q0"},
        "q0",
        {"q1"},
    )


def looping_nfa():
    return NFA(
        {"q0", "q1", "q2"},
        {"a", "b"},
        {
            ("q0", "a"): {"q0", "q1"},
            ("q1", "b"): {"q2"},
            ("q2", EPSILON): {"q0"},
        },
        "q0",
        {"q2"},
    )


def epsilon_cycle_nfa():
    # Accepts a+ ; 0 and 1 are epsilon-connected both ways
    return NFA(
        {0, 1, 2},
        {"a"},
        {
            (0, EPSILON): {1},
            (1, EPSILON): {0},
            (1, "a"): {2},
            (2, EPSILON): {0},
        },
        0,
        {2},
    )


def test_dfa_accepts():
    dfa = alternating_dfa()
    # "ab" leads back to the non-accepting start state
    assert dfa.accepts("ab") is False
    assert dfa.accepts("a")
    assert dfa.accepts("aba")
    assert not dfa.accepts("")
    # No transition from q1 on "a"
    assert not dfa.accepts("aa")


def test_dfa_undefined_transition_rejects():
    dfa = alternating_dfa()
    assert dfa.transition_dfa("q1", "a") is None
    assert dfa.transition("q1", "a") == frozenset()
    assert not dfa.accepts("aab")


def test_dfa_symbol_outside_alphabet_rejects():
    dfa = alternating_dfa()
    assert "z" not in dfa.alphabet
    assert not dfa.accepts("az")
    assert not dfa.accepts(["a", None])


def test_dfa_transition_is_deterministic():
    dfa = alternating_dfa()
    for state in dfa.states:
        for symbol in dfa.alphabet:
            assert dfa.transition_dfa(state, symbol) == dfa.transition_dfa(state, symbol)
            assert len(dfa.transition(state, symbol)) <= 1
    assert dfa.transition("q0", "a") == frozenset(["q1"])


def test_dfa_contains():
    dfa = alternating_dfa()
    assert "aba" in dfa
    assert "abb" not in dfa


def test_dfa_basics():
    dfa = alternating_dfa()
    assert len(dfa) == 2
    assert dfa.start() == "q0"
    assert dfa.start_state() == "q0"
    assert dfa.is_accepting("q1")
    assert not dfa.is_accepting("q0")
    assert dfa.all_labels() == {"a", "b"}
    assert sorted(dfa.get_labels("q0")) == ["a"]
    assert list(dfa.get_labels("nowhere")) == []
    assert dfa.to_dfa() is dfa


def test_dfa_immutable_parts():
    dfa = alternating_dfa()
    assert isinstance(dfa.states, frozenset)
    assert isinstance(dfa.alphabet, frozenset)
    assert isinstance(dfa.final_states, frozenset)

    table = dfa.transition_function
    assert table == {("q0", "a"): "q1", ("q1", "b"): "q0"}
    table[("q1", "a")] = "q1"
    assert dfa.transition_dfa("q1", "a") is None


def test_dfa_equality():
    assert alternating_dfa() == alternating_dfa()
    other = DFA({"q0", "q1"}, {"a", "b"}, {("q0", "a"): "q1"}, "q0", {"q1"})
    assert alternating_dfa() != other


def test_ordered_alphabet():
    dfa = DFA({"s"}, "cab", {}, "s", ())
    assert dfa.ordered_alphabet == ("a", "b", "c")


def test_reachable_from():
    dfa = DFA({0, 1, 2, 3}, "a", {(0, "a"): 1, (1, "a"): 2, (3, "a"): 0}, 0, {2})
    assert dfa.reachable_from(1) == {1, 2}
    assert dfa.reachable_from(1, inclusive=False) == {2}
    assert dfa.reachable_from(0) == {0, 1, 2}


def test_generate_all():
    dfa = alternating_dfa()
    assert list(dfa.generate_all(4)) == ["a", "aba"]
    assert list(dfa.generate_all(0)) == []


def test_generate_all_mixed_labels():
    # Tuple labels concatenate onto a tuple prefix; 1 and "a" are not orderable
    dfa = DFA({0, 1, 2}, {(1,), ("a",)}, {(0, (1,)): 1, (0, ("a",)): 2}, 0, {1, 2})
    assert list(dfa.generate_all(1, sofar=())) == [("a",), (1,)]


def test_dfa_dump():
    dfa = DFA({0, 1}, "a", {(0, "a"): 1}, 0, {1})
    out = StringIO()
    dfa.dump(out)
    assert out.getvalue() == "@ 0\n    a -> 1\n  1 ||\n"


def test_nfa_accepts():
    nfa = looping_nfa()
    assert nfa.accepts("ab")
    assert not nfa.accepts("aa")
    assert not nfa.accepts("")
    assert nfa.accepts("aab")
    assert nfa.accepts("abab")
    assert not nfa.accepts("b")
    assert "aaab" in nfa


def test_nfa_symbol_outside_alphabet_rejects():
    nfa = looping_nfa()
    assert not nfa.accepts("ax")


def test_nfa_epsilon_is_not_an_input_symbol():
    nfa = NFA({"s", "t"}, "a", {("s", EPSILON): {"t"}}, "s", {"t"})
    assert nfa.accepts("")
    assert not nfa.accepts([EPSILON])
    assert not nfa.accepts(["a", EPSILON])
    dfa = nfa.to_dfa()
    for string in ([EPSILON], ["a", EPSILON], [EPSILON, EPSILON]):
        assert nfa.accepts(string) == dfa.accepts(string)


def test_nfa_transition_lookup():
    nfa = looping_nfa()
    assert nfa.transition_nfa("q0", "a") == frozenset(["q0", "q1"])
    assert nfa.transition("q0", "a") == frozenset(["q0", "q1"])
    assert nfa.transition_nfa("q2", EPSILON) == frozenset(["q0"])
    assert nfa.transition_nfa("q0", "b") == frozenset()
    assert nfa.transition_nfa("missing", "a") == frozenset()


def test_nfa_empty_destinations_are_dropped():
    nfa = NFA({0, 1}, "ab", {(0, "a"): {1}, (0, "b"): set()}, 0, {1})
    assert nfa.get_labels({0}) == {"a"}
    assert nfa.transition_nfa(0, "b") == frozenset()


def test_epsilon_closure():
    nfa = looping_nfa()
    assert nfa.epsilon_closure("q2") == frozenset(["q2", "q0"])
    assert nfa.epsilon_closure("q1") == frozenset(["q1"])


def test_epsilon_closure_cycle_terminates():
    nfa = epsilon_cycle_nfa()
    assert nfa.epsilon_closure(0) == frozenset([0, 1])
    assert nfa.epsilon_closure(1) == frozenset([0, 1])
    assert nfa.epsilon_closure(2) == frozenset([0, 1, 2])


def test_epsilon_closure_contains_state():
    for nfa in (looping_nfa(), epsilon_cycle_nfa()):
        for state in nfa.states:
            assert state in nfa.epsilon_closure(state)


def test_epsilon_closure_idempotent():
    for nfa in (looping_nfa(), epsilon_cycle_nfa()):
        for state in nfa.states:
            closure = nfa.epsilon_closure(state)
            assert nfa.epsilon_closure_set(closure) == closure
        everything = nfa.epsilon_closure_set(nfa.states)
        assert nfa.epsilon_closure_set(everything) == everything


def test_epsilon_closure_set_is_union():
    nfa = epsilon_cycle_nfa()
    assert nfa.epsilon_closure_set({1, 2}) == nfa.epsilon_closure(1) | nfa.epsilon_closure(2)
    assert nfa.epsilon_closure_set(()) == frozenset()


def test_move():
    nfa = looping_nfa()
    assert nfa.move({"q0", "q1"}, "b") == frozenset(["q2", "q0"])
    assert nfa.move({"q0"}, "b") == frozenset()


def test_epsilon_cycle_accepts():
    nfa = epsilon_cycle_nfa()
    assert not nfa.accepts("")
    assert nfa.accepts("a")
    assert nfa.accepts("aaaa")


def test_nfa_basics():
    nfa = looping_nfa()
    assert len(nfa) == 3
    assert nfa.start() == "q0"
    assert nfa.is_accepting("q2")
    assert nfa.is_final({"q0", "q2"})
    assert not nfa.is_final({"q0", "q1"})
    assert nfa.all_labels() == {"a", "b", EPSILON}


def test_nfa_triples():
    nfa = looping_nfa()
    assert set(nfa.triples()) == {
        ("q0", "a", "q0"),
        ("q0", "a", "q1"),
        ("q1", "b", "q2"),
        ("q2", EPSILON, "q0"),
    }


def test_nfa_transition_function_copy():
    nfa = looping_nfa()
    table = nfa.transition_function
    assert table[("q2", EPSILON)] == frozenset(["q0"])
    del table[("q2", EPSILON)]
    assert nfa.transition_nfa("q2", EPSILON) == frozenset(["q0"])
    assert nfa == looping_nfa()


def test_nfa_dump():
    nfa = NFA({0, 1}, "a", {(0, "a"): {0, 1}}, 0, {1})
    out = StringIO()
    nfa.dump(out)
    assert out.getvalue() == "@ 0\n    a -> 0, 1\n  1 ||\n"


def test_empty_alphabet_nfa():
    nfa = NFA({"s"}, (), {}, "s", {"s"})
    assert nfa.accepts("")
    assert not nfa.accepts("a")


def test_start_not_declared():
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {}, "q9", ())
    with pytest.raises(InvalidAutomatonError):
        NFA({"q0"}, "a", {}, "q9", ())


def test_accept_not_declared():
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {}, "q0", {"q1"})


def test_transition_endpoints_not_declared():
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {("q0", "a"): "q1"}, "q0", ())
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {("q1", "a"): "q0"}, "q0", ())
    with pytest.raises(InvalidAutomatonError):
        NFA({"q0"}, "a", {("q0", "a"): {"q0", "q1"}}, "q0", ())


def test_transition_label_not_in_alphabet():
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {("q0", "b"): "q0"}, "q0", ())
    with pytest.raises(InvalidAutomatonError):
        NFA({"q0"}, "a", {("q0", "b"): {"q0"}}, "q0", ())


def test_epsilon_only_allowed_in_nfa():
    NFA({"q0"}, "a", {("q0", EPSILON): {"q0"}}, "q0", ())
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0"}, "a", {("q0", EPSILON): "q0"}, "q0", ())
    with pytest.raises(InvalidAutomatonError):
        NFA({"q0"}, {"a", EPSILON}, {}, "q0", ())


def test_malformed_destinations():
    # A set is not a single DFA state
    with pytest.raises(InvalidAutomatonError):
        DFA({"q0", "q1"}, "a", {("q0", "a"): {"q1"}}, "q0", ())
    # A bare string is iterated into characters, which are not states
    with pytest.raises(InvalidAutomatonError):
        NFA({"q0", "q1"}, "a", {("q0", "a"): "q1"}, "q0", ())


def test_validation_can_be_disabled():
    dfa = DFA({"q0"}, "a", {("q0", "a"): "q1"}, "q0", {"q1"}, validate=False)
    assert dfa.accepts("a")
    assert not dfa.accepts("aa")

    nfa = NFA((), "a", {("s", "a"): {"t"}}, "s", {"t"}, validate=False)
    assert nfa.accepts("a")


def test_base_class_is_abstract():
    fsa = FSA()
    with pytest.raises(NotImplementedError):
        fsa.accepts("a")
    with pytest.raises(NotImplementedError):
        fsa.start_state()
    with pytest.raises(NotImplementedError):
        fsa.is_accepting("q0")
    with pytest.raises(NotImplementedError):
        fsa.transition("q0", "a")
    with pytest.raises(NotImplementedError):
        fsa.to_dfa()


def test_shared_interface():
    def run(fsa, string):
        return fsa.accepts(string)

    for fsa in (alternating_dfa(), looping_nfa()):
        assert isinstance(fsa, FSA)
        assert fsa.start_state() == "q0"
        assert run(fsa, "ab") == ("ab" in fsa)


def test_debug_trace_is_logged():
    messages = []
    logger.enable("fsakit")
    handler_id = logger.add(messages.append, level="DEBUG", format="{message}")
    try:
        assert not alternating_dfa().accepts("aa", debug=True)
        assert looping_nfa().accepts("ab", debug=True)
    finally:
        logger.remove(handler_id)
        logger.disable("fsakit")

    assert any("(undefined)" in m for m in messages)
    assert any("'b' -> ['q0', 'q2']" in m for m in messages)
