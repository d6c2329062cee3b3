import itertools

import pytest
from loguru import logger
from nfa2dfa.automata.closure import build_epsilon_closure_index
from nfa2dfa.automata.fsa import DFA, EPSILON, NFA, nfa_from_rules
from nfa2dfa.automata.subset import SubsetConstructor, to_deterministic_automaton
from nfa2dfa.errors import IllegalArgumentError, UninitializedError


def aa_bb_star():
    # (aa|bb)*
    return nfa_from_rules(
        ["X"],
        ["Y"],
        [
            ("X", EPSILON, "1"),
            ("1", "a", "3"),
            ("3", "a", "2"),
            ("1", "b", "4"),
            ("4", "b", "2"),
            ("2", EPSILON, "1"),
            ("2", EPSILON, "Y"),
            ("1", EPSILON, "Y"),
        ],
    )


def contains_aa_or_bb():
    # (a|b)*(aa|bb)(a|b)*
    return nfa_from_rules(
        ["X"],
        ["Y"],
        [
            ("X", EPSILON, "5"),
            ("5", "a", "5"),
            ("5", "b", "5"),
            ("5", EPSILON, "1"),
            ("1", "a", "3"),
            ("3", "a", "2"),
            ("1", "b", "4"),
            ("4", "b", "2"),
            ("2", EPSILON, "6"),
            ("6", "a", "6"),
            ("6", "b", "6"),
            ("6", EPSILON, "Y"),
        ],
    )


def run(dfa, string):
    state = dfa.initial
    for symbol in string:
        state = dfa.next_state(state, symbol)
        if state is None:
            return None
    return state


def accepts(dfa, string):
    state = run(dfa, string)
    return state is not None and dfa.is_accepting(state)


def strings(alphabet, maxlen):
    for n in range(maxlen + 1):
        for chars in itertools.product(alphabet, repeat=n):
            yield "".join(chars)


def test_aa_bb_star():
    nfa = aa_bb_star()
    build_epsilon_closure_index(nfa)
    sc = SubsetConstructor(nfa)
    dfa = sc.run()

    assert isinstance(dfa, DFA)
    assert dfa.initial == "0"
    assert dfa.alphabet == {"a", "b"}
    assert sc.state_sets == {
        "0": {"X", "1", "Y"},
        "1": {"3"},
        "2": {"4"},
        "3": {"1", "2", "Y"},
        "4": frozenset(),
    }
    assert list(dfa.accepting_states()) == ["0", "3"]

    for piece in ("", "aa", "bb", "aabb", "bbaa", "aaaabbbbaa", "bbbbbb"):
        assert accepts(dfa, piece)
    for s in ("a", "b", "ab", "aab", "abba", "aaa"):
        assert not accepts(dfa, s)

    assert run(dfa, "c") is None
    assert run(dfa, "aac") is None


def test_language_matches_pieces():
    nfa = aa_bb_star()
    nfa.calc_epsilon_closure()
    dfa = nfa.to_dfa()
    for s in strings("ab", 8):
        expected = len(s) % 2 == 0 and all(
            s[i] == s[i + 1] for i in range(0, len(s), 2)
        )
        assert accepts(dfa, s) == expected, s


def test_contains_aa_or_bb():
    nfa = contains_aa_or_bb()
    nfa.calc_epsilon_closure()
    dfa = nfa.to_dfa()
    assert dfa.initial == "0"
    for s in strings("ab", 7):
        assert accepts(dfa, s) == ("aa" in s or "bb" in s), s


def test_totality():
    nfa = contains_aa_or_bb()
    nfa.calc_epsilon_closure()
    dfa = to_deterministic_automaton(nfa)
    for state in dfa.all_states():
        for symbol in dfa.alphabet:
            dests = [dest for dest, tset in dfa.successors(state) if symbol in tset]
            assert len(dests) == 1
        assert all(EPSILON not in tset for _, tset in dfa.successors(state))


def test_acceptance_preservation():
    nfa = contains_aa_or_bb()
    nfa.calc_epsilon_closure()
    sc = SubsetConstructor(nfa)
    dfa = sc.run()
    assert set(sc.state_sets) == set(dfa.all_states())
    for state_id, members in sc.state_sets.items():
        assert dfa.is_accepting(state_id) == bool(members & nfa.accepting)


def test_ids_follow_discovery_order():
    nfa = nfa_from_rules(
        ["s"], ["z"], [("s", "b", "m"), ("s", "a", "z"), ("m", "a", "s")]
    )
    nfa.calc_epsilon_closure()
    sc = SubsetConstructor(nfa)
    dfa = sc.run()
    # Symbols are taken in sorted order: "a" from the start is found first
    assert sc.state_sets["1"] == {"z"}
    assert sc.state_sets["2"] == {"m"}
    assert sc.state_sets["3"] == frozenset()
    assert dfa.next_state("0", "a") == "1"
    assert dfa.next_state("0", "b") == "2"
    assert dfa.next_state("2", "a") == "0"


def test_reproducible():
    first = contains_aa_or_bb()
    second = contains_aa_or_bb()
    first.calc_epsilon_closure()
    second.calc_epsilon_closure(method="search")
    assert first.to_dfa().describe() == second.to_dfa().describe()


def test_multiple_initial_states():
    nfa = nfa_from_rules(["p", "q"], ["r"], [("p", "a", "r"), ("q", "b", "r")])
    nfa.calc_epsilon_closure()
    sc = SubsetConstructor(nfa)
    dfa = sc.run()
    assert sc.state_sets["0"] == {"p", "q"}
    assert accepts(dfa, "a")
    assert accepts(dfa, "b")
    assert not accepts(dfa, "ab")


def test_accepting_start_state():
    nfa = nfa_from_rules(["s"], ["f"], [("s", EPSILON, "f"), ("f", "a", "g")])
    nfa.calc_epsilon_closure()
    dfa = nfa.to_dfa()
    assert dfa.is_accepting("0")
    assert accepts(dfa, "")
    assert not accepts(dfa, "a")


def test_empty_alphabet():
    nfa = nfa_from_rules(["s"], ["t"], [("s", EPSILON, "t")])
    nfa.calc_epsilon_closure()
    dfa = nfa.to_dfa()
    assert list(dfa.all_states()) == ["0"]
    assert list(dfa.triples()) == []
    assert dfa.initial == "0"
    assert dfa.is_accepting("0")


def test_requires_closure_index():
    nfa = aa_bb_star()
    with pytest.raises(UninitializedError):
        nfa.to_dfa()

    nfa.calc_epsilon_closure()
    nfa.add_transition("Y", "c", "X")
    with pytest.raises(UninitializedError):
        to_deterministic_automaton(nfa)


def test_requires_nfa():
    dfa = DFA()
    dfa.add_initial_states(["0"])
    dfa.add_transition("0", "a", "0")
    with pytest.raises(IllegalArgumentError):
        to_deterministic_automaton(dfa)
    with pytest.raises(IllegalArgumentError):
        SubsetConstructor(dfa)


def test_source_is_unchanged():
    nfa = contains_aa_or_bb()
    nfa.calc_epsilon_closure()
    before = nfa.describe()
    index = nfa.closure_index
    dfa = nfa.to_dfa()
    assert nfa.describe() == before
    assert nfa.closure_index is index

    dfa.add_transition("0", "z", "99")
    assert "z" not in nfa.alphabet
    assert nfa.closure_index is index


def test_empty_nfa():
    nfa = NFA()
    nfa.calc_epsilon_closure()
    sc = SubsetConstructor(nfa)
    dfa = sc.run()
    assert sc.state_sets == {"0": frozenset()}
    assert dfa.state_count() == 1
    assert list(dfa.accepting_states()) == []


def test_logs_discovered_states():
    messages = []
    logger.enable("nfa2dfa")
    handler = logger.add(messages.append, level="DEBUG", format="{message}")
    try:
        nfa = aa_bb_star()
        nfa.calc_epsilon_closure()
        nfa.to_dfa()
    finally:
        logger.remove(handler)
        logger.disable("nfa2dfa")

    text = "".join(messages)
    assert "Built epsilon closure index over 6 states using warshall" in text
    assert "Composite state 0 = {1, X, Y}" in text
    assert "Composite state 4 = {}" in text
    assert "produced 5 composite states over 2 symbols" in text
