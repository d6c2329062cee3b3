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
Finite state automata with string-named states and string-labeled arcs.

The transition graph of an automaton is a mapping from a source state to a
mapping from a destination state to the :class:`TransitionSet` of symbols
labeling that single arc. Every state mentioned anywhere (as an arc
endpoint, an initial state or an accepting state) is a key of the outer
mapping, possibly with no outgoing arcs.

Two variants share the :class:`FSA` contract: :class:`NFA`, which allows any
number of initial states and epsilon arcs, and :class:`DFA`, which has at
most one initial state.
"""

import sys
from bisect import bisect_left, insort

from nfa2dfa.errors import (
    IllegalArgumentError,
    UninitializedError,
    UnsupportedOperationError,
)

# Value types


class Symbol(str):
    """
    An input label on an arc. Equality, ordering and hashing are those of the
    underlying string.
    """

    __slots__ = ()

    def __repr__(self):
        return f"Symbol({str.__repr__(self)})"


class StateId(str):
    """
    The name of a state. Unique within one automaton; the same name in two
    different automata means nothing.
    """

    __slots__ = ()

    def __repr__(self):
        return f"StateId({str.__repr__(self)})"


# The reserved no-input label. It may label arcs but is never part of an
# automaton's alphabet.
EPSILON = Symbol("ɛ")


class TransitionSet:
    """
    The ordered, non-empty set of symbols labeling one arc from a source
    state to a destination state.

    Adding a second transition between the same pair of states inserts the
    symbol into the existing set instead of creating a parallel arc.

    Example:
        >>> ts = TransitionSet(["b"])
        >>> ts.add("a")
        >>> "a" in ts
        True
        >>> ts
        {a, b}
    """

    __slots__ = ("_symbols",)

    def __init__(self, symbols):
        """
        Args:
            symbols (iterable): The initial symbols. Must not be empty.

        Raises:
            IllegalArgumentError: If ``symbols`` is empty.
        """
        self._symbols = sorted({Symbol(s) for s in symbols})
        if not self._symbols:
            raise IllegalArgumentError("A transition set needs at least one symbol")

    def __contains__(self, symbol):
        symbols = self._symbols
        i = bisect_left(symbols, symbol)
        return i < len(symbols) and symbols[i] == symbol

    def __iter__(self):
        return iter(self._symbols)

    def __len__(self):
        return len(self._symbols)

    def __eq__(self, other):
        return isinstance(other, TransitionSet) and self._symbols == other._symbols

    __hash__ = None

    def __repr__(self):
        return "{" + ", ".join(self._symbols) + "}"

    def add(self, symbol):
        """
        Inserts ``symbol`` into the set, keeping it sorted. Adding a symbol
        that is already present does nothing.
        """
        symbol = Symbol(symbol)
        if symbol not in self:
            insort(self._symbols, symbol)


class StateView:
    """
    A lazy, restartable view over some of the states of an automaton, in
    lexicographic order of state id. Each iteration reflects the automaton's
    current contents.
    """

    def __init__(self, fsa, predicate=None):
        self._fsa = fsa
        self._predicate = predicate

    def __iter__(self):
        predicate = self._predicate
        for state in sorted(self._fsa._graph):
            if predicate is None or predicate(state):
                yield state

    def __len__(self):
        return sum(1 for _ in self)

    def __contains__(self, state):
        if state not in self._fsa._graph:
            return False
        return self._predicate is None or self._predicate(state)

    def __repr__(self):
        return f"<{type(self).__name__} {_format_states(self)}>"


def _state_ids(states):
    # A bare string would otherwise be taken as a sequence of one-letter ids
    if isinstance(states, str):
        raise IllegalArgumentError(
            f"Expected an iterable of state ids, got the string {states!r}"
        )
    return [StateId(s) for s in states]


def _format_states(states):
    return "{" + ", ".join(states) + "}"


# Base class


class FSA:
    """
    Shared contract of the automaton variants.

    An automaton is created empty and then built up through
    :meth:`add_initial_states`, :meth:`add_accepting_states` and
    :meth:`add_transition`. The read-only accessors return fresh frozensets
    or :class:`StateView` objects, so callers cannot change the automaton
    behind its back.

    Subclasses decide how many initial states are allowed by implementing
    :meth:`add_initial_states` and the :attr:`initial` property.
    """

    def __init__(self):
        self._graph = {}
        self._accepting = set()
        self._alphabet = set()

    def __len__(self):
        return self.state_count()

    def __repr__(self):
        arcs = sum(len(arcs) for arcs in self._graph.values())
        return f"<{type(self).__name__} with {len(self._graph)} states and {arcs} arcs>"

    def __str__(self):
        return self.describe()

    @property
    def initial(self):
        raise NotImplementedError

    @property
    def accepting(self):
        """The accepting states, as a frozenset of :class:`StateId`."""
        return frozenset(self._accepting)

    @property
    def alphabet(self):
        """
        The non-epsilon symbols used on at least one arc, as a frozenset of
        :class:`Symbol`. Grows as arcs are added and never shrinks.
        """
        return frozenset(self._alphabet)

    def sorted_alphabet(self):
        return sorted(self._alphabet)

    def _on_change(self):
        # Called after any mutation of the graph
        pass

    def _ensure_node(self, state):
        state = StateId(state)
        if state not in self._graph:
            self._graph[state] = {}
            self._on_change()
        return state

    def add_initial_states(self, states):
        """
        Records initial states. The semantics depend on the variant.

        Args:
            states (iterable): State ids.

        Raises:
            NotImplementedError: This method should be implemented in a subclass.
        """
        raise NotImplementedError

    def add_accepting_states(self, states):
        """
        Adds the given state ids to the accepting set. States that are not yet
        in the graph are created with no outgoing arcs.

        Args:
            states (iterable): State ids.

        Raises:
            IllegalArgumentError: If ``states`` is a single string instead of
                an iterable of ids.
        """
        for state in _state_ids(states):
            self._ensure_node(state)
            self._accepting.add(state)

    def add_transition(self, src, symbol, dest):
        """
        Adds an arc from ``src`` to ``dest`` labeled with ``symbol``.

        Both endpoints are created if they do not exist. If an arc between the
        two states already exists, ``symbol`` is added to its
        :class:`TransitionSet`. Unless ``symbol`` is :data:`EPSILON` it also
        joins the alphabet.

        Args:
            src (str): The source state id.
            symbol (str): The input label, or :data:`EPSILON`.
            dest (str): The destination state id.

        Example:
            >>> nfa = NFA()
            >>> nfa.add_transition("q0", "a", "q1")
            >>> nfa.add_transition("q0", "b", "q1")
            >>> nfa.transition_set("q0", "q1")
            {a, b}
        """
        src = self._ensure_node(src)
        dest = self._ensure_node(dest)
        symbol = Symbol(symbol)
        if symbol != EPSILON:
            self._alphabet.add(symbol)

        arcs = self._graph[src]
        if dest in arcs:
            arcs[dest].add(symbol)
        else:
            arcs[dest] = TransitionSet([symbol])
        self._on_change()

    def all_states(self):
        """Returns a :class:`StateView` over every state of the graph."""
        return StateView(self)

    def accepting_states(self):
        """Returns a :class:`StateView` over the accepting states."""
        return StateView(self, self._accepting.__contains__)

    def non_accepting_states(self):
        """Returns a :class:`StateView` over the states that are not accepting."""
        accepting = self._accepting
        return StateView(self, lambda state: state not in accepting)

    def state_count(self):
        return len(self._graph)

    def is_accepting(self, state):
        return state in self._accepting

    def transition_set(self, src, dest):
        """
        Returns the :class:`TransitionSet` of the arc from ``src`` to ``dest``,
        or None if there is no such arc.
        """
        arcs = self._graph.get(src)
        if arcs is None:
            return None
        return arcs.get(dest)

    def successors(self, src):
        """
        Yields ``(dest, transition_set)`` pairs for the arcs leaving ``src``,
        ordered by destination id. Yields nothing for an unknown state.
        """
        arcs = self._graph.get(src, {})
        for dest in sorted(arcs):
            yield dest, arcs[dest]

    def triples(self):
        """
        Yields every arc as a ``(src, transition_set, dest)`` triple, ordered
        by source then destination id.
        """
        for src in sorted(self._graph):
            for dest, tset in self.successors(src):
                yield src, tset, dest

    def _describe_initial(self):
        raise NotImplementedError

    def describe(self):
        """
        Returns a human-readable rendering of the automaton: its initial
        states, its accepting states and every arc as ``src => {symbols} =>
        dest``. The layout is meant for reading, not for parsing.

        Example:
            >>> nfa = nfa_from_rules(["A"], ["B"], [("A", "a", "B")])
            >>> print(nfa.describe())
            NFA {
                initial_states: {A}
                accepting_states: {B}
                transitions:
                    A => {a} => B
            }
        """
        lines = [
            f"{type(self).__name__} {{",
            f"    initial_states: {self._describe_initial()}",
            f"    accepting_states: {_format_states(sorted(self._accepting))}",
            "    transitions:",
        ]
        for src, tset, dest in self.triples():
            lines.append(f"        {src} => {tset!r} => {dest}")
        lines.append("}")
        return "\n".join(lines)

    def dump(self, stream=sys.stdout):
        """
        Prints :meth:`describe` to the specified stream.

        Args:
            stream (file): The stream to print to. Defaults to sys.stdout.
        """
        print(self.describe(), file=stream)


# Implementations


class NFA(FSA):
    """
    Non-deterministic finite automaton.

    An NFA may have several initial states, several arcs leaving a state with
    the same symbol, and arcs labeled with :data:`EPSILON`.

    The NFA owns a cached epsilon closure index, computed by
    :meth:`calc_epsilon_closure` (or
    :func:`nfa2dfa.automata.closure.build_epsilon_closure_index`). Any
    mutation of the graph drops the cache, and closure lookups raise
    :class:`UninitializedError` until it is rebuilt. The index is never
    recomputed implicitly.

    Example:
        >>> nfa = NFA()
        >>> nfa.add_initial_states(["s"])
        >>> nfa.add_transition("s", EPSILON, "t")
        >>> nfa.add_accepting_states(["t"])
        >>> _ = nfa.calc_epsilon_closure()
        >>> sorted(nfa.epsilon_closure(["s"]))
        ['s', 't']
    """

    def __init__(self):
        super().__init__()
        self._initial = set()
        self._closure_index = None

    @property
    def initial(self):
        """The initial states, as a frozenset of :class:`StateId`."""
        return frozenset(self._initial)

    @property
    def closure_index(self):
        """
        The cached :class:`~nfa2dfa.automata.closure.EpsilonClosureIndex`,
        or None if it was never built or has been invalidated.
        """
        return self._closure_index

    def _on_change(self):
        self._closure_index = None

    def add_initial_states(self, states):
        """
        Adds the given state ids to the initial set. Always succeeds for an
        iterable of ids.

        Args:
            states (iterable): State ids.
        """
        for state in _state_ids(states):
            self._ensure_node(state)
            self._initial.add(state)

    def _describe_initial(self):
        return _format_states(sorted(self._initial))

    def calc_epsilon_closure(self, method="warshall"):
        """
        Builds and caches the epsilon closure index of this NFA, replacing
        any earlier one.

        Args:
            method (str): ``"warshall"`` or ``"search"``. See
                :func:`nfa2dfa.automata.closure.build_epsilon_closure_index`.

        Returns:
            EpsilonClosureIndex: The new index.

        Raises:
            IllegalArgumentError: If ``method`` is unknown.
        """
        from nfa2dfa.automata.closure import compute_epsilon_closure_index

        index = compute_epsilon_closure_index(self, method=method)
        self._closure_index = index
        return index

    def epsilon_closure(self, states):
        """
        Returns the union of the epsilon closures of ``states`` as a
        frozenset.

        Raises:
            UninitializedError: If the closure index is absent or stale.
            IllegalArgumentError: If a state is not part of this NFA.
        """
        if self._closure_index is None:
            raise UninitializedError(
                "The epsilon closure index is not built. "
                "Call calc_epsilon_closure() after the last mutation."
            )
        return self._closure_index.closure_of(states)

    def straight_reachable(self, states, symbol):
        """
        Returns the frozenset of states reachable from any of ``states`` by
        exactly one arc labeled ``symbol``, without following epsilon arcs.
        """
        graph = self._graph
        reached = set()
        for state in states:
            for dest, tset in graph.get(state, {}).items():
                if symbol in tset:
                    reached.add(dest)
        return frozenset(reached)

    def to_dfa(self):
        """
        Converts this NFA to an equivalent :class:`DFA` by subset
        construction. The epsilon closure index must be up to date.

        Raises:
            UninitializedError: If the closure index is absent or stale.
        """
        from nfa2dfa.automata.subset import to_deterministic_automaton

        return to_deterministic_automaton(self)


class DFA(FSA):
    """
    Deterministic finite automaton: at most one initial state.

    The initial state can be set once. A second attempt raises
    :class:`UnsupportedOperationError`, and passing anything but exactly one
    id raises :class:`IllegalArgumentError`.

    :meth:`add_transition` does not check that a state has at most one arc
    per symbol; automata produced by subset construction have this property
    by construction.
    """

    def __init__(self):
        super().__init__()
        self._initial = None

    @property
    def initial(self):
        """The initial :class:`StateId`, or None if it has not been set."""
        return self._initial

    def add_initial_states(self, states):
        """
        Sets the single initial state.

        Args:
            states (iterable): Exactly one state id.

        Raises:
            UnsupportedOperationError: If the initial state is already set.
            IllegalArgumentError: If ``states`` does not hold exactly one id.
        """
        if self._initial is not None:
            raise UnsupportedOperationError(
                "Initial state is already specified. "
                "A DFA has at most one initial state."
            )
        ids = _state_ids(states)
        if len(ids) != 1:
            raise IllegalArgumentError(
                f"Expected exactly one initial state for a DFA, got {len(ids)}"
            )
        self._initial = self._ensure_node(ids[0])

    def _describe_initial(self):
        if self._initial is None:
            return "{}"
        return _format_states([self._initial])

    def next_state(self, src, symbol):
        """
        Returns the destination of the arc leaving ``src`` labeled with
        ``symbol``, or None if there is none.
        """
        for dest, tset in self.successors(src):
            if symbol in tset:
                return dest
        return None


# Useful functions


def nfa_from_rules(initial, accepting, rules):
    """
    Builds an NFA from literal lists.

    Args:
        initial (iterable): Initial state ids.
        accepting (iterable): Accepting state ids.
        rules (iterable): ``(src, symbol, dest)`` triples, added in order.

    Returns:
        NFA: The new automaton. Its closure index is not built.

    Example:
        >>> nfa = nfa_from_rules(
        ...     ["X"], ["Y"], [("X", EPSILON, "1"), ("1", "a", "Y")]
        ... )
        >>> sorted(nfa.alphabet)
        ['a']
    """
    nfa = NFA()
    nfa.add_initial_states(initial)
    nfa.add_accepting_states(accepting)
    for src, symbol, dest in rules:
        nfa.add_transition(src, symbol, dest)
    return nfa
