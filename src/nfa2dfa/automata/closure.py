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
Epsilon closures of NFA states.

The closure of a state ``s`` is the set of states reachable from ``s`` by
following zero or more :data:`~nfa2dfa.automata.fsa.EPSILON` arcs, so it
always contains ``s`` itself. :func:`build_epsilon_closure_index` computes the
closure of every state of an NFA at once and caches the result on the NFA.
"""

from collections import deque

from loguru import logger

from nfa2dfa.automata.fsa import EPSILON, NFA, StateId
from nfa2dfa.errors import IllegalArgumentError, UninitializedError

CLOSURE_METHODS = ("warshall", "search")


class EpsilonClosureIndex:
    """
    Maps each state of an NFA to its epsilon closure.

    Instances are immutable snapshots of the NFA at the time they were built.
    An index bound to an NFA stops answering lookups once the NFA drops it,
    which happens on every mutation. Two indexes compare equal when they hold
    the same closure for every state.
    """

    def __init__(self, closures, nfa=None):
        """
        Args:
            closures (dict): Maps each state id to an iterable of the state
                ids in its closure.
            nfa (NFA, optional): The automaton the closures were computed
                from. If given, lookups raise :class:`UninitializedError`
                unless this index is the NFA's current closure index.
        """
        self._closures = {
            StateId(state): frozenset(StateId(s) for s in reach)
            for state, reach in closures.items()
        }
        self._nfa = nfa

    def is_current(self):
        """
        Returns True if lookups on this index are allowed: it is not bound to
        an NFA, or it is still that NFA's cached index.
        """
        return self._nfa is None or self._nfa.closure_index is self

    def _check_current(self):
        if not self.is_current():
            raise UninitializedError(
                "This epsilon closure index was invalidated by a later change "
                "to its NFA. Call calc_epsilon_closure() again."
            )

    def __len__(self):
        return len(self._closures)

    def __contains__(self, state):
        return state in self._closures

    def __iter__(self):
        return iter(sorted(self._closures))

    def __eq__(self, other):
        return (
            isinstance(other, EpsilonClosureIndex)
            and self._closures == other._closures
        )

    __hash__ = None

    def __repr__(self):
        return f"<{type(self).__name__} over {len(self._closures)} states>"

    def items(self):
        """Yields ``(state, closure)`` pairs ordered by state id."""
        for state in sorted(self._closures):
            yield state, self._closures[state]

    def closure(self, state):
        """
        Returns the closure of a single state as a frozenset.

        Raises:
            UninitializedError: If the NFA has dropped this index.
            IllegalArgumentError: If the state was not part of the NFA when
                the index was built.
        """
        self._check_current()
        try:
            return self._closures[state]
        except KeyError:
            raise IllegalArgumentError(
                f"State {state!r} is not known to the epsilon closure index"
            ) from None

    def closure_of(self, states):
        """
        Returns the union of the closures of ``states`` as a frozenset. The
        closure of an empty set is empty.

        Raises:
            UninitializedError: If the NFA has dropped this index.
            IllegalArgumentError: If a state is not known to the index.
        """
        self._check_current()
        result = set()
        for state in states:
            result.update(self.closure(state))
        return frozenset(result)


def _epsilon_successors(nfa, state):
    return [dest for dest, tset in nfa.successors(state) if EPSILON in tset]


def _warshall_closures(nfa):
    # Start from each state plus its direct epsilon successors, then take the
    # transitive closure of that relation over states. With the intermediate
    # state in the outer loop a single pass reaches the fixed point.
    states = list(nfa.all_states())
    closures = {}
    for state in states:
        reach = set(_epsilon_successors(nfa, state))
        reach.add(state)
        closures[state] = reach

    for k in states:
        via = closures[k]
        for i in states:
            reach = closures[i]
            if i != k and k in reach:
                reach.update(via)
    return closures


def _search_closures(nfa):
    closures = {}
    for state in nfa.all_states():
        reach = {state}
        frontier = deque([state])
        while frontier:
            src = frontier.popleft()
            for dest in _epsilon_successors(nfa, src):
                if dest not in reach:
                    reach.add(dest)
                    frontier.append(dest)
        closures[state] = reach
    return closures


def compute_epsilon_closure_index(nfa, method="warshall"):
    """
    Computes the epsilon closure of every state of ``nfa`` without caching
    it. The returned index answers only while it is the NFA's current index;
    see :meth:`~nfa2dfa.automata.fsa.NFA.calc_epsilon_closure`.

    Raises:
        IllegalArgumentError: If ``nfa`` is not an :class:`NFA` or ``method``
            is unknown.
    """
    if not isinstance(nfa, NFA):
        raise IllegalArgumentError(
            f"Epsilon closures are only defined for NFAs, got {type(nfa).__name__}"
        )
    if method == "warshall":
        closures = _warshall_closures(nfa)
    elif method == "search":
        closures = _search_closures(nfa)
    else:
        raise IllegalArgumentError(
            f"Unknown closure method {method!r}, expected one of {CLOSURE_METHODS}"
        )

    index = EpsilonClosureIndex(closures, nfa=nfa)
    logger.debug(
        "Built epsilon closure index over {} states using {}", len(index), method
    )
    return index


def build_epsilon_closure_index(nfa, method="warshall"):
    """
    Computes the epsilon closure of every state of ``nfa``, caches the result
    on the NFA and returns it.

    Building twice on an unchanged NFA gives equal indexes. Any later
    mutation of the NFA drops the cached index, and the dropped index raises
    :class:`UninitializedError` from then on.

    Args:
        nfa (NFA): The automaton to index.
        method (str): ``"warshall"`` (default) takes the all-pairs transitive
            closure of the epsilon relation, cubic in the number of states.
            ``"search"`` runs a breadth-first search of epsilon arcs from
            every state. Both give the same closures.

    Returns:
        EpsilonClosureIndex: The new index.

    Raises:
        IllegalArgumentError: If ``nfa`` is not an :class:`NFA` or ``method``
            is unknown.

    Example:
        >>> nfa = nfa_from_rules(["a"], [], [("a", EPSILON, "b"), ("b", EPSILON, "c")])
        >>> index = build_epsilon_closure_index(nfa)
        >>> sorted(index.closure("a"))
        ['a', 'b', 'c']
    """
    if not isinstance(nfa, NFA):
        raise IllegalArgumentError(
            f"Epsilon closures are only defined for NFAs, got {type(nfa).__name__}"
        )
    return nfa.calc_epsilon_closure(method=method)
