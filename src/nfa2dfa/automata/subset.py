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
Conversion of an NFA to an equivalent DFA by subset construction.

Each state of the resulting DFA stands for an epsilon-closed set of states of
the NFA. The start set is the closure of the NFA's initial states and gets
the id ``"0"``; every set discovered afterwards gets the next number, in
breadth-first order of discovery with symbols taken in sorted order. Building
the same NFA the same way therefore always gives the same ids.
"""

from collections import deque

from loguru import logger

from nfa2dfa.automata.fsa import DFA, NFA
from nfa2dfa.errors import IllegalArgumentError


def _format_set(states):
    return "{" + ", ".join(sorted(states)) + "}"


class SubsetConstructor:
    """
    Runs the subset construction over one NFA.

    The NFA is only read. Its epsilon closure index must have been built
    after its last mutation.

    Attributes:
        nfa (NFA): The source automaton.
        state_sets (dict): After :meth:`run`, maps each DFA state id to the
            frozenset of NFA states it stands for.

    Example:
        >>> nfa = nfa_from_rules(["p"], ["q"], [("p", "a", "q")])
        >>> _ = nfa.calc_epsilon_closure()
        >>> sc = SubsetConstructor(nfa)
        >>> dfa = sc.run()
        >>> sorted(sc.state_sets["1"])
        ['q']
    """

    def __init__(self, nfa):
        """
        Args:
            nfa (NFA): The automaton to convert.

        Raises:
            IllegalArgumentError: If ``nfa`` is not an :class:`NFA`.
        """
        if not isinstance(nfa, NFA):
            raise IllegalArgumentError(
                f"Subset construction needs an NFA, got {type(nfa).__name__}"
            )
        self.nfa = nfa
        self.state_sets = {}

    def run(self):
        """
        Builds and returns the DFA.

        For every discovered state set and every alphabet symbol the DFA gets
        exactly one arc, to the closure of the states reachable by that
        symbol. A set with no such states leads to the empty set, which is a
        state like any other. A DFA state is accepting when its set contains
        an accepting NFA state.

        Returns:
            DFA: A new automaton sharing no mutable structure with the NFA.

        Raises:
            UninitializedError: If the NFA's closure index is absent or stale.
        """
        nfa = self.nfa
        accepting = nfa.accepting
        alphabet = nfa.sorted_alphabet()

        start = nfa.epsilon_closure(nfa.initial)
        known = {start: "0"}
        self.state_sets = {"0": start}

        dfa = DFA()
        dfa.add_initial_states(["0"])
        if start & accepting:
            dfa.add_accepting_states(["0"])
        logger.debug("Composite state 0 = {}", _format_set(start))

        queue = deque([start])
        while queue:
            current = queue.popleft()
            current_id = known[current]
            for symbol in alphabet:
                target = nfa.epsilon_closure(nfa.straight_reachable(current, symbol))
                target_id = known.get(target)
                if target_id is None:
                    target_id = str(len(known))
                    known[target] = target_id
                    self.state_sets[target_id] = target
                    queue.append(target)
                    logger.debug(
                        "Composite state {} = {}", target_id, _format_set(target)
                    )

                dfa.add_transition(current_id, symbol, target_id)
                if target & accepting:
                    dfa.add_accepting_states([target_id])

        logger.debug(
            "Subset construction produced {} composite states over {} symbols",
            len(known),
            len(alphabet),
        )
        return dfa


def to_deterministic_automaton(nfa):
    """
    Converts ``nfa`` to an equivalent :class:`~nfa2dfa.automata.fsa.DFA`.

    The closure index is not built implicitly: call
    :func:`~nfa2dfa.automata.closure.build_epsilon_closure_index` (or
    ``nfa.calc_epsilon_closure()``) first.

    Raises:
        IllegalArgumentError: If ``nfa`` is not an NFA.
        UninitializedError: If the NFA's closure index is absent or stale.
    """
    return SubsetConstructor(nfa).run()
