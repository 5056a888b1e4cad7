from typing import Iterable, List, Optional, Set

import structlog
from pydantic import BaseModel

from .exceptions import DanglingReference, DfaEditorError, StructuralIncompleteness
from .models import Dfa, State, Symbol, Transition

log = structlog.get_logger()

CURRENT_STATE_FIELD = "currentStateName"
INPUT_SYMBOL_FIELD = "inputSymbol"
SUBSEQUENT_STATE_FIELD = "subsequentStateName"


class TransitionCheck(BaseModel):
    """Missing-reference flags, OR-ed across all transitions."""

    missing_initial_state: bool = False
    missing_subsequent_state: bool = False
    missing_input_symbol: bool = False

    @property
    def ok(self) -> bool:
        return not (self.missing_initial_state or self.missing_subsequent_state or self.missing_input_symbol)


def dangling_fields(transition: Transition, state_names: Set[str], symbol_chars: Set[str]) -> List[str]:
    """Document field names of `transition` that reference nothing."""
    fields = []
    if transition.current_state not in state_names:
        fields.append(CURRENT_STATE_FIELD)
    if transition.input_symbol not in symbol_chars:
        fields.append(INPUT_SYMBOL_FIELD)
    if transition.subsequent_state not in state_names:
        fields.append(SUBSEQUENT_STATE_FIELD)
    return fields


def check_transitions(
    states: Iterable[State], symbols: Iterable[Symbol], transitions: Iterable[Transition]
) -> TransitionCheck:
    state_names = {s.name for s in states}
    symbol_chars = {s.character for s in symbols}
    result = TransitionCheck()

    for transition in transitions:
        fields = dangling_fields(transition, state_names, symbol_chars)
        if CURRENT_STATE_FIELD in fields:
            result.missing_initial_state = True
        if SUBSEQUENT_STATE_FIELD in fields:
            result.missing_subsequent_state = True
        if INPUT_SYMBOL_FIELD in fields:
            result.missing_input_symbol = True

    return result


def transition_message(check: TransitionCheck) -> Optional[str]:
    message = ""
    if check.missing_initial_state and check.missing_subsequent_state:
        message = "There are transitions with invalid initial and subsequent state"
    elif check.missing_initial_state:
        message = "There are transitions with invalid initial state"
    elif check.missing_subsequent_state:
        message = "There are transitions with invalid subsequent state"
    if check.missing_input_symbol:
        if message:
            message += " and invalid input symbol"
        else:
            message = "There are transitions with invalid input symbol"
    return message or None


class DfaValidator:
    def validate(self, dfa: Dfa) -> Optional[str]:
        """
        Return the first problem found in `dfa` as a user-facing message, or
        None when it is complete and referentially consistent. The result is
        advisory; only submission treats it as a hard gate.
        """
        problem = self.find_problem(dfa)
        return problem.message if problem else None

    def ensure_valid(self, dfa: Dfa) -> None:
        problem = self.find_problem(dfa)
        if problem:
            raise problem

    def find_problem(self, dfa: Dfa) -> Optional[DfaEditorError]:
        # Structural preconditions short-circuit the referential check.
        if not dfa.states:
            return StructuralIncompleteness("At least one state must be specified.")
        if not dfa.alphabet:
            return StructuralIncompleteness("At least one symbol must be specified.")
        if not dfa.transitions:
            return StructuralIncompleteness("At least one state transition must be specified.")
        if not dfa.start_state:
            return StructuralIncompleteness("A start state must be specified.")
        if not dfa.accept_states:
            return StructuralIncompleteness("At least one accepting state must be specified.")

        check = check_transitions(dfa.states, dfa.alphabet, dfa.transitions)
        message = transition_message(check)
        if message:
            log.info("dangling_transitions", **check.model_dump())
            return DanglingReference(message)

        state_names = {s.name for s in dfa.states}
        if dfa.start_state not in state_names:
            return DanglingReference("The start state must be one of the specified states.")
        if any(name not in state_names for name in dfa.accept_states):
            return DanglingReference("All accepting states must be specified states.")

        return None
