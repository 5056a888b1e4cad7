"""
DFA editing session.

Every edit goes through the same pipeline: the store is mutated, the
reference index follows through its subscription, the transitions are
re-checked and the canonical document is regenerated. Each call is one
synchronous unit of work, so no reader ever sees a half-applied edit.
"""

from typing import Iterable, List, Optional, Union

import structlog
from pydantic import BaseModel

from . import serializer
from .config import EditorSettings, get_settings
from .identifiers import next_identifier
from .models import Dfa, State, Symbol, Transition
from .reference_index import ReferenceIndex
from .samples import get_sample
from .store import Mutation, StateStore, SymbolStore, TransitionStore
from .validator import DfaValidator, TransitionCheck, check_transitions, dangling_fields

log = structlog.get_logger()


class DanglingTransition(BaseModel):
    current_state: str
    input_symbol: str
    fields: List[str]


class EditorSnapshot(BaseModel):
    document: str
    check: TransitionCheck
    message: Optional[str] = None
    dangling: List[DanglingTransition] = []


class LoadResult(BaseModel):
    dfa: Dfa
    message: Optional[str] = None


class DfaEditor:
    def __init__(self, settings: Optional[EditorSettings] = None, validator: Optional[DfaValidator] = None):
        self.settings = settings or get_settings()
        self.validator = validator or DfaValidator()
        self.states = StateStore()
        self.symbols = SymbolStore()
        self.transitions = TransitionStore()
        self.index = ReferenceIndex()
        self.index.bind(self.states, self.symbols)

        self.start_state = ""
        self.accept_states: List[str] = []
        self.description = self.settings.default_description

        self._check = TransitionCheck()
        self._document = ""
        self._refresh()

    # --- States ---

    def upsert_state(self, name: str, description: str) -> Mutation:
        mutation = self.states.upsert(State(name=name, description=description))
        self._refresh()
        return mutation

    def remove_state(self, name: str) -> Optional[State]:
        removed = self.states.remove(name)
        if removed:
            self._refresh()
        return removed

    def begin_edit_state(self, name: str) -> Optional[State]:
        return self.states.get(name)

    def suggest_state(self) -> Optional[State]:
        prefix = self.settings.state_prefix
        name = next_identifier(self.states, prefix, self.settings.state_start)
        if name is None:
            return None
        return State(name=name, description=f"State {name[len(prefix):]}.")

    # --- Symbols ---

    def upsert_symbol(self, character: str, description: str) -> Mutation:
        mutation = self.symbols.upsert(Symbol(character=character, description=description))
        self._refresh()
        return mutation

    def remove_symbol(self, character: str) -> Optional[Symbol]:
        removed = self.symbols.remove(character)
        if removed:
            self._refresh()
        return removed

    def begin_edit_symbol(self, character: str) -> Optional[Symbol]:
        return self.symbols.get(character)

    def suggest_symbol(self) -> Optional[Symbol]:
        prefix = self.settings.symbol_prefix
        character = next_identifier(self.symbols, prefix, self.settings.symbol_start)
        if character is None:
            return None
        return Symbol(character=character, description=f"Symbol {character[len(prefix):]}.")

    # --- Transitions ---

    def upsert_transition(
        self, current_state: str, input_symbol: str, subsequent_state: str, description: str = ""
    ) -> Mutation:
        transition = Transition(
            current_state=current_state,
            input_symbol=input_symbol,
            subsequent_state=subsequent_state,
            description=description,
        )
        mutation = self.transitions.upsert(transition)
        self._refresh()
        return mutation

    def remove_transition(self, current_state: str, input_symbol: str) -> Optional[Transition]:
        removed = self.transitions.remove(current_state, input_symbol)
        if removed:
            self._refresh()
        return removed

    def begin_edit_transition(self, current_state: str, input_symbol: str) -> Optional[Transition]:
        return self.transitions.get((current_state, input_symbol))

    # --- DFA level fields ---

    def set_start_state(self, name: str) -> None:
        self.start_state = name
        self._refresh()

    def set_accept_states(self, names: Iterable[str]) -> None:
        self.accept_states = sorted(set(names))
        self._refresh()

    def set_description(self, description: str) -> None:
        self.description = description
        self._refresh()

    def clear(self) -> None:
        """Empty every collection, the pickers and the DFA level fields."""
        self.states.clear()
        self.symbols.clear()
        self.transitions.clear()
        self.start_state = ""
        self.accept_states = []
        self.description = ""
        self._refresh()
        log.info("editor_cleared")

    def reset(self) -> None:
        self.clear()
        self.description = self.settings.default_description
        self._refresh()

    # --- Documents ---

    def load_json(self, text: Union[str, bytes]) -> LoadResult:
        """
        Replace the whole session with the parsed document. A document that
        does not parse leaves the session untouched; one that parses but does
        not validate is loaded anyway and the message is returned.
        """
        dfa = serializer.from_json(text)
        return self.load_dfa(dfa)

    def load_dfa(self, dfa: Dfa) -> LoadResult:
        self.states.replace_all(dfa.states)
        self.symbols.replace_all(dfa.alphabet)
        self.transitions.replace_all(dfa.transitions)
        self.start_state = dfa.start_state
        self.accept_states = sorted(set(dfa.accept_states))
        self.description = dfa.description
        self._refresh()

        message = self.validate()
        log.info(
            "dfa_loaded",
            states=len(self.states),
            symbols=len(self.symbols),
            transitions=len(self.transitions),
            valid=message is None,
        )
        return LoadResult(dfa=self.to_dfa(), message=message)

    def load_sample(self, name: str) -> LoadResult:
        return self.load_json(get_sample(name).read_text())

    def to_dfa(self) -> Dfa:
        return Dfa(
            alphabet=self.symbols.list(),
            states=self.states.list(),
            transitions=self.transitions.list(),
            start_state=self.start_state,
            accept_states=list(self.accept_states),
            description=self.description,
        )

    def to_json(self) -> str:
        return self._document

    # --- Validation ---

    def check(self) -> TransitionCheck:
        return self._check.model_copy()

    def validate(self) -> Optional[str]:
        return self.validator.validate(self.to_dfa())

    def dangling_transitions(self) -> List[DanglingTransition]:
        state_names = set(self.states.keys())
        symbol_chars = set(self.symbols.keys())
        result = []
        for t in self.transitions:
            fields = dangling_fields(t, state_names, symbol_chars)
            if fields:
                result.append(
                    DanglingTransition(current_state=t.current_state, input_symbol=t.input_symbol, fields=fields)
                )
        return result

    def snapshot(self) -> EditorSnapshot:
        return EditorSnapshot(
            document=self._document,
            check=self.check(),
            message=self.validate(),
            dangling=self.dangling_transitions(),
        )

    def _refresh(self) -> None:
        self._check = check_transitions(self.states, self.symbols, self.transitions)
        self._document = serializer.to_json(self.to_dfa())
