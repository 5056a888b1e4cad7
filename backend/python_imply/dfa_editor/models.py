from pydantic import BaseModel, ConfigDict, Field
from typing import List, Tuple

StateKey = str
SymbolKey = str
TransitionKey = Tuple[StateKey, SymbolKey]


class EditorModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class State(EditorModel):
    name: StateKey = Field(..., description="Primary key, 1-8 characters")
    description: str = ""

    @property
    def key(self) -> StateKey:
        return self.name


class Symbol(EditorModel):
    character: SymbolKey = Field(..., alias="symbol", description="Primary key, exactly one character")
    description: str = ""

    @property
    def key(self) -> SymbolKey:
        return self.character


class Transition(EditorModel):
    current_state: StateKey = Field(..., alias="currentStateName")
    input_symbol: SymbolKey = Field(..., alias="inputSymbol")
    subsequent_state: StateKey = Field(..., alias="subsequentStateName")
    description: str = ""

    @property
    def key(self) -> TransitionKey:
        return (self.current_state, self.input_symbol)


class Dfa(EditorModel):
    """Aggregate root; field order is the canonical document key order."""

    alphabet: List[Symbol]
    states: List[State]
    transitions: List[Transition]
    start_state: StateKey = Field(..., alias="startState")
    accept_states: List[StateKey] = Field(..., alias="acceptStates")
    description: str

    def canonical(self) -> "Dfa":
        """Return a copy with every collection in canonical order."""
        alphabet = {s.character: s for s in self.alphabet}
        states = {s.name: s for s in self.states}
        transitions = {t.key: t for t in self.transitions}
        return Dfa(
            alphabet=sorted(alphabet.values(), key=lambda s: s.character),
            states=sorted(states.values(), key=lambda s: (s.name, s.description)),
            transitions=sorted(transitions.values(), key=lambda t: t.key),
            start_state=self.start_state,
            accept_states=sorted(set(self.accept_states)),
            description=self.description,
        )
