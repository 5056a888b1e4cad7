"""
Selectable identifiers for the editor's pickers.

The index is a projection of the state and symbol stores. It is kept in
step by subscribing to store mutations and can always be rebuilt from the
stores' current content.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from .models import State, Symbol
from .store import EntityStore, Mutation


class Picker(str, Enum):
    CURRENT_STATE = "currentState"
    SUBSEQUENT_STATE = "subsequentState"
    START_STATE = "startState"
    ACCEPT_STATES = "acceptStates"
    INPUT_SYMBOL = "inputSymbol"


STATE_PICKERS = (Picker.CURRENT_STATE, Picker.SUBSEQUENT_STATE, Picker.START_STATE, Picker.ACCEPT_STATES)
# Only these pickers show the state description next to the name.
DESCRIBED_STATE_PICKERS = (Picker.START_STATE, Picker.ACCEPT_STATES)
SYMBOL_PICKERS = (Picker.INPUT_SYMBOL,)


class PickerOption(BaseModel):
    value: str
    label: str


def option_label(key: str, text: Optional[str] = None) -> str:
    return f"{key} - {text}" if text else key


class ReferenceIndex:
    def __init__(self):
        self._options: Dict[Picker, Dict[str, str]] = {picker: {} for picker in Picker}

    # --- Contract ---

    def add(self, picker: Picker, key: str, text: Optional[str] = None) -> None:
        self._options[picker][key] = option_label(key, text)

    def update(self, picker: Picker, key: str, text: Optional[str] = None) -> None:
        if key in self._options[picker]:
            self._options[picker][key] = option_label(key, text)

    def remove(self, picker: Picker, key: str) -> None:
        self._options[picker].pop(key, None)

    def clear(self, picker: Optional[Picker] = None) -> None:
        pickers = [picker] if picker else list(Picker)
        for p in pickers:
            self._options[p].clear()

    # --- Reads ---

    def options(self, picker: Picker) -> List[PickerOption]:
        return [PickerOption(value=k, label=v) for k, v in sorted(self._options[picker].items())]

    def values(self, picker: Picker) -> List[str]:
        return sorted(self._options[picker])

    def label(self, picker: Picker, key: str) -> Optional[str]:
        return self._options[picker].get(key)

    def as_dict(self) -> Dict[str, List[dict]]:
        return {picker.value: [o.model_dump() for o in self.options(picker)] for picker in Picker}

    # --- Store projection ---

    def on_state_change(self, mutation: Mutation, state: Optional[State]) -> None:
        self._apply(mutation, state, STATE_PICKERS)

    def on_symbol_change(self, mutation: Mutation, symbol: Optional[Symbol]) -> None:
        self._apply(mutation, symbol, SYMBOL_PICKERS)

    def bind(self, states: EntityStore, symbols: EntityStore) -> None:
        states.subscribe(self.on_state_change)
        symbols.subscribe(self.on_symbol_change)

    def rebuild(self, states: Iterable[State], symbols: Iterable[Symbol]) -> None:
        """Replay the stores' content into an empty index."""
        self.clear()
        for state in states:
            self.on_state_change(Mutation.ADDED, state)
        for symbol in symbols:
            self.on_symbol_change(Mutation.ADDED, symbol)

    def _apply(self, mutation: Mutation, entity, pickers) -> None:
        if mutation == Mutation.CLEARED:
            for picker in pickers:
                self.clear(picker)
            return

        for picker in pickers:
            text = entity.description if picker in DESCRIBED_STATE_PICKERS else None
            if mutation == Mutation.ADDED:
                self.add(picker, entity.key, text)
            elif mutation == Mutation.UPDATED:
                self.update(picker, entity.key, text)
            elif mutation == Mutation.REMOVED:
                self.remove(picker, entity.key)
