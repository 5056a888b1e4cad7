"""
Keyed entity stores for states, symbols and transitions.

The stores are the system of record of an editing session. Adding an entity
whose key already exists updates it instead, and listeners (the reference
index) are told about every committed change.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, Generic, Hashable, Iterable, Iterator, List, Optional, TypeVar

import structlog

from .exceptions import LengthViolation, MissingRequiredField, ValidationError
from .models import State, Symbol, Transition

log = structlog.get_logger()

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", State, Symbol, Transition)

MAX_STATE_NAME_LENGTH = 8
SYMBOL_LENGTH = 1


class Mutation(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    CLEARED = "cleared"


Listener = Callable[[Mutation, Optional[V]], None]


class EntityStore(ABC, Generic[K, V]):
    """
    Generic keyed collection with upsert semantics.

    Subclasses define the insert and update rules; `list()` always returns
    the entities in canonical order.
    """

    entity_name = "entity"

    def __init__(self, entities: Iterable[V] = ()):
        self._entities: Dict[K, V] = {}
        self._listeners: List[Listener] = []
        for entity in entities:
            self._entities[entity.key] = entity

    # --- Rules (overridden per entity type) ---

    @abstractmethod
    def check_insert(self, entity: V) -> None:
        """Raise a ValidationError when `entity` may not be added."""

    def check_update(self, existing: V, entity: V) -> None:
        pass

    def merge(self, existing: V, entity: V) -> V:
        """Non-key fields of `entity` replace those of `existing`."""
        return entity

    def sort_key(self, entity: V) -> tuple:
        return (entity.key,)

    # --- Mutations ---

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def upsert(self, entity: V) -> Mutation:
        existing = self._entities.get(entity.key)
        if existing is None:
            self._reject_if_invalid(self.check_insert, entity)
            self._entities[entity.key] = entity
            mutation = Mutation.ADDED
        else:
            self._reject_if_invalid(self.check_update, existing, entity)
            entity = self.merge(existing, entity)
            self._entities[entity.key] = entity
            mutation = Mutation.UPDATED

        log.debug(f"{self.entity_name}_{mutation.value}", key=entity.key)
        self._notify(mutation, entity)
        return mutation

    def remove(self, key: K) -> Optional[V]:
        """Delete the entity with `key`; None when there was nothing to delete."""
        removed = self._entities.pop(key, None)
        if removed is None:
            log.debug(f"{self.entity_name}_not_found", key=key)
            return None
        log.debug(f"{self.entity_name}_removed", key=key)
        self._notify(Mutation.REMOVED, removed)
        return removed

    def clear(self) -> None:
        self._entities.clear()
        self._notify(Mutation.CLEARED, None)

    def replace_all(self, entities: Iterable[V]) -> None:
        """
        Swap the whole content without the insert rules, as a loaded document
        is taken as-is. Duplicate keys collapse onto the last occurrence.
        """
        self.clear()
        for entity in entities:
            if entity.key in self._entities:
                log.warning(f"{self.entity_name}_duplicate_key", key=entity.key)
                self._entities[entity.key] = entity
                self._notify(Mutation.UPDATED, entity)
            else:
                self._entities[entity.key] = entity
                self._notify(Mutation.ADDED, entity)

    # --- Reads ---

    def get(self, key: K) -> Optional[V]:
        return self._entities.get(key)

    def keys(self) -> List[K]:
        return [e.key for e in self.list()]

    def list(self) -> List[V]:
        return sorted(self._entities.values(), key=self.sort_key)

    def __contains__(self, key: object) -> bool:
        return key in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[V]:
        return iter(self.list())

    # --- Internals ---

    def _reject_if_invalid(self, rule, *args) -> None:
        try:
            rule(*args)
        except ValidationError as e:
            log.warning(f"{self.entity_name}_rejected", reason=e.message)
            raise

    def _notify(self, mutation: Mutation, entity: Optional[V]) -> None:
        for listener in self._listeners:
            listener(mutation, entity)


class StateStore(EntityStore[str, State]):
    entity_name = "state"

    def check_insert(self, entity: State) -> None:
        if not entity.name or not entity.description:
            raise MissingRequiredField("Please provide a name and a description for the state.")
        if len(entity.name) > MAX_STATE_NAME_LENGTH:
            raise LengthViolation(
                f"The name of the state may be a maximum of {MAX_STATE_NAME_LENGTH} characters long."
            )

    def check_update(self, existing: State, entity: State) -> None:
        if not entity.description:
            raise MissingRequiredField("Please provide a description for the state.")

    def sort_key(self, entity: State) -> tuple:
        return (entity.name, entity.description)


class SymbolStore(EntityStore[str, Symbol]):
    entity_name = "symbol"

    def check_insert(self, entity: Symbol) -> None:
        if not entity.character or not entity.description:
            raise MissingRequiredField("Please enter a character and a description for the symbol.")
        if len(entity.character) != SYMBOL_LENGTH:
            raise LengthViolation("The symbol must be a single character.")

    def check_update(self, existing: Symbol, entity: Symbol) -> None:
        if not entity.description:
            raise MissingRequiredField("Please enter a character and a description for the symbol.")


class TransitionStore(EntityStore[tuple, Transition]):
    """
    Transitions keyed by (current state, input symbol), which keeps the
    automaton deterministic. No referential checks happen here.
    """

    entity_name = "transition"

    def check_insert(self, entity: Transition) -> None:
        if not entity.current_state or not entity.input_symbol or not entity.subsequent_state:
            raise MissingRequiredField("Please select the initial state, input symbol, and subsequent state.")

    def merge(self, existing: Transition, entity: Transition) -> Transition:
        return existing.model_copy(
            update={"subsequent_state": entity.subsequent_state, "description": entity.description}
        )

    def remove(self, current_state: str, input_symbol: str) -> Optional[Transition]:  # type: ignore[override]
        return super().remove((current_state, input_symbol))
