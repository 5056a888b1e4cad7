import pytest

from dfa_editor.exceptions import LengthViolation, MissingRequiredField
from dfa_editor.models import State, Symbol, Transition
from dfa_editor.store import EntityStore, Mutation, StateStore, SymbolStore, TransitionStore


def transition(current, symbol, subsequent, description=""):
    return Transition(current_state=current, input_symbol=symbol, subsequent_state=subsequent, description=description)


# --- States ---

class TestStateStore:
    def test_add_then_update_keeps_single_entity(self):
        store = StateStore()
        assert store.upsert(State(name="S1", description="First.")) == Mutation.ADDED
        assert store.upsert(State(name="S1", description="Renamed.")) == Mutation.UPDATED
        assert len(store) == 1
        assert store.get("S1").description == "Renamed."

    def test_name_and_description_required_on_add(self):
        store = StateStore()
        with pytest.raises(MissingRequiredField):
            store.upsert(State(name="", description="No name."))
        with pytest.raises(MissingRequiredField):
            store.upsert(State(name="S1", description=""))
        assert len(store) == 0

    def test_name_length_limit(self):
        store = StateStore()
        store.upsert(State(name="ABCDEFGH", description="Eight characters."))
        with pytest.raises(LengthViolation) as exc:
            store.upsert(State(name="ABCDEFGHI", description="Nine characters."))
        assert "maximum of 8 characters" in exc.value.message
        assert store.keys() == ["ABCDEFGH"]

    def test_update_requires_description(self):
        store = StateStore([State(name="S1", description="First.")])
        with pytest.raises(MissingRequiredField):
            store.upsert(State(name="S1", description=""))
        assert store.get("S1").description == "First."

    def test_list_is_sorted_by_name(self):
        store = StateStore()
        for name in ["S3", "S10", "A", "S1"]:
            store.upsert(State(name=name, description=f"State {name}."))
        assert store.keys() == ["A", "S1", "S10", "S3"]

    def test_remove(self):
        store = StateStore([State(name="S1", description="First.")])
        removed = store.remove("S1")
        assert removed.name == "S1"
        assert "S1" not in store
        assert store.remove("S1") is None

    def test_listeners_see_committed_changes_only(self):
        store = StateStore()
        seen = []
        store.subscribe(lambda mutation, entity: seen.append((mutation, entity.key if entity else None)))

        store.upsert(State(name="S1", description="First."))
        store.upsert(State(name="S1", description="Again."))
        with pytest.raises(MissingRequiredField):
            store.upsert(State(name="S2", description=""))
        store.remove("S1")
        store.remove("S1")
        store.clear()

        assert seen == [
            (Mutation.ADDED, "S1"),
            (Mutation.UPDATED, "S1"),
            (Mutation.REMOVED, "S1"),
            (Mutation.CLEARED, None),
        ]

    def test_replace_all_skips_rules_and_collapses_duplicates(self):
        store = StateStore([State(name="OLD", description="Old.")])
        store.replace_all([
            State(name="LONGNAME12", description=""),
            State(name="S1", description="First."),
            State(name="S1", description="Second."),
        ])
        assert store.keys() == ["LONGNAME12", "S1"]
        assert store.get("S1").description == "Second."


# --- Symbols ---

class TestSymbolStore:
    def test_symbol_must_be_single_character(self):
        store = SymbolStore()
        with pytest.raises(LengthViolation):
            store.upsert(Symbol(character="ab", description="Two."))
        with pytest.raises(MissingRequiredField):
            store.upsert(Symbol(character="", description="None."))
        with pytest.raises(MissingRequiredField):
            store.upsert(Symbol(character="a", description=""))

    def test_same_character_updates(self):
        store = SymbolStore()
        store.upsert(Symbol(character="a", description="Symbol a."))
        assert store.upsert(Symbol(character="a", description="Letter a.")) == Mutation.UPDATED
        assert [s.description for s in store.list()] == ["Letter a."]

    def test_ordering(self):
        store = SymbolStore()
        for c in "b1Aa":
            store.upsert(Symbol(character=c, description=f"Symbol {c}."))
        assert store.keys() == ["1", "A", "a", "b"]


# --- Transitions ---

class TestTransitionStore:
    def test_existing_key_overwrites_target_and_description(self):
        store = TransitionStore()
        assert store.upsert(transition("S1", "0", "S2", "Zero.")) == Mutation.ADDED
        assert store.upsert(transition("S1", "0", "S1", "Loop.")) == Mutation.UPDATED
        assert len(store) == 1
        updated = store.get(("S1", "0"))
        assert updated.subsequent_state == "S1"
        assert updated.description == "Loop."

    def test_add_requires_all_three_keys(self):
        store = TransitionStore()
        for args in [("", "0", "S1"), ("S1", "", "S1"), ("S1", "0", "")]:
            with pytest.raises(MissingRequiredField) as exc:
                store.upsert(transition(*args))
            assert exc.value.message == "Please select the initial state, input symbol, and subsequent state."
        assert len(store) == 0

    def test_description_is_optional(self):
        store = TransitionStore()
        store.upsert(transition("S1", "0", "S2"))
        assert store.get(("S1", "0")).description == ""

    def test_no_referential_check(self):
        store = TransitionStore()
        store.upsert(transition("NOPE", "x", "GONE"))
        assert ("NOPE", "x") in store

    def test_sorted_by_state_then_symbol(self):
        store = TransitionStore()
        store.upsert(transition("S2", "1", "S2"))
        store.upsert(transition("S1", "1", "S1"))
        store.upsert(transition("S2", "0", "S1"))
        store.upsert(transition("S1", "0", "S2"))
        assert store.keys() == [("S1", "0"), ("S1", "1"), ("S2", "0"), ("S2", "1")]

    def test_remove_by_pair(self):
        store = TransitionStore()
        store.upsert(transition("S1", "0", "S2"))
        assert store.remove("S1", "0").subsequent_state == "S2"
        assert store.remove("S1", "0") is None
        assert len(store) == 0


def test_entity_store_needs_insert_rule():
    with pytest.raises(TypeError):
        EntityStore()
