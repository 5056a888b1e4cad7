"""
Editing session tests: the three end-to-end scenarios plus the pipeline that
keeps the pickers, the transition check and the document in step.
"""

import json

import pytest

from dfa_editor.exceptions import MalformedDocument, MissingRequiredField
from dfa_editor.reference_index import Picker
from dfa_editor.samples import get_sample, sample_names
from dfa_editor.store import Mutation


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

def test_build_even_zeros_dfa(even_zeros_editor):
    assert even_zeros_editor.validate() is None
    assert even_zeros_editor.check().ok
    assert even_zeros_editor.to_json() == get_sample("evenZerosCheck").read_text().rstrip("\n")


def test_transition_to_unknown_state(even_zeros_editor):
    even_zeros_editor.upsert_transition("S1", "0", "S9")
    assert even_zeros_editor.check().missing_subsequent_state is True
    assert even_zeros_editor.check().missing_initial_state is False
    assert even_zeros_editor.validate() == "There are transitions with invalid subsequent state"


def test_transition_from_unknown_state(even_zeros_editor):
    even_zeros_editor.upsert_transition("S9", "0", "S1")
    assert even_zeros_editor.check().missing_initial_state is True
    assert even_zeros_editor.validate() == "There are transitions with invalid initial state"


def test_malformed_load_leaves_model_untouched(even_zeros_editor):
    before = even_zeros_editor.to_json()
    document = json.loads(before)
    del document["states"]

    with pytest.raises(MalformedDocument):
        even_zeros_editor.load_json(json.dumps(document))

    assert even_zeros_editor.to_json() == before
    assert even_zeros_editor.index.values(Picker.START_STATE) == ["S1", "S2"]


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------

class TestEdits:
    def test_new_editor_is_empty(self, editor, settings):
        document = json.loads(editor.to_json())
        assert document["states"] == []
        assert document["description"] == settings.default_description
        assert editor.validate() == "At least one state must be specified."

    def test_upsert_returns_mutation(self, editor):
        assert editor.upsert_state("S1", "One.") == Mutation.ADDED
        assert editor.upsert_state("S1", "Changed.") == Mutation.UPDATED
        assert editor.begin_edit_state("S1").description == "Changed."

    def test_rejected_edit_changes_nothing(self, editor):
        before = editor.to_json()
        with pytest.raises(MissingRequiredField):
            editor.upsert_state("S1", "")
        assert editor.to_json() == before
        assert editor.index.values(Picker.CURRENT_STATE) == []

    def test_removing_state_leaves_dangling_transitions(self, even_zeros_editor):
        even_zeros_editor.remove_state("S2")
        check = even_zeros_editor.check()
        assert check.missing_initial_state and check.missing_subsequent_state
        assert even_zeros_editor.validate() == "There are transitions with invalid initial and subsequent state"

        dangling = {(d.current_state, d.input_symbol): d.fields for d in even_zeros_editor.dangling_transitions()}
        assert dangling == {
            ("S1", "0"): ["subsequentStateName"],
            ("S2", "0"): ["currentStateName"],
            ("S2", "1"): ["currentStateName", "subsequentStateName"],
        }

    def test_removing_symbol(self, even_zeros_editor):
        assert even_zeros_editor.remove_symbol("1").description == "The 1 symbol."
        assert even_zeros_editor.remove_symbol("1") is None
        assert even_zeros_editor.validate() == "There are transitions with invalid input symbol"
        assert even_zeros_editor.index.values(Picker.INPUT_SYMBOL) == ["0"]

    def test_transition_update_and_remove(self, even_zeros_editor):
        assert even_zeros_editor.upsert_transition("S1", "0", "S1", "Loop.") == Mutation.UPDATED
        assert even_zeros_editor.begin_edit_transition("S1", "0").subsequent_state == "S1"
        assert even_zeros_editor.remove_transition("S1", "0") is not None
        assert even_zeros_editor.begin_edit_transition("S1", "0") is None
        assert len(even_zeros_editor.transitions) == 3

    def test_accept_states_are_a_set(self, even_zeros_editor):
        even_zeros_editor.set_accept_states(["S2", "S1", "S2"])
        assert json.loads(even_zeros_editor.to_json())["acceptStates"] == ["S1", "S2"]

    def test_unknown_start_state_is_reported(self, even_zeros_editor):
        even_zeros_editor.set_start_state("S7")
        assert even_zeros_editor.validate() == "The start state must be one of the specified states."

    def test_pickers_follow_edits(self, even_zeros_editor):
        index = even_zeros_editor.index
        assert index.label(Picker.START_STATE, "S1") == "S1 - Even number of zeros read."
        assert index.label(Picker.CURRENT_STATE, "S1") == "S1"
        even_zeros_editor.upsert_state("S1", "Even.")
        assert index.label(Picker.ACCEPT_STATES, "S1") == "S1 - Even."


class TestSuggestions:
    def test_first_suggestions(self, editor):
        state = editor.suggest_state()
        assert (state.name, state.description) == ("S0", "State 0.")
        symbol = editor.suggest_symbol()
        assert (symbol.character, symbol.description) == ("a", "Symbol a.")

    def test_suggestion_skips_taken_keys(self, editor):
        editor.upsert_state("S0", "Zero.")
        editor.upsert_state("S1", "One.")
        assert editor.suggest_state().name == "S2"

    def test_suggestion_does_not_insert(self, editor):
        editor.suggest_state()
        assert len(editor.states) == 0

    def test_symbols_exhausted(self, editor):
        for c in "abcdefghijklmnopqrstuvwxyz":
            editor.upsert_symbol(c, f"Symbol {c}.")
        assert editor.suggest_symbol() is None


class TestClearAndReset:
    def test_clear(self, even_zeros_editor):
        even_zeros_editor.clear()
        document = json.loads(even_zeros_editor.to_json())
        assert document == {
            "alphabet": [], "states": [], "transitions": [],
            "startState": "", "acceptStates": [], "description": "",
        }
        for picker in Picker:
            assert even_zeros_editor.index.values(picker) == []

    def test_reset_restores_default_description(self, even_zeros_editor, settings):
        even_zeros_editor.reset()
        assert even_zeros_editor.description == settings.default_description
        assert len(even_zeros_editor.states) == 0


class TestLoading:
    @pytest.mark.parametrize("name", sample_names())
    def test_samples_are_valid(self, editor, name):
        result = editor.load_sample(name)
        assert result.message is None
        assert editor.index.values(Picker.START_STATE) == [s.name for s in result.dfa.states]

    def test_load_replaces_session(self, even_zeros_editor):
        even_zeros_editor.load_sample("beverageVending")
        assert "S1" in even_zeros_editor.states
        assert even_zeros_editor.index.values(Picker.INPUT_SYMBOL) == ["A", "P", "R", "S"]
        assert "0" not in even_zeros_editor.symbols

    def test_invalid_document_still_loads(self, editor):
        document = json.loads(get_sample("evenZerosCheck").read_text())
        document["transitions"][0]["subsequentStateName"] = "S9"
        result = editor.load_json(json.dumps(document))
        assert result.message == "There are transitions with invalid subsequent state"
        assert editor.check().missing_subsequent_state is True

    def test_load_bypasses_insert_rules(self, editor):
        document = json.loads(get_sample("evenZerosCheck").read_text())
        document["states"].append({"name": "TOOLONGNAME", "description": ""})
        editor.load_json(json.dumps(document))
        assert "TOOLONGNAME" in editor.states

    def test_unknown_sample(self, editor):
        with pytest.raises(KeyError):
            editor.load_sample("nope")


def test_snapshot(even_zeros_editor):
    even_zeros_editor.upsert_transition("S1", "x", "S2")
    snapshot = even_zeros_editor.snapshot()
    assert snapshot.document == even_zeros_editor.to_json()
    assert snapshot.check.missing_input_symbol is True
    assert snapshot.message == "There are transitions with invalid input symbol"
    assert [(d.current_state, d.input_symbol) for d in snapshot.dangling] == [("S1", "x")]


def test_restoring_removed_state_clears_flags(even_zeros_editor):
    even_zeros_editor.remove_state("S2")
    assert not even_zeros_editor.check().ok
    even_zeros_editor.upsert_state("S2", "Odd number of zeros read.")
    assert even_zeros_editor.check().ok
    assert even_zeros_editor.validate() is None
