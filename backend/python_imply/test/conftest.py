import sys
import os

import pytest

# Ensure the project root (dfa_editor package, api.py, main.py) is on sys.path
HERE = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(HERE, ".."))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from dfa_editor.config import EditorSettings  # noqa: E402
from dfa_editor.editor import DfaEditor  # noqa: E402


@pytest.fixture
def settings():
    return EditorSettings()


@pytest.fixture
def editor(settings):
    return DfaEditor(settings=settings)


@pytest.fixture
def even_zeros_editor(editor):
    """Editor holding the even-zeros DFA built through edits."""
    editor.upsert_symbol("0", "The 0 symbol.")
    editor.upsert_symbol("1", "The 1 symbol.")
    editor.upsert_state("S1", "Even number of zeros read.")
    editor.upsert_state("S2", "Odd number of zeros read.")
    editor.upsert_transition("S1", "0", "S2", "Input of symbol 0.")
    editor.upsert_transition("S1", "1", "S1", "Input of symbol 1.")
    editor.upsert_transition("S2", "0", "S1", "Input of symbol 0.")
    editor.upsert_transition("S2", "1", "S2", "Input of symbol 1.")
    editor.set_start_state("S1")
    editor.set_accept_states(["S1"])
    editor.set_description("A DFA for checking the input of an even number of zeros.")
    return editor
