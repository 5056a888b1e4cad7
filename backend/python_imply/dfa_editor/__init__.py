"""
DFA editor core.
Centralized exports for the authoring and validation model.
"""

from .models import (
    Dfa,
    State,
    Symbol,
    Transition,
)

from .exceptions import (
    DfaEditorError,
    ValidationError,
    MissingRequiredField,
    LengthViolation,
    StructuralIncompleteness,
    DanglingReference,
    MalformedDocument,
    SubmissionRefused,
    GenerationServiceError,
    ServiceUnavailable,
)

from .identifiers import successor, next_identifier

from .store import (
    Mutation,
    EntityStore,
    StateStore,
    SymbolStore,
    TransitionStore,
)

from .reference_index import Picker, PickerOption, ReferenceIndex

from .validator import (
    DfaValidator,
    TransitionCheck,
    check_transitions,
)

from .serializer import to_json, from_json

from .editor import DfaEditor, EditorSnapshot, LoadResult

__all__ = [
    # Models
    "Dfa",
    "State",
    "Symbol",
    "Transition",
    # Errors
    "DfaEditorError",
    "ValidationError",
    "MissingRequiredField",
    "LengthViolation",
    "StructuralIncompleteness",
    "DanglingReference",
    "MalformedDocument",
    "SubmissionRefused",
    "GenerationServiceError",
    "ServiceUnavailable",
    # Identifiers
    "successor",
    "next_identifier",
    # Stores
    "Mutation",
    "EntityStore",
    "StateStore",
    "SymbolStore",
    "TransitionStore",
    # Reference index
    "Picker",
    "PickerOption",
    "ReferenceIndex",
    # Validation
    "DfaValidator",
    "TransitionCheck",
    "check_transitions",
    # Serialization
    "to_json",
    "from_json",
    # Editor
    "DfaEditor",
    "EditorSnapshot",
    "LoadResult",
]
