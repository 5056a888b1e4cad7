"""
Canonical JSON form of a DFA.

Documents always carry the keys alphabet, states, transitions, startState,
acceptStates and description, in that order, with every array in canonical
order and two-space indentation.
"""

import json
from typing import Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MalformedDocument
from .models import Dfa

log = structlog.get_logger()

INDENT = 2


def to_document(dfa: Dfa) -> dict:
    return dfa.canonical().to_document()


def to_json(dfa: Dfa) -> str:
    return json.dumps(to_document(dfa), indent=INDENT, ensure_ascii=False)


def from_json(text: Union[str, bytes]) -> Dfa:
    """
    Parse a document without touching any editor state. Raises
    MalformedDocument when the text is not JSON or not in the canonical shape.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        log.warning("document_not_json", error=str(e))
        raise MalformedDocument(f"Unable to read the DFA. {e}") from e
    return from_document(data)


def from_document(data: object) -> Dfa:
    if not isinstance(data, dict):
        raise MalformedDocument("Unable to read the DFA. The document must be a JSON object.")
    try:
        return Dfa.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'document'}: {err['msg']}" for err in e.errors()
        )
        log.warning("document_shape_invalid", error_count=e.error_count())
        raise MalformedDocument(f"Unable to read the DFA. {problems}") from e
