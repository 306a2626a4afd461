# File: campus_events/services/form_responses.py
"""
Custom form answers.

Answers are checked against the event's field list at submission time.
Every field ends up with a value: checkboxes default to ``False`` and all
other kinds to ``""``. Unknown field names and values of the wrong shape
are rejected.
"""
from typing import Any, Dict, List, Optional, Union
from campus_events.core.exceptions import ValidationFailed
from campus_events.models.form_field import FormField, FieldKind, CHOICE_KINDS

Answer = Union[str, int, float, bool, List[str]]


def _text(field: FormField, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationFailed(f"Field '{field.name}' expects text")
    return value


def _number(field: FormField, value: Any) -> Union[int, float, str]:
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        raise ValidationFailed(f"Field '{field.name}' expects a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
    raise ValidationFailed(f"Field '{field.name}' expects a number")


def _single_choice(field: FormField, value: Any) -> str:
    if value is None or value == "":
        return ""
    if not isinstance(value, str) or value not in (field.choices or []):
        raise ValidationFailed(f"Field '{field.name}' must be one of: {', '.join(field.choices or [])}")
    return value


def _checkbox(field: FormField, value: Any) -> Union[bool, List[str]]:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        value = [value]
    if isinstance(value, list):
        invalid = [v for v in value if not isinstance(v, str) or v not in (field.choices or [])]
        if invalid:
            raise ValidationFailed(f"Field '{field.name}' has invalid choices: {invalid}")
        return value
    raise ValidationFailed(f"Field '{field.name}' expects true/false or a list of choices")


_COERCERS = {
    FieldKind.TEXT.value: _text,
    FieldKind.FILE.value: _text,
    FieldKind.NUMBER.value: _number,
    FieldKind.DROPDOWN.value: _single_choice,
    FieldKind.RADIO.value: _single_choice,
    FieldKind.CHECKBOX.value: _checkbox,
}


def validate_responses(fields: List[FormField], responses: Optional[Dict[str, Any]]) -> Optional[Dict[str, Answer]]:
    """Reshape raw answers into one typed value per field, ordered by position."""
    if responses is None:
        responses = {}
    if not isinstance(responses, dict):
        raise ValidationFailed("Form responses must be an object keyed by field name")

    if not fields:
        if responses:
            raise ValidationFailed("This event does not accept form responses")
        return None

    known = {f.name for f in fields}
    unknown = sorted(set(responses) - known)
    if unknown:
        raise ValidationFailed(f"Unknown form fields: {', '.join(unknown)}")

    shaped: Dict[str, Answer] = {}
    for field in sorted(fields, key=lambda f: f.position):
        coerce = _COERCERS.get(field.kind, _text)
        shaped[field.name] = coerce(field, responses.get(field.name))
    return shaped


def validate_field_definitions(fields) -> None:
    """Structural checks on a field list before it is stored."""
    names = [f.name for f in fields]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValidationFailed(f"Duplicate form field names: {', '.join(duplicates)}")

    for f in fields:
        kind = f.kind.value if isinstance(f.kind, FieldKind) else f.kind
        if kind in CHOICE_KINDS:
            if not f.choices:
                raise ValidationFailed(f"Field '{f.name}' requires at least one choice")
        elif f.choices:
            raise ValidationFailed(f"Field '{f.name}' of kind '{kind}' cannot have choices")
