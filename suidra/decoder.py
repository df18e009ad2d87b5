"""
SUIDRA — Ledger Payload Decoder.

Schema-checked mapping from raw ledger objects to Form / Question /
FormRegistry records. Shape problems raise ``DecodeError``; absent or
wrongly-typed objects raise ``NotFound``. Nothing is cast on a best-effort
basis.
"""

from __future__ import annotations

from typing import Any, Optional

from suidra.exceptions import DecodeError, NotFound
from suidra.models import Form, FormRegistry, LedgerObject, Question


def decode_form(obj: LedgerObject, expected_type: Optional[str] = None) -> Form:
    """Decode a ``Form`` object.

    Args:
        obj: Raw object from the gateway.
        expected_type: Full struct tag. When omitted any ``::form::Form``
            struct is accepted.

    Raises:
        NotFound: If the object does not exist or is not a Form.
        DecodeError: If the fields do not have the Form shape.
    """
    _check_type(obj, expected_type, "::form::Form")
    fields = obj.fields

    questions = [
        decode_question(raw, position) for position, raw in enumerate(_list(fields, "questions"))
    ]
    return Form(
        id=obj.object_id,
        title=_text(fields, "title"),
        description=_text(fields, "description"),
        author=_text(fields, "author"),
        questions=questions,
        is_active=_bool(fields.get("is_active", False), "is_active"),
    )


def decode_question(raw: Any, position: int = 0) -> Question:
    """Decode one element of a Form's ``questions`` vector."""
    fields = _unwrap(raw)
    if not isinstance(fields, dict):
        raise DecodeError(f"Question #{position} is not a struct: {raw!r}")

    options = [_plain_text(o, f"options[{i}]") for i, o in enumerate(_list(fields, "options"))]
    votes = [_u64(v, f"votes[{i}]") for i, v in enumerate(_list(fields, "votes", required=False))]
    if not votes and "votes" not in fields:
        votes = [0] * len(options)
    if len(votes) != len(options):
        raise DecodeError(
            f"Question #{position} has {len(options)} options but {len(votes)} vote counts"
        )

    voters = _list(fields, "addresses", required=False)
    return Question(
        id=_object_id(fields.get("id"), f"questions[{position}].id"),
        title=_text(fields, "title"),
        description=_text(fields, "description"),
        options=options,
        votes=votes,
        voters={_plain_text(a, "addresses") for a in voters},
    )


def decode_registry(obj: LedgerObject, expected_type: Optional[str] = None) -> FormRegistry:
    """Decode the ``FormRegistry`` singleton."""
    _check_type(obj, expected_type, "::form::FormRegistry")
    fields = obj.fields
    form_ids = [_object_id(raw, "forms") for raw in _list(fields, "forms", required=False)]
    return FormRegistry(
        id=obj.object_id,
        form_ids=form_ids,
        counter=_u64(fields.get("counter", len(form_ids)), "counter"),
    )


# ─── Field Helpers ───────────────────────────────────────────────────


def _check_type(obj: LedgerObject, expected_type: Optional[str], suffix: str) -> None:
    if not obj.exists:
        raise NotFound(obj.object_id)
    if expected_type:
        if obj.type_tag != expected_type:
            raise NotFound(obj.object_id, f"type {obj.type_tag or '?'} is not {expected_type}")
    elif not obj.type_tag.endswith(suffix):
        raise NotFound(obj.object_id, f"type {obj.type_tag or '?'} is not a {suffix[2:]}")


def _unwrap(value: Any) -> Any:
    """Nested Move structs arrive as ``{"type": ..., "fields": {...}}``."""
    if isinstance(value, dict) and isinstance(value.get("fields"), dict):
        return value["fields"]
    return value


def _list(fields: dict[str, Any], name: str, required: bool = True) -> list[Any]:
    value = _unwrap(fields.get(name))
    if value is None:
        if required:
            raise DecodeError(f"Missing field '{name}'")
        return []
    # VecSet / VecMap wrap their elements in ``contents``
    if isinstance(value, dict) and "contents" in value:
        value = value["contents"]
    if not isinstance(value, list):
        raise DecodeError(f"Field '{name}' is not a vector: {value!r}")
    return value


def _text(fields: dict[str, Any], name: str) -> str:
    if name not in fields:
        raise DecodeError(f"Missing field '{name}'")
    return _plain_text(fields[name], name)


def _plain_text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise DecodeError(f"Field '{name}' is not a string: {value!r}")
    return value


def _u64(value: Any, name: str) -> int:
    # u64 values are serialized as decimal strings
    if isinstance(value, bool):
        raise DecodeError(f"Field '{name}' is not an integer: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.isdigit():
        number = int(value)
    else:
        raise DecodeError(f"Field '{name}' is not an integer: {value!r}")
    if number < 0:
        raise DecodeError(f"Field '{name}' is negative: {number}")
    return number


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise DecodeError(f"Field '{name}' is not a boolean: {value!r}")
    return value


def _object_id(value: Any, name: str) -> str:
    """Accept ``"0x.."``, ``{"id": "0x.."}`` and ``{"id": {"id": "0x.."}}``."""
    value = _unwrap(value)
    while isinstance(value, dict) and "id" in value:
        value = _unwrap(value["id"])
    if isinstance(value, dict) and "bytes" in value:
        value = value["bytes"]
    if not isinstance(value, str) or not value:
        raise DecodeError(f"Field '{name}' is not an object id: {value!r}")
    return value
