"""
Form schema types.

A tenant's form is an ordered list of fields `{id, label, type}`. The raw
`type` strings are free-form, so they are folded into the closed set of
`FieldKind` values the classifier knows how to read.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence, Union

from .errors import ValidationError


class FieldKind(Enum):
    TEXT = "text"
    FULL_NAME = "full-name"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    ADDRESS = "address"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, raw_type: Any) -> "FieldKind":
        if not isinstance(raw_type, str):
            return cls.UNKNOWN
        key = raw_type.strip().lower()
        if not key:
            return cls.UNKNOWN
        return _TYPE_ALIASES.get(key, cls.OTHER)


_TYPE_ALIASES: Dict[str, FieldKind] = {
    "text": FieldKind.TEXT,
    "short-text": FieldKind.TEXT,
    "long-text": FieldKind.TEXT,
    "textarea": FieldKind.TEXT,
    "full-name": FieldKind.FULL_NAME,
    "email": FieldKind.EMAIL,
    "phone": FieldKind.PHONE,
    "tel": FieldKind.PHONE,
    "number": FieldKind.NUMBER,
    "address": FieldKind.ADDRESS,
}


@dataclass(frozen=True)
class Field:
    id: str
    label: str = ""
    type: str = ""

    @property
    def kind(self) -> FieldKind:
        return FieldKind.from_type(self.type)

    @property
    def label_lower(self) -> str:
        return self.label.strip().lower()

    @property
    def id_lower(self) -> str:
        return self.id.lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Field":
        label = data.get("label")
        raw_type = data.get("type")
        return cls(
            id=str(data["id"]),
            label=label if isinstance(label, str) else "",
            type=raw_type if isinstance(raw_type, str) else "",
        )


SchemaInput = Union[Sequence[Field], Sequence[Mapping[str, Any]], None]


def load_schema(raw: Any) -> List[Field]:
    """
    Lenient schema loader used by the classifier.

    Entries without an id are dropped; anything that is not a list yields an
    empty schema.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    fields: List[Field] = []
    for entry in raw:
        if isinstance(entry, Field):
            fields.append(entry)
        elif isinstance(entry, Mapping) and _has_id(entry):
            fields.append(Field.from_dict(entry))
    return fields


def _has_id(entry: Mapping[str, Any]) -> bool:
    value = entry.get("id")
    return value is not None and not isinstance(value, bool) and str(value) != ""


def validate_schema(raw: Any) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    if not isinstance(raw, (list, tuple)):
        return ["Schema must be a list of fields"]

    errors: List[str] = []
    seen: set = set()
    for index, entry in enumerate(raw):
        if isinstance(entry, Field):
            entry = {"id": entry.id, "label": entry.label, "type": entry.type}
        if not isinstance(entry, Mapping):
            errors.append(f"Field #{index} must be an object")
            continue
        if not _has_id(entry):
            errors.append(f"Field #{index} is missing an id")
            continue
        field_id = str(entry["id"])
        if field_id in seen:
            errors.append(f"Duplicate field id: {field_id}")
        seen.add(field_id)
        for key in ("label", "type"):
            if key in entry and entry[key] is not None and not isinstance(entry[key], str):
                errors.append(f"Field '{field_id}' {key} must be a string if provided")
    return errors


def load_schema_strict(raw: Any) -> List[Field]:
    errors = validate_schema(raw)
    if errors:
        raise ValidationError("Malformed form schema", details={"errors": errors})
    return load_schema(raw)

