"""
Field Classifier.

Responsibilities:
- Extract a ContactRecord from a tenant-defined form schema and the raw
  values of one submission.
- Keep phone-number fields out of name matching.

Non-Responsibilities:
- No storage access.
- No identity decisions.

Invariant:
classify() is total and deterministic: malformed fields or values only
leave the matching ContactRecord fields empty.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from .logger import get_logger
from .models import ContactRecord
from .normalize import as_text, looks_like_phone
from .schema import Field, FieldKind, SchemaInput, load_schema

logger = get_logger()

NAME_KEYWORDS = ("name", "full name")
CUSTOMER_CONTEXT = ("customer", "client")
NOT_A_NAME = (
    "number",
    "amount",
    "price",
    "total",
    "invoice",
    "order",
    "quantity",
    "hours",
    "time",
    "phone",
    "mobile",
    "contact",
)
PHONE_LABELS = ("phone", "mobile", "contact number")
EMAIL_SYNONYMS = ("email", "e-mail", "email address")

# checked in order, first match per category wins
ADDRESS_LABELS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("address", ("address", "location", "property")),
    ("city", ("city",)),
    ("state", ("state", "province")),
    ("zip", ("zip", "postal", "postcode")),
)
STRUCTURED_ADDRESS_KEYS = (
    ("address", "street"),
    ("city", "city"),
    ("state", "state"),
    ("zip", "zip"),
)

NameRule = Callable[[Field, Any], Optional[str]]


def _name_from_full_name(field: Field, value: Any) -> Optional[str]:
    if not isinstance(value, Mapping):
        return None
    first = as_text(value.get("firstName")) or ""
    last = as_text(value.get("lastName")) or ""
    full = f"{first} {last}".strip()
    if not full or looks_like_phone(full):
        return None
    return full


def _is_customer_name_label(field: Field) -> bool:
    label = field.label_lower
    if any(word in label or word in field.id_lower for word in NOT_A_NAME):
        return False
    has_name = any(keyword in label for keyword in NAME_KEYWORDS)
    has_context = any(word in label for word in CUSTOMER_CONTEXT) or label == "name"
    return has_name and has_context


def _name_from_text(field: Field, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not _is_customer_name_label(field):
        return None
    candidate = value.strip()
    if looks_like_phone(candidate):
        logger.debug("Rejected phone-like name value", field=field.label)
        return None
    return candidate or None


# Name passes run in order; the first pass that yields a name wins.
NAME_PASSES: Tuple[Tuple[FieldKind, NameRule], ...] = (
    (FieldKind.FULL_NAME, _name_from_full_name),
    (FieldKind.TEXT, _name_from_text),
)


def _is_phone_field(field: Field, value: Any) -> bool:
    if field.kind is FieldKind.PHONE:
        return True
    if any(word in field.label_lower for word in PHONE_LABELS):
        return True
    return looks_like_phone(value)


def _email_value(field: Field, value: Any) -> Optional[str]:
    if field.kind is FieldKind.NUMBER:
        return None
    if field.kind is not FieldKind.EMAIL and not any(
        s in field.label_lower or s in field.id_lower for s in EMAIL_SYNONYMS
    ):
        return None
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _address_by_label(field: Field, value: Any) -> Dict[str, str]:
    text = value.strip() if isinstance(value, str) else None
    if not text:
        return {}
    parts: Dict[str, str] = {}
    for category, words in ADDRESS_LABELS:
        if any(word in field.label_lower for word in words):
            parts[category] = text
    return parts


def _address_structured(field: Field, value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    parts: Dict[str, str] = {}
    for category, key in STRUCTURED_ADDRESS_KEYS:
        text = as_text(value.get(key))
        if text:
            parts[category] = text
    return parts


ADDRESS_RULES: Dict[FieldKind, Callable[[Field, Any], Dict[str, str]]] = {
    FieldKind.ADDRESS: _address_structured,
}


def _find_phone(fields: List[Field], values: Mapping[str, Any]) -> Tuple[Optional[str], Set[str]]:
    phone: Optional[str] = None
    phone_ids: Set[str] = set()
    for field in fields:
        value = values.get(field.id)
        if not _is_phone_field(field, value):
            continue
        phone_ids.add(field.id)
        if phone is None:
            phone = as_text(value)
    return phone, phone_ids


def _find_name(fields: List[Field], values: Mapping[str, Any], phone_ids: Set[str]) -> Optional[str]:
    for kind, rule in NAME_PASSES:
        for field in fields:
            if field.id in phone_ids or field.kind is not kind:
                continue
            name = rule(field, values.get(field.id))
            if name:
                logger.debug("Name found", field=field.label, kind=kind.value)
                return name
    return None


def _find_email(fields: List[Field], values: Mapping[str, Any]) -> Optional[str]:
    for field in fields:
        email = _email_value(field, values.get(field.id))
        if email:
            return email
    return None


def _find_address(fields: List[Field], values: Mapping[str, Any], skip_ids: Set[str]) -> Dict[str, str]:
    found: Dict[str, str] = {}
    structured: Dict[str, str] = {}
    for field in fields:
        if field.id in skip_ids:
            continue
        value = values.get(field.id)
        for category, text in _address_by_label(field, value).items():
            found.setdefault(category, text)
        rule = ADDRESS_RULES.get(field.kind)
        if rule:
            for category, text in rule(field, value).items():
                structured.setdefault(category, text)
    for category, text in structured.items():
        found.setdefault(category, text)
    return found


def classify(schema: SchemaInput, values: Optional[Mapping[str, Any]]) -> ContactRecord:
    """
    Extract a ContactRecord from a form schema and one submission's values.

    Args:
        schema: Ordered form fields, as Field objects or `{id, label, type}` dicts
        values: Submitted values keyed by field id

    Returns:
        ContactRecord; fields that could not be extracted are None
    """
    fields = load_schema(schema)
    if not isinstance(values, Mapping):
        values = {}

    phone, phone_ids = _find_phone(fields, values)
    name = _find_name(fields, values, phone_ids)
    if name and looks_like_phone(name):
        logger.warning("Discarding phone-like name", name=name)
        name = None
    email = _find_email(fields, values)
    email_ids = {f.id for f in fields if _email_value(f, values.get(f.id))}
    address = _find_address(fields, values, email_ids)

    contact = ContactRecord(name=name, email=email, phone=phone, **address)
    logger.debug("Classified submission", **contact.as_dict())
    return contact
