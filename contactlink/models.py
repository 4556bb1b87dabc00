"""Domain records shared by the classifier, resolver, merge coordinator and stores."""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

CONTACT_FIELDS = ("name", "email", "phone", "address", "city", "state", "zip")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


@dataclass(frozen=True)
class ContactRecord:
    """Structured contact pulled out of one submission. Never persisted."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in CONTACT_FIELDS)


@dataclass
class Customer:
    id: str
    tenant_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    notes: Optional[str] = None
    submission_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    last_submission_at: Optional[datetime] = None
    # ids of customers already merged into this one
    merged_from: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = _iso(self.created_at)
        data["updated_at"] = _iso(self.updated_at)
        data["last_submission_at"] = _iso(self.last_submission_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["submission_count"] = int(values.get("submission_count") or 0)
        values["merged_from"] = list(values.get("merged_from") or [])
        for key in ("created_at", "updated_at"):
            values[key] = _parse_dt(values.get(key)) or datetime.now()
        values["last_submission_at"] = _parse_dt(values.get("last_submission_at"))
        return cls(**values)


@dataclass
class Submission:
    id: str
    tenant_id: str
    customer_id: Optional[str] = None
    form_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    submitted_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["submitted_at"] = _iso(self.submitted_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Submission":
        return cls(
            id=str(data["id"]),
            tenant_id=str(data["tenant_id"]),
            customer_id=data.get("customer_id"),
            form_id=data.get("form_id"),
            data=dict(data.get("data") or {}),
            submitted_at=_parse_dt(data.get("submitted_at")) or datetime.now(),
        )


@dataclass
class Invoice:
    id: str
    tenant_id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["updated_at"] = _iso(self.updated_at)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Invoice":
        return cls(
            id=str(data["id"]),
            tenant_id=str(data["tenant_id"]),
            customer_id=data.get("customer_id"),
            customer_name=data.get("customer_name"),
            customer_email=data.get("customer_email"),
            customer_phone=data.get("customer_phone"),
            data=dict(data.get("data") or {}),
            updated_at=_parse_dt(data.get("updated_at")) or datetime.now(),
        )


@dataclass
class MergeResult:
    target: Customer
    repointed_submissions: int
    repointed_invoices: int
