"""Conformance finding types shared by every check."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

Details = tuple[tuple[str, tuple[str, ...]], ...]


class Severity(StrEnum):
    FAIL = "fail"
    WARN = "warn"


class Category(StrEnum):
    BASE_CLASS = "baseClass"
    IMMUTABILITY = "immutability"
    WIRING = "wiring"
    DRIFT = "drift"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class ConformanceFinding:
    """One conformance result; frozen so reports can be shared freely."""

    severity: Severity
    category: Category
    subject_name: str
    message: str
    kind: str | None = None
    location: str | None = None
    details: Details = ()

    @property
    def is_failure(self) -> bool:
        return self.severity is Severity.FAIL

    def details_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self.details}

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "severity": self.severity.value,
            "category": self.category.value,
            "subject_name": self.subject_name,
            "message": self.message,
        }
        if self.kind is not None:
            payload["kind"] = self.kind
        if self.location is not None:
            payload["location"] = self.location
        if self.details:
            payload["details"] = self.details_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> ConformanceFinding:
        severity = payload.get("severity")
        category = payload.get("category")
        subject = payload.get("subject_name")
        message = payload.get("message")
        if not isinstance(severity, str) or not isinstance(category, str):
            raise ValueError("ConformanceFinding severity/category must be strings")
        if not isinstance(subject, str) or not isinstance(message, str):
            raise ValueError("ConformanceFinding subject_name/message must be strings")
        kind = payload.get("kind")
        location = payload.get("location")
        details_raw = payload.get("details", {})
        if not isinstance(details_raw, Mapping):
            raise ValueError("ConformanceFinding.details must be an object")
        return cls(
            severity=Severity(severity),
            category=Category(category),
            subject_name=subject,
            message=message,
            kind=kind if isinstance(kind, str) else None,
            location=location if isinstance(location, str) else None,
            details=make_details(
                {
                    str(key): [str(item) for item in value]
                    for key, value in details_raw.items()
                    if isinstance(value, Sequence) and not isinstance(value, str)
                }
            ),
        )


def make_details(values: Mapping[str, Sequence[str]]) -> Details:
    return tuple((key, tuple(values[key])) for key in sorted(values))


__all__ = ["Category", "ConformanceFinding", "Details", "Severity", "make_details"]
