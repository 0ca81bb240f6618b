from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TicketStatus(str, Enum):
    NEW = "NEW"
    IN_REVIEW = "IN_REVIEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"

    @classmethod
    def parse(cls, value: Any) -> Optional["TicketStatus"]:
        """Return the matching status, or None for anything unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return None


class Category(str, Enum):
    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    HVAC = "HVAC"
    PEST = "Pest"
    FURNITURE = "Furniture"
    SAFETY = "Safety"
    OTHER = "Other"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


def _match_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").strip().lower()
    for member in enum_cls:
        if member.value.lower() == text:
            return member
    return default


def _string_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple, set)):
        value = [value]
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


class Classification(BaseModel):
    """Structured assessment of a ticket photo."""

    model_config = ConfigDict(populate_by_name=True)

    category: Category = Category.OTHER
    severity: Severity = Severity.LOW
    summary: str
    facilities_description: str = Field("", alias="facilitiesDescription")
    follow_up_questions: list[str] = Field(default_factory=list, alias="followUpQuestions")
    safety_notes: list[str] = Field(default_factory=list, alias="safetyNotes")

    # Out-of-vocabulary labels from the model degrade to the defaults
    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value):
        return _match_enum(Category, value, Category.OTHER)

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, value):
        return _match_enum(Severity, value, Severity.LOW)

    @field_validator("facilities_description", mode="before")
    @classmethod
    def _description(cls, value):
        return "" if value is None else str(value).strip()

    @field_validator("follow_up_questions", "safety_notes", mode="before")
    @classmethod
    def _lists(cls, value):
        return _string_list(value)

    def to_document(self) -> dict:
        """Ticket document fields carrying this classification."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "aiSummary": self.summary,
            "facilitiesDescription": self.facilities_description,
            "followUpQuestions": list(self.follow_up_questions),
            "safetyNotes": list(self.safety_notes),
        }


class StatusUpdate(BaseModel):
    status: Optional[str] = None
    note: Optional[str] = None
