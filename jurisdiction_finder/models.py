"""
Typed data models for the jurisdiction search pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

FALLBACK_DISCLAIMER = "（※公式サイト確認が行えなかったため、一般ルールに基づく判定）"


class BusinessType(str, Enum):
    """Care-facility business types the service can research."""
    RESIDENTIAL_HOME = "residential_home"
    VISITING_NURSING = "visiting_nursing"
    VISITING_CARE = "visiting_care"

    @classmethod
    def parse(cls, value: Optional[str]) -> "BusinessType":
        """Return the matching variant, defaulting to residential_home."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.RESIDENTIAL_HOME


class MunicipalityClassification(str, Enum):
    DESIGNATED_CITY = "designated_city"
    CORE_CITY = "core_city"
    ORDINARY = "ordinary"


@dataclass(frozen=True)
class BusinessTypeConfig:
    """Static search and filtering configuration for one business type."""
    name: str
    search_terms: str
    jurisdiction_search_terms: str
    block_keywords: Tuple[str, ...] = ()
    detail_note: str = ""


@dataclass
class JurisdictionDecision:
    """Which body receives the application, and why."""
    jurisdiction: str
    is_city: bool
    reason: str
    source_url: Optional[str] = None

    def with_disclaimer(self) -> "JurisdictionDecision":
        return replace(self, reason=self.reason + FALLBACK_DISCLAIMER)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "jurisdiction": self.jurisdiction,
            "is_city": self.is_city,
            "reason": self.reason,
        }
        if self.source_url:
            data["source_url"] = self.source_url
        return data


@dataclass
class FlowStep:
    """One stage of the application procedure with its required documents."""
    step: str
    documents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "documents": list(self.documents)}


@dataclass
class SearchResult:
    """Normalized result returned to the caller and persisted in history."""
    jurisdiction: str
    flow: List[FlowStep]
    summary: str
    jurisdiction_detail: Optional[str] = None
    reference_url: Optional[str] = None
    reference_name: Optional[str] = None
    guideline_url: Optional[str] = None
    guideline_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "jurisdiction": self.jurisdiction,
            "flow": [step.to_dict() for step in self.flow],
            "summary": self.summary,
        }
        for key in (
            "jurisdiction_detail",
            "reference_url",
            "reference_name",
            "guideline_url",
            "guideline_name",
        ):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data


@dataclass
class SearchRequest:
    """Input to the two-phase pipeline."""
    prefecture: str
    city: str
    business_type: BusinessType = BusinessType.RESIDENTIAL_HOME


@dataclass
class HistoryRecord:
    """A persisted search result plus request parameters and checklist state."""
    id: str
    business_type: str
    prefecture: str
    city: str
    jurisdiction: str
    summary: str
    user_id: str = "anonymous"
    timestamp: Optional[str] = None
    jurisdiction_detail: Optional[str] = None
    reference_url: Optional[str] = None
    reference_name: Optional[str] = None
    guideline_url: Optional[str] = None
    guideline_name: Optional[str] = None
    flow: List[Dict[str, Any]] = field(default_factory=list)
    checked_steps: List[int] = field(default_factory=list)

    def to_row(self) -> Dict[str, Any]:
        """Row shape of the history table."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "business_type": self.business_type,
            "prefecture": self.prefecture,
            "city": self.city,
            "jurisdiction": self.jurisdiction,
            "jurisdiction_detail": self.jurisdiction_detail,
            "summary": self.summary,
            "reference_url": self.reference_url,
            "reference_name": self.reference_name,
            "guideline_url": self.guideline_url,
            "guideline_name": self.guideline_name,
            "flow": self.flow,
            "checked_steps": self.checked_steps,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "HistoryRecord":
        return cls(
            id=row["id"],
            user_id=row.get("user_id") or "anonymous",
            timestamp=row.get("timestamp"),
            business_type=row.get("business_type") or BusinessType.RESIDENTIAL_HOME.value,
            prefecture=row.get("prefecture") or "",
            city=row.get("city") or "",
            jurisdiction=row.get("jurisdiction") or "",
            jurisdiction_detail=row.get("jurisdiction_detail"),
            summary=row.get("summary") or "",
            reference_url=row.get("reference_url"),
            reference_name=row.get("reference_name"),
            guideline_url=row.get("guideline_url"),
            guideline_name=row.get("guideline_name"),
            flow=row.get("flow") or [],
            # Records saved before the checklist existed have no checked_steps
            checked_steps=row.get("checked_steps") or [],
        )
