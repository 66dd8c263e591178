"""
Data model for planwise - chat messages and the financial facts pulled from them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


Frequency = Literal["weekly", "monthly", "quarterly", "yearly"]
RiskLevel = Literal["low", "medium", "high", "unknown"]
Urgency = Literal["urgent", "high", "medium", "low"]
TimeUnit = Literal["years", "months", "weeks", "age"]


class RawMessage(BaseModel):
    """One chat message (user or assistant). Accepts ``{type, content}`` too."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: str = Field(
        validation_alias=AliasChoices("role", "type"),
    )
    text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("text", "content"),
    )
    timestamp: Any = None


class _Fact(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    amounts: List[float] = Field(default_factory=list)
    timestamp: Any = None
    # 100 critical, 75 important, 25 optional for the goal in focus; 50 otherwise
    goal_relevance: int = 50

    @property
    def primary_amount(self) -> float:
        """First parsed amount, the one the planners use."""
        return self.amounts[0] if self.amounts else 0.0


class TaxImplications(BaseModel):
    """What one stated income means after UK Income Tax and NI."""
    model_config = ConfigDict(frozen=True)

    annual_gross: float
    income_tax: int
    national_insurance: int
    annual_net: int
    monthly_net: int
    tax_band: Literal["personal_allowance", "basic_rate", "higher_rate", "additional_rate"]
    marginal_rate: float


class IncomeFact(_Fact):
    frequency: Frequency = "yearly"
    category: str = "other"
    uk_tax_implications: Optional[TaxImplications] = None


class ExpenseFact(_Fact):
    frequency: Frequency = "monthly"
    category: str = "other"


class Timeframe(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int
    unit: TimeUnit


class GoalFact(_Fact):
    type: List[str] = Field(default_factory=list)
    timeframes: List[Timeframe] = Field(default_factory=list)
    priority: Literal["high", "medium", "low"] = "low"
    uk_specific: Dict[str, Any] = Field(default_factory=dict)


class AssetFact(_Fact):
    type: str = "savings"


class DebtFact(_Fact):
    type: str = "general"
    priority: Literal["high", "medium", "low"] = "medium"


class RiskProfileFact(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    level: RiskLevel = "unknown"
    timestamp: Any = None
    goal_relevance: int = 50


class TimelineFact(BaseModel):
    """When the user wants a goal done, with how pressing that is."""
    model_config = ConfigDict(frozen=True)

    text: str
    value: int
    unit: TimeUnit
    urgency: Urgency
    goal_relevance: int = 50
    timestamp: Any = None


class ExtractionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_messages: int = 0
    user_messages: int = 0
    goal_focused: bool = False


class FinancialFacts(BaseModel):
    """Everything extracted from one conversation, in message order."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    income: List[IncomeFact] = Field(default_factory=list)
    expenses: List[ExpenseFact] = Field(default_factory=list)
    goals: List[GoalFact] = Field(default_factory=list)
    assets: List[AssetFact] = Field(default_factory=list)
    debts: List[DebtFact] = Field(default_factory=list)
    timeline: List[TimelineFact] = Field(default_factory=list)
    risk_tolerance: Optional[RiskProfileFact] = Field(
        default=None,
        validation_alias=AliasChoices("risk_tolerance", "riskTolerance"),
    )
    goal_context: Optional[str] = None
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    def section(self, key: str) -> Any:
        """Section by name; accepts the camelCase ``riskTolerance`` too."""
        if key == "riskTolerance":
            key = "risk_tolerance"
        return getattr(self, key, None)


class GoalType(str, Enum):
    RETIREMENT = "retirement"
    HOUSE = "house"
    INVESTMENT = "investment"
    PROTECTION = "protection"
    COMPREHENSIVE = "comprehensive"
    BASIC = "basic"

    @classmethod
    def parse(cls, value: Any) -> Optional["GoalType"]:
        """Map a goal name (including legacy aliases) to a member, or None."""
        if isinstance(value, cls):
            return value
        name = str(value or "").strip().lower()
        name = _GOAL_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return None


_GOAL_ALIASES = {
    "saving": "house",
    "savings": "house",
    "house_purchase": "house",
    "general": "basic",
}
