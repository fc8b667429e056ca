"""
Journey Models

The persisted UserJourneyState aggregate and the records that hang off it.
Internally fields are snake_case with Decimal money; to_dict()/from_dict()
use the camelCase, ISO-8601 wire shape the browser persists.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ..models import CalculatorType

TEMPERATURES = ('cold', 'warm', 'hot')
URGENCIES = ('low', 'medium', 'high')
EMPLOYMENT_TYPES = ('employed', 'self-employed', 'director', 'retired')

EVENT_TYPES = (
    'calculator_started',
    'calculator_completed',
    'gate_triggered',
    'gate_completed',
    'gate_skipped',
    'pdf_downloaded',
    'consultation_requested',
    'dashboard_viewed',
    'journey_completed',
)


# =============================================================================
# WIRE HELPERS
# =============================================================================

def camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_datetime(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f"{value.microsecond // 1000:03d}Z"


def parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _num(value: Optional[Decimal]):
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _dec(value) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def json_safe(value):
    """JSON-safe copy of free-form data (calculator inputs, event data)."""
    if isinstance(value, Decimal):
        return _num(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


# =============================================================================
# PROFILE
# =============================================================================


@dataclass(frozen=True)
class UserProfile:
    """Contact and demographic data, collected progressively."""

    email: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[str] = None
    income: Optional[Decimal] = None
    income_range: Optional[str] = None
    employment: Optional[str] = None
    phone: Optional[str] = None
    best_time_to_call: Optional[str] = None
    primary_concern: Optional[str] = None
    current_providers: Optional[list[str]] = None
    urgency: Optional[str] = None
    consent_marketing: Optional[bool] = None
    consent_partners: Optional[bool] = None

    @classmethod
    def field_names(cls) -> dict:
        """Accepted key (snake_case or camelCase) -> field name."""
        names = {}
        for f in fields(cls):
            names[f.name] = f.name
            names[camel(f.name)] = f.name
        return names

    @classmethod
    def normalise(cls, updates: dict) -> dict:
        """Map incoming keys onto field names and coerce numeric fields."""
        names = cls.field_names()
        normalised = {}
        for key, value in updates.items():
            if key not in names:
                raise ValueError(f"Unknown profile field: {key}")
            name = names[key]
            if value is not None:
                if name == 'income':
                    value = _dec(value)
                elif name == 'age':
                    value = int(value)
                elif name == 'urgency' and value not in URGENCIES:
                    raise ValueError(f"urgency must be one of {URGENCIES}, got: {value}")
                elif name == 'employment' and value not in EMPLOYMENT_TYPES:
                    raise ValueError(f"employment must be one of {EMPLOYMENT_TYPES}, got: {value}")
                elif name == 'current_providers':
                    value = list(value)
            normalised[name] = value
        return normalised

    def merge(self, updates: dict) -> "UserProfile":
        """New profile with updates applied; None or an empty string never clears an existing value."""
        changes = {k: v for k, v in self.normalise(updates).items() if v is not None and v != ''}
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "UserProfile":
        return cls(**cls.normalise(data or {}))

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[camel(f.name)] = json_safe(value)
        return out


# =============================================================================
# CALCULATOR RESULTS (JOURNEY-SCOPED)
# =============================================================================


@dataclass(frozen=True)
class BreakdownLine:
    label: str
    value: Decimal
    description: str = ""


@dataclass(frozen=True)
class ResultSummary:
    """Headline figures kept from a calculator run."""

    primary_value: Decimal
    secondary_values: dict = field(default_factory=dict)
    breakdown: list[BreakdownLine] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)

    def secondary(self, key: str) -> Optional[Decimal]:
        return self.secondary_values.get(key)

    @classmethod
    def from_dict(cls, data: dict) -> "ResultSummary":
        return cls(
            primary_value=_dec(data.get('primaryValue', 0)),
            secondary_values={k: _dec(v) for k, v in (data.get('secondaryValues') or {}).items()},
            breakdown=[
                BreakdownLine(item['label'], _dec(item['value']), item.get('description', ''))
                for item in data.get('breakdown') or []
            ],
            insights=list(data.get('insights') or []),
        )

    def to_dict(self) -> dict:
        return {
            "primaryValue": _num(self.primary_value),
            "secondaryValues": {k: _num(v) for k, v in self.secondary_values.items()},
            "breakdown": [
                {"label": b.label, "value": _num(b.value), "description": b.description}
                for b in self.breakdown
            ],
            "insights": list(self.insights),
        }


@dataclass(frozen=True)
class JourneyCalculatorResult:
    calculator_type: CalculatorType
    completed: bool
    timestamp: datetime
    inputs: dict
    results: ResultSummary
    session_duration: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "JourneyCalculatorResult":
        return cls(
            calculator_type=CalculatorType(data['calculatorType']),
            completed=bool(data.get('completed', False)),
            timestamp=parse_datetime(data['timestamp']),
            inputs=dict(data.get('inputs') or {}),
            results=ResultSummary.from_dict(data.get('results') or {}),
            session_duration=data.get('sessionDuration'),
        )

    def to_dict(self) -> dict:
        out = {
            "calculatorType": self.calculator_type.value,
            "completed": self.completed,
            "timestamp": format_datetime(self.timestamp),
            "inputs": json_safe(self.inputs),
            "results": self.results.to_dict(),
        }
        if self.session_duration is not None:
            out["sessionDuration"] = self.session_duration
        return out


# =============================================================================
# FINANCIAL GOALS AND SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class FinancialGoals:
    """User-entered targets feeding the snapshot."""

    desired_retirement_income: Optional[Decimal] = None
    target_retirement_age: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FinancialGoals":
        data = data or {}
        age = data.get('targetRetirementAge')
        return cls(
            desired_retirement_income=_dec(data.get('desiredRetirementIncome')),
            target_retirement_age=int(age) if age is not None else None,
        )

    def to_dict(self) -> dict:
        out = {}
        if self.desired_retirement_income is not None:
            out["desiredRetirementIncome"] = _num(self.desired_retirement_income)
        if self.target_retirement_age is not None:
            out["targetRetirementAge"] = self.target_retirement_age
        return out


@dataclass(frozen=True)
class FinancialSnapshot:
    """Aggregate derived from calculator results, profile and goals."""

    state_pension_amount: Optional[Decimal] = None
    workplace_pension_value: Optional[Decimal] = None
    personal_pension_value: Optional[Decimal] = None
    total_current_pot: Optional[Decimal] = None
    projected_retirement_income: Optional[Decimal] = None
    desired_retirement_income: Optional[Decimal] = None
    retirement_age: Optional[int] = None
    years_to_retirement: Optional[int] = None
    pension_gap: Optional[Decimal] = None
    tax_relief: Optional[Decimal] = None
    potential_savings: Optional[Decimal] = None

    @property
    def gap(self) -> Decimal:
        return self.pension_gap or Decimal('0')

    @property
    def pot(self) -> Decimal:
        return self.total_current_pot or Decimal('0')

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FinancialSnapshot":
        data = data or {}
        values = {}
        for f in fields(cls):
            raw = data.get(camel(f.name))
            if raw is None:
                continue
            values[f.name] = int(raw) if f.name in ('retirement_age', 'years_to_retirement') else _dec(raw)
        return cls(**values)

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[camel(f.name)] = _num(value) if isinstance(value, Decimal) else value
        return out


# =============================================================================
# ROOT AGGREGATE
# =============================================================================


@dataclass(frozen=True)
class UserJourneyState:
    """
    One visitor's journey.

    Computed fields (completed_calculators, financial_snapshot, lead_score,
    temperature, qualification_tier, journey_progress and the next
    recommendations) are only ever set by derive_metrics.
    """

    user_id: str
    created_at: datetime
    last_updated: datetime
    profile: UserProfile = field(default_factory=UserProfile)
    calculators: dict = field(default_factory=dict)  # CalculatorType -> JourneyCalculatorResult
    goals: FinancialGoals = field(default_factory=FinancialGoals)
    financial_snapshot: FinancialSnapshot = field(default_factory=FinancialSnapshot)
    qualification_tier: int = 1
    lead_score: int = 0
    temperature: str = 'cold'
    journey_progress: int = 0
    completed_calculators: int = 0
    total_session_time: float = 0
    pageviews: int = 0
    next_recommended_calculator: Optional[CalculatorType] = None
    next_recommended_action: Optional[str] = None
    has_downloaded_pdf: bool = False
    has_requested_consultation: bool = False
    has_completed_full_journey: bool = False
    source: Optional[str] = None
    referrer: Optional[str] = None
    utm_params: Optional[dict] = None

    def result_for(self, calculator_type: CalculatorType) -> Optional[JourneyCalculatorResult]:
        return self.calculators.get(calculator_type)

    @classmethod
    def from_dict(cls, data: dict) -> "UserJourneyState":
        if not isinstance(data, dict):
            raise TypeError(f"Journey state must be an object, got: {type(data).__name__}")
        calculators = {}
        for key, value in (data.get('calculators') or {}).items():
            if value:
                calculators[CalculatorType(key)] = JourneyCalculatorResult.from_dict(value)

        snapshot_data = data.get('financialSnapshot') or {}
        goals = FinancialGoals.from_dict(data.get('goals'))
        if goals.desired_retirement_income is None and snapshot_data.get('desiredRetirementIncome') is not None:
            # Older states kept the desired income on the snapshot itself
            goals = replace(goals, desired_retirement_income=_dec(snapshot_data['desiredRetirementIncome']))

        next_calc = data.get('nextRecommendedCalculator')
        temperature = data.get('temperature', 'cold')
        if temperature not in TEMPERATURES:
            raise ValueError(f"temperature must be one of {TEMPERATURES}, got: {temperature}")

        return cls(
            user_id=data['userId'],
            created_at=parse_datetime(data['createdAt']),
            last_updated=parse_datetime(data.get('lastUpdated', data['createdAt'])),
            profile=UserProfile.from_dict(data.get('profile')),
            calculators=calculators,
            goals=goals,
            financial_snapshot=FinancialSnapshot.from_dict(snapshot_data),
            qualification_tier=int(data.get('qualificationTier', 1)),
            lead_score=int(data.get('leadScore', 0)),
            temperature=temperature,
            journey_progress=int(data.get('journeyProgress', 0)),
            completed_calculators=int(data.get('completedCalculators', 0)),
            total_session_time=float(data.get('totalSessionTime', 0)),
            pageviews=int(data.get('pageviews', 0)),
            next_recommended_calculator=CalculatorType(next_calc) if next_calc else None,
            next_recommended_action=data.get('nextRecommendedAction'),
            has_downloaded_pdf=bool(data.get('hasDownloadedPDF', False)),
            has_requested_consultation=bool(data.get('hasRequestedConsultation', False)),
            has_completed_full_journey=bool(data.get('hasCompletedFullJourney', False)),
            source=data.get('source'),
            referrer=data.get('referrer'),
            utm_params=data.get('utmParams'),
        )

    def to_dict(self) -> dict:
        out = {
            "userId": self.user_id,
            "createdAt": format_datetime(self.created_at),
            "lastUpdated": format_datetime(self.last_updated),
            "profile": self.profile.to_dict(),
            "calculators": {k.value: v.to_dict() for k, v in self.calculators.items()},
            "goals": self.goals.to_dict(),
            "financialSnapshot": self.financial_snapshot.to_dict(),
            "qualificationTier": self.qualification_tier,
            "leadScore": self.lead_score,
            "temperature": self.temperature,
            "journeyProgress": self.journey_progress,
            "completedCalculators": self.completed_calculators,
            "totalSessionTime": self.total_session_time,
            "pageviews": self.pageviews,
            "hasDownloadedPDF": self.has_downloaded_pdf,
            "hasRequestedConsultation": self.has_requested_consultation,
            "hasCompletedFullJourney": self.has_completed_full_journey,
        }
        if self.next_recommended_calculator is not None:
            out["nextRecommendedCalculator"] = self.next_recommended_calculator.value
        if self.next_recommended_action is not None:
            out["nextRecommendedAction"] = self.next_recommended_action
        for key, value in (("source", self.source), ("referrer", self.referrer),
                           ("utmParams", self.utm_params)):
            if value is not None:
                out[key] = value
        return out


# =============================================================================
# EVENTS, LEADS AND DECISIONS
# =============================================================================


@dataclass(frozen=True)
class JourneyEvent:
    event_type: str
    timestamp: datetime
    data: Optional[dict] = None

    def __post_init__(self):
        if self.event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown journey event type: {self.event_type}")

    @classmethod
    def from_dict(cls, data: dict) -> "JourneyEvent":
        return cls(data['eventType'], parse_datetime(data['timestamp']), data.get('data'))

    def to_dict(self) -> dict:
        out = {"eventType": self.event_type, "timestamp": format_datetime(self.timestamp)}
        if self.data is not None:
            out["data"] = json_safe(self.data)
        return out


@dataclass(frozen=True)
class LeadSubmission:
    """Profile data captured by a gate, tagged with the result that prompted it."""

    profile: UserProfile
    calculator_type: Optional[CalculatorType]
    result_value: Optional[Decimal]
    timestamp: datetime

    def to_dict(self) -> dict:
        out = self.profile.to_dict()
        out["calculatorType"] = self.calculator_type.value if self.calculator_type else None
        out["resultValue"] = _num(self.result_value)
        out["timestamp"] = format_datetime(self.timestamp)
        return out


@dataclass(frozen=True)
class RecommendedAction:
    type: str  # 'calculator' | 'consultation' | 'download' | 'dashboard'
    priority: str  # 'high' | 'medium' | 'low'
    title: str
    description: str
    cta: str
    reason: str
    link: Optional[str] = None
    estimated_value: Optional[int] = None

    def to_dict(self) -> dict:
        out = {
            "type": self.type,
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "cta": self.cta,
            "reason": self.reason,
        }
        if self.link is not None:
            out["link"] = self.link
        if self.estimated_value is not None:
            out["estimatedValue"] = self.estimated_value
        return out


@dataclass(frozen=True)
class GateDecision:
    should_show_gate: bool
    tier: int
    reason: str
    context: dict = field(default_factory=dict)
    required_fields: tuple = ()
    skippable: bool = False

    def to_dict(self) -> dict:
        return {
            "shouldShowGate": self.should_show_gate,
            "tier": self.tier,
            "reason": self.reason,
            "context": json_safe(self.context),
            "requiredFields": [camel(name) for name in self.required_fields],
            "skippable": self.skippable,
        }
