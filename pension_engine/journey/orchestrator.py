"""
Journey Orchestrator

Composes calculators, scoring, gating and persistence.

Every mutation is a pure function returning a new UserJourneyState and
ends with derive_metrics, so derived fields are always recomputed together.
JourneyOrchestrator wraps those functions in a session that persists after
each change and accumulates session time in the background.
"""

import json
import logging
import threading
import time
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional, Union

from ..config import EngineConfig, get_config
from ..models import CalculatorResult, CalculatorType
from ..processor import CalculatorProcessor
from .gate import check_gate
from .models import (
    EVENT_TYPES,
    FinancialGoals,
    FinancialSnapshot,
    GateDecision,
    JourneyCalculatorResult,
    JourneyEvent,
    LeadSubmission,
    RecommendedAction,
    ResultSummary,
    UserJourneyState,
    format_datetime,
    json_safe,
    utcnow,
)
from .recommendations import get_journey_summary, get_personalized_message, get_recommended_next_action
from .scoring import (
    calculate_journey_progress,
    calculate_lead_score,
    calculate_lead_temperature,
    calculate_qualification_tier,
)
from .store import (
    AnalyticsLog,
    InMemoryStorage,
    JourneyStateStore,
    JsonFileStorage,
    KeyValueStorage,
    LeadLog,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DERIVATION
# =============================================================================


def _completed(state: UserJourneyState, calculator_type: CalculatorType) -> Optional[JourneyCalculatorResult]:
    result = state.calculators.get(calculator_type)
    if result is None or not result.completed:
        return None
    return result


def _input_retirement_age(result: Optional[JourneyCalculatorResult]) -> Optional[int]:
    if result is None:
        return None
    value = result.inputs.get('retirement_age', result.inputs.get('retirementAge'))
    return int(value) if value is not None else None


def derive_financial_snapshot(state: UserJourneyState) -> FinancialSnapshot:
    """Rebuild the snapshot from completed calculators, profile and goals."""
    state_pension = _completed(state, CalculatorType.STATE_PENSION)
    workplace = _completed(state, CalculatorType.WORKPLACE_PENSION)
    sipp = _completed(state, CalculatorType.SIPP)
    tax_relief = _completed(state, CalculatorType.TAX_RELIEF)

    state_pension_amount = state_pension.results.primary_value if state_pension else None
    workplace_value = workplace.results.primary_value if workplace else None
    personal_value = sipp.results.primary_value if sipp else None

    total_pot = None
    if workplace_value is not None or personal_value is not None:
        total_pot = (workplace_value or Decimal('0')) + (personal_value or Decimal('0'))

    income_parts = [
        state_pension_amount,
        workplace.results.secondary('annual_income') if workplace else None,
        sipp.results.secondary('annual_income') if sipp else None,
    ]
    known_income = [part for part in income_parts if part is not None]
    projected_income = sum(known_income, Decimal('0')) if known_income else None

    retirement_age = (
        state.goals.target_retirement_age
        or _input_retirement_age(workplace)
        or _input_retirement_age(sipp)
    )
    if retirement_age is None and state_pension is not None:
        pension_age = state_pension.results.secondary('pension_age')
        retirement_age = int(pension_age) if pension_age is not None else None

    years_to_retirement = None
    if retirement_age is not None and state.profile.age:
        years_to_retirement = retirement_age - state.profile.age

    desired = state.goals.desired_retirement_income
    gap = desired - projected_income if desired is not None and projected_income is not None else None

    return FinancialSnapshot(
        state_pension_amount=state_pension_amount,
        workplace_pension_value=workplace_value,
        personal_pension_value=personal_value,
        total_current_pot=total_pot,
        projected_retirement_income=projected_income,
        desired_retirement_income=desired,
        retirement_age=retirement_age,
        years_to_retirement=years_to_retirement,
        pension_gap=gap,
        tax_relief=tax_relief.results.primary_value if tax_relief else None,
        potential_savings=tax_relief.results.secondary('total_savings') if tax_relief else None,
    )


def derive_metrics(state: UserJourneyState) -> UserJourneyState:
    """Recompute every derived field of the journey in one pass."""
    completed = sum(1 for result in state.calculators.values() if result.completed)
    state = replace(state, completed_calculators=completed)
    state = replace(state, financial_snapshot=derive_financial_snapshot(state))

    score = calculate_lead_score(state)
    action = get_recommended_next_action(state)
    next_calculator = None
    if action.type == 'calculator' and action.link:
        next_calculator = CalculatorType(action.link.rsplit('/', 1)[-1])

    return replace(
        state,
        lead_score=score,
        temperature=calculate_lead_temperature(state, score),
        qualification_tier=calculate_qualification_tier(state),
        journey_progress=calculate_journey_progress(state),
        next_recommended_calculator=next_calculator,
        next_recommended_action=action.title,
    )


# =============================================================================
# PURE MUTATIONS
# =============================================================================


def update_profile(state: UserJourneyState, updates: dict) -> UserJourneyState:
    logger.debug(f"Updating profile fields {sorted(updates)} for {state.user_id}")
    return derive_metrics(replace(state, profile=state.profile.merge(updates)))


def record_calculator_completion(state: UserJourneyState, calculator_type: Union[str, CalculatorType],
                                 inputs: dict, results: ResultSummary,
                                 session_duration: Optional[float] = None,
                                 timestamp=None) -> UserJourneyState:
    """Store (or overwrite) one calculator's result and re-derive."""
    calculator_type = CalculatorType(calculator_type)
    entry = JourneyCalculatorResult(
        calculator_type=calculator_type,
        completed=True,
        timestamp=timestamp or utcnow(),
        inputs=json_safe(dict(inputs)),
        results=results,
        session_duration=session_duration,
    )
    calculators = dict(state.calculators)
    calculators[calculator_type] = entry

    logger.debug(f"Recorded {calculator_type.value} completion for {state.user_id}")
    return derive_metrics(replace(
        state,
        calculators=calculators,
        total_session_time=state.total_session_time + (session_duration or 0),
    ))


def track_event(state: UserJourneyState, event_type: str, data: Optional[dict] = None) -> UserJourneyState:
    """Apply an event's counters and conversion flags. Analytics logging is the caller's job."""
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown journey event type: {event_type}")

    changes = {}
    if event_type in ('calculator_started', 'dashboard_viewed'):
        changes['pageviews'] = state.pageviews + 1
    if event_type == 'pdf_downloaded':
        changes['has_downloaded_pdf'] = True
    if event_type == 'consultation_requested':
        changes['has_requested_consultation'] = True
    if event_type == 'journey_completed':
        changes['has_completed_full_journey'] = True

    logger.debug(f"Tracked {event_type} for {state.user_id}")
    return derive_metrics(replace(state, **changes))


def update_financial_goals(state: UserJourneyState, desired_income=None,
                           retirement_age: Optional[int] = None) -> UserJourneyState:
    goals = state.goals
    if desired_income is not None:
        goals = replace(goals, desired_retirement_income=Decimal(str(desired_income)))
    if retirement_age is not None:
        goals = replace(goals, target_retirement_age=int(retirement_age))
    return derive_metrics(replace(state, goals=goals))


def export_journey(state: UserJourneyState) -> str:
    """JSON export of profile, results and metrics for download or CRM handoff."""
    wire = state.to_dict()
    export = {
        "userId": state.user_id,
        "profile": wire["profile"],
        "calculators": [
            {"type": calculator_type, **data} for calculator_type, data in wire["calculators"].items()
        ],
        "financialSnapshot": wire["financialSnapshot"],
        "metrics": {
            "leadScore": state.lead_score,
            "temperature": state.temperature,
            "qualificationTier": state.qualification_tier,
            "journeyProgress": state.journey_progress,
            "completedCalculators": state.completed_calculators,
            "totalSessionTime": state.total_session_time,
        },
        "timestamps": {
            "createdAt": format_datetime(state.created_at),
            "lastUpdated": format_datetime(state.last_updated),
        },
    }
    return json.dumps(export, indent=2)


# =============================================================================
# STATELESS API HELPERS
# =============================================================================


def evaluate_journey_from_dict(data: dict) -> dict:
    """Re-derive a client-held journey and report its gate, next action and dashboard summary."""
    state = derive_metrics(UserJourneyState.from_dict(data))
    return {
        "state": state.to_dict(),
        "gate": check_gate(state).to_dict(),
        "next_action": get_recommended_next_action(state).to_dict(),
        "message": get_personalized_message(state),
        "summary": get_journey_summary(state),
    }


def complete_calculator_from_dict(payload: dict, processor: Optional[CalculatorProcessor] = None) -> dict:
    """
    Run a calculator against a client-held journey.

    payload: {state, calculator_type, inputs, session_duration}. A missing
    state starts a new journey. The calculation runs before the state is
    touched, so a failed calculation leaves the journey as it was.
    """
    processor = processor or CalculatorProcessor()
    calculator_type = processor.resolve(payload.get('calculator_type'))
    inputs = processor.parse(calculator_type, payload.get('inputs') or {})
    result = processor.calculate(calculator_type, inputs)

    if payload.get('state'):
        state = UserJourneyState.from_dict(payload['state'])
    else:
        state = JourneyStateStore(InMemoryStorage()).create_new_state()

    summary = processor.output_builder.build_summary(result)
    state = record_calculator_completion(
        state, calculator_type, inputs.to_dict(), summary, payload.get('session_duration')
    )
    state = track_event(state, 'calculator_completed', {'calculatorType': calculator_type.value})

    return {
        "calculation": processor.output_builder.build(
            calculator_type, inputs, result, processor.constants.tax_year
        ),
        "state": state.to_dict(),
        "gate": check_gate(state).to_dict(),
        "next_action": get_recommended_next_action(state).to_dict(),
    }


# =============================================================================
# SESSION
# =============================================================================


class SessionTimer:
    """
    Cancellable periodic task.

    A background thread waits on an Event for interval seconds, then calls
    on_tick with the seconds elapsed since the previous tick.
    """

    def __init__(self, interval: float, on_tick: Callable[[float], None]):
        self.interval = interval
        self.on_tick = on_tick
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='journey-session-timer', daemon=True)
        self._thread.start()

    def _run(self) -> None:
        last = time.monotonic()
        while not self._stop.wait(self.interval):
            now = time.monotonic()
            elapsed, last = now - last, now
            try:
                self.on_tick(elapsed)
            except Exception:
                logger.error("Session timer tick failed", exc_info=True)

    def cancel(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None


class JourneyOrchestrator:
    """
    One visitor's journey session.

    Owns the state store, analytics and lead logs, a calculator processor
    and the session timer. Mutations and timer ticks are serialised by a
    lock; each one replaces the whole state and persists it.
    """

    def __init__(self, store: JourneyStateStore, analytics: AnalyticsLog, leads: LeadLog,
                 processor: Optional[CalculatorProcessor] = None, tick_seconds: float = 30.0):
        self.store = store
        self.analytics = analytics
        self.leads = leads
        self.processor = processor or CalculatorProcessor()
        self.timer = SessionTimer(tick_seconds, self._on_tick)
        self._lock = threading.RLock()
        self._state: Optional[UserJourneyState] = None

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None,
                    storage: Optional[KeyValueStorage] = None,
                    legacy_storage: Optional[KeyValueStorage] = None) -> "JourneyOrchestrator":
        config = config or get_config()
        storage = storage or JsonFileStorage(config.storage_dir)
        return cls(
            store=JourneyStateStore(storage, legacy_storage, derive=derive_metrics),
            analytics=AnalyticsLog(storage, config.analytics_max_events),
            leads=LeadLog(storage, config.leads_max_entries),
            tick_seconds=config.session_tick_seconds,
        )

    @property
    def state(self) -> UserJourneyState:
        if self._state is None:
            raise RuntimeError("Journey session has not been started")
        return self._state

    def start(self) -> UserJourneyState:
        with self._lock:
            if self._state is None:
                self._state = self.store.get_or_create()
            self.timer.start()
            return self._state

    def close(self) -> None:
        self.timer.cancel()

    def __enter__(self) -> "JourneyOrchestrator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _commit(self, state: UserJourneyState) -> UserJourneyState:
        self._state = self.store.save(state)
        return self._state

    def _log_event(self, event_type: str, data: Optional[dict] = None) -> None:
        self.analytics.append(JourneyEvent(event_type, utcnow(), data))

    def _on_tick(self, elapsed: float) -> None:
        with self._lock:
            if self._state is None:
                return
            state = replace(self._state, total_session_time=self._state.total_session_time + elapsed)
            self._commit(derive_metrics(state))

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def complete_calculator(self, calculator_type: Union[str, CalculatorType], raw_inputs: dict,
                            session_duration: Optional[float] = None) -> tuple[CalculatorResult, GateDecision]:
        """Run a calculator and record it. Calculator errors propagate and leave the state unchanged."""
        resolved = self.processor.resolve(calculator_type)
        inputs = self.processor.parse(resolved, raw_inputs)
        result = self.processor.calculate(resolved, inputs)
        summary = self.processor.output_builder.build_summary(result)

        with self._lock:
            state = record_calculator_completion(
                self.state, resolved, inputs.to_dict(), summary, session_duration
            )
            data = {'calculatorType': resolved.value, 'primaryValue': summary.primary_value}
            state = track_event(state, 'calculator_completed', data)
            self._log_event('calculator_completed', data)
            state = self._commit(state)

        decision = check_gate(state)
        logger.info(
            f"Gate decision for {state.user_id}: tier {decision.tier} {decision.reason} "
            f"(show={decision.should_show_gate})"
        )
        return result, decision

    def update_profile(self, updates: dict) -> UserJourneyState:
        with self._lock:
            return self._commit(update_profile(self.state, updates))

    def track_event(self, event_type: str, data: Optional[dict] = None) -> UserJourneyState:
        with self._lock:
            state = track_event(self.state, event_type, data)
            self._log_event(event_type, data)
            return self._commit(state)

    def submit_lead(self, profile_updates: dict,
                    calculator_type: Optional[Union[str, CalculatorType]] = None,
                    result_value=None) -> UserJourneyState:
        """Record gate-captured details: merge into the profile and append to the lead log."""
        with self._lock:
            state = update_profile(self.state, profile_updates)
            lead = LeadSubmission(
                profile=state.profile,
                calculator_type=CalculatorType(calculator_type) if calculator_type else None,
                result_value=Decimal(str(result_value)) if result_value is not None else None,
                timestamp=utcnow(),
            )
            self.leads.append(lead)
            data = {'tier': state.qualification_tier}
            state = track_event(state, 'gate_completed', data)
            self._log_event('gate_completed', data)
            logger.info(f"Lead captured for {state.user_id} at tier {state.qualification_tier}")
            return self._commit(state)

    def update_financial_goals(self, desired_income=None, retirement_age: Optional[int] = None) -> UserJourneyState:
        with self._lock:
            return self._commit(update_financial_goals(self.state, desired_income, retirement_age))

    def check_gate(self) -> GateDecision:
        decision = check_gate(self.state)
        logger.info(f"Gate decision for {self.state.user_id}: tier {decision.tier} {decision.reason}")
        return decision

    def next_action(self) -> RecommendedAction:
        return get_recommended_next_action(self.state)

    def personalized_message(self) -> dict:
        return get_personalized_message(self.state)

    def summary(self) -> dict:
        return get_journey_summary(self.state)

    def export(self) -> str:
        return export_journey(self.state)

    def reset(self) -> UserJourneyState:
        with self._lock:
            self._state = self.store.reset()
            return self._state
