"""engine.session

GameSession: the single owner of the live GameState.

Rules:
- Only one Oracle-backed action is in flight at a time (the `busy` guard).
  Anything else that needs the Oracle while busy is refused, not queued.
- Synchronous actions (hire, fire, assign, upgrade, create product, event
  choice) are allowed while busy and write to `self.state` immediately.
- Every action except `start` needs a PLAYING game.
- An Oracle reply is applied to `self.state` as it is *after* the call
  returns, never to the snapshot the request was built from.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional

from core import rules
from core.results import ActionError, ActionResult
from core.state import GameStage, GameState, IntelType, PlayerDecisions, default_start_state

from .config import EngineConfig
from .funding import apply_pitch_result, build_pitch_request, request_pitch
from .logging import dumps_run_export, load_run_export, make_run_export, turn_log
from .pipeline import apply_turn_outcome, build_turn_request, request_outcome
from .recruitment import (
    apply_candidates,
    apply_story,
    build_candidate_request,
    build_story_request,
    can_post_job,
    check_can_start,
    request_candidates,
    request_story,
)

log = logging.getLogger(__name__)

BUSY_MESSAGE = "Busy: another request is still in flight."
FALLBACK_CHAT_REPLY = "Sorry boss, I'm busy fixing bugs."
FALLBACK_INTEL = "N/A"


class _Busy(Exception):
    pass


@dataclass
class GameSession:
    oracle: Any
    config: EngineConfig = field(default_factory=EngineConfig)
    state: GameState = field(default_factory=default_start_state)

    busy: bool = False
    initial_state: Optional[GameState] = None
    turn_logs: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.initial_state is None:
            self.initial_state = self.state

    # -------------------------
    # plumbing
    # -------------------------

    @contextmanager
    def _in_flight(self) -> Iterator[None]:
        if self.busy:
            raise _Busy()
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def _commit(self, result: ActionResult) -> ActionResult:
        if result.ok:
            self.state = result.state
        return result

    def _refuse_unless_playing(self) -> Optional[ActionResult]:
        if self.state.stage is not GameStage.PLAYING:
            return ActionResult.refuse(self.state, ActionError.INVALID_ACTION, f"Game is {self.state.stage.value}.")
        return None

    def _busy(self) -> ActionResult:
        return ActionResult.refuse(self.state, ActionError.INVALID_ACTION, BUSY_MESSAGE)

    # -------------------------
    # Oracle-backed actions
    # -------------------------

    def start(self, *, company_name: str, industry: str, product_name: str, product_description: str = "") -> ActionResult:
        checked = check_can_start(self.state, company_name=company_name, product_name=product_name)
        if not checked.ok:
            return checked
        try:
            with self._in_flight():
                request = build_story_request(
                    company_name=company_name,
                    industry=industry,
                    product_name=product_name,
                    product_description=product_description,
                )
                story, _ = request_story(self.oracle, request)
                result = self._commit(apply_story(self.state, request, story))
        except _Busy:
            return self._busy()
        if result.ok:
            self.initial_state = self.state
            self.turn_logs = []
        return result

    def end_turn(self, decisions: Optional[PlayerDecisions] = None) -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        decisions = decisions or PlayerDecisions()
        if decisions.event_choice is None and self.state.pending_event_choice:
            decisions = replace(decisions, event_choice=self.state.pending_event_choice)

        try:
            with self._in_flight():
                request = build_turn_request(self.state, decisions)
                outcome, used_fallback = request_outcome(self.oracle, request, self.config)
                before = self.state
                self.state = apply_turn_outcome(before, outcome, decisions, self.config)
        except _Busy:
            return self._busy()

        self.turn_logs.append(
            turn_log(before=before, after=self.state, burn=request.burn_rate, decisions=decisions, used_fallback=used_fallback)
        )
        if self.state.stage is GameStage.GAME_OVER:
            log.info("Game over on turn %s: %s", before.turn, self.state.game_over_reason)
        return ActionResult.success(self.state, self.state.history[-1].narrative, used_fallback=used_fallback)

    def pitch(self, funding_round: str) -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        try:
            with self._in_flight():
                result, used_fallback = request_pitch(self.oracle, build_pitch_request(self.state, funding_round))
                self.state = apply_pitch_result(self.state, result, funding_round, self.config)
        except _Busy:
            return self._busy()
        return ActionResult.success(self.state, result.investor_feedback, pitch=result, used_fallback=used_fallback)

    def recruit(self, job_description: str) -> ActionResult:
        checked = can_post_job(self.state, self.config)
        if not checked.ok:
            return checked
        try:
            with self._in_flight():
                batch, used_fallback = request_candidates(self.oracle, build_candidate_request(self.state, job_description))
                self.state = apply_candidates(self.state, batch, self.config)
        except _Busy:
            return self._busy()
        return ActionResult.success(self.state, f"{len(batch)} candidate(s) applied.", used_fallback=used_fallback)

    def chat(self, employee_id: str, message: str) -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        emp = self.state.find_employee(employee_id)
        if emp is None:
            return ActionResult.refuse(self.state, ActionError.INVALID_ACTION, f"Unknown employee: {employee_id}")
        used_fallback = False
        try:
            with self._in_flight():
                try:
                    reply = self.oracle.chat(employee_name=emp.name, role=emp.role.value, message=message)
                except Exception as e:  # Oracle is an external collaborator
                    log.warning("Chat with %s failed (%s: %s); canned reply", employee_id, type(e).__name__, e)
                    reply, used_fallback = FALLBACK_CHAT_REPLY, True
                self.state = rules.cheer_up_after_chat(
                    self.state,
                    employee_id,
                    stress_ceiling=self.config.chat_stress_ceiling,
                    bonus=self.config.chat_morale_bonus,
                )
        except _Busy:
            return self._busy()
        return ActionResult.success(self.state, reply, reply=reply, used_fallback=used_fallback)

    def buy_intel(self, intel_type: IntelType) -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        checked = rules.can_buy_intel(self.state, intel_type)
        if not checked.ok:
            return checked
        used_fallback = False
        try:
            with self._in_flight():
                try:
                    content = self.oracle.advisor_insight(intel_type=intel_type, industry=self.state.industry)
                except Exception as e:  # Oracle is an external collaborator
                    log.warning("Intel %s failed (%s: %s); recording %r", intel_type.value, type(e).__name__, e, FALLBACK_INTEL)
                    content, used_fallback = FALLBACK_INTEL, True
                # cash or stage may have moved while we waited
                refused = self._refuse_unless_playing()
                if refused:
                    return refused
                checked = rules.can_buy_intel(self.state, intel_type)
                if not checked.ok:
                    return checked
                self.state = rules.record_intel(self.state, intel_type, content)
        except _Busy:
            return self._busy()
        return ActionResult.success(self.state, content, intel_id=self.state.intel[-1].id, used_fallback=used_fallback)

    # -------------------------
    # synchronous actions
    # -------------------------

    def hire(self, candidate_id: str) -> ActionResult:
        return self._commit(rules.hire_candidate(self.state, candidate_id, base_seed=self.config.base_seed))

    def fire(self, employee_id: str) -> ActionResult:
        return self._commit(rules.fire_employee(self.state, employee_id, morale_penalty=self.config.fire_morale_penalty))

    def assign(self, employee_id: str, product_id: Optional[str]) -> ActionResult:
        return self._commit(rules.assign_employee(self.state, employee_id, product_id))

    def upgrade(self, facility_id: str) -> ActionResult:
        return self._commit(rules.upgrade_facility(self.state, facility_id))

    def create_product(self, name: str, description: str = "") -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        return self._commit(rules.create_product(self.state, name, description))

    def choose_event_option(self, label: str) -> ActionResult:
        refused = self._refuse_unless_playing()
        if refused:
            return refused
        event = self.state.pending_event
        if event is None:
            return ActionResult.refuse(self.state, ActionError.INVALID_ACTION, "No event is waiting for an answer.")
        if label not in {o.label for o in event.options}:
            return ActionResult.refuse(self.state, ActionError.INVALID_ACTION, f"Not an option: {label}")
        return self._commit(ActionResult.success(replace(self.state, pending_event_choice=label)))

    # -------------------------
    # export / import
    # -------------------------

    def export_run(self) -> str:
        return dumps_run_export(
            make_run_export(
                seed=self.config.base_seed,
                config=self.config.to_dict(),
                initial_state=self.initial_state or self.state,
                state=self.state,
                turn_logs=self.turn_logs,
            )
        )

    @classmethod
    def from_export(cls, text: str, oracle: Any) -> "GameSession":
        config, initial, state, logs = load_run_export(text)
        return cls(
            oracle=oracle,
            config=EngineConfig.from_dict(config),
            state=state,
            initial_state=initial,
            turn_logs=logs,
        )
