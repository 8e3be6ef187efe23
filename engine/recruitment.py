"""engine.recruitment

Oracle-backed setup flows that are not turns:
- job posting -> candidate batch (replaces the pool wholesale)
- game start -> market story + first product

Both are split into request / apply so the session can apply the reply to
whatever the state looks like when the Oracle answers.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from core.industries import get_industry_spec
from core.results import ActionError, ActionResult
from core.rules import create_product
from core.state import Candidate, GameStage, GameState, TurnOutcome

from content.schemas import FALLBACK_STORY, CandidateRequest, Story, StoryRequest

from .config import EngineConfig

log = logging.getLogger(__name__)


# -------------------------
# Recruitment
# -------------------------


def can_post_job(state: GameState, config: Optional[EngineConfig] = None) -> ActionResult:
    cfg = config or EngineConfig()
    if state.stage is not GameStage.PLAYING:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, "Recruiting is only open while playing.")
    if state.cash < cfg.recruitment_cost:
        return ActionResult.refuse(
            state,
            ActionError.INSUFFICIENT_FUNDS,
            f"A job posting costs ${cfg.recruitment_cost:,}.",
        )
    return ActionResult.success(state)


def _batch_prefix(state: GameState) -> str:
    """cand-<turn>-<n>, with n unused by anyone already on the payroll."""
    taken = {e.id for e in state.employees} | {c.id for c in state.candidates}
    n = 1
    while any(i.startswith(f"cand-{state.turn}-{n}-") for i in taken):
        n += 1
    return f"cand-{state.turn}-{n}"


def build_candidate_request(state: GameState, job_description: str) -> CandidateRequest:
    return CandidateRequest(
        industry=state.industry,
        turn=int(state.turn),
        job_description=str(job_description or ""),
        id_prefix=_batch_prefix(state),
    )


def request_candidates(oracle: Any, request: CandidateRequest) -> Tuple[List[Candidate], bool]:
    """Returns (batch, used_fallback). A failed posting yields an empty batch."""
    try:
        return list(oracle.generate_candidates(request)), False
    except Exception as e:  # Oracle is an external collaborator; any failure means fallback
        log.warning("Recruitment %s: oracle failed (%s: %s); empty batch", request.id_prefix, type(e).__name__, e)
        return [], True


def apply_candidates(state: GameState, candidates: List[Candidate], config: Optional[EngineConfig] = None) -> GameState:
    """Charge the posting and replace the pool. The fee is paid even for an empty batch."""
    cfg = config or EngineConfig()
    return replace(state, cash=state.cash - cfg.recruitment_cost, candidates=list(candidates))


# -------------------------
# Game start
# -------------------------


def build_story_request(*, company_name: str, industry: str, product_name: str, product_description: str) -> StoryRequest:
    return StoryRequest(
        company_name=str(company_name).strip(),
        industry=get_industry_spec(industry).key,
        product_name=str(product_name).strip(),
        product_description=str(product_description or "").strip(),
    )


def request_story(oracle: Any, request: StoryRequest) -> Tuple[Story, bool]:
    try:
        return oracle.initialize_story(request), False
    except Exception as e:  # Oracle is an external collaborator; any failure means fallback
        log.warning("Story for %r: oracle failed (%s: %s); using canned story", request.company_name, type(e).__name__, e)
        return FALLBACK_STORY, True


def check_can_start(state: GameState, *, company_name: str, product_name: str) -> ActionResult:
    if state.stage is not GameStage.SETUP:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, "The game has already started.")
    if not str(company_name or "").strip() or not str(product_name or "").strip():
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, "Company and product need a name.")
    return ActionResult.success(state)


def apply_story(state: GameState, request: StoryRequest, story: Story) -> ActionResult:
    """SETUP -> PLAYING, exactly once."""
    checked = check_can_start(state, company_name=request.company_name, product_name=request.product_name)
    if not checked.ok:
        return checked

    created = create_product(state, request.product_name, request.product_description)
    if not created.ok:
        return ActionResult.refuse(state, created.error or ActionError.INVALID_ACTION, created.message)
    product_id = created.payload["product_id"]
    products = [
        replace(p, active_feedback=[story.initial_product_analysis]) if p.id == product_id else p
        for p in created.state.products
    ]

    opening = TurnOutcome(
        narrative=story.market_context,
        competitor_update=story.competitor_name,
        advice=story.initial_feedback,
        kind="start",
        turn=int(state.turn),
    )
    new_state = replace(
        created.state,
        stage=GameStage.PLAYING,
        company_name=request.company_name,
        industry=request.industry,
        market_context=story.market_context,
        competitor_name=story.competitor_name,
        products=products,
        history=[*state.history, opening],
    )
    return ActionResult.success(new_state, f"{request.company_name} is open for business.", product_id=product_id)


def start_game(
    state: GameState,
    oracle: Any,
    *,
    company_name: str,
    industry: str,
    product_name: str,
    product_description: str = "",
) -> ActionResult:
    checked = check_can_start(state, company_name=company_name, product_name=product_name)
    if not checked.ok:
        return checked
    request = build_story_request(
        company_name=company_name,
        industry=industry,
        product_name=product_name,
        product_description=product_description,
    )
    story, _ = request_story(oracle, request)
    return apply_story(state, request, story)
