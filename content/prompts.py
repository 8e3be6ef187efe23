"""content.prompts

Prompt builders for the Oracle.

These prompts keep the game rules OUT of the model: the model proposes deltas
and text, the engine clamps, applies and advances stages. Stage rules are
described to the model only so its narrative matches what the engine will do.
"""

from __future__ import annotations

import json

from core.industries import get_industry_spec
from core.state import EventType, IntelType, Level, Role

from .schemas import CandidateRequest, PitchRequest, StoryRequest, TurnRequest

ROLES = "|".join(r.value for r in Role)
LEVELS = "|".join(lv.value for lv in Level)
EVENT_TYPES = "|".join(t.value for t in EventType)


def describe_cash(cash: float, burn: float) -> str:
    if cash < 0:
        return "in debt"
    if burn > 0 and cash < burn * 3:
        return "very tight"
    if burn > 0 and cash > burn * 20:
        return "comfortable"
    return "limited"


def build_turn_prompt(req: TurnRequest) -> str:
    """Turn simulation prompt. The model MUST answer with JSON only."""
    ind = get_industry_spec(req.industry)
    products = json.dumps([p.to_dict() for p in req.products], ensure_ascii=False, indent=2)
    event_line = f"- The CEO answered last week's event with: {req.event_choice}" if req.event_choice else ""
    secretary_line = (
        "- The company has a secretary: fill \"secretaryReport\" with office gossip or a short report."
        if req.has_secretary
        else "- No secretary: leave \"secretaryReport\" null."
    )

    return f"""
You are the simulation engine of the game "Startup Tycoon".
Week {int(req.turn)}. Company: {req.company_name} ({ind.label}). Competitor: {req.competitor_name or "unknown"}.
Writing tone: {ind.tone}.

Company picture:
- Cash: {describe_cash(req.cash, req.burn_rate)} (${req.cash:,.0f}), weekly burn ${req.burn_rate:,}
- Team morale: {req.morale:.0f}/100
{event_line}

PRODUCTS IN DEVELOPMENT:
{products}

CEO decisions this week:
- R&D focus: {req.rd_focus}
- Marketing focus: {req.marketing_focus}
- Strategy note: {req.strategy_note or "(none)"}
{secretary_line}

SIMULATION RULES (per product, driven by "teamPower" = summed skill of assigned staff):
- High dev -> devProgressChange grows fast (0-20).
- High design -> quality / market fit up.
- High test -> bugChange negative.
- High marketing (only after release) -> users and revenue up.
- teamPower all zero -> progress stalls, users may churn.
- The engine moves Concept -> MVP -> Alpha -> Release -> Scaling when progress reaches 100.
- Low quality or many bugs -> complaining feedback; high quality -> praise.

OUTPUT: JSON ONLY (no markdown, no prose).

JSON SCHEMA:
{{
  "narrative": "string (weekly summary)",
  "cashChange": integer (revenue - burn - marketing spend),
  "userChange": integer,
  "moraleChange": integer,
  "productUpdates": [
    {{
      "productId": "id",
      "devProgressChange": integer,
      "qualityChange": integer (-5..5),
      "bugChange": integer,
      "userChange": integer,
      "revenueChange": integer,
      "newFeedback": "string (optional)"
    }}
  ],
  "secretaryReport": "string or null",
  "randomEvent": {{"title": "string", "description": "string", "type": "{EVENT_TYPES}", "options": [{{"label": "string", "risk": "string"}}]}} or null,
  "skillXpEarned": {{"management": integer, "tech": integer, "charisma": integer}} or null
}}
""".strip()


def build_pitch_prompt(req: PitchRequest) -> str:
    portfolio = "\n".join(req.portfolio) if req.portfolio else "No product worth mentioning yet."
    return f"""
You are a tough but fair venture capitalist (Shark Tank style).
Startup "{req.company_name}" is raising a "{req.funding_round}".

COMPANY:
- Cash left: ${req.cash:,.0f}
- Total users: {req.users}
- Team: {req.headcount} people

PORTFOLIO:
{portfolio}

RULES:
- Products still at Concept/MVP asking for a big round (Series A/B): decline.
- Few users and zero revenue: low valuation.
- Good product (quality > 80) with growing users: fair deal.

OUTPUT: JSON ONLY.
{{
  "accepted": boolean,
  "valuation": integer (pre-money),
  "equityDemanded": number (percent you take, 5-40),
  "investmentAmount": integer,
  "investorFeedback": "string (detailed praise/criticism of product and team)"
}}
""".strip()


def build_candidates_prompt(req: CandidateRequest) -> str:
    ind = get_industry_spec(req.industry)
    jd = (req.job_description or "").strip() or "Looking for talent to help the company grow"
    return f"""
You are a witty, sharp recruiter for the {ind.label} industry (week {int(req.turn)}).
The startup CEO posted this job ad: "{jd}"

Create 3 detailed candidate profiles (CVs).
If the ad mentions Tester or QA, create Testers.

OUTPUT: a JSON ARRAY ONLY. Each item:
{{
  "name": "string",
  "role": "{ROLES}",
  "level": "{LEVELS}",
  "skill": integer (0-100),
  "specificSkills": ["string"],
  "salary": integer (weekly),
  "hireCost": integer (one-time signing fee),
  "bio": "string",
  "matchAnalysis": "string",
  "quirk": "string",
  "education": "string",
  "experienceYears": integer,
  "interviewNotes": "string"
}}
""".strip()


def build_story_prompt(req: StoryRequest) -> str:
    ind = get_industry_spec(req.industry)
    return f"""
You are a startup business simulation engine.

Startup: "{req.company_name}" ({ind.label}).
First product: "{req.product_name}".
Description: "{req.product_description}".

Create the market context for 2024-2025.

OUTPUT: JSON ONLY.
{{
  "marketContext": "market trend (max 2 sentences)",
  "competitorName": "competitor name",
  "initialFeedback": "advice for the CEO",
  "initialProductAnalysis": "short take on the product's market fit potential"
}}
""".strip()


def build_chat_prompt(*, employee_name: str, role: str, message: str) -> str:
    return f'Roleplay employee {employee_name} ({role}). Boss asks: "{message}". Reply short.'


def build_intel_prompt(*, intel_type: IntelType, industry: str) -> str:
    ind = get_industry_spec(industry)
    return f"Advisor insight for {intel_type.value} in industry {ind.label}. Short."


def build_json_repair_prompt(broken_text: str) -> str:
    broken_text = str(broken_text or "")
    return f"""The text below contains broken JSON. Your task: return ONLY valid JSON.
- No comments, no markdown.
- Do not rename fields, only fix syntax.
- Fix missing commas, quotes and similar problems.

BROKEN TEXT:
{broken_text}
""".strip()
