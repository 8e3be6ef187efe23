"""
core.state
Core domain data models (UI/LLM independent).

Everything here is a frozen dataclass. Operations never mutate a state in place;
they build a new one with dataclasses.replace() so a session can be replayed
from its history and tests can compare snapshots.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


INITIAL_CASH = 10_000
INITIAL_MORALE = 80
FEEDBACK_LIMIT = 5


class GameStage(str, Enum):
    SETUP = "SETUP"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"
    VICTORY = "VICTORY"


class ProductStage(str, Enum):
    """Product lifecycle, in strict forward order."""

    CONCEPT = "CONCEPT"
    MVP = "MVP"
    ALPHA = "ALPHA"
    RELEASE = "RELEASE"
    GROWTH = "GROWTH"
    MATURE = "MATURE"

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]

    @property
    def order(self) -> int:
        return list(ProductStage).index(self)


_STAGE_LABELS = {
    ProductStage.CONCEPT: "Concept",
    ProductStage.MVP: "MVP Development",
    ProductStage.ALPHA: "Alpha Testing",
    ProductStage.RELEASE: "Market Release",
    ProductStage.GROWTH: "Scaling",
    ProductStage.MATURE: "Mature",
}


class Role(str, Enum):
    DEVELOPER = "Developer"
    DESIGNER = "Designer"
    MARKETER = "Marketer"
    SALES = "Sales"
    MANAGER = "Manager"
    SECRETARY = "Secretary"
    TESTER = "Tester"


class Level(str, Enum):
    JUNIOR = "Junior"
    SENIOR = "Senior"
    LEAD = "Lead"
    EXPERT = "Expert"


class StatEffect(str, Enum):
    MAX_EMPLOYEES = "max_employees"
    MAX_USERS = "max_users"
    EFFICIENCY = "efficiency"


class EventType(str, Enum):
    CRISIS = "crisis"
    OPPORTUNITY = "opportunity"
    DILEMMA = "dilemma"


class IntelType(str, Enum):
    MARKET = "MARKET"
    COMPETITOR = "COMPETITOR"
    INTERNAL = "INTERNAL"


# =========================
# Entities
# =========================


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str = ""
    stage: ProductStage = ProductStage.CONCEPT
    development_progress: float = 0.0  # toward the next stage, 0..100
    quality: float = 50.0  # 0..100
    market_fit: float = 50.0  # 0..100
    bugs: int = 0
    users: int = 0
    revenue: int = 0  # per turn
    active_feedback: List[str] = field(default_factory=list)  # newest first, max 5


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    role: Role
    level: Level
    skill: float
    salary: int
    morale: float
    stress: float = 0.0
    loyalty: float = 50.0
    traits: List[str] = field(default_factory=list)
    assigned_product_id: Optional[str] = None
    specific_skills: List[str] = field(default_factory=list)
    quirk: str = ""
    education: str = ""
    background_story: str = ""


@dataclass(frozen=True)
class Candidate:
    id: str
    name: str
    role: Role
    level: Level
    skill: float
    salary: int
    hire_cost: int
    bio: str = ""
    match_analysis: str = ""
    quirk: str = ""
    education: str = "Self-taught"
    experience_years: int = 1
    interview_notes: str = "Candidate seemed eager."
    specific_skills: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Facility:
    id: str
    name: str
    level: int
    max_level: int
    cost_to_upgrade: int
    maintenance_cost: int
    stat_effect: StatEffect
    value: int
    description: str = ""
    benefit: str = ""


@dataclass(frozen=True)
class PlayerSkills:
    management: int = 1
    tech: int = 1
    charisma: int = 1


@dataclass(frozen=True)
class IntelItem:
    id: str
    type: IntelType
    title: str
    content: str
    cost: int


# =========================
# Turn outcome (history entry)
# =========================


@dataclass(frozen=True)
class ProductUpdate:
    product_id: str
    dev_progress_change: int = 0
    quality_change: int = 0
    bug_change: int = 0
    user_change: int = 0
    revenue_change: int = 0
    new_feedback: Optional[str] = None


@dataclass(frozen=True)
class EventOption:
    label: str
    risk: str


@dataclass(frozen=True)
class InteractiveEvent:
    title: str
    description: str
    type: EventType
    options: List[EventOption] = field(default_factory=list)


@dataclass(frozen=True)
class SkillXp:
    management: int = 0
    tech: int = 0
    charisma: int = 0


@dataclass(frozen=True)
class PlayerDecisions:
    rd_focus: str = "Improve core features"
    marketing_focus: str = "Run Facebook/Google ads"
    strategy_note: str = ""
    event_choice: Optional[str] = None


@dataclass(frozen=True)
class TurnOutcome:
    """One immutable history entry."""

    narrative: str
    cash_change: int = 0
    user_change: int = 0
    morale_change: int = 0
    equity_change: float = 0.0
    product_updates: List[ProductUpdate] = field(default_factory=list)
    random_event: Optional[InteractiveEvent] = None
    skill_xp_earned: Optional[SkillXp] = None
    secretary_report: Optional[str] = None
    competitor_update: str = ""
    advice: str = ""
    decisions: Optional[PlayerDecisions] = None
    kind: str = "turn"  # turn | funding | start
    turn: int = 0


# =========================
# Aggregate
# =========================


@dataclass(frozen=True)
class GameState:
    cash: float = INITIAL_CASH
    users: int = 0
    morale: float = INITIAL_MORALE
    market_share: float = 0.0
    equity: float = 100.0
    turn: int = 1
    employees: List[Employee] = field(default_factory=list)
    candidates: List[Candidate] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    facilities: List[Facility] = field(default_factory=list)
    player_skills: PlayerSkills = field(default_factory=PlayerSkills)
    history: List[TurnOutcome] = field(default_factory=list)
    stage: GameStage = GameStage.SETUP

    company_name: str = ""
    industry: str = "TECH"
    market_context: str = ""
    competitor_name: str = ""
    product_quality: float = 50.0
    game_over_reason: Optional[str] = None
    pending_event_choice: Optional[str] = None
    intel: List[IntelItem] = field(default_factory=list)

    def find_product(self, product_id: Optional[str]) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.employees if e.id == employee_id), None)

    def find_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return next((c for c in self.candidates if c.id == candidate_id), None)

    def find_facility(self, facility_id: str) -> Optional[Facility]:
        return next((f for f in self.facilities if f.id == facility_id), None)

    @property
    def pending_event(self) -> Optional[InteractiveEvent]:
        """The event raised by the most recent resolved turn, if any."""
        for entry in reversed(self.history):
            if entry.kind == "turn":
                return entry.random_event
        return None


def initial_facilities() -> List[Facility]:
    return [
        Facility(
            id="office",
            name="Home Office / Garage",
            level=1,
            max_level=5,
            description="Cramped workspace, low running cost.",
            cost_to_upgrade=5000,
            maintenance_cost=100,
            benefit="Max 3 Employees",
            stat_effect=StatEffect.MAX_EMPLOYEES,
            value=3,
        ),
        Facility(
            id="server",
            name="Shared Hosting",
            level=1,
            max_level=5,
            description="Cheap server, falls over under load.",
            cost_to_upgrade=2000,
            maintenance_cost=50,
            benefit="Max 1,000 Users",
            stat_effect=StatEffect.MAX_USERS,
            value=1000,
        ),
    ]


def new_product(product_id: str, name: str, description: str = "", feedback: Optional[List[str]] = None) -> Product:
    return Product(
        id=product_id,
        name=name,
        description=description,
        active_feedback=list(feedback or [])[:FEEDBACK_LIMIT],
    )


def default_start_state() -> GameState:
    """Baseline setup state.

    Keep it in core so headless tests and UI share the same baseline.
    """
    return GameState(facilities=initial_facilities(), player_skills=PlayerSkills())


# =========================
# Serialization
# =========================


def state_to_dict(state: GameState) -> Dict[str, Any]:
    """JSON-safe dict (enums become their values)."""
    return _jsonable(asdict(state))


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    return obj


def _product_from(d: Mapping[str, Any]) -> Product:
    return Product(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        description=str(d.get("description", "")),
        stage=ProductStage(d.get("stage", ProductStage.CONCEPT.value)),
        development_progress=float(d.get("development_progress", 0.0)),
        quality=float(d.get("quality", 50.0)),
        market_fit=float(d.get("market_fit", 50.0)),
        bugs=int(d.get("bugs", 0)),
        users=int(d.get("users", 0)),
        revenue=int(d.get("revenue", 0)),
        active_feedback=[str(x) for x in d.get("active_feedback", [])],
    )


def _employee_from(d: Mapping[str, Any]) -> Employee:
    return Employee(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        role=Role(d["role"]),
        level=Level(d["level"]),
        skill=float(d.get("skill", 0.0)),
        salary=int(d.get("salary", 0)),
        morale=float(d.get("morale", 0.0)),
        stress=float(d.get("stress", 0.0)),
        loyalty=float(d.get("loyalty", 50.0)),
        traits=[str(x) for x in d.get("traits", [])],
        assigned_product_id=d.get("assigned_product_id"),
        specific_skills=[str(x) for x in d.get("specific_skills", [])],
        quirk=str(d.get("quirk", "")),
        education=str(d.get("education", "")),
        background_story=str(d.get("background_story", "")),
    )


def _candidate_from(d: Mapping[str, Any]) -> Candidate:
    return Candidate(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        role=Role(d["role"]),
        level=Level(d["level"]),
        skill=float(d.get("skill", 0.0)),
        salary=int(d.get("salary", 0)),
        hire_cost=int(d.get("hire_cost", 0)),
        bio=str(d.get("bio", "")),
        match_analysis=str(d.get("match_analysis", "")),
        quirk=str(d.get("quirk", "")),
        education=str(d.get("education", "Self-taught")),
        experience_years=int(d.get("experience_years", 1)),
        interview_notes=str(d.get("interview_notes", "")),
        specific_skills=[str(x) for x in d.get("specific_skills", [])],
    )


def _facility_from(d: Mapping[str, Any]) -> Facility:
    return Facility(
        id=str(d["id"]),
        name=str(d.get("name", "")),
        level=int(d["level"]),
        max_level=int(d["max_level"]),
        cost_to_upgrade=int(d["cost_to_upgrade"]),
        maintenance_cost=int(d["maintenance_cost"]),
        stat_effect=StatEffect(d["stat_effect"]),
        value=int(d["value"]),
        description=str(d.get("description", "")),
        benefit=str(d.get("benefit", "")),
    )


def _outcome_from(d: Mapping[str, Any]) -> TurnOutcome:
    ev = d.get("random_event")
    xp = d.get("skill_xp_earned")
    dec = d.get("decisions")
    return TurnOutcome(
        narrative=str(d.get("narrative", "")),
        cash_change=int(d.get("cash_change", 0)),
        user_change=int(d.get("user_change", 0)),
        morale_change=int(d.get("morale_change", 0)),
        equity_change=float(d.get("equity_change", 0.0)),
        product_updates=[ProductUpdate(**u) for u in d.get("product_updates", [])],
        random_event=None if not ev else InteractiveEvent(
            title=str(ev["title"]),
            description=str(ev["description"]),
            type=EventType(ev["type"]),
            options=[EventOption(**o) for o in ev.get("options", [])],
        ),
        skill_xp_earned=None if xp is None else SkillXp(**xp),
        secretary_report=d.get("secretary_report"),
        competitor_update=str(d.get("competitor_update", "")),
        advice=str(d.get("advice", "")),
        decisions=None if dec is None else PlayerDecisions(**dec),
        kind=str(d.get("kind", "turn")),
        turn=int(d.get("turn", 0)),
    )


def state_from_dict(d: Mapping[str, Any]) -> GameState:
    """Rebuild a GameState from state_to_dict() output."""
    base = default_start_state()
    skills = d.get("player_skills") or {}
    return replace(
        base,
        cash=float(d.get("cash", base.cash)),
        users=int(d.get("users", 0)),
        morale=float(d.get("morale", base.morale)),
        market_share=float(d.get("market_share", 0.0)),
        equity=float(d.get("equity", 100.0)),
        turn=int(d.get("turn", 1)),
        employees=[_employee_from(x) for x in d.get("employees", [])],
        candidates=[_candidate_from(x) for x in d.get("candidates", [])],
        products=[_product_from(x) for x in d.get("products", [])],
        facilities=[_facility_from(x) for x in d.get("facilities", [])] or base.facilities,
        player_skills=PlayerSkills(**skills) if skills else base.player_skills,
        history=[_outcome_from(x) for x in d.get("history", [])],
        stage=GameStage(d.get("stage", GameStage.SETUP.value)),
        company_name=str(d.get("company_name", "")),
        industry=str(d.get("industry", "TECH")),
        market_context=str(d.get("market_context", "")),
        competitor_name=str(d.get("competitor_name", "")),
        product_quality=float(d.get("product_quality", 50.0)),
        game_over_reason=d.get("game_over_reason"),
        pending_event_choice=d.get("pending_event_choice"),
        intel=[
            IntelItem(
                id=str(x["id"]),
                type=IntelType(x["type"]),
                title=str(x.get("title", "")),
                content=str(x.get("content", "")),
                cost=int(x.get("cost", 0)),
            )
            for x in d.get("intel", [])
        ],
    )
