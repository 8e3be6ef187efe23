"""Startup Tycoon (Streamlit)

UI/Experience layer.

Principles:
- UI only renders + triggers. Every mutation goes through engine.session.GameSession.
- Core domain and engine are pure Python modules.
- Content comes from Gemini. When it fails the engine degrades to its fallback
  outcome, so the week always advances; the sidebar shows the provider error.

Entry point for Streamlit Cloud: app.py
"""

from __future__ import annotations

import os
from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional

import streamlit as st

from content.providers.gemini import GeminiOracle
from core import API_VERSION
from core.industries import DEFAULT_INDUSTRIES, get_industry_spec
from core.results import ActionResult
from core.rules import INTEL_COSTS, burn_rate, office_capacity, runway_turns, user_capacity
from core.state import GameStage, IntelType, PlayerDecisions, Role
from engine.config import EngineConfig
from engine.funding import FUNDING_ROUNDS
from engine.session import GameSession
from engine.sim_runner import ScriptedOracle

APP_TITLE = "Startup Tycoon"
APP_SUBTITLE = "Weekly startup simulation: hire, build, ship, raise. (LLM narrative + deterministic bookkeeping)"
APP_VERSION = "1.0.0"

st.set_page_config(page_title=APP_TITLE, page_icon="🚀", layout="wide", initial_sidebar_state="expanded")

CSS = """
<style>
.block-container {padding-top: 3.2rem; padding-bottom: 2rem;}
.card {
  border: 1px solid rgba(255,255,255,0.08);
  border-radius: 16px;
  padding: 14px 16px;
  background: rgba(255,255,255,0.03);
}
.pill {
  display: inline-block;
  padding: 2px 10px;
  border-radius: 999px;
  border: 1px solid rgba(255,255,255,0.12);
  font-size: 12px;
  opacity: .85;
}
hr.soft {border: none; border-top: 1px solid rgba(255,255,255,0.08); margin: 1rem 0;}
.small {font-size: 13px; opacity:.75;}
</style>
"""

st.markdown(CSS, unsafe_allow_html=True)


# =========================
# Data
# =========================

RD_FOCUS_OPTIONS = [
    "Improve core features",
    "Fix bugs & stabilize",
    "Research new tech (AI)",
    "Improve UI/UX",
]

# Estimated weekly costs for display only; the Oracle decides actual spend.
MARKETING_COSTS = {
    "Run Facebook/Google ads": 1500,
    "Content Marketing (SEO)": 500,
    "Hire Influencer/KOL": 3000,
    "Host Event/Webinar": 2000,
    "Cold Emailing/Sales": 200,
}


# =========================
# Helpers
# =========================


def _now_id() -> str:
    return datetime.utcnow().strftime("%Y%m%d%H%M%S%f")


def _get_api_key() -> str:
    # Streamlit Cloud: st.secrets
    if "GEMINI_API_KEY" in st.secrets:
        return str(st.secrets["GEMINI_API_KEY"])  # type: ignore
    # Local
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""


def _make_oracle(industry_key: str, offline: bool) -> Any:
    if offline:
        return ScriptedOracle()
    spec = get_industry_spec(industry_key)
    return GeminiOracle.from_api_key_string(_get_api_key(), temperature=spec.temp)


def _session() -> GameSession:
    return st.session_state.session


def _show(result: ActionResult, success_text: Optional[str] = None) -> None:
    """Park a message for the next rerun."""
    if result.ok:
        # the oracle was down and a canned answer stood in
        kind = "warning" if result.payload.get("used_fallback") else "success"
        st.session_state.flash = (kind, success_text or result.message or "Done.")
    else:
        code = result.error.value if result.error else "ERROR"
        st.session_state.flash = ("error", f"{result.message} ({code})")


def _render_flash() -> None:
    flash = st.session_state.get("flash")
    if not flash:
        return
    kind, text = flash
    {"success": st.success, "warning": st.warning}.get(kind, st.error)(text)
    st.session_state.flash = None


# =========================
# Session State
# =========================


def _ensure_state() -> None:
    ss = st.session_state
    if "run_id" not in ss:
        ss.run_id = _now_id()
    if "base_seed" not in ss:
        ss.base_seed = 42
    if "industry_key" not in ss:
        ss.industry_key = "TECH"
    if "offline" not in ss:
        # no key configured: start in offline mode
        ss.offline = not _get_api_key()
    if "session" not in ss:
        cfg = EngineConfig(base_seed=int(ss.base_seed), industry_key=str(ss.industry_key))
        ss.session = GameSession(oracle=_make_oracle(ss.industry_key, ss.offline), config=cfg)
    if "flash" not in ss:
        ss.flash = None
    if "chat_log" not in ss:
        ss.chat_log = []
    if "last_pitch" not in ss:
        ss.last_pitch = None


def _reset_run() -> None:
    ss = st.session_state
    keep = {"base_seed": ss.get("base_seed", 42), "offline": ss.get("offline", False)}
    for k in list(ss.keys()):
        del ss[k]
    for k, v in keep.items():
        ss[k] = v
    _ensure_state()


# =========================
# UI Pages
# =========================


def page_setup() -> None:
    ss = st.session_state
    st.title(APP_TITLE)
    st.caption(APP_SUBTITLE)

    st.markdown("""
    ### How to play
    - Each turn is one **week**. Pick an R&D and marketing focus, then end the week.
    - Hire candidates, assign them to products, upgrade your office and servers.
    - Products move Concept → MVP → Alpha → Release → Scaling as development completes.
    - If your debt goes past **$10k**, the company is bankrupt.
    """)

    with st.form("setup"):
        company = st.text_input("Company name", value="")
        keys = list(DEFAULT_INDUSTRIES.keys())
        ix = keys.index(ss.industry_key) if ss.industry_key in keys else 0
        industry = st.selectbox("Industry", keys, index=ix, format_func=lambda k: DEFAULT_INDUSTRIES[k].label)
        st.caption(get_industry_spec(industry).desc)
        product = st.text_input("First product", value="")
        desc = st.text_area("What does it do? (1-3 sentences)", value="", height=90)
        submitted = st.form_submit_button("Found the company", use_container_width=True)

    if submitted:
        if industry != ss.industry_key:
            ss.industry_key = industry
            sess = _session()
            sess.oracle = _make_oracle(industry, ss.offline)
        with st.spinner("Reading the market…"):
            result = _session().start(
                company_name=company,
                industry=industry,
                product_name=product,
                product_description=desc,
            )
        _show(result)
        st.rerun()


def _metrics_row() -> None:
    state = _session().state
    burn = burn_rate(state)
    a, b, c, d, e, f, g = st.columns(7)
    a.metric("Week", f"{state.turn}")
    b.metric("Cash", f"${state.cash:,.0f}")
    c.metric("Burn", f"${burn:,}/wk")
    d.metric("Runway", f"{runway_turns(state.cash, burn):.1f} wk")
    e.metric("Users", f"{state.users:,}")
    f.metric("Morale", f"{state.morale:.0f}/100")
    g.metric("Equity", f"{state.equity:.1f}%")


def _event_block() -> bool:
    """Render the pending event. Returns True while it still needs an answer."""
    sess = _session()
    state = sess.state
    event = state.pending_event
    if event is None:
        return False

    st.markdown("<div class='card'>", unsafe_allow_html=True)
    st.markdown(f"#### ⚡ {event.title} <span class='pill'>{event.type.value}</span>", unsafe_allow_html=True)
    st.markdown(event.description)
    if state.pending_event_choice:
        st.markdown(f"**Your call:** {state.pending_event_choice}")
    else:
        cols = st.columns(max(1, len(event.options)))
        for i, opt in enumerate(event.options):
            with cols[i]:
                st.caption(f"Risk: {opt.risk}")
                if st.button(opt.label, key=f"event_{state.turn}_{i}", use_container_width=True):
                    _show(sess.choose_event_option(opt.label), f"Decision noted: {opt.label}")
                    st.rerun()
    st.markdown("</div>", unsafe_allow_html=True)
    return not state.pending_event_choice and bool(event.options)


def tab_overview() -> None:
    sess = _session()
    state = sess.state

    if state.market_context:
        st.markdown(f"<div class='small'>Market: {state.market_context} · Rival: {state.competitor_name}</div>", unsafe_allow_html=True)

    if state.history:
        last = state.history[-1]
        st.markdown("### Latest report")
        st.markdown(last.narrative)
        if last.secretary_report:
            st.info(f"Secretary: {last.secretary_report}")
        if last.advice:
            st.caption(f"Advice: {last.advice}")

    waiting = _event_block()

    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)
    st.markdown("### This week's decisions")
    with st.form(f"decisions_{state.turn}"):
        c1, c2 = st.columns(2)
        rd = c1.selectbox("R&D focus", RD_FOCUS_OPTIONS)
        mk = c2.selectbox(
            "Marketing",
            list(MARKETING_COSTS.keys()),
            format_func=lambda k: f"{k} (~${MARKETING_COSTS[k]:,})",
        )
        note = st.text_area("Strategy note (optional)", value="", height=80)
        end = st.form_submit_button("End week", use_container_width=True, disabled=waiting or sess.busy)

    if end:
        with st.spinner("Simulating the week…"):
            result = sess.end_turn(PlayerDecisions(rd_focus=rd, marketing_focus=mk, strategy_note=note))
        fallback = result.payload.get("used_fallback")
        _show(result, "Week resolved (offline fallback)." if fallback else "Week resolved.")
        st.rerun()


def tab_products() -> None:
    sess = _session()
    state = sess.state

    for p in state.products:
        st.markdown("<div class='card'>", unsafe_allow_html=True)
        st.markdown(f"#### {p.name} <span class='pill'>{p.stage.label}</span>", unsafe_allow_html=True)
        if p.description:
            st.caption(p.description)
        st.progress(min(1.0, p.development_progress / 100.0), text=f"Progress {p.development_progress:.0f}%")
        a, b, c, d = st.columns(4)
        a.metric("Quality", f"{p.quality:.0f}")
        b.metric("Bugs", p.bugs)
        c.metric("Users", f"{p.users:,}")
        d.metric("Revenue", f"${p.revenue:,}/wk")
        for fb in p.active_feedback:
            st.markdown(f"- _{fb}_")

        team = [e for e in state.employees if e.assigned_product_id == p.id]
        idle = [e for e in state.employees if e.assigned_product_id is None]
        if team:
            st.markdown("**Team:** " + ", ".join(f"{e.name} ({e.role.value})" for e in team))
            rm = st.selectbox("Unassign", ["-"] + [e.id for e in team], key=f"unassign_{p.id}",
                              format_func=lambda i: "-" if i == "-" else state.find_employee(i).name)
            if rm != "-" and st.button("Remove from team", key=f"unassign_btn_{p.id}"):
                _show(sess.assign(rm, None))
                st.rerun()
        if idle:
            add = st.selectbox("Assign idle staff", ["-"] + [e.id for e in idle], key=f"assign_{p.id}",
                               format_func=lambda i: "-" if i == "-" else state.find_employee(i).name)
            if add != "-" and st.button("Add to team", key=f"assign_btn_{p.id}"):
                _show(sess.assign(add, p.id))
                st.rerun()
        st.markdown("</div>", unsafe_allow_html=True)
        st.write("")

    with st.expander("➕ New product"):
        with st.form("new_product"):
            name = st.text_input("Name")
            desc = st.text_area("Description", height=70)
            if st.form_submit_button("Create"):
                _show(sess.create_product(name, desc), f"{name} enters Concept.")
                st.rerun()


def tab_team() -> None:
    sess = _session()
    state = sess.state
    cap = office_capacity(state)
    st.caption(f"Headcount {len(state.employees)}/{cap if cap is not None else '∞'}")

    for e in state.employees:
        product = state.find_product(e.assigned_product_id)
        with st.expander(f"{e.name} · {e.level.value} {e.role.value} · skill {e.skill:.0f}"):
            a, b, c, d = st.columns(4)
            a.metric("Salary", f"${e.salary:,}")
            b.metric("Morale", f"{e.morale:.0f}")
            c.metric("Stress", f"{e.stress:.0f}")
            d.metric("Loyalty", f"{e.loyalty:.0f}")
            st.caption(f"Traits: {', '.join(e.traits)} · Working on: {product.name if product else 'nothing'}")
            if e.quirk:
                st.caption(f"Quirk: {e.quirk}")
            msg = st.text_input("Say something", key=f"chat_{e.id}")
            c1, c2 = st.columns(2)
            if c1.button("Chat", key=f"chat_btn_{e.id}", disabled=sess.busy or not msg.strip()):
                result = sess.chat(e.id, msg)
                if result.ok:
                    st.session_state.chat_log.append((e.name, msg, result.payload.get("reply", "")))
                _show(result, f"{e.name}: {result.message}")
                st.rerun()
            if c2.button("Fire", key=f"fire_{e.id}"):
                _show(sess.fire(e.id), f"{e.name} has left the building.")
                st.rerun()

    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)
    st.markdown("### Recruiting")
    jd = st.text_area("Job posting ($500)", value="", height=80)
    if st.button("Post job", disabled=sess.busy):
        with st.spinner("Screening CVs…"):
            _show(sess.recruit(jd))
        st.rerun()

    for cand in state.candidates:
        st.markdown("<div class='card'>", unsafe_allow_html=True)
        st.markdown(f"#### {cand.name} <span class='pill'>{cand.level.value} {cand.role.value}</span>", unsafe_allow_html=True)
        st.markdown(cand.bio)
        st.caption(
            f"Skill {cand.skill:.0f} · Salary ${cand.salary:,}/wk · Signing ${cand.hire_cost:,} · "
            f"{cand.experience_years}y · {cand.education}"
        )
        if cand.match_analysis:
            st.caption(f"Fit: {cand.match_analysis}")
        st.caption(f"Interview: {cand.interview_notes}")
        if st.button("Hire", key=f"hire_{cand.id}"):
            _show(sess.hire(cand.id))
            st.rerun()
        st.markdown("</div>", unsafe_allow_html=True)


def tab_facilities() -> None:
    sess = _session()
    state = sess.state
    users_cap = user_capacity(state)
    if users_cap is not None:
        st.caption(f"Server capacity {users_cap:,} users")
    for f in state.facilities:
        st.markdown("<div class='card'>", unsafe_allow_html=True)
        st.markdown(f"#### {f.name} <span class='pill'>Lv {f.level}/{f.max_level}</span>", unsafe_allow_html=True)
        st.caption(f"{f.description} · {f.stat_effect.value} = {f.value:,} · upkeep ${f.maintenance_cost:,}/wk")
        maxed = f.level >= f.max_level
        if st.button("Maxed out" if maxed else f"Upgrade (${f.cost_to_upgrade:,})", key=f"upgrade_{f.id}", disabled=maxed):
            _show(sess.upgrade(f.id))
            st.rerun()
        st.markdown("</div>", unsafe_allow_html=True)


def tab_funding() -> None:
    sess = _session()
    state = sess.state

    st.markdown("### Pitch investors")
    rnd = st.selectbox("Round", FUNDING_ROUNDS)
    if st.button("Pitch", disabled=sess.busy):
        with st.spinner("In the room with the VCs…"):
            result = sess.pitch(rnd)
        st.session_state.last_pitch = result.payload.get("pitch")
        _show(result)
        st.rerun()
    pitch = st.session_state.get("last_pitch")
    if pitch is not None:
        verdict = "Deal" if pitch.accepted else "No deal"
        st.markdown(f"**{verdict}** · ${pitch.investment_amount:,} for {pitch.equity_demanded:g}%")

    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)
    st.markdown("### Advisor reports")
    cols = st.columns(len(IntelType))
    for i, kind in enumerate(IntelType):
        with cols[i]:
            if st.button(f"{kind.value.title()} (${INTEL_COSTS[kind]:,})", key=f"intel_{kind.value}", disabled=sess.busy):
                bought = sess.buy_intel(kind)
                _show(bought, "Advisor unreachable, report filed as N/A." if bought.payload.get("used_fallback") else "Report delivered.")
                st.rerun()
    for item in state.intel:
        st.markdown(f"**{item.title}**")
        st.markdown(item.content)


def tab_history() -> None:
    state = _session().state
    if not state.history:
        st.info("Nothing yet.")
        return
    for entry in reversed(state.history):
        label = {"start": "Founding", "funding": "Funding"}.get(entry.kind, f"Week {entry.turn}")
        with st.expander(f"{label}: cash {entry.cash_change:+,} · morale {entry.morale_change:+}"):
            st.markdown(entry.narrative)
            if entry.decisions:
                st.caption(f"R&D: {entry.decisions.rd_focus} · Marketing: {entry.decisions.marketing_focus}")
            if entry.competitor_update:
                st.caption(f"Competitor: {entry.competitor_update}")


def page_run() -> None:
    sess = _session()
    state = sess.state

    st.title(state.company_name or APP_TITLE)
    st.caption(get_industry_spec(state.industry).label)
    _render_flash()
    _metrics_row()
    st.markdown("<hr class='soft'/>", unsafe_allow_html=True)

    if state.stage is GameStage.GAME_OVER:
        st.error(f"💀 Game over: {state.game_over_reason}")
        tab_history()
        return

    tabs = st.tabs(["Overview", "Products", "Team", "Facilities", "Funding", "History"])
    with tabs[0]:
        tab_overview()
    with tabs[1]:
        tab_products()
    with tabs[2]:
        tab_team()
    with tabs[3]:
        tab_facilities()
    with tabs[4]:
        tab_funding()
    with tabs[5]:
        tab_history()


def page_debug() -> None:
    sess = _session()
    st.title("Debug")
    st.subheader("Provider")
    st.json(asdict(sess.oracle.status()))
    st.subheader("EngineConfig")
    st.json(sess.config.to_dict())
    st.subheader("Turn logs")
    st.json(sess.turn_logs)


def export_import_controls() -> None:
    ss = st.session_state
    sess = _session()
    st.sidebar.markdown("---")
    st.sidebar.markdown("### Run Export / Import")

    st.sidebar.download_button(
        "Download run file",
        data=sess.export_run().encode("utf-8"),
        file_name=f"startup_tycoon_run_{ss.get('run_id', 'run')}.json",
        mime="application/json",
        disabled=sess.state.stage is GameStage.SETUP,
    )

    up = st.sidebar.file_uploader("Load run file", type=["json"], accept_multiple_files=False)
    if up is not None and ss.get("loaded_upload") != up.name:
        try:
            text = up.read().decode("utf-8")
            loaded = GameSession.from_export(text, oracle=sess.oracle)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            st.sidebar.error(f"Import failed: {e}")
            return
        ss.session = loaded
        ss.industry_key = loaded.state.industry
        ss.loaded_upload = up.name
        st.sidebar.success("Run loaded.")
        st.rerun()


# =========================
# Sidebar
# =========================


def sidebar() -> str:
    ss = st.session_state
    sess = _session()

    st.sidebar.markdown(f"**{APP_TITLE}**  ")
    st.sidebar.markdown(f"v{APP_VERSION} · {API_VERSION}")
    st.sidebar.markdown("---")

    offline = st.sidebar.checkbox("Offline (scripted oracle)", value=bool(ss.offline))
    if offline != ss.offline:
        ss.offline = offline
        sess.oracle = _make_oracle(ss.industry_key, offline)

    ps = sess.oracle.status()
    if ps.ok:
        st.sidebar.success(f"Oracle ready ({ps.backend} / {ps.model})")
    else:
        st.sidebar.warning("Gemini not ready: weeks will use the fallback outcome")
        st.sidebar.caption(ps.error or "Missing API key")

    team = sess.state.employees
    if team:
        roles = {r.value: sum(1 for e in team if e.role is r) for r in Role}
        st.sidebar.caption(" · ".join(f"{k}: {v}" for k, v in roles.items() if v))

    if st.sidebar.button("Reset", use_container_width=True):
        _reset_run()
        st.rerun()

    export_import_controls()

    st.sidebar.markdown("---")
    return st.sidebar.radio("Page", ["Play", "Debug"], index=0)


# =========================
# Main
# =========================


def main() -> None:
    _ensure_state()
    page = sidebar()

    if _session().state.stage is GameStage.SETUP:
        _render_flash()
        page_setup()
        return

    if page == "Play":
        page_run()
    else:
        page_debug()


if __name__ == "__main__":
    main()
