"""content.providers.gemini

Gemini-backed Oracle (google-genai).

- Tries a list of candidate models, rotates across comma-separated API keys.
- Every JSON reply is parsed + validated here; one low-temperature repair pass
  is attempted before giving up.
- Gives up by raising OracleUnavailable. The engine turns that into a fallback.

Important: This provider is UI-agnostic (no Streamlit dependency).
Secrets/env loading is done in the Streamlit app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

from google import genai

from core.results import OracleUnavailable
from core.state import Candidate, IntelType, TurnOutcome

from ..parsing import try_parse_json
from ..prompts import (
    build_candidates_prompt,
    build_chat_prompt,
    build_intel_prompt,
    build_json_repair_prompt,
    build_pitch_prompt,
    build_story_prompt,
    build_turn_prompt,
)
from ..schemas import (
    CandidateRequest,
    PitchRequest,
    PitchResult,
    Story,
    StoryRequest,
    TurnRequest,
    candidates_from_llm,
    pitch_from_llm,
    story_from_llm,
    turn_outcome_from_llm,
)
from .base import ProviderStatus

log = logging.getLogger(__name__)

T = TypeVar("T")

CANDIDATE_MODELS = [
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-2.5-pro",
    "gemini-1.5-flash",
]


@dataclass
class GeminiOracle:
    api_keys: List[str]
    temperature: float = 0.8
    max_output_tokens: int = 2200
    models: List[str] = field(default_factory=lambda: list(CANDIDATE_MODELS))

    # runtime
    backend: str = "none"  # genai | none
    model_in_use: str = ""
    last_error: str = ""

    _client: Any = None

    def __post_init__(self) -> None:
        self.api_keys = [k.strip() for k in (self.api_keys or []) if str(k).strip()]
        self._init_backend()

    @staticmethod
    def from_api_key_string(raw: str, **kwargs: Any) -> "GeminiOracle":
        if not raw:
            return GeminiOracle([], **kwargs)
        keys = [x.strip() for x in str(raw).split(",") if x.strip()]
        return GeminiOracle(keys, **kwargs)

    def _init_backend(self) -> None:
        self._client = None
        self.backend = "none"

        if not self.api_keys:
            self.last_error = "No API key."
            return

        try:
            self._client = genai.Client(api_key=self.api_keys[0])
        except Exception as e:  # SDK raises assorted errors on bad keys/env
            self.last_error = f"google-genai init failed: {e}"
            log.warning("Gemini client init failed: %s", e)
            return
        self.backend = "genai"
        self.model_in_use = self.model_in_use or self.models[0]
        self.last_error = ""

    def status(self) -> ProviderStatus:
        if self.backend == "none":
            return ProviderStatus(False, "none", "", note="", error=str(self.last_error or ""))
        return ProviderStatus(True, self.backend, self.model_in_use, note=f"{len(self.api_keys)} key(s)", error="")

    def _rotate_key(self) -> None:
        if len(self.api_keys) <= 1:
            return
        self.api_keys = self.api_keys[1:] + self.api_keys[:1]
        log.debug("Rotating Gemini API key (%d keys)", len(self.api_keys))
        self._init_backend()

    # -------------------------
    # transport
    # -------------------------

    def _generate_text(self, prompt: str, *, temperature: float, max_output_tokens: int, as_json: bool = True) -> str:
        last_err: Optional[Exception] = None

        for _ in range(max(1, len(self.api_keys))):
            if self._client is not None:
                for m in self.models:
                    cfg: Dict[str, Any] = {
                        "temperature": float(temperature),
                        "max_output_tokens": int(max_output_tokens),
                    }
                    if as_json:
                        cfg["response_mime_type"] = "application/json"
                    try:
                        resp = self._client.models.generate_content(model=m, contents=prompt, config=cfg)
                    except Exception as e:  # network/quota/model-not-found all surface here
                        last_err = e
                        log.debug("Gemini model %s failed: %s", m, e)
                        continue
                    txt = (getattr(resp, "text", "") or "").strip()
                    if txt:
                        self.model_in_use = m
                        return txt
            self._rotate_key()

        if last_err is not None:
            self.last_error = f"Gemini error: {last_err}"
        elif self._client is not None or not self.last_error:
            self.last_error = "Gemini returned no text."
        raise OracleUnavailable(self.last_error)

    def _call_json(self, prompt: str, *, root: type, validate: Callable[[Any], T], temperature: Optional[float] = None) -> T:
        """Generate, parse and validate; one repair pass on failure."""
        temp = self.temperature if temperature is None else temperature
        raw = self._generate_text(prompt, temperature=temp, max_output_tokens=self.max_output_tokens)
        try:
            return self._parse_and_validate(raw, root, validate)
        except ValueError as e:
            self.last_error = f"{type(e).__name__}: {e}"
            log.info("Gemini reply rejected, trying repair pass: %s", e)

        raw2 = self._generate_text(
            build_json_repair_prompt(raw),
            temperature=0.1,
            max_output_tokens=self.max_output_tokens + 300,
        )
        try:
            return self._parse_and_validate(raw2, root, validate)
        except ValueError as e:
            self.last_error = f"{type(e).__name__}: {e}"
            raise OracleUnavailable(f"Unusable Gemini reply: {e}") from e

    @staticmethod
    def _parse_and_validate(raw: str, root: type, validate: Callable[[Any], T]) -> T:
        res = try_parse_json(raw, root=root)
        if res.data is None:
            raise ValueError(res.error or "JSON parse failed")
        return validate(res.data)

    # -------------------------
    # Oracle
    # -------------------------

    def simulate_turn(self, request: TurnRequest) -> TurnOutcome:
        return self._call_json(build_turn_prompt(request), root=dict, validate=turn_outcome_from_llm)

    def evaluate_pitch(self, request: PitchRequest) -> PitchResult:
        return self._call_json(build_pitch_prompt(request), root=dict, validate=pitch_from_llm)

    def generate_candidates(self, request: CandidateRequest) -> List[Candidate]:
        return self._call_json(
            build_candidates_prompt(request),
            root=list,
            validate=lambda data: candidates_from_llm(data, id_prefix=request.id_prefix),
        )

    def initialize_story(self, request: StoryRequest) -> Story:
        return self._call_json(build_story_prompt(request), root=dict, validate=story_from_llm)

    def chat(self, *, employee_name: str, role: str, message: str) -> str:
        prompt = build_chat_prompt(employee_name=employee_name, role=role, message=message)
        return self._generate_text(prompt, temperature=self.temperature, max_output_tokens=400, as_json=False)

    def advisor_insight(self, *, intel_type: IntelType, industry: str) -> str:
        prompt = build_intel_prompt(intel_type=intel_type, industry=industry)
        return self._generate_text(prompt, temperature=self.temperature, max_output_tokens=600, as_json=False)
