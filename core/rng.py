"""
core.rng
Deterministic RNG helpers that do NOT rely on Python's built-in hash().

Goal:
- Same (base_seed + inputs) => same Random stream across platforms & runs,
  so a hire made on turn N of a replayed session produces the same employee.
"""

from __future__ import annotations

import hashlib
import json
import random
from dataclasses import dataclass
from typing import Any, List, Sequence


def stable_int_seed(*parts: Any, salt: str = "startup-tycoon") -> int:
    """Return a stable 32-bit integer seed derived from arbitrary inputs.

    Uses SHA-256 over a canonical JSON representation of `parts`.
    `default=str` lets enums and other non-JSON values participate.
    """
    payload = json.dumps(parts, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)
    h = hashlib.sha256((salt + "|" + payload).encode("utf-8")).digest()
    return int.from_bytes(h[:4], "big", signed=False)


def rng_from(*parts: Any, base_seed: int) -> random.Random:
    """Create a Random instance from (base_seed + parts)."""
    seed = stable_int_seed(base_seed, *parts)
    return random.Random(seed)


@dataclass(frozen=True)
class HireRoll:
    morale: int
    loyalty: int
    traits: List[str]


def roll_hire(*, base_seed: int, candidate_id: str, turn: int, vocabulary: Sequence[str]) -> HireRoll:
    """Fresh-hire personality: morale in [80,100), loyalty in [50,100), 1-2 traits."""
    rng = rng_from("hire", candidate_id, int(turn), base_seed=int(base_seed))
    morale = 80 + rng.randrange(20)
    loyalty = 50 + rng.randrange(50)
    traits = [rng.choice(list(vocabulary))]
    if rng.random() > 0.5:
        second = rng.choice(list(vocabulary))
        # traits are a set of tags
        if second not in traits:
            traits.append(second)
    return HireRoll(morale=morale, loyalty=loyalty, traits=traits)
