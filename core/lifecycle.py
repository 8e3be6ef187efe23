"""
core.lifecycle
Product stage machine.

Pure function of (stage, progress, delta). Randomness lives in the Oracle's
choice of delta, never here.
"""

from __future__ import annotations

from typing import Tuple

from .state import ProductStage

# stage -> (next stage, progress after the transition)
TRANSITIONS = {
    ProductStage.CONCEPT: (ProductStage.MVP, 0.0),
    ProductStage.MVP: (ProductStage.ALPHA, 0.0),
    ProductStage.ALPHA: (ProductStage.RELEASE, 0.0),
    ProductStage.RELEASE: (ProductStage.GROWTH, 50.0),
}

COMPLETE = 100.0


def advance(stage: ProductStage, progress: float, delta: float) -> Tuple[ProductStage, float]:
    """Add delta to progress, then take at most one stage step."""
    progress = float(progress) + float(delta)
    if progress < COMPLETE:
        # setbacks can empty the bar but never regress the stage
        return stage, max(0.0, progress)

    if stage in TRANSITIONS:
        return TRANSITIONS[stage]
    if stage in (ProductStage.GROWTH, ProductStage.MATURE):
        # MATURE is reserved; nothing moves a product into it yet.
        return stage, COMPLETE
    raise ValueError(f"Unhandled product stage: {stage!r}")
