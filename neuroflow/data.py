"""Sample activation/error data used as stand-ins for real model state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from neuroflow.geometry import validate_topology


@dataclass(frozen=True)
class SampleData:
    activations: List[List[float]]
    errors: List[List[float]]


SampleSource = Callable[[Sequence[int]], SampleData]


def random_sample_source(
    seed: Optional[int] = None,
    error_scale: float = 0.4,
) -> SampleSource:
    """Activations uniform in [0, 1), errors uniform in [0, error_scale)."""
    rng = np.random.default_rng(seed)

    def generate(topology: Sequence[int]) -> SampleData:
        layers = validate_topology(topology)
        activations = [rng.random(n).tolist() for n in layers]
        errors = [(rng.random(n) * error_scale).tolist() for n in layers]
        return SampleData(activations, errors)

    return generate


def constant_sample_source(activation: float = 0.5, error: float = 0.1) -> SampleSource:
    """Deterministic fixture source."""

    def generate(topology: Sequence[int]) -> SampleData:
        layers = validate_topology(topology)
        return SampleData(
            [[activation] * n for n in layers],
            [[error] * n for n in layers],
        )

    return generate
