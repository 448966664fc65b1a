"""Neuron and connection sets for a layered topology."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from neuroflow.constants import Direction, Variant, parse_variant
from neuroflow.geometry import neuron_id, validate_topology


@dataclass(frozen=True)
class Neuron:
    """A single unit; ``activation`` and ``error`` are illustrative values."""

    layer: int
    index: int
    activation: float = 0.0
    error: float = 0.0

    @property
    def id(self) -> str:
        return neuron_id(self.layer, self.index)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    direction: Direction
    weight: float
    source_layer: int
    target_layer: int

    @property
    def lower_layer(self) -> int:
        return min(self.source_layer, self.target_layer)


@dataclass(frozen=True)
class Graph:
    topology: Tuple[int, ...]
    variant: Variant
    nodes: Tuple[Neuron, ...]
    edges: Tuple[Edge, ...]

    @property
    def node_ids(self) -> frozenset:
        return frozenset(n.id for n in self.nodes)

    def node_map(self) -> Dict[str, Neuron]:
        return {n.id: n for n in self.nodes}

    def edges_between(self, lower_layer: int, direction: Optional[Direction] = None) -> List[Edge]:
        """Edges crossing the boundary between ``lower_layer`` and ``lower_layer + 1``."""
        return [
            e for e in self.edges
            if e.lower_layer == lower_layer and (direction is None or e.direction == direction)
        ]

    def edges_with(self, direction: Direction) -> List[Edge]:
        return [e for e in self.edges if e.direction == direction]


def _value(values: Optional[Sequence[Sequence[float]]], layer: int, index: int) -> float:
    # Short or missing rows read as zero.
    if values is None:
        return 0.0
    try:
        v = values[layer][index]
    except (IndexError, KeyError, TypeError):
        return 0.0
    if v is None:
        return 0.0
    v = float(v)
    return v if np.isfinite(v) else 0.0


def build_nodes(
    topology: Sequence[int],
    activations: Optional[Sequence[Sequence[float]]] = None,
    errors: Optional[Sequence[Sequence[float]]] = None,
) -> Tuple[Neuron, ...]:
    layers = validate_topology(topology)
    return tuple(
        Neuron(layer, i, _value(activations, layer, i), _value(errors, layer, i))
        for layer, count in enumerate(layers)
        for i in range(count)
    )


def build_graph(
    topology: Sequence[int],
    variant,
    activations: Optional[Sequence[Sequence[float]]] = None,
    errors: Optional[Sequence[Sequence[float]]] = None,
    rng: Optional[np.random.Generator] = None,
) -> Graph:
    """Dense adjacent-layer connectivity for ``variant``.

    Backprop gets one forward edge per (lower, upper) neuron pair. Predictive
    coding gets the reciprocal pair: an ``UP`` edge carrying residual error and
    a ``DOWN`` edge carrying the prediction.
    """
    layers = validate_topology(topology)
    variant = parse_variant(variant)
    if rng is None:
        rng = np.random.default_rng()

    nodes = build_nodes(layers, activations, errors)
    edges: List[Edge] = []
    for i in range(len(layers) - 1):
        for j in range(layers[i]):
            for k in range(layers[i + 1]):
                lower, upper = neuron_id(i, j), neuron_id(i + 1, k)
                if variant is Variant.BACKPROP:
                    edges.append(Edge(lower, upper, Direction.FORWARD, float(rng.random()), i, i + 1))
                else:
                    edges.append(Edge(lower, upper, Direction.UP, float(rng.random()), i, i + 1))
                    edges.append(Edge(upper, lower, Direction.DOWN, float(rng.random()), i + 1, i))

    return Graph(topology=layers, variant=variant, nodes=nodes, edges=tuple(edges))


def expected_edge_count(topology: Sequence[int], variant) -> int:
    layers = validate_topology(topology)
    dense = sum(a * b for a, b in zip(layers[:-1], layers[1:]))
    return dense * (2 if parse_variant(variant) is Variant.PREDICTIVE else 1)
