"""Board features for the Hnefatafl engine: symmetries and escape metrics."""

from .heuristics import (
    MATERIAL_OFFSET,
    advance_linearly,
    attacker_corner_penalties,
    edmonds_karp,
    escape_routes,
    fewest_turns_to_escape,
    material_balance,
    shortest_escape,
)
from .symmetry import (
    BITBOARD_BYTES,
    Generator,
    NormalizedBoardMap,
    NormalizedBoardSet,
    Transform,
    all_transforms,
    apply_transform,
    bitboard,
    canonical_hash,
    inverse,
    normalize,
    normalizing_transform,
    symmetries,
    transform_play,
    transform_square,
)

__all__ = [
    "MATERIAL_OFFSET",
    "advance_linearly",
    "attacker_corner_penalties",
    "edmonds_karp",
    "escape_routes",
    "fewest_turns_to_escape",
    "material_balance",
    "shortest_escape",
    "BITBOARD_BYTES",
    "Generator",
    "NormalizedBoardMap",
    "NormalizedBoardSet",
    "Transform",
    "all_transforms",
    "apply_transform",
    "bitboard",
    "canonical_hash",
    "inverse",
    "normalize",
    "normalizing_transform",
    "symmetries",
    "transform_play",
    "transform_square",
]
