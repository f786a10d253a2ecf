"""Hnefatafl rules engine and alpha-beta search."""

from . import core, features, search
from .core import Board, Game, Play, Role, Space, Square, Status
from .features import canonical_hash, normalize
from .search import (
    EvaluationCache,
    GameTreeNode,
    HeuristicPolicy,
    SearchConfig,
    alphabeta,
    choose_child,
    heuristic,
)

__all__ = [
    "core",
    "features",
    "search",
    "Board",
    "Game",
    "Play",
    "Role",
    "Space",
    "Square",
    "Status",
    "canonical_hash",
    "normalize",
    "EvaluationCache",
    "GameTreeNode",
    "HeuristicPolicy",
    "SearchConfig",
    "alphabeta",
    "choose_child",
    "heuristic",
]
