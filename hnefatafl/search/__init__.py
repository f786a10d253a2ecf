"""Game-tree search: child generation, static evaluation and alpha-beta."""

from .alphabeta import (
    MAX_SCORE,
    MIN_SCORE,
    AlphaBeta,
    Choice,
    SearchConfig,
    SearchInvariantError,
    SearchStats,
    alphabeta,
    choose_child,
)
from .evaluation import (
    SCORE_SCALE,
    UNREACHABLE_ESCAPE_SCORE,
    WIN_SCORE,
    EvaluationCache,
    HeuristicPolicy,
    attacker_score,
    float_to_scaled,
    heuristic,
    scaled_to_float,
)
from .tree import ChildIterator, GameNode, GameSummary, GameTreeNode, SelectionPolicy, Threats

__all__ = [
    "MAX_SCORE",
    "MIN_SCORE",
    "AlphaBeta",
    "Choice",
    "SearchConfig",
    "SearchInvariantError",
    "SearchStats",
    "alphabeta",
    "choose_child",
    "SCORE_SCALE",
    "UNREACHABLE_ESCAPE_SCORE",
    "WIN_SCORE",
    "EvaluationCache",
    "HeuristicPolicy",
    "attacker_score",
    "float_to_scaled",
    "heuristic",
    "scaled_to_float",
    "ChildIterator",
    "GameNode",
    "GameSummary",
    "GameTreeNode",
    "SelectionPolicy",
    "Threats",
]
