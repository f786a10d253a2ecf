"""Static evaluation of positions for the alpha-beta search.

Scores are fixed-point integers: a float score multiplied by
``SCORE_SCALE`` and truncated toward zero.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from hnefatafl.core import Board, Role, Status
from hnefatafl.features import (
    NormalizedBoardMap,
    attacker_corner_penalties,
    escape_routes,
    fewest_turns_to_escape,
    material_balance,
)

from .tree import GameNode, GameTreeNode, SelectionPolicy

logger = logging.getLogger(__name__)

SCORE_SCALE = 1_000_000
WIN_SCORE = 10_000.0
UNREACHABLE_ESCAPE_SCORE = 8


def float_to_scaled(value: float) -> int:
    return int(value * SCORE_SCALE)


def scaled_to_float(value: int) -> float:
    return value / SCORE_SCALE


class EvaluationCache:
    """Attacker-side scores keyed by symmetry class, safe to share between threads."""

    def __init__(self) -> None:
        self._scores: NormalizedBoardMap[int] = NormalizedBoardMap()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, board: Board) -> Optional[int]:
        with self._lock:
            score = self._scores.get(board)
            if score is None:
                self.misses += 1
            else:
                self.hits += 1
            return score

    def insert(self, board: Board, score: int) -> None:
        with self._lock:
            self._scores.insert(board, score)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def clear(self) -> None:
        with self._lock:
            self._scores.clear()
            self.hits = 0
            self.misses = 0


def attacker_score(board: Board) -> float:
    turns = fewest_turns_to_escape(board)
    if turns is None:
        turns = UNREACHABLE_ESCAPE_SCORE
    return material_balance(board) + turns - escape_routes(board) + attacker_corner_penalties(board)


def heuristic(node: GameTreeNode, cache: Optional[EvaluationCache] = None) -> int:
    """Scaled score of ``node`` for the side to move."""
    sign = 1 if node.turn is Role.ATTACKER else -1
    if node.status is Status.DRAW:
        return 0
    if node.status is Status.ATTACKERS_WIN:
        return float_to_scaled(sign * WIN_SCORE)
    if node.status is Status.DEFENDERS_WIN:
        return float_to_scaled(-sign * WIN_SCORE)

    score = cache.get(node.board) if cache is not None else None
    if score is None:
        score = float_to_scaled(attacker_score(node.board))
        if cache is not None:
            cache.insert(node.board, score)
    return sign * score


class HeuristicPolicy(SelectionPolicy):
    def __init__(self, cache: Optional[EvaluationCache] = None) -> None:
        self.cache = cache

    def _attacker_side(self, node: GameNode) -> int:
        score = heuristic(node, self.cache)
        return score if node.turn is Role.ATTACKER else -score

    def eval_attacker(self, node: GameNode) -> int:
        return self._attacker_side(node)

    def eval_defender(self, node: GameNode) -> int:
        return self._attacker_side(node)

    def compare_children(self, parent: GameNode, left: GameNode, right: GameNode) -> int:
        left_score = self.evaluate(left)
        right_score = self.evaluate(right)
        if parent.turn is Role.DEFENDER:
            left_score, right_score = right_score, left_score
        return (left_score > right_score) - (left_score < right_score)

    def log_cache(self) -> None:
        if self.cache is not None:
            logger.debug(
                "evaluation cache: %d entries, %d hits, %d misses",
                len(self.cache),
                self.cache.hits,
                self.cache.misses,
            )
