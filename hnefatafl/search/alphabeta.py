"""Depth-limited alpha-beta search without recursion.

The walk keeps its own stack of frames. Each frame owns the resumable child
iterator of one open node, so backing up to a parent carries on with its
next child where the iterator stopped. Bounds for open nodes live in two
tables keyed by a history-free summary of the node; entries are removed
once a node is closed, so the tables only hold the current path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Sequence

from hnefatafl.core import Role

from .tree import GameNode, GameSummary, GameTreeNode, SelectionPolicy

logger = logging.getLogger(__name__)

MIN_SCORE = -(2**63)
MAX_SCORE = 2**63 - 1

KeyFn = Callable[[Any], Hashable]


class SearchInvariantError(RuntimeError):
    """The bound tables are out of step with the search stack."""


@dataclass
class SearchConfig:
    depth: int = 2
    use_threats: bool = True
    use_cache: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SearchConfig":
        data = dict(data or {})
        unknown = set(data) - {"depth", "use_threats", "use_cache"}
        if unknown:
            raise ValueError(f"Unknown search options: {sorted(unknown)}")
        depth = data.get("depth", cls.depth)
        if isinstance(depth, bool) or not isinstance(depth, int):
            raise ValueError(f"depth must be an integer, got {depth!r}")
        for name in ("use_threats", "use_cache"):
            if name in data and not isinstance(data[name], bool):
                raise ValueError(f"{name} must be true or false, got {data[name]!r}")
        config = cls(**data)
        if config.depth < 0:
            raise ValueError("depth must be non-negative")
        return config


@dataclass
class SearchStats:
    nodes: int = 0
    leaves: int = 0
    cutoffs: int = 0

    def merge(self, other: "SearchStats") -> None:
        self.nodes += other.nodes
        self.leaves += other.leaves
        self.cutoffs += other.cutoffs


class _Frame:
    __slots__ = ("key", "node", "children", "depth", "peeked", "visited", "cut")

    def __init__(self, key: Hashable, node: GameNode, children: Iterator[GameNode], depth: int, peeked: GameNode) -> None:
        self.key = key
        self.node = node
        self.children = children
        self.depth = depth
        self.peeked: Optional[GameNode] = peeked
        self.visited = 0
        self.cut = False


class AlphaBeta:
    def __init__(self, policy: SelectionPolicy, key: KeyFn = GameSummary.from_node) -> None:
        self.policy = policy
        self.key = key
        self.alphas: Dict[Hashable, int] = {}
        self.betas: Dict[Hashable, int] = {}
        self.stats = SearchStats()

    # ------------------------------------------------------------------
    def search(self, root: GameNode, depth: int) -> int:
        if depth < 0:
            raise ValueError("depth must be non-negative")
        if depth == 0 or root.is_terminal:
            return self._evaluate(root)
        children = iter(root.children())
        first = next(children, None)
        if first is None:
            return self._evaluate(root)

        root_key = self.key(root)
        self.alphas[root_key] = MIN_SCORE
        self.betas[root_key] = MAX_SCORE
        stack: List[_Frame] = [_Frame(root_key, root, children, depth, first)]
        value: Optional[int] = None

        while stack:
            frame = stack[-1]
            if value is not None:
                self._fold(frame, value)
                value = None

            if frame.cut or frame.peeked is None:
                stack.pop()
                value = self._close(frame, keep=not stack)
                continue

            child = frame.peeked
            frame.peeked = next(frame.children, None)
            frame.visited += 1
            self.stats.nodes += 1

            if frame.depth == 1 or child.is_terminal:
                value = self._evaluate(child)
                continue
            grandchildren = iter(child.children())
            first = next(grandchildren, None)
            if first is None:
                value = self._evaluate(child)
                continue

            child_key = self.key(child)
            self.alphas[child_key] = self._alpha(frame.key)
            self.betas[child_key] = self._beta(frame.key)
            stack.append(_Frame(child_key, child, grandchildren, frame.depth - 1, first))

        logger.debug(
            "alpha-beta depth %d: %d nodes, %d leaves, %d cutoffs",
            depth,
            self.stats.nodes,
            self.stats.leaves,
            self.stats.cutoffs,
        )
        if value is None:
            raise SearchInvariantError("The root frame closed without a value.")
        return value

    # ------------------------------------------------------------------
    def _evaluate(self, node: GameNode) -> int:
        self.stats.leaves += 1
        return self.policy.evaluate(node)

    def _alpha(self, key: Hashable) -> int:
        try:
            return self.alphas[key]
        except KeyError:
            raise SearchInvariantError(f"No alpha recorded for {key!r}.") from None

    def _beta(self, key: Hashable) -> int:
        try:
            return self.betas[key]
        except KeyError:
            raise SearchInvariantError(f"No beta recorded for {key!r}.") from None

    def _fold(self, frame: _Frame, value: int) -> None:
        alpha = self._alpha(frame.key)
        beta = self._beta(frame.key)
        if frame.node.turn is Role.ATTACKER:
            alpha = max(alpha, value)
            self.alphas[frame.key] = alpha
        else:
            beta = min(beta, value)
            self.betas[frame.key] = beta
        if alpha >= beta and frame.peeked is not None:
            frame.cut = True
            self.stats.cutoffs += 1

    def _close(self, frame: _Frame, keep: bool) -> int:
        if frame.node.turn is Role.ATTACKER:
            value = self._alpha(frame.key)
        else:
            value = self._beta(frame.key)
        if not keep:
            del self.alphas[frame.key]
            del self.betas[frame.key]
        return value


def alphabeta(
    root: GameNode,
    policy: SelectionPolicy,
    depth: int,
    key: KeyFn = GameSummary.from_node,
) -> int:
    """Score of ``root`` seen from the attacker's side after searching ``depth`` plies."""
    return AlphaBeta(policy, key).search(root, depth)


@dataclass
class Choice:
    child: GameTreeNode
    score: int
    stats: SearchStats = field(default_factory=SearchStats)


def choose_child(
    node: GameTreeNode,
    policy: SelectionPolicy,
    depth: int,
    use_threats: bool = True,
) -> Optional[Choice]:
    """Pick the child of ``node`` with the best alpha-beta score for the side to move.

    When ``use_threats`` is set and a defender can win on the spot, only the
    winning plays are considered.
    """
    if depth < 1:
        raise ValueError("depth must be at least 1")
    candidates: Sequence[GameTreeNode]
    threats = node.threats() if use_threats else None
    if threats is not None and not threats.is_quiet:
        candidates = threats.children
    else:
        candidates = node.get_children()
    if not candidates:
        return None

    stats = SearchStats()
    best: Optional[Choice] = None
    for child in candidates:
        engine = AlphaBeta(policy)
        score = engine.search(child, depth - 1)
        stats.merge(engine.stats)
        if best is None:
            best = Choice(child, score)
        elif node.turn is Role.ATTACKER and score > best.score:
            best = Choice(child, score)
        elif node.turn is Role.DEFENDER and score < best.score:
            best = Choice(child, score)
    best.stats = stats
    last_play = best.child.last_play
    logger.debug("chose %s with score %d", last_play.play if last_play else None, best.score)
    return best
