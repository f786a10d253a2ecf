import random
from typing import List, Optional

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from helpers import place

from hnefatafl.core import Role, Square, Status
from hnefatafl.search import (
    MAX_SCORE,
    MIN_SCORE,
    SCORE_SCALE,
    AlphaBeta,
    EvaluationCache,
    GameNode,
    GameTreeNode,
    HeuristicPolicy,
    SearchConfig,
    SearchInvariantError,
    SelectionPolicy,
    alphabeta,
    choose_child,
)

WIN = 10_000 * SCORE_SCALE


class BinaryNode(GameNode):
    """Complete binary tree; the left child of ``label`` is ``label << 1``."""

    def __init__(self, level: int, label: int, max_level: int) -> None:
        self.level = level
        self.label = label
        self.max_level = max_level
        self.turn = Role.DEFENDER if level & 1 else Role.ATTACKER

    @property
    def is_terminal(self) -> bool:
        return self.level == self.max_level

    def children(self):
        if self.is_terminal:
            return iter(())
        left = BinaryNode(self.level + 1, self.label << 1, self.max_level)
        right = BinaryNode(self.level + 1, (self.label << 1) + 1, self.max_level)
        return iter((left, right))


class RandomNode(GameNode):
    def __init__(self, label: int, turn: Role, score: int, terminal: bool = False) -> None:
        self.label = label
        self.turn = turn
        self.score = score
        self.terminal = terminal
        self.kids: List["RandomNode"] = []

    @property
    def is_terminal(self) -> bool:
        return self.terminal

    def children(self):
        return iter(self.kids)


class ScorePolicy(SelectionPolicy):
    def __init__(self, scores: Optional[List[int]] = None) -> None:
        self.scores = scores
        self.queries: List[int] = []

    def _score(self, node) -> int:
        self.queries.append(node.label)
        if self.scores is not None:
            return self.scores[node.label]
        return node.score

    def eval_attacker(self, node) -> int:
        return self._score(node)

    def eval_defender(self, node) -> int:
        return self._score(node)

    def compare_children(self, parent, left, right) -> int:
        return self._score(left) - self._score(right)


def binary_key(node: BinaryNode):
    return node.level, node.label


def random_tree(rng: random.Random, levels: int, branching: int) -> RandomNode:
    labels = iter(range(10_000))

    def build(level: int) -> RandomNode:
        turn = rng.choice((Role.ATTACKER, Role.DEFENDER))
        node = RandomNode(next(labels), turn, rng.randint(-20, 20))
        if level == levels:
            return node
        if rng.random() < 0.1:
            node.terminal = True
            return node
        for _ in range(rng.randint(0, branching)):
            node.kids.append(build(level + 1))
        return node

    return build(0)


def minimax(node: RandomNode, depth: int, leaves: List[int]) -> int:
    if depth == 0 or node.is_terminal or not node.kids:
        leaves[0] += 1
        return node.score
    values = [minimax(kid, depth - 1, leaves) for kid in node.kids]
    return max(values) if node.turn is Role.ATTACKER else min(values)


def test_terminal_root_is_evaluated_directly() -> None:
    policy = ScorePolicy([10])
    assert alphabeta(BinaryNode(0, 0, 0), policy, 3, key=binary_key) == 10
    assert policy.queries == [0]


def test_one_level_tree() -> None:
    policy = ScorePolicy([1, 2])
    assert alphabeta(BinaryNode(0, 0, 1), policy, 3, key=binary_key) == 2


def test_depth_zero_skips_the_tree() -> None:
    policy = ScorePolicy([7, 1, 2])
    engine = AlphaBeta(policy, key=binary_key)
    assert engine.search(BinaryNode(0, 0, 5), 0) == 7
    assert engine.alphas == {} and engine.betas == {}
    assert engine.stats.leaves == 1


def test_pruning() -> None:
    policy = ScorePolicy([-1, 3, 5, 7, -6, -4, -8, -9])
    engine = AlphaBeta(policy, key=binary_key)
    assert engine.search(BinaryNode(0, 0, 5), 3) == 3
    assert sorted(policy.queries) == [0, 1, 2, 4, 5]
    assert engine.stats.leaves == 5
    assert engine.stats.cutoffs == 2

    # only the root bounds are left behind
    assert engine.alphas == {(0, 0): 3}
    assert engine.betas == {(0, 0): MAX_SCORE}


def test_negative_depth_is_rejected() -> None:
    with pytest.raises(ValueError):
        alphabeta(BinaryNode(0, 0, 2), ScorePolicy([0, 0]), -1, key=binary_key)


def test_colliding_keys_break_the_search() -> None:
    policy = ScorePolicy([0, 1, 2, 3, 4, 5, 6, 7])
    with pytest.raises(SearchInvariantError):
        alphabeta(BinaryNode(0, 0, 3), policy, 3, key=lambda node: "same")


def test_sentinels() -> None:
    assert MIN_SCORE == -(2**63)
    assert MAX_SCORE == 2**63 - 1


@given(
    seed=st.integers(min_value=0, max_value=2**32 - 1),
    depth=st.integers(min_value=0, max_value=4),
    branching=st.integers(min_value=1, max_value=4),
)
@settings(max_examples=150, deadline=None)
def test_matches_minimax(seed: int, depth: int, branching: int) -> None:
    root = random_tree(random.Random(seed), levels=4, branching=branching)
    leaves = [0]
    expected = minimax(root, depth, leaves)

    engine = AlphaBeta(ScorePolicy(), key=lambda node: node.label)
    assert engine.search(root, depth) == expected
    assert engine.stats.leaves <= leaves[0]
    assert set(engine.alphas) <= {root.label}
    assert set(engine.betas) <= {root.label}


def lone_king_node(turn: Role) -> GameTreeNode:
    board = place({(0, 5): "K", (8, 3): "O"})
    return GameTreeNode(status=Status.ONGOING, turn=turn, board=board)


def test_defender_wins_in_one() -> None:
    policy = HeuristicPolicy(EvaluationCache())
    assert alphabeta(lone_king_node(Role.DEFENDER), policy, 1) == -WIN


def test_real_board_matches_minimax() -> None:
    cache = EvaluationCache()
    policy = HeuristicPolicy(cache)
    root = GameTreeNode(
        status=Status.ONGOING,
        turn=Role.ATTACKER,
        board=place({(3, 3): "K", (7, 7): "O"}),
    )

    def full_width(node: GameTreeNode, depth: int) -> int:
        children = node.get_children() if depth and not node.is_terminal else []
        if not children:
            return policy.evaluate(node)
        values = [full_width(child, depth - 1) for child in children]
        return max(values) if node.turn is Role.ATTACKER else min(values)

    engine = AlphaBeta(policy)
    assert engine.search(root, 2) == full_width(root, 2)
    assert list(engine.alphas) == [root.summary()]


def test_choose_child_takes_the_king() -> None:
    board = place({(4, 4): "K", (4, 3): "O", (3, 4): "O", (5, 4): "O", (4, 8): "O", (9, 9): "X"})
    node = GameTreeNode(status=Status.ONGOING, turn=Role.ATTACKER, board=board)
    choice = choose_child(node, HeuristicPolicy(EvaluationCache()), 1)
    assert choice.child.status is Status.ATTACKERS_WIN
    assert choice.child.last_play.play.target == Square(4, 5)
    assert choice.score == WIN
    assert choice.stats.leaves == len(node.get_children())


def test_choose_child_uses_threats() -> None:
    node = lone_king_node(Role.DEFENDER)
    choice = choose_child(node, HeuristicPolicy(), 2)
    assert choice.child.status is Status.DEFENDERS_WIN
    assert choice.score == -WIN
    assert choice.stats.leaves == 2


def test_choose_child_edge_cases() -> None:
    finished = GameTreeNode(status=Status.DRAW, turn=Role.ATTACKER, board=lone_king_node(Role.ATTACKER).board)
    assert choose_child(finished, HeuristicPolicy(), 1) is None
    with pytest.raises(ValueError):
        choose_child(lone_king_node(Role.ATTACKER), HeuristicPolicy(), 0)


def test_search_config() -> None:
    assert SearchConfig() == SearchConfig(depth=2, use_threats=True, use_cache=True)
    assert SearchConfig.from_dict(None) == SearchConfig()
    assert SearchConfig.from_dict({"depth": 3, "use_cache": False}) == SearchConfig(depth=3, use_cache=False)
    with pytest.raises(ValueError):
        SearchConfig.from_dict({"width": 3})
    with pytest.raises(ValueError):
        SearchConfig.from_dict({"depth": -1})
    with pytest.raises(ValueError):
        SearchConfig.from_dict({"depth": "3"})
    with pytest.raises(ValueError):
        SearchConfig.from_dict({"depth": True})
    with pytest.raises(ValueError):
        SearchConfig.from_dict({"use_cache": "no"})
