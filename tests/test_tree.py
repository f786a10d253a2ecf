import itertools

import pytest

from helpers import place

from hnefatafl.core import Game, MoveCounter, Role, Square, Status
from hnefatafl.features import canonical_hash
from hnefatafl.search import GameSummary, GameTreeNode, HeuristicPolicy, SelectionPolicy


def sparse_node(turn: Role = Role.ATTACKER) -> GameTreeNode:
    board = place({(3, 3): "K", (7, 7): "O", (8, 2): "O", (2, 8): "X"})
    return GameTreeNode(status=Status.ONGOING, turn=turn, board=board)


def test_root_node() -> None:
    root = GameTreeNode.root()
    assert root.turn is Role.ATTACKER
    assert not root.is_terminal
    assert len(root.positions) == 0
    assert root.last_play is None


def test_children_are_one_per_symmetry_class() -> None:
    root = GameTreeNode.root()
    children = root.get_children()
    hashes = [canonical_hash(child.board) for child in children]
    assert len(set(hashes)) == len(hashes)

    legal = {canonical_hash(record.board) for record in root.board.legal_plays(Role.ATTACKER)}
    assert set(hashes) == legal
    assert len(children) < sum(1 for _ in root.board.legal_plays(Role.ATTACKER))


def test_child_fields() -> None:
    root = sparse_node()
    child = next(root.children())
    assert child.turn is Role.DEFENDER
    assert len(child.positions) == 1
    assert len(root.positions) == 0
    assert child.last_play is not None
    assert child.last_play.board == child.board
    assert child.last_play.play.role is Role.ATTACKER


def test_children_in_row_major_order() -> None:
    children = sparse_node().get_children()
    origins = [child.last_play.play.origin.index for child in children]
    assert origins == sorted(origins)
    assert {child.last_play.play.origin for child in children} == {Square(8, 2), Square(7, 7)}


def test_lazy_matches_eager() -> None:
    node = sparse_node(Role.DEFENDER)
    eager = [child.board for child in node.get_children()]
    lazy = [child.board for child in node.children()]
    assert eager == lazy


def test_iterator_resumes_where_it_stopped() -> None:
    node = sparse_node()
    expected = [child.board for child in node.get_children()]

    iterator = node.children()
    head = [child.board for child in itertools.islice(iterator, 5)]
    position = (iterator.origin, iterator.target)
    middle = next(iterator).board
    assert (iterator.origin, iterator.target) != position
    tail = [child.board for child in iterator]

    assert head + [middle] + tail == expected
    assert list(iterator) == []


def test_terminal_node_has_no_children() -> None:
    node = GameTreeNode(status=Status.DRAW, turn=Role.ATTACKER, board=sparse_node().board)
    assert node.is_terminal
    assert node.get_children() == []
    assert list(node.children()) == []


def test_from_game_counts_moves() -> None:
    game = Game()
    game.play(Square(3, 0), Square(3, 2))
    node = GameTreeNode.from_game(game)
    assert node.turn is Role.DEFENDER
    assert node.board == game.board
    assert node.positions == MoveCounter(1)
    assert node.last_play is game.last_play


def test_summary_is_hashable() -> None:
    node = sparse_node()
    summary = node.summary()
    assert summary == GameSummary.from_node(sparse_node())
    assert summary.moves == 0
    assert {summary: 1}[GameSummary.from_node(node)] == 1
    assert summary != GameSummary.from_node(sparse_node(Role.DEFENDER))


def test_threats_for_defender_next_to_open_corners() -> None:
    board = place({(0, 5): "K", (8, 5): "O"})
    node = GameTreeNode(status=Status.ONGOING, turn=Role.DEFENDER, board=board)
    threats = node.threats()
    assert not threats.is_quiet
    # both corners give mirror images of the same board
    assert len(threats.children) == 1
    assert threats.children[0].status is Status.DEFENDERS_WIN

    asymmetric = GameTreeNode(
        status=Status.ONGOING,
        turn=Role.DEFENDER,
        board=place({(0, 5): "K", (8, 3): "O"}),
    )
    assert len(asymmetric.threats().children) == 2


def test_threats_are_quiet_otherwise() -> None:
    board = place({(0, 5): "K", (8, 5): "O"})
    assert GameTreeNode(status=Status.ONGOING, turn=Role.ATTACKER, board=board).threats().is_quiet
    assert GameTreeNode.root().threats().is_quiet
    assert sparse_node(Role.DEFENDER).threats().is_quiet


def test_get_result() -> None:
    board = sparse_node().board
    won = GameTreeNode(status=Status.ATTACKERS_WIN, turn=Role.DEFENDER, board=board)
    assert won.get_result(Role.ATTACKER) == 1
    assert won.get_result(Role.DEFENDER) == -1
    drawn = GameTreeNode(status=Status.DRAW, turn=Role.DEFENDER, board=board)
    assert drawn.get_result(Role.ATTACKER) == 0
    with pytest.raises(ValueError):
        sparse_node().get_result(Role.ATTACKER)


def test_select_child_prefers_a_win() -> None:
    board = place({(4, 4): "K", (4, 3): "O", (3, 4): "O", (5, 4): "O", (4, 8): "O", (9, 9): "X"})
    node = GameTreeNode(status=Status.ONGOING, turn=Role.ATTACKER, board=board)
    best = node.select_child(HeuristicPolicy())
    assert best.status is Status.ATTACKERS_WIN
    assert best.last_play.play.target == Square(4, 5)
    assert GameTreeNode(status=Status.DRAW, turn=Role.ATTACKER, board=board).select_child(HeuristicPolicy()) is None


class PreferOngoing(SelectionPolicy):
    def compare_children(self, parent, left, right) -> int:
        return int(left.status is Status.ONGOING) - int(right.status is Status.ONGOING)


def test_select_child_narrows_to_threats() -> None:
    node = GameTreeNode(status=Status.ONGOING, turn=Role.DEFENDER, board=place({(0, 5): "K", (8, 3): "O"}))
    best = node.select_child(PreferOngoing())
    assert best.status is Status.DEFENDERS_WIN
    assert best.last_play.play.target in {Square(0, 0), Square(0, 10)}

    # an explicit candidate list still wins over the threats
    quiet = [child for child in node.get_children() if child.status is Status.ONGOING]
    assert node.select_child(PreferOngoing(), quiet).status is Status.ONGOING
