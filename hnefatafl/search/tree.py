from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from hnefatafl.core import (
    ALL_SQUARES,
    EXIT_SQUARES,
    SQUARE_COUNT,
    Board,
    Game,
    MoveCounter,
    Play,
    PlayError,
    PlayRecord,
    PositionsTracker,
    Role,
    Status,
)
from hnefatafl.features import NormalizedBoardSet


class GameNode:
    """Node interface consumed by the search engine."""

    turn: Role

    @property
    def is_terminal(self) -> bool:
        raise NotImplementedError

    def children(self) -> Iterator["GameNode"]:
        """A resumable iterator over the children of this node."""
        raise NotImplementedError

    def get_children(self) -> List["GameNode"]:
        return list(self.children())


class SelectionPolicy:
    """Scores leaves and ranks children.

    Scores are integers seen from the attacker's side. ``eval_attacker`` is
    called for leaves where the attacker is to move, ``eval_defender`` for
    the others.
    """

    def eval_attacker(self, node: GameNode) -> int:
        raise NotImplementedError

    def eval_defender(self, node: GameNode) -> int:
        raise NotImplementedError

    def compare_children(self, parent: GameNode, left: GameNode, right: GameNode) -> int:
        """Positive when ``left`` is better than ``right`` for the side to move at ``parent``."""
        raise NotImplementedError

    def evaluate(self, node: GameNode) -> int:
        if node.turn is Role.ATTACKER:
            return self.eval_attacker(node)
        return self.eval_defender(node)


@dataclass(frozen=True)
class GameSummary:
    """History-free fingerprint of a node."""

    status: Status
    moves: int
    turn: Role
    board: Board

    @classmethod
    def from_node(cls, node: "GameTreeNode") -> "GameSummary":
        return cls(status=node.status, moves=len(node.positions), turn=node.turn, board=node.board)


@dataclass(frozen=True)
class Threats:
    """Plays that win on the spot. Empty when the position is quiet."""

    children: Tuple["GameTreeNode", ...] = ()

    @property
    def is_quiet(self) -> bool:
        return not self.children


@dataclass
class GameTreeNode(GameNode):
    status: Status
    turn: Role
    board: Board
    positions: PositionsTracker = field(default_factory=MoveCounter)
    last_play: Optional[PlayRecord] = field(default=None, compare=False)

    @classmethod
    def from_game(cls, game: Game) -> "GameTreeNode":
        return cls(
            status=game.status,
            turn=game.turn,
            board=game.board,
            positions=MoveCounter(len(game.previous_boards)),
            last_play=game.last_play,
        )

    @classmethod
    def root(cls) -> "GameTreeNode":
        return cls(status=Status.ONGOING, turn=Role.ATTACKER, board=Board.default())

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def children(self) -> "ChildIterator":
        return ChildIterator(self)

    def get_children(self) -> List["GameTreeNode"]:
        return list(self.children())

    def child(self, record: PlayRecord) -> "GameTreeNode":
        positions = self.positions.copy()
        positions.record(record.board)
        return GameTreeNode(
            status=record.status,
            turn=self.turn.opposite(),
            board=record.board,
            positions=positions,
            last_play=record,
        )

    def summary(self) -> GameSummary:
        return GameSummary.from_node(self)

    def threats(self) -> Threats:
        """King moves straight to a corner, for a defender to move."""
        if self.turn is not Role.DEFENDER or self.is_terminal:
            return Threats()
        king = self.board.find_the_king()
        if king is None:
            return Threats()
        seen = NormalizedBoardSet()
        found: List[GameTreeNode] = []
        for corner in EXIT_SQUARES:
            try:
                record = self.board.play(Play(Role.DEFENDER, king, corner), self.status, self.positions)
            except PlayError:
                continue
            if seen.add(record.board):
                found.append(self.child(record))
        return Threats(tuple(found))

    def select_child(
        self,
        policy: SelectionPolicy,
        children: Optional[Sequence["GameTreeNode"]] = None,
    ) -> Optional["GameTreeNode"]:
        if children is None:
            threats = self.threats()
            children = self.get_children() if threats.is_quiet else threats.children
        if not children:
            return None
        key = functools.cmp_to_key(lambda left, right: policy.compare_children(self, left, right))
        return max(children, key=key)

    def get_result(self, role: Role) -> int:
        """+1 if ``role`` won, -1 if it lost and 0 for a draw."""
        if self.status is Status.DRAW:
            return 0
        if self.status is Status.ONGOING:
            raise ValueError("The game is not over yet.")
        return 1 if self.status is Status.win_for(role) else -1

    def __str__(self) -> str:
        return f"{self.board}\nturn: {self.turn} | status: {self.status.value} | moves: {len(self.positions)}"


class ChildIterator:
    """Lazy child generation that can stop and resume at any point.

    Origins and targets are walked in row-major order; the position in that
    double loop is kept in ``origin`` and ``target``. Only the first child
    of each symmetry class is produced.
    """

    __slots__ = ("node", "origin", "target", "_seen")

    def __init__(self, node: GameTreeNode) -> None:
        self.node = node
        self.origin = 0
        self.target = 0
        self._seen = NormalizedBoardSet()

    def __iter__(self) -> "ChildIterator":
        return self

    def __next__(self) -> GameTreeNode:
        node = self.node
        if node.is_terminal:
            raise StopIteration
        board, turn = node.board, node.turn
        while self.origin < SQUARE_COUNT:
            origin = ALL_SQUARES[self.origin]
            if board.get(origin).is_ally(turn):
                while self.target < SQUARE_COUNT:
                    target = ALL_SQUARES[self.target]
                    self.target += 1
                    if target.x != origin.x and target.y != origin.y:
                        continue
                    try:
                        record = board.play(Play(turn, origin, target), node.status, node.positions)
                    except PlayError:
                        continue
                    if self._seen.add(record.board):
                        return node.child(record)
            self.origin += 1
            self.target = 0
        raise StopIteration
