from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .rules import Board, PlayRecord
from .state import Play, PreviousBoards, Role, Square, Status

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    status: Status
    turn: Role
    board: Board
    previous_boards: PreviousBoards
    last_play: Optional[PlayRecord]


@dataclass
class Game:
    """A game played move by move, keeping the full board history.

    Defenders may not repeat a board that has already been reached.
    """

    board: Board = field(default_factory=Board.default)
    turn: Role = Role.ATTACKER
    status: Status = Status.ONGOING
    previous_boards: PreviousBoards = field(default_factory=PreviousBoards)
    last_play: Optional[PlayRecord] = None
    _undo: List[_Snapshot] = field(default_factory=list, repr=False)
    _redo: List[_Snapshot] = field(default_factory=list, repr=False)

    def play(self, origin: Square, target: Square) -> PlayRecord:
        record = self.board.play(Play(self.turn, origin, target), self.status, self.previous_boards)
        self._undo.append(self._snapshot())
        self._redo.clear()

        self.previous_boards.record(record.board)
        self.board = record.board
        self.status = record.status
        self.turn = self.turn.opposite()
        self.last_play = record
        if record.status.is_terminal:
            logger.info("Game finished after %s: %s", record.play, record.status.value)
        return record

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self._snapshot())
        self._restore(self._undo.pop())
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self._snapshot())
        self._restore(self._redo.pop())
        return True

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            status=self.status,
            turn=self.turn,
            board=self.board,
            previous_boards=self.previous_boards.copy(),
            last_play=self.last_play,
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        self.status = snapshot.status
        self.turn = snapshot.turn
        self.board = snapshot.board
        self.previous_boards = snapshot.previous_boards
        self.last_play = snapshot.last_play

    def __str__(self) -> str:
        captured = self.board.captured()
        return (
            f"{self.board}\n"
            f"move: {len(self.previous_boards)} | turn: {self.turn} | status: {self.status.value}\n"
            f"captured: {captured.attacker_summary()} {captured.defender_summary()}"
        )
