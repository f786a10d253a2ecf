from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .state import (
    ALL_SQUARES,
    BOARD_LETTERS,
    BOARD_SIZE,
    EXIT_SQUARES,
    MOVE_LIMIT,
    RESTRICTED_SQUARES,
    SQUARE_COUNT,
    THRONE,
    BlockedPathError,
    BoardParseError,
    GameOverError,
    MoveCounter,
    Play,
    PlayError,
    PositionsTracker,
    RepeatedPositionError,
    RestrictedSquareError,
    Role,
    Space,
    Square,
    Status,
    WrongTurnError,
)

BoardArray = NDArray[np.int8]

STARTING_POSITION: Tuple[str, ...] = (
    "...OOOOO...",
    ".....O.....",
    "...........",
    "O....X....O",
    "O...XXX...O",
    "OO.XXKXX.OO",
    "O...XXX...O",
    "O....X....O",
    "...........",
    ".....O.....",
    "...OOOOO...",
)
STARTING_ATTACKERS = 24
STARTING_DEFENDERS = 12

DIRECTIONS: Tuple[Tuple[int, int], ...] = ((0, -1), (-1, 0), (1, 0), (0, 1))

EMPTY = int(Space.EMPTY)
ATTACKER = int(Space.ATTACKER)
DEFENDER = int(Space.DEFENDER)
KING = int(Space.KING)

_EXIT_INDICES = frozenset(square.index for square in EXIT_SQUARES)
_RESTRICTED_INDICES = frozenset(square.index for square in RESTRICTED_SQUARES)
_THRONE_INDEX = THRONE.index
_NEIGHBOURS: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(neighbour.index for neighbour in square.neighbours()) for square in ALL_SQUARES
)


def _is_ally(value: int, role: Role) -> bool:
    if role is Role.ATTACKER:
        return value == ATTACKER
    return value == DEFENDER or value == KING


@dataclass(frozen=True)
class Captured:
    attackers: int
    defenders: int
    king: bool

    def attacker_summary(self) -> str:
        return f"♙ {self.attackers}"

    def defender_summary(self) -> str:
        text = f"♟ {self.defenders}"
        if self.king:
            text += " ♔"
        return text


@dataclass(frozen=True)
class PlayRecord:
    play: Play
    board: "Board"
    captures: Tuple[Square, ...] = ()
    status: Status = Status.ONGOING


class Board:
    """An immutable 11x11 board stored row-major as 121 ``int8`` cells."""

    __slots__ = ("cells", "_spaces", "_key")

    def __init__(self, cells: Sequence[int] | BoardArray) -> None:
        array = np.array(cells, dtype=np.int8).reshape(SQUARE_COUNT)
        array.flags.writeable = False
        self.cells: BoardArray = array
        self._spaces: Tuple[int, ...] = tuple(array.tolist())
        self._key = array.tobytes()

    # ------------------------------------------------------------------
    @classmethod
    def empty(cls) -> "Board":
        return cls(np.zeros(SQUARE_COUNT, dtype=np.int8))

    @classmethod
    def default(cls) -> "Board":
        return cls.from_rows(STARTING_POSITION)

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Board":
        if len(rows) != BOARD_SIZE:
            raise BoardParseError(f"A board needs {BOARD_SIZE} rows, got {len(rows)}.")
        cells = np.zeros(SQUARE_COUNT, dtype=np.int8)
        kings = 0
        for y, row in enumerate(rows):
            if len(row) != BOARD_SIZE:
                raise BoardParseError(f"Row {y} must have {BOARD_SIZE} squares, got {len(row)}.")
            for x, char in enumerate(row):
                try:
                    space = Space.from_char(char)
                except ValueError as exc:
                    raise BoardParseError(str(exc)) from None
                square = Square(x, y)
                if space in (Space.ATTACKER, Space.DEFENDER) and square in RESTRICTED_SQUARES:
                    raise BoardParseError("Only the king is allowed on restricted squares!")
                if space is Space.KING:
                    kings += 1
                    if kings > 1:
                        raise BoardParseError("You can only have one king!")
                cells[square.index] = int(space)
        return cls(cells)

    @classmethod
    def from_text(cls, text: str) -> "Board":
        rows = [line.strip() for line in text.splitlines() if line.strip()]
        return cls.from_rows(rows)

    @classmethod
    def _from_spaces(cls, spaces: List[int]) -> "Board":
        return cls(np.array(spaces, dtype=np.int8))

    # ------------------------------------------------------------------
    @property
    def grid(self) -> BoardArray:
        """A read-only ``(y, x)`` view of the cells."""
        return self.cells.reshape(BOARD_SIZE, BOARD_SIZE)

    def get(self, square: Square) -> Space:
        return Space(self._spaces[square.index])

    def is_occupied(self, square: Square) -> bool:
        return self._spaces[square.index] != EMPTY

    def find_the_king(self) -> Optional[Square]:
        try:
            return ALL_SQUARES[self._spaces.index(KING)]
        except ValueError:
            return None

    def count(self, role: Role) -> int:
        """Pieces on the board for ``role``; the king counts as a defender."""
        if role is Role.ATTACKER:
            return self._spaces.count(ATTACKER)
        return self._spaces.count(DEFENDER) + self._spaces.count(KING)

    def attackers(self) -> int:
        return self.count(Role.ATTACKER)

    def defenders(self) -> int:
        return self.count(Role.DEFENDER)

    def captured(self) -> Captured:
        return Captured(
            attackers=STARTING_ATTACKERS - self._spaces.count(ATTACKER),
            defenders=STARTING_DEFENDERS - self._spaces.count(DEFENDER),
            king=KING not in self._spaces,
        )

    def to_rows(self) -> Tuple[str, ...]:
        chars = [Space(value).to_char() for value in self._spaces]
        return tuple(
            "".join(chars[y * BOARD_SIZE:(y + 1) * BOARD_SIZE]) for y in range(BOARD_SIZE)
        )

    # ------------------------------------------------------------------
    def play(
        self,
        play: Play,
        status: Status = Status.ONGOING,
        previous: Optional[PositionsTracker] = None,
    ) -> PlayRecord:
        """Apply ``play`` and return the resulting board, captures and status.

        The board itself is left untouched. Illegal plays raise a
        :class:`~hnefatafl.core.state.PlayError` subclass.
        """
        if previous is None:
            previous = MoveCounter()
        if status is not Status.ONGOING:
            raise GameOverError("The game has to be ongoing to play.")
        play.validate()

        spaces = self._spaces
        moving = spaces[play.origin.index]
        if not _is_ally(moving, play.role):
            raise WrongTurnError(f"You must select a piece of type {play.role}.")
        for square in play.path():
            if spaces[square.index] != EMPTY:
                raise BlockedPathError("Pieces may not move through other pieces.")
        if moving != KING and play.target in RESTRICTED_SQUARES:
            raise RestrictedSquareError("Only the king may move to a restricted square.")

        cells = list(spaces)
        cells[play.origin.index] = EMPTY
        cells[play.target.index] = moving
        captures = _custom_captures(cells, play.target, play.role)
        captures.extend(_shield_wall_captures(cells, play.target, play.role))

        board = Board._from_spaces(cells)
        if play.role is Role.DEFENDER and previous.contains(board):
            raise RepeatedPositionError("You already reached that position.")

        return PlayRecord(
            play=play,
            board=board,
            captures=tuple(captures),
            status=board._status_after(play, len(previous)),
        )

    def _status_after(self, play: Play, moves_before: int) -> Status:
        spaces = self._spaces
        if play.target.index in _EXIT_INDICES and spaces[play.target.index] == KING:
            return Status.DEFENDERS_WIN
        if self.capture_the_king():
            return Status.ATTACKERS_WIN
        if self.flood_fill_attackers_win():
            return Status.ATTACKERS_WIN
        if not self.able_to_move(play.role.opposite()):
            return Status.win_for(play.role)
        if moves_before + 1 >= MOVE_LIMIT:
            return Status.DRAW
        return Status.ONGOING

    def capture_the_king(self) -> bool:
        king = self.find_the_king()
        if king is None:
            return False
        for dx, dy in DIRECTIONS:
            neighbour = king.step(dx, dy)
            if neighbour is None or self._spaces[neighbour.index] != ATTACKER:
                return False
        return True

    def flood_fill_attackers_win(self) -> bool:
        """True when no corner can reach a defender or the king.

        The walk goes through empty squares. It may also climb onto the
        attackers chained to the corner, so a cluster fencing a corner in
        does not hide the rest of the board from it. Beyond that chain only
        empty squares are crossed.
        """
        spaces = self._spaces
        for corner in EXIT_SQUARES:
            start = corner.index
            seen = {start}
            chained = {start}
            queue = deque([start])
            while queue:
                index = queue.popleft()
                on_chain = index in chained
                for neighbour in _NEIGHBOURS[index]:
                    if neighbour in seen:
                        continue
                    value = spaces[neighbour]
                    if value == DEFENDER or value == KING:
                        return False
                    if value == ATTACKER and on_chain:
                        chained.add(neighbour)
                    elif value != EMPTY:
                        continue
                    seen.add(neighbour)
                    queue.append(neighbour)
        return True

    def able_to_move(self, role: Role) -> bool:
        """Cheap move-existence check: any single orthogonal step onto a free square."""
        spaces = self._spaces
        for index, value in enumerate(spaces):
            if not _is_ally(value, role):
                continue
            for neighbour in _NEIGHBOURS[index]:
                if spaces[neighbour] != EMPTY:
                    continue
                if neighbour not in _RESTRICTED_INDICES or value == KING:
                    return True
        return False

    def legal_plays(
        self,
        role: Role,
        status: Status = Status.ONGOING,
        previous: Optional[PositionsTracker] = None,
    ) -> Iterator[PlayRecord]:
        """Every legal play for ``role``, origins and targets in row-major order."""
        if status is not Status.ONGOING:
            return
        for origin in ALL_SQUARES:
            if not _is_ally(self._spaces[origin.index], role):
                continue
            for target in sorted(self._line_targets(origin), key=lambda square: square.index):
                try:
                    yield self.play(Play(role, origin, target), status, previous)
                except PlayError:
                    continue

    def a_legal_move_exists(
        self,
        status: Status,
        turn: Role,
        previous: Optional[PositionsTracker] = None,
    ) -> bool:
        return next(self.legal_plays(turn, status, previous), None) is not None

    def _line_targets(self, origin: Square) -> Iterator[Square]:
        for dx, dy in DIRECTIONS:
            square = origin.step(dx, dy)
            while square is not None and self._spaces[square.index] == EMPTY:
                yield square
                square = square.step(dx, dy)

    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        return isinstance(other, Board) and self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return "Board(\n" + "\n".join(f'    "{row}",' for row in self.to_rows()) + "\n)"

    def __str__(self) -> str:
        letters = "   " + BOARD_LETTERS
        bar = "─" * BOARD_SIZE
        lines = [letters, f"  ┌{bar}┐"]
        symbols = {EMPTY: ".", ATTACKER: "♟", DEFENDER: "♙", KING: "♔"}
        for y in range(BOARD_SIZE):
            label = BOARD_SIZE - y
            row = []
            for x in range(BOARD_SIZE):
                value = self._spaces[y * BOARD_SIZE + x]
                if value == EMPTY and Square(x, y) in RESTRICTED_SQUARES:
                    row.append("⌘")
                else:
                    row.append(symbols[value])
            lines.append(f"{label:2}│{''.join(row)}│{label:2}")
        lines.append(f"  └{bar}┘")
        lines.append(letters)
        return "\n".join(lines)


def _custom_captures(cells: List[int], target: Square, role: Role) -> List[Square]:
    king_on_throne = cells[_THRONE_INDEX] == KING
    captures: List[Square] = []
    for dx, dy in DIRECTIONS:
        neighbour = target.step(dx, dy)
        if neighbour is None:
            continue
        value = cells[neighbour.index]
        if value == EMPTY or value == KING or _is_ally(value, role):
            continue
        beyond = neighbour.step(dx, dy)
        if beyond is None:
            continue
        hostile_square = beyond.index in _EXIT_INDICES or (
            beyond.index == _THRONE_INDEX and not king_on_throne
        )
        if hostile_square or _is_ally(cells[beyond.index], role):
            cells[neighbour.index] = EMPTY
            captures.append(neighbour)
    return captures


def _edge_walks(target: Square) -> Iterator[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """(walk direction, inward direction) pairs along each edge the target touches."""
    last = BOARD_SIZE - 1
    if target.x == 0:
        yield (0, -1), (1, 0)
        yield (0, 1), (1, 0)
    if target.x == last:
        yield (0, -1), (-1, 0)
        yield (0, 1), (-1, 0)
    if target.y == 0:
        yield (-1, 0), (0, 1)
        yield (1, 0), (0, 1)
    if target.y == last:
        yield (-1, 0), (0, -1)
        yield (1, 0), (0, -1)


def _shield_wall_run(
    cells: List[int],
    target: Square,
    role: Role,
    walk: Tuple[int, int],
    inward: Tuple[int, int],
) -> List[Square]:
    run: List[Square] = []
    square = target.step(*walk)
    while square is not None:
        if square.index in _EXIT_INDICES:
            return run
        value = cells[square.index]
        if value == EMPTY:
            return []
        if _is_ally(value, role):
            return run
        shield = square.step(*inward)
        if shield is None or not _is_ally(cells[shield.index], role):
            return []
        run.append(square)
        square = square.step(*walk)
    return []


def _shield_wall_captures(cells: List[int], target: Square, role: Role) -> List[Square]:
    if not target.touches_wall():
        return []
    captures: List[Square] = []
    for walk, inward in _edge_walks(target):
        for square in _shield_wall_run(cells, target, role, walk, inward):
            if cells[square.index] == KING:
                continue
            cells[square.index] = EMPTY
            captures.append(square)
    return captures
