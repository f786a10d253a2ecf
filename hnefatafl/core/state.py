from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Iterator, Optional, Set, Tuple, Union

if TYPE_CHECKING:
    from .rules import Board

BOARD_SIZE = 11
SQUARE_COUNT = BOARD_SIZE * BOARD_SIZE
BOARD_LETTERS = "ABCDEFGHIJK"
MOVE_LIMIT = 100


class Role(Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"

    def opposite(self) -> "Role":
        return Role.DEFENDER if self is Role.ATTACKER else Role.ATTACKER

    @staticmethod
    def parse(text: str) -> "Role":
        try:
            return Role(text.strip().lower())
        except ValueError:
            raise ValueError(f"Cannot convert {text!r} to a role.") from None

    def __str__(self) -> str:
        return self.value


class Space(IntEnum):
    """Content of a square. The values are the 2-bit bitboard codes."""

    EMPTY = 0
    ATTACKER = 1
    DEFENDER = 2
    KING = 3

    def is_ally(self, role: Role) -> bool:
        if self is Space.ATTACKER:
            return role is Role.ATTACKER
        if self is Space.DEFENDER or self is Space.KING:
            return role is Role.DEFENDER
        return False

    @property
    def role(self) -> Optional[Role]:
        if self is Space.ATTACKER:
            return Role.ATTACKER
        if self is Space.EMPTY:
            return None
        return Role.DEFENDER

    @staticmethod
    def from_char(char: str) -> "Space":
        try:
            return _SPACE_CHARS[char]
        except KeyError:
            raise ValueError(f"Cannot convert {char!r} to a space.") from None

    def to_char(self) -> str:
        return ".OXK"[int(self)]


_SPACE_CHARS = {".": Space.EMPTY, "O": Space.ATTACKER, "X": Space.DEFENDER, "K": Space.KING}


class Status(Enum):
    ONGOING = "ongoing"
    ATTACKERS_WIN = "attackers_win"
    DEFENDERS_WIN = "defenders_win"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self is not Status.ONGOING

    @staticmethod
    def win_for(role: Role) -> "Status":
        return Status.ATTACKERS_WIN if role is Role.ATTACKER else Status.DEFENDERS_WIN


@dataclass(frozen=True, order=True)
class Square:
    x: int
    y: int

    @property
    def index(self) -> int:
        return self.y * BOARD_SIZE + self.x

    @staticmethod
    def from_index(index: int) -> "Square":
        return ALL_SQUARES[index]

    def in_bounds(self) -> bool:
        return 0 <= self.x < BOARD_SIZE and 0 <= self.y < BOARD_SIZE

    def up(self) -> Optional["Square"]:
        return Square(self.x, self.y - 1) if self.y > 0 else None

    def down(self) -> Optional["Square"]:
        return Square(self.x, self.y + 1) if self.y < BOARD_SIZE - 1 else None

    def left(self) -> Optional["Square"]:
        return Square(self.x - 1, self.y) if self.x > 0 else None

    def right(self) -> Optional["Square"]:
        return Square(self.x + 1, self.y) if self.x < BOARD_SIZE - 1 else None

    def neighbours(self) -> Iterator["Square"]:
        for square in (self.up(), self.left(), self.right(), self.down()):
            if square is not None:
                yield square

    def step(self, dx: int, dy: int) -> Optional["Square"]:
        x, y = self.x + dx, self.y + dy
        if 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE:
            return Square(x, y)
        return None

    def touches_wall(self) -> bool:
        return self.x in (0, BOARD_SIZE - 1) or self.y in (0, BOARD_SIZE - 1)

    def is_restricted(self) -> bool:
        return self in RESTRICTED_SQUARES

    @staticmethod
    def parse(vertex: str) -> "Square":
        """Parse square notation such as ``A11`` (top left) or ``k1``."""
        text = vertex.strip()
        if len(text) < 2:
            raise ValueError(f"Invalid coordinate {vertex!r}.")
        column = BOARD_LETTERS.find(text[0].upper())
        if column < 0:
            raise ValueError(f"The first letter of {vertex!r} is not a column.")
        try:
            rank = int(text[1:])
        except ValueError:
            raise ValueError(f"Invalid rank in {vertex!r}.") from None
        if not 1 <= rank <= BOARD_SIZE:
            raise ValueError(f"Rank out of range in {vertex!r}.")
        return Square(column, BOARD_SIZE - rank)

    def __str__(self) -> str:
        return f"{BOARD_LETTERS[self.x]}{BOARD_SIZE - self.y}"


ALL_SQUARES: Tuple[Square, ...] = tuple(
    Square(x, y) for y in range(BOARD_SIZE) for x in range(BOARD_SIZE)
)
THRONE = Square(5, 5)
EXIT_SQUARES: Tuple[Square, ...] = (
    Square(0, 0),
    Square(10, 0),
    Square(0, 10),
    Square(10, 10),
)
RESTRICTED_SQUARES = frozenset(EXIT_SQUARES + (THRONE,))


class PlayError(ValueError):
    """A play that the rules do not allow in the current position."""


class GameOverError(PlayError):
    pass


class OutOfBoundsError(PlayError):
    pass


class NotStraightError(PlayError):
    pass


class NullMoveError(PlayError):
    pass


class WrongTurnError(PlayError):
    pass


class BlockedPathError(PlayError):
    pass


class RestrictedSquareError(PlayError):
    pass


class RepeatedPositionError(PlayError):
    pass


class BoardParseError(ValueError):
    pass


@dataclass(frozen=True)
class Play:
    role: Role
    origin: Square
    target: Square

    def validate(self) -> None:
        if not self.origin.in_bounds():
            raise OutOfBoundsError("The piece to be moved must be on a square on the board.")
        if not self.target.in_bounds():
            raise OutOfBoundsError("The piece must be moved to a square on the board.")
        dx = self.target.x - self.origin.x
        dy = self.target.y - self.origin.y
        if dx != 0 and dy != 0:
            raise NotStraightError("You can only play in a straight line.")
        if dx == 0 and dy == 0:
            raise NullMoveError("You have to change location.")

    def path(self) -> Iterator[Square]:
        """Squares crossed by the play, excluding the origin and including the target."""
        dx = (self.target.x > self.origin.x) - (self.target.x < self.origin.x)
        dy = (self.target.y > self.origin.y) - (self.target.y < self.origin.y)
        x, y = self.origin.x, self.origin.y
        while (x, y) != (self.target.x, self.target.y):
            x += dx
            y += dy
            yield Square(x, y)

    def __str__(self) -> str:
        return f"{self.origin}->{self.target}"


class PreviousBoards:
    """Every board reached so far. Used in interactive play to forbid
    defenders from repeating a position."""

    __slots__ = ("_boards",)

    def __init__(self, boards: Optional[Set["Board"]] = None) -> None:
        self._boards: Set["Board"] = set(boards) if boards else set()

    def record(self, board: "Board") -> None:
        self._boards.add(board)

    def contains(self, board: "Board") -> bool:
        return board in self._boards

    def copy(self) -> "PreviousBoards":
        return PreviousBoards(self._boards)

    def __len__(self) -> int:
        return len(self._boards)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PreviousBoards) and self._boards == other._boards

    def __repr__(self) -> str:
        return f"PreviousBoards(len={len(self._boards)})"


class MoveCounter:
    """History-free tracker used inside search where only the move count matters."""

    __slots__ = ("moves",)

    def __init__(self, moves: int = 0) -> None:
        self.moves = moves

    def record(self, board: "Board") -> None:
        self.moves += 1

    def contains(self, board: "Board") -> bool:
        return False

    def copy(self) -> "MoveCounter":
        return MoveCounter(self.moves)

    def __len__(self) -> int:
        return self.moves

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MoveCounter) and self.moves == other.moves

    def __repr__(self) -> str:
        return f"MoveCounter({self.moves})"


PositionsTracker = Union[PreviousBoards, MoveCounter]
