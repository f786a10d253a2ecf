"""Core game logic for the Hnefatafl engine."""

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
    NotStraightError,
    NullMoveError,
    OutOfBoundsError,
    Play,
    PlayError,
    PositionsTracker,
    PreviousBoards,
    RepeatedPositionError,
    RestrictedSquareError,
    Role,
    Space,
    Square,
    Status,
    WrongTurnError,
)
from .rules import (
    STARTING_ATTACKERS,
    STARTING_DEFENDERS,
    STARTING_POSITION,
    Board,
    Captured,
    PlayRecord,
)
from .game import Game

__all__ = [
    "ALL_SQUARES",
    "BOARD_LETTERS",
    "BOARD_SIZE",
    "EXIT_SQUARES",
    "MOVE_LIMIT",
    "RESTRICTED_SQUARES",
    "SQUARE_COUNT",
    "STARTING_ATTACKERS",
    "STARTING_DEFENDERS",
    "STARTING_POSITION",
    "THRONE",
    "BlockedPathError",
    "Board",
    "BoardParseError",
    "Captured",
    "Game",
    "GameOverError",
    "MoveCounter",
    "NotStraightError",
    "NullMoveError",
    "OutOfBoundsError",
    "Play",
    "PlayError",
    "PlayRecord",
    "PositionsTracker",
    "PreviousBoards",
    "RepeatedPositionError",
    "RestrictedSquareError",
    "Role",
    "Space",
    "Square",
    "Status",
    "WrongTurnError",
]
