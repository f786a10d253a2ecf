from typing import Dict, Tuple

from hnefatafl.core import BOARD_SIZE, Board


def place(pieces: Dict[Tuple[int, int], str]) -> Board:
    """Build a board from ``{(x, y): "O" | "X" | "K"}``."""
    rows = [["."] * BOARD_SIZE for _ in range(BOARD_SIZE)]
    for (x, y), char in pieces.items():
        rows[y][x] = char
    return Board.from_rows(["".join(row) for row in rows])
