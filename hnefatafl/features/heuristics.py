"""Measures of how close the king is to escaping."""

from __future__ import annotations

from collections import deque
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

from hnefatafl.core import (
    ALL_SQUARES,
    EXIT_SQUARES,
    STARTING_ATTACKERS,
    STARTING_DEFENDERS,
    Board,
    Role,
    Space,
    Square,
)

MAX_CORNER_FLOW = 2
MATERIAL_OFFSET = STARTING_ATTACKERS - (STARTING_DEFENDERS + 1)

_EXIT_SET = frozenset(EXIT_SQUARES)
_FLOW_PASSABLE = (Space.EMPTY, Space.DEFENDER)


def _neighbours(board: Board, square: Square, passable: Callable[[Space], bool]) -> Iterator[Square]:
    for neighbour in square.neighbours():
        if passable(board.get(neighbour)):
            yield neighbour


def escape_routes(board: Board) -> int:
    """Sum over the four corners of the maximum flow from the king to the
    corner, through empty and defender squares. Between 0 and 8."""
    king = board.find_the_king()
    if king is None:
        return 0
    return sum(edmonds_karp(board, king, corner) for corner in EXIT_SQUARES)


def edmonds_karp(board: Board, source: Square, sink: Square, cap: int = MAX_CORNER_FLOW) -> int:
    """Unit-capacity max flow from ``source`` to ``sink``, stopping at ``cap``."""
    passable = {square for square in ALL_SQUARES if board.get(square) in _FLOW_PASSABLE}
    flow: Dict[Tuple[Square, Square], int] = {}
    total = 0

    while total < cap:
        # breadth-first search for an augmenting path in the residual graph
        predecessor: Dict[Square, Square] = {}
        queue = deque([source])
        while queue and sink not in predecessor:
            square = queue.popleft()
            for neighbour in square.neighbours():
                if neighbour not in passable or neighbour in predecessor:
                    continue
                if flow.get((square, neighbour), 0) < 1:
                    predecessor[neighbour] = square
                    queue.append(neighbour)

        if sink not in predecessor:
            break

        cursor = sink
        while cursor != source:
            parent = predecessor[cursor]
            flow[(parent, cursor)] = flow.get((parent, cursor), 0) + 1
            flow[(cursor, parent)] = flow.get((cursor, parent), 0) - 1
            cursor = parent
        total += 1
    return total


def shortest_escape(board: Board) -> Optional[int]:
    """Number of single steps on the shortest empty path from the king to an
    exit square, or None when the king is walled in."""
    king = board.find_the_king()
    if king is None:
        return None
    distance = {king: 0}
    queue = deque([king])
    while queue:
        square = queue.popleft()
        for neighbour in _neighbours(board, square, lambda space: space is Space.EMPTY):
            if neighbour in distance:
                continue
            distance[neighbour] = distance[square] + 1
            if neighbour in _EXIT_SET:
                return distance[neighbour]
            queue.append(neighbour)
    return None


def fewest_turns_to_escape(board: Board) -> Optional[int]:
    """The fewest king moves needed to reach an exit square on an otherwise
    frozen board, or None when no exit can be reached."""
    king = board.find_the_king()
    if king is None:
        return None
    visited: Set[Square] = {king}
    starts: Set[Square] = {king}
    turns = 1
    while True:
        next_starts: Set[Square] = set()
        for cursor in starts:
            found = advance_linearly(cursor, board, visited, turns)
            if isinstance(found, int):
                return found
            next_starts.update(found)
        if not next_starts:
            return None
        starts = next_starts
        turns += 1


def advance_linearly(
    cursor: Square,
    board: Board,
    visited: Set[Square],
    turns: int,
) -> Union[List[Square], int]:
    """Slide from ``cursor`` in all four directions.

    Returns ``turns`` as soon as a line reaches an exit square, otherwise the
    newly visited squares passed on the way.
    """
    next_starts: List[Square] = []
    for step in (Square.left, Square.right, Square.up, Square.down):
        square = step(cursor)
        while square is not None:
            if square in _EXIT_SET:
                return turns
            if board.is_occupied(square):
                break
            if square not in visited:
                visited.add(square)
                next_starts.append(square)
            square = step(square)
    return next_starts


def attacker_corner_penalties(board: Board, penalty: float = 0.5) -> float:
    """Penalty for each attacker beside a corner whose next square along the
    edge is empty, where it is easy to capture against the corner."""
    total = 0.0
    for corner in EXIT_SQUARES:
        for dx, dy in ((1 if corner.x == 0 else -1, 0), (0, 1 if corner.y == 0 else -1)):
            beside = Square(corner.x + dx, corner.y + dy)
            beyond = Square(corner.x + 2 * dx, corner.y + 2 * dy)
            if board.get(beside) is Space.ATTACKER and not board.is_occupied(beyond):
                total -= penalty
    return total


def material_balance(board: Board) -> int:
    """Attackers minus defenders (king included), zero for the opening."""
    return board.count(Role.ATTACKER) - board.count(Role.DEFENDER) - MATERIAL_OFFSET
