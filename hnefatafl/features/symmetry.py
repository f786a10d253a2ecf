"""The symmetries of the square, the dihedral group D8, acting on boards.

Every element is written as a word in two generators:

* ``F``  flips the board top to bottom, ``(x, y) -> (x, 10 - y)``
* ``FR`` transposes it, ``(x, y) -> (y, x)``

Words are applied left to right.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Generic, Iterable, Iterator, List, Optional, Set, Tuple, TypeVar

import numpy as np

from hnefatafl.core import BOARD_SIZE, THRONE, Board, Play, Square

LAST = BOARD_SIZE - 1
BITBOARD_BYTES = 30

_THRONE_INDEX = THRONE.index
_NON_THRONE = np.array([index for index in range(BOARD_SIZE * BOARD_SIZE) if index != _THRONE_INDEX])
_BIT_SHIFTS = np.array([1, 0], dtype=np.uint8)


class Generator(Enum):
    F = auto()
    FR = auto()


def _flip(x: int, y: int) -> Tuple[int, int]:
    return x, LAST - y


def _transpose(x: int, y: int) -> Tuple[int, int]:
    return y, x


_GENERATOR_POSITIONS: Dict[Generator, Callable[[int, int], Tuple[int, int]]] = {
    Generator.F: _flip,
    Generator.FR: _transpose,
}


class Transform(Enum):
    IDENTITY = auto()
    FLIP_V = auto()
    FLIP_MAIN_DIAG = auto()
    FLIP_H = auto()
    FLIP_ANTI_DIAG = auto()
    ROT90 = auto()
    ROT180 = auto()
    ROT270 = auto()


@dataclass(frozen=True)
class SymmetrySpec:
    name: str
    transform: Transform
    word: Tuple[Generator, ...]


F, FR = Generator.F, Generator.FR

_SPECS: Dict[Transform, SymmetrySpec] = {
    # (x, y) -> (x, y)
    Transform.IDENTITY: SymmetrySpec("identity", Transform.IDENTITY, ()),
    # (x, y) -> (x, 10 - y)
    Transform.FLIP_V: SymmetrySpec("flip_v", Transform.FLIP_V, (F,)),
    # (x, y) -> (y, x)
    Transform.FLIP_MAIN_DIAG: SymmetrySpec("flip_main_diag", Transform.FLIP_MAIN_DIAG, (FR,)),
    # (x, y) -> (10 - x, y)
    Transform.FLIP_H: SymmetrySpec("flip_h", Transform.FLIP_H, (FR, F, FR)),
    # (x, y) -> (10 - y, 10 - x)
    Transform.FLIP_ANTI_DIAG: SymmetrySpec("flip_anti_diag", Transform.FLIP_ANTI_DIAG, (F, FR, F)),
    # (x, y) -> (10 - y, x)
    Transform.ROT90: SymmetrySpec("rot90", Transform.ROT90, (F, FR)),
    # (x, y) -> (10 - x, 10 - y)
    Transform.ROT180: SymmetrySpec("rot180", Transform.ROT180, (FR, F, FR, F)),
    # (x, y) -> (y, 10 - x)
    Transform.ROT270: SymmetrySpec("rot270", Transform.ROT270, (FR, F)),
}

_INVERSES: Dict[Transform, Transform] = {
    Transform.IDENTITY: Transform.IDENTITY,
    Transform.FLIP_V: Transform.FLIP_V,
    Transform.FLIP_MAIN_DIAG: Transform.FLIP_MAIN_DIAG,
    Transform.FLIP_H: Transform.FLIP_H,
    Transform.FLIP_ANTI_DIAG: Transform.FLIP_ANTI_DIAG,
    Transform.ROT90: Transform.ROT270,
    Transform.ROT180: Transform.ROT180,
    Transform.ROT270: Transform.ROT90,
}


def get_spec(transform: Transform) -> SymmetrySpec:
    return _SPECS[transform]


def all_transforms() -> List[Transform]:
    return list(_SPECS.keys())


def inverse(transform: Transform) -> Transform:
    return _INVERSES[transform]


def transform_position(transform: Transform, x: int, y: int) -> Tuple[int, int]:
    for generator in get_spec(transform).word:
        x, y = _GENERATOR_POSITIONS[generator](x, y)
    return x, y


def transform_square(transform: Transform, square: Square) -> Square:
    return Square(*transform_position(transform, square.x, square.y))


def transform_play(transform: Transform, play: Play) -> Play:
    return Play(
        play.role,
        transform_square(transform, play.origin),
        transform_square(transform, play.target),
    )


def _apply_generator(generator: Generator, grid: np.ndarray) -> np.ndarray:
    # grid is indexed [y, x]
    if generator is Generator.F:
        return grid[::-1, :]
    return grid.T


def transform_grid(grid: np.ndarray, transform: Transform) -> np.ndarray:
    for generator in get_spec(transform).word:
        grid = _apply_generator(generator, grid)
    return np.ascontiguousarray(grid)


def apply_transform(board: Board, transform: Transform) -> Board:
    if transform is Transform.IDENTITY:
        return board
    return Board(transform_grid(board.grid, transform))


def images(board: Board) -> Iterator[Tuple[Transform, Board]]:
    for transform in _SPECS:
        yield transform, apply_transform(board, transform)


def symmetries(board: Board) -> Set[Board]:
    """The distinct images of ``board``; fewer than 8 for symmetric positions."""
    return {image for _, image in images(board)}


def _pack(cells: np.ndarray) -> bytes:
    codes = cells[_NON_THRONE].astype(np.uint8)
    bits = (codes[:, None] >> _BIT_SHIFTS) & 1
    return np.packbits(bits.reshape(-1)).tobytes()


def bitboard(board: Board) -> bytes:
    """Pack the 120 non-throne squares at 2 bits each into 30 bytes."""
    return _pack(board.cells)


def canonical_hash(board: Board) -> bytes:
    """A digest shared by all 8 orientations of ``board``.

    The throne stays put under every transform, so its occupant is hashed
    once next to the sorted bitboards.
    """
    digest = hashlib.blake2b(digest_size=16)
    digest.update(bytes([int(board.cells[_THRONE_INDEX])]))
    grid = board.grid
    packed_images = [_pack(transform_grid(grid, transform).reshape(-1)) for transform in _SPECS]
    for packed in sorted(packed_images):
        digest.update(packed)
    return digest.digest()


def normalizing_transform(board: Board) -> Transform:
    """The transform that :func:`normalize` applies to ``board``."""
    king = board.find_the_king()
    if king is None:
        return min(images(board), key=lambda item: bitboard(item[1]))[0]
    x, y = king.x, king.y
    # Only flips about both axes and the main diagonal are needed to bring
    # the king to x <= 5, y <= 5, x <= y.
    word: List[Generator] = []
    if x > LAST // 2:
        word.extend((FR, F, FR))
        x = LAST - x
    if y > LAST // 2:
        word.append(F)
        y = LAST - y
    if x > y:
        word.append(FR)
    return _transform_for_word(tuple(word))


def normalize(board: Board) -> Board:
    """Bring the king into the quadrant nearest the origin, on or below the
    main diagonal (``x <= y`` with ``y`` growing downwards).

    Kingless boards use the orientation with the smallest bitboard.
    """
    return apply_transform(board, normalizing_transform(board))


def _transform_for_word(word: Tuple[Generator, ...]) -> Transform:
    probe = (1, 2)
    target = probe
    for generator in word:
        target = _GENERATOR_POSITIONS[generator](*target)
    for transform in _SPECS:
        if transform_position(transform, *probe) == target:
            return transform
    raise ValueError(f"Word {word} is not an element of D8.")


V = TypeVar("V")


class NormalizedBoardSet:
    """A set of boards up to symmetry."""

    __slots__ = ("_hashes",)

    def __init__(self, boards: Optional[Iterable[Board]] = None) -> None:
        self._hashes: Set[bytes] = set()
        for board in boards or ():
            self.add(board)

    def add(self, board: Board) -> bool:
        """Insert ``board``; return True when its symmetry class is new."""
        key = canonical_hash(board)
        if key in self._hashes:
            return False
        self._hashes.add(key)
        return True

    def __contains__(self, board: object) -> bool:
        return isinstance(board, Board) and canonical_hash(board) in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)


class NormalizedBoardMap(Generic[V]):
    """A mapping from boards up to symmetry to values."""

    __slots__ = ("_values",)

    def __init__(self) -> None:
        self._values: Dict[bytes, V] = {}

    def get(self, board: Board) -> Optional[V]:
        return self._values.get(canonical_hash(board))

    def insert(self, board: Board, value: V) -> None:
        self._values[canonical_hash(board)] = value

    def __contains__(self, board: object) -> bool:
        return isinstance(board, Board) and canonical_hash(board) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def clear(self) -> None:
        self._values.clear()
