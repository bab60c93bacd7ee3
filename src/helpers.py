"""2D Helper functions and classes for FOV raycasting."""
from typing import Iterator, List, Self, Tuple


class Coords:
    """2D map integer coordinates."""

    __slots__ = "x", "y"

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def __iter__(self):
        return iter((self.x, self.y))

    def __repr__(self) -> str:
        return f"{self.x, self.y}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Coords):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def as_tuple(self):
        return (self.x, self.y)


class Bounds:
    """Inclusive 2D axis-aligned rectangle, from (minx, miny) to (maxx, maxy).

    A rectangle with `minx > maxx` or `miny > maxy` is empty: it has no cells and
    iterating over it does nothing.
    """

    __slots__ = "minx", "miny", "maxx", "maxy"

    def __init__(self, minx: int, miny: int, maxx: int, maxy: int) -> None:
        self.minx = minx
        self.miny = miny
        self.maxx = maxx
        self.maxy = maxy

    def __iter__(self):
        return iter((self.minx, self.miny, self.maxx, self.maxy))

    def __repr__(self) -> str:
        return f"Bounds {self.minx, self.miny} to {self.maxx, self.maxy}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    @staticmethod
    def square(x: int, y: int, radius: int, xdims: int, ydims: int) -> "Bounds":
        """Bounding square of `radius` around (x,y), clipped to the map.

        Negative radii are treated as 0, which yields the single tile (x,y).
        """
        r = max(radius, 0)
        return Bounds(
            max(0, x - r),
            max(0, y - r),
            min(xdims - 1, x + r),
            min(ydims - 1, y + r),
        )

    def as_tuple(self):
        return (self.minx, self.miny, self.maxx, self.maxy)

    @property
    def width(self) -> int:
        return self.maxx - self.minx + 1

    @property
    def height(self) -> int:
        return self.maxy - self.miny + 1

    def is_degenerate(self) -> bool:
        """Returns `True` if the rectangle has zero extent along either axis."""
        return self.maxx == self.minx or self.maxy == self.miny

    def cells(self) -> Iterator[Tuple[int, int]]:
        """Yields every (x,y) in the rectangle, column by column."""
        for x in range(self.minx, self.maxx + 1):
            for y in range(self.miny, self.maxy + 1):
                yield x, y

    def perimeter(self) -> Iterator[Tuple[int, int]]:
        """Yields every tile on the edges of the rectangle.

        Top and bottom rows come first (pairwise per x), then the left and right
        columns without the corners (pairwise per y).
        """
        for x in range(self.minx, self.maxx + 1):
            yield x, self.miny
            yield x, self.maxy
        for y in range(self.miny + 1, self.maxy):
            yield self.minx, y
            yield self.maxx, y

    def quadrants(self, x: int, y: int) -> List[Tuple[Self, int, int]]:
        """Splits the rectangle around origin (x,y) into SE, SW, NW, NE parts.

        Each part comes with the (dx, dy) direction pointing back to the origin.
        The origin's own row and column belong to no quadrant.
        """
        return [
            (Bounds(x + 1, y + 1, self.maxx, self.maxy), -1, -1),  # SE
            (Bounds(self.minx, y + 1, x - 1, self.maxy), 1, -1),  # SW
            (Bounds(self.minx, self.miny, x - 1, y - 1), 1, 1),  # NW
            (Bounds(x + 1, self.miny, self.maxx, y - 1), -1, 1),  # NE
        ]


def to_tile_id(x: int, y: int, xdims: int) -> int:
    """Takes 2D tile (x,y) coordinates and converts them into a tile ID.

    Parameters
    ---
    `x, y` : int
        (x,y) coordinates of the tile.
    `xdims` : int
        number of x dimensions.
    """
    return x + y * xdims


def to_coords(tile_id: int, xdims: int) -> Tuple[int, int]:
    """Converts a 2D Tile ID to (x,y) coordinates based on X dimensions.

    Parameters
    ---
    `tile_id` : int
        The index of the tile within a flat, row-major tile list.
    `xdims` : int
        number of x dimensions.
    """
    # Integer divide tile ID by x dimensions to get y value
    y = tile_id // xdims
    # The remainder is the x value
    x = tile_id % xdims

    return x, y


#   ########  ########   ######   ########
#      ##     ##        ##           ##
#      ##     ######     ######      ##
#      ##     ##              ##     ##
#      ##     ########  #######      ##


def test_to_tile_id():
    """Note: conversion does *not* check for out-of-bounds points."""
    suite = [
        (10, (0, 0), 0),
        (10, (5, 0), 5),
        (10, (9, 0), 9),
        (10, (0, 1), 10),
        (10, (5, 1), 15),
        (10, (9, 1), 19),
        (10, (0, 2), 20),
    ]
    for xdims, coords, expected in suite:
        assert to_tile_id(*coords, xdims) == expected
        assert to_coords(expected, xdims) == coords


def test_bounds_square():
    suite = [
        # x, y, radius, xdims, ydims
        ((5, 5, 2, 10, 10), (3, 3, 7, 7)),
        ((3, 2, 10, 10, 10), (0, 0, 9, 9)),
        ((0, 0, 3, 10, 10), (0, 0, 3, 3)),
        ((9, 9, 3, 10, 10), (6, 6, 9, 9)),
        ((4, 4, 0, 10, 10), (4, 4, 4, 4)),
        ((4, 4, -3, 10, 10), (4, 4, 4, 4)),
    ]
    for args, expected in suite:
        assert Bounds.square(*args).as_tuple() == expected


def test_bounds_degenerate():
    assert Bounds.square(2, 0, 3, 5, 1).is_degenerate()
    assert Bounds.square(0, 2, 3, 1, 5).is_degenerate()
    assert Bounds.square(4, 4, 0, 10, 10).is_degenerate()
    assert not Bounds.square(4, 4, 1, 10, 10).is_degenerate()


def test_bounds_perimeter():
    bounds = Bounds(0, 0, 2, 3)
    perimeter = list(bounds.perimeter())
    expected = {(0, 0), (1, 0), (2, 0), (0, 3), (1, 3), (2, 3), (0, 1), (0, 2), (2, 1), (2, 2)}

    assert len(perimeter) == len(expected)
    assert set(perimeter) == expected


def test_bounds_quadrants():
    bounds = Bounds(0, 0, 9, 9)
    quadrants = bounds.quadrants(3, 2)

    assert [(q.as_tuple(), dx, dy) for q, dx, dy in quadrants] == [
        ((4, 3, 9, 9), -1, -1),
        ((0, 3, 2, 9), 1, -1),
        ((0, 0, 2, 1), 1, 1),
        ((4, 0, 9, 1), -1, 1),
    ]
    # Origin on the left edge: west quadrants are empty
    sw = Bounds(0, 0, 4, 4).quadrants(0, 2)[1][0]
    assert list(sw.cells()) == []
