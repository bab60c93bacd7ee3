"""2D FOV calc using perimeter raycasting with diagonal post-processing.

Key Ideas:
1.) Rays are cast from the origin to every tile on the *perimeter* of the bounding
    square of the FOV radius, not to every tile inside it: O(r) rays of O(r) steps.
2.) Each ray marks tiles within radius as visible, up to and including the first
    tile that blocks sight.
3.) Sparse rays leave some walls tucked diagonally behind visible floor unseen.
    Four post-processing passes (one per quadrant) reveal opaque tiles with a
    visible, transparent neighbor on the side facing the origin.
4.) Tiles are stored in a single row-major array, indexed by `x + y * xdims`.
5.) The sweep is written once against the `TransparencySource` protocol and runs
    over a `VisionWindow`. `FovMap` owns a window spanning the whole map, while
    `field_of_view()` allocates a window spanning only the bounding square.

See: http://www.roguebasin.com/index.php?title=Comparative_study_of_field_of_view_algorithms_for_2D_grid_based_worlds
"""
import logging
import random
from itertools import islice
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

import pytest

from helpers import Bounds, to_coords, to_tile_id
from lines import bresenham

logger = logging.getLogger(__name__)


class TransparencySource(Protocol):
    """Anything the FOV sweep can read sight-blocking data from.

    `is_transparent()` must be O(1) and the source must not change during a sweep.
    """

    def dimensions(self) -> Tuple[int, int]:
        ...

    def is_transparent(self, x: int, y: int) -> bool:
        ...


class VisionWindow:
    """Visibility flags over a rectangular window of the map.

    Flags live in a flat row-major list. Cells are addressed with world (x,y)
    coordinates, offset by the top-left corner of `bounds`.
    """

    __slots__ = "bounds", "cells"

    def __init__(self, bounds: Bounds, cells: Optional[List[bool]] = None) -> None:
        self.bounds = bounds
        if cells is None:
            cells = [False] * (bounds.width * bounds.height)
        self.cells = cells

    def index(self, x: int, y: int) -> int:
        b = self.bounds
        return to_tile_id(x - b.minx, y - b.miny, b.width)

    def mark(self, x: int, y: int):
        self.cells[self.index(x, y)] = True

    def is_marked(self, x: int, y: int) -> bool:
        return self.cells[self.index(x, y)]

    def visible_coords(self) -> List[Tuple[int, int]]:
        """World (x,y) coordinates of every marked cell, in row-major order."""
        b = self.bounds
        result = []
        for tid, seen in enumerate(self.cells):
            if seen:
                x, y = to_coords(tid, b.width)
                result.append((x + b.minx, y + b.miny))

        return result


#   ########   ######   ##    ##
#   ##        ##    ##  ##    ##
#   ######    ##    ##  ##    ##
#   ##        ##    ##   ##  ##
#   ##         ######      ##


def cast_ray(
    source: TransparencySource,
    window: VisionWindow,
    origin: Tuple[int, int],
    destination: Tuple[int, int],
    radius_sq: int,
):
    """Marks tiles along the line from `origin` to `destination` as visible.

    The origin itself is skipped. Tiles within `radius_sq` (squared distance) are
    marked; a `radius_sq` of 0 ignores the radius. The ray stops right after the
    first tile that blocks sight, which is itself marked.
    """
    ox, oy = origin
    for x, y in islice(bresenham(ox, oy, *destination), 1, None):
        distance = (x - ox) ** 2 + (y - oy) ** 2
        if distance <= radius_sq or radius_sq == 0:
            window.mark(x, y)

        if not source.is_transparent(x, y):
            return


def post_process(
    source: TransparencySource, window: VisionWindow, quadrant: Bounds, dx: int, dy: int
):
    """Reveals unseen walls next to visible floor on the origin-facing side.

    `(dx, dy)` points back toward the origin. A single pass: only transparent
    neighbors count, so walls revealed here never reveal other walls.
    """
    for x, y in quadrant.cells():
        if source.is_transparent(x, y) or window.is_marked(x, y):
            continue

        nx, ny = x + dx, y + dy
        if (source.is_transparent(nx, y) and window.is_marked(nx, y)) or (
            source.is_transparent(x, ny) and window.is_marked(x, ny)
        ):
            window.mark(x, y)


def compute_vision(
    source: TransparencySource, window: VisionWindow, x: int, y: int, radius: int
):
    """Marks tiles visible from (x,y) within `radius` on an all-`False` window.

    `window` must cover the bounding square of `radius` around (x,y).
    """
    # The observer's own tile is always visible
    window.mark(x, y)

    if radius < 1:
        return

    bounds = Bounds.square(x, y, radius, *source.dimensions())
    if bounds.is_degenerate():
        return

    radius_sq = radius**2
    for destination in bounds.perimeter():
        cast_ray(source, window, (x, y), destination, radius_sq)

    for quadrant, dx, dy in bounds.quadrants(x, y):
        post_process(source, window, quadrant, dx, dy)


def bounds_message(x: int, y: int, xdims: int, ydims: int) -> str:
    return f"(x, y) should be between (0,0) and ({xdims}, {ydims}), got ({x}, {y})"


def check_dimensions(xdims: int, ydims: int):
    """Raises `ValueError` unless both map dimensions are positive."""
    if xdims <= 0 or ydims <= 0:
        raise ValueError(f"Width and height should be > 0, got ({xdims},{ydims})")


def field_of_view(
    source: TransparencySource, x: int, y: int, radius: int
) -> List[Tuple[int, int]]:
    """Returns world (x,y) coordinates of tiles visible from (x,y) within `radius`.

    Only a buffer the size of the bounding square is allocated, so this suits maps
    that are large compared to the radius, or maps owned by another system.
    Raises `IndexError` if (x,y) is outside the map.
    """
    xdims, ydims = source.dimensions()
    if x < 0 or y < 0 or x >= xdims or y >= ydims:
        raise IndexError(bounds_message(x, y, xdims, ydims))

    window = VisionWindow(Bounds.square(x, y, radius, xdims, ydims))
    compute_vision(source, window, x, y, radius)

    return window.visible_coords()


#   ##    ##     ##     #######    ######
#   ###  ###   ##  ##   ##    ##  ##
#   ## ## ##  ##    ##  #######    ######
#   ##    ##  ########  ##              ##
#   ##    ##  ##    ##  ##        #######


def render_vision(
    xdims: int,
    ydims: int,
    is_transparent: Callable[[int, int], bool],
    is_visible: Callable[[int, int], bool],
    origin: Optional[Tuple[int, int]],
) -> str:
    """Text dump of a computed FOV, framed by a border.

    `*` is the origin, ` ` visible floor, `□` a visible wall, `?` anything unseen.
    """
    border = "+" + "-" * xdims + "+"
    rows = [border]
    for y in range(ydims):
        row = []
        for x in range(xdims):
            if (x, y) == origin:
                row.append("*")
            elif not is_visible(x, y):
                row.append("?")
            elif is_transparent(x, y):
                row.append(" ")
            else:
                row.append("□")
        rows.append("|" + "".join(row) + "|")
    rows.append(border)

    return "\n".join(rows)


class FovMap:
    """2D map owning both its transparency and its visibility flags.

    ### Parameters

    `xdims, ydims`: int
        Map width and height. Both must be > 0.

    All tiles start transparent and unseen. `last_origin` is `None` until the
    first `calculate_fov()`.
    """

    def __init__(self, xdims: int, ydims: int) -> None:
        check_dimensions(xdims, ydims)

        self.xdims = xdims
        self.ydims = ydims
        self.transparent = [True] * (xdims * ydims)
        self.vision = [False] * (xdims * ydims)
        self.last_origin: Optional[Tuple[int, int]] = None

    def __str__(self) -> str:
        return render_vision(
            self.xdims, self.ydims, self.is_transparent, self.is_in_fov, self.last_origin
        )

    @staticmethod
    def from_blocked(xdims: int, ydims: int, blocked: Iterable[Tuple[int, int]]):
        """Creates an `FovMap` where each (x,y) in `blocked` blocks sight."""
        fov_map = FovMap(xdims, ydims)
        count = 0
        for x, y in blocked:
            fov_map.set_transparent(x, y, False)
            count += 1
        logger.debug(f"Built {xdims}x{ydims} FovMap with {count} blocked tiles")

        return fov_map

    def size(self) -> Tuple[int, int]:
        return self.xdims, self.ydims

    def dimensions(self) -> Tuple[int, int]:
        return self.xdims, self.ydims

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.xdims and 0 <= y < self.ydims

    def assert_in_bounds(self, x: int, y: int):
        if not self.is_in_bounds(x, y):
            raise IndexError(bounds_message(x, y, self.xdims, self.ydims))

    def set_transparent(self, x: int, y: int, is_transparent: bool):
        self.assert_in_bounds(x, y)
        self.transparent[x + y * self.xdims] = is_transparent

    def is_transparent(self, x: int, y: int) -> bool:
        self.assert_in_bounds(x, y)
        return self.transparent[x + y * self.xdims]

    def is_in_fov(self, x: int, y: int) -> bool:
        self.assert_in_bounds(x, y)
        return self.vision[x + y * self.xdims]

    def calculate_fov(self, x: int, y: int, radius: int):
        """Recalculates visible tiles from (x,y) out to `radius` tiles.

        Previous results are discarded. Raises `IndexError` if (x,y) is off the map.
        """
        self.assert_in_bounds(x, y)
        self.vision = [False] * (self.xdims * self.ydims)
        self.last_origin = (x, y)

        window = VisionWindow(Bounds(0, 0, self.xdims - 1, self.ydims - 1), self.vision)
        compute_vision(self, window, x, y, radius)

    def visible_tiles(self) -> List[Tuple[int, int]]:
        """(x,y) coordinates of every visible tile, in row-major order."""
        return [to_coords(tid, self.xdims) for tid, seen in enumerate(self.vision) if seen]

    def show(self):
        print(self)


class GridMap:
    """2D map providing transparency to `field_of_view()`, keeping its last result.

    Unlike `FovMap`, no full-size visibility array is kept: `fov` holds the list
    of visible (x,y) coordinates from the most recent `calculate_fov()`.
    """

    def __init__(self, xdims: int, ydims: int) -> None:
        check_dimensions(xdims, ydims)

        self.xdims = xdims
        self.ydims = ydims
        self.transparent = [True] * (xdims * ydims)
        self.fov: List[Tuple[int, int]] = []
        self.last_origin: Optional[Tuple[int, int]] = None

    def __str__(self) -> str:
        return render_vision(
            self.xdims, self.ydims, self.is_transparent, self.is_in_fov, self.last_origin
        )

    def dimensions(self) -> Tuple[int, int]:
        return self.xdims, self.ydims

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.xdims and 0 <= y < self.ydims

    def set_transparent(self, x: int, y: int, is_transparent: bool):
        if not self.is_in_bounds(x, y):
            raise IndexError(bounds_message(x, y, self.xdims, self.ydims))
        self.transparent[x + y * self.xdims] = is_transparent

    def is_transparent(self, x: int, y: int) -> bool:
        if not self.is_in_bounds(x, y):
            raise IndexError(bounds_message(x, y, self.xdims, self.ydims))
        return self.transparent[x + y * self.xdims]

    def calculate_fov(self, x: int, y: int, radius: int):
        self.fov = field_of_view(self, x, y, radius)
        self.last_origin = (x, y)

    def is_in_fov(self, x: int, y: int) -> bool:
        """Membership test on the last result. Off-map tiles are simply not in it."""
        return (x, y) in self.fov

    def show(self):
        print(self)


#   ########  ########   ######   ########
#      ##     ##        ##           ##
#      ##     ######     ######      ##
#      ##     ##              ##     ##
#      ##     ########  #######      ##


def diagonal_walls_map() -> FovMap:
    """10x10 map with a wall along x=9 and another along y=3 from x=1 to x=9."""
    fov_map = FovMap(10, 10)
    for x in range(1, 10):
        fov_map.set_transparent(x, 3, False)
    for y in range(10):
        fov_map.set_transparent(9, y, False)

    return fov_map


def random_walls(xdims: int, ydims: int, count: int, seed: int) -> List[Tuple[int, int]]:
    rng = random.Random(seed)
    return [(rng.randrange(xdims), rng.randrange(ydims)) for _ in range(count)]


def circle(ox: int, oy: int, radius: int, xdims: int, ydims: int):
    return {
        (x, y)
        for x in range(xdims)
        for y in range(ydims)
        if (x - ox) ** 2 + (y - oy) ** 2 <= radius**2
    }


def test_size():
    fov_map = FovMap(20, 40)
    assert fov_map.size() == (20, 40)
    assert fov_map.dimensions() == (20, 40)


def test_new_map_all_transparent_and_unseen():
    fov_map = FovMap(10, 20)
    assert all(fov_map.transparent)
    assert not any(fov_map.vision)
    assert fov_map.last_origin is None


def test_set_transparent():
    fov_map = FovMap(10, 20)
    fov_map.set_transparent(5, 5, False)

    assert not fov_map.is_transparent(5, 5)
    assert fov_map.is_transparent(5, 6)


def test_new_map_invalid_dimensions():
    with pytest.raises(ValueError, match=r"Width and height should be > 0, got \(0,0\)"):
        FovMap(0, 0)
    with pytest.raises(ValueError, match=r"got \(10,-1\)"):
        FovMap(10, -1)
    with pytest.raises(ValueError, match=r"got \(0,5\)"):
        GridMap(0, 5)


def test_out_of_bounds():
    fov_map = FovMap(10, 10)
    expected = r"\(x, y\) should be between \(0,0\) and \(10, 10\), got \(-10, 15\)"

    with pytest.raises(IndexError, match=expected):
        fov_map.assert_in_bounds(-10, 15)
    with pytest.raises(IndexError, match=r"got \(-1, 0\)"):
        fov_map.calculate_fov(-1, 0, 5)
    with pytest.raises(IndexError, match=r"got \(10, 3\)"):
        fov_map.is_in_fov(10, 3)
    with pytest.raises(IndexError, match=r"got \(3, 10\)"):
        fov_map.set_transparent(3, 10, False)
    with pytest.raises(IndexError, match=r"got \(-1, 0\)"):
        field_of_view(GridMap(10, 10), -1, 0, 5)


def test_is_in_bounds():
    fov_map = FovMap(10, 5)
    assert fov_map.is_in_bounds(0, 0)
    assert fov_map.is_in_bounds(9, 4)
    assert not fov_map.is_in_bounds(10, 4)
    assert not fov_map.is_in_bounds(9, 5)
    assert not fov_map.is_in_bounds(-1, 0)
    assert not fov_map.is_in_bounds(0, -1)


def test_self_always_visible():
    fov_map = diagonal_walls_map()
    for x, y in [(3, 2), (0, 0), (8, 8), (0, 9)]:
        for radius in (0, 1, 2, 5, 10, 20):
            fov_map.calculate_fov(x, y, radius)
            assert fov_map.is_in_fov(x, y)


def test_radius_zero_only_origin():
    for radius in (0, -1, -5):
        fov_map = FovMap(10, 10)
        fov_map.calculate_fov(4, 6, radius)
        assert fov_map.visible_tiles() == [(4, 6)]
        assert field_of_view(GridMap(10, 10), 4, 6, radius) == [(4, 6)]


def test_degenerate_square_only_origin():
    fov_map = FovMap(5, 1)
    fov_map.calculate_fov(2, 0, 3)
    assert fov_map.visible_tiles() == [(2, 0)]
    assert field_of_view(GridMap(1, 5), 0, 2, 3) == [(0, 2)]


def test_open_grid_exact_circle():
    fov_map = FovMap(10, 10)
    fov_map.calculate_fov(5, 5, 2)

    expected = {(5 + dx, 5 + dy) for dx in range(-2, 3) for dy in range(-2, 3) if dx**2 + dy**2 <= 4}
    assert len(expected) == 13
    assert set(fov_map.visible_tiles()) == expected


def test_open_grid_monotonic_radius():
    fov_map = FovMap(21, 21)
    previous = set()

    for radius in range(11):
        fov_map.calculate_fov(10, 10, radius)
        visible = set(fov_map.visible_tiles())

        assert visible == circle(10, 10, radius, 21, 21)
        assert previous <= visible
        previous = visible


def test_occlusion():
    fov_map = FovMap(10, 10)
    fov_map.set_transparent(4, 5, False)
    fov_map.calculate_fov(2, 5, 8)

    assert fov_map.is_in_fov(3, 5)
    assert fov_map.is_in_fov(4, 5)
    assert not fov_map.is_in_fov(5, 5)
    assert not fov_map.is_in_fov(6, 5)


def test_wall_beyond_radius_unseen():
    fov_map = FovMap(10, 10)
    fov_map.set_transparent(8, 5, False)
    fov_map.calculate_fov(2, 5, 3)

    assert fov_map.is_in_fov(5, 5)
    assert not fov_map.is_in_fov(6, 5)
    assert not fov_map.is_in_fov(8, 5)


def test_diagonal_walls_post_processing():
    fov_map = diagonal_walls_map()
    fov_map.calculate_fov(3, 2, 10)

    # Rays only: no post-processing passes
    bounds = Bounds(0, 0, 9, 9)
    rays_only = VisionWindow(bounds)
    rays_only.mark(3, 2)
    for destination in bounds.perimeter():
        cast_ray(fov_map, rays_only, (3, 2), destination, 100)

    promoted = set(fov_map.visible_tiles()) - set(rays_only.visible_coords())
    assert promoted == {(7, 3), (8, 3)}

    for x, y in promoted:
        assert not fov_map.is_transparent(x, y)
        assert fov_map.is_transparent(x, 2) and fov_map.is_in_fov(x, 2)

    # Walls hit directly by rays
    for x in range(1, 7):
        assert fov_map.is_in_fov(x, 3)
    for y in range(3):
        assert fov_map.is_in_fov(9, y)

    # Walls with no visible floor next to them stay unseen
    for y in range(3, 10):
        assert not fov_map.is_in_fov(9, y)

    # Nothing below the horizontal wall is seen, not even the gap at x=0
    for x in range(9):
        for y in range(4, 10):
            assert not fov_map.is_in_fov(x, y)
    assert not fov_map.is_in_fov(0, 3)


def test_post_process_single_pass():
    """A wall revealed by post-processing never reveals the wall behind it."""
    fov_map = diagonal_walls_map()
    window = VisionWindow(Bounds(0, 0, 9, 9))
    window.mark(8, 2)

    post_process(fov_map, window, Bounds(4, 3, 9, 9), -1, -1)

    assert window.is_marked(8, 3)
    assert not window.is_marked(9, 3)
    assert not window.is_marked(7, 3)


def test_idempotent():
    fov_map = FovMap.from_blocked(45, 45, random_walls(45, 45, 10, 42))
    fov_map.set_transparent(22, 22, True)

    fov_map.calculate_fov(22, 22, 24)
    first = fov_map.visible_tiles()
    fov_map.calculate_fov(22, 22, 24)

    assert fov_map.visible_tiles() == first


def test_recalculate_discards_previous():
    fov_map = FovMap(20, 20)
    fov_map.calculate_fov(2, 2, 3)
    fov_map.calculate_fov(17, 17, 3)

    assert not fov_map.is_in_fov(2, 2)
    assert fov_map.is_in_fov(17, 17)
    assert fov_map.last_origin == (17, 17)


def test_subgrid_matches_dense():
    suite = [
        # xdims, ydims, walls, seed, (x, y), radius
        (45, 45, 10, 42, (22, 22), 24),
        (45, 45, 300, 7, (22, 22), 8),
        (30, 20, 120, 3, (1, 18), 6),
        (30, 20, 120, 3, (29, 0), 40),
        (12, 12, 30, 11, (6, 6), 1),
    ]
    for xdims, ydims, count, seed, (x, y), radius in suite:
        walls = random_walls(xdims, ydims, count, seed)
        dense = FovMap.from_blocked(xdims, ydims, walls)
        grid = GridMap(xdims, ydims)
        for wx, wy in walls:
            grid.set_transparent(wx, wy, False)

        dense.calculate_fov(x, y, radius)
        grid.calculate_fov(x, y, radius)

        assert sorted(grid.fov) == sorted(dense.visible_tiles())
        assert grid.is_in_fov(x, y)
        assert not grid.is_in_fov(-1, -1)


def test_subgrid_diagonal_walls():
    grid = GridMap(10, 10)
    for x in range(1, 10):
        grid.set_transparent(x, 3, False)
    for y in range(10):
        grid.set_transparent(9, y, False)
    grid.calculate_fov(3, 2, 10)

    dense = diagonal_walls_map()
    dense.calculate_fov(3, 2, 10)

    assert sorted(grid.fov) == sorted(dense.visible_tiles())
    assert str(grid) == str(dense)


def test_render_vision():
    fov_map = FovMap(3, 3)
    assert str(fov_map) == "+---+\n|???|\n|???|\n|???|\n+---+"

    fov_map.calculate_fov(1, 1, 1)
    assert str(fov_map) == "+---+\n|? ?|\n| * |\n|? ?|\n+---+"

    fov_map.set_transparent(2, 1, False)
    fov_map.calculate_fov(1, 1, 1)
    assert str(fov_map) == "+---+\n|? ?|\n| *□|\n|? ?|\n+---+"


if __name__ == "__main__":
    print("\n=====  2D Raycast FOV  =====\n")

    fov_map = diagonal_walls_map()
    fov_map.calculate_fov(3, 2, 10)
    fov_map.show()

    print()
    grid_map = GridMap(45, 45)
    for x, y in random_walls(45, 45, 10, 42):
        grid_map.set_transparent(x, y, False)
    grid_map.set_transparent(22, 22, True)
    grid_map.calculate_fov(22, 22, 24)
    grid_map.show()
