"""Line Drawing Algorithms (2D)"""
from types import GeneratorType
from typing import Iterator, Tuple


def bresenham(x1: int, y1: int, x2: int, y2: int) -> Iterator[Tuple[int, int]]:
    """Breshenham's line algorithm - lazy 2D version.

    Yields every tile from (x1, y1) to (x2, y2) inclusive. Consecutive tiles are
    8-connected. The minor axis steps when the error term is `>= 0`, so ties
    are always broken toward the destination.
    """
    yield x1, y1

    dx, dy = abs(x2 - x1), abs(y2 - y1)
    x_inc = 1 if x2 >= x1 else -1
    y_inc = 1 if y2 >= y1 else -1
    x, y = x1, y1

    # Y-primary
    if dy > dx:
        tx = 2 * dx - dy

        for _ in range(dy):
            y += y_inc
            if tx >= 0:
                x += x_inc
                tx -= 2 * dy
            tx += 2 * dx

            yield x, y

    # X-primary
    else:
        ty = 2 * dy - dx

        for _ in range(dx):
            x += x_inc
            if ty >= 0:
                y += y_inc
                ty -= 2 * dx
            ty += 2 * dy

            yield x, y


#   ########  ########   ######   ########
#      ##     ##        ##           ##
#      ##     ######     ######      ##
#      ##     ##              ##     ##
#      ##     ########  #######      ##


def test_bresenham_2D():
    """Check expected values for the `bresenham()` 2D function."""
    suite = [
        (0, 0, 5, 0),
        (0, 0, -5, 0),
        (0, 0, 0, 5),
        (0, 0, 0, -5),
        (0, 0, 2, 2),
        (0, 0, 4, 2),
        (0, 0, 1, 3),
        (3, 3, 0, 1),
    ]
    expected = [
        [(0, 0), (1, 0), (2, 0), (3, 0), (4, 0), (5, 0)],
        [(0, 0), (-1, 0), (-2, 0), (-3, 0), (-4, 0), (-5, 0)],
        [(0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (0, 5)],
        [(0, 0), (0, -1), (0, -2), (0, -3), (0, -4), (0, -5)],
        [(0, 0), (1, 1), (2, 2)],
        [(0, 0), (1, 1), (2, 1), (3, 2), (4, 2)],
        [(0, 0), (0, 1), (1, 2), (1, 3)],
        [(3, 3), (2, 2), (1, 2), (0, 1)],
    ]
    actual = [list(bresenham(*coords)) for coords in suite]
    for i, e in enumerate(expected):
        assert actual[i] == e


def test_bresenham_2D_single_point():
    assert list(bresenham(4, 7, 4, 7)) == [(4, 7)]


def test_bresenham_2D_endpoints_and_steps():
    """Every line starts at the origin, ends at the destination, and steps once."""
    suite = [(2, 3, x, y) for x in range(-6, 7) for y in range(-6, 7)]

    for x1, y1, x2, y2 in suite:
        line = list(bresenham(x1, y1, x2, y2))
        assert line[0] == (x1, y1)
        assert line[-1] == (x2, y2)
        assert len(line) == max(abs(x2 - x1), abs(y2 - y1)) + 1

        for (ax, ay), (bx, by) in zip(line, line[1:]):
            assert max(abs(bx - ax), abs(by - ay)) == 1


def test_bresenham_2D_is_lazy():
    line = bresenham(0, 0, 1000000, 3)
    assert isinstance(line, GeneratorType)
    assert next(line) == (0, 0)
    assert next(line) == (1, 0)
