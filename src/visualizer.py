"""2D Raycast FOV Visualization.

Controls:
- `W`, `A`, `S`, `D`: move the observer (walls and map edges block movement)
- `-`, `=`: shrink / grow the FOV radius
- `T`: toggle the tile at the mouse cursor between floor and wall
- `F`: toggle the FOV ray drawn from the observer to the cursor
- `C`: toggle the cursor highlight
"""
import logging
import pygame, pygame.freetype
from pygame import Vector2
from pygame.color import Color
from pygame.freetype import Font
from pygame.surface import Surface
from fov_raycast import FovMap
from helpers import Coords
from map_drawing import (
    draw_floor,
    draw_fov_line,
    draw_player,
    draw_structure,
    draw_text,
    draw_tile_at_cursor,
    draw_unseen,
)
from typing import Iterable, Optional, Tuple

import pytest

logger = logging.getLogger(__name__)


class Settings:
    """Settings for Pygame."""

    def __init__(
        self,
        width: int,
        height: int,
        map_dims: Coords,
        font: Optional[Font] = None,
        font_color="snow",
        radius: int = 10,
        max_radius: int = 63,
        tile_size: int = 32,
        line_width: int = 1,
        floor_trim_color="steelblue4",
        structure_color="seagreen3",
        structure_trim_color="seagreen4",
        unseen_color="gray15",
        player_color="gold",
        cursor_color="yellow",
        fov_line_color="slateblue1",
        fov_line_trim_color="slateblue3",
    ) -> None:
        if map_dims.x < 1 or map_dims.y < 1:
            raise ValueError("all map dimensions must be > 0!")

        self.width = width
        self.height = height
        self.xdims, self.ydims = map_dims
        self.font = font
        self.font_color = Color(font_color)
        self.max_radius = max(max_radius, 0)
        self.radius = min(max(radius, 0), self.max_radius)
        self.tile_size = tile_size
        self.line_width = line_width
        self.floor_trim_color = Color(floor_trim_color)
        self.structure_color = Color(structure_color)
        self.structure_trim_color = Color(structure_trim_color)
        self.unseen_color = Color(unseen_color)
        self.player_color = Color(player_color)
        self.cursor_color = Color(cursor_color)
        self.fov_line_color = Color(fov_line_color)
        self.fov_line_trim_color = Color(fov_line_trim_color)


def get_tile_at_cursor(mx: int, my: int, tile_size: int) -> Coords:
    """Gets (x,y) coordinates of the tile under the mouse cursor at (mx, my)."""
    return Coords(mx // tile_size, my // tile_size)


def first_open_tile(fov_map: FovMap) -> Tuple[int, int]:
    """Starting position for the observer: the first transparent tile, row by row."""
    for y in range(fov_map.ydims):
        for x in range(fov_map.xdims):
            if fov_map.is_transparent(x, y):
                return x, y

    return 0, 0


def try_move(fov_map: FovMap, px: int, py: int, dx: int, dy: int) -> Tuple[int, int]:
    """Returns the observer's new position, staying put if the target is blocked."""
    nx, ny = px + dx, py + dy
    if fov_map.is_in_bounds(nx, ny) and fov_map.is_transparent(nx, ny):
        return nx, ny

    return px, py


def draw_map(fov_map: FovMap, screen: Surface, settings: Settings):
    """Renders the FovMap: visible tiles as floor or structure, the rest as unseen."""
    ts = settings.tile_size
    w = settings.line_width

    for y in range(fov_map.ydims):
        for x in range(fov_map.xdims):
            pr = Vector2(x * ts, y * ts)
            if not fov_map.is_in_fov(x, y):
                draw_unseen(screen, pr, ts, settings.unseen_color)
            elif fov_map.is_transparent(x, y):
                draw_floor(screen, pr, ts, w, settings.floor_trim_color)
            else:
                draw_structure(
                    screen, pr, ts, w, settings.structure_color, settings.structure_trim_color
                )


#    ######      ##     ##    ##  ########
#   ##         ##  ##   ###  ###  ##
#   ##   ###  ##    ##  ## ## ##  ######
#   ##    ##  ########  ##    ##  ##
#    ######   ##    ##  ##    ##  ########


def run_game(blocked: Iterable[Tuple[int, int]], settings: Settings):
    """Renders the FOV display using Pygame."""
    # --- Pygame setup --- #
    pygame.init()
    pygame.freetype.init()
    pygame.display.set_caption("2D Raycast FOV")
    screen = pygame.display.set_mode((settings.width, settings.height))
    pygame.key.set_repeat(0)
    clock = pygame.time.Clock()
    running = True

    if settings.font is None:
        settings.font = Font(None, size=16)

    # --- Map Setup --- #
    fov_map = FovMap.from_blocked(settings.xdims, settings.ydims, blocked)
    tile_size = settings.tile_size

    # --- Player Setup --- #
    px, py = first_open_tile(fov_map)
    radius = settings.radius
    max_radius = settings.max_radius
    fov_map.calculate_fov(px, py, radius)

    # --- HUD Setup --- #
    show_fov_line = False
    show_cursor = True
    redraw = True

    # --- Game Loop --- #
    while running:
        recalc = False

        # --- Event Polling --- #
        # pygame.QUIT: Alt+F4 or Pressing 'X' in window corner
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            if event.type == pygame.MOUSEMOTION:
                redraw = redraw or show_cursor or show_fov_line
            if event.type == pygame.KEYDOWN:
                key = event.dict["key"]
                if key == pygame.K_w:
                    px, py = try_move(fov_map, px, py, 0, -1)
                    recalc = True
                if key == pygame.K_s:
                    px, py = try_move(fov_map, px, py, 0, 1)
                    recalc = True
                if key == pygame.K_a:
                    px, py = try_move(fov_map, px, py, -1, 0)
                    recalc = True
                if key == pygame.K_d:
                    px, py = try_move(fov_map, px, py, 1, 0)
                    recalc = True
                if key == pygame.K_MINUS and radius > 0:
                    radius -= 1
                    recalc = True
                    logger.info(f"FOV radius set to {radius}")
                if key == pygame.K_EQUALS and radius < max_radius:
                    radius += 1
                    recalc = True
                    logger.info(f"FOV radius set to {radius}")
                if key == pygame.K_t:
                    tx, ty = get_tile_at_cursor(*pygame.mouse.get_pos(), tile_size)
                    if fov_map.is_in_bounds(tx, ty) and (tx, ty) != (px, py):
                        is_open = not fov_map.is_transparent(tx, ty)
                        fov_map.set_transparent(tx, ty, is_open)
                        recalc = True
                        logger.info(f"Tile {tx, ty} is now {'floor' if is_open else 'wall'}")
                if key == pygame.K_f:
                    show_fov_line = not show_fov_line
                    redraw = True
                if key == pygame.K_c:
                    show_cursor = not show_cursor
                    redraw = True

        if recalc:
            fov_map.calculate_fov(px, py, radius)
            logger.debug(f"FOV from {px, py} radius {radius}: {len(fov_map.visible_tiles())} tiles")
            redraw = True

        # --- Rendering --- #
        if redraw:
            # fill the screen with a color to wipe away anything from last frame
            screen.fill("black")
            draw_map(fov_map, screen, settings)
            draw_player(screen, px, py, tile_size, settings.player_color)

            tx, ty = get_tile_at_cursor(*pygame.mouse.get_pos(), tile_size)
            if show_fov_line:
                draw_fov_line(screen, fov_map, px, py, tx, ty, settings)
            if show_cursor:
                draw_tile_at_cursor(screen, tx, ty, settings)

            hud = f"pos {px, py}  radius {radius}  cursor {tx, ty}"
            draw_text(screen, settings.font, hud, 8, 8, settings.font_color)
            redraw = False

        pygame.display.flip()

        clock.tick(60)  # FPS limit

    pygame.quit()


#   ########  ########   ######   ########
#      ##     ##        ##           ##
#      ##     ######     ######      ##
#      ##     ##              ##     ##
#      ##     ########  #######      ##


def test_settings_invalid_map_dims():
    with pytest.raises(ValueError):
        Settings(640, 480, Coords(0, 10))


def test_settings_radius_clamped():
    assert Settings(640, 480, Coords(10, 10), radius=99, max_radius=20).radius == 20
    assert Settings(640, 480, Coords(10, 10), radius=-4).radius == 0


def test_get_tile_at_cursor():
    assert get_tile_at_cursor(0, 0, 32) == Coords(0, 0)
    assert get_tile_at_cursor(31, 33, 32) == Coords(0, 1)
    assert get_tile_at_cursor(100, 64, 32) == Coords(3, 2)


def test_try_move():
    fov_map = FovMap.from_blocked(5, 5, [(2, 1)])

    assert try_move(fov_map, 2, 2, 0, -1) == (2, 2)  # wall
    assert try_move(fov_map, 0, 0, -1, 0) == (0, 0)  # map edge
    assert try_move(fov_map, 2, 2, 1, 0) == (3, 2)


def test_first_open_tile():
    fov_map = FovMap.from_blocked(3, 3, [(0, 0), (1, 0), (2, 0)])
    assert first_open_tile(fov_map) == (0, 1)


#   ##    ##     ##     ########  ##    ##
#   ###  ###   ##  ##      ##     ####  ##
#   ## ## ##  ##    ##     ##     ## ## ##
#   ##    ##  ########     ##     ##  ####
#   ##    ##  ##    ##  ########  ##    ##

if __name__ == "__main__":
    print("\n=====  2D Raycast FOV Visualization  =====\n")
    logging.basicConfig(level=logging.INFO)

    map_dims = Coords(40, 30)
    blocked = [(x, 8) for x in range(4, 20)]
    blocked += [(20, y) for y in range(0, 14)]
    blocked += [(x, 18) for x in range(10, 36) if x != 22]
    blocked += [(6, 22), (7, 22), (12, 24), (30, 5), (31, 6), (32, 7)]

    settings = Settings(1280, 960, map_dims, radius=10)

    run_game(blocked, settings)
