"""Top-down drawing functions for 2D raycast FOV maps."""
import pygame, pygame.freetype
from pygame import Vector2
from pygame.color import Color
from pygame.freetype import Font
from pygame.surface import Surface
from lines import bresenham


def tile_corners(pr: Vector2, ts: int):
    """Corners of the tile with reference point `pr` and tile size `ts`, clockwise."""
    p1 = Vector2(pr.x, pr.y)
    p2 = Vector2(pr.x + ts, pr.y)
    p3 = Vector2(pr.x + ts, pr.y + ts)
    p4 = Vector2(pr.x, pr.y + ts)

    return [p1, p2, p3, p4]


def draw_floor(screen: Surface, pr: Vector2, ts: int, width: int, trim: Color):
    """Draws a visible floor tile with reference point `pr` and tile size `ts`."""
    pygame.draw.lines(screen, trim, True, tile_corners(pr, ts), width=width)


def draw_structure(
    screen: Surface, pr: Vector2, ts: int, width: int, color: Color, trim: Color
):
    """Draws a visible sight-blocking tile with reference point `pr` and tile size `ts`."""
    corners = tile_corners(pr, ts)

    pygame.draw.polygon(screen, color, corners)
    pygame.draw.lines(screen, trim, True, corners, width=width)


def draw_unseen(screen: Surface, pr: Vector2, ts: int, color: Color):
    """Draws a tile outside of the FOV."""
    pygame.draw.polygon(screen, color, tile_corners(pr, ts))


def draw_player(screen: Surface, px: int, py: int, tile_size: int, color: Color):
    """Renders the player (always visible) on the map."""
    mid = tile_size * 0.5
    center = (px * tile_size + mid, py * tile_size + mid)

    pygame.draw.circle(screen, color, center, tile_size * 0.35)


def draw_tile_at_cursor(screen: Surface, tx: int, ty: int, settings):
    """Draws border around Tile at cursor."""
    ts = settings.tile_size
    rx, ry = tx * ts, ty * ts

    pygame.draw.lines(
        screen,
        settings.cursor_color,
        True,
        [(rx, ry), (rx + ts, ry), (rx + ts, ry + ts), (rx, ry + ts)],
        settings.line_width,
    )


def draw_fov_line(
    screen: Surface, fov_map, sx: int, sy: int, tx: int, ty: int, settings
):
    """Draws the FOV ray from source (sx, sy) to tile at mouse cursor (tx, ty).

    The ray stops at the first tile that blocks sight, just like in the FOV calc.
    """
    ts = settings.tile_size
    color = settings.fov_line_color
    trim = settings.fov_line_trim_color

    for fx, fy in bresenham(sx, sy, tx, ty):
        if not fov_map.is_in_bounds(fx, fy):
            break
        draw_fov_tile(screen, Vector2(fx * ts, fy * ts), ts, color, trim)
        if not fov_map.is_transparent(fx, fy):
            break


def draw_fov_tile(screen: Surface, pr: Vector2, ts: int, color: Color, trim: Color):
    """Draws an FOV tile with reference point `pr` and tile size `ts`."""
    corners = tile_corners(pr, ts)

    pygame.draw.polygon(screen, color, corners)
    pygame.draw.lines(screen, trim, True, corners)


def draw_text(screen: Surface, font: Font, text: str, x: int, y: int, color: Color):
    """Renders a single line of HUD text with its top-left corner at (x, y)."""
    font.render_to(screen, (x, y), text, color)
