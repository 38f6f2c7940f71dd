#!/usr/bin/env python3
"""
Diagnostic script to preview how camera feeds are tiled on the output canvas.
Prints the tile plan; with --show it also paints each tile in a pygame window.

Usage: python Tools/diagnose_tile_layout.py [--canvas 7680x1232] [--cam 1920x1232] [-n 4] [--show]
"""

import argparse
import os
import sys

import pygame

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from Core.Display.TilingLayout import (
    VIB_RES_X,
    VIB_RES_Y,
    assign_tiles,
    canvas_extent,
    compute_grid,
    parse_resolution,
)

COLORS = [(255, 100, 100), (100, 255, 100), (100, 100, 255), (255, 255, 100),
          (255, 100, 255), (100, 255, 255)]


def describe_layout(canvas, camera, count=None):
    grid = compute_grid(canvas, camera)
    requested = grid.max_cameras if count is None else count
    tiles = assign_tiles(grid, camera, requested)

    print("\n" + "=" * 70)
    print("TILE LAYOUT")
    print("=" * 70)
    print(f"  Canvas:          {canvas[0]}x{canvas[1]}")
    print(f"  Camera:          {camera[0]}x{camera[1]}")
    print(f"  Max horizontal:  {grid.max_horizontal}")
    print(f"  Max vertical:    {grid.max_vertical}")
    print(f"  Max cameras:     {grid.max_cameras}")
    print(f"  Requested:       {requested}")
    for i, t in enumerate(tiles):
        print(f"  Tile {i}: origin=({t.x:5d}, {t.y:5d})")
    if requested > len(tiles):
        print(f"  ⚠️ {requested - len(tiles)} camera(s) have no tile")
    return grid, tiles


def show_layout(tiles, camera):
    pygame.init()
    display = pygame.display.set_mode(canvas_extent(tiles, camera), pygame.NOFRAME)
    font = pygame.font.Font(None, 72)
    for i, t in enumerate(tiles):
        pygame.draw.rect(display, COLORS[i % len(COLORS)], (t.x, t.y, camera[0], camera[1]))
        display.blit(font.render(f"Tile {i} ({t.x},{t.y})", True, (255, 255, 255)), (t.x + 50, t.y + 50))
    pygame.display.flip()

    print("\n  Press any key to close...")
    waiting = True
    while waiting:
        for event in pygame.event.get():
            if event.type in (pygame.QUIT, pygame.KEYDOWN):
                waiting = False
    pygame.quit()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--canvas", default=f"{VIB_RES_X}x{VIB_RES_Y}")
    parser.add_argument("--cam", default="1920x1232")
    parser.add_argument("-n", "--num-cams", type=int, default=None)
    parser.add_argument("--show", action="store_true")
    a = parser.parse_args()

    try:
        canvas_res, cam_res = parse_resolution(a.canvas), parse_resolution(a.cam)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    _, plan = describe_layout(canvas_res, cam_res, a.num_cams)
    if a.show and plan:
        show_layout(plan, cam_res)
