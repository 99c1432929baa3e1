#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
"""
Regular cartesian grids.

A grid partitions a finite N-dimensional space into elements with integer
coordinates. It is described solely by its shape: a sequence of per-dimension
capacities, e.g. a 2D 32x64 grid is (32, 64).

Any coordinates translate to a unique flat index in [0, capacity) in row-major
order, e.g. in the (32, 64) grid the element (4, 10) has flat index 4 * 64 + 10.

A hypercube is a sequence of (offset, capacity) pairs, one for every dimension.
Its offsets may lie outside the parent grid: depending on the operation the
hypercube is then either clipped or wrapped cyclically (a coordinate -2 on a
dimension of capacity 6 is effectively 4).
"""
from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np
from numpy import typing as npt
from numpy.random import Generator

from htmsp.common.errors import BoundsError, ConfigError
from htmsp.common.math_utils import fit_to_range, reservoir_sample, round_half_up, wrap_to_range

Grid = tuple[int, ...]
Coords = tuple[int, ...]
NormalCoords = tuple[float, ...]
Hypercube = list[tuple[int, int]]


# ==================== grids ====================
def check_grid(grid: Sequence[int]) -> Grid:
    """Validate the grid shape and return it as a tuple."""
    grid = tuple(int(dim) for dim in grid)
    if len(grid) == 0:
        raise ConfigError('Grid must have at least one dimension')
    if any(dim <= 0 for dim in grid):
        raise ConfigError(f'Grid dimensions must be positive; got {grid}')
    return grid


def grid_capacity(grid: Sequence[int]) -> int:
    """Compute how many elements the grid holds."""
    return math.prod(grid)


# ==================== coordinates and flat indices ====================
def coords_to_index(grid: Sequence[int], coords: Sequence[int]) -> int:
    """Translate coordinates to the corresponding flat index in the grid."""
    if len(coords) != len(grid):
        raise BoundsError(f'Coordinates {coords} do not match {len(grid)}D grid')

    index = 0
    for dim, coord in zip(grid, coords):
        if not 0 <= coord < dim:
            raise BoundsError(f'Coordinate {coord} is out of the dimension of capacity {dim}')
        index = index * dim + int(coord)
    return index


def index_to_coords(grid: Sequence[int], index: int) -> Coords:
    """Translate a flat index to the corresponding coordinates in the grid."""
    if not 0 <= index < grid_capacity(grid):
        raise BoundsError(f'Index {index} is out of the grid {tuple(grid)}')

    index = int(index)
    coords = [0] * len(grid)
    for i_dim in range(len(grid) - 1, -1, -1):
        index, coords[i_dim] = divmod(index, grid[i_dim])
    return tuple(coords)


def normalize_coords(grid: Sequence[int], coords: Sequence[int]) -> NormalCoords:
    """
    Normalize coordinates to [0, 1] proportions of the corresponding dimensions.
    The only element of a single-element dimension lies in its middle, i.e. 0.5.
    """
    return tuple(
        coord / (dim - 1) if dim > 1 else .5
        for dim, coord in zip(grid, coords)
    )


def denormalize_coords(grid: Sequence[int], normal_coords: Sequence[float]) -> Coords:
    """Do the opposite of `normalize_coords`."""
    return tuple(
        round_half_up(normal_coord * (dim - 1))
        for dim, normal_coord in zip(grid, normal_coords)
    )


def relative_coords(grid_to: Sequence[int], grid_from: Sequence[int], coords: Sequence[int]) -> Coords:
    """
    Map coordinates in `grid_from` to proportionally the same location in `grid_to`.

    Examples
    --------
    >>> relative_coords((10, 10), (4, 4), (1, 1))
    (3, 3)
    """
    return denormalize_coords(grid_to, normalize_coords(grid_from, coords))


def relative_index(grid_to: Sequence[int], grid_from: Sequence[int], index: int) -> int:
    """Like `relative_coords` but works with flat indices."""
    coords = relative_coords(grid_to, grid_from, index_to_coords(grid_from, index))
    return coords_to_index(grid_to, coords)


def wrap_coords(grid: Sequence[int], coords: Sequence[int]) -> Coords:
    """Wrap each coordinate cyclically into its dimension."""
    return tuple(
        wrap_to_range(coord, 0, dim)
        for dim, coord in zip(grid, coords)
    )


def clip_coords(grid: Sequence[int], coords: Sequence[int]) -> Coords:
    """Constrain each coordinate to its dimension."""
    return tuple(
        fit_to_range(coord, 0, dim - 1)
        for dim, coord in zip(grid, coords)
    )


# ==================== hypercubes ====================
def hypercube(
        grid: Sequence[int], radius: int, center: Sequence[int], clip: bool = False
) -> Hypercube:
    """
    Build a hypercube around the center coordinates.

    In every dimension it spans [center - radius, center + radius]. If such span
    covers the whole dimension, it is replaced by the dimension itself, so the
    hypercube never holds the same grid element twice after wrapping. With `clip`
    the span is cut at the grid borders, otherwise it is left to overflow.
    """
    if radius < 0:
        raise ConfigError(f'Hypercube radius must be non-negative; got {radius}')
    if len(center) != len(grid):
        raise BoundsError(f'Center {tuple(center)} does not match {len(grid)}D grid')

    result = []
    for dim, coord in zip(grid, center):
        if 2 * radius + 1 >= dim:
            result.append((0, dim))
        elif clip:
            low = max(coord - radius, 0)
            high = min(coord + radius, dim - 1)
            result.append((low, high - low + 1))
        else:
            result.append((coord - radius, 2 * radius + 1))
    return result


def hypercube_to_grid(hc: Hypercube) -> Grid:
    """Transform the hypercube into a standalone grid of the same shape."""
    return tuple(capacity for _, capacity in hc)


def hypercube_index_to_coords(hc: Hypercube, index: int) -> Coords:
    """
    Compute the coordinates in the parent grid of the hypercube's flat index.
    NB: they may lie outside the parent grid.
    """
    local_coords = index_to_coords(hypercube_to_grid(hc), index)
    return tuple(
        offset + coord
        for (offset, _), coord in zip(hc, local_coords)
    )


def hypercube_indices(grid: Sequence[int], hc: Hypercube) -> npt.NDArray[np.int64]:
    """Return flat indices in the parent grid of all hypercube elements, wrapping them."""
    return np.array([
        coords_to_index(grid, wrap_coords(grid, hypercube_index_to_coords(hc, i)))
        for i in range(grid_capacity(hypercube_to_grid(hc)))
    ], dtype=np.int64)


# ==================== sampling ====================
def sample_grid(grid: Sequence[int], k: int, rng: Generator) -> npt.NDArray[np.int64]:
    """Sample k distinct elements from the grid."""
    return reservoir_sample(rng, grid_capacity(grid), k)


def sample_hypercube(
        grid: Sequence[int], hc: Hypercube, k: int, rng: Generator
) -> npt.NDArray[np.int64]:
    """
    Sample k distinct elements of the grid from the hypercube.
    Elements overflowing the grid are wrapped cyclically in every dimension.
    """
    local_indices = sample_grid(hypercube_to_grid(hc), k, rng)
    return np.array([
        coords_to_index(grid, wrap_coords(grid, hypercube_index_to_coords(hc, i)))
        for i in local_indices
    ], dtype=np.int64)


# ==================== misc ====================
def dim_ranges(coords_seq: Iterable[Sequence[int]]) -> list[tuple[int, int]]:
    """Given a sequence of coordinates, return (min, max) coordinate for every dimension."""
    ranges = None
    for coords in coords_seq:
        if ranges is None:
            ranges = [(coord, coord) for coord in coords]
        else:
            ranges = [
                (min(low, coord), max(high, coord))
                for (low, high), coord in zip(ranges, coords)
            ]
    return ranges if ranges is not None else []


def dim_span(ranges: Sequence[tuple[int, int]]) -> list[int]:
    """Given `dim_ranges`, compute the span for every dimension."""
    return [high - low for low, high in ranges]
