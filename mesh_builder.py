# mesh_builder.py
import numpy as np
import trimesh
from typing import List, Tuple

# Import from other project modules
import constants as const
from grid_core import Grid

# Outward faces of a unit voxel: (neighbour offset (dk, dj, di), quad corners (ci, cj, ck) counter-clockwise seen from outside)
_VOXEL_FACES: List[Tuple[Tuple[int, int, int], Tuple[Tuple[int, int, int], ...]]] = [
    ((0, 0, 1), ((1, 0, 0), (1, 1, 0), (1, 1, 1), (1, 0, 1))),  # +x
    ((0, 0, -1), ((0, 0, 0), (0, 0, 1), (0, 1, 1), (0, 1, 0))),  # -x
    ((0, 1, 0), ((0, 1, 0), (0, 1, 1), (1, 1, 1), (1, 1, 0))),  # +y
    ((0, -1, 0), ((0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1))),  # -y
    ((1, 0, 0), ((0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1))),  # +z
    ((-1, 0, 0), ((0, 0, 0), (0, 1, 0), (1, 1, 0), (1, 0, 0))),  # -z
]


def _occupancy(grid: Grid, wall_height: float, base_thickness: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Stacks the solid as layers of cell columns: an optional full base layer
    under a layer holding the walls. Rows are flipped so row 0 prints at the
    back. Returns (occupancy[k, j, i], z edges of the layers).
    """
    walls = (grid.cells == const.WALL_VALUE)[::-1, :]
    layers = [walls]
    z_edges = [0.0, wall_height]
    if base_thickness > 0:
        layers.insert(0, np.ones_like(walls))
        z_edges.insert(0, -base_thickness)
    return np.stack(layers), np.array(z_edges, dtype=float)


def maze_to_mesh(
    grid: Grid,
    wall_height: float = const.STL_WALL_HEIGHT,
    cell_size: float = const.STL_CELL_SIZE,
    base_thickness: float = const.STL_BASE_THICKNESS,
) -> trimesh.Trimesh:
    """
    Converts a maze into a printable mesh: a solid base slab with every wall
    cell extruded on top, as a single closed surface. Only faces between solid
    and empty space are emitted, so touching walls share no internal faces.
    """
    if wall_height <= 0 or cell_size <= 0 or base_thickness < 0:
        raise ValueError("Wall height and cell size must be positive, base thickness non-negative.")

    print(f"\n--- Building Maze Mesh ({grid.width}x{grid.height}) ---")
    print(f"    Cell={cell_size:.2f}, Wall H={wall_height:.2f}, Base H={base_thickness:.2f}")

    solid, z_edges = _occupancy(grid, wall_height, base_thickness)
    if not solid.any():
        print("ERROR: Nothing to build (no walls and no base).")
        return trimesh.Trimesh()
    layers, rows, cols = solid.shape
    print(f"  Extruding {int(np.count_nonzero(solid[-1]))} wall cells over {layers} layer(s)...")

    # Shared lattice of corner vertices, id = (k * (rows + 1) + j) * (cols + 1) + i
    zs, ys, xs = np.meshgrid(
        z_edges, np.arange(rows + 1) * cell_size, np.arange(cols + 1) * cell_size, indexing="ij"
    )
    vertices = np.column_stack([xs.ravel(), ys.ravel(), zs.ravel()])

    padded = np.pad(solid, 1, constant_values=False)
    faces = []
    for (dk, dj, di), corners in _VOXEL_FACES:
        neighbour = padded[1 + dk : 1 + dk + layers, 1 + dj : 1 + dj + rows, 1 + di : 1 + di + cols]
        ks, js, is_ = np.nonzero(solid & ~neighbour)
        quad = np.column_stack(
            [((ks + ck) * (rows + 1) + (js + cj)) * (cols + 1) + (is_ + ci) for ci, cj, ck in corners]
        )
        faces.append(quad[:, [0, 1, 2]])
        faces.append(quad[:, [0, 2, 3]])

    mesh = trimesh.Trimesh(vertices=vertices, faces=np.vstack(faces), process=False)
    mesh.remove_unreferenced_vertices()
    print(f"    Surface: {len(mesh.vertices)}V, {len(mesh.faces)}F")
    if not mesh.is_watertight:
        print("  Warning: Maze mesh is not watertight (walls touching only at a corner).")
    return mesh


def export_maze_stl(
    grid: Grid,
    filename: str = "maze.stl",
    wall_height: float = const.STL_WALL_HEIGHT,
    cell_size: float = const.STL_CELL_SIZE,
    base_thickness: float = const.STL_BASE_THICKNESS,
) -> trimesh.Trimesh:
    """Builds the maze mesh and writes it to an STL file."""
    mesh = maze_to_mesh(grid, wall_height, cell_size, base_thickness)
    if len(mesh.faces) == 0:
        raise RuntimeError("Maze mesh is empty, nothing to export.")
    print(f"  Exporting maze ({len(mesh.vertices)}V, {len(mesh.faces)}F) to {filename}...")
    mesh.export(filename)
    return mesh
