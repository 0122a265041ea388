"""Path reordering stages: material sort and active-path compaction.

Both stages permute the path buffer through a scratch buffer and copy the
result back with one whole-range kernel, so no kernel ever reads and writes
the same path entry concurrently.
"""

import numpy as np
import taichi as ti

# Slots of the cursor field used by compaction
FRONT_CURSOR = 0
BACK_CURSOR = 1


@ti.kernel
def copy_range(src: ti.template(), dst: ti.template(), count: ti.i32):
    """Copy src[0:count] into dst[0:count]."""
    for i in range(count):
        dst[i] = src[i]


# =============================================================================
# Compaction
# =============================================================================


@ti.kernel
def partition_paths(
    paths: ti.template(), scratch: ti.template(), cursors: ti.template(), count: ti.i32
):
    """Partition paths[0:count] into scratch, active paths first.

    Active paths are claimed from the front cursor, terminated paths from
    the back cursor. The cursors must hold 0 and count on entry.
    """
    for i in range(count):
        path = paths[i]
        if path.remaining_bounces > 0:
            slot = ti.atomic_add(cursors[FRONT_CURSOR], 1)
            scratch[slot] = path
        else:
            slot = ti.atomic_sub(cursors[BACK_CURSOR], 1) - 1
            scratch[slot] = path


def compact_paths(paths, scratch, cursors, num_active: int) -> int:
    """Move the active paths of paths[0:num_active] to its front.

    Terminated paths are kept behind the active ones, so the multiset of
    paths in paths[0:num_active] is unchanged. Entries past num_active are
    not touched.

    Args:
        paths: PathSegment field.
        scratch: PathSegment field at least as large as paths.
        cursors: i32 field of shape (2,).
        num_active: Length of the prefix to partition.

    Returns:
        The new number of active paths.
    """
    cursors[FRONT_CURSOR] = 0
    cursors[BACK_CURSOR] = num_active
    partition_paths(paths, scratch, cursors, num_active)
    copy_range(scratch, paths, num_active)
    return int(cursors[FRONT_CURSOR])


# =============================================================================
# Material Sort
# =============================================================================


@ti.kernel
def gather_by_permutation(
    permutation: ti.types.ndarray(),
    paths: ti.template(),
    intersections: ti.template(),
    scratch_paths: ti.template(),
    scratch_intersections: ti.template(),
    count: ti.i32,
):
    """scratch[i] = source[permutation[i]] for paths and intersections."""
    for i in range(count):
        j = permutation[i]
        scratch_paths[i] = paths[j]
        scratch_intersections[i] = intersections[j]


def material_sort_permutation(material_ids: np.ndarray) -> np.ndarray:
    """Stable permutation ordering paths by material id."""
    return np.argsort(material_ids, kind="stable").astype(np.int32)


def sort_by_material(
    paths,
    intersections,
    scratch_paths,
    scratch_intersections,
    count: int,
) -> None:
    """Reorder paths[0:count] and intersections[0:count] by material id.

    Paths and intersections are permuted jointly so each path keeps its own
    intersection. Misses (material id -1) sort first.
    """
    keys = intersections.material_id.to_numpy()[:count]
    permutation = material_sort_permutation(keys)
    gather_by_permutation(
        permutation, paths, intersections, scratch_paths, scratch_intersections, count
    )
    copy_range(scratch_paths, paths, count)
    copy_range(scratch_intersections, intersections, count)
