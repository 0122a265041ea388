"""Render session: device buffers and the per-iteration wavefront loop.

A RenderSession owns every Taichi field used to render one scene, allocated
in a single FieldsBuilder tree so teardown can release them together. Each
call to render_iteration runs

    GENERATE -> {INTERSECT -> [SORT] -> SHADE -> [COMPACT]}* -> GATHER

where every stage is one or more kernel launches over the path buffer, and
returns the running average as an 8-bit display buffer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from wavetrace.core.config import RenderConfig
    >>> from wavetrace.core.session import RenderSession
    >>> from wavetrace.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> session = RenderSession(RenderConfig(sort_by_material=True))
    >>> session.initialize(create_cornell_box_scene(resolution=(64, 64)))
    >>> for i in range(1, 5):
    ...     display = session.render_iteration(i)
    >>> session.teardown()
"""

import logging
from collections.abc import Callable
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti

from wavetrace.camera.perspective import CameraData, generate_camera_ray, upload_camera
from wavetrace.core.accumulator import gather_paths, image_to_numpy, to_display_buffer
from wavetrace.core.compaction import compact_paths, copy_range, sort_by_material
from wavetrace.core.config import RenderConfig
from wavetrace.core.errors import RenderStageError, SessionStateError
from wavetrace.core.ray import PathSegment
from wavetrace.core.shading import shade_paths
from wavetrace.geometry.geom import Geom, Triangle
from wavetrace.materials.bsdf import Material
from wavetrace.scene.intersection import (
    ShadeableIntersection,
    intersect_scene,
    make_miss_intersection,
    upload_scene,
)
from wavetrace.scene.manager import Scene

logger = logging.getLogger(__name__)


# =============================================================================
# Stage Kernels
# =============================================================================


@ti.kernel
def generate_paths(
    camera: ti.template(),
    paths: ti.template(),
    width: ti.i32,
    height: ti.i32,
    iteration: ti.i32,
    max_depth: ti.i32,
    antialiasing: ti.i32,
    depth_of_field: ti.i32,
    motion_blur: ti.i32,
):
    """Write one primary path per pixel, paths[x + y * width]."""
    cam = camera[None]
    for y, x in ti.ndrange(height, width):
        index = x + y * width
        paths[index] = generate_camera_ray(
            cam, x, y, iteration, index, max_depth, antialiasing, depth_of_field, motion_blur
        )


@ti.kernel
def intersect_paths(
    paths: ti.template(),
    intersections: ti.template(),
    geoms: ti.template(),
    num_geoms: ti.i32,
    triangles: ti.template(),
    num_paths: ti.i32,
    culling: ti.i32,
):
    """Find the nearest hit of every path in paths[0:num_paths].

    Terminated paths get a miss without being traced.
    """
    for i in range(num_paths):
        path = paths[i]
        hit = make_miss_intersection()
        if path.remaining_bounces > 0:
            hit = intersect_scene(path.ray, geoms, num_geoms, triangles, culling)
        intersections[i] = hit


# =============================================================================
# Render Session
# =============================================================================


class RenderSession:
    """Owns the device state of one render and runs its iterations.

    The lifecycle is initialize(scene), any number of render_iteration()
    calls, then teardown(). A torn-down session may be initialized again.

    Attributes:
        config: The feature toggles used by every iteration.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config if config is not None else RenderConfig()
        self._scene: Scene | None = None
        self._tree: Any = None
        self._iterations = 0
        self._last_frame = 0
        self._cache_valid = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def initialized(self) -> bool:
        """True between initialize() and teardown()."""
        return self._scene is not None

    @property
    def scene(self) -> Scene:
        self._require_initialized()
        return self._scene

    @property
    def iterations(self) -> int:
        """Number of iterations accumulated since initialize()."""
        return self._iterations

    @property
    def last_frame(self) -> int:
        """Frame index passed to the most recent render_iteration()."""
        return self._last_frame

    @property
    def resolution(self) -> tuple[int, int]:
        return self.scene.resolution

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self, scene: Scene) -> None:
        """Allocate and clear device buffers and upload the scene.

        Args:
            scene: The Scene produced by SceneManager.build().

        Raises:
            SessionStateError: If the session is already initialized.
            RenderStageError: If allocation or upload fails.
        """
        if self.initialized:
            raise SessionStateError("Session is already initialized; call teardown() first")

        try:
            self._allocate(scene)
            upload_scene(scene, self._geoms, self._triangles, self._materials)
            upload_camera(self._camera, scene.camera)
            self._image.fill(0.0)
        except Exception as exc:
            logger.error("Session initialization failed: %s", exc)
            self._release()
            raise RenderStageError("initialize", str(exc)) from exc

        self._scene = scene
        self._iterations = 0
        self._last_frame = 0
        self._cache_valid = False

        width, height = scene.resolution
        logger.info(
            "Initialized session: %dx%d pixels, %d geoms, %d triangles, %d materials, max depth %d",
            width,
            height,
            scene.num_geoms,
            scene.num_triangles,
            scene.num_materials,
            scene.max_depth,
        )

    def teardown(self) -> None:
        """Release every device buffer. Safe to call more than once."""
        if self._tree is None and self._scene is None:
            return
        self._release()
        logger.info("Session torn down after %d iterations", self._iterations)

    def _allocate(self, scene: Scene) -> None:
        num_pixels = scene.num_pixels

        fb = ti.FieldsBuilder()

        self._paths = PathSegment.field()
        self._scratch_paths = PathSegment.field()
        self._intersections = ShadeableIntersection.field()
        self._scratch_intersections = ShadeableIntersection.field()
        self._cached_intersections = ShadeableIntersection.field()
        self._image = ti.Vector.field(3, dtype=ti.f32)
        fb.dense(ti.i, num_pixels).place(
            self._paths,
            self._scratch_paths,
            self._intersections,
            self._scratch_intersections,
            self._cached_intersections,
            self._image,
        )

        # Tables hold at least one entry so empty scenes still compile
        self._geoms = Geom.field()
        fb.dense(ti.i, max(1, scene.num_geoms)).place(self._geoms)
        self._triangles = Triangle.field()
        fb.dense(ti.i, max(1, scene.num_triangles)).place(self._triangles)
        self._materials = Material.field()
        fb.dense(ti.i, max(1, scene.num_materials)).place(self._materials)

        self._camera = CameraData.field()
        fb.place(self._camera)
        self._cursors = ti.field(dtype=ti.i32)
        fb.dense(ti.i, 2).place(self._cursors)

        self._tree = fb.finalize()
        logger.info(
            "Allocated device buffers for %d paths (%d geoms, %d triangles)",
            num_pixels,
            scene.num_geoms,
            scene.num_triangles,
        )

    def _release(self) -> None:
        if self._tree is not None:
            # Pending launches and uploads must finish before the tree goes
            ti.sync()
            self._tree.destroy()
        self._tree = None
        self._scene = None
        self._cache_valid = False

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise SessionStateError("Session is not initialized; call initialize(scene) first")

    # =========================================================================
    # Rendering
    # =========================================================================

    def _run_stage(self, stage: str, launch: Callable[..., Any], *args: Any) -> Any:
        """Run one stage, tearing the session down if it fails."""
        try:
            return launch(*args)
        except Exception as exc:
            logger.error("Render stage '%s' failed: %s", stage, exc)
            self._release()
            raise RenderStageError(stage, str(exc)) from exc

    def render_iteration(self, iteration: int, frame: int = 0) -> npt.NDArray[np.uint8]:
        """Trace one path per pixel and add it to the accumulation image.

        Args:
            iteration: Iteration index, seeds every random stream of the
                iteration. Callers normally pass 1, 2, 3, ...
            frame: Index of the frame being refined, recorded as last_frame.

        Returns:
            The running average as a (height, width, 3) uint8 array.

        Raises:
            SessionStateError: If the session is not initialized.
            RenderStageError: If a stage fails. The session is torn down.
        """
        self._require_initialized()
        config = self.config
        scene = self._scene
        width, height = scene.resolution
        num_paths = width * height
        max_depth = scene.max_depth
        use_cache = config.uses_first_bounce_cache

        self._last_frame = frame

        self._run_stage(
            "generate",
            generate_paths,
            self._camera,
            self._paths,
            width,
            height,
            iteration,
            max_depth,
            int(config.antialiasing),
            int(config.depth_of_field),
            int(config.motion_blur),
        )

        depth = 0
        num_active = num_paths
        while depth < max_depth and num_active > 0:
            if depth == 0 and use_cache and self._cache_valid:
                self._run_stage(
                    "intersect", copy_range, self._cached_intersections, self._intersections, num_paths
                )
            else:
                self._run_stage(
                    "intersect",
                    intersect_paths,
                    self._paths,
                    self._intersections,
                    self._geoms,
                    scene.num_geoms,
                    self._triangles,
                    num_active,
                    int(config.mesh_culling),
                )
                if depth == 0 and use_cache:
                    self._run_stage(
                        "cache", copy_range, self._intersections, self._cached_intersections, num_paths
                    )
                    self._cache_valid = True

            if config.sort_by_material:
                self._run_stage(
                    "sort",
                    sort_by_material,
                    self._paths,
                    self._intersections,
                    self._scratch_paths,
                    self._scratch_intersections,
                    num_active,
                )

            self._run_stage(
                "shade",
                shade_paths,
                self._paths,
                self._intersections,
                self._materials,
                num_active,
                iteration,
                depth,
                int(config.ambient_light),
            )
            depth += 1

            if config.compact_paths:
                num_active = self._run_stage(
                    "compact", compact_paths, self._paths, self._scratch_paths, self._cursors, num_active
                )

            logger.debug("Iteration %d depth %d: %d active paths", iteration, depth, num_active)

        self._run_stage("gather", gather_paths, self._paths, self._image, num_paths)
        self._iterations += 1

        return to_display_buffer(self.get_image_numpy(), self._iterations)

    # =========================================================================
    # Results
    # =========================================================================

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the accumulated color sums as a (height, width, 3) array."""
        self._require_initialized()
        return image_to_numpy(self._image, self._scene.resolution)

    def get_average_numpy(self) -> npt.NDArray[np.float32]:
        """Get the accumulated colors divided by the iteration count.

        Returns zeros before the first iteration.
        """
        image = self.get_image_numpy()
        if self._iterations == 0:
            return np.zeros_like(image)
        return image / np.float32(self._iterations)

    def get_display_buffer(self) -> npt.NDArray[np.uint8]:
        """Get the current running average as an 8-bit image.

        Raises:
            SessionStateError: If no iteration has been rendered.
        """
        if self._iterations == 0:
            raise SessionStateError("No iterations have been rendered")
        return to_display_buffer(self.get_image_numpy(), self._iterations)

    def __repr__(self) -> str:
        state = "initialized" if self.initialized else "idle"
        return f"RenderSession({state}, iterations={self._iterations})"
