# optical_center/frontend/static_pipeline.py
# One-shot optical-center computation from camera calibration metadata.
from __future__ import annotations
import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Optional

from optical_center.config import CalibrationConfig
from optical_center.types import (
    CameraIntrinsics,
    ICameraCatalog,
    IViewMapper,
    PipelineStatus,
    Selection,
    ViewSize,
)
from optical_center.core.overlay import OpticalInfo, SnapshotSlot, assemble_optical_info
from optical_center.core.selection import select_intrinsics
from optical_center.core.view_mapping import make_mapper
from optical_center.frontend.layout import ViewSizeFuture

logger = logging.getLogger(__name__)


def compute_optical_info(intrinsics: CameraIntrinsics, view: ViewSize, mapper: IViewMapper) -> OpticalInfo:
    cx, cy = intrinsics.principal_point
    optical = mapper.sensor_to_view(
        [[cx, cy]], intrinsics.active_array, intrinsics.sensor_orientation, view
    )[0]
    return assemble_optical_info(view, (float(optical[0]), float(optical[1])), intrinsics.lens_pose)


class StaticIntrinsicsPipeline:
    """
    Waits for two things in either order: camera selection (run on a worker
    thread) and the first nonzero layout report. Then computes and publishes one
    OpticalInfo. Later layout reports only recompute if recompute_on_resize is set.
    """
    def __init__(
        self,
        catalog: ICameraCatalog,
        config: CalibrationConfig = CalibrationConfig(),
        slot: Optional[SnapshotSlot] = None,
        mapper: Optional[IViewMapper] = None,
    ):
        self.catalog = catalog
        self.config = config
        self.slot: SnapshotSlot = slot if slot is not None else SnapshotSlot()
        self.mapper = mapper if mapper is not None else make_mapper(config.view_mapper)
        self.layout = ViewSizeFuture()

        self.selection: Optional[Selection] = None
        self.status = PipelineStatus(kind="running", message="Initializing camera systems...")

        self._lock = threading.Lock()
        self._intrinsics: Optional[CameraIntrinsics] = None
        self._last_view: Optional[ViewSize] = None
        self._latest_view: Optional[ViewSize] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._task: Optional[Future] = None

    # ---------- lifecycle ----------

    def start(self) -> Future:
        if self._task is not None:
            return self._task
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="optical-center")
        self._task = self._executor.submit(self._run)
        return self._task

    def wait(self, timeout: Optional[float] = None) -> PipelineStatus:
        if self._task is None:
            raise RuntimeError("pipeline not started")
        return self._task.result(timeout=timeout)

    def stop(self) -> None:
        self.layout.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "StaticIntrinsicsPipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---------- platform callbacks ----------

    def on_layout(self, width: int, height: int) -> None:
        if not self.layout.done():
            self.layout.report(width, height)
            return
        if not self.config.recompute_on_resize:
            return

        view = ViewSize(int(width), int(height))
        if not view.is_valid:
            return
        with self._lock:
            self._latest_view = view
            intrinsics = self._intrinsics
            if intrinsics is None or view == self._last_view:
                return
            self._publish(intrinsics, view)

    # ---------- internals ----------

    def _set_status(self, kind: str, message: str) -> PipelineStatus:
        self.status = PipelineStatus(kind=kind, message=message)
        return self.status

    def _publish(self, intrinsics: CameraIntrinsics, view: ViewSize) -> OpticalInfo:
        info = compute_optical_info(intrinsics, view, self.mapper)
        self._last_view = view
        version = self.slot.publish(info)
        logger.debug(f"published optical info v{version} for view {view.width}x{view.height}")
        return info

    def _run(self) -> PipelineStatus:
        try:
            self._set_status("running", "Discovering optical center...")
            selection = select_intrinsics(self.catalog, self.config.default_sensor_orientation)
            self.selection = selection
            if selection.kind == "fatal":
                return self._set_status("fatal", f"Error: {selection.reason}")

            self._set_status("running", "Waiting for layout...")
            view = self.layout.result()

            with self._lock:
                # a resize reported while selection was running replaces the first size
                if self._latest_view is not None:
                    view = self._latest_view
                self._intrinsics = selection.intrinsics
                self._publish(selection.intrinsics, view)
            return self._set_status("done", "")
        except CancelledError:
            logger.info("optical-center pipeline cancelled before layout")
            return self._set_status("fatal", "Cancelled")
        except ValueError as e:
            logger.error(f"Calculation error: {e}")
            return self._set_status("fatal", f"Calculation Error: {e}")
        except Exception as e:
            logger.exception("Fatal error in optical-center pipeline")
            return self._set_status("fatal", f"Error: {e}")
