# optical_center/frontend/live_pipeline.py
# Per-frame factory-tilt measurement driven by a tracking session.
from __future__ import annotations
import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from optical_center.config import CalibrationConfig
from optical_center.types import (
    CameraIntrinsics,
    ITrackingSession,
    IViewMapper,
    PipelineStatus,
    PoseUnavailableError,
    SessionError,
    TimestampError,
    TrackedPoses,
    ViewSize,
)
from optical_center.core.overlay import SlamCalibrationInfo, SnapshotSlot
from optical_center.core.tilt import FrameResult, compute_frame
from optical_center.core.view_mapping import make_mapper

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], ITrackingSession]


@contextmanager
def tracking_session(factory: SessionFactory) -> Iterator[ITrackingSession]:
    """Create + resume a session; always close whatever was created."""
    session: Optional[ITrackingSession] = None
    try:
        try:
            session = factory()
            session.resume()
        except SessionError:
            raise
        except (OSError, RuntimeError, ValueError) as e:
            raise SessionError(f"Failed to start tracking session: {e}") from e
        yield session
    finally:
        if session is not None:
            session.close()


def run_at_cadence(
    on_frame: Callable[[], object],
    period_s: float = 0.0,
    max_frames: Optional[int] = None,
    should_continue: Callable[[], bool] = lambda: True,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Stand-in for the display-refresh callback: call on_frame at a fixed period."""
    n = 0
    while should_continue() and (max_frames is None or n < max_frames):
        t0 = time.monotonic()
        on_frame()
        n += 1
        if period_s > 0:
            remaining = period_s - (time.monotonic() - t0)
            if remaining > 0:
                sleep(remaining)
    return n


class LivePosePipeline:
    def __init__(
        self,
        intrinsics: CameraIntrinsics,
        config: CalibrationConfig = CalibrationConfig(),
        view: Optional[ViewSize] = None,
        slot: Optional[SnapshotSlot] = None,
        mapper: Optional[IViewMapper] = None,
    ):
        self.intrinsics = intrinsics
        self.config = config
        self.slot: SnapshotSlot = slot if slot is not None else SnapshotSlot()
        self.mapper = mapper if mapper is not None else make_mapper(config.view_mapper)
        self.status = PipelineStatus(kind="running", message="Initializing tracking session...")

        self._view = view if view is not None else ViewSize(0, 0)
        self.frames_published = 0
        self.frames_dropped = 0

    @property
    def view(self) -> ViewSize:
        return self._view

    def on_surface_changed(self, width: int, height: int) -> None:
        # replaced wholesale so a frame never sees a half-updated size
        self._view = ViewSize(int(width), int(height))

    def compute(self, poses: TrackedPoses) -> FrameResult:
        return compute_frame(
            poses.device,
            poses.camera,
            poses.tracking_state,
            self.intrinsics,
            self._view,
            self.mapper,
            threshold_deg=self.config.tilt_threshold_deg,
            t_ns=poses.t_ns,
        )

    def on_draw_frame(self, session: ITrackingSession) -> Optional[SlamCalibrationInfo]:
        """One compute-and-publish cycle. A failed frame is dropped; only SessionError propagates."""
        try:
            poses = session.get_current_tracked_poses()
            result = self.compute(poses)
        except SessionError:
            raise
        except (PoseUnavailableError, TimestampError) as e:
            self.frames_dropped += 1
            logger.debug(f"frame dropped: {e}")
            return None
        except Exception as e:
            self.frames_dropped += 1
            logger.debug(f"frame dropped: {type(e).__name__}: {e}")
            return None

        if result.kind == "error":
            self.frames_dropped += 1
            logger.debug(f"frame dropped: {result.reason}")
            return None

        self.slot.publish(result.snapshot)
        self.frames_published += 1
        return result.snapshot

    def run(
        self,
        session_factory: SessionFactory,
        period_s: float = 0.0,
        max_frames: Optional[int] = None,
    ) -> PipelineStatus:
        try:
            with tracking_session(session_factory) as session:
                self.status = PipelineStatus(kind="running", message="Tracking...")
                n = run_at_cadence(
                    lambda: self.on_draw_frame(session),
                    period_s=period_s,
                    max_frames=max_frames,
                    should_continue=session.is_running,
                )
        except SessionError as e:
            logger.error(str(e))
            self.status = PipelineStatus(kind="fatal", message=f"Session error: {e}")
            return self.status

        logger.info(f"{n} frames, {self.frames_published} published, {self.frames_dropped} dropped")
        self.status = PipelineStatus(kind="done", message="")
        return self.status
