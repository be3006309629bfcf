"""
Tests for the one-shot optical-center pipeline: selection and layout arriving
in either order, one publish per run, and terminal statuses.
"""

import threading

import pytest

from optical_center.config import CalibrationConfig
from optical_center.core.overlay import OpticalInfo, SnapshotSlot
from optical_center.frontend.layout import ViewSizeFuture
from optical_center.frontend.static_pipeline import StaticIntrinsicsPipeline

from conftest import FakeCatalog


class TestViewSizeFuture:

    def test_first_nonzero_report_wins(self):
        f = ViewSizeFuture()
        assert not f.report(0, 0)
        assert not f.report(1080, 0)
        assert not f.done()
        assert f.report(1080, 2280)
        assert not f.report(1440, 3120)
        assert f.result(timeout=1.0).width == 1080
        assert f.peek().height == 2280

    def test_cancel(self):
        f = ViewSizeFuture()
        assert f.cancel()
        assert f.cancelled()
        assert f.peek() is None
        assert not f.report(100, 100)

    def test_done_callback(self):
        f = ViewSizeFuture()
        seen = []
        f.add_done_callback(lambda fut: seen.append(fut.peek()))
        f.report(10, 20)
        assert seen[0].width == 10


class TestStaticPipeline:

    def test_publishes_once_after_layout(self, catalog_factory):
        cat = catalog_factory()
        slot = SnapshotSlot()
        with StaticIntrinsicsPipeline(cat, slot=slot) as p:
            assert cat.enumerated.wait(timeout=5.0)
            p.on_layout(1080, 2280)
            status = p.wait(timeout=5.0)

            assert status.kind == "done"
            assert slot.version == 1
            info = slot.latest()
            assert isinstance(info, OpticalInfo)
            assert (info.screen_cx, info.screen_cy) == (540.0, 1140.0)
            assert info.optical_cx == pytest.approx(524.8)
            assert info.optical_cy == pytest.approx(1147.6)
            assert info.delta_x == pytest.approx(-15.2)
            assert info.delta_y == pytest.approx(7.6)

            p.on_layout(1080, 2280)
            p.on_layout(1440, 3120)
            assert slot.version == 1
        assert cat.enumerate_calls == 1

    def test_layout_before_enumeration(self, catalog_factory):
        gate = threading.Event()
        cat = catalog_factory(gate=gate)
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(cat, slot=slot)
        p.start()
        p.on_layout(0, 0)
        p.on_layout(1080, 2280)
        assert slot.version == 0
        gate.set()

        assert p.wait(timeout=5.0).kind == "done"
        assert slot.version == 1
        assert slot.latest().optical_cx == pytest.approx(524.8)
        p.stop()

    def test_resize_during_selection_uses_newest_size(self, catalog_factory):
        gate = threading.Event()
        cat = catalog_factory(gate=gate)
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(cat, CalibrationConfig(recompute_on_resize=True), slot=slot)
        p.start()
        p.on_layout(1080, 2280)
        p.on_layout(1440, 3120)
        gate.set()

        assert p.wait(timeout=5.0).kind == "done"
        assert slot.version == 1
        assert slot.latest().screen_cx == 720.0
        p.stop()

    def test_recompute_on_resize(self, catalog_factory):
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(catalog_factory(), CalibrationConfig(recompute_on_resize=True), slot=slot)
        p.start()
        p.on_layout(1080, 2280)
        p.wait(timeout=5.0)
        assert slot.version == 1

        p.on_layout(1080, 2280)     # same size, nothing to do
        assert slot.version == 1
        p.on_layout(0, 0)           # not laid out, ignored
        assert slot.version == 1
        p.on_layout(2280, 1080)
        assert slot.version == 2
        assert slot.latest().screen_cx == 1140.0
        p.stop()

    def test_no_back_camera_is_fatal(self):
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(FakeCatalog([], {}), slot=slot)
        p.start()
        status = p.wait(timeout=5.0)
        assert status.kind == "fatal"
        assert status.is_terminal
        assert status.message.startswith("Error:")
        assert p.selection.kind == "fatal"
        assert slot.version == 0
        p.stop()

    def test_catalog_failure_is_fatal(self):
        class BrokenCatalog:
            def enumerate_back_facing_cameras(self):
                raise RuntimeError("camera service died")

            def get_characteristics(self, camera_id):
                raise AssertionError("unreachable")

        p = StaticIntrinsicsPipeline(BrokenCatalog())
        p.start()
        status = p.wait(timeout=5.0)
        assert status.kind == "fatal"
        assert "camera service died" in status.message
        p.stop()

    def test_stop_before_layout_cancels(self, catalog_factory):
        cat = catalog_factory()
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(cat, slot=slot)
        p.start()
        assert cat.enumerated.wait(timeout=5.0)
        p.stop()

        status = p.wait(timeout=5.0)
        assert status.kind == "fatal"
        assert status.message == "Cancelled"
        assert slot.version == 0

    def test_affine_mapper_from_config(self, catalog_factory):
        slot = SnapshotSlot()
        p = StaticIntrinsicsPipeline(catalog_factory(), CalibrationConfig(view_mapper="affine"), slot=slot)
        p.start()
        p.on_layout(1080, 2280)
        p.wait(timeout=5.0)
        assert slot.latest().optical_cx == pytest.approx(524.8, abs=1e-6)
        p.stop()

    def test_wait_before_start(self, catalog_factory):
        with pytest.raises(RuntimeError):
            StaticIntrinsicsPipeline(catalog_factory()).wait(timeout=0.1)
