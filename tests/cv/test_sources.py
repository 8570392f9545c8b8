"""
Unit tests for the in-memory frame source, pinhole depth mapper and marker surface
"""
import unittest
from unittest.mock import Mock
import sys
import os

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.event_broker import EventBroker
from cv.events import SensorEvents
from cv.frames import ColorFrame, DepthFrame
from cv.sources import PinholeDepthMapper, StaticFrameSource, StaticMarkerSurface
from geometry.types import Point2D


class _BrokerTestCase(unittest.TestCase):

    def setUp(self):
        self.broker = EventBroker.get_default()
        self._subscriptions = []

    def subscribe(self, event_type):
        callback = Mock()
        self._subscriptions.append((event_type, self.broker.subscribe(event_type, callback)))
        return callback

    def tearDown(self):
        for event_type, sub_id in self._subscriptions:
            self.broker.unsubscribe(event_type, subscription_id=sub_id)


class TestStaticFrameSource(_BrokerTestCase):

    def test_empty_source(self):
        source = StaticFrameSource()
        self.assertIsNone(source.try_get_color_frame())
        self.assertIsNone(source.try_get_depth_frame())

    def test_set_frames_emits_updates(self):
        color_updated = self.subscribe(SensorEvents.COLOR_FRAME_UPDATED)
        depth_updated = self.subscribe(SensorEvents.DEPTH_FRAME_UPDATED)
        source = StaticFrameSource()
        color = ColorFrame.from_array(np.zeros((4, 6, 3), dtype=np.uint8))
        depth = DepthFrame.from_array(np.zeros((4, 6), dtype=np.uint16))

        source.set_color_frame(color)
        source.set_depth_frame(depth)

        self.assertIs(source.try_get_color_frame(), color)
        self.assertIs(source.try_get_depth_frame(), depth)
        color_updated.assert_called_once_with(6, 4)
        depth_updated.assert_called_once_with(6, 4)


class TestPinholeDepthMapper(_BrokerTestCase):

    def setUp(self):
        super().setUp()
        depth = np.full((48, 64), 2000, dtype=np.uint16)
        self.source = StaticFrameSource(depth=DepthFrame.from_array(depth))
        self.mapper = PinholeDepthMapper(self.source, fx=500.0, fy=500.0, cx=32.0, cy=24.0)

    def test_back_projection(self):
        point = self.mapper.try_map_pixel_to_physical(42, 24)
        self.assertAlmostEqual(point.z, 2.0)
        self.assertAlmostEqual(point.x, 10 * 2.0 / 500.0)
        self.assertAlmostEqual(point.y, 0.0)

    def test_project_inverts_back_projection(self):
        point = self.mapper.try_map_pixel_to_physical(10, 40)
        pixel = self.mapper.project(point)
        self.assertAlmostEqual(pixel.x, 10.0)
        self.assertAlmostEqual(pixel.y, 40.0)
        self.assertIsNone(self.mapper.project((0.0, 0.0, 0.0)))

    def test_median_ignores_dropouts(self):
        depth = np.full((48, 64), 1000, dtype=np.uint16)
        depth[20, 20] = 0
        depth[21, 20] = 9000
        self.source.set_depth_frame(DepthFrame.from_array(depth))

        point = self.mapper.try_map_pixel_to_physical(20, 20)

        self.assertAlmostEqual(point.z, 1.0)

    def test_no_valid_depth_fails_with_event(self):
        failed = self.subscribe(SensorEvents.MAPPING_FAILED)
        self.source.set_depth_frame(DepthFrame.from_array(np.zeros((48, 64), dtype=np.uint16)))

        self.assertIsNone(self.mapper.try_map_pixel_to_physical(5, 5))
        failed.assert_called_once_with((5, 5), "no valid depth sample")

    def test_no_depth_frame(self):
        mapper = PinholeDepthMapper(StaticFrameSource(), 500.0, 500.0, 32.0, 24.0)
        self.assertIsNone(mapper.try_map_pixel_to_physical(1, 1))

    def test_point_cloud_matches_pixel_mapping(self):
        depth = np.full((48, 64), 2000, dtype=np.uint16)
        depth[5, 7] = 0
        self.source.set_depth_frame(DepthFrame.from_array(depth))

        cloud = self.mapper.try_get_point_cloud()

        self.assertEqual(cloud.shape, (48, 64, 3))
        expected = self.mapper.try_map_pixel_to_physical(42, 10)
        np.testing.assert_allclose(cloud[10, 42], expected)
        self.assertTrue(np.all(np.isnan(cloud[5, 7])))

    def test_point_cloud_without_depth_frame(self):
        mapper = PinholeDepthMapper(StaticFrameSource(), 500.0, 500.0, 32.0, 24.0)
        self.assertIsNone(mapper.try_get_point_cloud())

    def test_rejects_bad_focal_length(self):
        with self.assertRaises(ValueError):
            PinholeDepthMapper(self.source, fx=0.0, fy=500.0, cx=0.0, cy=0.0)


class TestStaticMarkerSurface(unittest.TestCase):

    def test_centers_by_index(self):
        surface = StaticMarkerSurface([(100, 100), (1820, 100.5)])
        self.assertEqual(surface.marker_count(), 2)
        self.assertEqual(surface.get_rendered_marker_center(1), Point2D(1820.0, 100.5))
        with self.assertRaises(IndexError):
            surface.get_rendered_marker_center(2)
        with self.assertRaises(IndexError):
            surface.get_rendered_marker_center(-1)


if __name__ == '__main__':
    unittest.main()
