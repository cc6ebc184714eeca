"""
Eriri Page Pairing Tests
"""
import random
import unittest

from eriri.models.comic import ImageInfo
from eriri.models.reader import ViewMode
from eriri.services.pairing_service import PagePairingEngine, can_pair

def make_image(index, width, height):
    name = f"{index}.jpg"
    return ImageInfo(index=index, filename=name, path=f"/comics/{name}", url=name, thumbnail_url=name,
                     width=width, height=height)

def portrait(index=0):
    return make_image(index, 600, 900)

def landscape(index=0):
    return make_image(index, 1600, 900)

class TestCanPair(unittest.TestCase):
    """Side by side fit check"""

    def test_two_portraits_fit(self):
        """Both scale to 500 wide in a 750 high container"""
        self.assertTrue(can_pair(portrait(), portrait(), 1000, 750))

    def test_landscape_does_not_fit(self):
        self.assertFalse(can_pair(portrait(), landscape(), 1000, 750))

    def test_tolerance(self):
        self.assertTrue(can_pair(portrait(), portrait(), 999.5, 750))
        self.assertFalse(can_pair(portrait(), portrait(), 998, 750))
        self.assertFalse(can_pair(portrait(), portrait(), 999.5, 750, tolerance=0))

    def test_degenerate_inputs(self):
        self.assertFalse(can_pair(portrait(), None, 1000, 750))
        self.assertFalse(can_pair(portrait(), portrait(), 0, 750))
        self.assertFalse(can_pair(portrait(), portrait(), 1000, 0))
        self.assertFalse(can_pair(portrait(), make_image(1, 0, 0), 1000, 750))

class TestPagePairingEngine(unittest.TestCase):
    """Navigation in single and double mode"""

    def setUp(self):
        # pairs at 0 and 3 only
        self.images = [portrait(0), portrait(1), landscape(2), portrait(3), portrait(4)]
        self.engine = PagePairingEngine(self.images, ViewMode.DOUBLE, 1000, 750)

    def test_visible_indices(self):
        self.assertEqual(self.engine.visible_indices(0), [0, 1])
        self.assertEqual(self.engine.visible_indices(1), [1])
        self.assertEqual(self.engine.visible_indices(3), [3, 4])
        self.assertEqual(self.engine.visible_indices(4), [4])
        self.assertEqual(self.engine.visible_indices(9), [])

    def test_next(self):
        self.assertEqual(self.engine.next(0), 2)
        self.assertEqual(self.engine.next(2), 3)
        self.assertEqual(self.engine.next(3), 4)
        self.assertEqual(self.engine.next(4), 4)

    def test_prev_is_anchored_on_left_page(self):
        self.assertEqual(self.engine.prev(2), 0)
        self.assertEqual(self.engine.prev(3), 2)
        self.assertEqual(self.engine.prev(4), 3)
        self.assertEqual(self.engine.prev(1), 0)
        self.assertEqual(self.engine.prev(0), 0)

    def test_single_mode_steps_by_one(self):
        self.engine.set_layout(ViewMode.SINGLE, 1000, 750)

        self.assertEqual(self.engine.next(0), 1)
        self.assertEqual(self.engine.prev(2), 1)
        self.assertEqual(self.engine.visible_indices(0), [0])

    def test_jump_to_clamps(self):
        self.assertEqual(self.engine.jump_to(-3), 0)
        self.assertEqual(self.engine.jump_to(99), 4)
        self.assertEqual(self.engine.jump_to(2), 2)

    def test_empty_image_list(self):
        engine = PagePairingEngine([], ViewMode.DOUBLE, 1000, 750)

        self.assertEqual(engine.next(0), 0)
        self.assertEqual(engine.prev(0), 0)
        self.assertEqual(engine.jump_to(5), 0)
        self.assertEqual(engine.visible_indices(0), [])

    def test_next_then_prev_returns_to_start(self):
        """No drift from index 0 for arbitrary page sizes and containers"""
        rng = random.Random(7)
        for _ in range(300):
            count = rng.randint(1, 8)
            images = [make_image(i, rng.randint(0, 2000), rng.randint(0, 2000)) for i in range(count)]
            engine = PagePairingEngine(images, ViewMode.DOUBLE, rng.choice([0, 800, 1200, 2400]), rng.choice([0, 600, 900]))

            self.assertEqual(engine.prev(engine.next(0)), 0)
