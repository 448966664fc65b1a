import unittest

import numpy as np

from neuroflow.constants import COLORS
from neuroflow.curves import CurvePath
from neuroflow.data import constant_sample_source, random_sample_source
from neuroflow.surface import PARTICLES, STATIC, Gradient, RenderSurface


class RenderSurfaceTests(unittest.TestCase):
    def setUp(self):
        self.surface = RenderSurface(width=400, height=200)

    def test_pixel_coordinates_with_y_down(self):
        self.assertEqual(self.surface.size(), (400.0, 200.0))
        self.assertEqual(self.surface.ax.get_xlim(), (0.0, 400.0))
        self.assertEqual(self.surface.ax.get_ylim(), (200.0, 0.0))

    def test_layers_are_independent(self):
        self.surface.circle((10, 10), 3)
        self.surface.line((0, 0), (10, 10))
        dot = self.surface.circle((20, 20), 2, layer=PARTICLES)
        self.assertEqual(self.surface.count(STATIC), 2)
        self.surface.clear(STATIC)
        self.assertEqual(self.surface.count(STATIC), 0)
        self.assertEqual(self.surface.artists(PARTICLES), [dot])
        self.surface.remove(dot)
        self.assertEqual(self.surface.count(PARTICLES), 0)
        self.assertEqual(len(self.surface.ax.patches), 0)

    def test_resources(self):
        self.surface.define_glow("glow-err", COLORS["error"], 3)
        self.surface.circle((10, 10), 3, glow="glow-err")
        with self.assertRaises(KeyError):
            self.surface.circle((10, 10), 3, glow="missing")
        self.surface.clear()
        with self.assertRaises(KeyError):
            self.surface.resource("glow-err")

    def test_gradient_fill_and_arrow_curve(self):
        self.surface.define_gradient("g", [(0.0, "#ffffff", 0.2), (1.0, "#000000", 1.0)], kind="radial")
        self.surface.define_arrow("arr", COLORS["prediction"], 5)
        self.surface.rect((10, 10), 50, 40, rounding=6, gradient="g")
        self.surface.curve(CurvePath([(10, 100), (100, 80), (200, 120)]), arrow="arr")
        # rect + clipped image + curve
        self.assertEqual(self.surface.count(STATIC), 3)
        self.surface.draw()

    def test_resize_notifies_listeners(self):
        seen = []
        cid = self.surface.on_resize(lambda event: seen.append(self.surface.size()))
        self.surface.set_size(300, 150)
        self.assertEqual(seen, [(300.0, 150.0)])
        self.surface.disconnect(cid)
        self.surface.set_size(200, 100)
        self.assertEqual(len(seen), 1)


class GradientTests(unittest.TestCase):
    def test_linear_runs_top_to_bottom(self):
        img = Gradient(((0.0, "#000000", 0.0), (1.0, "#ffffff", 1.0))).image(size=8)
        self.assertEqual(img.shape, (8, 8, 4))
        np.testing.assert_allclose(img[0, :, 3], 0.0)
        np.testing.assert_allclose(img[-1, :, 3], 1.0)

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            Gradient(((0.0, "#000000", 1.0),), kind="conic").image()


class SampleSourceTests(unittest.TestCase):
    def test_random_source_shapes_and_ranges(self):
        data = random_sample_source(seed=0, error_scale=0.4)([3, 4, 2])
        self.assertEqual([len(a) for a in data.activations], [3, 4, 2])
        flat_err = [e for layer in data.errors for e in layer]
        self.assertTrue(all(0.0 <= e < 0.4 for e in flat_err))

    def test_seeded_sources_repeat(self):
        a = random_sample_source(seed=9)([3, 3])
        b = random_sample_source(seed=9)([3, 3])
        self.assertEqual(a, b)

    def test_constant_source(self):
        data = constant_sample_source(0.25, 0.05)([2, 1])
        self.assertEqual(data.activations, [[0.25, 0.25], [0.25]])
        self.assertEqual(data.errors, [[0.05, 0.05], [0.05]])


if __name__ == "__main__":
    unittest.main()
