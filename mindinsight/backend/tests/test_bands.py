import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from mindinsight.backend.app.bands import InterpretationBand, parse_bands, resolve_band


class BandResolverTests(unittest.TestCase):
    def setUp(self):
        self.bands = parse_bands([
            {"max": 10, "label": "Low"},
            {"max": 20, "label": "Moderate"},
            {"max": 999, "label": "High"},
        ])

    def test_first_band_at_or_above_value(self):
        self.assertEqual(resolve_band(self.bands, 5), "Low")
        self.assertEqual(resolve_band(self.bands, 10), "Low")
        self.assertEqual(resolve_band(self.bands, 15), "Moderate")
        self.assertEqual(resolve_band(self.bands, 50), "High")

    def test_value_above_all_thresholds_uses_last_band(self):
        bands = [InterpretationBand(4, "Minimal"), InterpretationBand(9, "Mild")]
        self.assertEqual(resolve_band(bands, 27), "Mild")

    def test_empty_bands(self):
        self.assertIsNone(resolve_band([], 3))
        self.assertIsNone(resolve_band(None, 3))

    def test_parse_skips_malformed_bands(self):
        bands = parse_bands([{"max": "7", "label": "Low"}, {"label": "no max"}, "junk"])
        self.assertEqual(bands, [InterpretationBand(7.0, "Low")])

    def test_parse_scalar_reads_as_no_bands(self):
        self.assertEqual(parse_bands(1), [])
        self.assertEqual(parse_bands("Low"), [])


if __name__ == "__main__":
    unittest.main()
