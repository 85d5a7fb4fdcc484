"""
Test cases for configuration loading and validation.
"""
import os
import tempfile
import unittest
import sys
from pathlib import Path

import yaml

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wintermagic.config import load_config

DEFAULT_CONFIG = Path(__file__).parent.parent / "config.default.yaml"


class TestLoadConfig(unittest.TestCase):
    """Test loading config.default.yaml and variants of it."""

    def setUp(self):
        with open(DEFAULT_CONFIG, 'r') as f:
            self.data = yaml.safe_load(f)

    def _load(self, data):
        fd, path = tempfile.mkstemp(suffix=".yaml")
        self.addCleanup(os.remove, path)
        with os.fdopen(fd, 'w') as f:
            yaml.safe_dump(data, f)
        return load_config(path)

    def test_defaults(self):
        cfg = load_config()
        self.assertEqual(cfg.gestures.open_threshold, 0.25)
        self.assertEqual(cfg.gestures.pinch_threshold, 0.05)
        self.assertEqual(cfg.controller.mode, "dwell")
        self.assertEqual(cfg.formation.particle_count, 300)
        self.assertIsNone(cfg.formation.seed)
        self.assertEqual(cfg.gallery.presentation_point, (0.0, 0.0, 4.0))
        self.assertEqual(cfg.mediapipe.max_num_hands, 1)
        self.assertEqual(cfg.logging.level, "INFO")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_override(self):
        self.data['controller']['mode'] = 'direct'
        self.data['formation']['seed'] = 7
        self.data['logging']['level'] = 'debug'
        cfg = self._load(self.data)
        self.assertEqual(cfg.controller.mode, "direct")
        self.assertEqual(cfg.formation.seed, 7)
        self.assertEqual(cfg.logging.level, "DEBUG")

    def test_invalid_mode(self):
        self.data['controller']['mode'] = 'sticky'
        with self.assertRaises(ValueError):
            self._load(self.data)

    def test_invalid_values(self):
        cases = [
            ('gestures', 'open_threshold', 0.0),
            ('gestures', 'pinch_threshold', 1.5),
            ('controller', 'min_dwell_s', -0.1),
            ('formation', 'particle_count', 0),
            ('formation', 'explode_inner_radius', 20.0),
            ('motion', 'image_rate', 0.0),
            ('render', 'fps', 0),
        ]
        for section, key, value in cases:
            with self.subTest(section=section, key=key):
                with open(DEFAULT_CONFIG, 'r') as f:
                    data = yaml.safe_load(f)
                data[section][key] = value
                with self.assertRaises(ValueError):
                    self._load(data)

    def test_missing_section(self):
        del self.data['gallery']
        with self.assertRaises(KeyError):
            self._load(self.data)


if __name__ == '__main__':
    unittest.main()
