import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config.scoring import (  # noqa: E402
    clear_scoring_config_cache,
    get_scoring_config,
    get_scoring_value,
    load_scoring_config,
)
from app.services.validator import validate_resume  # noqa: E402


class ScoringConfigTests(unittest.TestCase):
    def tearDown(self):
        clear_scoring_config_cache()

    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("resume_validation.email.points"), 15)
        self.assertEqual(get_scoring_value("resume_validation.is_valid_above"), 50)

    def test_missing_paths_return_default(self):
        self.assertIsNone(get_scoring_value("resume_validation.unknown.points"))
        self.assertEqual(get_scoring_value("resume_validation.email.points.extra", 3), 3)
        self.assertEqual(get_scoring_value("", "fallback"), "fallback")

    def test_invalid_files_raise_runtime_error(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "scoring.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(RuntimeError):
                load_scoring_config(path)
            with self.assertRaises(RuntimeError):
                load_scoring_config(Path(tmp_dir) / "missing.yaml")

    def test_override_file_changes_points(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "scoring.yaml"
            path.write_text("resume_validation:\n  email:\n    points: 30\n", encoding="utf-8")
            with patch.dict(os.environ, {"SCORING_CONFIG_PATH": str(path)}):
                clear_scoring_config_cache()
                result = validate_resume({"email": "jane@example.com"})

        by_field = {check.field: check for check in result.fields}
        self.assertEqual(by_field["email"].confidence_points, 30)


if __name__ == "__main__":
    unittest.main()
