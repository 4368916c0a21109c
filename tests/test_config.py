import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tests._test_path import SRC  # noqa: F401

from imageshop.app.config import DEFAULT_BASE_URL, ServiceConfig, default_download_dir


class TestServiceConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = ServiceConfig.from_env({})
        self.assertEqual(cfg.base_url, DEFAULT_BASE_URL)
        self.assertIsNone(cfg.timeout)
        self.assertEqual(cfg.download_dir, default_download_dir())

    def test_environment(self):
        cfg = ServiceConfig.from_env({
            "IMAGESHOP_BASE_URL": "http://images.local:9000",
            "IMAGESHOP_TIMEOUT": "12.5",
            "IMAGESHOP_DOWNLOAD_DIR": "/tmp/exports",
        })
        self.assertEqual(cfg.base_url, "http://images.local:9000")
        self.assertEqual(cfg.timeout, 12.5)
        self.assertEqual(cfg.download_dir, Path("/tmp/exports"))

    def test_zero_timeout_means_none(self):
        self.assertIsNone(ServiceConfig.from_env({"IMAGESHOP_TIMEOUT": "0"}).timeout)

    def test_bad_timeout(self):
        with self.assertRaises(ValueError):
            ServiceConfig.from_env({"IMAGESHOP_TIMEOUT": "soon"})

    def test_overrides_win_over_environment(self):
        cfg = ServiceConfig.from_env({"IMAGESHOP_BASE_URL": "http://env:1", "IMAGESHOP_TIMEOUT": "5"})
        cfg = cfg.with_overrides(base_url="http://cli:2", timeout=0, download_dir="out")
        self.assertEqual(cfg.base_url, "http://cli:2")
        self.assertIsNone(cfg.timeout)
        self.assertEqual(cfg.download_dir, Path("out"))

    def test_none_overrides_leave_fields(self):
        cfg = ServiceConfig(base_url="http://keep", timeout=3.0)
        self.assertEqual(cfg.with_overrides(), cfg)


class TestDefaultDownloadDir(unittest.TestCase):
    def test_prefers_downloads_folder_in_home(self):
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "Downloads").mkdir()
            with patch.object(Path, "home", return_value=Path(d)):
                self.assertEqual(default_download_dir(), Path(d) / "Downloads")
                self.assertEqual(ServiceConfig().download_dir, Path(d) / "Downloads")

    def test_falls_back_to_current_dir(self):
        with tempfile.TemporaryDirectory() as d:
            with patch.object(Path, "home", return_value=Path(d)):
                self.assertEqual(default_download_dir(), Path("."))
