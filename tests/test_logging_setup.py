import logging
import unittest

from tests._test_path import SRC  # noqa: F401

from imageshop.app.logging_setup import configure_logging
from imageshop.app.notifications import LoggingNotifier


class TestConfigureLogging(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))

    def tearDown(self):
        root = logging.getLogger()
        root.setLevel(self._saved[0])
        root.handlers[:] = self._saved[1]

    def test_idempotent(self):
        configure_logging(logging.INFO)
        configure_logging(logging.DEBUG)
        root = logging.getLogger()
        ours = [h for h in root.handlers if h.get_name() == "imageshop-console"]
        self.assertEqual(len(ours), 1)
        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(ours[0].level, logging.DEBUG)


class TestLoggingNotifier(unittest.TestCase):
    def test_levels(self):
        n = LoggingNotifier(logging.getLogger("imageshop.test.notify"))
        with self.assertLogs("imageshop.test.notify", level="INFO") as cm:
            n.success("uploaded")
            n.warning("careful")
            n.error("failed")
        self.assertEqual([r.levelname for r in cm.records], ["INFO", "WARNING", "ERROR"])
