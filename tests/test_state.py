import unittest

from tests._test_path import SRC  # noqa: F401

from imageshop.app.state import Session
from imageshop.core.models import Adjustment, Phase, SourceImage


class TestSession(unittest.TestCase):
    def test_defaults(self):
        s = Session()
        self.assertFalse(s.source_selected)
        self.assertIsNone(s.uploaded_reference)
        self.assertIsNone(s.processed_reference)
        self.assertEqual(s.adjustment, Adjustment())
        self.assertIs(s.phase, Phase.IDLE)
        self.assertFalse(s.can_apply)
        self.assertFalse(s.can_export)

    def test_accept_upload_invalidates_processed_reference(self):
        s = Session()
        s.accept_upload("R1")
        s.accept_transform("R2")
        self.assertTrue(s.can_export)

        s.accept_upload("R3")

        self.assertEqual(s.uploaded_reference, "R3")
        self.assertIsNone(s.processed_reference)
        self.assertIs(s.phase, Phase.READY)

    def test_busy_blocks_apply(self):
        s = Session(uploaded_reference="R1", phase=Phase.UPLOADING)
        self.assertTrue(s.busy)
        self.assertFalse(s.can_apply)

    def test_reset_clears_fields_and_restores_defaults(self):
        s = Session()
        s.source = SourceImage("a.png", b"x", "image/png")
        s.uploaded_reference = "R1"
        s.processed_reference = "R2"
        s.adjustment = Adjustment(1.5, 0.5, 180)
        s.phase = Phase.PROCESSED

        s.reset()

        self.assertIsNone(s.source)
        self.assertIsNone(s.uploaded_reference)
        self.assertIsNone(s.processed_reference)
        self.assertEqual(s.adjustment, Adjustment())
        self.assertIs(s.phase, Phase.IDLE)
