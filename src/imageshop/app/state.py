from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from imageshop.core.models import Adjustment, Phase, Reference, SourceImage


@dataclass
class Session:
    """
    Mutable state for a single editing flow.

    The view reads this state; only WorkflowController writes it. Busy-ness is
    encoded in ``phase`` alone, so at most one remote operation can be in flight.
    """
    # Input
    source: Optional[SourceImage] = None
    uploaded_reference: Optional[Reference] = None

    # User params
    adjustment: Adjustment = field(default_factory=Adjustment)

    # Output (preview)
    processed_reference: Optional[Reference] = None

    phase: Phase = Phase.IDLE

    @property
    def source_selected(self) -> bool:
        return self.source is not None

    @property
    def busy(self) -> bool:
        return self.phase.is_busy

    @property
    def can_apply(self) -> bool:
        return not self.busy and self.uploaded_reference is not None

    @property
    def can_export(self) -> bool:
        return self.phase is Phase.PROCESSED and self.processed_reference is not None

    def accept_upload(self, reference: Reference) -> None:
        # New upload invalidates downstream
        self.uploaded_reference = reference
        self.processed_reference = None
        self.phase = Phase.READY

    def accept_transform(self, reference: Reference) -> None:
        self.processed_reference = reference
        self.phase = Phase.PROCESSED

    def reset(self) -> None:
        """Clear all session state (used by a Reset button)."""
        self.source = None
        self.uploaded_reference = None
        self.processed_reference = None
        self.adjustment = Adjustment()  # restore defaults
        self.phase = Phase.IDLE
