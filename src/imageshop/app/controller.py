from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Union

from imageshop.app.notifications import LoggingNotifier, Notifier
from imageshop.app.state import Session
from imageshop.core.errors import BusyError, RemoteCallError, ValidationError
from imageshop.core.models import (
    Adjustment,
    ExportRequest,
    OutputFormat,
    Phase,
    Reference,
    SourceImage,
    TransformRequest,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Session], None]


class ImageService(Protocol):
    async def upload(self, source: SourceImage) -> Reference: ...

    async def transform(self, request: TransformRequest) -> Reference: ...

    async def export(self, request: ExportRequest) -> bytes: ...


class Saver(Protocol):
    def save(self, data: bytes, fmt: OutputFormat) -> Path: ...


class WorkflowController:
    """
    Orchestrates upload -> apply edits -> export against the processing service.

    Each command checks its preconditions, moves the session into a transient
    phase, awaits exactly one remote call and then settles the session into a
    stable phase. Commands must all run on one event loop: the phase is claimed
    before the first ``await``, which is what keeps them mutually exclusive.

    Precondition failures raise ValidationError / BusyError without touching the
    service. Remote failures are reported through the notifier and the command
    returns None; they never escape to the caller.
    """

    def __init__(
        self,
        service: ImageService,
        saver: Saver,
        notifier: Optional[Notifier] = None,
        session: Optional[Session] = None,
    ):
        self.service = service
        self.saver = saver
        self.notifier = notifier or LoggingNotifier()
        self._session = session or Session()
        self._listeners: List[Listener] = []

    @property
    def session(self) -> Session:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase

    # ---------- observers ----------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def _set_phase(self, phase: Phase) -> None:
        self._session.phase = phase
        self._changed()

    def _claim(self, command: str) -> None:
        if self._session.busy:
            raise BusyError(f"Cannot {command} while {self._session.phase.value}.")

    # ---------- parameters ----------

    def set_adjustment(self, adjustment: Adjustment) -> Adjustment:
        """Store new parameters (allowed in any phase); returns the clamped value."""
        clamped = adjustment.clamped()
        if clamped != self._session.adjustment:
            self._session.adjustment = clamped
            self._changed()
        return clamped

    def restore_defaults(self) -> Adjustment:
        return self.set_adjustment(Adjustment())

    def reset(self) -> None:
        self._claim("reset")
        self._session.reset()
        self._changed()
        logger.info("Session reset")

    # ---------- commands ----------

    async def upload(self, source: Union[SourceImage, str, Path]) -> Optional[Reference]:
        self._claim("upload")
        if not isinstance(source, SourceImage):
            source = SourceImage.from_path(source)

        previous = self._session.phase
        previous_source = self._session.source
        self._session.source = source
        self._set_phase(Phase.UPLOADING)
        logger.info("Uploading %s (%s, %d bytes)", source.filename, source.mime, len(source.data))

        try:
            reference = await self.service.upload(source)
        except RemoteCallError as e:
            self._session.source = previous_source
            self._fail(previous, "Failed to upload image.", e)
            return None
        except BaseException:
            self._session.source = previous_source
            self._set_phase(previous)
            raise

        self._session.accept_upload(reference)
        self._changed()
        logger.info("Upload complete: %s", reference)
        self.notifier.success("Image uploaded successfully!")
        return reference

    async def apply_edits(self, adjustment: Optional[Adjustment] = None) -> Optional[Reference]:
        self._claim("apply changes")
        reference = self._session.uploaded_reference
        if reference is None:
            raise ValidationError("Upload an image first.")
        if adjustment is not None:
            self.set_adjustment(adjustment)

        request = TransformRequest.build(reference, self._session.adjustment)
        self._set_phase(Phase.PROCESSING)
        logger.info(
            "Processing %s brightness=%.2f contrast=%.2f rotation=%d",
            reference, request.brightness, request.contrast, request.rotation_degrees,
        )

        try:
            result = await self.service.transform(request)
        except RemoteCallError as e:
            self._fail(Phase.READY, "Failed to process image.", e)
            return None
        except BaseException:
            self._set_phase(Phase.READY)
            raise

        self._session.accept_transform(result)
        self._changed()
        logger.info("Processing complete: %s", result)
        self.notifier.success("Image processed successfully!")
        return result

    async def export(self, fmt: Union[OutputFormat, str]) -> Optional[Path]:
        self._claim("download")
        output_format = OutputFormat.parse(fmt)
        reference = self._session.processed_reference
        if reference is None:
            raise ValidationError("No processed image available for download.")
        if self._session.phase is not Phase.PROCESSED:
            raise ValidationError("Apply changes before downloading.")

        self._set_phase(Phase.EXPORTING)
        logger.info("Downloading %s as %s", reference, output_format.value)

        try:
            data = await self.service.export(ExportRequest(reference, output_format))
            path = self.saver.save(data, output_format)
        except (RemoteCallError, OSError) as e:
            self._fail(Phase.PROCESSED, "Failed to download image.", e)
            return None
        except BaseException:
            self._set_phase(Phase.PROCESSED)
            raise

        self._set_phase(Phase.PROCESSED)
        logger.info("Saved %s", path)
        self.notifier.success("Image downloaded successfully!")
        return path

    def _fail(self, phase: Phase, message: str, error: Exception) -> None:
        logger.warning("%s %s", message, error)
        self._set_phase(phase)
        self.notifier.error(f"{message}\n\n{error}")
