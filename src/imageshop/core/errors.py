from __future__ import annotations

from typing import Optional


class ImageShopError(Exception):
    """Base class for every error raised by imageshop."""


class WorkflowError(ImageShopError):
    """A command was refused before any remote call was issued."""


class ValidationError(WorkflowError):
    """Missing precondition or unsupported input (no upload, no processed result, bad file type)."""


class BusyError(WorkflowError):
    """Another command is still waiting on the service."""


class RemoteCallError(ImageShopError):
    """Network failure or non-success response from the processing service."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status = status


class UnexpectedResponseError(RemoteCallError):
    """The call succeeded at the transport level but the body was not what we asked for."""
