from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from imageshop.core.models import OutputFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadSaver:
    """
    Writes exported bytes to ``<directory>/processed.<format>``, overwriting any
    previous export of the same format.
    """
    directory: Path

    def target_for(self, fmt: OutputFormat) -> Path:
        return self.directory / fmt.filename

    def save(self, data: bytes, fmt: OutputFormat) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.target_for(fmt)
        tmp = target.with_name(target.name + ".part")
        try:
            tmp.write_bytes(data)
            tmp.replace(target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return target
