"""Document persistence with timestamped backups."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .exceptions import WriteFailure

logger = logging.getLogger("rereadme.writer")


def backup_timestamp(now: datetime) -> str:
    """ISO 8601 UTC with millisecond precision, ':' and '.' replaced by '-'.

    ``2025-01-02T03:04:05.678Z`` becomes ``2025-01-02T03-04-05-678Z``.
    """
    now = now.astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def backup_path_for(output_path: Path, now: datetime) -> Path:
    output_path = Path(output_path)
    return output_path.with_name(f"{output_path.name}.backup-{backup_timestamp(now)}")


class DocumentWriter:
    """Writes the document, backing up any previous version first.

    Args:
        output_path: File to overwrite.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        output_path: Path,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.output_path = Path(output_path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def backup(self) -> Optional[Path]:
        """Copy the existing output aside. Failures are logged, never raised."""
        try:
            if not self.output_path.exists():
                return None
            target = backup_path_for(self.output_path, self._clock())
            shutil.copy2(self.output_path, target)
        except OSError as e:
            logger.warning("[Writer] Could not backup %s: %s", self.output_path, e)
            return None
        print(f"[Writer] Backed up existing {self.output_path} -> {target.name}")
        return target

    def write(self, content: str) -> Optional[Path]:
        """Replace the document with *content*, normalised to one trailing newline.

        Returns the backup path when a backup was made.

        Raises:
            WriteFailure: the output file could not be written.
        """
        backup = self.backup()
        try:
            self.output_path.write_text(content.strip() + "\n", encoding="utf-8")
        except OSError as e:
            raise WriteFailure(f"Could not write {self.output_path}: {e}") from e
        print(f"[Writer] {self.output_path} updated")
        return backup
