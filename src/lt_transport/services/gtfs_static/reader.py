"""GTFS ZIP reader with a scoped temporary archive artifact."""

from __future__ import annotations

import os
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from lt_transport.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger(__name__)

# Archive member -> cache entity name
GTFS_TABLES: dict[str, str] = {
    "routes.txt": "routes",
    "stops.txt": "stops",
    "trips.txt": "trips",
    "shapes.txt": "shapes",
    "calendar.txt": "calendar",
    "calendar_dates.txt": "calendar_dates",
    "agency.txt": "agencies",
    "stop_times.txt": "stop_times",
}


class GtfsArchiveReader:
    """Opens a GTFS archive written to a temporary file.

    The artifact exists only while the reader is open. ``close()`` (or leaving
    the ``with`` block, including on error or cancellation) closes the
    archive and deletes the file.
    """

    def __init__(self, path: Path, owns_file: bool = False) -> None:
        """Open the archive at ``path``.

        Raises:
            zipfile.BadZipFile: If the file is not a valid ZIP.
        """
        self.path = path
        self._owns_file = owns_file
        try:
            self._zip = zipfile.ZipFile(path)
        except Exception:
            self._remove_artifact()
            raise

    @classmethod
    def from_bytes(cls, data: bytes, prefix: str = "gtfs-") -> GtfsArchiveReader:
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=".zip")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
        return cls(Path(name), owns_file=True)

    def list_files(self) -> list[str]:
        """List all filenames in the archive."""
        return self._zip.namelist()

    def iter_entries(self) -> Iterator[tuple[str, str]]:
        """Yield ``(table_filename, text)`` for every known GTFS table present.

        Members inside a subdirectory are matched by their base name.
        """
        found: list[str] = []
        for info in self._zip.infolist():
            if info.is_dir():
                continue
            filename = PurePosixPath(info.filename).name
            if filename not in GTFS_TABLES:
                continue
            found.append(filename)
            with self._zip.open(info) as fh:
                yield filename, fh.read().decode("utf-8-sig", errors="replace")
        logger.debug("GTFS archive entries read", tables=sorted(found))

    def close(self) -> None:
        """Close the ZIP archive and remove the temporary artifact."""
        try:
            self._zip.close()
        finally:
            self._remove_artifact()

    def _remove_artifact(self) -> None:
        if not self._owns_file:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove GTFS temp archive", path=str(self.path), error=str(exc))

    def __enter__(self) -> GtfsArchiveReader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
