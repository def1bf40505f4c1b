# ============================================================
#                       PLY FILE LOADER
# ============================================================
import logging
from pathlib import Path

from plyloader.errors import LoadError, MagicMismatchError, PlyError
from plyloader.header import parse_header
from plyloader.mesh import process
from plyloader.parser import is_magic, parse_document, split_header


class PlyLoader:
    """Retrieves PLY bytes from disk and hands them to the parser."""

    # ---------------- FETCH ----------------
    def fetch(self, filename):
        try:
            return Path(filename).read_bytes()
        except OSError as e:
            logging.error(f"File not found or unreadable: {filename}: {e}")
            raise LoadError(f"File not found: {filename}") from e

    # ---------------- HEADER ONLY ----------------
    def read_header(self, filename):
        data = self.fetch(filename)
        if not is_magic(data):
            raise MagicMismatchError(f"{filename} is not a valid PLY file")
        header_text, _ = split_header(data)
        return parse_header(header_text)

    # ---------------- READ ----------------
    def read(self, filename):
        return self.read_document(filename)[1]

    def read_document(self, filename):
        """Return (header, mesh) for one file."""
        data = self.fetch(filename)
        try:
            return parse_document(data)
        except PlyError as e:
            logging.error(f"Error reading PLY data from {filename}: {e}")
            raise

    # ---------------- LOAD WITH CALLBACKS ----------------
    def load(self, filename, on_load, on_progress=None, on_error=None):
        """
        Read, parse and process ``filename``, then call ``on_load(buffers)``.

        ``on_progress(loaded, total)`` fires once the bytes are in memory.
        When ``on_error`` is given every failure is routed to it instead of
        being raised.
        """
        try:
            data = self.fetch(filename)
            if on_progress is not None:
                on_progress(len(data), len(data))
            buffers = process(parse_document(data)[1])
        except (LoadError, PlyError) as e:
            if on_error is None:
                raise
            logging.warning(f"Failed loading {filename}: {e}")
            on_error(e)
            return None

        on_load(buffers)
        return buffers
