"""
Atomic file output for generated files.

Generated files are streamed into a temporary file in the target
directory, which replaces the target only once the whole file has been
written. An interrupted generation never leaves a truncated file behind.
"""

from __future__ import annotations

import contextlib
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO


class AtomicWriter:
    """Writes generated files atomically."""

    def __init__(self, overwrite: bool = False):
        """Initialize the atomic writer.

        Args:
            overwrite: Whether existing files may be replaced
        """
        self.overwrite = overwrite

    @contextlib.contextmanager
    def open(self, path: Path) -> Iterator[TextIO]:
        """Open a text sink that replaces path when the block succeeds.

        Raises:
            FileExistsError: If the file exists and overwriting is disabled
            OSError: If file operations fail
        """
        if path.exists() and not self.overwrite:
            raise FileExistsError(f"Output file already exists: {path}. Use --force to overwrite.")

        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                yield f
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    def write(self, path: Path, content: str) -> None:
        """Write content to file atomically."""
        with self.open(path) as f:
            f.write(content)
