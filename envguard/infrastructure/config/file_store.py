"""
Backing env file storage.

Reads and writes the ``KEY=value`` file, including creation and key-level
updates. Writes go through a temporary file that atomically replaces the
target so readers never observe a half-written file.
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from ...core.exceptions import FileStoreError
from .parser import format_env_line, iter_entries, parse_env_content

logger = logging.getLogger(__name__)


class FileStore:
    """Access to one env file on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser().resolve()

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> str:
        """
        Read the file contents.

        Returns:
            File text, or an empty string when the file does not exist

        Raises:
            FileStoreError: If the file exists but cannot be read
        """
        if not self.path.exists():
            return ""
        try:
            return self.path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read env file {self.path}: {e}")
            raise FileStoreError(f"Cannot read env file {self.path}: {e}", str(self.path)) from e

    def load(self) -> Dict[str, str]:
        """Read and parse the file into a ``{key: value}`` mapping."""
        return parse_env_content(self.read())

    def write(self, content: str) -> None:
        """
        Replace the file contents atomically.

        Raises:
            FileStoreError: If the file cannot be written
        """
        temp_file = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(content, encoding='utf-8')
            os.replace(temp_file, self.path)
            logger.debug(f"Env file written: {self.path}")
        except OSError as e:
            logger.error(f"Failed to write env file {self.path}: {e}")
            try:
                temp_file.unlink()
            except OSError:
                pass
            raise FileStoreError(f"Cannot write env file {self.path}: {e}", str(self.path)) from e

    def create(self, content: str = "") -> bool:
        """Create the file if it is missing; return whether it was created."""
        if self.path.exists():
            return False
        self.write(content)
        logger.info(f"Created env file: {self.path}")
        return True

    def update_key(self, key: str, value: str) -> None:
        """
        Set ``key`` to ``value`` in the file.

        An existing ``key=`` entry (including its continuation lines) is
        replaced in place; otherwise a new line is appended. Applying the
        same update twice leaves the file unchanged.

        Raises:
            ValueError: If ``value`` has no env file representation
        """
        content = self.read()
        lines = content.split("\n") if content else []
        new_line = format_env_line(key, value)

        match = next((entry for entry in iter_entries(content) if entry[0] == key), None)
        if match is not None:
            _, _, first, last = match
            lines[first:last + 1] = new_line.split("\n")
        else:
            if lines and lines[-1] == "":
                lines.pop()
            lines.append(new_line)
            lines.append("")

        self.write("\n".join(lines))
        logger.debug(f"Updated {key} in {self.path}")

    def append_missing(self, entries: Dict[str, str]) -> int:
        """Append ``entries`` whose keys are not yet present; return how many were added."""
        content = self.read()
        existing = parse_env_content(content)
        missing = {k: v for k, v in entries.items() if k not in existing}
        if not missing:
            return 0

        if content and not content.endswith("\n"):
            content += "\n"
        content += "".join(format_env_line(k, v) + "\n" for k, v in missing.items())
        self.write(content)
        return len(missing)

    def digest(self, content: Optional[str] = None) -> str:
        """SHA-256 of the given (or current) file contents."""
        if content is None:
            content = self.read()
        return hashlib.sha256(content.encode('utf-8')).hexdigest()
