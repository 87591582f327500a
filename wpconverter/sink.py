"""
File sink for rendered documents and localized assets.

All paths are relative to an output root chosen by the caller.
"""

from pathlib import Path
from typing import Union

from .errors import AssetWriteError


class FileSink:
    """Writes files below a single output root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path(self, relative: str) -> Path:
        return self.root / relative

    def exists(self, relative: str) -> bool:
        return self.path(relative).exists()

    def make_dir(self, relative: str) -> Path:
        """Create a directory, failing if it is already there."""
        target = self.path(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.mkdir()
        return target

    def write(self, relative: str, data: Union[bytes, str]) -> Path:
        """Write bytes or UTF-8 text, creating parent directories."""
        target = self.path(relative)
        if isinstance(data, str):
            data = data.encode('utf-8')
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise AssetWriteError(f"Failed to write {target}: {e}") from e
        return target
