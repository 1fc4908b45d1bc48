from __future__ import annotations

import os
import tempfile
from pathlib import Path

__all__: list[str] = [
    "FileDecodeError",
    "FileUtils",
    "FileUtilsError",
    "InvalidFileTypeError",
]


class FileUtils:
    """Path resolution and whole-file writes for the plugin's data files."""

    @staticmethod
    def resolve_path(path: str | Path, *, base_dir: str | Path | None = None, strict: bool = False) -> Path:
        """Convert a configured path to an absolute path.

        Expands environment variables and ``~``. Relative paths are anchored at ``base_dir``
        when given, otherwise at the current working directory.

        Args:
            path (str | Path): The configured path (e.g., "~/koreader/$PROFILE/gpt_cache.json").
            base_dir (str | Path | None): Directory used to anchor relative paths.
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: The absolute path.
        """
        expanded: str = os.path.expandvars(str(path))
        user_expanded: Path = Path(expanded).expanduser()

        if user_expanded.is_absolute():
            return user_expanded.resolve(strict=strict)

        anchor: Path = Path.cwd() if base_dir is None or str(base_dir).strip() == "" else Path(base_dir).expanduser()
        return (anchor / user_expanded).resolve(strict=strict)

    @staticmethod
    def read_text(file_path: Path) -> str | None:
        """Read a UTF-8 text file.

        Returns:
            str | None: The file content, or None if the file does not exist.

        Raises:
            InvalidFileTypeError: If the path points to a directory.
            FileDecodeError: If the file is not valid UTF-8.
            OSError: If the file exists but cannot be read.
        """
        if not file_path.exists():
            return None
        if file_path.is_dir():
            msg = f"Invalid file type (directory): {file_path}"
            raise InvalidFileTypeError(msg)
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as err:
            msg = f"File is not valid UTF-8: {file_path}: {err}"
            raise FileDecodeError(msg) from err

    @staticmethod
    def write_text_atomic(file_path: Path, content: str) -> None:
        """Replace the whole file with ``content``.

        The data is written to a temporary file in the same directory and moved over the
        target with ``os.replace``, so readers never observe a half-written file.

        Raises:
            OSError: If the directory cannot be created or the file cannot be written.
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, file_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class FileUtilsError(Exception):
    """Custom exception for FileUtils-related errors."""


class InvalidFileTypeError(FileUtilsError):
    """The path exists but is not a regular file."""


class FileDecodeError(FileUtilsError):
    """The file content is not valid UTF-8."""
