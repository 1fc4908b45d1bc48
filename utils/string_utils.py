from __future__ import annotations

import unicodedata
from collections.abc import Mapping
from typing import Any, Final

from utils.logger_utils import LoggerUtils

__all__: list[str] = ["StringUtils"]

logger = LoggerUtils.get_logger(__name__)

ELLIPSIS: Final[str] = "..."
LOG_PREVIEW_LENGTH: Final[int] = 50
SELECTION_TEXT_KEYS: Final[tuple[str, ...]] = ("text", "content", "selected_text")


class StringUtils:
    """Utility class for text handling around selections, prompts and log output."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return ``value`` as a string, or an empty string for None.

        Args:
            value (str | None): The value to convert.

        Returns:
            str: The value as a string.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Collapse every run of whitespace (newlines included) into one space and trim both ends."""
        value = StringUtils.ensure_str(value)
        return " ".join(value.split())

    @staticmethod
    def normalize_text(text: str) -> str:
        """Normalize text using Unicode NFC normalization."""
        return unicodedata.normalize("NFC", text)

    @staticmethod
    def clean_selection(selection: Any) -> str:
        """Turn whatever the host passes as a text selection into the text sent to the model.

        Hosts hand over either a plain string or a selection record. For records the first
        non-empty of ``text``, ``content`` and ``selected_text`` is used.
        The result is NFC-normalized with whitespace collapsed, which also makes it stable
        for use in cache fingerprints.

        Args:
            selection (Any): The raw selection.

        Returns:
            str: The cleaned text, or an empty string if nothing usable was selected.
        """
        if selection is None:
            return ""

        if isinstance(selection, Mapping):
            logger.debug("Selection is a mapping with keys: %s", list(selection.keys()))
            selection = next((selection[k] for k in SELECTION_TEXT_KEYS if selection.get(k)), "")

        if not isinstance(selection, str):
            logger.warning("Selected text is not a string, got: %s", type(selection).__name__)
            return ""

        return StringUtils.compress_blanks(StringUtils.normalize_text(selection))

    @staticmethod
    def truncate(value: str, max_length: int) -> str:
        """Shorten ``value`` to ``max_length`` characters, appending an ellipsis when cut.

        Args:
            value (str): The string to shorten.
            max_length (int): Maximum number of characters kept from ``value``.

        Returns:
            str: The original string, or its first ``max_length`` characters followed by "...".
        """
        value = StringUtils.ensure_str(value)
        if len(value) <= max_length:
            return value
        return value[:max_length] + ELLIPSIS

    @staticmethod
    def preview(value: str | None, length: int = LOG_PREVIEW_LENGTH) -> str:
        """Short single-line excerpt for log messages."""
        return StringUtils.truncate(StringUtils.compress_blanks(StringUtils.ensure_str(value)), length)
