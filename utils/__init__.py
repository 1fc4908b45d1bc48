"""Utility modules for askgpt.

This package provides logging set-up, file helpers and text utilities shared by the core.
"""

from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["FileUtils", "LoggerUtils", "StringUtils"]
