"""Core components for askgpt.

This package contains the reader assistant facade, shared data management, the response
cache, the query engine, conversation state and the settings store.
"""

from core.assistant import ReaderAssistant
from core.shared_data import SharedData
from core.version import VERSION

__all__: list[str] = [
    "VERSION",
    "ReaderAssistant",
    "SharedData",
]
