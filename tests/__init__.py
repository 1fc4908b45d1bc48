"""Unit tests for askgpt.

This package contains test modules for all components of the askgpt plugin core.
Tests use pytest with asyncio support and mock HTTP calls via AsyncMock or a local aiohttp test server.
"""
