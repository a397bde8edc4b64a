"""Data model and asyncio websocket client for a topic-based message queue."""

__version__ = "0.1.0"