"""Batch dispatcher for Telegram Bot API text messages."""
__version__ = "0.1.0"
