"""Telegram bot, scrapper logic and HTTP clients for tracking GitHub and Stack Overflow links."""

__version__ = "0.1.0"