"""Terminal user interface."""

from .chat_screen import ChatScreen, render_bubble

__all__ = ["ChatScreen", "render_bubble"]
