"""Utilities package initialization."""
from cryptosignals.utils.formatting import format_signal_message, format_signal_subject

__all__ = [
    "format_signal_message",
    "format_signal_subject"
]
