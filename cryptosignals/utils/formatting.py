"""Notification message formatting utilities."""
from typing import Any, Optional


def _format_price(price: Any) -> str:
    try:
        return f"${float(price):,.2f}"
    except (TypeError, ValueError):
        return "N/A"


def format_signal_subject(signal: Any) -> str:
    """One-line subject for a signal notification."""
    return f"{signal.signal_type.upper()} Signal: {signal.ticker}"


def format_signal_message(signal: Any, app_name: Optional[str] = "CryptoStrategy Pro") -> str:
    """
    Format a signal into a plain-text notification body.

    Args:
        signal: Signal object (ticker, signal_type, price, timeframe, note, timestamp)
        app_name: Footer signature, omitted when None

    Returns:
        Formatted message string
    """
    timestamp = signal.timestamp.strftime('%Y-%m-%d %H:%M UTC') if signal.timestamp else "N/A"

    lines = [
        f"🚨 {signal.signal_type.upper()} Signal",
        "",
        f"📊 {signal.ticker}",
        f"💰 Price: {_format_price(signal.price)}",
        f"⏰ Timeframe: {signal.timeframe or 'N/A'}",
        f"📝 Notes: {signal.note or 'N/A'}",
        "",
        f"🕐 {timestamp}",
    ]

    if app_name:
        lines.extend(["", f"- {app_name}"])

    return "\n".join(lines)
