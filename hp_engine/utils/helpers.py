"""
Common utility functions and helpers.
"""
from typing import Optional


def format_ratio_percentage(ratio: float, total: int) -> str:
    """
    Format a tense-switch ratio as a percentage with one decimal place.

    The ratio is taken as reported; an empty analysis (total == 0) always
    renders as ``0.0%``.

    Args:
        ratio: Fraction in [0, 1]
        total: Number of segments the ratio was computed over

    Returns:
        String such as ``"30.0%"``
    """
    if total == 0:
        return "0.0%"
    return f"{ratio * 100:.1f}%"


def mask_secret(secret: Optional[str], visible: int = 4) -> Optional[str]:
    """
    Return a masked hint for a secret, keeping only its last characters.

    Args:
        secret: Secret value (may be empty)
        visible: Number of trailing characters left readable

    Returns:
        Masked string, or None when there is no secret
    """
    if not secret:
        return None
    if len(secret) <= visible:
        return "*" * len(secret)
    return "*" * (len(secret) - visible) + secret[-visible:]


def truncate_text(text: str, max_length: int = 200, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
