"""Sliding-window text chunking for embedding."""

from typing import List

from creative_rag.exceptions import InvalidConfiguration


def validate_window(window_size: int, overlap: int) -> None:
    if window_size <= 0:
        raise InvalidConfiguration(f"window_size must be positive, got {window_size}")
    if overlap < 0:
        raise InvalidConfiguration(f"overlap must not be negative, got {overlap}")
    if overlap >= window_size:
        # the window start would never advance
        raise InvalidConfiguration(f"overlap ({overlap}) must be smaller than window_size ({window_size})")


def chunk_offsets(text_length: int, window_size: int, overlap: int) -> List[int]:
    """Start offsets of every window: i * (window_size - overlap) while inside the text."""
    validate_window(window_size, overlap)
    step = window_size - overlap
    return list(range(0, max(text_length, 0), step))


def chunk_text(text: str, window_size: int = 1000, overlap: int = 200) -> List[str]:
    """
    Split text into overlapping fixed-size windows.

    Window i covers text[i*step : i*step + window_size] with step = window_size - overlap;
    the last window may be shorter. Consecutive windows share exactly `overlap`
    characters except where the last window is shorter than the overlap.

    Args:
        text: Normalized text to chunk
        window_size: Characters per window
        overlap: Characters shared by consecutive windows

    Returns:
        Ordered list of chunk strings (empty for empty text)

    Raises:
        InvalidConfiguration: If overlap >= window_size, window_size <= 0 or overlap < 0
    """
    offsets = chunk_offsets(len(text or ""), window_size, overlap)
    return [text[start:start + window_size] for start in offsets]
