"""Word counting - no I/O dependencies."""

SEAL_THRESHOLD = 300


def count_words(text: str) -> int:
    """Count whitespace-separated words. Blank text counts as zero."""
    trimmed = text.strip()
    if not trimmed:
        return 0
    return len(trimmed.split())
