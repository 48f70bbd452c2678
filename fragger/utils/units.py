import math

from ..config import KILOBYTE

_SUFFIXES = {
    'b': 1,
    'kb': KILOBYTE,
    'mb': KILOBYTE ** 2,
    'gb': KILOBYTE ** 3,
    'tb': KILOBYTE ** 4,
}


def parse_size(text, default_unit='kb'):
    """
    Convert a human size such as ``"25KB"`` or ``"1.5 mb"`` into bytes.

    A bare number is interpreted in ``default_unit``.

    Raises:
        ValueError: if the text is not a size.
    """
    s = text.strip().lower()
    # Longest suffix first so "kb" is not read as "b"
    for suffix in sorted(_SUFFIXES, key=len, reverse=True):
        if s.endswith(suffix):
            number, unit = s[:-len(suffix)], suffix
            break
    else:
        number, unit = s, default_unit

    value = float(number.strip()) * _SUFFIXES[unit]
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"Size must be a finite, non-negative number: {text!r}")
    return int(value)


def format_size(size):
    """Format a byte count the way the client prints file sizes."""
    if size < KILOBYTE:
        return f"{size} B"
    elif size < KILOBYTE ** 2:
        return f"{size / KILOBYTE:.1f} KB"
    elif size < KILOBYTE ** 3:
        return f"{size / KILOBYTE ** 2:.1f} MB"
    elif size < KILOBYTE ** 4:
        return f"{size / KILOBYTE ** 3:.1f} GB"
    return f"{size / KILOBYTE ** 4:.1f} TB"
