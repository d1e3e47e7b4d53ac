import re
from typing import Optional

CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(value: Optional[str], max_length: int = 2000) -> Optional[str]:
    """
    Clean free text (notes, names, slots) before it is stored.

    Strips surrounding whitespace and control characters. The text is stored
    as typed, escaping is left to whatever renders it. Empty input becomes None.

    Raises:
        ValueError: If the cleaned value exceeds max_length
    """
    if value is None:
        return None

    value = CONTROL_CHARACTERS.sub("", str(value)).strip()
    if not value:
        return None

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return value
