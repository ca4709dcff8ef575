"""
Text utilities for the AI fallback prompt.

The body preview sent to the model is capped; cutting at a sentence boundary
keeps the preview readable for the model.
"""

import re


def truncate_at_sentence_boundary(text: str, max_chars: int) -> str:
    """
    Truncate text at the last sentence boundary before max_chars.

    Falls back to the last word boundary (when it is past 80% of the limit)
    and finally to a hard cut.

    Examples:
        >>> truncate_at_sentence_boundary("Hello. World. Test.", 15)
        'Hello. World.'
    """
    if len(text) <= max_chars:
        return text

    window = text[:max_chars]
    boundaries = list(re.finditer(r'[.!?](?:\s|$)', window))
    if boundaries:
        cutoff = boundaries[-1].end()
        if window[cutoff - 1:cutoff].isspace():
            cutoff -= 1
        return text[:cutoff]

    last_space = window.rfind(' ')
    if last_space > max_chars * 0.8:
        return text[:last_space]

    return text[:max_chars]


def collapse_whitespace(text: str) -> str:
    """Collapse runs of blank lines and trailing spaces left by quoted replies."""
    text = re.sub(r'[ \t]+\n', '\n', text)
    return re.sub(r'\n{3,}', '\n\n', text).strip()
