"""
Label normalization for master data titles and record names.

Titles are compared case-insensitively and stored in title case:
`"  iPHONE pro "` is stored as `"Iphone Pro"`.
"""

from typing import Optional


def capitalize_words(text: str) -> str:
    """
    Capitalize the first letter of every space-separated word and lowercase the rest.

    Runs of spaces inside the text are kept as they are.

    Example:
        >>> capitalize_words("space  GRAY")
        'Space  Gray'
    """
    if not text:
        return text
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.strip().split(" "))


def normalize_label(label: Optional[str]) -> Optional[str]:
    """Trim and title-case `label`. Returns `None` for missing or blank input."""
    if label is None:
        return None
    trimmed = label.strip()
    if not trimmed:
        return None
    return capitalize_words(trimmed)


def label_key(label: str) -> str:
    """Case-insensitive comparison key of a title."""
    return label.strip().lower()
