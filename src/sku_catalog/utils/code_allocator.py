"""
Master data code allocation.

Codes have the shape `PREFIX` + two digits + one uppercase letter, e.g. `BRD00A`,
`COND01C`. Codes advance letter first, then number:

    BRD00A -> BRD00B -> ... -> BRD00Z -> BRD01A -> ... -> BRD99Z

The digit field is fixed-width, so a plain string sort orders codes correctly.
Allocation is a pure function of the prefix and the codes already in use. Callers pass a
fresh snapshot of existing codes right before allocating.
"""

import re
import string
from typing import Iterable

from sku_catalog.exceptions import CodeSpaceExhaustedError

FIRST_LETTER = "A"
LAST_LETTER = "Z"
MAX_NUMBER = 99


def code_pattern(prefix: str) -> "re.Pattern[str]":
    """Compiled pattern matching `PREFIX` + 2 digits + 1 uppercase letter, capturing both parts."""
    return re.compile(rf"^{re.escape(prefix)}(\d{{2}})([A-Z])$")


def allocate_code(prefix: str, existing_codes: Iterable[str]) -> str:
    """
    Return the next unused code for `prefix`.

    Args:
        prefix: Code prefix of the reference type, e.g. `"BRD"`.
        existing_codes: Codes already in use. Codes not matching the pattern are ignored.

    Returns:
        The code following the highest matching code, or `PREFIX00A` if none match.

    Raises:
        CodeSpaceExhaustedError: If the highest code is `PREFIX99Z`.

    Example:
        >>> allocate_code("BRD", [])
        'BRD00A'
        >>> allocate_code("BRD", ["BRD00A"])
        'BRD00B'
        >>> allocate_code("BRD", ["BRD00Z"])
        'BRD01A'
    """
    pattern = code_pattern(prefix)
    matching = sorted(code for code in existing_codes if code and pattern.match(code))
    if not matching:
        return f"{prefix}00{FIRST_LETTER}"

    number_text, letter = pattern.match(matching[-1]).groups()
    number = int(number_text)

    if letter == LAST_LETTER:
        number += 1
        next_letter = FIRST_LETTER
    else:
        next_letter = string.ascii_uppercase[string.ascii_uppercase.index(letter) + 1]

    if number > MAX_NUMBER:
        raise CodeSpaceExhaustedError(f"No codes left for prefix {prefix} after {matching[-1]}")

    return f"{prefix}{number:02d}{next_letter}"
