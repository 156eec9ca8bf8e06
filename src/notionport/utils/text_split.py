"""Code-point safe string splitting measured in UTF-16 units.

Notion limits ``rich_text[].text.content`` to 2 000 characters, but it
counts them the way JavaScript does: in UTF-16 code units.  A character
outside the Basic Multilingual Plane (most emoji, many CJK extension
ideographs) therefore costs two units.  Counting Python code points would
let a chunk of 2 000 emoji through at 4 000 units and get the request
rejected.

:func:`split_string` partitions a string into chunks of at most *limit*
UTF-16 units while only ever cutting between code points, so no chunk
ends in half a surrogate pair.
"""

from __future__ import annotations


def utf16_length(text: str) -> int:
    """Return the length of *text* in UTF-16 code units."""
    return len(text) + sum(1 for ch in text if ord(ch) > 0xFFFF)


def split_string(text: str, limit: int = 2000) -> list[str]:
    """Split *text* into chunks of at most *limit* UTF-16 code units.

    Parameters
    ----------
    text:
        The input string to partition.
    limit:
        Maximum chunk length in UTF-16 code units.  Defaults to **2000**
        (the Notion ``rich_text.text.content`` limit).  Must be at least 2
        so that a single astral character always fits.

    Returns
    -------
    list[str]
        A list of non-empty chunks whose concatenation equals *text*.
        If *text* is empty, an empty list is returned.

    Raises
    ------
    ValueError
        If *limit* is less than 2.

    Examples
    --------
    >>> split_string("hello world", 5)
    ['hello', ' worl', 'd']

    >>> split_string("", 100)
    []

    An astral character costs two units and is never cut:

    >>> split_string("ab\U0001f600cd", 3)
    ['ab', '\U0001f600c', 'd']
    """
    if limit < 2:
        raise ValueError(f"limit must be >= 2, got {limit}")

    if not text:
        return []

    # Fast path: no astral characters and short enough.
    if len(text) <= limit and text.isascii():
        return [text]

    chunks: list[str] = []
    start = 0
    used = 0
    for index, ch in enumerate(text):
        width = 2 if ord(ch) > 0xFFFF else 1
        if used + width > limit:
            chunks.append(text[start:index])
            start = index
            used = 0
        used += width
    chunks.append(text[start:])
    return chunks
