"""Map offsets inside comment text to absolute source positions."""


def normalize_line_endings(text: str) -> str:
    """Convert CRLF sequences to LF."""
    return text.replace("\r\n", "\n")


def remap_position(
    start_line: int, start_column: int, text: str, offset: int
) -> tuple[int, int]:
    """Convert an offset within a comment to an absolute (line, column).

    Args:
        start_line: 1-indexed line where the comment starts
        start_column: 0-indexed column where the comment starts
        text: Raw comment text, possibly spanning several lines
        offset: Character offset of the match within the raw text

    Returns:
        Tuple of (1-indexed line, 0-indexed column)

    Raises:
        ValueError: If offset is outside the text
    """
    if offset < 0 or offset > len(text):
        raise ValueError(f"offset {offset} outside text of length {len(text)}")

    # CRLF counts as a single break
    before = normalize_line_endings(text[:offset])
    offset = len(before)

    newlines = before.count("\n")
    if newlines == 0:
        return start_line, start_column + offset

    last_newline = before.rfind("\n")
    return start_line + newlines, offset - (last_newline + 1)


def span_end(column: int, matched_text: str) -> int:
    """End column (exclusive) of a match starting at column."""
    return column + len(matched_text)
