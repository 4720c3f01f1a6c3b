"""
Comment handling for line-oriented manifests.

Manifests have no escaped quotes, so every odd-numbered quote opens a
quoted span and every even-numbered quote closes it. A comment starts at the
first comment indicator outside such a span.
"""

COMMENT_INDICATOR = "#"
QUOTE = '"'


def strip_trailing_comment(
    line: str, comment_indicator: str = COMMENT_INDICATOR, quote: str = QUOTE
) -> str:
    """
    Remove an unquoted trailing comment from a line.

    Args:
        line: A single manifest line
        comment_indicator: Sequence that starts a comment (any length)
        quote: Character that delimits quoted spans

    Returns:
        str: The line up to the first unquoted comment indicator, or the
        line unchanged if it has none
    """
    # str.split keeps empty chunks, so even indexes are always unquoted.
    chunks = line.split(quote)
    for index, chunk in enumerate(chunks):
        if index % 2 == 1:
            continue
        position = chunk.find(comment_indicator)
        if position != -1:
            return quote.join(chunks[:index] + [chunk[:position]])
    return line


def is_comment_line(line: str, comment_indicator: str = COMMENT_INDICATOR) -> bool:
    """True when the first non-whitespace text of ``line`` is a comment."""
    return line.lstrip().startswith(comment_indicator)
