"""Field validators shared by request schemas."""

import html


def escape_html(value: str, max_length: int) -> str:
    """
    HTML-escape a display string that is stored in a bounded column.

    `max_length` on the Field applies to the raw input; escaping can grow it
    up to 6x ("&" → "&amp;", '"' → "&quot;"), so the escaped text is checked
    again against the column size.
    """
    escaped = html.escape(value)
    if len(escaped) > max_length:
        raise ValueError(
            f"must be at most {max_length} characters once HTML special characters are escaped"
        )
    return escaped
