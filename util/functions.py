def clip_words(text: str, max_words: int = 100) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def clip_chars(text: str, max_chars: int = 200) -> str:
    """
    - Trim 'text' to at most `max_chars` characters.
    - Appends "..." when trimming occurs.
    """
    return text[:max_chars] + ("..." if len(text) > max_chars else "")


def pdf_page_url(pdf_path: str | None, page_number: int | None) -> str | None:
    if not pdf_path:
        return None
    return f"{pdf_path}#page={page_number}" if page_number else pdf_path
