MAX_FEEDBACK_LENGTH = 250
MIN_SENTENCE_BOUNDARY = 200
ELLIPSIS = "..."
SENTENCE_TERMINALS = (".", "?", "!")


def truncate_feedback(
    feedback: str,
    max_length: int = MAX_FEEDBACK_LENGTH,
    min_boundary: int = MIN_SENTENCE_BOUNDARY,
    ellipsis: str = ELLIPSIS,
) -> str:
    """
    Limit feedback to max_length characters.

    Cuts after the last sentence terminator in the first max_length
    characters when it sits past min_boundary, otherwise hard-cuts at
    max_length and appends the ellipsis.
    """
    if len(feedback) <= max_length:
        return feedback

    truncated = feedback[:max_length]
    last_sentence_end = max(truncated.rfind(mark) for mark in SENTENCE_TERMINALS)

    if last_sentence_end > min_boundary:
        return truncated[: last_sentence_end + 1]

    return truncated + ellipsis
