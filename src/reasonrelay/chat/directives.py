"""Reasoning-mode directives embedded at the end of user prompts.

A prompt may end with ``/think`` or ``/no_think`` to override the reasoning
mode for that one request. Only a token at the very end of the trimmed text
counts; the token and any whitespace before it are removed.
"""

THINK_DIRECTIVE = "/think"
NO_THINK_DIRECTIVE = "/no_think"


def parse_directives(text: str, default: bool) -> tuple[str, bool]:
    """Strip a trailing reasoning directive from prompt text.

    Args:
        text: Raw prompt text
        default: Reasoning mode to use when no directive is present

    Returns:
        Tuple of (cleaned text, effective reasoning mode)

    Examples:
        >>> parse_directives("Hello world/think", default=False)
        ('Hello world', True)
        >>> parse_directives("Hello world /no_think", default=True)
        ('Hello world', False)
        >>> parse_directives("Hello world", default=True)
        ('Hello world', True)
        >>> parse_directives("/think", default=False)
        ('', True)
    """
    content = text.strip()

    if content.endswith(NO_THINK_DIRECTIVE):
        return content[: -len(NO_THINK_DIRECTIVE)].rstrip(), False

    if content.endswith(THINK_DIRECTIVE):
        return content[: -len(THINK_DIRECTIVE)].rstrip(), True

    return text, default
