"""Text normalization helpers for LLM responses."""

import re

# First fenced block: a language tag on the opening line, closing fence at the
# start of a line. Fences escaped inside JSON strings never start a line.
_FENCE_PATTERN = re.compile(
    r"```[\w+#.-]*[ \t]*\n(.*?)^[ \t]*```", re.DOTALL | re.MULTILINE
)


def extract_code_block(text: str) -> str:
    """
    Return the content of the first fenced code block in ``text``.

    Text without a complete fence is returned unchanged.

    Example:
        >>> extract_code_block("```js\\nconsole.log(1)\\n```")
        'console.log(1)'
    """
    match = _FENCE_PATTERN.search(text)
    if match is None:
        return text
    return match.group(1).strip()


def truncate(text: str, limit: int = 100) -> str:
    """Cut ``text`` to ``limit`` characters, appending an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
