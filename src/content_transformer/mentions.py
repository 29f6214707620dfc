"""Fold user and document mentions into bold plain text."""

import re

from .line_cleanup import outside_code

# @[Jane Doe](mention://<uuid>/user/<uuid>) and [@Jane Doe](mention://...)
MENTION = re.compile(r'@?\[@?([^\]]+)\]\(mention://[^)]*\)')


def fold_mentions(content: str) -> str:
    """Replace every mention reference outside fenced code with the bold mentioned name."""
    return outside_code(
        content,
        lambda text: MENTION.sub(lambda match: f"**{match.group(1).strip()}**", text),
    )
