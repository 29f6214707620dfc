"""Line-level cleanup of exported markdown.

Outline exports carry a few artefacts that confuse markdown parsers: lines
holding only a backslash (empty editor lines), ``***`` list leaders,
``==highlight==`` marks and callout fences glued to surrounding text. This
module removes or rewrites them and flags lines that look like leaked
passwords. Fenced code is left untouched apart from the password check.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from src.models.transform_report import TransformReport

logger = logging.getLogger(__name__)

BACKSLASH_ONLY_LINE = re.compile(r'^\s*(\*\s*)?\\+\s*$')
TRIPLE_ASTERISK_LEADER = re.compile(r'^\*\*\* ')
HIGHLIGHT = re.compile(r'==([^=]+)==')
CODE_FENCE = re.compile(r'^\s*(```|~~~)')
CALLOUT_FENCE = re.compile(r'^\s*:::(info|tip|warning|success)?(\s.*)?$')

PASSWORD_PATTERNS = [
    re.compile(r'(?:mot\s+de\s+passe|password)\s*[:=]\s*\S+', re.IGNORECASE),
    re.compile(r'(?:mdp|pwd)\s*[:=]\s*\S+', re.IGNORECASE),
]


def detect_password(line: str) -> bool:
    """Return True if the line looks like it discloses a password value."""
    return any(pattern.search(line) for pattern in PASSWORD_PATTERNS)


def clean_lines(
    content: str,
    source_path: str = "",
    report: Optional[TransformReport] = None,
) -> str:
    """Clean exported markdown line by line.

    Args:
        content: Raw document text
        source_path: Source document, used in warnings
        report: Counters updated with password warnings

    Returns:
        Cleaned markdown text
    """
    cleaned: List[str] = []
    in_code = False

    for line_number, line in enumerate(content.split("\n"), start=1):
        if detect_password(line):
            logger.warning(f"Possible password detected in {source_path} at line {line_number}")
            if report is not None:
                report.password_warnings += 1

        if CODE_FENCE.match(line):
            in_code = not in_code
            cleaned.append(line)
            continue
        if in_code:
            cleaned.append(line)
            continue

        if BACKSLASH_ONLY_LINE.match(line):
            continue

        line = TRIPLE_ASTERISK_LEADER.sub('* ** ', line)
        line = HIGHLIGHT.sub(r'\1', line)

        if CALLOUT_FENCE.match(line):
            # Fences must parse as standalone paragraphs
            if cleaned and cleaned[-1].strip():
                cleaned.append('')
            cleaned.append(line.strip())
            cleaned.append('')
            continue

        cleaned.append(line)

    return '\n'.join(cleaned)


def fenced_segments(content: str) -> List[Tuple[str, bool]]:
    """Split markdown into consecutive line groups.

    Returns:
        ``(text, in_code)`` pairs in document order; joining the texts with
        newlines gives back ``content``. Fence lines belong to their code group.
    """
    segments: List[Tuple[str, bool]] = []
    current: List[str] = []
    in_code = False

    for line in content.split("\n"):
        if CODE_FENCE.match(line):
            if in_code:
                current.append(line)
                segments.append(("\n".join(current), True))
                current = []
            else:
                if current:
                    segments.append(("\n".join(current), False))
                current = [line]
            in_code = not in_code
            continue
        current.append(line)

    if current:
        segments.append(("\n".join(current), in_code))
    return segments


def outside_code(content: str, rewrite: Callable[[str], str]) -> str:
    """Apply ``rewrite`` to the parts of ``content`` outside fenced code."""
    return "\n".join(
        text if in_code else rewrite(text)
        for text, in_code in fenced_segments(content)
    )
