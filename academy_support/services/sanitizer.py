"""
Inbound text sanitation
"""
import re
from typing import Optional

from academy_support.core.config import settings

# C0/C1 control characters except tab and newline
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Strip control characters and surrounding whitespace, then truncate.

    Idempotent: sanitize_text(sanitize_text(x)) == sanitize_text(x)
    """
    if not text:
        return ""
    limit = max_length or settings.MAX_MESSAGE_LENGTH
    cleaned = _CONTROL_CHARS.sub("", text).strip()
    return cleaned[:limit].rstrip()


def preview(text: Optional[str], length: int = 100) -> str:
    """Short single-line preview for log lines"""
    return (text or "")[:length].replace("\n", " ")
