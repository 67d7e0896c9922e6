"""Output file names from a placeholder template."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Callable

from config import FILE_NAME_TEMPLATE

# Characters no common file system accepts in a name
ILLEGAL_PATH_CHARS = re.compile(r'[/\\?%*:|"<>]')

PLACEHOLDERS = ("{timestamp}", "{date}", "{shortId}", "{uuid}")


def sanitize_template(template: str) -> str:
    """Replace characters illegal in file paths with '-'."""
    return ILLEGAL_PATH_CHARS.sub("-", template)


def generate_file_name(
    template: str | None = None,
    now: datetime | None = None,
    id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> str:
    """Expand a file-name template.

    Placeholders:
        {timestamp}  epoch milliseconds of `now`
        {date}       YYYYMMDD of `now`
        {shortId}    first 8 hex characters of a random UUID
        {uuid}       a full random UUID (drawn separately from shortId)

    Every occurrence of a placeholder is substituted, not just the first,
    so "{date}/{date}" expands both. Illegal path characters are replaced
    before substitution, so values never contain them either. An empty
    template falls back to FILE_NAME_TEMPLATE. The result carries no
    extension.

    Examples:
        >>> generate_file_name("ink-{date}", now=datetime(2024, 1, 1))
        'ink-20240101'
    """
    if now is None:
        now = datetime.now()

    safe = sanitize_template(template or FILE_NAME_TEMPLATE)

    values = {
        "{timestamp}": str(int(now.timestamp() * 1000)),
        "{date}": now.strftime("%Y%m%d"),
        "{shortId}": id_factory().hex[:8],
        "{uuid}": str(id_factory()),
    }
    for placeholder in PLACEHOLDERS:
        safe = safe.replace(placeholder, values[placeholder])
    return safe
