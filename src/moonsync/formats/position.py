# ABOUTME: Decoder for Moon+ Reader .po position files (reading progress snapshots).
# ABOUTME: Parses "timestamp*chapter@marker#position:percentage%" into a ProgressRecord.

import logging
import re
from pathlib import Path

from moonsync.core.types import ProgressRecord

logger = logging.getLogger(__name__)

# Example: 1761402987558*25@0#2018:41.1%
_POSITION_RE = re.compile(r"^(\d+)\*(\d+)@\d+#\d+:(\d+(?:\.\d+)?)%$")


def parse_position_text(content: str) -> ProgressRecord | None:
    """Parse the content of a position file.

    Returns None when the trimmed content does not match the full grammar;
    a malformed file means "no progress data", not an error.
    """
    match = _POSITION_RE.match(content.strip())
    if match is None:
        logger.debug("Unrecognized position data: %r", content[:80])
        return None
    return ProgressRecord(
        progress=float(match.group(3)),
        chapter=int(match.group(2)),
        timestamp=int(match.group(1)),
    )


def parse_position_file(path: Path) -> ProgressRecord | None:
    """Read and parse a position file, returning None on read or decode failure."""
    try:
        content = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read position file %s: %s", path.name, exc)
        return None
    return parse_position_text(content)
