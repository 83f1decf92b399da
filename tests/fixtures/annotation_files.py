# ABOUTME: Builders for synthetic Moon+ Reader cache files used across the test suite.
# ABOUTME: Produces zlib-compressed .an block streams and .po position files.

import zlib
from pathlib import Path

YELLOW = -256  # 0xFFFFFF00
BLUE = -16776961  # 0xFF0000FF
GREEN = -16711936  # 0xFF00FF00
RED = -65536  # 0xFFFF0000

# 2023-11-14T22:13:20Z
TIMESTAMP = 1700000000000

PREAMBLE = ["com.flyersoft.moonreader", "3"]


def annotation_block(
    *,
    text: str,
    note: str = "",
    position: int = 100,
    chapter: int = 1,
    color: int = YELLOW,
    timestamp: int = TIMESTAMP,
    highlight_id: int = 1,
    title: str = "Dune - Frank Herbert.epub",
    path: str = "/sdcard/Books/Dune - Frank Herbert.epub",
) -> list[str]:
    """Lines for one highlight block, including its trailing zero sentinels."""
    lines = [
        "#",
        str(highlight_id),
        title,
        path,
        path.lower(),
        str(chapter),
        "0",
        str(position),
        str(len(text)),
        str(color),
        str(timestamp),
    ]
    if note:
        lines.append(note.replace("\n", "<BR>"))
    lines.append(text.replace("\n", "<BR>"))
    lines.extend(["0", "0"])
    return lines


def annotation_bytes(blocks: list[list[str]]) -> bytes:
    lines = list(PREAMBLE)
    for block in blocks:
        lines.extend(block)
    return zlib.compress("\n".join(lines).encode("utf-8"))


def write_annotation_file(cache_dir: Path, filename: str, blocks: list[list[str]]) -> Path:
    path = cache_dir / filename
    path.write_bytes(annotation_bytes(blocks))
    return path


def write_position_file(
    cache_dir: Path,
    filename: str,
    *,
    progress: str = "33.3",
    chapter: int = 12,
    timestamp: int = TIMESTAMP,
) -> Path:
    path = cache_dir / filename
    path.write_text(f"{timestamp}*{chapter}@0#500:{progress}%", encoding="utf-8")
    return path


def dune_blocks(count: int = 3) -> list[list[str]]:
    """Up to five Dune highlights, in reading order."""
    texts = [
        ("I must not fear.", "", GREEN),
        ("Fear is the mind-killer.", "The litany", YELLOW),
        ("The spice must flow.", "", BLUE),
        ("He who controls the spice controls the universe.", "", RED),
        ("Deep in the human unconscious is a pervasive need for a logical universe.", "", YELLOW),
    ]
    return [
        annotation_block(
            text=text, note=note, color=color, position=(i + 1) * 100, chapter=i + 1,
            highlight_id=i + 1,
        )
        for i, (text, note, color) in enumerate(texts[:count])
    ]
