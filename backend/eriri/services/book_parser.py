"""
Eriri Book Parser - line indexing and chapter detection for plain text books
"""
import asyncio
import logging
import re
from bisect import bisect_right
from pathlib import Path
from typing import List, Optional, Sequence
from eriri.core.exceptions import ParseError
from eriri.models.book import Chapter, TextContent

logger = logging.getLogger(__name__)

# 第十二章 / 第3回 / 第一卷 ... only CJK-style headings are recognized
CHAPTER_PATTERN = re.compile(r"^\s*(第[0-9０-９一二三四五六七八九十百千]+[章回节卷集幕].*)")

def parse_text(raw_text: str) -> TextContent:
    """
    Index raw text into non-empty lines, line start offsets and chapters
    Args:
        raw_text: Full text of the book
    Returns:
        TextContent for the text
    """
    lines: List[str] = []
    line_start_offsets: List[int] = []
    chapters: List[Chapter] = []

    char_count = 0
    for raw_line in raw_text.split("\n"):
        line = raw_line[:-1] if raw_line.endswith("\r") else raw_line
        if not line.strip(): continue

        index = len(lines)
        lines.append(line)
        line_start_offsets.append(char_count)

        match = CHAPTER_PATTERN.match(line)
        if match:
            chapters.append(Chapter(title=match.group(1).strip(), line_index=index, char_index=char_count))

        char_count += len(line) + 1  # +1 for the removed newline

    return TextContent(
        lines=lines,
        line_start_offsets=line_start_offsets,
        chapters=chapters,
        total_chars=char_count,
    )

async def parse_book(path: str) -> TextContent:
    """
    Read a UTF-8 text file and index it
    Args:
        path: Path of the text file
    Returns:
        TextContent for the file
    Raises:
        ParseError: if the file cannot be read or decoded
    """
    try:
        raw_text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to parse book {path}: {str(e)}")
        raise ParseError(f"Failed to parse book file {path}: {str(e)}") from e

    content = parse_text(raw_text)
    logger.info(f"Parsed {path}: {content.total_lines} lines, {len(content.chapters)} chapters")
    return content

def find_line_index(offsets: Sequence[int], target_offset: int) -> int:
    """
    Greatest line whose start offset does not exceed the target
    Args:
        offsets: Line start offsets, non-decreasing
        target_offset: Character offset to locate
    Returns:
        Line index, never below 0
    """
    return max(0, bisect_right(offsets, target_offset) - 1)

def find_chapter_at_line(chapters: Sequence[Chapter], line_index: int) -> Optional[Chapter]:
    """Last chapter starting at or before line_index, or None"""
    for chapter in reversed(chapters):
        if chapter.line_index <= line_index: return chapter
    return None
