"""
Block extraction and item splitting for the Merise micro-syntax.

Every level of the micro-syntax is made of top-level blocks shaped as::

    KEYWORD name [extra] { body }

The opening brace may sit on the header line or on a following line, and a
block may be written on one line. ``extract_blocks`` returns those blocks in
document order; ``split_items`` then turns a body into atomic items,
splitting on newlines and on commas that are not nested inside ``(...)`` or
``[...]``, so that::

    COMMANDE (1,1), ADRESSE (0,n)

and::

    COMMANDE (1,1)
    ADRESSE (0,n)

normalize to the same item list.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r'^(\w+)\s+(\w+)\s*(.*)$')
COMMENT_PREFIXES = ("//", "#")

_OPENERS = "(["
_CLOSERS = ")]"


@dataclass
class RawBlock:
    """
    A top-level construct as found in the source text.

    Attributes:
        keyword: Leading keyword as written (ENTITY, RELATION, TABLE, ...).
        name: Block name.
        extra: Text between the name and the opening brace.
        body: Raw text between the matching braces.
        line: 1-based line number of the header.
        closed: False when the end of input was reached before the closing brace.
    """
    keyword: str
    name: str
    extra: str = ""
    body: str = ""
    line: int = 0
    closed: bool = True

    @property
    def label(self) -> str:
        """Location label used in issue messages."""
        return f"{self.keyword.upper()} {self.name}"


@dataclass
class BlockScan:
    """Result of scanning a document for top-level blocks."""
    blocks: List[RawBlock] = field(default_factory=list)
    stray_lines: List[Tuple[int, str]] = field(default_factory=list)


def is_comment(line: str) -> bool:
    return line.startswith(COMMENT_PREFIXES)


def extract_blocks(source: str) -> BlockScan:
    """
    Extract every ``KEYWORD name [extra] { body }`` block of a document.

    Lines outside any block that are neither blank nor comments are
    reported in ``stray_lines`` so the caller can flag them.

    Args:
        source: Raw document text.

    Returns:
        BlockScan with blocks in document order.
    """
    scan = BlockScan()
    lines = source.splitlines()
    i = 0

    while i < len(lines):
        line = lines[i].strip()
        if not line or is_comment(line):
            i += 1
            continue

        match = HEADER_PATTERN.match(line)
        if not match:
            scan.stray_lines.append((i + 1, line))
            i += 1
            continue

        keyword, name, rest = match.group(1), match.group(2), match.group(3)
        header_line = i + 1

        if "{" in rest:
            brace = rest.index("{")
            extra = rest[:brace].strip()
            remainder = rest[brace + 1:]
            i += 1
        else:
            extra = rest.strip()
            j = _next_content_line(lines, i + 1)
            if j is None or not lines[j].strip().startswith("{"):
                # Header without a body: report it and resume on the next line
                scan.stray_lines.append((header_line, line))
                i += 1
                continue
            remainder = lines[j].strip()[1:]
            i = j + 1

        body, leftover, i, closed = _collect_body(remainder, lines, i)
        block = RawBlock(
            keyword=keyword,
            name=name,
            extra=extra,
            body=body.strip(),
            line=header_line,
            closed=closed,
        )
        scan.blocks.append(block)
        logger.debug(f"Extracted block {block.label} at line {header_line}")

        if leftover.strip():
            # Content after the closing brace is parsed as top-level text
            i -= 1
            lines[i] = leftover

    return scan


def _next_content_line(lines: List[str], start: int) -> Optional[int]:
    for j in range(start, len(lines)):
        stripped = lines[j].strip()
        if stripped and not is_comment(stripped):
            return j
    return None


def _collect_body(first: str, lines: List[str], next_index: int) -> Tuple[str, str, int, bool]:
    """
    Collect text up to the brace matching an already consumed ``{``.

    Returns:
        (body, text after the closing brace, index of the next unread line, closed)
    """
    depth = 1
    parts: List[str] = []
    chunk = first
    index = next_index

    while True:
        for pos, ch in enumerate(chunk):
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    parts.append(chunk[:pos])
                    return "\n".join(parts), chunk[pos + 1:], index, True
        parts.append(chunk)
        if index >= len(lines):
            return "\n".join(parts), "", index, False
        chunk = lines[index]
        index += 1


def split_outside_brackets(text: str) -> List[str]:
    """
    Split on commas that are not nested in parentheses or square brackets.

    Examples:
        "COMMANDE (1,1), ADRESSE (0,n)" -> ["COMMANDE (1,1)", "ADRESSE (0,n)"]
        "total DECIMAL(10,2) [CHECK(total >= 0)]" -> unchanged, single item
    """
    parts: List[str] = []
    current: List[str] = []
    depth = 0

    for ch in text:
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            item = "".join(current).strip()
            if item:
                parts.append(item)
            current = []
            continue
        current.append(ch)

    item = "".join(current).strip()
    if item:
        parts.append(item)
    return parts


def split_items(body: str) -> List[str]:
    """
    Normalize a block body into individual items.

    Each non-blank, non-comment line is split with ``split_outside_brackets``.
    """
    items: List[str] = []
    for line in body.splitlines():
        stripped = line.strip()
        if not stripped or is_comment(stripped):
            continue
        items.extend(split_outside_brackets(stripped))
    return items
