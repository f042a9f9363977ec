from __future__ import annotations

import re
from typing import List, Tuple

from .model import MdNode, NodeKind, Position

_ATX = re.compile(r"^(?P<indent>[ ]{0,3})(?P<marks>#{1,6})(?:[ \t]+(?P<title>.*?))?[ \t]*$")
_ATX_CLOSING = re.compile(r"(?:^|[ \t]+)#+$")
_SETEXT_U = re.compile(r"^ {0,3}(?P<underline>=+)\s*$")
_SETEXT_L = re.compile(r"^ {0,3}(?P<underline>-+)\s*$")
_FENCE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_THEMATIC = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_INDENTED = re.compile(r"^(?: {4}|\t)")
_CONTAINER = re.compile(r"^ {0,3}(?:>|[-*+](?:[ \t]|$)|\d{1,9}[.)](?:[ \t]|$)|<[A-Za-z/!?])")
_BACKTICKS = re.compile(r"`+")


def _is_blank(line: str) -> bool:
    return not line.strip()


def _opens_fence(line: str) -> bool:
    m = _FENCE.match(line)
    if not m:
        return False
    # backtick fences cannot carry backticks in their info string
    return not (m.group("fence")[0] == "`" and "`" in m.group("info"))


def _read_fenced(lines: List[str], start: int) -> Tuple[MdNode, int]:
    """Fenced block opened at `start`; returns the node and the index after it."""
    m = _FENCE.match(lines[start])
    assert m is not None
    indent = len(m.group("indent"))
    open_marks = m.group("fence")
    tick = open_marks[0]
    # Closing fence: same char, at least as many times, optional trailing spaces.
    fence_pat = re.compile(rf"^(?: {{0,3}}){re.escape(tick)}{{{len(open_marks)},}}[ \t]*$")
    body: List[str] = []
    i = start + 1
    n = len(lines)
    while i < n and not fence_pat.match(lines[i]):
        ln = lines[i]
        strip = min(indent, len(ln) - len(ln.lstrip(" ")))
        body.append(ln[strip:])
        i += 1
    if i < n:
        end = i       # closing fence line (0-based)
        nxt = i + 1
    else:
        # unclosed block runs to the end of the document
        end = n - 1
        nxt = n
    text = "\n".join(body) + ("\n" if body else "")
    node = MdNode(
        NodeKind.CODE_BLOCK,
        Position(start + 1, end + 1),
        info=m.group("info").strip(),
        text=text,
    )
    return node, nxt


def _read_indented(lines: List[str], start: int) -> Tuple[MdNode, int]:
    body: List[str] = []
    i = start
    n = len(lines)
    last = start
    while i < n:
        ln = lines[i]
        if _INDENTED.match(ln):
            body.append(ln[1:] if ln.startswith("\t") else ln[4:])
            last = i
        elif _is_blank(ln):
            body.append("")
        else:
            break
        i += 1
    body = body[: last - start + 1]
    node = MdNode(
        NodeKind.CODE_BLOCK,
        Position(start + 1, last + 1),
        info="",
        text="\n".join(body) + "\n",
    )
    return node, last + 1


def _read_container(lines: List[str], start: int) -> Tuple[MdNode, int]:
    """Opaque block: runs until a blank line, a fence or an ATX heading."""
    i = start + 1
    n = len(lines)
    while i < n:
        ln = lines[i]
        if _is_blank(ln) or _opens_fence(ln) or _ATX.match(ln):
            break
        i += 1
    node = MdNode(
        NodeKind.BLOCK,
        Position(start + 1, i),
        text="\n".join(lines[start:i]),
    )
    return node, i


def parse_inline(text: str) -> List[MdNode]:
    """
    Split inline content into text runs and code spans.

    A code span opens with a run of N backticks and closes with the next run
    of exactly N backticks; unmatched runs stay literal text.
    """
    out: List[MdNode] = []
    buf: List[str] = []
    pos = 0
    while pos < len(text):
        m = _BACKTICKS.search(text, pos)
        if not m:
            buf.append(text[pos:])
            break
        buf.append(text[pos:m.start()])
        run = m.group(0)
        close = m.end()
        found = -1
        while True:
            c = _BACKTICKS.search(text, close)
            if not c:
                break
            if len(c.group(0)) == len(run):
                found = c.start()
                break
            close = c.end()
        if found < 0:
            buf.append(run)
            pos = m.end()
            continue
        if "".join(buf):
            out.append(MdNode(NodeKind.TEXT, text="".join(buf)))
        buf = []
        code = text[m.end():found].replace("\n", " ")
        if len(code) >= 2 and code[0] == " " and code[-1] == " " and code.strip():
            code = code[1:-1]
        out.append(MdNode(NodeKind.CODE, text=code))
        pos = found + len(run)
    if "".join(buf):
        out.append(MdNode(NodeKind.TEXT, text="".join(buf)))
    return out


def _heading(level: int, title: str, start: int, end: int) -> MdNode:
    return MdNode(
        NodeKind.HEADING,
        Position(start + 1, end + 1),
        children=parse_inline(title),
        level=level,
    )


def parse_markdown(text: str) -> MdNode:
    """
    Lightweight Markdown block parser:
      • ATX (#..######) and Setext (==== / ----) headings
      • fenced (``` / ~~~) and indented code blocks
      • paragraphs with inline code spans
      • lists, block quotes, HTML and thematic breaks as opaque blocks

    Returns a DOCUMENT node whose children are the top-level blocks.
    """
    lines = text.splitlines()
    n = len(lines)
    blocks: List[MdNode] = []
    para: List[int] = []

    def flush_para() -> None:
        if para:
            content = " ".join(lines[j].strip() for j in para)
            blocks.append(MdNode(
                NodeKind.PARAGRAPH,
                Position(para[0] + 1, para[-1] + 1),
                children=parse_inline(content),
            ))
            para.clear()

    i = 0
    while i < n:
        ln = lines[i]
        if _is_blank(ln):
            flush_para()
            i += 1
            continue

        if _opens_fence(ln):
            flush_para()
            node, i = _read_fenced(lines, i)
            blocks.append(node)
            continue

        m = _ATX.match(ln)
        if m:
            flush_para()
            title = _ATX_CLOSING.sub("", (m.group("title") or "").strip())
            blocks.append(_heading(len(m.group("marks")), title, i, i))
            i += 1
            continue

        # Setext underline turns the open paragraph into a heading
        if para and (_SETEXT_U.match(ln) or _SETEXT_L.match(ln)):
            level = 1 if _SETEXT_U.match(ln) else 2
            title = " ".join(lines[j].strip() for j in para)
            blocks.append(_heading(level, title, para[0], i))
            para.clear()
            i += 1
            continue

        if _THEMATIC.match(ln):
            flush_para()
            blocks.append(MdNode(NodeKind.BLOCK, Position(i + 1, i + 1), text=ln))
            i += 1
            continue

        if not para and _INDENTED.match(ln):
            node, i = _read_indented(lines, i)
            blocks.append(node)
            continue

        if _CONTAINER.match(ln):
            flush_para()
            node, i = _read_container(lines, i)
            blocks.append(node)
            continue

        para.append(i)
        i += 1

    flush_para()
    return MdNode(NodeKind.DOCUMENT, Position(1, max(n, 1)), children=blocks)


__all__ = ["parse_markdown", "parse_inline"]
