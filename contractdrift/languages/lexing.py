"""Line-level lexing helpers shared by the extractor and the usage scanner."""

from __future__ import annotations

_QUOTES = "'\""


def code_lines(content: str) -> list[str]:
    """Split content into lines with comments and string bodies blanked.

    Column positions are preserved: every removed character becomes a space.
    Quote characters themselves are kept so that empty-looking literals stay
    visible. Template literals may span lines. Expressions inside template
    `${...}` placeholders stay code; the placeholder delimiters are blanked.
    """
    result: list[str] = []
    in_block = False
    in_template = False
    # open brace count inside each enclosing template placeholder
    placeholders: list[int] = []

    for raw in content.split("\n"):
        out: list[str] = []
        i = 0
        n = len(raw)
        quote: str | None = None

        while i < n:
            ch = raw[i]
            nxt = raw[i + 1] if i + 1 < n else ""

            if in_block:
                if ch == "*" and nxt == "/":
                    out.append("  ")
                    in_block = False
                    i += 2
                    continue
                out.append(" ")
            elif in_template:
                if ch == "\\":
                    out.append("  "[: min(2, n - i)])
                    i += 2
                    continue
                if ch == "`":
                    out.append("`")
                    in_template = False
                elif ch == "$" and nxt == "{":
                    out.append("  ")
                    placeholders.append(0)
                    in_template = False
                    i += 2
                    continue
                else:
                    out.append(" ")
            elif quote is not None:
                if ch == "\\":
                    out.append("  "[: min(2, n - i)])
                    i += 2
                    continue
                if ch == quote:
                    out.append(ch)
                    quote = None
                else:
                    out.append(" ")
            elif ch == "/" and nxt == "/":
                out.append(" " * (n - i))
                break
            elif ch == "/" and nxt == "*":
                out.append("  ")
                in_block = True
                i += 2
                continue
            elif ch in _QUOTES:
                quote = ch
                out.append(ch)
            elif ch == "`":
                in_template = True
                out.append(ch)
            elif placeholders and ch == "{":
                placeholders[-1] += 1
                out.append(ch)
            elif placeholders and ch == "}":
                if placeholders[-1] == 0:
                    placeholders.pop()
                    in_template = True
                    out.append(" ")
                else:
                    placeholders[-1] -= 1
                    out.append(ch)
            else:
                out.append(ch)
            i += 1

        result.append("".join(out))

    return result


def split_top_level(text: str, separators: str = ",") -> list[str]:
    """Split on separators that are not nested inside brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "([{<":
            depth += 1
        elif ch in ")]}>" and depth > 0:
            depth -= 1
        if ch in separators and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def find_closing(
    lines: list[str], line_index: int, open_pos: int, max_lines: int = 20
) -> tuple[int, int] | None:
    """Find the parenthesis closing the one at ``lines[line_index][open_pos]``.

    Returns (line_index, column) of the closing parenthesis, or None when it
    does not close within ``max_lines`` following lines.
    """
    depth = 0
    last = min(len(lines), line_index + max_lines + 1)
    for li in range(line_index, last):
        line = lines[li]
        start = open_pos if li == line_index else 0
        for ci in range(start, len(line)):
            ch = line[ci]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    return li, ci
    return None


def slice_span(lines: list[str], start: tuple[int, int], end: tuple[int, int]) -> str:
    """Text strictly between two (line, column) positions, lines joined by spaces."""
    (sl, sc), (el, ec) = start, end
    if sl == el:
        return lines[sl][sc + 1 : ec]
    pieces = [lines[sl][sc + 1 :]]
    pieces.extend(lines[sl + 1 : el])
    pieces.append(lines[el][:ec])
    return " ".join(pieces)
