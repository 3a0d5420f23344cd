"""Parse patto lines and convert notes to markdown for display."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import quote, unquote

NOTE_EXTENSION = ".pn"

# Scheme used for note links in converted markdown
NOTE_LINK_SCHEME = "patto:"

# Trailing line properties: {@task ...}, {@anchor ...}, !DATE / *DATE / -DATE, #anchor
_TRAILING_PROPERTY = re.compile(
    r"(?:^|\s+)(?:"
    r"\{@(?P<kind>task|anchor)\b(?P<args>[^}]*)\}"
    r"|(?P<mark>[!*-])(?P<date>\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2})?)"
    r"|#(?P<anchor>[^\s#\[\]{}]+)"
    r")\s*$"
)

_PROPERTY_ARG = re.compile(r"(\w+)=(\S+)")

_SHORTHAND_STATUS = {"!": "todo", "*": "doing", "-": "done"}

_DUE_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M")

# Bracket expressions: links, decorations, inline code and commands
_BRACKET = re.compile(r"\[([^\[\]]+)\]")

_URL = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://\S+$")

_DECORATION = re.compile(r"^([*/-]+)\s+(.+)$")

_BLOCK_COMMAND = re.compile(r"^\[@(code|quote)(?:\s+([^\]]*))?\]$")


@dataclass
class TaskProperty:
    """Task marker attached to a line."""

    status: str
    due: str | None = None

    @property
    def deadline(self) -> datetime | None:
        """Due moment, or None when absent or not a date.

        A bare date is due at the end of that day.
        """
        if not self.due:
            return None
        for fmt in _DUE_FORMATS:
            try:
                return datetime.strptime(self.due, fmt)
            except ValueError:
                continue
        try:
            return datetime.strptime(self.due, "%Y-%m-%d").replace(hour=23, minute=59, second=59)
        except ValueError:
            return None


@dataclass
class PattoLine:
    """A single line with its indentation and trailing properties removed."""

    depth: int
    text: str
    task: TaskProperty | None = None
    anchors: list[str] = field(default_factory=list)


@dataclass
class LinkInfo:
    """A link found in a note."""

    target: str
    anchor: str | None = None
    is_external: bool = False
    display_text: str | None = None


def parse_line(line: str) -> PattoLine:
    """Split a raw line into depth, text and properties."""
    line = line.rstrip()
    body = line.lstrip("\t")
    depth = len(line) - len(body)

    task: TaskProperty | None = None
    anchors: list[str] = []
    text = body
    while True:
        match = _TRAILING_PROPERTY.search(text)
        if match is None:
            break
        text = text[: match.start()]
        if match.group("kind") == "task":
            args = dict(_PROPERTY_ARG.findall(match.group("args")))
            task = TaskProperty(status=args.get("status", "todo"), due=args.get("due"))
        elif match.group("kind") == "anchor":
            name = match.group("args").strip()
            if name:
                anchors.insert(0, name)
        elif match.group("mark"):
            task = TaskProperty(
                status=_SHORTHAND_STATUS[match.group("mark")],
                due=match.group("date"),
            )
        else:
            anchors.insert(0, match.group("anchor"))

    return PattoLine(depth=depth, text=text.rstrip(), task=task, anchors=anchors)


def _classify_bracket(inner: str) -> LinkInfo | None:
    """Interpret the inside of a bracket expression as a link, if it is one."""
    inner = inner.strip()
    if not inner or inner[0] in "@`$" or _DECORATION.match(inner):
        return None

    parts = inner.split()
    if _URL.match(parts[0]):
        title = " ".join(parts[1:]) or None
        return LinkInfo(target=parts[0], is_external=True, display_text=title)
    if len(parts) > 1 and _URL.match(parts[-1]):
        return LinkInfo(target=parts[-1], is_external=True, display_text=" ".join(parts[:-1]))

    target, _, anchor = inner.partition("#")
    return LinkInfo(target=target.strip(), anchor=anchor.strip() or None)


def extract_links(content: str) -> list[LinkInfo]:
    """Extract all links from note content."""
    links = []
    for line in content.splitlines():
        for match in _BRACKET.finditer(line):
            link = _classify_bracket(match.group(1))
            if link is not None:
                links.append(link)
    return links


def normalize_note_name(name: str) -> str:
    """Append the note extension when missing."""
    name = name.strip()
    if name and not name.endswith(NOTE_EXTENSION):
        return f"{name}{NOTE_EXTENSION}"
    return name


def note_link_href(target: str, anchor: str | None = None) -> str:
    """Build a patto: href for an internal link."""
    href = f"{NOTE_LINK_SCHEME}{quote(target, safe='/')}"
    if anchor:
        href += f"#{quote(anchor, safe='')}"
    return href


def is_note_link(href: str) -> bool:
    """Check if a href is an internal note link."""
    return href.startswith(NOTE_LINK_SCHEME)


def note_link_target(href: str) -> tuple[str, str | None]:
    """Extract (note path, anchor) from a patto: href.

    The note path is empty for links to an anchor in the same note.
    """
    encoded = href[len(NOTE_LINK_SCHEME):] if is_note_link(href) else href
    target, _, anchor = encoded.partition("#")
    return normalize_note_name(unquote(target)), unquote(anchor) or None


def _render_bracket(match: re.Match) -> str:
    inner = match.group(1).strip()

    if inner.startswith("`") and inner.endswith("`") and len(inner) > 1:
        return f"`{inner.strip('`').strip()}`"
    if inner.startswith("$") and inner.endswith("$") and len(inner) > 1:
        return f"`{inner.strip('$').strip()}`"
    if inner.startswith("@img"):
        parts = inner.split(maxsplit=2)
        src = parts[1] if len(parts) > 1 else ""
        alt = parts[2].strip('"') if len(parts) > 2 else ""
        return f"![{alt}]({src})"
    if inner.startswith("@"):
        return inner[1:]

    decoration = _DECORATION.match(inner)
    if decoration:
        marks, text = decoration.groups()
        if "*" in marks:
            text = f"**{text}**"
        if "/" in marks:
            text = f"*{text}*"
        if "-" in marks:
            text = f"~~{text}~~"
        return text

    link = _classify_bracket(inner)
    if link is None:
        return match.group(0)
    if link.is_external:
        return f"[{link.display_text or link.target}]({link.target})"
    target = normalize_note_name(link.target)
    return f"[{inner}]({note_link_href(target, link.anchor)})"


def render_inline(text: str) -> str:
    """Convert bracket expressions in a line of text to markdown."""
    return _BRACKET.sub(_render_bracket, text)


def _render_task(text: str, task: TaskProperty) -> str:
    if task.status == "done":
        return f"[x] ~~{text}~~"
    due = f" `{task.due}`" if task.due else ""
    doing = " *(doing)*" if task.status == "doing" else ""
    return f"[ ] {text}{doing}{due}"


def patto_to_markdown(content: str) -> str:
    """Convert patto note content to markdown.

    Conversion rules:
    - Top-level lines → paragraphs
    - Indented lines → nested list items
    - Task lines → checkboxes (done tasks struck through)
    - [note] / [note#anchor] → links with the patto: scheme
    - [@code lang] / [@quote] → fenced code / blockquote of the indented block
    """
    result: list[str] = []
    block: tuple[str, int] | None = None

    for raw in content.splitlines():
        body = raw.lstrip("\t")
        depth = len(raw) - len(body)

        if block is not None:
            kind, block_depth = block
            if not raw.strip() or depth > block_depth:
                inner = raw[block_depth + 1:] if raw.strip() else ""
                if kind == "code":
                    result.append(inner)
                else:
                    result.append(f"> {render_inline(parse_line(inner).text)}".rstrip())
                continue
            if kind == "code":
                result.append("```")
            result.append("")
            block = None

        if not raw.strip():
            if result and result[-1] != "":
                result.append("")
            continue

        line = parse_line(raw)
        command = _BLOCK_COMMAND.match(line.text)
        if command:
            if result and result[-1] != "":
                result.append("")
            if command.group(1) == "code":
                result.append(f"```{(command.group(2) or '').strip()}")
            block = (command.group(1), depth)
            continue

        text = render_inline(line.text)
        if line.task is not None:
            text = _render_task(text, line.task)

        if depth == 0 and line.task is None:
            if result and result[-1] != "":
                result.append("")
            result.append(text)
            result.append("")
        else:
            indent = "  " * max(depth - 1, 0)
            result.append(f"{indent}- {text}")

    if block is not None and block[0] == "code":
        result.append("```")

    return "\n".join(result).strip("\n") + "\n" if result else ""
