"""Flatten Atlassian Document Format (ADF) trees into Markdown text."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from ..logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_EXCLUDED_NODES = frozenset(
    {
        "heading",
        "media",
        "mediaGroup",
        "mediaSingle",
        "mediaInline",
        "mention",
        "emoji",
        "status",
        "inlineCard",
        "blockCard",
        "date",
    }
)

PANEL_LABELS = {
    "info": "NOTE",
    "note": "NOTE",
    "warning": "WARNING",
    "error": "CAUTION",
    "success": "TIP",
}


def is_adf(value: Any) -> bool:
    """Return True when ``value`` looks like an ADF ``doc`` node."""

    return (
        isinstance(value, Mapping)
        and value.get("type") == "doc"
        and value.get("version") == 1
        and isinstance(value.get("content"), list)
    )


def _children(node: Mapping[str, Any]) -> list[Any]:
    content = node.get("content")
    return content if isinstance(content, list) else []


def _level(node: Mapping[str, Any]) -> int:
    attrs = node.get("attrs") or {}
    return int(attrs.get("level") or 1)


def node_text(node: Any) -> str:
    """Return the concatenated plain text below ``node``."""

    if not isinstance(node, Mapping):
        return ""
    if node.get("type") == "text":
        return str(node.get("text") or "")
    return "".join(node_text(child) for child in _children(node))


def extract_section(document: Any, heading: str = "Release Note") -> Any:
    """Return a new doc holding only the nodes under ``heading``.

    The heading text is matched case-insensitively; the section ends at the
    next heading of the same or a higher level. A missing heading yields an
    empty doc.
    """

    if not is_adf(document):
        return document
    content = document["content"]
    wanted = heading.strip().lower()

    start = next(
        (
            index
            for index, node in enumerate(content)
            if isinstance(node, Mapping)
            and node.get("type") == "heading"
            and node_text(node).strip().lower() == wanted
        ),
        None,
    )
    section: list[Any] = []
    if start is not None:
        level = _level(content[start])
        for node in content[start + 1 :]:
            if isinstance(node, Mapping) and node.get("type") == "heading" and _level(node) <= level:
                break
            section.append(node)
    return {"type": "doc", "version": 1, "content": section}


class _Converter:
    def __init__(self, excluded: Iterable[str]) -> None:
        self.excluded = frozenset(excluded)
        self._handlers: dict[str, Callable[[Mapping[str, Any], int], str]] = {
            "doc": self._doc,
            "paragraph": lambda node, depth: f"{self._inline(node)}\n\n",
            "bulletList": self._list,
            "orderedList": self._list,
            "listItem": self._list_item,
            "codeBlock": self._code_block,
            "blockquote": self._blockquote,
            "panel": self._panel,
            "rule": lambda node, depth: "\n---\n\n",
            "table": self._table,
            "tableRow": self._table_row,
            "tableHeader": self._table_cell,
            "tableCell": self._table_cell,
            "text": lambda node, depth: apply_marks(node),
            "hardBreak": lambda node, depth: "  \n",
            "taskList": self._task_list,
            "taskItem": self._task_item,
        }

    def convert(self, node: Any, depth: int = 0) -> str:
        if not isinstance(node, Mapping):
            return ""
        node_type = node.get("type")
        if node_type in self.excluded:
            return ""
        handler = self._handlers.get(str(node_type))
        if handler is None:
            LOGGER.debug("Flattening unsupported ADF node", extra={"node_type": node_type})
            return node_text(node)
        return handler(node, depth)

    def _doc(self, node: Mapping[str, Any], depth: int) -> str:
        return "".join(self.convert(child, depth) for child in _children(node))

    def _inline(self, node: Mapping[str, Any]) -> str:
        return "".join(self.convert(child) for child in _children(node))

    def _list(self, node: Mapping[str, Any], depth: int) -> str:
        items = "".join(self.convert(child, depth + 1) for child in _children(node))
        return f"{items}\n"

    def _list_item(self, node: Mapping[str, Any], depth: int) -> str:
        indent = "  " * max(depth - 1, 0)
        texts: list[str] = []
        nested: list[str] = []
        for child in _children(node):
            child_type = child.get("type") if isinstance(child, Mapping) else None
            if child_type == "paragraph":
                texts.append(self._inline(child).strip())
            elif child_type in ("bulletList", "orderedList"):
                nested.append(self.convert(child, depth))
            else:
                texts.append(self.convert(child, depth).strip())
        return f"{indent}- {' '.join(texts)}\n" + "".join(nested)

    def _code_block(self, node: Mapping[str, Any], depth: int) -> str:
        language = (node.get("attrs") or {}).get("language") or ""
        code = "".join(
            str(child.get("text") or "")
            for child in _children(node)
            if isinstance(child, Mapping) and child.get("type") == "text"
        )
        return f"```{language}\n{code}\n```\n\n"

    def _blockquote(self, node: Mapping[str, Any], depth: int) -> str:
        text = "\n".join(self.convert(child).strip() for child in _children(node))
        quoted = "\n".join(f"> {line}" for line in text.split("\n"))
        return f"{quoted}\n\n"

    def _panel(self, node: Mapping[str, Any], depth: int) -> str:
        panel_type = (node.get("attrs") or {}).get("panelType") or "info"
        label = PANEL_LABELS.get(panel_type, "NOTE")
        text = "\n".join(self.convert(child).strip() for child in _children(node))
        return f"> **{label}:** {text}\n\n"

    def _table(self, node: Mapping[str, Any], depth: int) -> str:
        rows = _children(node)
        if not rows:
            return ""
        rendered = [self.convert(row) for row in rows]
        first = rows[0] if isinstance(rows[0], Mapping) else {}
        header_cells = _children(first)
        if any(isinstance(cell, Mapping) and cell.get("type") == "tableHeader" for cell in header_cells):
            separator = "|" + " --- |" * len(header_cells) + "\n"
            return rendered[0] + separator + "".join(rendered[1:]) + "\n"
        return "".join(rendered) + "\n"

    def _table_row(self, node: Mapping[str, Any], depth: int) -> str:
        cells = [self.convert(cell) for cell in _children(node)]
        return f"| {' | '.join(cells)} |\n"

    def _table_cell(self, node: Mapping[str, Any], depth: int) -> str:
        return " ".join(self.convert(child).strip() for child in _children(node))

    def _task_list(self, node: Mapping[str, Any], depth: int) -> str:
        return "".join(self.convert(child, depth + 1) for child in _children(node))

    def _task_item(self, node: Mapping[str, Any], depth: int) -> str:
        done = (node.get("attrs") or {}).get("state") == "DONE"
        indent = "  " * max(depth - 1, 0)
        text = " ".join(self.convert(child, depth).strip() for child in _children(node))
        return f"{indent}- {'[x]' if done else '[ ]'} {text}\n"


def apply_marks(node: Mapping[str, Any]) -> str:
    text = str(node.get("text") or "")
    for mark in node.get("marks") or []:
        mark_type = mark.get("type") if isinstance(mark, Mapping) else None
        if mark_type == "strong":
            text = f"**{text}**"
        elif mark_type == "em":
            text = f"_{text}_"
        elif mark_type == "code":
            text = f"`{text}`"
        elif mark_type == "link":
            href = (mark.get("attrs") or {}).get("href") or ""
            text = f"[{text}]({href})"
        elif mark_type == "strike":
            text = f"~~{text}~~"
        elif mark_type == "underline":
            text = f"<u>{text}</u>"
    return text


def convert(document: Any, exclude_nodes: Iterable[str] | None = None) -> str:
    """Return Markdown for an ADF doc, or ``""`` when ``document`` is not ADF."""

    if not is_adf(document):
        return ""
    converter = _Converter(DEFAULT_EXCLUDED_NODES if exclude_nodes is None else exclude_nodes)
    return "".join(converter.convert(node) for node in document["content"]).strip()


__all__ = [
    "DEFAULT_EXCLUDED_NODES",
    "apply_marks",
    "convert",
    "extract_section",
    "is_adf",
    "node_text",
]
