"""Convert HTML fragments into DatoCMS structured text (DAST) documents.

Only the node types a DatoCMS structured-text field accepts are produced:
block nodes (heading, paragraph, list, listItem, blockquote, code,
thematicBreak) and inline nodes (span, link). Script-like elements and
comments are dropped, unknown containers are unwrapped, and inline content
that sits directly next to blocks is wrapped in paragraphs.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

logger = logging.getLogger(__name__)

DROPPED_TAGS = {
    "script",
    "style",
    "template",
    "noscript",
    "iframe",
    "object",
    "embed",
    "head",
    "title",
    "meta",
    "link",
    "svg",
    "canvas",
}

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

LIST_STYLES = {"ul": "bulleted", "ol": "numbered"}

MARK_TAGS = {
    "strong": "strong",
    "b": "strong",
    "em": "emphasis",
    "i": "emphasis",
    "u": "underline",
    "ins": "underline",
    "s": "strikethrough",
    "del": "strikethrough",
    "strike": "strikethrough",
    "code": "code",
    "kbd": "code",
    "mark": "highlight",
}

# Tags that start a new block; everything else is treated as inline.
BLOCK_TAGS = {
    "html",
    "body",
    "main",
    "article",
    "section",
    "header",
    "footer",
    "aside",
    "nav",
    "div",
    "p",
    "ul",
    "ol",
    "li",
    "blockquote",
    "pre",
    "hr",
    "table",
    "thead",
    "tbody",
    "tfoot",
    "tr",
    "td",
    "th",
    "figure",
    "figcaption",
    "dl",
    "dt",
    "dd",
    *HEADING_LEVELS,
}

_WHITESPACE_RE = re.compile(r"\s+")


def html_to_structured_text(html: Optional[str]) -> dict:
    """Parse an HTML fragment and return a ``{"schema": "dast", "document": ...}`` value."""
    # html5lib applies the HTML5 optional end-tag rules and records sourceline/sourcepos.
    soup = BeautifulSoup(html or "", "html5lib")
    return {
        "schema": "dast",
        "document": {"type": "root", "children": _convert_blocks(soup.children)},
    }


def _is_skipped(node) -> bool:
    if isinstance(node, PreformattedString):
        return True
    if isinstance(node, Tag) and node.name in DROPPED_TAGS:
        logger.debug(
            "Dropping <%s> at line %s, column %s", node.name, node.sourceline, node.sourcepos
        )
        return True
    return False


def _convert_blocks(nodes: Iterable) -> List[dict]:
    blocks: List[dict] = []
    pending_inline: List = []

    def flush() -> None:
        if pending_inline:
            children = _convert_inline(pending_inline, ())
            if children:
                blocks.append({"type": "paragraph", "children": children})
            pending_inline.clear()

    for node in nodes:
        if _is_skipped(node):
            continue
        if isinstance(node, Tag) and node.name in BLOCK_TAGS:
            flush()
            blocks.extend(_convert_block(node))
        else:
            pending_inline.append(node)
    flush()
    return blocks


def _convert_block(tag: Tag) -> List[dict]:
    name = tag.name
    if name in HEADING_LEVELS:
        children = _convert_inline(tag.children, ())
        if not children:
            return []
        return [{"type": "heading", "level": HEADING_LEVELS[name], "children": children}]
    if name == "p":
        children = _convert_inline(tag.children, ())
        return [{"type": "paragraph", "children": children}] if children else []
    if name in LIST_STYLES:
        items = [
            item
            for item in (_convert_list_item(child) for child in tag.find_all("li", recursive=False))
            if item
        ]
        if not items:
            return []
        return [{"type": "list", "style": LIST_STYLES[name], "children": items}]
    if name == "blockquote":
        paragraphs = _flatten_to(_convert_blocks(tag.children), {"paragraph"})
        return [{"type": "blockquote", "children": paragraphs}] if paragraphs else []
    if name == "pre":
        code = tag.get_text()
        if not code.strip():
            return []
        node = {"type": "code", "code": code.strip("\n")}
        language = _code_language(tag)
        if language:
            node["language"] = language
        return [node]
    if name == "hr":
        return [{"type": "thematicBreak"}]
    # Generic containers are unwrapped.
    return _convert_blocks(tag.children)


def _convert_list_item(tag: Tag) -> Optional[dict]:
    children = _flatten_to(_convert_blocks(tag.children), {"paragraph", "list"})
    if not children:
        return None
    return {"type": "listItem", "children": children}


def _flatten_to(blocks: List[dict], allowed: set) -> List[dict]:
    """Coerce blocks into the node types allowed inside a parent node."""
    result: List[dict] = []
    for block in blocks:
        kind = block["type"]
        if kind in allowed:
            result.append(block)
        elif kind == "heading":
            result.append({"type": "paragraph", "children": block["children"]})
        elif kind == "blockquote":
            result.extend(_flatten_to(block["children"], allowed))
        elif kind == "list":
            for item in block["children"]:
                result.extend(_flatten_to(item["children"], allowed))
        elif kind == "code":
            result.append(
                {"type": "paragraph", "children": [{"type": "span", "value": block["code"], "marks": ["code"]}]}
            )
    return result


def _code_language(tag: Tag) -> Optional[str]:
    code = tag.find("code")
    for candidate in (code, tag):
        if candidate is None:
            continue
        for cls in candidate.get("class") or []:
            if cls.startswith("language-"):
                return cls[len("language-"):]
    return None


def _convert_inline(nodes: Iterable, marks: Tuple[str, ...]) -> List[dict]:
    return _normalize_inline(_collect_inline(nodes, marks))


def _collect_inline(nodes: Iterable, marks: Tuple[str, ...]) -> List[dict]:
    result: List[dict] = []
    for node in nodes:
        if _is_skipped(node):
            continue
        if isinstance(node, NavigableString):
            text = _WHITESPACE_RE.sub(" ", str(node))
            if text:
                result.append(_span(text, marks))
            continue
        if not isinstance(node, Tag):
            continue
        if node.name == "br":
            result.append(_span("\n", marks))
        elif node.name == "a" and node.get("href"):
            children = _normalize_inline(
                [child for child in _collect_inline(node.children, marks) if child["type"] == "span"]
            )
            if children:
                result.append({"type": "link", "url": node["href"], "children": children})
        elif node.name in MARK_TAGS:
            mark = MARK_TAGS[node.name]
            nested_marks = marks if mark in marks else marks + (mark,)
            result.extend(_collect_inline(node.children, nested_marks))
        else:
            result.extend(_collect_inline(node.children, marks))
    return result


def _span(value: str, marks: Tuple[str, ...]) -> dict:
    node = {"type": "span", "value": value}
    if marks:
        node["marks"] = list(marks)
    return node


def _normalize_inline(nodes: List[dict]) -> List[dict]:
    """Merge adjacent spans, collapse whitespace across boundaries and trim the edges."""
    merged: List[dict] = []
    for node in nodes:
        previous = merged[-1] if merged else None
        if (
            node["type"] == "span"
            and previous is not None
            and previous["type"] == "span"
            and previous.get("marks") == node.get("marks")
        ):
            previous["value"] += node["value"]
        else:
            merged.append(dict(node))

    previous_ends_with_space = True
    for node in merged:
        if node["type"] != "span":
            previous_ends_with_space = False
            continue
        value = node["value"].replace(" \n", "\n").replace("\n ", "\n")
        if previous_ends_with_space:
            value = value.lstrip(" ")
        node["value"] = value
        if value:
            previous_ends_with_space = value.endswith((" ", "\n"))

    for node in reversed(merged):
        if node["type"] != "span":
            break
        node["value"] = node["value"].rstrip()
        if node["value"]:
            break

    cleaned = [node for node in merged if node["type"] != "span" or node["value"]]
    if not any(node["type"] == "link" or node["value"].strip() for node in cleaned):
        return []
    return cleaned
