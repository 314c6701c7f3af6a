"""
Atlassian Document Format (ADF) to plain text.

Jira Cloud returns rich-text fields (description, custom text fields) as an
ADF tree:

    {"type": "doc", "content": [
        {"type": "paragraph", "content": [{"type": "text", "text": "Hi"}]}
    ]}

adf_to_text() walks the tree depth-first, children left to right, and emits:

  text        -> node["text"]
  hardBreak   -> "\\n"
  block nodes -> their children, then a blank line
  anything    -> its children (unknown node types degrade to their text)

Runs of three or more newlines are then collapsed to two and the result is
stripped, so blocks come out as paragraph-separated text.

The walk uses an explicit stack rather than recursion so deeply nested
documents cannot exhaust the interpreter's recursion limit.
"""

import re
from typing import Any, List, Optional, Tuple

# Nodes followed by a block separator once their children are emitted.
BLOCK_TYPES = frozenset({"paragraph", "heading", "blockquote", "listItem", "codeBlock"})
BLOCK_SEPARATOR = "\n\n"

_NEWLINE_RUN_RE = re.compile(r"\n{3,}")

_ACCEPTANCE_RE = re.compile(r"Acceptance Criteria[:-]?\s*(.*)", re.IGNORECASE | re.DOTALL)
_ACCEPTANCE_SECTION_RE = re.compile(r"\bAcceptance\s*Criteria\b\s*[:-]?", re.IGNORECASE)
_USER_STORY_RE = re.compile(r"\bUser\s*Story\b\s*[:-]?", re.IGNORECASE)


def collapse_newlines(text: str) -> str:
    """Collapse 3+ consecutive newlines to exactly two, then strip."""
    return _NEWLINE_RUN_RE.sub("\n\n", text).strip()


def adf_to_text(node: Any) -> str:
    """
    Flatten an ADF node (or list of sibling nodes) into plain text.

    None yields "". A str is assumed to be already-flattened text and is
    returned unchanged. The input is never mutated and malformed shapes
    never raise.
    """
    if node is None:
        return ""
    if isinstance(node, str):
        return node

    parts: List[str] = []
    # (node, suffix): a None node means "emit suffix now"
    stack: List[Tuple[Any, Optional[str]]] = [(node, None)]

    while stack:
        current, suffix = stack.pop()

        if current is None:
            parts.append(suffix or "")
            continue

        if isinstance(current, list):
            stack.extend((child, None) for child in reversed(current))
            continue

        if not isinstance(current, dict):
            continue

        node_type = current.get("type")

        if node_type == "text":
            parts.append(current.get("text") or "")
            continue

        if node_type == "hardBreak":
            parts.append("\n")
            continue

        if node_type in BLOCK_TYPES:
            stack.append((None, BLOCK_SEPARATOR))

        content = current.get("content")
        if isinstance(content, list):
            stack.extend((child, None) for child in reversed(content))

    return collapse_newlines("".join(parts))


def extract_acceptance_criteria(
    text: Optional[str],
    field_value: Any = None,
) -> Optional[str]:
    """
    Return the acceptance-criteria excerpt for an issue.

    A non-empty dedicated field (plain string or ADF) takes precedence and the
    description is not searched at all. Otherwise everything after the first
    "Acceptance Criteria" marker in text is returned, stripped.

    Returns None when there is no field value and no marker.
    """
    if field_value:
        return adf_to_text(field_value).strip()

    if not text:
        return None

    match = _ACCEPTANCE_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def has_user_story(text: Optional[str]) -> bool:
    """True when the text contains a "User Story" section marker."""
    return bool(text) and _USER_STORY_RE.search(text) is not None


def has_acceptance_criteria(text: Optional[str]) -> bool:
    """True when the text contains an "Acceptance Criteria" section marker."""
    return bool(text) and _ACCEPTANCE_SECTION_RE.search(text) is not None
