"""Rule-based resolution of free text into structured commands.

Categories are tried in a fixed order (memory, ui, payments) and the first
category whose keywords appear in the text wins. Inside a category the action
is chosen by an ordered list of patterns; each branch assigns a fixed
confidence reflecting how literal the match was. Text that matches no category
but still reads like a query becomes a plain memory search.
"""

from __future__ import annotations

import re
from typing import Any

from mnemo.core.errors import ResolutionError

from .schemas import ParsedCommand

MEMORY_KEYWORDS = (
    "memory", "memories", "remember", "recall", "search", "find", "look for",
    "create", "add", "store", "save", "note", "notes", "knowledge",
    "list", "show", "display", "get", "retrieve", "delete", "remove",
    "update", "edit", "modify", "topic", "topics", "stats", "statistics",
)

UI_KEYWORDS = (
    "open", "show", "display", "launch", "start", "go to", "navigate",
    "dashboard", "visualizer", "uploader", "upload", "interface",
    "settings", "help", "view", "panel",
)
UI_TARGETS = ("dashboard", "visualizer", "uploader", "interface", "ui", "open")

PAYMENT_KEYWORDS = ("stripe", "payment", "transaction", "charge", "billing")

MEMORY_TYPE_VOCABULARY: dict[str, str] = {
    "conversation": "conversation",
    "conversations": "conversation",
    "chat": "conversation",
    "chats": "conversation",
    "knowledge": "knowledge",
    "learning": "knowledge",
    "education": "knowledge",
    "project": "project",
    "projects": "project",
    "work": "project",
    "context": "context",
    "general": "context",
    "reference": "reference",
    "references": "reference",
    "docs": "reference",
    "documentation": "reference",
}

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_LIST_LIMIT = 20
TITLE_MAX_CHARS = 50

_QUOTED_RE = re.compile(r'"([^"]+)"')
_SEARCH_VERB_RE = re.compile(r"search|find|look\s+for|recall|retrieve")
_SEARCH_PREFIX_RE = re.compile(r"^(search(\s+for)?|find|look\s+for|recall|retrieve)\s*", re.IGNORECASE)
_SEARCH_SCOPE_RE = re.compile(r"(^|\s+)(in|from)\s+(memory|memories|notes?|knowledge)\b.*$", re.IGNORECASE)
_CREATE_TOPIC_RE = re.compile(r"\b(create|add|new|make)\s+(a\s+|new\s+)?topic\b")
_CREATE_VERB_RE = re.compile(r"create|add|store|save|new|make")
_CREATE_PREFIX_RE = re.compile(r"^(create|add|store|save|new|make)\s*(memory|note)?\s*", re.IGNORECASE)
_LIST_VERB_RE = re.compile(r"list|show|display|get\s+(all|my)")
_TOPIC_RE = re.compile(r"topics?")
_STATS_RE = re.compile(r"stats|statistics|summary|overview")
_DELETE_VERB_RE = re.compile(r"delete|remove|trash")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

_TAG_PATTERNS = (
    re.compile(r"tagged?\s+with\s+([^,.]+)", re.IGNORECASE),
    re.compile(r"tags?:\s*([^,.]+)", re.IGNORECASE),
    re.compile(r"#(\w+)"),
)
_TAG_SPLIT_RE = re.compile(r"[,;|&]")

_ID_PATTERNS = (
    re.compile(r"\bmemory\s+([a-f0-9-]+)\b", re.IGNORECASE),
    re.compile(r"\bid[:\s]\s*([a-f0-9-]+)\b", re.IGNORECASE),
    re.compile(r"\b([a-f0-9]{8,}(?:-[a-f0-9]{4,})*)\b", re.IGNORECASE),
)


def resolve_command(text: str) -> ParsedCommand:
    lower = text.lower().strip()

    if _is_memory_command(lower):
        return _parse_memory_command(text, lower)
    if _is_ui_command(lower):
        return _parse_ui_command(text, lower)
    if _is_payment_command(lower):
        return _parse_payment_command(text, lower)
    if _is_search_query(lower):
        return ParsedCommand(
            tool="memory",
            action="search",
            args={"query": text.strip(), "limit": DEFAULT_SEARCH_LIMIT},
            confidence=0.7,
            original_input=text,
        )

    raise ResolutionError(
        f'Could not resolve command: "{text}". Try commands like "search for X", '
        '"create memory", "open dashboard", or "show my memories".'
    )


def _is_memory_command(lower: str) -> bool:
    return any(keyword in lower for keyword in MEMORY_KEYWORDS)


def _is_ui_command(lower: str) -> bool:
    return any(keyword in lower for keyword in UI_KEYWORDS) and any(target in lower for target in UI_TARGETS)


def _is_payment_command(lower: str) -> bool:
    return any(keyword in lower for keyword in PAYMENT_KEYWORDS)


def _is_search_query(lower: str) -> bool:
    return len(lower) > 3 and "?" not in lower and not lower.startswith("/") and not lower.startswith("help")


def _parse_memory_command(original: str, lower: str) -> ParsedCommand:
    args: dict[str, Any] = {}
    quoted = quoted_segments(original)

    if _SEARCH_VERB_RE.search(lower):
        action = "search"
        query = _SEARCH_PREFIX_RE.sub("", original.strip())
        query = _SEARCH_SCOPE_RE.sub("", query).strip()
        args["query"] = query or original.strip()
        args["limit"] = extract_number(lower, r"limit|results?|max") or DEFAULT_SEARCH_LIMIT
        types = extract_memory_types(lower)
        if types:
            args["type"] = types
        confidence = 0.9

    elif _CREATE_TOPIC_RE.search(lower):
        action = "create-topic"
        name = quoted[0] if quoted else extract_after_word(original, ["named", "called", "topic"])
        if name:
            args["name"] = name
        confidence = 0.9

    elif _CREATE_VERB_RE.search(lower):
        action = "create"
        if len(quoted) >= 2:
            args["title"] = quoted[0]
            args["content"] = quoted[1]
        elif len(quoted) == 1:
            content = quoted[0]
            sentences = _SENTENCE_SPLIT_RE.split(content)
            if len(sentences) > 1 and sentences[0].strip():
                args["title"] = sentences[0].strip()
            else:
                args["title"] = content[:TITLE_MAX_CHARS]
            args["content"] = content
        else:
            remaining = _CREATE_PREFIX_RE.sub("", original.strip())
            args["title"] = remaining[:TITLE_MAX_CHARS] or "New Memory"
            args["content"] = remaining or "Memory created via orchestrator"
        args["memory_type"] = extract_memory_type(lower) or "context"
        args["tags"] = extract_tags(lower)
        confidence = 0.95

    elif _LIST_VERB_RE.search(lower):
        action = "list"
        args["limit"] = extract_number(lower, r"limit|max|first|last") or DEFAULT_LIST_LIMIT
        types = extract_memory_types(lower)
        if types:
            args["memory_types"] = types
        tags = extract_tags(lower)
        if tags:
            args["tags"] = tags
        confidence = 0.9

    elif _TOPIC_RE.search(lower):
        action = "list-topics"
        confidence = 0.9

    elif _STATS_RE.search(lower):
        action = "stats"
        confidence = 0.95

    elif _DELETE_VERB_RE.search(lower):
        action = "delete"
        memory_id = extract_memory_id(original)
        if memory_id:
            args["id"] = memory_id
            confidence = 0.9
        else:
            confidence = 0.6

    else:
        # Memory vocabulary without a recognised verb ("remember ...").
        action = "search"
        args["query"] = original.strip()
        args["limit"] = DEFAULT_SEARCH_LIMIT
        confidence = 0.8

    return ParsedCommand(tool="memory", action=action, args=args, confidence=confidence, original_input=original)


def _parse_ui_command(original: str, lower: str) -> ParsedCommand:
    args: dict[str, Any] = {}
    action = "open-dashboard"
    confidence = 0.8

    if "dashboard" in lower:
        action = "open-dashboard"
        memory_id = extract_memory_id(original)
        if memory_id:
            args["memory_id"] = memory_id
        confidence = 0.95
    elif re.search(r"visual|graph|network", lower):
        action = "open-visualizer"
        memory_id = extract_memory_id(original)
        if memory_id:
            args["memory_id"] = memory_id
        confidence = 0.95
    elif re.search(r"upload|add\s+files?|import", lower):
        action = "open-uploader"
        args["type"] = "bulk" if re.search(r"bulk|batch|multiple", lower) else "manual"
        confidence = 0.9
    elif re.search(r"stats|statistics", lower):
        action = "show-stats"
        confidence = 0.9
    elif re.search(r"topics?", lower):
        action = "show-topics"
        confidence = 0.9
    elif re.search(r"settings?|config", lower):
        action = "open-settings"
        confidence = 0.9
    elif re.search(r"help|assistance|guide", lower):
        action = "show-help"
        topic = extract_after_word(original, ["help", "with", "about", "for"])
        if topic:
            args["topic"] = topic
        confidence = 0.9

    return ParsedCommand(tool="ui", action=action, args=args, confidence=confidence, original_input=original)


def _parse_payment_command(original: str, lower: str) -> ParsedCommand:
    confidence = 0.9 if re.search(r"transactions?|payments?|charges?", lower) else 0.8
    return ParsedCommand(
        tool="stripe",
        action="list-transactions",
        args={},
        confidence=confidence,
        original_input=original,
    )


def quoted_segments(text: str) -> list[str]:
    return _QUOTED_RE.findall(text)


def extract_memory_types(text: str) -> list[str]:
    found: list[str] = []
    for key, value in MEMORY_TYPE_VOCABULARY.items():
        if key in text and value not in found:
            found.append(value)
    return found


def extract_memory_type(text: str) -> str | None:
    types = extract_memory_types(text)
    return types[0] if types else None


def extract_tags(text: str) -> list[str]:
    """Collect tags from ``tagged with x``, ``tags: x, y`` and ``#x`` forms, deduplicated in order."""
    tags: list[str] = []
    for pattern in _TAG_PATTERNS:
        for match in pattern.finditer(text):
            for tag in _TAG_SPLIT_RE.split(match.group(1)):
                cleaned = tag.strip().lower()
                if cleaned and cleaned not in tags:
                    tags.append(cleaned)
    return tags


def extract_number(text: str, pattern: str) -> int | None:
    match = re.search(rf"(?:{pattern})\s+(\d+)", text, re.IGNORECASE)
    return int(match.group(1)) if match else None


def _looks_like_id(token: str) -> bool:
    stripped = token.strip("-")
    return bool(stripped) and (any(ch.isdigit() for ch in stripped) or len(stripped) >= 8)


def extract_memory_id(text: str) -> str | None:
    for pattern in _ID_PATTERNS:
        for match in pattern.finditer(text):
            token = match.group(1)
            if _looks_like_id(token):
                return token
    return None


def extract_after_word(text: str, words: list[str]) -> str | None:
    for word in words:
        match = re.search(rf"\b{re.escape(word)}\s+(.+?)(?:\s|$)", text, re.IGNORECASE)
        if match and match.group(1):
            return match.group(1).strip()
    return None
