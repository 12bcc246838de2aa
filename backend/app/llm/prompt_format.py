"""
Flatten chat messages into a single prompt string.

The generate protocol only accepts a raw prompt, so templates that produce
message lists are rendered as "ROLE: content" lines followed by an
"ASSISTANT:" cue.
"""

import json
from collections.abc import Mapping
from typing import Any

ASSISTANT_CUE = "\nASSISTANT:"


def _render_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if content is None:
        content = ""
    return json.dumps(content, separators=(",", ":"), ensure_ascii=False, default=str)


def messages_to_prompt(messages: Any) -> str:
    """
    Render a message list as a linear prompt.

    Never raises: entries that are not mappings render as an empty user turn,
    and a non-list value is returned as its string form ("" for None).

    Args:
        messages: List of ChatMessage-like mappings, or any other value

    Returns:
        Prompt string ending in "\\nASSISTANT:" for list input
    """
    if not isinstance(messages, (list, tuple)):
        return "" if messages is None else str(messages)

    lines = []
    for message in messages:
        if not isinstance(message, Mapping):
            message = {}
        role = str(message.get("role") or "user").upper()
        lines.append(f"{role}: {_render_content(message.get('content'))}")

    return "\n".join(lines) + ASSISTANT_CUE
