"""
Response shape matchers.

WHAT: Pull the text fragment out of the JSON payloads upstreams send back
WHY: Ollama generate, Ollama chat and OpenAI-style payloads differ in shape
HOW: Ordered list of pure matchers (payload -> text or None), first match wins
"""

from typing import Any, Callable, Optional

ShapeMatcher = Callable[[dict], Optional[str]]


def _first_choice(payload: dict) -> dict | None:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return None


def _string_at(container: Any, key: str) -> str | None:
    if isinstance(container, dict):
        value = container.get(key)
        if isinstance(value, str):
            return value
    return None


def match_generate_response(payload: dict) -> str | None:
    """Ollama /api/generate: {"response": "..."}"""
    return _string_at(payload, "response")


def match_chat_message(payload: dict) -> str | None:
    """Ollama /api/chat: {"message": {"content": "..."}}"""
    return _string_at(payload.get("message"), "content")


def match_choice_delta(payload: dict) -> str | None:
    """OpenAI streaming chunk: {"choices": [{"delta": {"content": "..."}}]}"""
    choice = _first_choice(payload)
    return _string_at(choice.get("delta"), "content") if choice else None


def match_choice_message(payload: dict) -> str | None:
    """OpenAI chat completion: {"choices": [{"message": {"content": "..."}}]}"""
    choice = _first_choice(payload)
    return _string_at(choice.get("message"), "content") if choice else None


def match_choice_text(payload: dict) -> str | None:
    """Legacy completions: {"choices": [{"text": "..."}]}"""
    return _string_at(_first_choice(payload), "text")


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (
    match_generate_response,
    match_chat_message,
    match_choice_delta,
    match_choice_message,
    match_choice_text,
)


def extract_text(payload: Any) -> str | None:
    """
    Extract the text fragment carried by a payload.

    Args:
        payload: Decoded JSON value

    Returns:
        The first matching fragment, or None if no shape matches
    """
    if not isinstance(payload, dict):
        return None
    for matcher in SHAPE_MATCHERS:
        text = matcher(payload)
        if text is not None:
            return text
    return None


def extract_error(payload: Any) -> str | None:
    """Return the error message of a payload that carries an error field."""
    if not isinstance(payload, dict) or payload.get("error") is None:
        return None
    error = payload["error"]
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def is_done(payload: Any) -> bool:
    """True if the payload marks the end of generation."""
    if not isinstance(payload, dict):
        return False
    if payload.get("done") is True:
        return True
    choice = _first_choice(payload)
    return bool(choice and choice.get("finish_reason"))
