"""
Incremental decoder for streamed LLM responses.

WHAT: Turn a byte stream of NDJSON or SSE-framed JSON lines into final text
WHY: Ollama streams bare JSON lines, OpenAI-style servers stream "data:" events
HOW: A per-request StreamAccumulator folded over incoming chunks; only complete
     lines are parsed, the trailing partial line waits for the next chunk
"""

import codecs
import json
from dataclasses import dataclass, field
from typing import Any

from .response_shapes import extract_error, extract_text, is_done
from .types import DecodedStream, UpstreamStreamError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"


def merge_fragment(aggregate: str, fragment: str) -> str:
    """
    Merge a streamed fragment into the running text.

    Upstreams that resend the growing answer instead of a delta produce
    fragments that start with the aggregate; those replace it.
    """
    if fragment.startswith(aggregate):
        return fragment
    return aggregate + fragment


@dataclass
class StreamAccumulator:
    """Decode state owned by exactly one in-flight request."""
    buffer: str = ""
    aggregate: str = ""
    last_payload: dict | None = None
    done: bool = False
    _decoder: Any = field(
        default_factory=lambda: codecs.getincrementaldecoder("utf-8")(errors="replace"),
        repr=False,
    )

    def feed(self, chunk: bytes | str) -> None:
        """Append a chunk and consume every complete line it finishes."""
        if isinstance(chunk, (bytes, bytearray)):
            chunk = self._decoder.decode(chunk)
        self.buffer += chunk

        *lines, self.buffer = self.buffer.split("\n")
        for line in lines:
            self.feed_line(line)

    def finish(self) -> DecodedStream:
        """Flush the trailing partial line and return the decoded result."""
        self.buffer += self._decoder.decode(b"", final=True)
        remainder, self.buffer = self.buffer, ""
        if remainder:
            self.feed_line(remainder)
        return DecodedStream(
            text=self.aggregate.strip(),
            raw_payload=self.last_payload,
            done=self.done,
        )

    def feed_line(self, line: str) -> None:
        """Classify one complete line and apply it."""
        line = line.strip()
        if not line:
            return

        if line.startswith(DATA_PREFIX):
            line = line[len(DATA_PREFIX):].strip()
            if not line:
                return
        elif line.startswith(":"):
            # SSE comment / keep-alive
            return

        if line == DONE_SENTINEL:
            self.done = True
            return

        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring unparseable stream line: {line[:100]}")
            return

        self.apply_payload(payload)

    def apply_payload(self, payload: Any) -> None:
        """
        Fold one decoded JSON payload into the accumulator.

        Raises:
            UpstreamStreamError: The payload carries an error field
        """
        if not isinstance(payload, dict):
            return

        error = extract_error(payload)
        if error is not None:
            raise UpstreamStreamError(
                error or "Upstream reported an error",
                status=payload.get("status"),
                detail=payload,
            )

        fragment = extract_text(payload)
        if fragment:
            self.aggregate = merge_fragment(self.aggregate, fragment)

        self.last_payload = payload
        if is_done(payload):
            self.done = True


async def decode_stream(stream: Any) -> DecodedStream:
    """
    Decode an async byte stream into final text.

    Args:
        stream: Async iterable of bytes (or str) chunks, e.g. httpx aiter_bytes()

    Returns:
        DecodedStream with trimmed text, last payload and done flag

    Raises:
        UpstreamStreamError: A decoded payload carried an error field
    """
    if stream is None or not hasattr(stream, "__aiter__"):
        return DecodedStream(text="", raw_payload=None, done=False)

    accumulator = StreamAccumulator()
    async for chunk in stream:
        accumulator.feed(chunk)
    return accumulator.finish()


def decode_body(body: bytes | str) -> DecodedStream:
    """
    Decode a fully buffered response body.

    A body that is one JSON document is applied as a single payload; anything
    else (e.g. NDJSON returned despite stream=false) goes through line decoding.
    """
    accumulator = StreamAccumulator()
    text = body.decode("utf-8", errors="replace") if isinstance(body, (bytes, bytearray)) else body

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        accumulator.feed(text)
    else:
        accumulator.apply_payload(payload)

    return accumulator.finish()
