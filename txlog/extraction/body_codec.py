"""Content-type aware decoding of request bodies and response content.

Bodies are read from in-memory streams owned by the host. Reading never
leaves a shared stream exhausted: seekable streams are rewound to where they
were, and a non-seekable request body is swapped for a ``BytesIO`` copy so
the host can still consume it afterwards.
"""

from __future__ import annotations

import io
import json
from typing import Any, BinaryIO, Iterable
from urllib.parse import parse_qs

from txlog.extraction.redaction import JsonValue, mask_fields
from txlog.models.transaction import TransactionRequest, TransactionResponse

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
RAW_BODY_KEY = "raw_body"
RAW_CONTENT_KEY = "raw_content"


def _as_bytes(data: Any) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _seekable(stream: BinaryIO) -> bool:
    try:
        return bool(stream.seekable())
    except (AttributeError, ValueError):
        return False


def read_stream(stream: BinaryIO | None) -> bytes:
    """Read a seekable stream from the start and restore its position."""

    if stream is None:
        return b""
    position = stream.tell()
    try:
        stream.seek(0)
        return _as_bytes(stream.read())
    finally:
        stream.seek(position)


def snapshot_request_body(request: TransactionRequest | None) -> bytes:
    if request is None or request.body is None:
        return b""
    if _seekable(request.body):
        return read_stream(request.body)

    # One-shot stream: keep a replayable copy in its place.
    data = _as_bytes(request.body.read())
    request.body = io.BytesIO(data)
    return data


def materialize_response(response: TransactionResponse | None) -> bytes:
    """Run the response's contents writer against a scratch buffer."""

    if response is None or response.contents is None:
        return b""
    buffer = io.BytesIO()
    response.contents(buffer)
    return buffer.getvalue()


def decode_form(text: str) -> dict[str, str]:
    parsed = parse_qs(text, keep_blank_values=True)
    return {key: ",".join(values) for key, values in parsed.items()}


def decode_body(
    raw: bytes | str | None,
    content_type: str | None,
    redaction_list: Iterable[str] | None = None,
    *,
    raw_key: str = RAW_BODY_KEY,
    allow_form: bool = True,
) -> JsonValue:
    """Decode ``raw`` according to ``content_type``.

    JSON that fails to parse comes back as the original string. Blank
    content is always wrapped as ``{raw_key: ""}`` (or the whitespace given).
    """

    text = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else (raw or "")
    media_type = (content_type or "").lower()

    if not text.strip():
        return {raw_key: text}

    if "json" in media_type:
        try:
            parsed = json.loads(text)
        except ValueError:
            return text
        return mask_fields(parsed, redaction_list)

    if allow_form and FORM_CONTENT_TYPE in media_type:
        return mask_fields(decode_form(text), redaction_list)

    return {raw_key: text}


def decode_request_body(request: TransactionRequest | None, redaction_list: Iterable[str] | None = None) -> JsonValue:
    if request is None:
        return None
    raw = snapshot_request_body(request)
    return decode_body(raw, request.content_type, redaction_list, raw_key=RAW_BODY_KEY)


def decode_response_content(
    response: TransactionResponse | None,
    redaction_list: Iterable[str] | None = None,
    raw: bytes | None = None,
) -> JsonValue:
    if response is None:
        return None
    if raw is None:
        raw = materialize_response(response)
    return decode_body(raw, response.content_type, redaction_list, raw_key=RAW_CONTENT_KEY, allow_form=False)
