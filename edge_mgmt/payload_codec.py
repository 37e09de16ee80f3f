"""Payload Codec - Serializes outgoing request bodies by content type.

Structured payloads (dicts and lists for JSON, ElementTree documents for XML)
are turned into wire bytes. Everything else passes through untouched, so a
caller that already serialized its body gets exactly what it handed in.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any


JSON_MIME_TYPE = "application/json"
XML_MIME_TYPE = "application/xml"

# A leading <?xml ...?> declaration (or any other processing instruction).
_PROCESSING_INSTRUCTION = re.compile(r"^\s*<\?[^?]+\?>\s*")


def base_media_type(content_type: str | None) -> str:
    """Strip parameters such as ``; charset=utf-8`` from a content type."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip()


def encode(content_type: str | None, payload: Any) -> Any:
    """Serialize *payload* according to *content_type*.

    Comparison is case-sensitive and ignores content-type parameters. The
    caller's content type is not changed; the header keeps its charset.

    Returns:
        UTF-8 bytes for JSON and XML documents, otherwise *payload* unchanged.
    """
    media_type = base_media_type(content_type)

    if media_type == JSON_MIME_TYPE and isinstance(payload, (dict, list)):
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    if media_type == XML_MIME_TYPE:
        if isinstance(payload, ET.ElementTree):
            payload = payload.getroot()
        if isinstance(payload, ET.Element):
            text = ET.tostring(payload, encoding="unicode")
            return _PROCESSING_INSTRUCTION.sub("", text, count=1).encode("utf-8")

    return payload


def to_wire(body: Any) -> bytes:
    """Convert codec output into the bytes that go on the wire."""
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return str(body).encode("utf-8")
