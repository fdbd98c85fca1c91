"""stories_shared.multipart — multipart/form-data body decoding.

The decoder works on raw bytes end to end. Callers must undo any transport
encoding (API Gateway base64) before calling ``decode``; file payloads are
never passed through a text codec so images and video survive byte-for-byte.

Parsing is lenient: parts without a Content-Disposition header, without a
``name`` parameter, or without a header terminator are skipped rather than
failing the whole request. Callers see such fields as absent. When a name
repeats, the last part wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

from stories_shared.errors import BadRequest

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "MultipartField",
    "decode",
    "is_multipart",
    "parse_boundary",
]

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CRLF = b"\r\n"
_HEADER_TERMINATOR = b"\r\n\r\n"

_BOUNDARY_RE = re.compile(r'boundary\s*=\s*(?:"([^"]+)"|([^;\s]+))', re.IGNORECASE)
# Anchored on the parameter separator so "name" never matches inside "filename".
_NAME_RE = re.compile(r'(?:^|;)\s*name\s*=\s*(?:"([^"]*)"|([^;\s]*))', re.IGNORECASE)
_FILENAME_RE = re.compile(r'(?:^|;)\s*filename\s*=\s*(?:"([^"]*)"|([^;\s]*))', re.IGNORECASE)


@dataclass
class MultipartField:
    """One decoded form part. ``filename`` is None for plain text fields."""

    name: str
    value: Optional[str] = None
    filename: Optional[str] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    data: bytes = b""

    @property
    def is_file(self) -> bool:
        return self.filename is not None

    @property
    def size(self) -> int:
        return len(self.data)


def is_multipart(content_type: str) -> bool:
    return "multipart/form-data" in (content_type or "").lower()


def parse_boundary(content_type: str) -> Optional[str]:
    """Extract the boundary parameter from a Content-Type header value."""
    match = _BOUNDARY_RE.search(content_type or "")
    if not match:
        return None
    return match.group(1) or match.group(2)


def _param(pattern: re.Pattern, header_value: str) -> Optional[str]:
    match = pattern.search(header_value)
    if not match:
        return None
    return match.group(1) if match.group(1) is not None else match.group(2)


def _parse_headers(block: bytes) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for line in block.decode("utf-8", errors="replace").split("\r\n"):
        name, sep, value = line.partition(":")
        if not sep:
            continue
        headers[name.strip().lower()] = value.strip()
    return headers


def _strip_delimiter_line(segment: bytes) -> bytes:
    """Drop the transport padding and CRLF that follow a boundary delimiter."""
    line_end = segment.find(_CRLF)
    if line_end != -1 and not segment[:line_end].strip(b" \t"):
        return segment[line_end + len(_CRLF):]
    return segment


def _parse_part(part: bytes) -> Optional[MultipartField]:
    header_end = part.find(_HEADER_TERMINATOR)
    if header_end == -1:
        return None

    headers = _parse_headers(part[:header_end])
    disposition = headers.get("content-disposition")
    if not disposition:
        return None
    name = _param(_NAME_RE, disposition)
    if not name:
        return None

    content = part[header_end + len(_HEADER_TERMINATOR):]
    # Only the CRLF right before the next delimiter belongs to the framing.
    if content.endswith(_CRLF):
        content = content[: -len(_CRLF)]

    content_type = headers.get("content-type") or DEFAULT_CONTENT_TYPE
    filename = _param(_FILENAME_RE, disposition)
    if filename is not None:
        return MultipartField(
            name=name,
            filename=filename,
            content_type=content_type,
            data=content,
        )
    return MultipartField(
        name=name,
        value=content.decode("utf-8", errors="replace").strip(),
        content_type=content_type,
        data=content,
    )


def decode(raw_body: bytes, boundary: str) -> Dict[str, MultipartField]:
    """Decode a multipart/form-data body into a mapping of field name -> field.

    Args:
        raw_body: Exact body bytes (already base64-decoded if applicable).
        boundary: The ``boundary=`` token from the request Content-Type.

    Returns:
        Mapping of field name to ``MultipartField``. Empty when no part
        could be decoded; deciding whether that is fatal is up to the caller.
    """
    if not boundary:
        raise BadRequest("Missing boundary in multipart form data")

    delimiter = b"--" + boundary.encode("utf-8")
    fields: Dict[str, MultipartField] = {}
    # Segment 0 is the preamble; a segment starting with "--" follows the
    # close delimiter and only holds the epilogue.
    for segment in raw_body.split(delimiter)[1:]:
        if segment.startswith(b"--"):
            break
        field = _parse_part(_strip_delimiter_line(segment))
        if field is None:
            continue
        fields[field.name] = field
    return fields
