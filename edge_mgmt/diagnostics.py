"""Diagnostic capture - header snapshots, credential masking, debug callbacks.

Every call through the executor produces one DiagnosticRecord. Registered
debug callbacks observe it after it is finalized; each callback gets its
own deep copy, so nothing a callback does can leak into the executor or
into the next callback.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable

from edge_mgmt.models import DiagnosticRecord


logger = logging.getLogger(__name__)

MASK = "[**masked**]"

DebugCallback = Callable[[DiagnosticRecord], Any]

# Authorization/Authentication header lines inside a raw header block.
# Group 1 is the header name as sent, group 2 the credential value.
_AUTH_LINE = re.compile(r"^(Authentication|Authorization):[ \t]*([^\r\n]*)", re.IGNORECASE | re.MULTILINE)
_AUTH_SCHEME = re.compile(r"^(Basic|Digest|Bearer)\s+\S", re.IGNORECASE)


def _mask_credentials(value: str) -> str:
    match = _AUTH_SCHEME.match(value)
    if match:
        return f"{match.group(1)} {MASK}"
    return MASK


def mask_authorization(raw_headers: str) -> str:
    """Replace credential tokens in a raw header block with a placeholder.

    The auth scheme (Basic, Digest, Bearer) survives so logs still show how
    the call authenticated. Values with any other scheme are masked whole.
    """

    def replacer(match: re.Match) -> str:
        return f"{match.group(1)}: {_mask_credentials(match.group(2))}"

    return _AUTH_LINE.sub(replacer, raw_headers)


def format_raw_headers(headers: Iterable[tuple[str, str]]) -> str:
    """Render header pairs as a CRLF-terminated ``Name: value`` block."""
    return "".join(f"{name}: {value}\r\n" for name, value in headers)


class DebugCallbacks:
    """Ordered list of observers notified once per completed call."""

    def __init__(self, callbacks: Iterable[DebugCallback] = (), log: logging.Logger | None = None) -> None:
        self._callbacks: list[DebugCallback] = list(callbacks)
        self._logger = log or logger

    def __len__(self) -> int:
        return len(self._callbacks)

    def register(self, callback: DebugCallback) -> None:
        if not callable(callback):
            raise TypeError(f"debug callback must be callable, got {type(callback).__name__}")
        self._callbacks.append(callback)

    def unregister(self, callback: DebugCallback) -> None:
        """Remove a callback. Unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def notify(self, record: DiagnosticRecord) -> None:
        """Invoke every callback in registration order.

        A failing callback is logged and skipped; it never changes the
        outcome of the request that produced *record*.
        """
        for callback in list(self._callbacks):
            try:
                callback(record.model_copy(deep=True))
            except Exception:
                self._logger.exception(
                    "Debug callback %(callback)s failed",
                    {"callback": getattr(callback, "__qualname__", repr(callback))},
                )
