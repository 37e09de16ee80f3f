"""HTTP status code to reason phrase lookup.

Covers the standard codes plus WebDAV, nginx and vendor extensions seen in
front of the Management API.
"""

from __future__ import annotations


_REASON_PHRASES: dict[int, str] = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",  # WebDAV
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",  # WebDAV
    208: "Already Reported",  # WebDAV
    226: "IM Used",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    306: "Switch Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Time-out",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Request Entity Too Large",
    414: "Request-URI Too Large",
    415: "Unsupported Media Type",
    416: "Requested Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",  # RFC 2324
    420: "Enhance Your Calm",  # Twitter
    422: "Unprocessable Entity",  # WebDAV
    423: "Locked",  # WebDAV
    424: "Failed Dependency",  # WebDAV
    425: "Unordered Collection",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    444: "No Response",  # nginx
    449: "Retry With",  # Microsoft
    450: "Blocked By Parental Controls",  # Microsoft
    451: "Unavailable for Legal Reasons",
    494: "Request Header Too Large",  # nginx
    495: "Cert Error",  # nginx
    496: "No Cert",  # nginx
    497: "HTTP to HTTPS",  # nginx
    499: "Client Closed Request",  # nginx
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version not supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",  # WebDAV
    508: "Loop Detected",  # WebDAV
    509: "Bandwidth Limit Exceeded",  # Apache
    510: "Not Extended",
    511: "Network Authentication Required",
    598: "Network read timeout error",  # Microsoft
    599: "Network connect timeout error",  # Microsoft
}

_FALLBACK_CODE = 500


def reason_phrase(code: int) -> str:
    """Return the human-readable reason phrase for an HTTP status code.

    Unknown codes are treated like the base code of their class (RFC 2616
    section 6.1.1), so 432 reads as "Bad Request". When the class base is
    unknown too, the code is treated as a 500.
    """
    if code in _REASON_PHRASES:
        return _REASON_PHRASES[code]
    class_base = (code // 100) * 100
    if class_base in _REASON_PHRASES:
        return _REASON_PHRASES[class_base]
    return _REASON_PHRASES[_FALLBACK_CODE]


def status_class(code: int) -> int:
    """Status class of a code: 404 -> 4."""
    return code // 100
