"""Legacy Method Dispatcher - Resolves snake_case calls to camelCase methods.

Older callers spell resource methods in snake_case (``get_list_detail``).
Each class built with LegacyMethodMeta gets a dispatch table of its public
methods at class creation; unknown attribute lookups on instances and on
the class itself are normalized to camelCase and resolved against that
table. A successful resolution logs a deprecation notice once per
(class, legacy name).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

from edge_mgmt.executor import ManagementApiError


logger = logging.getLogger(__name__)

_warned: set[tuple[str, str]] = set()


class UnknownMethodFailure(ManagementApiError, AttributeError):
    """Raised when a legacy-style call cannot be resolved to a real method."""

    def __init__(self, class_name: str, attempted_name: str, detail: str = "") -> None:
        message = f'Class "{class_name}" contains no such method "{attempted_name}"'
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.class_name = class_name
        self.attempted_name = attempted_name


def normalize_method_name(name: str) -> str | None:
    """Convert a lowercase snake_case name to camelCase.

    Returns None when the name does not qualify: no underscore, any
    uppercase character, or a leading underscore (private/dunder names).
    """
    if "_" not in name or name != name.lower() or name.startswith("_"):
        return None
    first, *rest = name.split("_")
    return first + "".join(part[:1].upper() + part[1:] for part in rest)


def _public_methods(cls: type) -> frozenset[str]:
    names: set[str] = set()
    for klass in cls.__mro__:
        for attr, value in vars(klass).items():
            if attr.startswith("_"):
                continue
            if isinstance(value, (staticmethod, classmethod)) or inspect.isfunction(value):
                names.add(attr)
    return frozenset(names)


def _call_site(depth: int) -> tuple[str, int]:
    frame = inspect.currentframe()
    for _ in range(depth + 1):
        if frame is None:
            break
        frame = frame.f_back
    if frame is None:
        return "<unknown>", 0
    return frame.f_code.co_filename, frame.f_lineno


def _warn_deprecated(class_name: str, method: str, log: logging.Logger) -> None:
    key = (class_name, method)
    if key in _warned:
        return
    _warned.add(key)
    # Frames above this one: resolve_legacy_name, __getattr__, the caller.
    filename, lineno = _call_site(3)
    log.warning(
        "Deprecated method %(class)s:%(method)s was invoked in file %(file)s, line %(line)s. "
        "Please use camelCase method name instead.",
        {"class": class_name, "method": method, "file": filename, "line": lineno},
    )


def resolve_legacy_name(
    class_name: str,
    dispatch: frozenset[str],
    name: str,
    log: logging.Logger | None = None,
) -> str:
    """Return the camelCase method name *name* stands for.

    Raises:
        UnknownMethodFailure: If *name* does not qualify or resolves to a
            method that does not exist.
    """
    camel_case = normalize_method_name(name)
    if camel_case is None:
        raise UnknownMethodFailure(class_name, name)
    if camel_case not in dispatch:
        raise UnknownMethodFailure(class_name, name, "even after camelCasing")
    _warn_deprecated(class_name, name, log or logger)
    return camel_case


class LegacyMethodMeta(type):
    """Metaclass that builds the dispatch table and handles class-level calls."""

    def __init__(cls, name: str, bases: tuple[type, ...], namespace: dict[str, Any], **kwargs: Any) -> None:
        super().__init__(name, bases, namespace, **kwargs)
        cls._legacy_dispatch = _public_methods(cls)

    def __getattr__(cls, name: str) -> Any:
        if name.startswith("_"):
            raise UnknownMethodFailure(cls.__name__, name)
        target = resolve_legacy_name(cls.__name__, cls._legacy_dispatch, name)
        return getattr(cls, target)


class LegacyDispatch(metaclass=LegacyMethodMeta):
    """Base class giving instances snake_case access to camelCase methods."""

    def __getattr__(self, name: str) -> Any:
        cls = type(self)
        if name.startswith("_"):
            raise UnknownMethodFailure(cls.__name__, name)
        log = self.__dict__.get("_logger") or logger
        target = resolve_legacy_name(cls.__name__, cls._legacy_dispatch, name, log)
        return getattr(self, target)
