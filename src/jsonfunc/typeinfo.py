"""Type-annotation helpers used by the signature binding machinery.

Everything here works on resolved annotations (the output of
``typing.get_type_hints``), never on strings.
"""

from __future__ import annotations

import asyncio
import collections.abc
import dataclasses
import enum
import multiprocessing.queues
import queue
import types
import typing
from typing import Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel
from starlette.datastructures import State
from starlette.requests import HTTPConnection

NoneType = type(None)

# Types whose values block or stream and therefore cannot travel in a single
# JSON request/response exchange.
BLOCKING_TYPES: tuple[type, ...] = (
    queue.Queue,
    queue.SimpleQueue,
    asyncio.Queue,
    multiprocessing.queues.Queue,
    collections.abc.Iterator,
    collections.abc.AsyncIterator,
)

# First-parameter annotations that receive the ambient request context.
CONTEXT_TYPES: tuple[type, ...] = (HTTPConnection, State)


def is_union(tp: Any) -> bool:
    """Return True for ``Union[...]``, ``Optional[...]`` and ``X | Y``."""
    return get_origin(tp) in (Union, types.UnionType)


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Split ``T | None`` into ``(T, True)``; other types give ``(tp, False)``."""
    if not is_union(tp):
        return tp, False
    args = get_args(tp)
    if NoneType not in args:
        return tp, False
    rest = tuple(arg for arg in args if arg is not NoneType)
    if len(rest) == 1:
        return rest[0], True
    return Union[rest], True  # noqa: UP007


def _as_class(tp: Any) -> type | None:
    origin = get_origin(tp) or tp
    return origin if isinstance(origin, type) else None


def is_error_type(tp: Any) -> bool:
    """True when every non-None member of ``tp`` is an exception class."""
    inner, _ = unwrap_optional(tp)
    members = get_args(inner) if is_union(inner) else (inner,)
    for member in members:
        cls = _as_class(member)
        if cls is None or not issubclass(cls, BaseException):
            return False
    return True


def is_blocking_type(tp: Any) -> bool:
    """True when ``tp`` (or any member of a union) is channel-like."""
    if is_union(tp):
        return any(is_blocking_type(arg) for arg in get_args(tp))
    cls = _as_class(tp)
    return cls is not None and issubclass(cls, BLOCKING_TYPES)


def is_context_type(tp: Any) -> bool:
    cls = _as_class(tp)
    return cls is not None and issubclass(cls, CONTEXT_TYPES)


def type_name(tp: Any) -> str:
    """Short human-readable name for an annotation."""
    if tp is NoneType:
        return "None"
    if tp is Any:
        return "Any"
    if isinstance(tp, type) and not get_args(tp):
        return tp.__qualname__
    return repr(tp).replace("typing.", "")


def is_assignable(src: Any, dst: Any) -> bool:
    """Whether a value declared as ``src`` may be passed where ``dst`` is declared.

    Supports ``Any`` on either side, plain subclassing, generic aliases with
    identical (or unspecified) arguments, and unions on either side.
    """
    if src is Any or dst is Any or src == dst:
        return True
    if is_union(dst):
        members = get_args(src) if is_union(src) else (src,)
        return all(any(is_assignable(m, d) for d in get_args(dst)) for m in members)
    if is_union(src):
        return False
    src_cls, dst_cls = _as_class(src), _as_class(dst)
    if src_cls is None or dst_cls is None or not issubclass(src_cls, dst_cls):
        return False
    dst_args = get_args(dst)
    return not dst_args or get_args(src) == dst_args


def zero_value(tp: Any) -> Any:
    """Build the zero value for an annotation.

    Scalars and containers give their empty value, fixed-length tuples give a
    tuple of zeros, enums their first member, pydantic models and dataclasses
    are built from the zero values of their required fields. Optional types,
    exceptions and anything else give None.
    """
    if tp is Any or tp is NoneType:
        return None
    _, optional = unwrap_optional(tp)
    if optional or is_union(tp):
        return None
    origin = get_origin(tp)
    if origin is Literal:
        return get_args(tp)[0]
    cls = _as_class(tp)
    if cls is None or issubclass(cls, BaseException):
        return None
    if issubclass(cls, enum.Enum):
        return next(iter(cls), None)
    if cls is tuple:
        args = get_args(tp)
        if not args or args[-1] is Ellipsis:
            return ()
        return tuple(zero_value(arg) for arg in args)
    if issubclass(cls, (bool, int, float, complex, str, bytes, list, dict, set, frozenset)):
        return cls()
    if cls in (collections.abc.Sequence, collections.abc.MutableSequence):
        return []
    if cls in (collections.abc.Mapping, collections.abc.MutableMapping):
        return {}
    if cls in (collections.abc.Set, collections.abc.MutableSet):
        return set()
    if issubclass(cls, BaseModel):
        fields = {
            name: zero_value(info.annotation)
            for name, info in cls.model_fields.items()
            if info.is_required()
        }
        return cls.model_construct(**fields)
    if dataclasses.is_dataclass(cls):
        hints = typing.get_type_hints(cls)
        fields = {
            f.name: zero_value(hints.get(f.name, Any))
            for f in dataclasses.fields(cls)
            if f.init
            and f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        }
        return cls(**fields)
    return None


__all__ = [
    "BLOCKING_TYPES",
    "CONTEXT_TYPES",
    "NoneType",
    "is_assignable",
    "is_blocking_type",
    "is_context_type",
    "is_error_type",
    "is_union",
    "type_name",
    "unwrap_optional",
    "zero_value",
]
