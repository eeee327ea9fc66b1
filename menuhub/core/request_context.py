from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Iterator


@dataclass(frozen=True)
class RequestContext:
    request_id: str | None = None
    tenant_id: int | None = None
    user_id: int | None = None


_EMPTY = RequestContext()
_REQUEST_CTX: ContextVar[RequestContext] = ContextVar("menuhub_request_context", default=_EMPTY)


def current_context() -> RequestContext:
    return _REQUEST_CTX.get()


def set_request_context(
    *, request_id: str | None = None, tenant_id: int | None = None, user_id: int | None = None
) -> None:
    """Merge the given identifiers into the current context; ``None`` keeps the old value."""
    changes = {
        key: value
        for key, value in (("request_id", request_id), ("tenant_id", tenant_id), ("user_id", user_id))
        if value is not None
    }
    if changes:
        _REQUEST_CTX.set(replace(_REQUEST_CTX.get(), **changes))


@contextmanager
def request_scope(request_id: str) -> Iterator[RequestContext]:
    token = _REQUEST_CTX.set(RequestContext(request_id=request_id))
    try:
        yield _REQUEST_CTX.get()
    finally:
        _REQUEST_CTX.reset(token)


def get_request_id() -> str | None:
    return _REQUEST_CTX.get().request_id


def get_tenant_id() -> int | None:
    return _REQUEST_CTX.get().tenant_id


def get_user_id() -> int | None:
    return _REQUEST_CTX.get().user_id
