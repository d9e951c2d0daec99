"""Normalization of X-Forwarded-* headers for requests passing through."""

from dataclasses import dataclass
from typing import MutableMapping

from aiohttp import web
from multidict import CIMultiDict

FORWARDED_FOR = "X-Forwarded-For"
FORWARDED_HOST = "X-Forwarded-Host"


@dataclass
class RequestInfo:
    ip: str
    host: str
    protocol: str


@dataclass
class ProxyContext:
    """
    Request headers plus the metadata of the hop that received the request.

    Attributes:
        header: Mutable header map, updated in place
        request: The client address, host and scheme as seen by this hop
    """

    header: MutableMapping[str, str]
    request: RequestInfo


def _append(headers: MutableMapping[str, str], name: str, value: str) -> None:
    if not value:
        return

    # Multi-value maps may hold one line per upstream proxy.
    if hasattr(headers, "getall"):
        existing = ", ".join(v for v in headers.getall(name, []) if v)
    else:
        existing = headers.get(name)
    headers[name] = f"{existing}, {value}" if existing else value


def setup_proxy_headers(context: ProxyContext) -> None:
    """
    Record this hop in the forwarding headers.

    The client address is appended to X-Forwarded-For and the requested host
    to X-Forwarded-Host. Values set by upstream proxies are kept, so the
    headers carry the whole chain of hops. An unknown client address or host
    leaves its header untouched.
    """
    _append(context.header, FORWARDED_FOR, context.request.ip)
    _append(context.header, FORWARDED_HOST, context.request.host)


@web.middleware
async def proxy_headers_middleware(request: web.Request, handler):
    context = ProxyContext(
        header=CIMultiDict(request.headers),
        request=RequestInfo(
            ip=request.remote or "",
            host=request.host,
            protocol=request.scheme,
        ),
    )
    setup_proxy_headers(context)
    return await handler(request.clone(headers=context.header))
