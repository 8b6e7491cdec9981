"""
Network boundary — the transport that executes operations.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from kungfu import Result, Ok, Error

from normcache._errors import FailureKind, OperationFailure, describe_errors
from normcache.document._types import Document

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Request / Response
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Request:
    """One operation to execute."""

    document: Document
    variables: Mapping[str, Any] = field(default_factory=dict)

    @property
    def operation(self) -> str:
        return self.document.name


@dataclass(frozen=True, slots=True)
class Response:
    """`{data}` or `{errors}` as returned by the server."""

    data: Mapping[str, Any] | None = None
    errors: tuple[Mapping[str, Any], ...] = ()


# ═══════════════════════════════════════════════════════════════════════════════
# Network Protocol — Users Implement This
# ═══════════════════════════════════════════════════════════════════════════════


class Network(Protocol):
    """
    Transport protocol.

    Example:
        class HttpNetwork:
            def __init__(self, client: httpx.AsyncClient, url: str) -> None:
                self.client = client
                self.url = url

            async def send(self, request: Request) -> Response:
                body = {"query": ARTIFACTS[request.operation], "variables": request.variables}
                payload = (await self.client.post(self.url, json=body)).json()
                return Response(payload.get("data"), tuple(payload.get("errors", ())))
    """

    async def send(self, request: Request) -> Response:
        """Execute `request`. May raise on transport failure."""
        ...


type SendFn = Callable[[Request], Awaitable[Response]]


@dataclass(frozen=True, slots=True)
class FunctionalNetwork:
    """Network built from an async function."""

    _send: SendFn

    async def send(self, request: Request) -> Response:
        return await self._send(request)


def network_from(send: SendFn) -> FunctionalNetwork:
    """
    Create Network from a function.

    Example:
        network = network_from(lambda request: client.execute(request))
    """
    return FunctionalNetwork(_send=send)


# ═══════════════════════════════════════════════════════════════════════════════
# send() — Result at the Boundary
# ═══════════════════════════════════════════════════════════════════════════════


async def send(network: Network, request: Request) -> Result[Mapping[str, Any], OperationFailure]:
    """
    Execute `request`, turning every failure into a value.

    Transport exceptions → NETWORK, `errors` → SERVER, neither data nor
    errors → EMPTY. Cancellation is not caught.
    """
    try:
        response = await network.send(request)
    except Exception as e:
        logger.warning("Operation %s failed in transport: %s", request.operation, e)
        return Error(OperationFailure(FailureKind.NETWORK, request.operation, str(e)))

    if response.errors:
        errors = tuple(response.errors)
        return Error(
            OperationFailure(FailureKind.SERVER, request.operation, describe_errors(errors), errors)
        )

    if response.data is None:
        return Error(OperationFailure(FailureKind.EMPTY, request.operation, "response carried no data"))

    return Ok(response.data)


__all__ = (
    "Request",
    "Response",
    "Network",
    "SendFn",
    "FunctionalNetwork",
    "network_from",
    "send",
)
