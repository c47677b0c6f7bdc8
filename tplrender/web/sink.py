"""Output sinks the renderers write responses into."""

from __future__ import annotations

from typing import MutableMapping, Protocol, runtime_checkable

from starlette.datastructures import MutableHeaders
from starlette.responses import Response


@runtime_checkable
class ResponseSink(Protocol):
    """Where a renderer writes one response.

    ``write_header`` only takes effect the first time it is called.
    """

    headers: MutableMapping[str, str]

    def write_header(self, status: int) -> None: ...

    def write(self, data: bytes) -> int: ...


class BufferedSink:
    """Collects a response in memory and converts it to a Starlette response."""

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self.status: int | None = None
        self.body = bytearray()

    def write_header(self, status: int) -> None:
        if self.status is None:
            self.status = status

    def write(self, data: bytes) -> int:
        if self.status is None:
            self.write_header(200)
        self.body.extend(data)
        return len(data)

    @property
    def written(self) -> bool:
        return self.status is not None

    def to_response(self) -> Response:
        return Response(
            content=bytes(self.body),
            status_code=self.status or 200,
            headers=dict(self.headers.items()),
        )
