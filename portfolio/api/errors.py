from __future__ import annotations

import grpc
from fastapi import Request
from fastapi.responses import JSONResponse

from portfolio.models.schemas import RpcErrorBody

_HTTP_STATUS = {
    grpc.StatusCode.NOT_FOUND: 404,
    grpc.StatusCode.INVALID_ARGUMENT: 400,
    grpc.StatusCode.UNAVAILABLE: 503,
    grpc.StatusCode.DEADLINE_EXCEEDED: 504,
    grpc.StatusCode.UNIMPLEMENTED: 501,
}


def http_status_for(code: grpc.StatusCode | None) -> int:
    return _HTTP_STATUS.get(code, 500) if code is not None else 500


async def rpc_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a failed RPC the way grpc-gateway does: HTTP status plus a status body."""

    code = exc.code() if isinstance(exc, grpc.Call) else None
    message = exc.details() if isinstance(exc, grpc.Call) else str(exc)
    body = RpcErrorBody(
        code=(code or grpc.StatusCode.UNKNOWN).value[0],
        message=message or "",
    )
    return JSONResponse(status_code=http_status_for(code), content=body.model_dump())
