"""Script runtime host adapter.

Models the sandboxed script environment: an HTTP request handler backed by a
string key-value store. The caller identity is the ``Referer`` header
supplied by the runtime, bodies are JSON, and transfer instructions are
handed to a pluggable executor once the state transition has committed.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Callable, Optional, Protocol

import click
from aiohttp import web

from ..codec import swap_from_json
from ..config import (
    ANONYMOUS_CALLER,
    SERVICE_NAME,
    SERVICE_VERSION,
    HtlcSettings,
)
from ..errors import ErrorCode, HtlcError
from ..state_digest import compute_state_digest
from ..state_transition import CallResult, execute
from ..store import KeyValue, KvSwapStore, MemoryKv
from ..types import Call, CallType, TransferInstruction

logger = logging.getLogger(__name__)

RUNTIME_KEY = web.AppKey("runtime", "ScriptRuntime")


class TransferExecutor(Protocol):
    def execute(self, transfer: TransferInstruction) -> None:
        ...


class RecordingTransferExecutor:
    """Keeps every executed instruction; the default for local runs and tests."""

    def __init__(self) -> None:
        self.transfers: list[TransferInstruction] = []

    def execute(self, transfer: TransferInstruction) -> None:
        self.transfers.append(transfer)


class ManualClock:
    """Host clock that only moves when told to."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


def system_clock() -> int:
    return int(time.time())


class ScriptRuntime:
    """Binds the HTLC core to one KV namespace, clock and transfer executor."""

    def __init__(
        self,
        kv: Optional[KeyValue] = None,
        clock: Callable[[], int] = system_clock,
        executor: Optional[TransferExecutor] = None,
        settings: Optional[HtlcSettings] = None,
    ) -> None:
        self.kv = kv if kv is not None else MemoryKv()
        self.store = KvSwapStore(self.kv)
        self.clock = clock
        self.executor = executor if executor is not None else RecordingTransferExecutor()
        self.settings = settings or HtlcSettings()
        self.lock = asyncio.Lock()

    def call(
        self,
        call_type: CallType,
        caller: str,
        payload: dict[str, Any],
        timestamp: Optional[int] = None,
    ) -> CallResult:
        now = self.clock() if timestamp is None else timestamp
        result = execute(
            self.store,
            Call(call_type=call_type, caller=caller, payload=payload, timestamp=now),
            self.settings,
        )
        if result.transfer is not None:
            self.executor.execute(result.transfer)
        return result

    def state_digest(self) -> str:
        return compute_state_digest(self.store)


def _status_for(result: CallResult, read: bool = False) -> int:
    if result.error is None:
        return 200
    if read and result.error.code == ErrorCode.NOT_FOUND:
        return 404
    return 400


def _caller(request: web.Request) -> str:
    return request.headers.get("Referer") or ANONYMOUS_CALLER


async def _body(request: web.Request) -> dict[str, Any]:
    if request.method != "POST" or not request.can_read_body:
        return {}
    text = await request.text()
    if not text:
        return {}
    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise HtlcError(ErrorCode.INVALID_PAYLOAD, f"malformed JSON body: {exc.msg}") from exc
    if not isinstance(body, dict):
        raise HtlcError(ErrorCode.INVALID_PAYLOAD, "request body must be a JSON object")
    return body


@web.middleware
async def htlc_error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Render request-level rejections like any other failed call."""
    try:
        return await handler(request)
    except HtlcError as exc:
        logger.warning("%s %s rejected: %s", request.method, request.path, exc)
        return web.json_response(CallResult.failure(exc).to_json(), status=400)


async def _mutating(request: web.Request, call_type: CallType, fields: tuple[str, ...]) -> web.Response:
    runtime = request.app[RUNTIME_KEY]
    body = await _body(request)
    payload = {k: body.get(k) for k in fields}
    caller = _caller(request)
    logger.info("%s %s from %s", request.method, request.path, caller)
    async with runtime.lock:
        result = runtime.call(call_type, caller, payload)
    return web.json_response(result.to_json(), status=_status_for(result))


async def handle_initiate(request: web.Request) -> web.Response:
    return await _mutating(
        request, CallType.INITIATE, ("hashlock", "recipient", "expiration", "amount")
    )


async def handle_claim(request: web.Request) -> web.Response:
    return await _mutating(request, CallType.CLAIM, ("hashlock", "secret"))


async def handle_refund(request: web.Request) -> web.Response:
    return await _mutating(request, CallType.REFUND, ("hashlock",))


def _swap_response(runtime: ScriptRuntime, hashlock: Any) -> web.Response:
    result = runtime.call(CallType.QUERY, ANONYMOUS_CALLER, {"hashlock": hashlock})
    if result.error is None:
        return web.json_response({"found": True, "swap": result.data})
    body = result.to_json()
    body["found"] = False
    return web.json_response(body, status=_status_for(result, read=True))


async def handle_swap(request: web.Request) -> web.Response:
    return _swap_response(request.app[RUNTIME_KEY], request.match_info["hashlock"])


async def handle_getswap(request: web.Request) -> web.Response:
    body = await _body(request)
    return _swap_response(request.app[RUNTIME_KEY], body.get("hashlock"))


def _int_param(value: Optional[str]) -> Any:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return value


async def handle_swaps(request: web.Request) -> web.Response:
    runtime = request.app[RUNTIME_KEY]
    if request.method == "POST":
        body = await _body(request)
        payload = {k: body.get(k) for k in ("status", "limit", "offset")}
    else:
        q = request.query
        payload = {
            "status": q.get("status"),
            "limit": _int_param(q.get("limit")),
            "offset": _int_param(q.get("offset")),
        }
    result = runtime.call(CallType.LIST, _caller(request), payload)
    return web.json_response(result.to_json(), status=_status_for(result))


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "healthy",
            "security": "Hash verification enabled",
            "endpoints": [
                "POST /initiate - Lock funds",
                "POST /claim - Claim with secret (verified)",
                "POST /refund - Refund after expiration",
                "GET /swap/{hashlock} - Get swap details",
                "GET /swaps - List swaps",
            ],
        }
    )


# --- conformance surface ---

async def handle_state_reset(request: web.Request) -> web.Response:
    runtime = request.app[RUNTIME_KEY]
    async with runtime.lock:
        runtime.store.clear()
    return web.json_response({"success": True, "state_digest": runtime.state_digest()})


async def handle_state_load(request: web.Request) -> web.Response:
    runtime = request.app[RUNTIME_KEY]
    body = await _body(request)
    try:
        swaps = [swap_from_json(item) for item in body.get("swaps", [])]
    except (KeyError, TypeError, ValueError) as exc:
        return web.json_response({"success": False, "error": str(exc)}, status=400)
    async with runtime.lock:
        runtime.store.clear()
        try:
            for swap in swaps:
                runtime.store.insert(swap)
        except HtlcError as exc:
            runtime.store.clear()
            return web.json_response(
                {"success": False, "error": exc.message, "error_code": exc.code.name}, status=400
            )
    return web.json_response({"success": True, "state_digest": runtime.state_digest()})


async def handle_state_digest(request: web.Request) -> web.Response:
    return web.json_response({"state_digest": request.app[RUNTIME_KEY].state_digest()})


async def handle_call_execute(request: web.Request) -> web.Response:
    runtime = request.app[RUNTIME_KEY]
    body = await _body(request)
    try:
        call_type = CallType(body.get("call_type"))
    except ValueError:
        return web.json_response(
            {"success": False, "error": "unknown call_type", "error_code": ErrorCode.INVALID_PAYLOAD.name},
            status=400,
        )
    payload = body.get("payload") or {}
    async with runtime.lock:
        result = runtime.call(
            call_type,
            body.get("caller") or ANONYMOUS_CALLER,
            payload,
            timestamp=body.get("timestamp"),
        )
        out = result.to_json()
        out["state_digest"] = runtime.state_digest()
    return web.json_response(out)


def create_app(runtime: Optional[ScriptRuntime] = None) -> web.Application:
    app = web.Application(middlewares=[htlc_error_middleware])
    app[RUNTIME_KEY] = runtime or ScriptRuntime()
    app.router.add_post("/initiate", handle_initiate)
    app.router.add_post("/claim", handle_claim)
    app.router.add_post("/refund", handle_refund)
    app.router.add_get("/swap/{hashlock}", handle_swap)
    app.router.add_post("/swap/{hashlock}", handle_swap)
    app.router.add_post("/getswap", handle_getswap)
    app.router.add_get("/swaps", handle_swaps)
    app.router.add_post("/swaps", handle_swaps)
    app.router.add_get("/", handle_health)
    app.router.add_get("/health", handle_health)
    app.router.add_post("/state/reset", handle_state_reset)
    app.router.add_post("/state/load", handle_state_load)
    app.router.add_get("/state/digest", handle_state_digest)
    app.router.add_post("/call/execute", handle_call_execute)
    return app


@click.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", default=8081, type=int, help="Port to listen on")
def main(host: str, port: int) -> None:
    """Serve the HTLC script runtime handler over HTTP."""
    settings = HtlcSettings.from_env()
    settings.configure_logging()
    web.run_app(create_app(ScriptRuntime(settings=settings)), host=host, port=port)


if __name__ == "__main__":
    main()
