"""
Bitunix futures adapter: plug into the replication pipeline via ExchangeClient.

Orders are placed through the signed REST API (httpx); order events arrive on
the private websocket (websockets). Each request carries api-key, nonce,
timestamp and a double SHA-256 signature over those values plus the query
string and compact JSON body.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import secrets
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx
import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from order_copier.events import OrderEvent
from order_copier.order import OrderRequest, OrderType

from order_copier.exchange.client import ExchangeClient, OrderEventCallback, PrivateStream
from order_copier.exchange.types import OrderAck, StreamEndReason

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://fapi.bitunix.com"
DEFAULT_WS_URL = "wss://fapi.bitunix.com/private/"
PLACE_ORDER_PATH = "/api/v1/futures/trade/place_order"

_SYMBOL_SEPARATORS = re.compile(r"[-_/\s]")
_SYMBOL_PATTERN = re.compile(r"[A-Z0-9]+")


class BitunixAPIError(Exception):
    """Non-zero response code from the Bitunix REST API."""

    def __init__(self, code: Any, message: str) -> None:
        super().__init__(f"Bitunix API error {code}: {message}")
        self.code = code
        self.message = message


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def make_nonce() -> str:
    """32-character random nonce."""
    return secrets.token_hex(16)


def sign_request(
    api_key: str,
    api_secret: str,
    nonce: str,
    timestamp: str,
    query: Mapping[str, Any] | None = None,
    body: str = "",
) -> str:
    """
    REST signature: sha256(sha256(nonce + timestamp + api_key + query + body) + secret).
    Query parameters are sorted by key and concatenated as key+value.
    """
    query_str = "".join(f"{k}{v}" for k, v in sorted((query or {}).items()))
    digest = _sha256(nonce + timestamp + api_key + query_str + body)
    return _sha256(digest + api_secret)


def sign_login(api_key: str, api_secret: str, nonce: str, timestamp: int) -> str:
    """Websocket login signature: sha256(sha256(nonce + timestamp + api_key) + secret)."""
    digest = _sha256(f"{nonce}{timestamp}{api_key}")
    return _sha256(digest + api_secret)


def _decimal_str(value: Decimal) -> str:
    return format(value, "f")


def order_payload(request: OrderRequest) -> dict[str, Any]:
    """Build the place_order body for one request. Price is only sent for limit orders."""
    payload: dict[str, Any] = {
        "symbol": request.symbol,
        "side": request.side.value,
        "orderType": request.order_type.value,
        "qty": _decimal_str(request.quantity),
        "tradeSide": request.position_intent.value,
    }
    if request.order_type == OrderType.LIMIT and request.price is not None:
        payload["price"] = _decimal_str(request.price)
        payload["effect"] = "GTC"
    if request.client_order_id:
        payload["clientId"] = request.client_order_id
    return payload


def _parse_timestamp(ts: Any) -> datetime | None:
    """Millisecond epoch to UTC datetime; None when missing or out of range."""
    if not isinstance(ts, (int, float, str)) or not str(ts).isdigit():
        return None
    try:
        return datetime.fromtimestamp(int(ts) / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_order_message(message: str | bytes | Mapping[str, Any]) -> OrderEvent | None:
    """
    Parse one private-channel message. Returns an OrderEvent for order-channel
    pushes, None for everything else (pings, login/subscribe acks, other channels).
    Raises ValueError for payloads that are not JSON.
    """
    if isinstance(message, (str, bytes)):
        try:
            message = json.loads(message)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON message: {e}") from e
    if not isinstance(message, Mapping) or message.get("ch") != "order":
        return None
    data = message.get("data")
    if not isinstance(data, Mapping):
        return None

    timestamp = _parse_timestamp(message.get("ts"))
    order_id = data.get("orderId")
    return OrderEvent(
        symbol=data.get("symbol", ""),
        side=data.get("side", ""),
        quantity=data.get("qty"),
        price=data.get("price"),
        type=data.get("type", ""),
        status=data.get("orderStatus", ""),
        order_id=str(order_id) if order_id is not None else None,
        event_type=data.get("event"),
        timestamp=timestamp,
        raw=data,
    )


class BitunixPrivateStream(PrivateStream):
    """
    Private websocket for one account: login, subscribe to the order channel,
    deliver parsed OrderEvents, ping periodically.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        ws_url: str = DEFAULT_WS_URL,
        ping_interval: float = 15.0,
        login_timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._ws_url = ws_url
        self._ping_interval = ping_interval
        self._login_timeout = login_timeout
        self._ws: Any = None
        self._callback: OrderEventCallback | None = None

    async def connect(self) -> None:
        """Open the websocket and log in. Raises on failure."""
        self._ws = await websockets.connect(self._ws_url, ping_interval=None)
        timestamp = int(time.time())
        nonce = make_nonce()
        login = {
            "op": "login",
            "args": [
                {
                    "apiKey": self._api_key,
                    "timestamp": timestamp,
                    "nonce": nonce,
                    "sign": sign_login(self._api_key, self._api_secret, nonce, timestamp),
                }
            ],
        }
        await self._ws.send(json.dumps(login))
        await self._await_login_ack()
        logger.info("Bitunix private stream connected: %s", self._ws_url)

    async def _await_login_ack(self) -> None:
        deadline = asyncio.get_running_loop().time() + self._login_timeout
        while True:
            remaining = deadline - asyncio.get_running_loop().time()
            if remaining <= 0:
                logger.warning("No login acknowledgment within %.1fs; continuing", self._login_timeout)
                return
            try:
                raw = await asyncio.wait_for(self._ws.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                continue
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(message, Mapping) and message.get("op") == "login":
                data = message.get("data") or {}
                if isinstance(data, Mapping) and data.get("result") is False:
                    raise BitunixAPIError(data.get("code", "login"), str(data.get("msg", "login rejected")))
                return

    async def subscribe_order_events(self, callback: OrderEventCallback) -> None:
        if self._ws is None:
            raise RuntimeError("subscribe_order_events() called before connect()")
        self._callback = callback
        await self._ws.send(json.dumps({"op": "subscribe", "args": [{"ch": "order"}]}))
        logger.info("Subscribed to Bitunix order channel")

    async def run(self, cancel: asyncio.Event) -> StreamEndReason:
        if self._ws is None or self._callback is None:
            raise RuntimeError("run() called before connect() and subscribe_order_events()")
        ping_task = asyncio.create_task(self._ping_loop())
        cancel_wait = asyncio.ensure_future(cancel.wait())
        recv: asyncio.Future[Any] | None = None
        try:
            while True:
                recv = asyncio.ensure_future(self._ws.recv())
                done, _ = await asyncio.wait({recv, cancel_wait}, return_when=asyncio.FIRST_COMPLETED)
                if cancel_wait in done:
                    return StreamEndReason.CANCELLED
                self._dispatch(recv.result())
        except ConnectionClosedOK:
            logger.warning("Bitunix private stream closed by remote")
            return StreamEndReason.REMOTE_CLOSED
        except (WebSocketException, OSError) as e:
            logger.error("Bitunix private stream transport error: %s", e)
            return StreamEndReason.TRANSPORT_ERROR
        finally:
            if recv is not None:
                recv.cancel()
            cancel_wait.cancel()
            ping_task.cancel()

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            event = parse_order_message(raw)
        except Exception as e:  # noqa: BLE001
            logger.warning("Dropping unparseable stream message: %s", e)
            return
        if event is not None and self._callback is not None:
            self._callback(event)

    async def _ping_loop(self) -> None:
        while True:
            await asyncio.sleep(self._ping_interval)
            try:
                await self._ws.send(json.dumps({"op": "ping", "ping": int(time.time())}))
            except (WebSocketException, OSError) as e:
                logger.debug("Ping failed: %s", e)
                return

    async def disconnect(self) -> None:
        ws, self._ws = self._ws, None
        if ws is None:
            return
        try:
            await ws.close()
        except (WebSocketException, OSError) as e:
            logger.debug("Error while closing websocket: %s", e)
        logger.info("Bitunix private stream disconnected")


class BitunixExchangeClient(ExchangeClient):
    """
    Live Bitunix futures client for one account.

    http_client may be injected (e.g. with an httpx.MockTransport); otherwise an
    AsyncClient is created against base_url and closed by aclose().
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        ws_url: str = DEFAULT_WS_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        ping_interval: float = 15.0,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._ws_url = ws_url
        self._ping_interval = ping_interval
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    def normalize_symbol(self, symbol: str) -> str:
        """'btc-usdt', 'BTC/USDT' and 'BTCUSDT' all map to 'BTCUSDT'."""
        normalized = _SYMBOL_SEPARATORS.sub("", symbol).upper()
        if not _SYMBOL_PATTERN.fullmatch(normalized):
            raise ValueError(f"invalid Bitunix symbol {symbol!r}")
        return normalized

    async def connect_private_stream(self) -> BitunixPrivateStream:
        stream = BitunixPrivateStream(
            self._api_key,
            self._api_secret,
            ws_url=self._ws_url,
            ping_interval=self._ping_interval,
        )
        try:
            await stream.connect()
        except BaseException:
            await stream.disconnect()
            raise
        return stream

    async def place_order(self, request: OrderRequest) -> OrderAck:
        data = await self._post(PLACE_ORDER_PATH, order_payload(request))
        order_id = data.get("orderId")
        if order_id is None:
            raise BitunixAPIError("missing_order_id", f"response without orderId: {data!r}")
        return OrderAck(
            order_id=str(order_id),
            accepted_at=datetime.now(timezone.utc),
            client_order_id=data.get("clientId"),
            raw=data,
        )

    def _signed_headers(self, query: Mapping[str, Any] | None, body: str) -> dict[str, str]:
        nonce = make_nonce()
        timestamp = str(int(time.time() * 1000))
        return {
            "api-key": self._api_key,
            "nonce": nonce,
            "timestamp": timestamp,
            "sign": sign_request(self._api_key, self._api_secret, nonce, timestamp, query, body),
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, body: Mapping[str, Any]) -> Mapping[str, Any]:
        content = json.dumps(body, separators=(",", ":"))
        response = await self._http.post(path, content=content, headers=self._signed_headers(None, content))
        response.raise_for_status()
        payload = response.json()
        if payload.get("code") != 0:
            raise BitunixAPIError(payload.get("code"), str(payload.get("msg", "")))
        data = payload.get("data")
        return data if isinstance(data, Mapping) else {}

    async def aclose(self) -> None:
        if self._owns_http and not self._http.is_closed:
            await self._http.aclose()
