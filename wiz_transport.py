"""WiZ local UDP client."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from constants import (
    WIZ_METHOD_GET_PILOT,
    WIZ_METHOD_SET_PILOT,
    WIZ_REQUEST_TIMEOUT,
    WIZ_RESEND_INTERVAL,
)
from exceptions import WizException, WizTransportError
from models import CONTROL_FIELDS, Device, Pilot

logger = logging.getLogger(__name__)


class _WizProtocol(asyncio.DatagramProtocol):
    """Resolves ``response`` with the first reply for ``method``."""

    def __init__(self, method: str, response: asyncio.Future):
        self.method = method
        self.response = response

    def datagram_received(self, data: bytes, addr):
        try:
            message = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug(f"Ignoring undecodable datagram from {addr[0]}")
            return
        if not isinstance(message, dict) or message.get("method") != self.method:
            logger.debug(f"Ignoring unrelated datagram from {addr[0]}: {message}")
            return
        if not self.response.done():
            self.response.set_result(message)

    def error_received(self, exc: Exception):
        if not self.response.done():
            self.response.set_exception(WizTransportError(f"Socket error: {exc}"))

    def connection_lost(self, exc: Optional[Exception]):
        if not self.response.done():
            self.response.set_exception(WizTransportError(f"Socket closed: {exc}"))


class WizTransport:
    """
    Callback-style client for:
      - getPilot (query)
      - setPilot (command)
    Each callback fires exactly once, with the error first.
    """

    def __init__(self, timeout: float = WIZ_REQUEST_TIMEOUT, resend_interval: float = WIZ_RESEND_INTERVAL):
        self.timeout = timeout
        self.resend_interval = resend_interval
        self._tasks: Set[asyncio.Task] = set()

    def _spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def query(self, device: Device, callback: Callable[[Optional[Exception], Optional[Pilot]], None]):
        """Fetch the bulb's pilot."""
        async def _run():
            try:
                result = await self.request(device, WIZ_METHOD_GET_PILOT, {})
                pilot = Pilot.from_result(result)
            except (KeyError, TypeError, ValueError) as e:
                callback(WizTransportError(f"Malformed getPilot result from {device.host}: {e}"), None)
            except (OSError, WizException) as e:
                callback(e, None)
            else:
                callback(None, pilot)

        self._spawn(_run())

    def command(self, device: Device, params: Dict[str, Any], callback: Callable[[Optional[Exception]], None]):
        """Send a full setPilot. ``params`` uses pilot attribute names."""
        wire_params = {CONTROL_FIELDS[key]: value for key, value in params.items()}

        async def _run():
            try:
                await self.request(device, WIZ_METHOD_SET_PILOT, wire_params)
            except (OSError, WizException) as e:
                callback(e)
            else:
                callback(None)

        self._spawn(_run())

    async def request(self, device: Device, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sends a {"method","params"} datagram, resending until the bulb answers
        or the timeout expires. Returns the reply's "result" object.
        """
        loop = asyncio.get_running_loop()
        payload = json.dumps({"method": method, "params": params}).encode("utf-8")
        response: asyncio.Future = loop.create_future()

        transport, _ = await loop.create_datagram_endpoint(
            lambda: _WizProtocol(method, response),
            remote_addr=(device.host, device.port),
        )
        try:
            deadline = loop.time() + self.timeout
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise WizTransportError(f"No {method} reply from {device.host} within {self.timeout:g}s")
                logger.debug(f"Sending {method} to {device.host}: {params}")
                transport.sendto(payload)
                try:
                    message = await asyncio.wait_for(
                        asyncio.shield(response), timeout=min(self.resend_interval, remaining)
                    )
                    break
                except asyncio.TimeoutError:
                    continue
        finally:
            if not response.done():
                response.cancel()
            transport.close()

        if "error" in message:
            error = message["error"]
            if isinstance(error, dict):
                raise WizTransportError(
                    f"{method} rejected by {device.host}: {error.get('message', error)}",
                    code=error.get("code"),
                )
            raise WizTransportError(f"{method} rejected by {device.host}: {error}")
        result = message.get("result")
        if not isinstance(result, dict):
            raise WizTransportError(f"{method} reply from {device.host} has no result")
        return result

    async def close(self):
        """Cancel outstanding requests."""
        tasks = list(self._tasks)
        for t in tasks:
            t.cancel()
        for t in tasks:
            try:
                await t
            except asyncio.CancelledError:
                pass
