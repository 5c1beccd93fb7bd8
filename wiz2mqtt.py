#!/usr/bin/env python3
"""WiZ to MQTT bridge."""

import asyncio
import logging
import signal

from wiz2mqtt_app import Wiz2MQTT, load_config

logger = logging.getLogger(__name__)


def _install_signal_handlers(stop_requested: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            # no loop signal support (Windows); Ctrl+C still ends asyncio.run
            pass


async def main(config=None):
    """Run the bridge until SIGINT/SIGTERM or until it stops on its own."""
    app = Wiz2MQTT(config if config is not None else load_config())
    stop_requested = asyncio.Event()
    _install_signal_handlers(stop_requested)

    bridge = asyncio.create_task(app.start(), name="bridge")
    stopper = asyncio.create_task(stop_requested.wait(), name="stop")
    try:
        await asyncio.wait({bridge, stopper}, return_when=asyncio.FIRST_COMPLETED)
        if stop_requested.is_set():
            logger.info("Shutting down...")
    finally:
        stopper.cancel()
        bridge.cancel()
        await asyncio.gather(bridge, stopper, return_exceptions=True)
        await app.stop()

    # surface a crash of the bridge itself
    if bridge.done() and not bridge.cancelled() and bridge.exception() is not None:
        raise bridge.exception()


def run():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        asyncio.run(main())
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    run()
