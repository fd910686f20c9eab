import asyncio
import signal

from src.utils.logger import logger


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set ``stop_event`` on SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()

    def request_stop(sig: signal.Signals):
        logger.info("Received stop signal", signal=sig.name)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig)
        except NotImplementedError:
            # Windows event loops; Ctrl+C still raises KeyboardInterrupt
            logger.debug("Signal handlers not supported on this platform", signal=sig.name)


async def wait_for_stop(stop_event: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout`` seconds. Returns True if a stop was requested."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout)
        return True
    except asyncio.TimeoutError:
        return False
