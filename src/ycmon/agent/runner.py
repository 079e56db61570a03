"""
Output Runner.

Minimal host loop: collect system metrics every interval and hand them to
the output. Failed writes are logged and dropped; the next flush carries
fresh metrics.
"""

import asyncio
import logging
import signal
from typing import Optional

from ..output import OutputConfig, YandexCloudMonitoring
from .collectors import SystemCollector

logger = logging.getLogger(__name__)


class OutputRunner:
    """Drives one output instance from a single task."""

    def __init__(self, config: Optional[OutputConfig] = None):
        """Initialize the runner."""
        self.config = config or OutputConfig.from_env()
        self.output = YandexCloudMonitoring(self.config)
        self.collector = SystemCollector(self.config.agent.hostname)

        self._running = False
        self._stopped = asyncio.Event()

    async def start(self):
        """Connect the output and run the flush loop until stopped."""
        logger.info(f"Starting output on {self.config.agent.hostname}")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_stop)

        try:
            await self.output.init()
            await self.output.connect()

            self._running = True
            while self._running:
                await self.flush()
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.config.agent.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.output.close()
            logger.info("Output stopped")

    def request_stop(self):
        """Ask the loop to exit after the current flush."""
        logger.info("Stopping output...")
        self._running = False
        self._stopped.set()

    async def flush(self) -> bool:
        """Collect once and write. Returns True when the write succeeded."""
        try:
            metrics = await self.collector.collect()
            result = await self.output.write(metrics)
        except Exception as e:
            logger.warning(f"Write failed: {e}")
            return False

        if result is not None:
            logger.debug(f"Flushed {len(metrics)} metrics (status {result.status_code})")
        return True

