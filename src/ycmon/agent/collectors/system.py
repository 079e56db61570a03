"""
System Metrics Collector.

Collects CPU, Memory, Disk and Load metrics as host metrics.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

import psutil

from ..metric import Metric

logger = logging.getLogger(__name__)

# Pseudo filesystems with nothing worth reporting
SKIP_FSTYPES = ('squashfs', 'tmpfs', 'devtmpfs', 'overlay')


class SystemCollector:
    """Collects system-level metrics using psutil."""

    def __init__(self, hostname: str):
        """Initialize the system collector."""
        self.hostname = hostname

    async def collect(self) -> list[Metric]:
        """Collect all system metrics."""
        now = datetime.now(timezone.utc)
        tags = {'host': self.hostname}

        # Run blocking psutil calls in thread pool
        loop = asyncio.get_running_loop()

        cpu = await loop.run_in_executor(None, self._collect_cpu)
        memory = await loop.run_in_executor(None, self._collect_memory)
        disks = await loop.run_in_executor(None, self._collect_disks)
        load = await loop.run_in_executor(None, self._collect_load)

        metrics = [
            Metric(name='cpu', fields=cpu, tags={**tags, 'cpu': 'cpu-total'}, time=now),
            Metric(name='mem', fields=memory, tags=dict(tags), time=now),
        ]
        for path, fields in disks:
            metrics.append(Metric(name='disk', fields=fields, tags={**tags, 'path': path}, time=now))
        if load is not None:
            metrics.append(Metric(name='system', fields=load, tags=dict(tags), time=now))

        return metrics

    def _collect_cpu(self) -> dict:
        """Collect CPU time percentages."""
        times = psutil.cpu_times_percent(interval=0.1)

        fields = {
            'usage_idle': times.idle,
            'usage_user': times.user,
            'usage_system': times.system,
        }
        # Linux only
        iowait = getattr(times, 'iowait', None)
        if iowait is not None:
            fields['usage_iowait'] = iowait
        return fields

    def _collect_memory(self) -> dict:
        """Collect memory metrics."""
        mem = psutil.virtual_memory()

        return {
            'total': mem.total,
            'available': mem.available,
            'used': mem.used,
            'used_percent': mem.percent,
        }

    def _collect_disks(self) -> list[tuple[str, dict]]:
        """Collect usage for all mounted filesystems."""
        disks = []

        for partition in psutil.disk_partitions():
            if partition.fstype in SKIP_FSTYPES:
                continue

            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (PermissionError, OSError) as e:
                logger.debug(f"Skipping mount {partition.mountpoint}: {e}")
                continue

            disks.append((partition.mountpoint, {
                'total': usage.total,
                'used': usage.used,
                'free': usage.free,
                'used_percent': usage.percent,
            }))

        return disks

    def _collect_load(self) -> Optional[dict]:
        """Collect load averages and uptime."""
        try:
            load_1m, load_5m, load_15m = psutil.getloadavg()
        except (AttributeError, OSError):
            return None

        return {
            'load1': load_1m,
            'load5': load_5m,
            'load15': load_15m,
            'uptime': int(time.time() - psutil.boot_time()),
        }
