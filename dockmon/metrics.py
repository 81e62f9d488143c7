"""
Host metric collection through psutil

Every collector degrades to "field absent" on failure and logs a warning;
nothing here raises to the caller.
"""

import logging
import os
import stat
from typing import Dict, Iterable, Optional

import psutil

from .thresholds import MetricSnapshot

logger = logging.getLogger(__name__)


def read_metrics(cpu_interval: int, mounts: Iterable[str], dirs: Iterable[str]) -> MetricSnapshot:
    """
    Collect a fresh metric snapshot

    Args:
        cpu_interval: Seconds the CPU utilisation sample spans (blocks that long)
        mounts: Mount points whose disk usage is wanted
        dirs: Directories whose recursive size is wanted

    Returns:
        MetricSnapshot with every metric that could be read
    """
    snapshot = MetricSnapshot()
    mounts = list(mounts)
    dirs = list(dirs)

    try:
        snapshot.cpu_percent = psutil.cpu_percent(interval=max(cpu_interval, 1))
    except (OSError, psutil.Error) as e:
        logger.warning("Cannot fetch CPU stats: %s", e)

    try:
        snapshot.mem_percent = psutil.virtual_memory().percent
    except (OSError, psutil.Error) as e:
        logger.warning("Cannot fetch memory stats: %s", e)

    if mounts:
        snapshot.disk_percent = _disk_usage(mounts)
    if dirs:
        snapshot.dir_size = _dir_sizes(dirs)

    return snapshot


def _disk_usage(mounts) -> Dict[str, float]:
    try:
        partitions = psutil.disk_partitions(all=True)
    except (OSError, psutil.Error) as e:
        logger.warning("Cannot fetch disk partitions: %s", e)
        return {}

    known = {partition.mountpoint for partition in partitions}
    result = {}
    for mount in mounts:
        if mount not in known:
            logger.warning("Mount point '%s' not found, skipping", mount)
            continue
        try:
            result[mount] = psutil.disk_usage(mount).percent
        except (OSError, psutil.Error) as e:
            logger.warning("Cannot fetch disk usage for '%s': %s", mount, e)
    return result


def _dir_sizes(dirs) -> Dict[str, int]:
    result = {}
    for directory in dirs:
        try:
            info = os.lstat(directory)
        except OSError as e:
            logger.warning("Cannot fetch directory size of '%s': %s", directory, e)
            continue
        result[directory] = directory_size(directory, info)
    return result


def directory_size(path: str, info: Optional[os.stat_result] = None) -> int:
    """
    Recursive size in bytes of path, without following symlinks

    Entries that cannot be read contribute only what is already known.
    """
    if info is None:
        info = os.lstat(path)

    size = info.st_size
    if not stat.S_ISDIR(info.st_mode):
        return size

    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    size += directory_size(entry.path, entry.stat(follow_symlinks=False))
                except OSError as e:
                    logger.debug("Skipping '%s': %s", entry.path, e)
    except OSError as e:
        logger.warning("Cannot read the directory '%s': %s", path, e)

    return size
