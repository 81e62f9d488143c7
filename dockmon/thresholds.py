"""
Threshold Evaluator - Compares a host metric snapshot against thresholds
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class MetricSnapshot:
    """Instantaneous host metrics collected for one tick"""
    cpu_percent: Optional[float] = None
    mem_percent: Optional[float] = None
    disk_percent: Dict[str, float] = field(default_factory=dict)  # mount -> used %
    dir_size: Dict[str, int] = field(default_factory=dict)  # path -> bytes


@dataclass
class ThresholdConfig:
    """Alert thresholds. A threshold of 0 disables its check."""
    cpu: float = 0
    mem: float = 0
    disk: Dict[str, float] = field(default_factory=dict)
    dirs: Dict[str, int] = field(default_factory=dict)
    cpu_stat_interval: int = 1

    def mounts(self) -> List[str]:
        return sorted(self.disk)

    def directories(self) -> List[str]:
        return sorted(self.dirs)


def _reached(value: Optional[float], threshold: float) -> bool:
    return value is not None and threshold != 0 and value >= threshold


def evaluate_thresholds(snapshot: MetricSnapshot, config: ThresholdConfig) -> List[str]:
    """
    Build one alert message for every metric at or above its threshold

    Args:
        snapshot: Metrics collected this tick. Mounts or directories that
            could not be collected are simply absent and never alert.
        config: Thresholds to compare against

    Returns:
        Messages ordered CPU, memory, disks by mount, directories by path.
        An empty list means the host is healthy.
    """
    messages = []

    if _reached(snapshot.cpu_percent, config.cpu):
        messages.append(
            f"CPU utilisation reached '{snapshot.cpu_percent:.2f}%'. "
            f"Current threshold value: '{config.cpu:.2f}%'"
        )

    if _reached(snapshot.mem_percent, config.mem):
        messages.append(
            f"Memory utilisation reached '{snapshot.mem_percent:.2f}%'. "
            f"Current threshold value: '{config.mem:.2f}%'"
        )

    for mount in config.mounts():
        threshold = config.disk[mount]
        usage = snapshot.disk_percent.get(mount)
        if _reached(usage, threshold):
            messages.append(
                f"Disk utilisation reached '{usage:.2f}%' for the mount point '{mount}'. "
                f"Current threshold value: '{threshold:.2f}%'"
            )

    for path in config.directories():
        threshold = config.dirs[path]
        size = snapshot.dir_size.get(path)
        if _reached(size, threshold):
            messages.append(
                f"Directory size reached '{size}' bytes for the path '{path}'. "
                f"Current threshold value: '{threshold}' bytes"
            )

    return messages
