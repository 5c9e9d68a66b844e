"""Namespaces and pods as delivered by one refresh."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Emphasis(Enum):
    POSITIVE = "green"
    CAUTIONARY = "yellow"
    NEGATIVE = "red"

    @property
    def color(self) -> str:
        return self.value


@dataclass(frozen=True)
class Pod:
    name: str
    # owning namespace by name; resolved through Positions.namespace_of()
    namespace: str
    ready: int = 0
    total: int = 0
    status: str = "Unknown"
    restarts: str = "0"
    age: str = "?"

    def ready_string(self) -> str:
        return f"{self.ready}/{self.total}"

    @property
    def running(self) -> bool:
        return self.status == "Running"


@dataclass(frozen=True)
class Namespace:
    name: str
    pods: Tuple[Pod, ...] = field(default_factory=tuple)
    error: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return bool(self.error)


def pod_emphasis(pod: Pod) -> Emphasis:
    """Classify a pod row: running and fully ready, running but short, or anything else."""
    if pod.running and pod.ready >= pod.total:
        return Emphasis.POSITIVE
    if pod.running:
        return Emphasis.CAUTIONARY
    return Emphasis.NEGATIVE
