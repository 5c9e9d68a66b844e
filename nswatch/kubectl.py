"""Fetch namespaces and their pods with kubectl."""

import json
import logging
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .model import Namespace, Pod

logger = logging.getLogger(__name__)


def format_age(seconds: float) -> str:
    if seconds < 0:
        seconds = 0
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds / 60)}m"
    if seconds < 86400:
        return f"{int(seconds / 3600)}h"
    return f"{int(seconds / 86400)}d"


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def parse_pod(
    item: Dict[str, Any], now: Optional[datetime] = None, namespace: str = ""
) -> Pod:
    """Build a Pod from one item of `kubectl get pods -o json`."""
    now = now or datetime.now(timezone.utc)
    meta = item.get("metadata", {}) or {}
    status_obj = item.get("status", {}) or {}
    spec_obj = item.get("spec", {}) or {}

    containers = status_obj.get("containerStatuses", []) or []
    total = len(spec_obj.get("containers", []) or []) or len(containers)
    ready = sum(1 for cs in containers if cs.get("ready"))
    restarts = sum(int(cs.get("restartCount", 0) or 0) for cs in containers)

    reason = None
    for cs in containers:
        state = cs.get("state", {}) or {}
        if state.get("waiting") and state["waiting"].get("reason"):
            reason = state["waiting"]["reason"]
        elif state.get("terminated") and state["terminated"].get("reason"):
            reason = reason or state["terminated"]["reason"]

    phase = status_obj.get("phase", "")
    if meta.get("deletionTimestamp"):
        status = "Terminating"
    elif reason:
        status = reason
    elif phase:
        status = phase
    else:
        status = "Unknown"

    created = _parse_timestamp(meta.get("creationTimestamp", ""))
    age = format_age((now - created).total_seconds()) if created else "?"

    return Pod(
        name=meta.get("name", ""),
        namespace=meta.get("namespace") or namespace,
        ready=ready,
        total=total,
        status=status,
        restarts=str(restarts),
        age=age,
    )


class PodFetcher:
    def __init__(
        self,
        context: Optional[str] = None,
        namespaces: Optional[Sequence[str]] = None,
        timeout: float = 10,
        workers: int = 8,
    ):
        self.context = context
        self.namespaces = list(namespaces) if namespaces else None
        self.timeout = timeout
        self.workers = workers
        self._pool = ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="kubectl"
        )

    def _kubectl(self, *args: str) -> List[str]:
        cmd = ["kubectl"]
        if self.context:
            cmd += ["--context", self.context]
        return cmd + list(args)

    def list_namespaces(self) -> List[str]:
        """All namespace names in the cluster, sorted. Empty on failure."""
        try:
            result = subprocess.run(
                self._kubectl("get", "namespaces", "-o", "json"),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("kubectl get namespaces timed out")
            return []
        except OSError as e:
            logger.warning("kubectl could not be run: %s", e)
            return []
        if result.returncode != 0:
            logger.warning(
                "kubectl get namespaces failed: %s", result.stderr.strip()
            )
            return []
        try:
            data = json.loads(result.stdout)
        except ValueError as e:
            logger.warning("Failed to parse namespaces JSON: %s", e)
            return []
        names = [
            item.get("metadata", {}).get("name", "") for item in data.get("items", [])
        ]
        return sorted(name for name in names if name)

    def fetch_namespace(self, name: str) -> Namespace:
        """Pods of one namespace; any kubectl failure becomes the namespace error."""
        try:
            result = subprocess.run(
                self._kubectl("-n", name, "get", "pods", "-o", "json"),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("kubectl get pods -n %s timed out", name)
            return Namespace(name, error="kubectl command timed out")
        except OSError as e:
            logger.warning("kubectl could not be run: %s", e)
            return Namespace(name, error=f"Error running kubectl: {e}")

        if result.returncode != 0:
            message = " ".join(result.stderr.split()) or "kubectl get pods failed"
            logger.warning("kubectl get pods -n %s failed: %s", name, message)
            return Namespace(name, error=message)

        try:
            data = json.loads(result.stdout)
        except ValueError as e:
            return Namespace(name, error=f"Failed to parse pods JSON: {e}")

        now = datetime.now(timezone.utc)
        pods = tuple(parse_pod(item, now, name) for item in data.get("items", []))
        return Namespace(name, pods=pods)

    def fetch(self) -> Tuple[List[Namespace], float]:
        """One complete snapshot, in namespace order, and the seconds it took."""
        start = time.monotonic()
        names = self.namespaces or self.list_namespaces()
        futures = [self._pool.submit(self.fetch_namespace, name) for name in names]
        snapshot = [future.result() for future in futures]
        return snapshot, time.monotonic() - start

    def close(self) -> None:
        """
        Drop queued kubectl calls and stop accepting new ones.

        Calls already running finish within `timeout`; a fetch() waiting on a
        dropped call raises CancelledError.
        """
        self._pool.shutdown(wait=False, cancel_futures=True)
