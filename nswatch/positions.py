"""
Flatten the namespace/pod tree into numbered display rows.

Row numbers are dense and start at 0. Every row belongs to exactly one of
a namespace, a pod or a namespace error. Folded namespaces keep their own
row but their error and pods get none.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

from .model import Namespace, Pod

NAME_COL_START_WIDTH = 20
STATUS_COL_START_WIDTH = 8
NAMESPACE_NAME_MARGIN = 2
POD_NAME_MARGIN = 5
STATUS_MARGIN = 3

Entity = Union[Namespace, Pod, str]


class CollapseState:
    """Folded flags keyed by namespace name. Unknown names are unfolded."""

    def __init__(self) -> None:
        self._folded: Dict[str, bool] = {}

    def is_folded(self, name: str) -> bool:
        return self._folded.get(name, False)

    def fold(self, name: str) -> None:
        self._folded[name] = True

    def unfold(self, name: str) -> None:
        self._folded[name] = False

    def fold_all(self, names: Iterable[str]) -> None:
        for name in names:
            self._folded[name] = True

    def unfold_all(self, names: Iterable[str]) -> None:
        for name in names:
            self._folded[name] = False


@dataclass
class Positions:
    namespaces: Dict[int, Namespace] = field(default_factory=dict)
    pods: Dict[int, Pod] = field(default_factory=dict)
    errors: Dict[int, str] = field(default_factory=dict)
    last_index: int = -1
    name_width: int = NAME_COL_START_WIDTH
    status_width: int = STATUS_COL_START_WIDTH
    by_name: Dict[str, Namespace] = field(default_factory=dict)

    def has_namespace(self, index: int) -> bool:
        return index in self.namespaces

    def has_pod(self, index: int) -> bool:
        return index in self.pods

    def has_error(self, index: int) -> bool:
        return index in self.errors

    def entity_at(self, index: int) -> Optional[Entity]:
        """Return the namespace, pod or error text on a row, or None."""
        if index in self.namespaces:
            return self.namespaces[index]
        if index in self.pods:
            return self.pods[index]
        if index in self.errors:
            return self.errors[index]
        return None

    def namespace_of(self, pod: Pod) -> Optional[Namespace]:
        return self.by_name.get(pod.namespace)


def build_positions(
    namespaces: Iterable[Namespace], collapsed: CollapseState
) -> Positions:
    """Number every visible row in source order and size the name/status columns."""
    position = 0
    ns_positions: Dict[int, Namespace] = {}
    pod_positions: Dict[int, Pod] = {}
    err_positions: Dict[int, str] = {}
    by_name: Dict[str, Namespace] = {}

    name_width = NAME_COL_START_WIDTH
    status_width = STATUS_COL_START_WIDTH

    for ns in namespaces:
        by_name[ns.name] = ns
        ns_positions[position] = ns
        name_width = max(name_width, len(ns.name) + NAMESPACE_NAME_MARGIN)
        position += 1
        if collapsed.is_folded(ns.name):
            continue
        if ns.has_error:
            err_positions[position] = ns.error
            position += 1
        for pod in ns.pods:
            pod_positions[position] = pod
            name_width = max(name_width, len(pod.name) + POD_NAME_MARGIN)
            status_width = max(status_width, len(pod.status) + STATUS_MARGIN)
            position += 1

    assert len(ns_positions) + len(pod_positions) + len(err_positions) == position

    return Positions(
        namespaces=ns_positions,
        pods=pod_positions,
        errors=err_positions,
        last_index=position - 1,
        name_width=name_width,
        status_width=status_width,
        by_name=by_name,
    )
