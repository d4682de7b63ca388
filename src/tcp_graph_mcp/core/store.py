from __future__ import annotations
from typing import Dict, Iterator, Optional

from .errors import ProcessIdentityConflict
from .models import ProcessIdentity, ProcessNode


class ProcessStore:
    """
    In memory store of ProcessNode objects keyed by pid.

    Nodes are created on first sighting and only ever gain ports.
    Nothing is evicted, a capture session is expected to be bounded.
    """

    def __init__(self):
        self._nodes: Dict[int, ProcessNode] = {}

    def check(self, identity: ProcessIdentity) -> None:
        """
        Raise ProcessIdentityConflict if identity disagrees with what is stored.
        """
        node = self._nodes.get(identity.pid)
        if node is None:
            return
        if node.name != identity.name:
            raise ProcessIdentityConflict(identity.pid, "name", node.name, identity.name)
        if node.ip != identity.ip:
            raise ProcessIdentityConflict(identity.pid, "ip", node.ip, identity.ip)

    def upsert(self, identity: ProcessIdentity, port: int) -> ProcessNode:
        """
        Create the node or add port to it. Returns the node after the change.
        """
        self.check(identity)

        node = self._nodes.get(identity.pid)
        if node is None:
            node = ProcessNode(identity=identity, ports={port})
            self._nodes[identity.pid] = node
        else:
            node.ports.add(port)
        return node

    def get(self, pid: int) -> Optional[ProcessNode]:
        return self._nodes.get(pid)

    def __contains__(self, pid: int) -> bool:
        return pid in self._nodes

    def __iter__(self) -> Iterator[ProcessNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
