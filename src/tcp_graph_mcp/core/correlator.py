from __future__ import annotations
import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from .dedupe import EdgeDeduper
from .errors import ConsistencyError, CorrelatorHalted
from .models import Edge, NetworkEndpoint, Observation, PendingConnection, ProcessEndpoint, orient
from .parser import LineParser, Skip, SkipReason
from .registry import EndpointRegistry
from .store import ProcessStore

log = logging.getLogger(__name__)

EdgeListener = Callable[[Edge, str], None]


class EdgeCorrelator:
    """
    Turns observations into a process to process graph.

    Owns the three pieces of run state:
      store
        ProcessStore, one node per pid with its local ports

      registry
        EndpointRegistry, local endpoint -> owning pid

      edges
        EdgeDeduper, every edge drawn so far

    Per observation:
      1. upsert the local process
      2. register the local endpoint to it
      3. look up the remote endpoint
      4. if known, orient the pair by direction and record the edge once

    An unknown remote endpoint is remembered as pending. Usually the other
    side of the connection shows up a line or two later and resolves it.
    If another process registers that endpoint later, the pending connection
    is resolved then. Endpoints outside the capture never resolve.

    Single threaded. If input is consumed concurrently, feed one correlator
    from one task.
    """

    def __init__(self, parser: Optional[LineParser] = None, on_edge: Optional[EdgeListener] = None):
        self.parser = parser or LineParser()
        self.store = ProcessStore()
        self.registry = EndpointRegistry()
        self.edges = EdgeDeduper()
        self.on_edge = on_edge

        self._pending: Dict[NetworkEndpoint, Dict[PendingConnection, None]] = {}
        self._failure: Optional[ConsistencyError] = None

        self.lines_seen = 0
        self.accepted = 0
        self.skipped: Counter = Counter()

    @property
    def halted(self) -> bool:
        return self._failure is not None

    def _ensure_running(self) -> None:
        if self._failure is not None:
            raise CorrelatorHalted(f"correlation stopped: {self._failure}") from self._failure

    def ingest(self, line: str) -> List[Edge]:
        """
        Parse and correlate one line. Returns the edges it created.

        Skipped lines return an empty list. Consistency violations raise and
        halt the correlator.
        """
        self._ensure_running()
        self.lines_seen += 1

        result = self.parser.parse(line)
        if isinstance(result, Skip):
            self.skipped[result.reason] += 1
            return []

        return self.observe(result)

    def ingest_lines(self, lines: Iterable[str]) -> List[Edge]:
        new_edges: List[Edge] = []
        for line in lines:
            new_edges.extend(self.ingest(line))
        return new_edges

    def observe(self, obs: Observation) -> List[Edge]:
        self._ensure_running()
        identity = obs.identity()

        # Validate before touching state so a bad line leaves nothing behind.
        try:
            self.store.check(identity)
            self.registry.check(obs.local, obs.pid)
        except ConsistencyError as e:
            log.error("consistency violation, stopping: %s", e)
            self._failure = e
            raise

        self.accepted += 1
        if obs.pid not in self.store:
            log.debug("new process pid=%d name=%s ip=%s", obs.pid, obs.name, obs.local.ip)
        self.store.upsert(identity, obs.local.port)

        new_edges: List[Edge] = []
        if self.registry.register(obs.local, obs.pid):
            new_edges.extend(self._resolve_pending(obs.local, obs.pid))

        local = ProcessEndpoint(pid=obs.pid, port=obs.local.port)
        remote_pid = self.registry.lookup(obs.remote)
        if remote_pid is None:
            pending = PendingConnection(local=local, remote=obs.remote, direction=obs.direction)
            self._pending.setdefault(obs.remote, {})[pending] = None
            return new_edges

        edge = orient(obs.direction, local, ProcessEndpoint(pid=remote_pid, port=obs.remote.port))
        if self._record(edge):
            new_edges.append(edge)
        return new_edges

    def _resolve_pending(self, endpoint: NetworkEndpoint, pid: int) -> List[Edge]:
        waiting = self._pending.pop(endpoint, None)
        if not waiting:
            return []

        resolved: List[Edge] = []
        for pending in waiting:
            edge = pending.resolve(pid)
            if self._record(edge):
                log.debug("late resolution of %s to pid %d: %s", endpoint, pid, self.edge_label(edge))
                resolved.append(edge)
        return resolved

    def _record(self, edge: Edge) -> bool:
        if not self.edges.should_emit(edge):
            return False
        label = self.edge_label(edge)
        log.debug("new edge %s (%s)", edge.key(), label)
        if self.on_edge is not None:
            self.on_edge(edge, label)
        return True

    def edge_label(self, edge: Edge) -> str:
        source = self.store.get(edge.source.pid)
        dest = self.store.get(edge.dest.pid)
        return (
            f"{NetworkEndpoint(source.ip, edge.source.port)}"
            f"->{NetworkEndpoint(dest.ip, edge.dest.port)}"
        )

    def pending(self) -> List[PendingConnection]:
        """
        Connections whose remote endpoint has no known owner.
        """
        out: List[PendingConnection] = []
        for waiting in self._pending.values():
            out.extend(waiting)
        return out

    def stats(self) -> Dict[str, Any]:
        return {
            "lines_seen": self.lines_seen,
            "accepted": self.accepted,
            "skipped": {reason.value: self.skipped.get(reason, 0) for reason in SkipReason},
            "nodes": len(self.store),
            "endpoints": len(self.registry),
            "edges": len(self.edges),
            "pending_endpoints": len(self._pending),
            "halted": self.halted,
            "error": str(self._failure) if self._failure else None,
        }

    def snapshot(self) -> Dict[str, Any]:
        """
        JSON friendly view of the graph built so far.
        """
        return {
            "nodes": [n.to_dict() for n in sorted(self.store, key=lambda n: n.pid)],
            "edges": [
                {
                    "source": {"pid": e.source.pid, "port": e.source.port},
                    "dest": {"pid": e.dest.pid, "port": e.dest.port},
                    "label": self.edge_label(e),
                }
                for e in self.edges
            ],
            "pending": [
                {
                    "local": {"pid": p.local.pid, "port": p.local.port},
                    "remote": str(p.remote),
                    "direction": p.direction.value,
                }
                for p in self.pending()
            ],
        }
