from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Set


class Direction(Enum):
    """
    Direction of a connection relative to the observing process.

    OUTBOUND
      The local process dialed the remote endpoint.

    INBOUND
      The remote endpoint dialed the local process.
    """

    OUTBOUND = "outbound"
    INBOUND = "inbound"


@dataclass(frozen=True)
class NetworkEndpoint:
    """
    IP:port pair. Only unique within one capture session.
    """

    ip: str
    port: int

    def __str__(self) -> str:
        if ":" in self.ip:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass(frozen=True)
class Observation:
    """
    One accepted input line.

    Fields:
      direction
        OUTBOUND or INBOUND, relative to the local process.

      local, remote
        Endpoints as seen by the local process.

      pid, name
        Process id and command name of the local process.
    """

    direction: Direction
    local: NetworkEndpoint
    remote: NetworkEndpoint
    pid: int
    name: str

    def identity(self) -> "ProcessIdentity":
        return ProcessIdentity(pid=self.pid, name=self.name, ip=self.local.ip)


@dataclass(frozen=True)
class ProcessIdentity:
    """
    A process id with its name and its single local IP.

    Assumes one network interface with one address per container, stable
    for as long as the pid lives.
    """

    pid: int
    name: str
    ip: str


@dataclass
class ProcessNode:
    """
    A process plus every local port it was seen using.
    """

    identity: ProcessIdentity
    ports: Set[int] = field(default_factory=set)

    @property
    def pid(self) -> int:
        return self.identity.pid

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def ip(self) -> str:
        return self.identity.ip

    def to_dict(self):
        return {
            "pid": self.pid,
            "name": self.name,
            "ip": self.ip,
            "ports": sorted(self.ports),
        }


@dataclass(frozen=True, order=True)
class ProcessEndpoint:
    pid: int
    port: int


@dataclass(frozen=True, order=True)
class Edge:
    """
    Directed connection between two known processes.

    The ordered (source, dest) pair is the dedup key, so A->B and B->A are
    different edges.
    """

    source: ProcessEndpoint
    dest: ProcessEndpoint

    def key(self) -> str:
        return f"{self.source.pid}:{self.source.port}->{self.dest.pid}:{self.dest.port}"


@dataclass(frozen=True)
class PendingConnection:
    """
    Local side of an observation whose remote endpoint has no known owner yet.
    """

    local: ProcessEndpoint
    remote: NetworkEndpoint
    direction: Direction

    def resolve(self, remote_pid: int) -> Edge:
        return orient(self.direction, self.local, ProcessEndpoint(pid=remote_pid, port=self.remote.port))


def orient(direction: Direction, local: ProcessEndpoint, remote: ProcessEndpoint) -> Edge:
    """
    Build the edge for one observation.

    OUTBOUND: local is the source.
    INBOUND: local is the destination.
    """
    if direction is Direction.OUTBOUND:
        return Edge(source=local, dest=remote)
    return Edge(source=remote, dest=local)
