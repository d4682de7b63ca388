from __future__ import annotations
from typing import Any

from .models import NetworkEndpoint


class ConsistencyError(Exception):
    """
    Base class for fatal data consistency violations.

    Raised when the input breaks one of the working assumptions:
      one name and one IP per pid for the whole run
      one owning pid per local endpoint for the whole run

    These are never retried. The graph is wrong if they are ignored.
    """


class ProcessIdentityConflict(ConsistencyError):
    def __init__(self, pid: int, field: str, old: Any, new: Any):
        self.pid = pid
        self.field = field
        self.old = old
        self.new = new
        super().__init__(
            f"pid {pid} changed {field}: first seen as {old!r}, now reported as {new!r}"
        )


class EndpointOwnershipConflict(ConsistencyError):
    def __init__(self, endpoint: NetworkEndpoint, old_pid: int, new_pid: int):
        self.endpoint = endpoint
        self.old_pid = old_pid
        self.new_pid = new_pid
        super().__init__(
            f"endpoint {endpoint} is owned by pid {old_pid}, now claimed by pid {new_pid}"
        )


class CorrelatorHalted(RuntimeError):
    """
    Raised on any ingest after a consistency violation stopped the run.
    """
