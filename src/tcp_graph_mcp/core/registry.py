from __future__ import annotations
from typing import Dict, Optional

from .errors import EndpointOwnershipConflict
from .models import NetworkEndpoint


class EndpointRegistry:
    """
    Maps a local endpoint to the pid that owns it.

    A remote endpoint in one observation is often the local endpoint of
    another observation. The registry is how the correlator recognizes the
    remote party as a process it already knows.

    One endpoint has at most one owner for the whole run.
    """

    def __init__(self):
        self._owners: Dict[NetworkEndpoint, int] = {}

    def register(self, endpoint: NetworkEndpoint, pid: int) -> bool:
        """
        True when the endpoint was new. Registering the same owner twice is
        a no-op, a different owner raises EndpointOwnershipConflict.
        """
        owner = self._owners.get(endpoint)
        if owner is None:
            self._owners[endpoint] = pid
            return True
        if owner != pid:
            raise EndpointOwnershipConflict(endpoint, owner, pid)
        return False

    def check(self, endpoint: NetworkEndpoint, pid: int) -> None:
        owner = self._owners.get(endpoint)
        if owner is not None and owner != pid:
            raise EndpointOwnershipConflict(endpoint, owner, pid)

    def lookup(self, endpoint: NetworkEndpoint) -> Optional[int]:
        return self._owners.get(endpoint)

    def __contains__(self, endpoint: NetworkEndpoint) -> bool:
        return endpoint in self._owners

    def __len__(self) -> int:
        return len(self._owners)
