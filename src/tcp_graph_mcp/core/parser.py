from __future__ import annotations
import fnmatch
import ipaddress
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .config import NoiseFilterConfig
from .models import Direction, NetworkEndpoint, Observation

log = logging.getLogger(__name__)

# Input lines, one per connection, local endpoint first:
#   10.0.0.9:443->10.0.0.5:8080|PID=200 CMD=svcB    local dialed remote
#   10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=svcA    remote dialed local
# The address groups are greedy so IPv6 colons stay in the address.
_LINE_RE = {
    Direction.INBOUND: re.compile(r"(.+):(\w+)<-(.+):(\w+)\|PID=(\S+) CMD=(.+)"),
    Direction.OUTBOUND: re.compile(r"(.+):(\w+)->(.+):(\w+)\|PID=(\S+) CMD=(.+)"),
}

MAX_PORT = 65535


class SkipReason(Enum):
    NO_MATCH = "no_match"
    BAD_NUMBER = "bad_number"
    BAD_ADDRESS = "bad_address"
    ZERO_PORT = "zero_port"
    LOOPBACK = "loopback"
    DENIED_PROCESS = "denied_process"


@dataclass(frozen=True)
class Skip:
    """
    A rejected line. Skips are expected and never stop the stream.
    """

    reason: SkipReason
    line: str


ParseResult = Union[Observation, Skip]


def _to_int(text: str) -> int:
    # int() accepts signs, underscores and non ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"not a decimal integer: {text!r}")
    return int(text)


def _to_ip(text: str) -> str:
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return str(ipaddress.ip_address(text))


def parse_line(line: str) -> ParseResult:
    """
    Structural parse of one input line.

    Returns an Observation, or a Skip classified as NO_MATCH, BAD_NUMBER
    or BAD_ADDRESS. No noise filtering happens here.
    """
    text = line.rstrip("\r\n")

    for direction in (Direction.INBOUND, Direction.OUTBOUND):
        m = _LINE_RE[direction].fullmatch(text)
        if m:
            break
    else:
        return Skip(SkipReason.NO_MATCH, text)

    local_ip, local_port, remote_ip, remote_port, pid, name = m.groups()

    try:
        local_port_n = _to_int(local_port)
        remote_port_n = _to_int(remote_port)
        pid_n = _to_int(pid)
    except ValueError:
        return Skip(SkipReason.BAD_NUMBER, text)

    if local_port_n > MAX_PORT or remote_port_n > MAX_PORT:
        return Skip(SkipReason.BAD_NUMBER, text)

    try:
        local = NetworkEndpoint(ip=_to_ip(local_ip), port=local_port_n)
        remote = NetworkEndpoint(ip=_to_ip(remote_ip), port=remote_port_n)
    except ValueError:
        return Skip(SkipReason.BAD_ADDRESS, text)

    return Observation(direction=direction, local=local, remote=remote, pid=pid_n, name=name)


class NoiseFilter:
    """
    Drops observations that are not worth drawing.

    Checks, first failure wins:
      zero port on either side
      IP inside a loopback cidr on either side
      process name on the deny list
    """

    def __init__(self, config: Optional[NoiseFilterConfig] = None):
        self.config = config or NoiseFilterConfig()
        self._networks = [ipaddress.ip_network(c, strict=False) for c in self.config.loopback_cidrs]
        self._deny: List[str] = list(self.config.deny_processes)

    def is_loopback(self, ip: str) -> bool:
        addr = ipaddress.ip_address(ip)
        candidates = [addr]
        mapped = getattr(addr, "ipv4_mapped", None)
        if mapped is not None:
            candidates.append(mapped)
        return any(a in net for a in candidates for net in self._networks)

    def is_denied(self, name: str) -> bool:
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self._deny)

    def check(self, obs: Observation) -> Optional[SkipReason]:
        if obs.local.port == 0 or obs.remote.port == 0:
            return SkipReason.ZERO_PORT
        if self.is_loopback(obs.local.ip) or self.is_loopback(obs.remote.ip):
            return SkipReason.LOOPBACK
        if self.is_denied(obs.name):
            return SkipReason.DENIED_PROCESS
        return None


class LineParser:
    """
    Parse plus noise filter. Pure, the same line always gives the same result.
    """

    def __init__(self, noise_filter: Optional[NoiseFilter] = None):
        self.noise_filter = noise_filter or NoiseFilter()

    def parse(self, line: str) -> ParseResult:
        result = parse_line(line)
        if isinstance(result, Skip):
            log.debug("skip %s: %s", result.reason.value, result.line)
            return result

        reason = self.noise_filter.check(result)
        if reason is not None:
            log.debug("skip %s: %s", reason.value, line.rstrip("\r\n"))
            return Skip(reason, line.rstrip("\r\n"))

        return result
