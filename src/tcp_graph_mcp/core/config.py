from __future__ import annotations
import ipaddress
import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_LOOPBACK_CIDRS = ["127.0.0.0/8", "::1/128"]

# k3s-server talks to everything; its edges drown the rest of the graph.
DEFAULT_DENY_PROCESSES = ["k3s-server"]

ENV_LOOPBACK_CIDRS = "TCP_GRAPH_LOOPBACK_CIDRS"
ENV_DENY_PROCESSES = "TCP_GRAPH_DENY_PROCESSES"
ENV_SHOW_PORTS = "TCP_GRAPH_SHOW_PORTS"
ENV_SHOW_UNRESOLVED = "TCP_GRAPH_SHOW_UNRESOLVED"


@dataclass
class NoiseFilterConfig:
    """
    Noise filter policy handed to the parser.

    loopback_cidrs
      Lines with an IP inside any of these networks on either side are skipped.

    deny_processes
      Lines from a process whose name matches one of these globs are skipped.
    """

    loopback_cidrs: List[str] = field(default_factory=lambda: list(DEFAULT_LOOPBACK_CIDRS))
    deny_processes: List[str] = field(default_factory=lambda: list(DEFAULT_DENY_PROCESSES))

    def __post_init__(self):
        for cidr in self.loopback_cidrs:
            try:
                ipaddress.ip_network(cidr, strict=False)
            except ValueError as e:
                raise ValueError(f"invalid loopback cidr {cidr!r}: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loopback_cidrs": list(self.loopback_cidrs),
            "deny_processes": list(self.deny_processes),
        }


@dataclass
class GraphConfig:
    """
    Rendering options for the exporter.
    """

    show_ports: bool = False
    show_unresolved: bool = False
    graph_name: str = "tcp_graph"


def _json_list(env: Mapping[str, str], name: str) -> Optional[List[str]]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"{name} is not valid JSON: {e}") from e
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{name} must be a JSON list of strings")
    return value


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def noise_filter_from_env(env: Optional[Mapping[str, str]] = None) -> NoiseFilterConfig:
    """
    Load the noise policy from environment variables.

    Example:
      export TCP_GRAPH_LOOPBACK_CIDRS='["127.0.0.0/8", "::1/128", "169.254.0.0/16"]'
      export TCP_GRAPH_DENY_PROCESSES='["k3s-server", "coredns*"]'

    Unset variables fall back to the defaults.
    """
    env = os.environ if env is None else env
    cfg = NoiseFilterConfig()

    cidrs = _json_list(env, ENV_LOOPBACK_CIDRS)
    if cidrs is not None:
        cfg = NoiseFilterConfig(loopback_cidrs=cidrs, deny_processes=cfg.deny_processes)

    deny = _json_list(env, ENV_DENY_PROCESSES)
    if deny is not None:
        cfg.deny_processes = deny

    return cfg


def graph_config_from_env(env: Optional[Mapping[str, str]] = None) -> GraphConfig:
    env = os.environ if env is None else env
    return GraphConfig(
        show_ports=_flag(env, ENV_SHOW_PORTS, False),
        show_unresolved=_flag(env, ENV_SHOW_UNRESOLVED, False),
    )
