"""
Core correlation modules.

Input capture and graph rendering stay outside this package. The core only
turns observation lines into nodes and edges.
"""

from .models import Direction, Edge, NetworkEndpoint, Observation, ProcessEndpoint, ProcessIdentity, ProcessNode
from .errors import ConsistencyError, CorrelatorHalted, EndpointOwnershipConflict, ProcessIdentityConflict
from .config import GraphConfig, NoiseFilterConfig
from .parser import LineParser, NoiseFilter, Skip, SkipReason, parse_line
from .registry import EndpointRegistry
from .store import ProcessStore
from .correlator import EdgeCorrelator
from .exporter import DotExporter

__all__ = [
    "Direction",
    "Edge",
    "NetworkEndpoint",
    "Observation",
    "ProcessEndpoint",
    "ProcessIdentity",
    "ProcessNode",
    "ConsistencyError",
    "CorrelatorHalted",
    "EndpointOwnershipConflict",
    "ProcessIdentityConflict",
    "GraphConfig",
    "NoiseFilterConfig",
    "LineParser",
    "NoiseFilter",
    "Skip",
    "SkipReason",
    "parse_line",
    "EndpointRegistry",
    "ProcessStore",
    "EdgeCorrelator",
    "DotExporter",
]
