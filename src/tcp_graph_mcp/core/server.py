from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import GraphConfig, NoiseFilterConfig
from .correlator import EdgeCorrelator
from .errors import ConsistencyError, CorrelatorHalted
from .exporter import DotExporter
from .parser import LineParser, NoiseFilter

logger = logging.getLogger(__name__)


class GraphMCPServer:
    """
    MCP server around one EdgeCorrelator.

    Responsibilities:
      Accept observation lines from a capture agent
      Expose the graph as DOT text and as JSON
      Let the caller change the noise filter at runtime

    All tools share the same correlator, so the graph accumulates for as
    long as the server runs.
    """

    def __init__(
        self,
        noise: Optional[NoiseFilterConfig] = None,
        graph: Optional[GraphConfig] = None,
    ):
        self.noise = noise or NoiseFilterConfig()
        self.graph = graph or GraphConfig()
        self.correlator = EdgeCorrelator(parser=LineParser(NoiseFilter(self.noise)))
        self.mcp = FastMCP("tcp_graph_mcp")

        self._register_tools()

    def _log(self, msg: str) -> None:
        logger.info(msg)

    def ingest_lines(self, lines: List[str]) -> Dict[str, Any]:
        before = self.correlator.lines_seen
        try:
            edges = self.correlator.ingest_lines(lines)
        except (ConsistencyError, CorrelatorHalted) as e:
            self._log(f"ingest stopped: {e}")
            return {
                "ok": False,
                "error": str(e),
                "lines": self.correlator.lines_seen - before,
                "stats": self.correlator.stats(),
            }

        return {
            "ok": True,
            "lines": self.correlator.lines_seen - before,
            "new_edges": [self.correlator.edge_label(e) for e in edges],
            "stats": self.correlator.stats(),
        }

    def ingest_file(self, path: str) -> Dict[str, Any]:
        with open(path, encoding="utf-8", errors="replace") as fh:
            return self.ingest_lines(fh)

    def set_noise_filter(
        self,
        loopback_cidrs: Optional[List[str]] = None,
        deny_processes: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Replace the noise policy. Only lines ingested afterwards are affected.
        """
        self.noise = NoiseFilterConfig(
            loopback_cidrs=list(loopback_cidrs) if loopback_cidrs is not None else self.noise.loopback_cidrs,
            deny_processes=list(deny_processes) if deny_processes is not None else self.noise.deny_processes,
        )
        self.correlator.parser = LineParser(NoiseFilter(self.noise))
        self._log(f"noise filter updated: {self.noise.to_dict()}")
        return self.noise.to_dict()

    def graph_dot(self, show_ports: Optional[bool] = None, show_unresolved: Optional[bool] = None) -> str:
        cfg = GraphConfig(
            show_ports=self.graph.show_ports if show_ports is None else bool(show_ports),
            show_unresolved=self.graph.show_unresolved if show_unresolved is None else bool(show_unresolved),
            graph_name=self.graph.graph_name,
        )
        return DotExporter(cfg).render(self.correlator)

    def _register_tools(self) -> None:
        @self.mcp.tool()
        def ingest_lines(lines: List[str]) -> Dict[str, Any]:
            return self.ingest_lines(lines)

        @self.mcp.tool()
        def ingest_file(path: str) -> Dict[str, Any]:
            return self.ingest_file(path)

        @self.mcp.tool()
        def set_noise_filter(
            loopback_cidrs: Optional[List[str]] = None,
            deny_processes: Optional[List[str]] = None,
        ) -> Dict[str, Any]:
            return self.set_noise_filter(loopback_cidrs=loopback_cidrs, deny_processes=deny_processes)

        @self.mcp.tool()
        def graph_dot(show_ports: Optional[bool] = None, show_unresolved: Optional[bool] = None) -> str:
            return self.graph_dot(show_ports=show_ports, show_unresolved=show_unresolved)

        @self.mcp.tool()
        def graph_summary() -> Dict[str, Any]:
            return self.correlator.snapshot()

        @self.mcp.tool()
        def correlator_status() -> Dict[str, Any]:
            return self.correlator.stats()

    def run(self) -> None:
        self.mcp.run()
