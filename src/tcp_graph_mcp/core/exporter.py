from __future__ import annotations
from typing import Optional

from graphviz import Digraph

from .config import GraphConfig
from .correlator import EdgeCorrelator
from .models import Direction, NetworkEndpoint, ProcessNode


def node_id(pid: int) -> str:
    return f"pid_{pid}"


def unresolved_id(endpoint: NetworkEndpoint) -> str:
    # graphviz reads ":" in an edge endpoint as a port suffix
    return f"ep_{endpoint.ip.replace(':', '_')}_{endpoint.port}"


def node_label(node: ProcessNode, show_ports: bool = False) -> str:
    # DOT reads a backslash before the newline as a line continuation
    name = node.name.replace("\\", "\\\\")
    label = f"PID={node.pid}\nName={name}\nIP={node.ip}"
    if show_ports:
        label += "\nPorts=" + ",".join(str(p) for p in sorted(node.ports))
    return label


class DotExporter:
    """
    Renders a correlator's graph as a graphviz Digraph.

    One node per process, one edge per resolved connection. With
    show_unresolved, endpoints nobody claimed become dashed PID=? nodes.
    No correlation happens here.
    """

    def __init__(self, config: Optional[GraphConfig] = None):
        self.config = config or GraphConfig()

    def build(self, correlator: EdgeCorrelator) -> Digraph:
        g = Digraph(self.config.graph_name)

        for node in sorted(correlator.store, key=lambda n: n.pid):
            g.node(node_id(node.pid), node_label(node, self.config.show_ports))

        for edge in correlator.edges:
            g.edge(node_id(edge.source.pid), node_id(edge.dest.pid), label=correlator.edge_label(edge))

        if self.config.show_unresolved:
            self._add_unresolved(g, correlator)

        return g

    def _add_unresolved(self, g: Digraph, correlator: EdgeCorrelator) -> None:
        drawn = set()
        for pending in correlator.pending():
            remote = pending.remote
            rid = unresolved_id(remote)
            if rid not in drawn:
                g.node(rid, f"PID=?\nIP={remote.ip}\nPort={remote.port}", style="dashed")
                drawn.add(rid)

            local_node = correlator.store.get(pending.local.pid)
            local_ep = NetworkEndpoint(local_node.ip, pending.local.port)
            if pending.direction is Direction.OUTBOUND:
                g.edge(node_id(pending.local.pid), rid, label=f"{local_ep}->{remote}", style="dashed")
            else:
                g.edge(rid, node_id(pending.local.pid), label=f"{remote}->{local_ep}", style="dashed")

    def render(self, correlator: EdgeCorrelator) -> str:
        """
        DOT source text. Turning it into an image is up to the caller.
        """
        return self.build(correlator).source
