from __future__ import annotations
import logging

from tcp_graph_mcp.core.config import graph_config_from_env, noise_filter_from_env
from tcp_graph_mcp.core.server import GraphMCPServer


def main() -> None:
    """
    Load the noise policy and rendering options from the environment.

    Example:
      export TCP_GRAPH_DENY_PROCESSES='["k3s-server", "kubelet"]'
      export TCP_GRAPH_SHOW_UNRESOLVED=1
      python -m tcp_graph_mcp.cli.run_server
    """
    logging.basicConfig(level=logging.INFO)

    server = GraphMCPServer(noise=noise_filter_from_env(), graph=graph_config_from_env())
    server.run()


if __name__ == "__main__":
    main()
