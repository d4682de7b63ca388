"""
tcp_graph_mcp

Builds a process to process communication graph from TCP connection
observations, one text line per connection.

Core ideas
1. The parser turns lines into Observation objects and drops noise
2. The correlator attributes endpoints to processes and draws each edge once
3. The exporter hands the graph to graphviz as DOT text
"""

__all__ = ["core", "cli"]
