from __future__ import annotations
import argparse
import io
import logging
import sys
from typing import BinaryIO, List, Optional, TextIO

from tcp_graph_mcp.core.config import NoiseFilterConfig, graph_config_from_env, noise_filter_from_env
from tcp_graph_mcp.core.correlator import EdgeCorrelator
from tcp_graph_mcp.core.errors import ConsistencyError
from tcp_graph_mcp.core.exporter import DotExporter
from tcp_graph_mcp.core.parser import LineParser, NoiseFilter

EXIT_CONSISTENCY = 2

log = logging.getLogger("tcp_graph_mcp.cli.correlate")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tcp-graph-correlate",
        description="Read TCP observation lines on stdin, write a DOT graph on stdout.",
    )
    p.add_argument(
        "--loopback-cidr",
        action="append",
        metavar="CIDR",
        help="network to ignore, repeatable (default from TCP_GRAPH_LOOPBACK_CIDRS or 127.0.0.0/8, ::1/128)",
    )
    p.add_argument(
        "--deny-process",
        action="append",
        metavar="NAME",
        help="process name or glob to ignore, repeatable (default from TCP_GRAPH_DENY_PROCESSES or k3s-server)",
    )
    p.add_argument("--show-ports", action="store_true", default=None, help="list local ports in node labels")
    p.add_argument(
        "--show-unresolved",
        action="store_true",
        default=None,
        help="draw endpoints with no known process as dashed PID=? nodes",
    )
    p.add_argument("--log-level", default="WARNING", help="stderr log level (default WARNING)")
    return p


def utf8_lines(raw: BinaryIO) -> TextIO:
    """
    Decode the capture feed as UTF-8, replacing bad bytes so one garbled
    CMD= field cannot stop the stream.
    """
    return io.TextIOWrapper(raw, encoding="utf-8", errors="replace")


def run(stdin: TextIO, stdout: TextIO, argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    noise = noise_filter_from_env()
    if args.loopback_cidr is not None or args.deny_process is not None:
        noise = NoiseFilterConfig(
            loopback_cidrs=args.loopback_cidr if args.loopback_cidr is not None else noise.loopback_cidrs,
            deny_processes=args.deny_process if args.deny_process is not None else noise.deny_processes,
        )

    graph = graph_config_from_env()
    if args.show_ports is not None:
        graph.show_ports = args.show_ports
    if args.show_unresolved is not None:
        graph.show_unresolved = args.show_unresolved

    correlator = EdgeCorrelator(parser=LineParser(NoiseFilter(noise)))
    try:
        correlator.ingest_lines(stdin)
    except ConsistencyError as e:
        log.error("aborting after %d lines: %s", correlator.lines_seen, e)
        return EXIT_CONSISTENCY

    log.info("done: %s", correlator.stats())
    stdout.write(DotExporter(graph).render(correlator))
    return 0


def main() -> None:
    """
    Example:
      tcp_tracer | python -m tcp_graph_mcp.cli.correlate > graph.dot
      dot -Tsvg graph.dot > graph.svg
    """
    sys.exit(run(utf8_lines(sys.stdin.buffer), sys.stdout))


if __name__ == "__main__":
    main()
