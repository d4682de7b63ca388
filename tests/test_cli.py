import io

from tcp_graph_mcp.cli.correlate import EXIT_CONSISTENCY, run, utf8_lines

FEED = "\n".join(
    [
        "10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=svcA",
        "garbage line",
        "127.0.0.1:9000->127.0.0.1:9001|PID=400 CMD=sidecar",
        "10.0.0.9:443->10.0.0.5:8080|PID=200 CMD=svcB",
        "10.0.0.9:50000->140.82.112.3:443|PID=200 CMD=svcB",
    ]
) + "\n"


def test_cli_writes_dot(monkeypatch):
    monkeypatch.delenv("TCP_GRAPH_LOOPBACK_CIDRS", raising=False)
    monkeypatch.delenv("TCP_GRAPH_DENY_PROCESSES", raising=False)
    out = io.StringIO()

    code = run(io.StringIO(FEED), out, argv=[])

    assert code == 0
    src = out.getvalue()
    assert src.startswith("digraph")
    assert "10.0.0.9:443->10.0.0.5:8080" in src
    assert "sidecar" not in src
    assert "PID=?" not in src


def test_cli_flags(monkeypatch):
    monkeypatch.delenv("TCP_GRAPH_DENY_PROCESSES", raising=False)
    out = io.StringIO()

    code = run(io.StringIO(FEED), out, argv=["--deny-process", "svcB", "--show-ports", "--show-unresolved"])

    assert code == 0
    src = out.getvalue()
    assert "Name=svcB" not in src
    assert "Ports=8080" in src
    assert "PID=?" in src


def test_cli_consistency_violation_exits(monkeypatch):
    feed = io.StringIO(
        "10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=svcA\n"
        "10.0.0.6:8080<-10.0.0.9:443|PID=100 CMD=svcA\n"
    )
    out = io.StringIO()

    code = run(feed, out, argv=[])

    assert code == EXIT_CONSISTENCY
    assert out.getvalue() == ""


def test_cli_survives_undecodable_bytes(monkeypatch):
    monkeypatch.delenv("TCP_GRAPH_DENY_PROCESSES", raising=False)
    raw = io.BytesIO(
        b"\xff\xfe garbage\n"
        b"10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=svcA\n"
        b"10.0.0.9:443->10.0.0.5:8080|PID=200 CMD=svcB\n"
    )
    out = io.StringIO()

    code = run(utf8_lines(raw), out, argv=[])

    assert code == 0
    assert 'pid_200 -> pid_100 [label="10.0.0.9:443->10.0.0.5:8080"]' in out.getvalue()
