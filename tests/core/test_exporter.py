from tcp_graph_mcp.core.config import GraphConfig
from tcp_graph_mcp.core.exporter import DotExporter, node_label, unresolved_id
from tcp_graph_mcp.core.models import NetworkEndpoint, ProcessIdentity, ProcessNode

SAMPLE = [
    "10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=svcA",
    "10.0.0.9:443->10.0.0.5:8080|PID=200 CMD=svcB",
]


def test_node_label():
    node = ProcessNode(identity=ProcessIdentity(pid=100, name="svcA", ip="10.0.0.5"), ports={9090, 8080})
    assert node_label(node) == "PID=100\nName=svcA\nIP=10.0.0.5"
    assert node_label(node, show_ports=True) == "PID=100\nName=svcA\nIP=10.0.0.5\nPorts=8080,9090"


def test_unresolved_id_has_no_colons():
    assert ":" not in unresolved_id(NetworkEndpoint("fd00::1", 443))


def test_export_nodes_and_edges(correlator):
    correlator.ingest_lines(SAMPLE)

    src = DotExporter().render(correlator)

    assert src.startswith("digraph tcp_graph {")
    assert "PID=100\nName=svcA\nIP=10.0.0.5" in src
    assert "PID=200\nName=svcB\nIP=10.0.0.9" in src
    assert src.count(" -> ") == 1
    assert 'pid_200 -> pid_100 [label="10.0.0.9:443->10.0.0.5:8080"]' in src


def test_export_hides_unresolved_by_default(correlator):
    correlator.ingest("10.0.0.5:41000->140.82.112.3:443|PID=100 CMD=svcA")

    src = DotExporter().render(correlator)

    assert "PID=?" not in src
    assert " -> " not in src


def test_export_unresolved_placeholders(correlator):
    correlator.ingest("10.0.0.5:41000->140.82.112.3:443|PID=100 CMD=svcA")
    correlator.ingest("10.0.0.5:8080<-10.0.0.77:50000|PID=100 CMD=svcA")

    src = DotExporter(GraphConfig(show_unresolved=True)).render(correlator)

    assert "PID=?\nIP=140.82.112.3\nPort=443" in src
    assert "10.0.0.5:41000->140.82.112.3:443" in src
    assert "10.0.0.77:50000->10.0.0.5:8080" in src
    assert "style=dashed" in src
    assert src.count(" -> ") == 2


def test_node_label_escapes_backslashes(correlator):
    correlator.ingest("10.0.0.5:8080<-10.0.0.9:443|PID=100 CMD=C:\\svc\\")

    node = correlator.store.get(100)
    assert node.name == "C:\\svc\\"
    assert node_label(node) == "PID=100\nName=C:\\\\svc\\\\\nIP=10.0.0.5"
    assert "Name=C:\\\\svc\\\\\nIP=10.0.0.5" in DotExporter().render(correlator)
