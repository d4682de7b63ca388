import pytest

from tcp_graph_mcp.core.config import NoiseFilterConfig
from tcp_graph_mcp.core.correlator import EdgeCorrelator
from tcp_graph_mcp.core.parser import LineParser, NoiseFilter


@pytest.fixture
def noise_config():
    return NoiseFilterConfig(loopback_cidrs=["127.0.0.0/8", "::1/128"], deny_processes=["k3s-server"])


@pytest.fixture
def line_parser(noise_config):
    return LineParser(NoiseFilter(noise_config))


@pytest.fixture
def correlator(line_parser):
    return EdgeCorrelator(parser=line_parser)
