import pytest

import csr_pagerank.utils as utils
from csr_pagerank.stage1_read import Graph
from csr_pagerank.stage2_stats import build_transition
from csr_pagerank.stage3_pagerank import PageRank


@pytest.fixture(autouse=True)
def verbose_output():
    utils.set_quiet(False)
    yield
    utils.set_quiet(False)


@pytest.fixture
def make_graph():
    def _make(num_nodes, edges):
        graph = Graph(num_nodes)
        for u, v in edges:
            graph.add_edge(u, v)
        return graph
    return _make


@pytest.fixture
def make_engine(make_graph):
    def _make(num_nodes, edges):
        matrix, out_degree = build_transition(make_graph(num_nodes, edges))
        engine = PageRank()
        engine.init_matrix(matrix, out_degree)
        return engine
    return _make
