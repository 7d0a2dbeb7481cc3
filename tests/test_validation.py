import math
import os

import numpy as np
import pytest

from csr_pagerank.stage3_pagerank import compute_pagerank
from csr_pagerank.stage4_validation import networkx_pagerank, verify_with_networkx

# Six nodes, node 5 dangling, node 4 without in-links
EDGES = [(0, 1), (0, 2), (1, 2), (2, 0), (3, 2), (3, 5), (4, 3), (4, 2), (1, 5)]


def test_matches_networkx(make_graph):
    graph = make_graph(6, EDGES)
    ranks = compute_pagerank(graph, "pull", 0.85, threshold=1e-12)
    metrics = verify_with_networkx(graph, ranks, 0.85)
    assert metrics["mae"] < 1e-5
    assert metrics["max_error"] < 1e-4
    assert metrics["spearman"] > 0.9
    assert metrics["top5_overlap"] >= 4
    assert metrics["plot_path"] is None


def test_default_threshold_is_close_to_networkx(make_graph):
    graph = make_graph(3, [(0, 1), (1, 2)])
    for style in ("pull", "push"):
        ranks = compute_pagerank(graph, style, 0.85)
        np.testing.assert_allclose(ranks, networkx_pagerank(graph, 0.85), atol=1e-2)


def test_constant_scores_have_no_correlation(make_graph, capsys):
    graph = make_graph(2, [(0, 1), (1, 0)])
    metrics = verify_with_networkx(graph, [0.5, 0.5], 0.85)
    assert math.isnan(metrics["spearman"])
    assert math.isnan(metrics["kendall"])
    assert metrics["mae"] == pytest.approx(0.0, abs=1e-6)
    assert "rank correlation undefined" in capsys.readouterr().out


def test_plot_written(make_graph, tmp_path):
    graph = make_graph(6, EDGES)
    ranks = compute_pagerank(graph, "push", 0.85)
    metrics = verify_with_networkx(graph, ranks, 0.85, plot_dir=str(tmp_path / "docs"))
    assert os.path.isfile(metrics["plot_path"])
