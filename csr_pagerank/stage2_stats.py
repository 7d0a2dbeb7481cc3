# stage2_stats.py
#
# Project: CSR PageRank
#
# Description:
#   Stage 2: Turn a loaded Graph into the PageRank transition matrix and
#   report link statistics.
#
#   The transition matrix is row-oriented: row j holds the out-edges of
#   node j, each weighted 1 / C(j) where C(j) is the out-degree.  Rows of
#   dangling nodes (C(j) = 0) are empty; the engine redistributes their rank.

import numpy as np

from csr_pagerank.sparse_matrix import SparseMatrix
from csr_pagerank.utils import print_stage, print_step, print_success, print_summary_box, Timer


def build_transition(graph):
    """
    Build the row-stochastic transition matrix of a graph.

    Args:
        graph (Graph): Loaded directed graph

    Returns:
        tuple: (SparseMatrix n x n, numpy int array of out-degrees)
    """
    n = graph.num_nodes
    out_degree = np.array([graph.out_degree(u) for u in range(n)], dtype=np.int64)
    matrix = SparseMatrix(n, n)
    for u, v in graph.edges():
        matrix.set(u, v, 1.0 / out_degree[u])
    return matrix, out_degree


def build_incoming(graph):
    """
    Build the incoming link index from the outgoing one.

    Returns:
        dict: node -> list of source nodes that link to it
    """
    incoming = {u: [] for u in range(graph.num_nodes)}
    for u, v in graph.edges():
        incoming[v].append(u)
    return incoming


def compute_link_stats(link_counts, label):
    """
    Compute and display statistics for a list of link counts.

    Args:
        link_counts (list[int]): Number of links per node
        label (str): "Outgoing" or "Incoming"

    Returns:
        dict: Computed statistics
    """
    values = np.asarray(link_counts)

    stats = {
        "Min": int(np.min(values)),
        "Max": int(np.max(values)),
        "Average": f"{np.mean(values):.2f}",
        "Median": f"{np.median(values):.2f}",
        "P20": f"{np.percentile(values, 20):.2f}",
        "P40": f"{np.percentile(values, 40):.2f}",
        "P60": f"{np.percentile(values, 60):.2f}",
        "P80": f"{np.percentile(values, 80):.2f}",
    }

    print_summary_box(f"{label} Link Statistics", stats)
    return stats


def run_stats(graph):
    """
    Compute in/out-degree statistics and count dangling nodes.

    Returns:
        tuple: (incoming dict, outgoing_stats dict, incoming_stats dict, dangling count)
    """
    print_stage("Stats", "Computing link statistics")

    with Timer("Total Stage 2"):
        print_step("Building incoming link index...")
        incoming = build_incoming(graph)

        outgoing_stats = compute_link_stats(
            [graph.out_degree(u) for u in range(graph.num_nodes)], "Outgoing")
        incoming_stats = compute_link_stats(
            [len(incoming[u]) for u in range(graph.num_nodes)], "Incoming")

        dangling = sum(1 for u in range(graph.num_nodes) if graph.out_degree(u) == 0)
        print_success(f"Dangling nodes (no out-links): {dangling}")

    return incoming, outgoing_stats, incoming_stats, dangling
