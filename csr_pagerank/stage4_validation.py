# stage4_validation.py
#
# Project: CSR PageRank
#
# Description:
#   Stage 4: Cross-check the CSR PageRank result against NetworkX using
#   standard ranking metrics (MAE, Spearman's rho, Kendall's tau, top-5
#   overlap) and optionally save rank/score scatter plots.
#
#   NetworkX also spreads dangling-node rank uniformly, so both sides solve
#   the same problem.  NetworkX stops on an L1 criterion (N * 1e-6) while
#   this project stops on a per-index one, so small score differences are
#   expected at loose thresholds.
#
# References:
#   [1] Spearman, C. (1904).
#       "The Proof and Measurement of Association between Two Things."
#       American Journal of Psychology, 15(1), 72-101.
#   [2] Kendall, M. (1938).
#       "A New Measure of Rank Correlation."
#       Biometrika, 30(1/2), 81-93.

import os

import numpy as np
from scipy.stats import spearmanr, kendalltau, rankdata
import matplotlib
matplotlib.use('Agg')  # non-interactive backend for saving to file
import matplotlib.pyplot as plt
import networkx as nx

from csr_pagerank.utils import (
    print_stage, print_step, print_success, print_warning, print_summary_box,
    print_side_by_side_boxes, Timer,
)


def networkx_pagerank(graph, damping):
    """
    Reference PageRank from NetworkX, as an array indexed like `graph`.
    """
    G = nx.DiGraph()
    G.add_nodes_from(range(graph.num_nodes))
    G.add_edges_from(graph.edges())
    nx_pr = nx.pagerank(G, alpha=damping)
    return np.array([nx_pr[k] for k in range(graph.num_nodes)], dtype=np.float64)


def plot_validation(custom_scores, nx_scores, rho, tau, out_dir):
    """
    Save rank-vs-rank and score-vs-score scatter plots to `out_dir`.

    Returns:
        str: path of the written PNG
    """
    custom_ranks = rankdata(-custom_scores, method='ordinal')
    nx_ranks = rankdata(-nx_scores, method='ordinal')

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))

    ax1.scatter(nx_ranks, custom_ranks, s=4, alpha=0.4, c='steelblue')
    rank_max = max(custom_ranks.max(), nx_ranks.max())
    ax1.plot([1, rank_max], [1, rank_max], 'r--', linewidth=1, label='Perfect agreement')
    ax1.set_xlabel('NetworkX Rank')
    ax1.set_ylabel('CSR Rank')
    ax1.set_title(f'Rank vs Rank  (Spearman ρ = {rho:.6f})')
    ax1.legend(loc='upper left')

    ax2.scatter(nx_scores, custom_scores, s=4, alpha=0.4, c='darkorange')
    lo = min(nx_scores.min(), custom_scores.min())
    hi = max(nx_scores.max(), custom_scores.max())
    ax2.plot([lo, hi], [lo, hi], 'r--', linewidth=1, label='y = x')
    ax2.set_xlabel('NetworkX PageRank Score')
    ax2.set_ylabel('CSR PageRank Score')
    ax2.set_title(f'Score vs Score  (Kendall τ = {tau:.6f})')
    ax2.legend(loc='upper left')

    fig.suptitle('CSR PageRank vs NetworkX PageRank', fontsize=14, fontweight='bold')
    fig.tight_layout()

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, 'validation_rank_correlation.png')
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path


def verify_with_networkx(graph, ranks, damping, plot_dir=None):
    """
    Compare a rank vector with nx.pagerank on the same graph.

    Args:
        graph (Graph): The ranked graph
        ranks (sequence of float): Normalized scores per node index
        damping (float): Damping factor used for `ranks`
        plot_dir (str|None): Where to save scatter plots (None = no plot)

    Returns:
        dict: mae, max_error, spearman, kendall, top5_overlap, plot_path
    """
    print_stage("Verify", "Comparing with NetworkX PageRank")

    with Timer("NetworkX verification"):
        custom_scores = np.asarray(ranks, dtype=np.float64)
        print_step("Computing NetworkX PageRank...")
        nx_scores = networkx_pagerank(graph, damping)

        abs_errors = np.abs(custom_scores - nx_scores)
        mae = float(abs_errors.mean())
        max_err = float(abs_errors.max())
        worst = graph.labels[int(abs_errors.argmax())]

        # Rank correlations are undefined when either side is constant
        # (e.g. a symmetric cycle); report them as nan.
        if np.ptp(custom_scores) == 0 or np.ptp(nx_scores) == 0:
            print_warning("Constant scores, rank correlation undefined")
            rho = tau = float('nan')
        else:
            rho = float(spearmanr(custom_scores, nx_scores)[0])
            tau = float(kendalltau(custom_scores, nx_scores)[0])

        print_summary_box("Validation Metrics", {
            "MAE (score)": f"{mae:.2e}",
            "Max error": f"{max_err:.2e} (Node {worst})",
            "Spearman rho [1]": f"{rho:.6f}",
            "Kendall tau  [2]": f"{tau:.6f}",
        })

        k = min(5, graph.num_nodes)
        custom_top = list(np.argsort(-custom_scores, kind='stable')[:k])
        nx_top = list(np.argsort(-nx_scores, kind='stable')[:k])

        print_side_by_side_boxes(
            "CSR Top 5", {f"#{r + 1} Node {graph.labels[i]}": f"{custom_scores[i]:.8f}"
                          for r, i in enumerate(custom_top)},
            "NetworkX Top 5", {f"#{r + 1} Node {graph.labels[i]}": f"{nx_scores[i]:.8f}"
                               for r, i in enumerate(nx_top)},
        )

        overlap = len(set(custom_top) & set(nx_top))
        print_step(f"Top {k} Precision@{k}: {overlap}/{k}")

        plot_path = None
        if plot_dir is not None:
            plot_path = plot_validation(custom_scores, nx_scores, rho, tau, plot_dir)
            print_success(f"Scatter plots saved to {plot_path}")

    return {
        "mae": mae,
        "max_error": max_err,
        "spearman": rho,
        "kendall": tau,
        "top5_overlap": overlap,
        "plot_path": plot_path,
    }
