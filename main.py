# main.py
#
# Project: CSR PageRank
#
# Description:
#   Command line entry point.  Loads a graph file, ranks its nodes with the
#   pull or push PageRank engine over a CSR transition matrix, prints the
#   normalized result vector, and optionally validates it against NetworkX.
#
# Usage:
#   python main.py --filename FILENAME --fmt FORMAT --style STYLE [--df DF]
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf

import argparse
import sys

from csr_pagerank.errors import ConvergenceError, GraphLoadError
from csr_pagerank.stage1_read import FORMATS, load_graph
from csr_pagerank.stage2_stats import run_stats
from csr_pagerank.stage3_pagerank import (
    DEFAULT_DAMPING, MAX_ITERATIONS, THRESHOLD, Style, compute_pagerank,
)
from csr_pagerank.stage4_validation import verify_with_networkx
import csr_pagerank.utils as utils


def build_parser():
    parser = argparse.ArgumentParser(description="Rank graph nodes with PageRank over a CSR matrix")
    parser.add_argument('--filename', required=True,
                        help="Graph file (or directory of pages for --fmt html)")
    parser.add_argument('--fmt', required=True, choices=FORMATS, help="Graph file format")
    parser.add_argument('--style', required=True, choices=[s.value for s in Style],
                        help="Update strategy")
    parser.add_argument('--df', type=float, default=DEFAULT_DAMPING,
                        help=f"Damping factor (default: {DEFAULT_DAMPING})")
    parser.add_argument('--threshold', type=float, default=THRESHOLD,
                        help=f"Per-node convergence threshold (default: {THRESHOLD:g})")
    parser.add_argument('--max-iter', type=int, default=MAX_ITERATIONS,
                        help=f"Iteration safety bound (default: {MAX_ITERATIONS})")
    parser.add_argument('--progress', action='store_true', help="Progress bar while reading html pages")
    parser.add_argument('--stats', action='store_true', help="Print in/out-degree statistics")
    parser.add_argument('--verify', action='store_true', help="Compare against NetworkX PageRank")
    parser.add_argument('--plot-dir', default=None, help="Save validation plots here (implies --verify)")
    parser.add_argument('--quiet', action='store_true', help="Only print the result vector")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not 0.0 < args.df < 1.0:
        parser.error(f"--df must be in (0, 1), got {args.df}")

    utils.set_quiet(args.quiet)
    utils.print_project_banner({
        "Graph file": args.filename,
        "Graph format": args.fmt,
        "Update style": args.style,
        "Damping factor": args.df,
        "Threshold": f"{args.threshold:g}",
    })

    try:
        graph = load_graph(args.filename, args.fmt, progress=args.progress)
        if args.stats:
            run_stats(graph)
        ranks = compute_pagerank(graph, args.style, args.df, args.threshold, args.max_iter)
    except (GraphLoadError, ConvergenceError) as e:
        utils.print_error(e)
        return 1

    utils.print_vector(ranks, labels=graph.labels)

    if args.verify or args.plot_dir:
        verify_with_networkx(graph, ranks, args.df, plot_dir=args.plot_dir)

    return 0


if __name__ == "__main__":
    sys.exit(main())
