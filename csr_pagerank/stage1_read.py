# stage1_read.py
#
# Project: CSR PageRank
#
# Description:
#   Stage 1: Read a graph description into an in-memory directed graph.
#
#   Supported format tags (FORMATS):
#     dimacs  : DIMACS arc list.  `c` comments, one `p <kind> <nodes> <arcs>`
#               problem line, then `a <u> <v> [weight]` with 1-based ids.
#     edgelist: One `u v` pair per line, 0-based ids, `#` comments.
#               Node count is the largest id + 1.
#     html    : A directory of `<id>.html` pages linking to each other with
#               `<a HREF="<id>.html"`.  Links to pages outside the directory
#               are dropped.
#
#   Edge weights are ignored and repeated edges collapse into one, so every
#   graph is treated as unweighted.
#
# References:
#   [1] 9th DIMACS Implementation Challenge: Shortest Paths, file formats.
#       http://www.diag.uniroma1.it/challenge9/format.shtml

import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from csr_pagerank.errors import GraphLoadError
from csr_pagerank.utils import print_stage, print_step, print_success, print_warning, print_summary_box, Timer

FORMATS = ('dimacs', 'edgelist', 'html')

HTML_LINK = re.compile(r'<a HREF="(\d+)\.html"')


class Graph:
    """Directed graph over nodes 0..num_nodes-1 with distinct edges."""

    def __init__(self, num_nodes, labels=None):
        if labels is not None and len(labels) != num_nodes:
            raise ValueError(f"expected {num_nodes} labels, got {len(labels)}")
        self.num_nodes = num_nodes
        self.labels = list(labels) if labels is not None else list(range(num_nodes))
        self.outgoing = {u: [] for u in range(num_nodes)}
        self._seen = set()

    def add_edge(self, u, v):
        """Add u -> v.  Returns False if the edge was already present."""
        if (u, v) in self._seen:
            return False
        self._seen.add((u, v))
        self.outgoing[u].append(v)
        return True

    @property
    def num_edges(self):
        return len(self._seen)

    def out_degree(self, u):
        return len(self.outgoing[u])

    def edges(self):
        for u in range(self.num_nodes):
            for v in self.outgoing[u]:
                yield u, v

    def __repr__(self):
        return f"Graph(nodes={self.num_nodes}, edges={self.num_edges})"


# ===================================================================
# Text formats
# ===================================================================

def _read_lines(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()
    except OSError as e:
        raise GraphLoadError(f"cannot read graph file {path}: {e.strerror or e}") from e
    except UnicodeDecodeError as e:
        raise GraphLoadError(f"{path}: not valid UTF-8 text (byte {e.start})") from e


def _parse_int(token, path, lineno):
    try:
        return int(token)
    except ValueError:
        raise GraphLoadError(f"{path}:{lineno}: expected an integer, got {token!r}") from None


def parse_dimacs(lines, path="<dimacs>"):
    """
    Parse DIMACS arc-list lines into a Graph.

    Args:
        lines (list[str]): File contents, one line per item
        path (str): Name used in error messages

    Returns:
        Graph: nodes labelled with their 1-based DIMACS ids
    """
    graph = None
    declared_arcs = None

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith('c'):
            continue
        parts = line.split()
        tag = parts[0]

        if tag == 'p':
            if graph is not None:
                raise GraphLoadError(f"{path}:{lineno}: duplicate problem line")
            if len(parts) < 3:
                raise GraphLoadError(f"{path}:{lineno}: problem line needs 'p <kind> <nodes> [arcs]'")
            num_nodes = _parse_int(parts[2], path, lineno)
            if num_nodes <= 0:
                raise GraphLoadError(f"{path}:{lineno}: graph has no nodes")
            if len(parts) > 3:
                declared_arcs = _parse_int(parts[3], path, lineno)
            graph = Graph(num_nodes, labels=[str(k + 1) for k in range(num_nodes)])

        elif tag == 'a':
            if graph is None:
                raise GraphLoadError(f"{path}:{lineno}: arc before problem line")
            if len(parts) not in (3, 4):
                raise GraphLoadError(f"{path}:{lineno}: arc line needs 'a <u> <v> [weight]'")
            u = _parse_int(parts[1], path, lineno)
            v = _parse_int(parts[2], path, lineno)
            for node in (u, v):
                if not 1 <= node <= graph.num_nodes:
                    raise GraphLoadError(
                        f"{path}:{lineno}: node {node} outside 1..{graph.num_nodes}"
                    )
            graph.add_edge(u - 1, v - 1)

        else:
            raise GraphLoadError(f"{path}:{lineno}: unknown line type {tag!r}")

    if graph is None:
        raise GraphLoadError(f"{path}: missing problem line")
    if declared_arcs is not None and declared_arcs != graph.num_edges:
        print_warning(f"{path}: declared {declared_arcs} arcs, loaded {graph.num_edges} distinct")
    return graph


def parse_edgelist(lines, path="<edgelist>"):
    """
    Parse 0-based `u v` lines into a Graph.

    A third column (weight) is accepted and ignored.
    """
    pairs = []
    for lineno, raw in enumerate(lines, start=1):
        line = raw.split('#', 1)[0].strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) not in (2, 3):
            raise GraphLoadError(f"{path}:{lineno}: expected 'u v', got {raw.strip()!r}")
        u = _parse_int(parts[0], path, lineno)
        v = _parse_int(parts[1], path, lineno)
        if u < 0 or v < 0:
            raise GraphLoadError(f"{path}:{lineno}: negative node id")
        pairs.append((u, v))

    if not pairs:
        raise GraphLoadError(f"{path}: no edges found")

    graph = Graph(max(max(u, v) for u, v in pairs) + 1)
    for u, v in pairs:
        graph.add_edge(u, v)
    return graph


# ===================================================================
# HTML directory
# ===================================================================

def parse_html(text):
    """Extract link targets (page ids) from HTML content."""
    return HTML_LINK.findall(text)


def _read_and_parse(filepath):
    """Read a single HTML file and return (page_id, links)."""
    page_id = os.path.basename(filepath)[:-len('.html')]
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return page_id, parse_html(f.read())
    except UnicodeDecodeError as e:
        raise GraphLoadError(f"{filepath}: not valid UTF-8 text (byte {e.start})") from e


def read_html_dir(directory, progress=False):
    """
    Read a directory of HTML pages into a Graph using parallel I/O.

    Args:
        directory (str): Directory containing `<id>.html` files
        progress (bool): Show a tqdm progress bar while parsing

    Returns:
        Graph: one node per page, ordered by numeric page id
    """
    if not os.path.isdir(directory):
        raise GraphLoadError(f"{directory}: not a directory")

    files = [f for f in os.listdir(directory) if f.endswith('.html')]
    if not files:
        raise GraphLoadError(f"{directory}: no .html files found")
    filepaths = [os.path.join(directory, f) for f in files]

    max_workers = min(32, (os.cpu_count() or 4) + 4)
    print_step(f"Reading {len(filepaths)} files with {max_workers} threads...")

    outgoing = {}
    try:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(_read_and_parse, path) for path in filepaths]
            with tqdm(
                total=len(futures),
                desc="  Parsing",
                unit="file",
                bar_format="  {l_bar}{bar:30}{r_bar}",
                ncols=90,
                disable=not progress,
            ) as pbar:
                for future in as_completed(futures):
                    page_id, links = future.result()
                    outgoing[page_id] = links
                    pbar.update(1)
    except OSError as e:
        raise GraphLoadError(f"cannot read {e.filename}: {e.strerror}") from e

    try:
        pages = sorted(outgoing, key=int)
    except ValueError:
        raise GraphLoadError(f"{directory}: page file names must be numeric ids") from None

    page_to_idx = {page: idx for idx, page in enumerate(pages)}
    graph = Graph(len(pages), labels=pages)
    dropped = 0
    for page in pages:
        src = page_to_idx[page]
        for target in outgoing[page]:
            if target in page_to_idx:
                graph.add_edge(src, page_to_idx[target])
            else:
                dropped += 1
    if dropped:
        print_warning(f"Dropped {dropped} links to pages outside {directory}")
    return graph


# ===================================================================
# Unified entry point
# ===================================================================

def load_graph(path, fmt, progress=False):
    """
    Load a graph file (or HTML directory) in the given format.

    Args:
        path (str): Graph file, or directory for the `html` format
        fmt (str): One of FORMATS
        progress (bool): Progress bar for the `html` format

    Returns:
        Graph

    Raises:
        GraphLoadError: unknown format, unreadable or malformed input
    """
    if fmt not in FORMATS:
        raise GraphLoadError(f"unknown graph format {fmt!r} (expected one of {', '.join(FORMATS)})")

    print_stage("Read", f"Loading {fmt} graph from {path}")
    with Timer("Total Stage 1"):
        if fmt == 'html':
            graph = read_html_dir(path, progress=progress)
        elif fmt == 'dimacs':
            graph = parse_dimacs(_read_lines(path), path)
        else:
            graph = parse_edgelist(_read_lines(path), path)

        print_success(f"Graph: {graph.num_nodes} nodes, {graph.num_edges} unique edges")
        print_summary_box("Stage 1 Summary", {
            "Source": path,
            "Format": fmt,
            "Nodes": graph.num_nodes,
            "Edges": graph.num_edges,
            "Avg out-degree": f"{graph.num_edges / graph.num_nodes:.2f}",
        })

    return graph
