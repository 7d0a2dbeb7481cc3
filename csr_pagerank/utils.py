# utils.py
#
# Project: CSR PageRank
#
# Description:
#   Terminal display layer shared by every stage: colored status lines,
#   bordered summary boxes, side-by-side tables, the final rank vector
#   printout, and a timing context manager.
#
# Components:
#   Colors              : ANSI escape code constants.
#   set_quiet           : Silence all status output (used by --quiet).
#   print_project_banner: Run banner with the chosen parameters.
#   print_stage / print_step / print_success / print_warning / print_error
#                       : Hierarchical status lines with colored prefixes.
#   print_summary_box   : Single bordered key-value table.
#   print_side_by_side_boxes
#                       : Two bordered tables on the same lines.
#   print_vector        : The final PageRank vector, one node per line.
#   Timer               : Context manager reporting elapsed wall time.

import sys
import time


class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RESET = '\033[0m'


_quiet = False


def set_quiet(quiet=True):
    """Turn status output on or off.  Errors and results are always shown."""
    global _quiet
    _quiet = quiet


def _emit(line=""):
    if not _quiet:
        print(line)


def print_project_banner(params):
    """
    Print the run banner.

    Args:
        params (dict): Label -> value pairs describing the run
    """
    w = 70
    _emit(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * w}")
    _emit("  CSR PageRank")
    _emit(f"{'=' * w}{Colors.RESET}")
    for label, value in params.items():
        _emit(f"  {Colors.DIM}{label + ':':<20}{Colors.RESET}{value}")
    _emit(f"{Colors.BOLD}{Colors.BLUE}{'=' * w}{Colors.RESET}\n")


def print_stage(name, message):
    """Print a stage header."""
    _emit(f"{Colors.BOLD}{Colors.CYAN}[{name}]{Colors.RESET} {message}")


def print_step(message):
    """Print a sub-step within a stage."""
    _emit(f"  {Colors.DIM}->{Colors.RESET} {message}")


def print_success(message):
    _emit(f"  {Colors.GREEN}[OK]{Colors.RESET} {message}")


def print_warning(message):
    _emit(f"  {Colors.YELLOW}[WARN]{Colors.RESET} {message}")


def print_error(message):
    """Print an error to stderr, even in quiet mode."""
    print(f"{Colors.RED}error{Colors.RESET}: {message}", file=sys.stderr)


def _box_lines(title, stats, width):
    sep = f"+{'-' * width}+"
    padded = title + ' ' * (width - 1 - len(title))
    lines = [sep, f"| {Colors.BOLD}{padded}{Colors.RESET}|", sep]
    for key, val in stats.items():
        content = f" {key}: {val}"
        lines.append(f"|{content:<{width}}|")
    lines.append(sep)
    return lines


def print_summary_box(title, stats, width=50):
    """
    Print a single summary box.

    Args:
        title (str): Box title
        stats (dict): Key-value pairs to display
        width (int): Inner width of the box
    """
    _emit()
    for line in _box_lines(title, stats, width):
        _emit(f"  {line}")
    _emit()


def print_side_by_side_boxes(title_l, stats_l, title_r, stats_r, col_width=38, gap=3):
    """
    Print two summary boxes side by side.

    The shorter box is padded with blank lines so both end together.
    """
    left = _box_lines(title_l, stats_l, col_width)
    right = _box_lines(title_r, stats_r, col_width)

    empty = ' ' * (col_width + 2)
    rows = max(len(left), len(right))
    left += [empty] * (rows - len(left))
    right += [empty] * (rows - len(right))

    spacer = ' ' * gap
    _emit()
    for l, r in zip(left, right):
        _emit(f"  {l}{spacer}{r}")
    _emit()


def print_vector(ranks, labels=None, precision=8):
    """
    Print the rank vector, one `node: score` line per entry.

    Always printed, quiet mode only silences status output.

    Args:
        ranks (sequence of float): Score per node index
        labels (list|None): Display name per node index (default: the index)
        precision (int): Digits after the decimal point
    """
    print("Result:")
    for idx, score in enumerate(ranks):
        name = labels[idx] if labels is not None else idx
        print(f"  {name}: {score:.{precision}f}")


class Timer:
    """Context manager for timing code blocks."""

    def __init__(self, label="Operation"):
        self.label = label
        self.start = None
        self.elapsed = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.perf_counter() - self.start
        if exc_type is None:
            print_success(f"{self.label} completed in {self.elapsed:.2f}s")
