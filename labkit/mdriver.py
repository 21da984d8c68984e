"""Driver that runs allocator traces and reports correctness, utilization and throughput."""

from __future__ import annotations

import getopt
import math
import os
import sys
from dataclasses import dataclass
from typing import Sequence

from labkit.fsecs import Timer
from labkit.memlib import SimulatedHeap
from labkit.mm import NaiveAllocator, Team
from labkit.mtrace import (
    MallocError,
    RangeList,
    Trace,
    TraceFormatError,
    eval_libc_speed,
    eval_libc_valid,
    eval_mm_speed,
    eval_mm_util,
    eval_mm_valid,
    read_trace,
)

TRACEDIR = "/afs/cs/project/ics2/im/labs/malloclab/traces/"
DEFAULT_TRACEFILES = (
    "amptjp-bal.rep",
    "cccp-bal.rep",
    "cp-decl-bal.rep",
    "expr-bal.rep",
    "coalescing-bal.rep",
    "random-bal.rep",
    "random2-bal.rep",
    "binary-bal.rep",
    "binary2-bal.rep",
    "realloc-bal.rep",
    "realloc2-bal.rep",
)
AVG_LIBC_THRUPUT = 600e3
UTIL_WEIGHT = 0.60

_USAGE = (
    "Usage: mdriver [-hvVal] [-f <file>] [-t <dir>]\n"
    "Options\n"
    "\t-a         Don't check the team structure.\n"
    "\t-f <file>  Use <file> as the trace file.\n"
    "\t-g         Generate summary info for autograder.\n"
    "\t-h         Print this message.\n"
    "\t-l         Run libc malloc as well.\n"
    "\t-t <dir>   Directory to find default traces.\n"
    "\t-v         Print per-trace performance breakdowns.\n"
    "\t-V         Print additional debug info.\n"
)


@dataclass
class Stats:
    """Results of one allocator on one trace; secs and util count only when valid."""

    ops: float = 0.0
    valid: bool = False
    secs: float = 0.0
    util: float = 0.0


def _div(a: float, b: float) -> float:
    if b:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


def format_results(stats: Sequence[Stats], errors: int) -> str:
    """Return the per-trace results table with a total line."""
    lines = ["%5s%7s %5s%8s%10s%6s" % ("trace", " valid", "util", "ops", "secs", "Kops")]
    secs = ops = util = 0.0
    for i, s in enumerate(stats):
        if s.valid:
            lines.append(
                "%2d%10s%5.0f%%%8.0f%10.6f%6.0f"
                % (i, "yes", s.util * 100.0, s.ops, s.secs, _div(s.ops / 1e3, s.secs))
            )
            secs += s.secs
            ops += s.ops
            util += s.util
        else:
            lines.append("%2d%10s%6s%8s%10s%6s" % (i, "no", "-", "-", "-", "-"))
    if errors == 0:
        lines.append(
            "%12s%5.0f%%%8.0f%10.6f%6.0f"
            % ("Total       ", _div(util, len(stats)) * 100.0, ops, secs, _div(ops / 1e3, secs))
        )
    else:
        lines.append("%12s%6s%8s%10s%6s" % ("Total       ", "-", "-", "-", "-"))
    return "\n".join(lines) + "\n"


def performance_index(stats: Sequence[Stats]) -> tuple[float, float, float]:
    """Return (utilization points, throughput points, total) on a 100-point scale.

    Throughput beyond the reference libc rate earns no further points.
    """
    if not stats:
        raise ValueError("no trace statistics to score")
    secs = sum(s.secs for s in stats)
    ops = sum(s.ops for s in stats)
    avg_util = sum(s.util for s in stats) / len(stats)
    throughput = _div(ops, secs)
    p1 = UTIL_WEIGHT * avg_util
    if throughput > AVG_LIBC_THRUPUT:
        p2 = 1.0 - UTIL_WEIGHT
    else:
        p2 = (1.0 - UTIL_WEIGHT) * (throughput / AVG_LIBC_THRUPUT)
    return p1 * 100.0, p2 * 100.0, (p1 + p2) * 100.0


def team_lines(team: Team) -> list[str]:
    """Lines describing the team; ValueError if its information is incomplete."""
    team.validate()
    lines = [f"Team Name:{team.teamname}", f"Member 1 :{team.name1}:{team.id1}"]
    if team.name2:
        lines.append(f"Member 2 :{team.name2}:{team.id2}")
    return lines


def _load(tracedir: str, filename: str, verbose: int) -> Trace:
    if verbose > 1:
        sys.stdout.write(f"Reading tracefile: {filename}\n")
    return read_trace(tracedir, filename)


def _run(
    tracedir: str,
    tracefiles: Sequence[str],
    run_libc: bool,
    verbose: int,
    autograder: bool,
) -> int:
    out = sys.stdout
    timer = Timer(verbose)
    errors = 0

    if run_libc:
        if verbose > 1:
            out.write("\nTesting libc malloc\n")
        libc_stats = []
        for i, name in enumerate(tracefiles):
            trace = _load(tracedir, name, verbose)
            stats = Stats(ops=trace.num_ops)
            if verbose > 1:
                out.write("Checking libc malloc for correctness, ")
            try:
                eval_libc_valid(trace)
            except MallocError as err:
                err.tracenum = i
                out.write(f"{err}\n")
                out.write("System message: Cannot allocate memory\n")
                return 1
            stats.valid = True
            if verbose > 1:
                out.write("and performance.\n")
            stats.secs = timer.fsecs(eval_libc_speed, trace)
            libc_stats.append(stats)
        if verbose:
            out.write("\nResults for libc malloc:\n")
            out.write(format_results(libc_stats, errors))

    if verbose > 1:
        out.write("\nTesting mm malloc\n")
    heap = SimulatedHeap()
    allocator = NaiveAllocator(heap)
    ranges = RangeList()
    mm_stats = []
    for i, name in enumerate(tracefiles):
        trace = _load(tracedir, name, verbose)
        stats = Stats(ops=trace.num_ops)
        if verbose > 1:
            out.write("Checking mm_malloc for correctness, ")
        try:
            eval_mm_valid(trace, allocator, heap, ranges)
            stats.valid = True
        except MallocError as err:
            err.tracenum = i
            errors += 1
            out.write(f"{err}\n")
        if stats.valid:
            if verbose > 1:
                out.write("efficiency, ")
            stats.util = eval_mm_util(trace, allocator, heap)
            if verbose > 1:
                out.write("and performance.\n")
            stats.secs = timer.fsecs(
                lambda t: eval_mm_speed(t, allocator, heap), trace
            )
        mm_stats.append(stats)

    if verbose:
        out.write("\nResults for mm malloc:\n")
        out.write(format_results(mm_stats, errors))
        out.write("\n")

    numcorrect = sum(1 for s in mm_stats if s.valid)
    if errors == 0:
        util_points, thru_points, perfindex = performance_index(mm_stats)
        out.write(
            f"Perf index = {util_points:.0f} (util) + {thru_points:.0f} (thru) "
            f"= {perfindex:.0f}/100\n"
        )
    else:
        perfindex = 0.0
        out.write(f"Terminated with {errors} errors\n")

    if autograder:
        out.write(f"correct:{numcorrect}\n")
        out.write(f"perfidx:{perfindex:.0f}\n")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point of the allocator driver."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, _ = getopt.getopt(args, "f:t:hvVgal")
    except getopt.GetoptError:
        sys.stderr.write(_USAGE)
        return 1

    tracedir = TRACEDIR
    tracefiles: list[str] | None = None
    team_check = True
    run_libc = False
    autograder = False
    verbose = 0
    for opt, val in opts:
        if opt == "-g":
            autograder = True
        elif opt == "-f":
            tracedir = "./"
            tracefiles = [val]
        elif opt == "-t":
            if tracefiles is None:
                tracedir = val if val.endswith("/") else val + "/"
        elif opt == "-a":
            team_check = False
        elif opt == "-l":
            run_libc = True
        elif opt == "-v":
            verbose = 1
        elif opt == "-V":
            verbose = 2
        elif opt == "-h":
            sys.stderr.write(_USAGE)
            return 0

    if team_check:
        try:
            lines = team_lines(Team())
        except ValueError as err:
            sys.stdout.write(f"ERROR: {err}\n")
            return 1
        sys.stdout.write("".join(line + "\n" for line in lines))

    if tracefiles is None:
        tracefiles = list(DEFAULT_TRACEFILES)
        sys.stdout.write(f"Using default tracefiles in {tracedir}\n")

    try:
        return _run(tracedir, tracefiles, run_libc, verbose, autograder)
    except OSError as err:
        path = err.filename or os.path.join(tracedir, "")
        sys.stdout.write(f"Could not open {path} in read_trace: {err.strerror}\n")
        return 1
    except TraceFormatError as err:
        sys.stdout.write(f"{err}\n")
        return 1
    except RuntimeError as err:
        sys.stdout.write(f"{err}\n")
        return 1