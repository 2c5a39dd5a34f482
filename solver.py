# solver.py
# Backtracking solver for two-addend cryptarithms (ADDEND1 + ADDEND2 = RESULT).
# - Validates the puzzle once, up front (InvalidInput / TooManySymbols)
# - Binds letters in a fixed order; used digits tracked in a 10-bit mask
# - Leading letters never take 0
# - Optional column pruning: checks columns with carry as soon as they are fully bound
# - Explicit numeric equality check at completion
# - Optional trace events (JSON lines) for visualization

import json
import threading
import time

from word_model import (
    CryptarithmError,
    Puzzle,
    check_symbol_count,
    columns,
    distinct_letters,
    leading_letters,
    letter_order,
    value,
)


class SearchInterrupted(CryptarithmError):
    """The search was stopped by an Interrupter or ran past its timeout."""

    def __init__(self, reason, steps):
        self.reason = reason
        self.steps = steps
        super().__init__(f"search {reason} after {steps} steps")


# ---------- Trace utilities ----------
# Events that always reach the trace, even past max_events
TERMINAL_EVENTS = ("START", "END", "SOLVER_DONE")


class TraceWriter:
    """Collects solver events.

    Without a path the events are kept in `events`. With a path they are
    appended to the file as JSON lines (one event per line), flushed every
    `flush_every` events so a front-end can poll it while the search runs.
    Past `max_events`, search events are dropped; a single TRUNCATED event
    marks the cut and the terminal events are still written.
    """

    def __init__(self, path=None, flush_every=1, max_events=None):
        self.path = path
        self.flush_every = max(1, int(flush_every))
        self.max_events = max_events
        self.events = []
        self.count = 0
        self.dropped = 0
        self._pending = 0
        self._file = None
        if self.path:
            self._file = open(self.path, "w", encoding="utf-8")  # create/overwrite file

    def add(self, ev):
        if self.max_events is not None and self.count >= self.max_events \
                and ev["type"] not in TERMINAL_EVENTS:
            if not self.dropped:
                self._record({"type": "TRUNCATED", "limit": self.max_events})
            self.dropped += 1
            return
        self._record(ev)

    def _record(self, ev):
        self.count += 1
        if not self.path:
            self.events.append(ev)
            return
        if self._file is None:
            self._file = open(self.path, "a", encoding="utf-8")
        self._file.write(json.dumps(ev) + "\n")
        self._pending += 1
        if self._pending >= self.flush_every:
            self._file.flush()
            self._pending = 0

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            self._pending = 0


def read_trace(path):
    """Events of a JSON-lines trace; a line still being written is left out."""
    events = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.endswith("\n"):
                break
            events.append(json.loads(line))
    return events


class Interrupter:
    """Thread-safe stop flag polled by the search once per node.

    Once interrupted it stays interrupted; use a new one for the next solve.
    """

    def __init__(self):
        self._event = threading.Event()

    def interrupt(self):
        self._event.set()

    @property
    def interrupted(self):
        return self._event.is_set()


# ---------- Outcomes ----------
class Solved:
    solved = True

    def __init__(self, puzzle, assignment, steps=0):
        self.puzzle = puzzle
        self.assignment = assignment
        self.steps = steps

    def as_dict(self):
        return {"solved": True, "assignment": dict(self.assignment), "steps": self.steps}

    def __eq__(self, other):
        if not isinstance(other, Solved):
            return NotImplemented
        return self.puzzle == other.puzzle and self.assignment == other.assignment

    def __repr__(self):
        return f"Solved({self.puzzle!r}, {self.assignment!r}, steps={self.steps})"


class NoSolution:
    solved = False

    def __init__(self, puzzle, steps=0):
        self.puzzle = puzzle
        self.steps = steps

    def as_dict(self):
        return {"solved": False, "assignment": None, "steps": self.steps}

    def __eq__(self, other):
        if not isinstance(other, NoSolution):
            return NotImplemented
        return self.puzzle == other.puzzle

    def __repr__(self):
        return f"NoSolution({self.puzzle!r}, steps={self.steps})"


# ---------- Column pruning ----------
def _checkable_columns(order, cols):
    """For each search depth, how many low columns are fully bound.

    checkable[d] is the largest k such that every letter of columns 0..k-1
    is among order[:d + 1].
    """
    pos = {ch: i for i, ch in enumerate(order)}
    ready_at = []
    highest = -1
    for col in cols:
        highest = max([highest] + [pos[ch] for ch in col if ch is not None])
        ready_at.append(highest)

    checkable = []
    for depth in range(len(order)):
        k = 0
        while k < len(cols) and ready_at[k] <= depth:
            k += 1
        checkable.append(k)
    return checkable


def _columns_hold(cols, assign, upto):
    """Add columns 0..upto-1 with carry; True iff every result digit matches.

    A column with no result letter must produce 0. Once every column has been
    checked the final carry must also be 0.
    """
    carry = 0
    for a, b, r in cols[:upto]:
        s = carry
        if a is not None:
            s += assign[a]
        if b is not None:
            s += assign[b]
        expected = assign[r] if r is not None else 0
        if s % 10 != expected:
            return False
        carry = s // 10
    if upto == len(cols) and carry:
        return False
    return True


# ---------- Main solver API ----------
def solve(addend1, addend2, result, order="columns", use_column_pruning=True,
          trace=None, interrupter=None, timeout=None):
    """
    addend1, addend2: the two addend words, e.g. "SEND", "MORE"
    result: result word, e.g. "MONEY"
    order: letter order strategy, see word_model.letter_order
    use_column_pruning: check columns with carry as soon as they are bound
    trace: optional TraceWriter receiving START/ASSIGN/UNASSIGN/PRUNE/END events
    interrupter: optional Interrupter polled once per node
    timeout: optional wall-clock limit in seconds
    Returns: Solved(puzzle, assignment, steps) or NoSolution(puzzle, steps)
    Raises: InvalidInput, TooManySymbols (before any digit trial), SearchInterrupted
    """
    puzzle = Puzzle(addend1, addend2, result)
    check_symbol_count(puzzle)
    return search(puzzle, order=order, use_column_pruning=use_column_pruning,
                  trace=trace, interrupter=interrupter, timeout=timeout)


def search(puzzle, order="columns", use_column_pruning=True,
           trace=None, interrupter=None, timeout=None):
    """Depth-first search over a validated Puzzle. See solve()."""
    check_symbol_count(puzzle)

    var_order = letter_order(puzzle, order)
    leading = leading_letters(puzzle)
    cols = columns(puzzle)
    checkable = _checkable_columns(var_order, cols)
    deadline = time.monotonic() + timeout if timeout is not None else None
    n = len(var_order)

    def emit(ev):
        if trace is not None:
            trace.add(ev)

    emit({
        "type": "START",
        "words": [puzzle.addend1, puzzle.addend2],
        "result": puzzle.result,
        "order": list(var_order),
        "use_column_pruning": bool(use_column_pruning),
    })

    assignment = {}
    steps = 0

    def is_solution():
        return value(puzzle.addend1, assignment) + value(puzzle.addend2, assignment) \
            == value(puzzle.result, assignment)

    def backtrack(depth, used):
        nonlocal steps
        steps += 1
        if interrupter is not None and interrupter.interrupted:
            raise SearchInterrupted("interrupted", steps)
        if deadline is not None and time.monotonic() > deadline:
            raise SearchInterrupted("timed out", steps)

        if depth == n:
            return is_solution()

        var = var_order[depth]
        newly_checkable = checkable[depth] > (checkable[depth - 1] if depth else 0)
        for digit in range(10):
            bit = 1 << digit
            if used & bit:
                continue
            if digit == 0 and var in leading:
                continue

            assignment[var] = digit
            emit({"type": "ASSIGN", "var": var, "value": digit})

            if use_column_pruning and newly_checkable \
                    and not _columns_hold(cols, assignment, checkable[depth]):
                emit({"type": "PRUNE", "var": var, "columns": checkable[depth]})
            elif backtrack(depth + 1, used | bit):
                return True

            emit({"type": "UNASSIGN", "var": var})
            del assignment[var]

        return False

    try:
        found = backtrack(0, 0)
    except SearchInterrupted as e:
        emit({"type": "END", "result": None, "reason": e.reason, "steps": e.steps})
        emit({"type": "SOLVER_DONE", "note": "Solver finished writing full trace."})
        if trace is not None:
            trace.close()
        raise

    if found:
        solution = {ch: assignment[ch] for ch in distinct_letters(puzzle)}
        outcome = Solved(puzzle, solution, steps)
        emit({"type": "END", "result": solution, "reason": "solution found", "steps": steps})
    else:
        outcome = NoSolution(puzzle, steps)
        emit({"type": "END", "result": None, "reason": "no solution found", "steps": steps})

    # Mark solver completion explicitly so /trace can detect it
    emit({"type": "SOLVER_DONE", "note": "Solver finished writing full trace."})
    if trace is not None:
        trace.close()
    return outcome
