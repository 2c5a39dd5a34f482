from flask import Flask, request, jsonify
from flask_cors import CORS
import threading, os, time

from solver import Interrupter, SearchInterrupted, TraceWriter, read_trace, search
from word_model import ORDER_STRATEGIES, CryptarithmError, Puzzle, check_symbol_count

app = Flask(__name__)
CORS(app)

# Path to trace file (JSON lines, one event per line)
app.config["TRACE_PATH"] = os.environ.get(
    "CRYPTARITHM_TRACE_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "trace.jsonl"),
)
app.config["TRACE_FLUSH_EVERY"] = 25
app.config["TRACE_MAX_EVENTS"] = int(os.environ.get("CRYPTARITHM_TRACE_MAX_EVENTS", "50000"))
app.config["SOLVE_IN_BACKGROUND"] = True
_timeout = os.environ.get("CRYPTARITHM_SOLVE_TIMEOUT")
app.config["SOLVE_TIMEOUT"] = float(_timeout) if _timeout else None

# The search currently running, if any. Held while a search is swapped in or out.
_current = {"interrupter": None, "thread": None}
_current_lock = threading.Lock()


def _remove_trace(path):
    """Delete an old trace file; it may still be open on Windows, so retry a few times."""
    if not os.path.exists(path):
        return True
    for _ in range(5):
        try:
            os.remove(path)
            return True
        except PermissionError:
            # File might still be used by another process (like a previous fetch)
            time.sleep(0.3)
        except OSError as e:
            app.logger.warning("couldn't remove old trace %s: %s", path, e)
            return False
    return False


def _stop_current():
    """Interrupt the running search and wait for it. Caller holds _current_lock."""
    interrupter, thread = _current["interrupter"], _current["thread"]
    _current["interrupter"] = _current["thread"] = None
    if interrupter is not None:
        interrupter.interrupt()
    if thread is not None and thread.is_alive():
        thread.join(timeout=5)
        if thread.is_alive():
            app.logger.warning("previous search did not stop within 5s")


# --------------------------------------------------
# Utility: Run solver (in a background thread by default)
# --------------------------------------------------
def run_solver(puzzle, use_column_pruning, order, interrupter, trace):
    """
    Runs the search, appending events to the trace as it goes.
    Always ends the trace with SOLVER_DONE, even when the search fails.
    """
    try:
        outcome = search(puzzle, order=order, use_column_pruning=use_column_pruning,
                         trace=trace, interrupter=interrupter,
                         timeout=app.config["SOLVE_TIMEOUT"])
    except SearchInterrupted as e:
        app.logger.warning("search for %s stopped: %s", puzzle, e)
        return None
    except Exception:
        app.logger.exception("solver error for %s", puzzle)
        try:
            trace.add({"type": "END", "result": None, "reason": "error"})
            trace.add({"type": "SOLVER_DONE", "note": "Solver failed."})
            trace.close()
        except OSError:
            app.logger.exception("couldn't finish trace %s", trace.path)
        return None

    app.logger.info("search for %s finished in %d steps (solved=%s)",
                    puzzle, outcome.steps, outcome.solved)
    return outcome


def _trace_response(events):
    # Only report ready when solver has fully completed
    ready = bool(events) and events[-1].get("type") == "SOLVER_DONE"
    return jsonify({"ready": ready, "events": events})


# --------------------------------------------------
# Routes
# --------------------------------------------------
@app.errorhandler(CryptarithmError)
def bad_puzzle(e):
    return jsonify({"error": str(e), "kind": type(e).__name__}), 400


@app.route("/solve", methods=["POST"])
def solve():
    """
    Validates the puzzle, then starts solving.

    Expected JSON:
    {
      "words": ["SEND", "MORE"],
      "result": "MONEY",
      "use_column_pruning": true/false,
      "order": "columns" | "frequency" | "appearance"
    }
    """
    data = request.get_json(silent=True) or {}
    words = data.get("words", [])
    result = data.get("result", "")
    use_column_pruning = bool(data.get("use_column_pruning", True))
    order = data.get("order", "columns")

    if not isinstance(words, list) or len(words) != 2:
        return jsonify({"error": "expected exactly two words to add", "kind": "InvalidInput"}), 400
    if order not in ORDER_STRATEGIES:
        return jsonify({"error": f"unknown order {order!r}", "kind": "InvalidInput"}), 400

    # InvalidInput / TooManySymbols surface here, before any search starts
    puzzle = Puzzle(words[0], words[1], result)
    check_symbol_count(puzzle)

    body = {"puzzle": str(puzzle), "use_column_pruning": use_column_pruning, "order": order}

    # stop the old search and start the new one in one step, so two requests
    # never run searches against the same trace file
    with _current_lock:
        _stop_current()
        trace_path = app.config["TRACE_PATH"]
        _remove_trace(trace_path)
        trace = TraceWriter(trace_path, flush_every=app.config["TRACE_FLUSH_EVERY"],
                            max_events=app.config["TRACE_MAX_EVENTS"])
        interrupter = Interrupter()
        args = (puzzle, use_column_pruning, order, interrupter, trace)
        _current["interrupter"] = interrupter
        if app.config["SOLVE_IN_BACKGROUND"]:
            t = threading.Thread(target=run_solver, args=args, daemon=True)
            _current["thread"] = t
            t.start()
            body["status"] = "started"
            return jsonify(body)

    outcome = run_solver(*args)
    if outcome is None:
        body["status"] = "stopped"
    else:
        body["status"] = "finished"
        body.update(outcome.as_dict())
    return jsonify(body)


@app.route("/trace", methods=["GET"])
def trace():
    """
    Returns JSON:
    {
      "ready": true/false,
      "events": [...]
    }
    """
    path = app.config["TRACE_PATH"]
    try:
        return _trace_response(read_trace(path))
    except FileNotFoundError:
        return jsonify({"ready": False, "events": []})


@app.route("/clear", methods=["POST"])
def clear():
    """Stops a running search and deletes the trace."""
    with _current_lock:
        _stop_current()
        cleared = _remove_trace(app.config["TRACE_PATH"])
    return jsonify({"cleared": cleared})


# --------------------------------------------------
# Main entry point
# --------------------------------------------------
if __name__ == "__main__":
    print("Cryptarithm solver API running at http://127.0.0.1:5000/")
    app.run(debug=True)
