# generate_trace.py

import argparse
import sys

from solver import TraceWriter, solve
from word_model import ORDER_STRATEGIES, CryptarithmError


def generate(addend1, addend2, result, path="trace.jsonl", order="columns",
             use_column_pruning=True, max_events=None):
    trace = TraceWriter(path, flush_every=1000, max_events=max_events)
    outcome = solve(addend1, addend2, result, order=order,
                    use_column_pruning=use_column_pruning, trace=trace)
    return outcome, trace.count


def main(argv=None):
    parser = argparse.ArgumentParser(description="Write the solver trace (JSON lines) for a puzzle.")
    parser.add_argument("words", nargs="*", default=["SEND", "MORE", "MONEY"],
                        metavar="WORD", help="ADDEND1 ADDEND2 RESULT (default: SEND MORE MONEY)")
    parser.add_argument("-o", "--output", default="trace.jsonl")
    parser.add_argument("--order", choices=ORDER_STRATEGIES, default="columns")
    parser.add_argument("--no-column-pruning", dest="column_pruning", action="store_false")
    parser.add_argument("--max-events", type=int, default=None,
                        help="stop recording search events after this many")
    args = parser.parse_args(argv)

    if len(args.words) != 3:
        parser.error("expected ADDEND1 ADDEND2 RESULT")

    try:
        outcome, n_events = generate(*args.words, path=args.output, order=args.order,
                                     use_column_pruning=args.column_pruning,
                                     max_events=args.max_events)
    except CryptarithmError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    status = "solved" if outcome.solved else "no solution"
    print(f"Trace saved to {args.output} ({n_events} events, {status})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
