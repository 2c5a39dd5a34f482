# cli.py
# Terminal front for the solver.
#   cryptarithm SEND MORE MONEY
#   cryptarithm            (prompts for the two words, then the result)

import argparse
import sys

from solver import SearchInterrupted, solve
from word_model import ORDER_STRATEGIES, CryptarithmError

EXIT_OK = 0
EXIT_BAD_INPUT = 2
EXIT_TIMEOUT = 3


def read_inputs():
    """Prompt for the addends (whitespace separated) and the result."""
    words = input("Two Words as Input, Separated with Whitespace? ").split()
    result = input("Result String? ").strip()
    return words, result


def print_outcome(outcome):
    if outcome.solved:
        letters = "".join(outcome.assignment)
        print(f"Solution found: {letters}")
        for ch, digit in outcome.assignment.items():
            print(f"{ch} = {digit}")
    else:
        print("No solution found.")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cryptarithm",
        description="Solve WORD1 + WORD2 = RESULT with unique digits per letter.",
    )
    parser.add_argument("words", nargs="*", metavar="WORD",
                        help="ADDEND1 ADDEND2 RESULT; prompted for when omitted")
    parser.add_argument("--order", choices=ORDER_STRATEGIES, default="columns",
                        help="letter order used by the search (default: columns)")
    parser.add_argument("--no-column-pruning", dest="column_pruning", action="store_false",
                        help="only check the sum once every letter is bound")
    parser.add_argument("--timeout", type=float, default=None,
                        help="give up after this many seconds")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.words:
        words, result = args.words[:-1], args.words[-1]
    else:
        words, result = read_inputs()

    if len(words) != 2:
        print(f"error: expected exactly two words to add, got {len(words)}", file=sys.stderr)
        return EXIT_BAD_INPUT

    try:
        outcome = solve(words[0], words[1], result, order=args.order,
                        use_column_pruning=args.column_pruning, timeout=args.timeout)
    except SearchInterrupted as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_TIMEOUT
    except CryptarithmError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_BAD_INPUT

    print(outcome.puzzle)
    print_outcome(outcome)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
