# solver_basic.py
# Brute force: try every injective digit tuple for the distinct letters.
# Slow (up to 10!/(10-n)! candidates) but obviously correct; used to
# cross-check solver.solve on small puzzles.

from itertools import permutations

from word_model import Puzzle, check_symbol_count, value


def iter_solutions(addend1, addend2, result):
    puzzle = Puzzle(addend1, addend2, result)
    check_symbol_count(puzzle)

    for perm in permutations(range(10), len(puzzle.letters)):
        assign = dict(zip(puzzle.letters, perm))

        # leading letters cannot be zero
        if any(assign[ch] == 0 for ch in puzzle.leading):
            continue

        if value(puzzle.addend1, assign) + value(puzzle.addend2, assign) == value(puzzle.result, assign):
            yield assign


def solve_brute_force(addend1, addend2, result):
    """Return the first valid assignment in permutation order, or None."""
    for assign in iter_solutions(addend1, addend2, result):
        return assign  # Success
    return None  # No solution found


if __name__ == "__main__":
    solution = solve_brute_force("SEND", "MORE", "MONEY")
    if solution:
        print("Solution found:")
        for k in sorted(solution.keys()):
            print(f"{k} = {solution[k]}")
    else:
        print("No solution")
