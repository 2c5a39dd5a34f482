# word_model.py
# Static shape of a two-addend cryptarithm (ADDEND1 + ADDEND2 = RESULT).
# - Normalizes words to uppercase and rejects anything but A-Z
# - Caches distinct letters (first-appearance order) and leading letters
# - Evaluates a word under a letter -> digit assignment

import re
from collections import Counter

MAX_SYMBOLS = 10

_WORD_RE = re.compile(r"^[A-Z]+$")


# ---------- Errors ----------
class CryptarithmError(Exception):
    """Base class for every failure raised by the solver core."""


class InvalidInput(CryptarithmError, ValueError):
    """A word is empty or contains something other than letters."""


class TooManySymbols(CryptarithmError):
    """More distinct letters than there are decimal digits."""

    def __init__(self, letters):
        self.letters = tuple(letters)
        super().__init__(
            f"{len(self.letters)} distinct letters ({''.join(self.letters)}), "
            f"at most {MAX_SYMBOLS} can be assigned unique digits"
        )


class Incomplete(CryptarithmError):
    """A word was evaluated while one of its letters is still unbound."""

    def __init__(self, word, letter):
        self.word = word
        self.letter = letter
        super().__init__(f"letter {letter!r} of {word!r} has no digit")


# ---------- Puzzle ----------
def normalize_word(word, role="word"):
    if not isinstance(word, str):
        raise InvalidInput(f"{role} must be a string, got {type(word).__name__}")
    w = word.strip().upper()
    if not w:
        raise InvalidInput(f"{role} is empty")
    if not _WORD_RE.match(w):
        raise InvalidInput(f"{role} {word!r} must contain only letters A-Z")
    return w


class Puzzle:
    """Immutable ADDEND1 + ADDEND2 = RESULT with its derived data cached.

    letters: distinct letters in order of first appearance
             (addend1, then addend2, then result)
    leading: letters sitting in the most significant position of any word
    """

    __slots__ = ("addend1", "addend2", "result", "letters", "leading", "width")

    def __init__(self, addend1, addend2, result):
        a1 = normalize_word(addend1, "addend1")
        a2 = normalize_word(addend2, "addend2")
        res = normalize_word(result, "result")

        letters = []
        for w in (a1, a2, res):
            for ch in w:
                if ch not in letters:
                    letters.append(ch)

        object.__setattr__(self, "addend1", a1)
        object.__setattr__(self, "addend2", a2)
        object.__setattr__(self, "result", res)
        object.__setattr__(self, "letters", tuple(letters))
        object.__setattr__(self, "leading", frozenset(w[0] for w in (a1, a2, res)))
        object.__setattr__(self, "width", max(len(a1), len(a2), len(res)))

    def __setattr__(self, name, val):
        raise AttributeError("Puzzle is immutable")

    @property
    def words(self):
        return (self.addend1, self.addend2, self.result)

    def __eq__(self, other):
        if not isinstance(other, Puzzle):
            return NotImplemented
        return self.words == other.words

    def __hash__(self):
        return hash(self.words)

    def __repr__(self):
        return f"Puzzle({self.addend1!r}, {self.addend2!r}, {self.result!r})"

    def __str__(self):
        return f"{self.addend1} + {self.addend2} = {self.result}"


# ---------- Derivations ----------
def distinct_letters(puzzle):
    return puzzle.letters


def leading_letters(puzzle):
    return puzzle.leading


def check_symbol_count(puzzle):
    """Raise TooManySymbols before any search when the digits cannot cover the letters."""
    if len(puzzle.letters) > MAX_SYMBOLS:
        raise TooManySymbols(puzzle.letters)


def value(word, assignment):
    """Interpret word as a base-10 number, first letter most significant."""
    n = 0
    for ch in word:
        try:
            digit = assignment[ch]
        except KeyError:
            raise Incomplete(word, ch) from None
        n = n * 10 + digit
    return n


def columns(puzzle):
    """Column layout, units column first.

    Each entry is (addend1 letter, addend2 letter, result letter); a word
    shorter than the column index contributes None.
    """
    cols = []
    for idx in range(puzzle.width):
        cols.append(tuple(
            w[len(w) - 1 - idx] if idx < len(w) else None
            for w in puzzle.words
        ))
    return cols


ORDER_STRATEGIES = ("columns", "frequency", "appearance")


def letter_order(puzzle, strategy="columns"):
    """Deterministic order in which the search binds letters.

    columns:    scan columns from the units upwards so that low columns
                become fully bound (and checkable) as early as possible
    frequency:  most frequent letters first, ties by first appearance
    appearance: distinct_letters order
    """
    if strategy == "appearance":
        return puzzle.letters

    if strategy == "frequency":
        counts = Counter("".join(puzzle.words))
        rank = {ch: i for i, ch in enumerate(puzzle.letters)}
        return tuple(sorted(puzzle.letters, key=lambda ch: (-counts[ch], rank[ch])))

    if strategy == "columns":
        order = []
        for col in columns(puzzle):
            for ch in col:
                if ch is not None and ch not in order:
                    order.append(ch)
        return tuple(order)

    raise ValueError(f"unknown letter order {strategy!r}, expected one of {ORDER_STRATEGIES}")
