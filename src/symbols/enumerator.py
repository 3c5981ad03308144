"""Bijection between integer indices and alphabetic ticker symbols.

Symbols are ordered by length first (A..Z, AA..ZZ, AAA..ZZZ, ...). Within
one length a symbol is the 0-indexed base-26 encoding of its offset, most
significant letter first, so ``26 -> "AA"`` and ``701 -> "ZZ"``.
"""

from collections.abc import Iterator

from src.exceptions import OutOfRangeError

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE = len(ALPHABET)
MAX_SYMBOL_LENGTH = 5
DEFAULT_MAX_LENGTH = 4


def effective_max_length(max_length: int, include_length5: bool = False) -> int:
    """Resolve the longest symbol length actually enumerated.

    Five-letter symbols need the explicit ``include_length5`` opt-in.

    Args:
        max_length: Requested maximum length (1-5).
        include_length5: Whether 5-letter symbols are allowed.

    Returns:
        Effective maximum length.
    """
    if not 1 <= max_length <= MAX_SYMBOL_LENGTH:
        raise OutOfRangeError(f"max_length must be between 1 and {MAX_SYMBOL_LENGTH}, got {max_length}")
    ceiling = MAX_SYMBOL_LENGTH if include_length5 else DEFAULT_MAX_LENGTH
    return min(max_length, ceiling)


def _offset(length: int) -> int:
    """Number of symbols strictly shorter than ``length``."""
    return sum(BASE**l for l in range(1, length))


def domain_size(max_length: int = DEFAULT_MAX_LENGTH, include_length5: bool = False) -> int:
    """Count the symbols of length 1..max_length.

    Args:
        max_length: Requested maximum length.
        include_length5: Whether 5-letter symbols are allowed.

    Returns:
        Domain size (475,254 for length 4, 12,356,630 for length 5).
    """
    return _offset(effective_max_length(max_length, include_length5) + 1)


def symbol_at(index: int) -> str:
    """Map a global index to its symbol.

    Args:
        index: Non-negative index below ``domain_size(5, include_length5=True)``.

    Returns:
        Uppercase symbol.

    Raises:
        OutOfRangeError: If the index is outside the 1-5 letter domain.
    """
    if index < 0:
        raise OutOfRangeError(f"Index must be non-negative, got {index}")

    remaining = index
    for length in range(1, MAX_SYMBOL_LENGTH + 1):
        block = BASE**length
        if remaining < block:
            letters = []
            for _ in range(length):
                remaining, digit = divmod(remaining, BASE)
                letters.append(ALPHABET[digit])
            return "".join(reversed(letters))
        remaining -= block

    raise OutOfRangeError(f"Index {index} exceeds the {MAX_SYMBOL_LENGTH}-letter domain")


def index_of(symbol: str) -> int:
    """Map a symbol back to its global index.

    Raises:
        OutOfRangeError: If the symbol is not 1-5 letters A-Z.
    """
    normalized = symbol.strip().upper()
    if not 1 <= len(normalized) <= MAX_SYMBOL_LENGTH or any(c not in ALPHABET for c in normalized):
        raise OutOfRangeError(f"Not an enumerable symbol: {symbol!r}")

    value = 0
    for char in normalized:
        value = value * BASE + ALPHABET.index(char)
    return _offset(len(normalized)) + value


class SymbolEnumerator:
    """Bounded view over the symbol domain."""

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH, include_length5: bool = False) -> None:
        """Initialize the enumerator.

        Args:
            max_length: Requested maximum symbol length.
            include_length5: Whether 5-letter symbols are allowed.
        """
        self.max_length = effective_max_length(max_length, include_length5)
        self.size = domain_size(max_length, include_length5)

    def symbol_at(self, index: int) -> str:
        """Map an index inside this domain to its symbol."""
        if not 0 <= index < self.size:
            raise OutOfRangeError(f"Index {index} outside domain of size {self.size}")
        return symbol_at(index)

    def index_of(self, symbol: str) -> int:
        """Map a symbol inside this domain to its index."""
        index = index_of(symbol)
        if index >= self.size:
            raise OutOfRangeError(f"{symbol} is longer than {self.max_length} letters")
        return index

    def iter_range(self, start: int = 0, stop: int | None = None) -> Iterator[tuple[int, str]]:
        """Yield ``(index, symbol)`` pairs for ``start <= index < stop``."""
        stop = self.size if stop is None else min(stop, self.size)
        for index in range(max(start, 0), stop):
            yield index, symbol_at(index)

    def __len__(self) -> int:
        return self.size
