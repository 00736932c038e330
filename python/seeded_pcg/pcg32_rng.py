"""Deterministic PCG32 (XSH-RR) RNG with uniform, permutation and weighted draws."""

from __future__ import annotations

import math
from bisect import bisect_right
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from itertools import accumulate
from typing import Any

import numpy as np

from .constants import (
    DEFAULT_INCREMENT,
    DEFAULT_MULTIPLIER,
    DEFAULT_STATE,
    MASK32,
    MASK64,
    OUTPUT_SHIFT,
    ROTATE_SHIFT,
    U32_RANGE,
    U32_TO_UNIT,
    XORSHIFT,
)
from .errors import EmptyInput, InvalidRange, LengthMismatch


def rotr32(value: int, count: int) -> int:
    value &= MASK32
    count &= 31
    return ((value >> count) | (value << ((-count) & 31))) & MASK32


def output_permutation(x: int) -> int:
    """Map a 64-bit pre-advance state onto its 32-bit XSH-RR output.

    The xor-shift runs on the full 64-bit value and is truncated to 32 bits
    only before the rotation; changing that order changes every output.
    """
    x &= MASK64
    count = x >> ROTATE_SHIFT
    xorshifted = ((x ^ (x >> XORSHIFT)) >> OUTPUT_SHIFT) & MASK32
    return rotr32(xorshifted, count)


def _shape(size: int | tuple[int, ...]) -> tuple[int, ...]:
    return (size,) if isinstance(size, int) else tuple(size)


@dataclass(eq=False)
class Pcg32Rng:
    """PCG32 RNG. Keep one instance per independent deterministic stream.

    Without ``seed`` the state starts at ``initial_state`` verbatim. With a
    ``seed`` the state goes through :meth:`init` instead, so the two paths
    produce different sequences. Instances are not thread-safe.
    """

    seed: int | None = None
    multiplier: int = DEFAULT_MULTIPLIER
    increment: int = DEFAULT_INCREMENT
    initial_state: int = DEFAULT_STATE

    def __post_init__(self) -> None:
        # increment should be odd for the full 2**64 period; not enforced.
        self.multiplier = int(self.multiplier) & MASK64
        self.increment = int(self.increment) & MASK64
        self._state = int(self.initial_state) & MASK64
        if self.seed is not None:
            self.init(self.seed)

    @classmethod
    def from_seed(cls, seed: int, **kwargs: int) -> Pcg32Rng:
        return cls(seed=seed, **kwargs)

    def next_u32(self) -> int:
        oldstate = self._state
        self._state = (oldstate * self.multiplier + self.increment) & MASK64
        return output_permutation(oldstate)

    def init(self, seed: int = 0) -> None:
        """Reseed from ``seed`` and discard one output. Prior history is lost."""
        self.seed = int(seed)
        self._state = (self.seed + self.increment) & MASK64
        self.next_u32()

    def _bounds(self, low: int | None, high: int | None) -> tuple[int, int]:
        """Resolve an int overload to ``(offset, span)`` without drawing."""
        if high is None:
            bound = int(low)
            if bound == 0:
                raise InvalidRange("single bound must be non-zero")
            if bound > 0:
                return 0, bound
            return bound, -bound

        lo = 0 if low is None else int(low)
        hi = int(high)
        if hi <= lo:
            raise InvalidRange(f"high must be greater than low (low={lo}, high={hi})")
        return lo, hi - lo

    def next_int(self, low: int | None = None, high: int | None = None) -> int:
        """Uniform int by modulo reduction.

        ``next_int(low, high)`` draws from ``[low, high)``, ``next_int(b)`` from
        ``[0, b)`` or ``[b, 0)`` when ``b`` is negative, and ``next_int()``
        returns the raw 32-bit output. Ranges that do not divide 2**32 carry
        modulo bias; use :meth:`next_int_unbiased` when that matters.
        """
        if low is None and high is None:
            return self.next_u32()
        offset, span = self._bounds(low, high)
        return self.next_u32() % span + offset

    def next_int_unbiased(self, low: int, high: int | None = None) -> int:
        offset, span = self._bounds(low, high)
        if span > U32_RANGE:
            raise InvalidRange(f"span {span} exceeds the 32-bit output range")

        # Reject the low 2**32 % span draws so every residue is equally likely.
        threshold = U32_RANGE % span
        draw = self.next_u32()
        while draw < threshold:
            draw = self.next_u32()
        return draw % span + offset

    def next_float(self, low: float | None = None, high: float | None = None) -> float:
        if low is None and high is None:
            return self.next_u32() * U32_TO_UNIT

        if high is None:
            bound = float(low)
            if bound == 0.0:
                raise InvalidRange("single bound must be non-zero")
            return self.next_u32() * U32_TO_UNIT * bound

        lo = 0.0 if low is None else float(low)
        hi = float(high)
        if not hi > lo:
            raise InvalidRange(f"high must be greater than low (low={lo}, high={hi})")
        return self.next_u32() * U32_TO_UNIT * (hi - lo) + lo

    def _draw_order(self, n: int) -> list[int]:
        remaining = list(range(n))
        order: list[int] = []
        while len(remaining) > 1:
            order.append(remaining.pop(self.next_int(len(remaining))))
        order.extend(remaining)
        return order

    def sample_permutation(self, population: int | Sequence[Any] | np.ndarray) -> Any:
        """Return a shuffled copy of ``population`` (or of ``range(n)`` for an int).

        Consumes ``n - 1`` draws. The input is never modified. An ndarray input
        is permuted along its first axis and returned as an ndarray.
        """
        if isinstance(population, (int, np.integer)) and not isinstance(population, bool):
            n = int(population)
            if n < 0:
                raise InvalidRange(f"permutation length must be non-negative, got {n}")
            return self._draw_order(n)

        if isinstance(population, np.ndarray):
            order = np.asarray(self._draw_order(len(population)), dtype=np.intp)
            return population[order]

        items = list(population)
        return [items[i] for i in self._draw_order(len(items))]

    def shuffle(self, array: MutableSequence[Any] | np.ndarray) -> None:
        """Permute ``array`` in place.

        Leaves ``array`` in the order :meth:`sample_permutation` would have
        returned for the same generator state.
        """
        order = self._draw_order(len(array))
        if isinstance(array, np.ndarray):
            array[...] = array[np.asarray(order, dtype=np.intp)]
            return

        snapshot = list(array)
        for position, source in enumerate(order):
            array[position] = snapshot[source]

    def weighted_choice(
        self,
        weights: Sequence[float] | np.ndarray,
        items: Sequence[Any] | np.ndarray | None = None,
    ) -> Any:
        """Pick an index (or the matching element of ``items``) with probability
        proportional to ``weights``.

        Weights need not sum to one but must be non-negative with a positive
        total. Draws exactly one value via ``next_float(total)``.
        """
        values = [float(w) for w in weights]
        if not values:
            raise EmptyInput("weights must not be empty")
        if items is not None and len(items) != len(values):
            raise LengthMismatch(
                "items and weights must have the same length "
                f"(items={len(items)}, weights={len(values)})"
            )
        if any(not math.isfinite(w) or w < 0.0 for w in values):
            raise InvalidRange("weights must be finite and non-negative")

        # Sequential running sum; the last entry doubles as the total.
        cumulative = list(accumulate(values))
        total = cumulative[-1]
        if total <= 0.0 or not math.isfinite(total):
            raise InvalidRange(f"weights must have a positive finite total, got {total}")

        r = self.next_float(total)
        index = bisect_right(cumulative, r)
        if index == len(cumulative):
            index = max(i for i, w in enumerate(values) if w > 0.0)
        return index if items is None else items[index]

    def integers(
        self,
        low: int,
        high: int | None = None,
        size: int | tuple[int, ...] | None = None,
    ) -> int | np.ndarray:
        if size is None:
            return self.next_int(low, high)

        offset, span = self._bounds(low, high)
        arr = np.empty(_shape(size), dtype=np.int64)
        flat = arr.reshape(-1)
        for i in range(flat.size):
            flat[i] = self.next_u32() % span + offset
        return arr

    def random(self, size: int | tuple[int, ...] | None = None) -> float | np.ndarray:
        if size is None:
            return self.next_float()

        arr = np.empty(_shape(size), dtype=np.float64)
        flat = arr.reshape(-1)
        for i in range(flat.size):
            flat[i] = self.next_u32() * U32_TO_UNIT
        return arr
