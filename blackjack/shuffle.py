"""
Shuffle algorithms.

Every algorithm is a pure transform: it takes a sequence and returns a new
list holding the same items. Only Fisher-Yates produces a uniform
permutation; riffle, overhand and strip imitate how a dealer shuffles by hand
and must not be relied on where fairness matters.

Pass ``seed`` (or an explicit ``rng``) for reproducible results.
"""

from enum import Enum
from random import Random
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")


class ShuffleMethod(Enum):
    """Available shuffle algorithms."""

    FISHER_YATES = "fisher-yates"
    RIFFLE = "riffle"
    OVERHAND = "overhand"
    STRIP = "strip"


def _resolve_rng(seed: int | None, rng: Random | None) -> Random:
    if rng is not None:
        return rng
    return Random(seed)


def fisher_yates(
    items: Sequence[T],
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """Uniform random permutation (Durstenfeld's in-place variant, on a copy)."""
    rng = _resolve_rng(seed, rng)
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def _interleave(left: list[T], right: list[T], rng: Random) -> list[T]:
    """Drop cards alternately from two packets; sometimes 1-3 stick together."""
    result: list[T] = []
    li = ri = 0
    while li < len(left) or ri < len(right):
        take_left = rng.random() > 0.5
        if take_left and li < len(left):
            first, fi, second, si = left, li, right, ri
        elif ri < len(right):
            first, fi, second, si = right, ri, left, li
        else:
            first, fi, second, si = left, li, right, ri

        clump = 1 + rng.randint(0, 2) if rng.random() < 0.1 else 1
        taken = first[fi:fi + clump]
        result.extend(taken)
        fi += len(taken)
        if si < len(second):
            result.append(second[si])
            si += 1

        if first is left:
            li, ri = fi, si
        else:
            ri, li = fi, si
    return result


def riffle(
    items: Sequence[T],
    iterations: int = 3,
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """Split into halves and interleave, ``iterations`` times."""
    rng = _resolve_rng(seed, rng)
    result = list(items)
    for _ in range(iterations):
        mid = len(result) // 2
        result = _interleave(result[:mid], result[mid:], rng)
    return result


def overhand(
    items: Sequence[T],
    iterations: int = 3,
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """Peel small packets off the top and drop each onto a new pile."""
    rng = _resolve_rng(seed, rng)
    result = list(items)
    for _ in range(iterations):
        remaining = result
        pile: list[T] = []
        while remaining:
            packet_size = max(1, int(rng.random() * len(remaining) * 0.4))
            packet, remaining = remaining[:packet_size], remaining[packet_size:]
            pile = packet + pile
        result = pile
    return result


def strip(
    items: Sequence[T],
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """Cut into 3-5 piles and restack them in random order."""
    rng = _resolve_rng(seed, rng)
    cards = list(items)
    if len(cards) < 2:
        return cards

    num_piles = min(rng.randint(3, 5), len(cards))
    pile_size = len(cards) // num_piles
    piles = [
        cards[i * pile_size:(i + 1) * pile_size if i < num_piles - 1 else len(cards)]
        for i in range(num_piles)
    ]
    order = fisher_yates(range(num_piles), rng=rng)
    return [card for i in order for card in piles[i]]


def cut(
    items: Sequence[T],
    position: int | None = None,
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """
    Cut the pack: the bottom portion goes on top.

    Without ``position`` the cut lands between 30% and 70% of the pack.
    """
    cards = list(items)
    if len(cards) <= 1:
        return cards
    if position is None:
        rng = _resolve_rng(seed, rng)
        position = int(len(cards) * 0.3 + rng.random() * len(cards) * 0.4)
    position = max(1, min(position, len(cards) - 1))
    return cards[position:] + cards[:position]


SHUFFLERS: dict[ShuffleMethod, Callable[..., list]] = {
    ShuffleMethod.FISHER_YATES: fisher_yates,
    ShuffleMethod.RIFFLE: riffle,
    ShuffleMethod.OVERHAND: overhand,
    ShuffleMethod.STRIP: strip,
}


def shuffle(
    items: Sequence[T],
    method: ShuffleMethod | str = ShuffleMethod.FISHER_YATES,
    seed: int | None = None,
    rng: Random | None = None,
) -> list[T]:
    """Shuffle ``items`` with the chosen algorithm."""
    method = ShuffleMethod(method)
    return SHUFFLERS[method](items, seed=seed, rng=rng)
