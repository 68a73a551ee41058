"""Sequence alignment algorithms producing line edit scripts.

Both algorithms work on sequences of hashable comparison keys (one per
line) and return a complete edit script: every element of both sequences is
covered by exactly one ``Edit``, in order. Common leading and trailing
elements are stripped before the algorithm proper runs.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

# (index in a, index in b) of two equal elements
Match = Tuple[int, int]


class SupportedAlgorithm(str, Enum):
    """Alignment algorithms available to the content diff engine."""

    HISTOGRAM = "histogram"
    MYERS = "myers"


class EditType(str, Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class Edit:
    """One step of an edit script over half-open ranges ``[begin, end)``."""

    type: EditType
    begin_a: int
    end_a: int
    begin_b: int
    end_b: int

    @property
    def length_a(self) -> int:
        return self.end_a - self.begin_a

    @property
    def length_b(self) -> int:
        return self.end_b - self.begin_b


class DiffAlgorithm(ABC):
    """Base class for alignment algorithms."""

    name: str = "abstract"

    def diff(self, a: Sequence[Hashable], b: Sequence[Hashable]) -> List[Edit]:
        """Compute the edit script turning ``a`` into ``b``.

        Args:
            a: Comparison keys of the previous version
            b: Comparison keys of the current version

        Returns:
            Edits covering both sequences, ordered by position
        """
        len_a, len_b = len(a), len(b)

        prefix = 0
        while prefix < len_a and prefix < len_b and a[prefix] == b[prefix]:
            prefix += 1

        suffix = 0
        while (
            suffix < len_a - prefix
            and suffix < len_b - prefix
            and a[len_a - 1 - suffix] == b[len_b - 1 - suffix]
        ):
            suffix += 1

        matches: List[Match] = [(i, i) for i in range(prefix)]
        matches.extend(self.find_matches(a, b, prefix, len_a - suffix, prefix, len_b - suffix))
        matches.extend((len_a - suffix + i, len_b - suffix + i) for i in range(suffix))

        return edits_from_matches(matches, len_a, len_b)

    @abstractmethod
    def find_matches(
        self,
        a: Sequence[Hashable],
        b: Sequence[Hashable],
        a_lo: int,
        a_hi: int,
        b_lo: int,
        b_hi: int,
    ) -> List[Match]:
        """Find equal element pairs inside ``a[a_lo:a_hi]`` and ``b[b_lo:b_hi]``.

        Returns:
            Matches strictly increasing in both coordinates
        """
        pass


class MyersDiff(DiffAlgorithm):
    """Myers O(ND) shortest edit script in linear space (Myers, 1986).

    The region is split on a point of an optimal path found by running the
    greedy search from both ends until the frontiers meet; both halves are
    then aligned the same way. Only the two frontier vectors of the current
    split are held in memory.
    """

    name = "myers"

    def find_matches(self, a, b, a_lo, a_hi, b_lo, b_hi):
        # Elements missing on the other side never match; dropping them
        # first leaves every longest common subsequence intact.
        b_keys = set(b[j] for j in range(b_lo, b_hi))
        a_index = [i for i in range(a_lo, a_hi) if a[i] in b_keys]
        a_keys = set(a[i] for i in a_index)
        b_index = [j for j in range(b_lo, b_hi) if b[j] in a_keys]
        if not a_index or not b_index:
            return []

        x = [a[i] for i in a_index]
        y = [b[j] for j in b_index]

        matches: List[Match] = []
        regions = [(0, len(x), 0, len(y))]
        while regions:
            off1, lim1, off2, lim2 = regions.pop()

            while off1 < lim1 and off2 < lim2 and x[off1] == y[off2]:
                matches.append((off1, off2))
                off1 += 1
                off2 += 1
            while off1 < lim1 and off2 < lim2 and x[lim1 - 1] == y[lim2 - 1]:
                lim1 -= 1
                lim2 -= 1
                matches.append((lim1, lim2))

            if off1 == lim1 or off2 == lim2:
                continue

            split1, split2 = self._split(x, y, off1, lim1, off2, lim2)
            regions.append((off1, split1, off2, split2))
            regions.append((split1, lim1, split2, lim2))

        matches.sort()
        return [(a_index[i], b_index[j]) for i, j in matches]

    @staticmethod
    def _split(x, y, off1: int, lim1: int, off2: int, lim2: int) -> Tuple[int, int]:
        """Find a point on a shortest edit path through the region.

        Expects a region whose first and last elements differ on both sides.
        Diagonals are indexed by ``i1 - i2``; the forward vector holds the
        furthest ``i1`` reached from the top left, the backward vector the
        smallest ``i1`` reached from the bottom right.
        """
        dmin = off1 - lim2
        dmax = lim1 - off2
        fmid = off1 - off2
        bmid = lim1 - lim2
        odd = (fmid - bmid) & 1

        # one slot of padding on each side for the out-of-range markers
        shift = 1 - dmin
        forward = [0] * (dmax - dmin + 3)
        backward = [0] * (dmax - dmin + 3)
        forward[fmid + shift] = off1
        backward[bmid + shift] = lim1
        before_start = -1
        past_end = lim1 + 1

        fmin = fmax = fmid
        bmin = bmax = bmid

        while True:
            if fmin > dmin:
                fmin -= 1
                forward[fmin - 1 + shift] = before_start
            else:
                fmin += 1
            if fmax < dmax:
                fmax += 1
                forward[fmax + 1 + shift] = before_start
            else:
                fmax -= 1

            for d in range(fmax, fmin - 1, -2):
                if forward[d - 1 + shift] >= forward[d + 1 + shift]:
                    i1 = forward[d - 1 + shift] + 1
                else:
                    i1 = forward[d + 1 + shift]
                i2 = i1 - d
                while i1 < lim1 and i2 < lim2 and x[i1] == y[i2]:
                    i1 += 1
                    i2 += 1
                forward[d + shift] = i1
                if odd and bmin <= d <= bmax and backward[d + shift] <= i1:
                    return i1, i2

            if bmin > dmin:
                bmin -= 1
                backward[bmin - 1 + shift] = past_end
            else:
                bmin += 1
            if bmax < dmax:
                bmax += 1
                backward[bmax + 1 + shift] = past_end
            else:
                bmax -= 1

            for d in range(bmax, bmin - 1, -2):
                if backward[d - 1 + shift] < backward[d + 1 + shift]:
                    i1 = backward[d - 1 + shift]
                else:
                    i1 = backward[d + 1 + shift] - 1
                i2 = i1 - d
                while i1 > off1 and i2 > off2 and x[i1 - 1] == y[i2 - 1]:
                    i1 -= 1
                    i2 -= 1
                backward[d + shift] = i1
                if not odd and fmin <= d <= fmax and i1 <= forward[d + shift]:
                    return i1, i2


class HistogramDiff(DiffAlgorithm):
    """Histogram diff: anchor on the rarest common elements, then recurse.

    Within a region, every element of ``a`` is counted. The longest run of
    equal elements whose rarest member occurs least often in ``a`` becomes
    the anchor; the regions before and after it are aligned recursively.
    Regions where every common element is too frequent, or recursion that
    gets too deep, are handed to the fallback algorithm.
    """

    name = "histogram"

    MAX_CHAIN_LENGTH = 64
    MAX_DEPTH = 64

    def __init__(self, fallback: Optional[DiffAlgorithm] = None) -> None:
        self.fallback = fallback or MyersDiff()

    def find_matches(self, a, b, a_lo, a_hi, b_lo, b_hi):
        matches: List[Match] = []
        self._collect(a, b, a_lo, a_hi, b_lo, b_hi, 0, matches)
        return matches

    def _collect(self, a, b, a_lo, a_hi, b_lo, b_hi, depth: int, matches: List[Match]) -> None:
        if a_lo >= a_hi or b_lo >= b_hi:
            return

        if depth > self.MAX_DEPTH:
            matches.extend(self.fallback.find_matches(a, b, a_lo, a_hi, b_lo, b_hi))
            return

        anchor, has_common = self._find_anchor(a, b, a_lo, a_hi, b_lo, b_hi)
        if anchor is None:
            if has_common:
                matches.extend(self.fallback.find_matches(a, b, a_lo, a_hi, b_lo, b_hi))
            return

        anchor_a_lo, anchor_a_hi, anchor_b_lo, anchor_b_hi = anchor
        self._collect(a, b, a_lo, anchor_a_lo, b_lo, anchor_b_lo, depth + 1, matches)
        matches.extend((anchor_a_lo + i, anchor_b_lo + i) for i in range(anchor_a_hi - anchor_a_lo))
        self._collect(a, b, anchor_a_hi, a_hi, anchor_b_hi, b_hi, depth + 1, matches)

    def _find_anchor(self, a, b, a_lo, a_hi, b_lo, b_hi):
        occurrences: Dict[Hashable, List[int]] = defaultdict(list)
        for i in range(a_lo, a_hi):
            occurrences[a[i]].append(i)

        best: Optional[Tuple[int, int, int, int]] = None
        best_count = self.MAX_CHAIN_LENGTH + 1
        best_length = 0
        has_common = False

        b_idx = b_lo
        while b_idx < b_hi:
            next_b = b_idx + 1
            positions = occurrences.get(b[b_idx])

            if positions:
                has_common = True
                if len(positions) <= min(best_count, self.MAX_CHAIN_LENGTH):
                    for a_idx in positions:
                        start_a, start_b = a_idx, b_idx
                        while start_a > a_lo and start_b > b_lo and a[start_a - 1] == b[start_b - 1]:
                            start_a -= 1
                            start_b -= 1

                        end_a, end_b = a_idx + 1, b_idx + 1
                        while end_a < a_hi and end_b < b_hi and a[end_a] == b[end_b]:
                            end_a += 1
                            end_b += 1

                        count = min(len(occurrences[a[i]]) for i in range(start_a, end_a))
                        length = end_a - start_a
                        if count < best_count or (count == best_count and length > best_length):
                            best = (start_a, end_a, start_b, end_b)
                            best_count = count
                            best_length = length

                        next_b = max(next_b, end_b)

            b_idx = next_b

        return best, has_common


def edits_from_matches(matches: Sequence[Match], len_a: int, len_b: int) -> List[Edit]:
    """Turn ordered match pairs into a complete edit script."""
    edits: List[Edit] = []
    i = j = 0
    k = 0

    while True:
        if k < len(matches):
            next_i, next_j = matches[k]
        else:
            next_i, next_j = len_a, len_b

        if i < next_i or j < next_j:
            edits.append(Edit(_change_type(next_i - i, next_j - j), i, next_i, j, next_j))

        if k >= len(matches):
            break

        start_i, start_j = next_i, next_j
        while k < len(matches) and matches[k] == (next_i, next_j):
            k += 1
            next_i += 1
            next_j += 1
        edits.append(Edit(EditType.EQUAL, start_i, next_i, start_j, next_j))
        i, j = next_i, next_j

    return edits


def _change_type(length_a: int, length_b: int) -> EditType:
    if length_a == 0:
        return EditType.INSERT
    if length_b == 0:
        return EditType.DELETE
    return EditType.REPLACE


_ALGORITHMS = {
    SupportedAlgorithm.HISTOGRAM: HistogramDiff(),
    SupportedAlgorithm.MYERS: MyersDiff(),
}


def get_algorithm(algorithm: SupportedAlgorithm) -> DiffAlgorithm:
    """Return the shared instance of a supported algorithm."""
    return _ALGORITHMS[SupportedAlgorithm(algorithm)]
