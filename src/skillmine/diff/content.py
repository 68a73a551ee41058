"""Line-level content diffs classifying touched lines."""

import threading
from abc import ABC, abstractmethod
from typing import FrozenSet, List, Optional, Union

from skillmine.diff.algorithms import (
    DiffAlgorithm,
    EditType,
    SupportedAlgorithm,
    get_algorithm,
)
from skillmine.errors import ContentDecodeError

ENCODING = "utf-8"


def split_lines(text: str) -> List[str]:
    """Split text into lines on ``\\n``.

    A trailing newline ends the last line instead of opening an empty one.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


# ASCII whitespace only; NBSP and other Unicode spaces are content
_WHITESPACE = str.maketrans("", "", " \t\n\r\f\v")


def comparison_key(line: str) -> str:
    """Key under which two lines are equal when they differ only in whitespace."""
    return line.translate(_WHITESPACE)


class ContentDiff(ABC):
    """Difference between two versions of a text."""

    @abstractmethod
    def touched_lines(self) -> FrozenSet[str]:
        """Distinct spans of the current text that were inserted or replaced."""
        pass


class AlgorithmContentDiff(ContentDiff):
    """Content diff backed by a ``DiffAlgorithm``, ignoring all whitespace.

    The result is computed on first access and cached; concurrent readers
    wait for the single computation.
    """

    def __init__(self, previous_content: str, current_content: str, algorithm: DiffAlgorithm) -> None:
        if previous_content is None:
            raise ValueError("previous_content must not be None")
        if current_content is None:
            raise ValueError("current_content must not be None")
        if algorithm is None:
            raise ValueError("algorithm must not be None")

        self.previous_content = previous_content
        self.current_content = current_content
        self.algorithm = algorithm

        self._lock = threading.Lock()
        self._touched: Optional[FrozenSet[str]] = None

    def touched_lines(self) -> FrozenSet[str]:
        touched = self._touched
        if touched is not None:
            return touched

        with self._lock:
            if self._touched is None:
                self._touched = self._compute()
            return self._touched

    def _compute(self) -> FrozenSet[str]:
        previous = split_lines(self.previous_content)
        current = split_lines(self.current_content)

        edits = self.algorithm.diff(
            [comparison_key(line) for line in previous],
            [comparison_key(line) for line in current],
        )

        touched = set()
        for edit in edits:
            if edit.type in (EditType.INSERT, EditType.REPLACE):
                touched.add("\n".join(current[edit.begin_b:edit.end_b]).strip())

        return frozenset(touched)

    def __repr__(self) -> str:
        return f"AlgorithmContentDiff(algorithm={self.algorithm.name!r})"


def decode_content(data: Union[bytes, bytearray, memoryview]) -> str:
    """Decode file content as strict UTF-8.

    Raises:
        ContentDecodeError: If the bytes are not valid UTF-8
    """
    try:
        return bytes(data).decode(ENCODING)
    except UnicodeDecodeError as e:
        raise ContentDecodeError(f"Content is not valid {ENCODING}: {e.reason}") from e


def compute_text_diff(
    previous: str,
    current: str,
    algorithm: SupportedAlgorithm = SupportedAlgorithm.HISTOGRAM,
) -> ContentDiff:
    """Create a lazy content diff over two already decoded texts."""
    return AlgorithmContentDiff(previous, current, get_algorithm(algorithm))


def compute_diff(
    previous: bytes,
    current: bytes,
    algorithm: SupportedAlgorithm = SupportedAlgorithm.HISTOGRAM,
) -> ContentDiff:
    """Create a lazy content diff over two raw contents.

    Args:
        previous: Raw bytes of the previous version
        current: Raw bytes of the current version
        algorithm: Alignment algorithm to use

    Returns:
        ContentDiff whose touched lines are computed on first access

    Raises:
        ContentDecodeError: If either side is not valid UTF-8
    """
    return compute_text_diff(decode_content(previous), decode_content(current), algorithm)


class ContentDiffService:
    """Creates content diffs with one fixed algorithm. Thread safe."""

    HISTOGRAM: "ContentDiffService"
    MYERS: "ContentDiffService"

    def __init__(self, algorithm: SupportedAlgorithm) -> None:
        self.algorithm = SupportedAlgorithm(algorithm)

    def diff(self, previous: bytes, current: bytes) -> ContentDiff:
        return compute_diff(previous, current, self.algorithm)

    def diff_text(self, previous: str, current: str) -> ContentDiff:
        return compute_text_diff(previous, current, self.algorithm)


ContentDiffService.HISTOGRAM = ContentDiffService(SupportedAlgorithm.HISTOGRAM)
ContentDiffService.MYERS = ContentDiffService(SupportedAlgorithm.MYERS)
