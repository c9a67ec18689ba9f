"""Version comparison and version range matching."""

import re
from dataclasses import dataclass
from enum import Enum
from itertools import zip_longest
from typing import Callable, Dict, List, Optional, Tuple

from packaging import version as packaging_version
from packaging.version import Version

from ..utils.logging import get_logger

logger = get_logger("versions")

# Three-way comparison: negative, zero or positive like cmp().
VersionComparator = Callable[[str, str], int]

# Letter runs with a fixed meaning in ports versions; "pl" (patch level)
# counts as no letters at all.
_STAGE_LETTERS = {
    "alpha": "a",
    "beta": "b",
    "pre": "p",
    "rc": "r",
    "pl": "",
}

_COMPONENT_RE = re.compile(r"(?P<number>\d+|\*)?(?P<word>[A-Za-z]+)?(?P<patch>\d+)?")
_MISSING_COMPONENT = (0, 0, 0)


class Comparison(Enum):
    """Comparator attached to a version bound."""

    EQ = "="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="

    @property
    def symbol(self) -> str:
        return self.value

    def accepts(self, order: int) -> bool:
        """Check whether a three-way comparison result satisfies this comparator.

        Args:
            order: Result of ``compare(version, bound)``

        Returns:
            True if the ordering is allowed by the comparator
        """
        if order < 0:
            return self in (Comparison.LT, Comparison.LTE)
        if order > 0:
            return self in (Comparison.GT, Comparison.GTE)
        return self in (Comparison.EQ, Comparison.LTE, Comparison.GTE)


@dataclass(frozen=True)
class VersionBound:
    """One side of an advisory's vulnerable version range."""

    value: str
    comparison: Comparison

    def __str__(self) -> str:
        return f"{self.comparison.symbol}{self.value}"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _split_version(version: str) -> Tuple[str, int, int]:
    """Split ``main[_revision][,epoch]`` into its three parts."""
    main, epoch, revision = version, 0, 0

    head, sep, tail = main.rpartition(",")
    if sep and tail.isdigit():
        main, epoch = head, int(tail)

    head, sep, tail = main.rpartition("_")
    if sep and tail.isdigit():
        main, revision = head, int(tail)

    return main, revision, epoch


def _components(version: str) -> List[Tuple[int, int, int]]:
    """Break the main part of a version into (number, letter, patch) triples."""
    components = []
    pos = 0
    length = len(version)

    while pos < length:
        char = version[pos]
        if not (char.isascii() and char.isalnum()) and char != "*":
            pos += 1
            continue

        match = _COMPONENT_RE.match(version, pos)
        number_text = match.group("number")
        if number_text is None:
            number = -1
        elif number_text == "*":
            number = -2
        else:
            number = int(number_text)

        letter = 0
        word = match.group("word")
        if word:
            stage = _STAGE_LETTERS.get(word.lower(), word[0].lower())
            letter = ord(stage) - ord("a") + 1 if stage else 0

        patch = int(match.group("patch")) if match.group("patch") else 0
        components.append((number, letter, patch))
        pos = max(match.end(), pos + 1)

    return components


def pkg_version_cmp(left: str, right: str) -> int:
    """Compare two versions using ports/pkg ordering rules.

    Epochs (``,N``) are compared first, then the main version component by
    component, then the port revision (``_N``).

    Args:
        left: First version
        right: Second version

    Returns:
        -1, 0 or 1
    """
    main_left, revision_left, epoch_left = _split_version(left)
    main_right, revision_right, epoch_right = _split_version(right)

    if epoch_left != epoch_right:
        return _sign(epoch_left - epoch_right)

    pairs = zip_longest(
        _components(main_left),
        _components(main_right),
        fillvalue=_MISSING_COMPONENT,
    )
    for component_left, component_right in pairs:
        if component_left != component_right:
            return -1 if component_left < component_right else 1

    return _sign(revision_left - revision_right)


def pep440_version_cmp(left: str, right: str) -> int:
    """Compare two versions using PEP 440 ordering.

    Falls back to :func:`pkg_version_cmp` when either side is not a valid
    PEP 440 version.
    """
    try:
        version_left = Version(left)
        version_right = Version(right)
    except packaging_version.InvalidVersion:
        logger.debug(f"Invalid PEP 440 version in {left!r} / {right!r}, using pkg ordering")
        return pkg_version_cmp(left, right)

    return (version_left > version_right) - (version_left < version_right)


COMPARATORS: Dict[str, VersionComparator] = {
    "pkg": pkg_version_cmp,
    "pep440": pep440_version_cmp,
}


def get_comparator(scheme: str) -> VersionComparator:
    """Look up a version comparator by scheme name.

    Args:
        scheme: Scheme name ('pkg' or 'pep440')

    Returns:
        Three-way version comparator

    Raises:
        ValueError: If the scheme is unknown
    """
    try:
        return COMPARATORS[scheme.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown version scheme: {scheme} (expected one of {', '.join(COMPARATORS)})"
        ) from None


def matches(
    version: str,
    bound: Optional[VersionBound],
    compare: VersionComparator = pkg_version_cmp
) -> bool:
    """Check a version against a single bound.

    A missing bound always matches, so an advisory that only gives a floor
    or a ceiling leaves the other side unconstrained.
    """
    if bound is None:
        return True

    return bound.comparison.accepts(_sign(compare(version, bound.value)))


def in_range(
    version: str,
    lower: Optional[VersionBound],
    upper: Optional[VersionBound],
    compare: VersionComparator = pkg_version_cmp
) -> bool:
    """Check a version against both bounds of an advisory."""
    return matches(version, lower, compare) and matches(version, upper, compare)
