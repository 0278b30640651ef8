"""WordPress version utilities.

WordPress versions are ``major.minor[.patch]`` with single digit minor and
patch components; "4.7.0" is published as "4.7". This module provides the
value type, the loose-string normalizer and a Composer-style range matcher.
"""

import re
from dataclasses import dataclass
from functools import total_ordering

KEYWORDS = ("latest", "*", "")

_EXACT_PATTERN = re.compile(r"^\d+\.\d(\.\d+)*$")


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A canonical WordPress version."""

    major: int
    minor: int = 0
    patch: int | None = None

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch or 0)

    def __str__(self) -> str:
        if self.patch:
            return f"{self.major}.{self.minor}.{self.patch}"
        return f"{self.major}.{self.minor}"

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return str(self) == str(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key < other.key

    def __hash__(self) -> int:
        return hash(str(self))


def _leading_digit(digits: str) -> int:
    digits = digits.lstrip("0")
    return int(digits[0]) if digits else 0


def _major(digits: str) -> int:
    try:
        return int(digits) if digits else 0
    except ValueError:
        # Longer than the interpreter allows converting
        return 0


def normalize(raw: str) -> Version:
    """Normalize a loosely formatted version string.

    Anything after the first ``-`` is a pre-release/build suffix and is
    dropped. Non-numeric characters are removed from what remains. Minor and
    patch values above 9 keep only their leading digit, so "4.10.1" becomes
    "4.1.1". A zero patch is dropped, so "4.7.0" becomes "4.7".

    Never raises; unusable input yields ``0.0``.

    Args:
        raw: Version string (e.g., "4.7", "v4.7.2", "4.8-RC1")

    Returns:
        Canonical Version
    """
    stable = raw.strip(". \t\n\r\0\x0b").split("-", 1)[0]
    cleaned = re.sub(r"[^0-9.]", "", stable)

    pieces = cleaned.split(".")
    while len(pieces) < 2:
        pieces.append("")

    major = _major(pieces[0])
    minor = _leading_digit(pieces[1])
    patch = _leading_digit(pieces[2]) if len(pieces) > 2 else None

    return Version(major=major, minor=minor, patch=patch or None)


def is_exact_version(version_str: str) -> bool:
    """Check whether a string is an exact version pin (e.g. "4.7" or "4.7.2")."""
    return _EXACT_PATTERN.match(version_str.strip()) is not None


def is_keyword(constraint: str) -> bool:
    """Check whether a constraint means "newest available"."""
    return constraint.strip().lower() in KEYWORDS


# A bound is compared against Version.key; bounds may exceed the single digit
# range (e.g. the exclusive upper bound of "~4.9.1" is 4.10.0).
_Bound = tuple[int, int, int]

_OPERATOR_PATTERN = re.compile(r"^(>=|<=|<>|!=|==|>|<|=|\^|~)?\s*v?(.+)$")
_PARTIAL_PATTERN = re.compile(r"^(\d+)(?:\.(\d+|[*x]))?(?:\.(\d+|[*x]))?(?:\.(\d+|[*x]))?$")


def _parse_partial(text: str) -> tuple[int, ...]:
    """Parse "4", "4.7", "4.7.2", "4.*" into the numeric components present.

    Wildcards end the component list.
    """
    text = text.split("-", 1)[0]
    match = _PARTIAL_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid version in constraint: {text}")

    parts: list[int] = []
    for group in match.groups():
        if group is None or group in ("*", "x"):
            break
        parts.append(int(group))
    return tuple(parts)


def _as_bound(parts: tuple[int, ...]) -> _Bound:
    major, minor, patch = (list(parts) + [0, 0, 0])[:3]
    return (major, minor, patch)


def _next_bound(parts: tuple[int, ...]) -> _Bound:
    """Exclusive upper bound for a partial version ("4.7" -> 4.8.0)."""
    if not parts:
        raise ValueError("Cannot compute upper bound of an empty version")
    bumped = list(parts[:3])
    bumped[-1] += 1
    return _as_bound(tuple(bumped))


class VersionConstraint:
    """A Composer-style version constraint.

    Supports:
        - "*", "latest" and the empty string (anything)
        - exact versions: "4.7", "=4.7", "v4.7.2"
        - comparisons: ">=4.5", ">4.5", "<=4.7", "<4.7", "!=4.6"
        - wildcards: "4.*", "4.7.*"
        - tilde and caret ranges: "~4.6", "~4.6.1", "^4.6"
        - hyphen ranges: "4.5 - 4.7"
        - AND (space or comma) and OR ("||") combinations
    """

    def __init__(self, spec: str):
        """Initialize a version constraint.

        Args:
            spec: Constraint expression (e.g., ">=4.5 <5.0 || 5.2.*")

        Raises:
            ValueError: If the expression cannot be parsed
        """
        self.spec = spec
        self._alternatives = self._parse_spec(spec)

    def _parse_spec(self, spec: str) -> list[list[tuple[str, _Bound]]]:
        """Parse an expression into OR-ed groups of AND-ed comparisons."""
        spec = re.sub(r"@[a-zA-Z]+", "", spec).strip()
        if spec.lower() in KEYWORDS:
            return [[]]

        alternatives = []
        for group in re.split(r"\s*\|\|?\s*", spec):
            if not group:
                raise ValueError(f"Invalid constraint: {spec}")
            alternatives.append(self._parse_group(group))
        return alternatives

    def _parse_group(self, group: str) -> list[tuple[str, _Bound]]:
        # Hyphen range: "4.5 - 4.7" means >=4.5 and anything up to and including 4.7.x
        hyphen = re.match(r"^(\S+)\s+-\s+(\S+)$", group)
        if hyphen:
            lower = _parse_partial(hyphen.group(1).lstrip("v"))
            upper = _parse_partial(hyphen.group(2).lstrip("v"))
            bounds = [(">=", _as_bound(lower))]
            if len(upper) >= 3:
                bounds.append(("<=", _as_bound(upper)))
            else:
                bounds.append(("<", _next_bound(upper)))
            return bounds

        # Allow whitespace after an operator (">= 4.5")
        group = re.sub(r"(>=|<=|<>|!=|==|>|<|=|\^|~)\s+", r"\1", group)

        constraints: list[tuple[str, _Bound]] = []
        for token in re.split(r"[\s,]+", group.strip()):
            if token:
                constraints.extend(self._parse_token(token))
        return constraints

    def _parse_token(self, token: str) -> list[tuple[str, _Bound]]:
        if token in ("*", "x"):
            return []

        match = _OPERATOR_PATTERN.match(token)
        if not match:
            raise ValueError(f"Invalid constraint: {token}")
        op, rest = match.group(1) or "", match.group(2)
        parts = _parse_partial(rest)
        wildcard = rest.endswith((".*", ".x"))

        if not parts:
            raise ValueError(f"Invalid constraint: {token}")

        # Caret range: ^4.6 means >=4.6 <5.0
        if op == "^":
            base = _as_bound(parts)
            if parts[0] == 0:
                upper = _next_bound(parts[:2]) if len(parts) > 1 and parts[1] else _next_bound(parts)
                return [(">=", base), ("<", upper)]
            return [(">=", base), ("<", (parts[0] + 1, 0, 0))]

        # Tilde range: ~4.6 means >=4.6 <5.0, ~4.6.1 means >=4.6.1 <4.7
        if op == "~":
            base = _as_bound(parts)
            if len(parts) == 1:
                return [(">=", base), ("<", (parts[0] + 1, 0, 0))]
            return [(">=", base), ("<", _next_bound(parts[:-1]))]

        if wildcard:
            lower = _as_bound(parts)
            upper = _next_bound(parts)
            if op in ("", "=", "=="):
                return [(">=", lower), ("<", upper)]
            if op in ("!=", "<>"):
                raise ValueError(f"Unsupported constraint: {token}")
            if op in (">", ">="):
                return [(">=", lower if op == ">=" else upper)]
            return [("<", upper if op == "<=" else lower)]

        bound = _as_bound(parts)
        if op in ("", "=", "=="):
            return [("=", bound)]
        if op == "<>":
            return [("!=", bound)]
        return [(op, bound)]

    @staticmethod
    def _check(key: _Bound, constraints: list[tuple[str, _Bound]]) -> bool:
        for op, bound in constraints:
            if op == ">=" and key < bound:
                return False
            if op == "<=" and key > bound:
                return False
            if op == ">" and key <= bound:
                return False
            if op == "<" and key >= bound:
                return False
            if op == "=" and key != bound:
                return False
            if op == "!=" and key == bound:
                return False
        return True

    def matches(self, version: Version | str) -> bool:
        """Check if a version satisfies this constraint.

        Args:
            version: Version to check (strings are normalized first)

        Returns:
            True if the version satisfies the constraint
        """
        if isinstance(version, str):
            version = normalize(version)

        return any(self._check(version.key, group) for group in self._alternatives)

    def __str__(self) -> str:
        return self.spec

    def __repr__(self) -> str:
        return f"VersionConstraint({self.spec!r})"


def satisfies(version: Version | str, spec: str) -> bool:
    """Check if a version satisfies a constraint expression.

    Args:
        version: Version to check
        spec: Constraint expression

    Returns:
        True if satisfied; False also when the expression is invalid
    """
    try:
        return VersionConstraint(spec).matches(version)
    except ValueError:
        return False


def find_best_version(spec: str, available: list[Version]) -> Version | None:
    """Find the highest version satisfying a constraint.

    Args:
        spec: Constraint expression
        available: Candidate versions

    Returns:
        Highest matching version, or None if no match

    Raises:
        ValueError: If the expression cannot be parsed
    """
    constraint = VersionConstraint(spec)
    matching = [v for v in available if constraint.matches(v)]

    if not matching:
        return None

    return max(matching)
