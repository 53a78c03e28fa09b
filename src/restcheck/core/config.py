from __future__ import annotations

import dataclasses
import fnmatch
import functools
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from restcheck.core._types import SEVERITY_LEVEL, Archetype, Severity

if TYPE_CHECKING:
    from restcheck.core.rule import Rule


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


def _is_glob(pattern: str) -> bool:
    return any(c in pattern for c in "*?[")


@dataclass(frozen=True)
class RestcheckConfig:
    """Configuration for a conformance run.

    Can be loaded from ``.restcheck.toml`` or ``pyproject.toml [tool.restcheck]``
    via :func:`load_config`.

    Example ``pyproject.toml``::

        [tool.restcheck]
        profile = "recommended"
        exclude_rules = ["SEC-001"]
        categories = ["envelope", "method"]
        controller_verbs = ["login", "search"]
        max_workers = 4

        [tool.restcheck.archetypes]
        "/settings/*" = "store"
        "/carts/*/checkout" = "controller"

    """

    # --- Rule filtering ---

    min_severity: Severity = Severity.INFO
    """Minimum severity to evaluate. Rules below this are silently skipped."""

    include_rules: frozenset[str] = field(default_factory=frozenset)
    """Allowlist: if non-empty, only rules matching these patterns are active.
    Applied before ``exclude_rules``.

    Supports both exact IDs (``"ENV-001"``) and glob patterns (``"ENV-*"``).
    """

    exclude_rules: frozenset[str] = field(default_factory=frozenset)
    """Denylist: rule IDs to suppress. Applied after ``include_rules``.

    Supports both exact IDs (``"SEC-001"``) and glob patterns (``"HDR-*"``).
    """

    categories: frozenset[str] = field(default_factory=frozenset)
    """Layer prefixes to include (e.g. ``{"envelope", "method"}``).
    Empty means all categories.

    Known layer values:
    - ``"method"`` — MTH-xxx archetype/method rules
    - ``"envelope"`` — ENV-xxx error envelope rules
    - ``"status"`` — STS-xxx status code rules
    - ``"headers"`` — HDR-xxx header usage rules
    - ``"pagination"`` — PAG-xxx Link header rules
    - ``"security"`` — SEC-xxx rules
    """

    # --- Archetype resolution ---

    archetypes: tuple[tuple[str, Archetype], ...] = ()
    """Ordered ``(path glob, archetype)`` pairs. First match wins."""

    controller_verbs: frozenset[str] = field(default_factory=frozenset)
    """Trailing path segments that mark a controller (``/users/7/activate``)."""

    # --- Execution ---

    max_workers: int = 1
    """Worker threads used for evaluation. ``1`` evaluates inline."""

    # --- Pre-compiled lookups (not part of config equality or hash) ---

    _exact_include: frozenset[str] = field(
        default_factory=frozenset, init=False, compare=False, hash=False, repr=False
    )
    _glob_include: tuple[re.Pattern[str], ...] = field(
        default=(), init=False, compare=False, hash=False, repr=False
    )
    _exact_exclude: frozenset[str] = field(
        default_factory=frozenset, init=False, compare=False, hash=False, repr=False
    )
    _glob_exclude: tuple[re.Pattern[str], ...] = field(
        default=(), init=False, compare=False, hash=False, repr=False
    )
    _archetype_patterns: tuple[tuple[re.Pattern[str], Archetype], ...] = field(
        default=(), init=False, compare=False, hash=False, repr=False
    )

    def __post_init__(self) -> None:
        exact_inc = frozenset(p for p in self.include_rules if not _is_glob(p))
        glob_inc = tuple(
            re.compile(fnmatch.translate(p)) for p in self.include_rules if _is_glob(p)
        )
        exact_exc = frozenset(p for p in self.exclude_rules if not _is_glob(p))
        glob_exc = tuple(
            re.compile(fnmatch.translate(p)) for p in self.exclude_rules if _is_glob(p)
        )
        patterns = tuple(
            (re.compile(fnmatch.translate(p)), Archetype(a)) for p, a in self.archetypes
        )
        object.__setattr__(self, "_exact_include", exact_inc)
        object.__setattr__(self, "_glob_include", glob_inc)
        object.__setattr__(self, "_exact_exclude", exact_exc)
        object.__setattr__(self, "_glob_exclude", glob_exc)
        object.__setattr__(self, "_archetype_patterns", patterns)
        object.__setattr__(
            self, "controller_verbs", frozenset(v.lower() for v in self.controller_verbs)
        )

    @functools.cache  # noqa: B019
    def allows(self, rule: Rule) -> bool:
        """Return ``True`` if *rule* passes all active filters.

        Evaluation order:
        1. ``min_severity`` — rules below this level are excluded.
        2. ``categories`` — if non-empty, rule's layer must match a prefix.
        3. ``include_rules`` — if non-empty, rule ID must be in the allowlist.
        4. ``exclude_rules`` — rule ID must not be in the denylist.

        """
        if SEVERITY_LEVEL[rule.severity] < SEVERITY_LEVEL[self.min_severity]:
            return False

        if self.categories and not any(
            rule.layer == c or rule.layer.startswith(c + ".") for c in self.categories
        ):
            return False

        if self.include_rules and (
            rule.id not in self._exact_include
            and not any(p.match(rule.id) for p in self._glob_include)
        ):
            return False

        if rule.id in self._exact_exclude:
            return False

        return not any(p.match(rule.id) for p in self._glob_exclude)

    def archetype_for(self, path: str) -> Archetype | None:
        """Return the configured archetype for *path*, or ``None``."""
        for pattern, archetype in self._archetype_patterns:
            if pattern.match(path):
                return archetype
        return None


# Built-in profiles: named RestcheckConfig instances for common use cases.
BUILTIN_PROFILES: dict[str, RestcheckConfig] = {
    "strict": RestcheckConfig(),
    "recommended": RestcheckConfig(min_severity=Severity.WARNING),
    "minimal": RestcheckConfig(min_severity=Severity.ERROR),
}


def load_config(path: Path | str | None = None) -> RestcheckConfig:
    """Load :class:`RestcheckConfig` from a TOML file.

    When ``path`` is ``None``, walks up from the current directory looking for
    ``.restcheck.toml`` first, then ``pyproject.toml [tool.restcheck]``.  A
    ``pyproject.toml`` without a ``[tool.restcheck]`` section acts as a
    project root marker and stops the search.

    Raises:
        :class:`ConfigError`: If the file contains an unrecognised value
            (e.g. ``profile = "typo"`` or ``min_severity = "extreme"``).

    """
    if path is not None:
        resolved = Path(path)
        data = _read_file(resolved) if resolved.exists() else {}
    else:
        data = _find_config()

    return _parse_config(data)


def _find_config() -> dict[str, Any]:
    """Walk up from CWD looking for a config file."""
    current = Path.cwd()
    while True:
        restcheck_toml = current / ".restcheck.toml"
        if restcheck_toml.exists():
            return _read_file(restcheck_toml)

        pyproject = current / "pyproject.toml"
        if pyproject.exists():
            return _read_file(pyproject)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return {}


def _read_file(path: Path) -> dict[str, Any]:
    """Read a TOML file and return the restcheck-relevant section."""
    try:
        with path.open("rb") as f:
            raw: dict[str, Any] = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    if path.name == "pyproject.toml":
        tool: dict[str, Any] = raw.get("tool", {})
        section: dict[str, Any] = tool.get("restcheck", {})
        return section
    return raw


def _parse_config(data: dict[str, Any]) -> RestcheckConfig:
    """Parse raw key/value dict into :class:`RestcheckConfig`.

    If ``profile`` is present, the corresponding :data:`BUILTIN_PROFILES`
    entry is used as the base; explicit keys in *data* override it.

    Raises:
        :class:`ConfigError`: On unrecognised enum values or unknown profiles.

    """
    if (profile_name := data.get("profile")) is not None:
        base = BUILTIN_PROFILES.get(str(profile_name))
        if base is None:
            known = ", ".join(f'"{p}"' for p in BUILTIN_PROFILES)
            raise ConfigError(f"Unknown profile {profile_name!r}. Known profiles: {known}")
    else:
        base = RestcheckConfig()

    kwargs: dict[str, Any] = {}
    try:
        if (v := data.get("min_severity")) is not None:
            kwargs["min_severity"] = Severity(v)
        if (v := data.get("max_workers")) is not None:
            kwargs["max_workers"] = int(v)
        if isinstance(mapping := data.get("archetypes"), dict):
            kwargs["archetypes"] = tuple(
                (str(pattern), Archetype(value)) for pattern, value in mapping.items()
            )
    except (ValueError, TypeError) as exc:
        raise ConfigError(str(exc)) from exc

    if kwargs.get("max_workers", 1) < 1:
        raise ConfigError("max_workers must be at least 1")

    if isinstance(rules := data.get("include_rules"), list):
        kwargs["include_rules"] = frozenset(str(r) for r in rules)
    if isinstance(rules := data.get("exclude_rules"), list):
        kwargs["exclude_rules"] = frozenset(str(r) for r in rules)
    if isinstance(cats := data.get("categories"), list):
        kwargs["categories"] = frozenset(str(c) for c in cats)
    if isinstance(verbs := data.get("controller_verbs"), list):
        kwargs["controller_verbs"] = frozenset(str(v) for v in verbs)

    return dataclasses.replace(base, **kwargs)
