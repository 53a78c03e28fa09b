"""Classify request paths into resource archetypes."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from restcheck.core._types import Archetype

if TYPE_CHECKING:
    from restcheck.core.config import RestcheckConfig

_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I)
_HEX_ID = re.compile(r"^[0-9a-f]{8,}$", re.I)
_NUMERIC_ID = re.compile(r"^\d+$")


def _is_identifier(segment: str) -> bool:
    return bool(
        _NUMERIC_ID.match(segment) or _UUID.match(segment) or _HEX_ID.match(segment)
    )


def infer_archetype(
    path: str,
    *,
    controller_verbs: frozenset[str] = frozenset(),
) -> Archetype:
    """Guess the archetype a path addresses from its shape.

    - ``/widgets/42:archive`` (custom method suffix) → controller
    - last segment in *controller_verbs* → controller
    - trailing identifier segment (digits, UUID, long hex) → document
    - anything else, including ``/`` → collection
    """
    resource = urlsplit(path).path
    segments = [s for s in resource.split("/") if s]
    if not segments:
        return Archetype.COLLECTION

    last = segments[-1]
    if ":" in last:
        return Archetype.CONTROLLER
    if last.lower() in controller_verbs:
        return Archetype.CONTROLLER
    if _is_identifier(last):
        return Archetype.DOCUMENT
    return Archetype.COLLECTION


def resolve_archetype(path: str, config: RestcheckConfig | None = None) -> Archetype:
    """Resolve a path's archetype: configured patterns first, then inference."""
    if config is None:
        return infer_archetype(path)
    resource = urlsplit(path).path
    configured = config.archetype_for(resource)
    if configured is not None:
        return configured
    return infer_archetype(path, controller_verbs=config.controller_verbs)
