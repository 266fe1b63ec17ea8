"""Rule table — narrative fragments keyed by line label and condition.

Source document shape::

    {"linhas": {"coracao": {"presenca": "...", "robusta": "...", ...},
                "cabeca": {...}, "vida": {...}, "destino": {...}}}

Loading is tolerant: a missing or malformed document yields an empty (or
partial) table flagged as degraded, never an exception. Only the file loader
raises, and only when the file cannot be read as JSON.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

from palmsight.engine.errors import RulesFormatError
from palmsight.engine.labels import Condition, LineLabel

logger = logging.getLogger(__name__)

_LINES_KEY = "linhas"
_DEFAULT_RESOURCE = "base_vedica.json"
_LABEL_VALUES = frozenset(label.value for label in LineLabel)


@dataclass(frozen=True)
class RulesTable:
    """Typed, read-only view over a rule document."""

    entries: Mapping[LineLabel, Mapping[Condition, str]] = field(default_factory=dict)
    problems: tuple[str, ...] = ()
    degraded: bool = False

    def lookup(self, label: LineLabel, condition: Condition) -> str | None:
        text = self.entries.get(label, {}).get(condition)
        return text or None

    @property
    def is_empty(self) -> bool:
        return not any(self.entries.values())

    @classmethod
    def empty(cls) -> RulesTable:
        return cls()

    @classmethod
    def from_mapping(cls, document: Any) -> RulesTable:
        if document is None:
            return cls(problems=("No rule table supplied",), degraded=True)
        if not isinstance(document, Mapping):
            return cls(problems=(f"Rule table must be an object, got {type(document).__name__}",), degraded=True)
        lines = document.get(_LINES_KEY)
        if not isinstance(lines, Mapping):
            return cls(problems=(f"Rule table has no '{_LINES_KEY}' object",), degraded=True)

        problems: list[str] = []
        malformed = False
        entries: dict[LineLabel, dict[Condition, str]] = {}
        for label in LineLabel:
            raw = lines.get(label.value)
            if raw is None:
                continue
            if not isinstance(raw, Mapping):
                problems.append(f"'{label.value}' must be an object")
                malformed = True
                continue
            entries[label] = _parse_conditions(label, raw, problems)

        for key in lines:
            if key not in _LABEL_VALUES:
                problems.append(f"Unknown line '{key}' ignored")

        for p in problems:
            logger.warning("Rules: %s", p)
        return cls(entries=entries, problems=tuple(problems), degraded=malformed)


def _parse_conditions(label: LineLabel, raw: Mapping[str, Any], problems: list[str]) -> dict[Condition, str]:
    out: dict[Condition, str] = {}
    for key, value in raw.items():
        try:
            condition = Condition(key)
        except ValueError:
            problems.append(f"Unknown condition '{label.value}.{key}' ignored")
            continue
        if not isinstance(value, str):
            problems.append(f"'{label.value}.{key}' is not text")
            continue
        out[condition] = value
    return out


def load_rules(path: str | Path) -> RulesTable:
    """Read a JSON rule document from disk."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise RulesFormatError(f"Cannot read rule table {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RulesFormatError(f"Rule table {path} is not valid JSON: {e}") from e
    return RulesTable.from_mapping(document)


def default_rules() -> RulesTable:
    """Rule table shipped with the package."""
    text = (resources.files("palmsight") / "data" / _DEFAULT_RESOURCE).read_text(encoding="utf-8")
    return RulesTable.from_mapping(json.loads(text))
