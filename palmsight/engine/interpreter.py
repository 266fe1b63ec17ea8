"""Narrative composer — turns per-line conditions into a reading.

Takes a completed PipelineContext and a RulesTable. For each label in
heart, head, life, fate order it emits the presence or absence fragment,
then (present lines only) strength, length class and the directional
conditions in the order the geometry layer produced them. Missing fragments
are skipped; nothing is deduplicated.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from palmsight.engine.context import PipelineContext
from palmsight.engine.labels import NARRATIVE_ORDER, Condition, LineLabel
from palmsight.engine.rules import RulesTable


@dataclass(frozen=True)
class Fragment:
    label: LineLabel
    condition: Condition
    text: str


@dataclass
class HandReading:
    """Matched fragments in emission order."""

    fragments: list[Fragment] = field(default_factory=list)

    def to_text(self) -> str:
        return " ".join(f.text for f in self.fragments)


def line_conditions(ctx: PipelineContext, label: LineLabel) -> list[Condition]:
    """Every condition a label satisfies, presence/absence first."""
    line = ctx.get_line(label)
    if line is None:
        return [Condition.AUSENCIA]
    out = [Condition.PRESENCA]
    feats = ctx.features.get(label)
    if feats is not None:
        out.extend(feats.ordered_conditions())
    return out


def interpret(ctx: PipelineContext, rules: RulesTable) -> HandReading:
    reading = HandReading()
    for label in NARRATIVE_ORDER:
        for condition in line_conditions(ctx, label):
            text = rules.lookup(label, condition)
            if text:
                reading.fragments.append(Fragment(label, condition, text))
    return reading
