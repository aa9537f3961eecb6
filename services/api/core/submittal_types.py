# services/api/core/submittal_types.py
"""
Submittal type classification.

Derives the cover-page "Submittal Type" checkboxes from the names and type
tags of the selected documents. The trigger table is plain data: it can be
replaced by a JSON file (settings.submittal_triggers_path) without code changes.

Ambiguous names may set several flags (or none); that is accepted behaviour.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from schemas.packet import DocumentRequest, SubmittalTypeFlags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerRule:
    """Set every flag in `flags` when any substring or type tag matches."""
    flags: Tuple[str, ...]
    name_contains: Tuple[str, ...] = ()
    type_equals: Tuple[str, ...] = ()

    def matches(self, name: str, doc_type: str) -> bool:
        if any(fragment in name for fragment in self.name_contains):
            return True
        return doc_type in self.type_equals


def _fire_assembly_rules() -> List[TriggerRule]:
    return [
        TriggerRule(
            flags=("fire_assembly", f"fire_assembly_{n:02d}"),
            name_contains=(f"fire assembly {n:02d}",),
        )
        for n in range(1, 10)
    ]


DEFAULT_TRIGGERS: Tuple[TriggerRule, ...] = (
    TriggerRule(("tds",), ("technical data sheet",), ("tds",)),
    TriggerRule(("three_part_specs",), ("3-part spec",), ("partspec",)),
    TriggerRule(("test_report_icc_esr_5194",), ("esr-5194", "esr 5194")),
    TriggerRule(("test_report_icc_esr_5192",), ("esr-5192", "esr 5192")),
    TriggerRule(("test_report_icc_esl_1645",), ("esl-1645", "esl 1645", "acoustical")),
    *_fire_assembly_rules(),
    TriggerRule(("msds",), ("msds", "material safety"), ("msds",)),
    TriggerRule(("leed_guide",), ("leed",), ("leed",)),
    TriggerRule(("installation_guide",), ("installation",), ("installation",)),
    TriggerRule(("warranty",), ("warranty",), ("warranty",)),
)


def load_triggers(path: Optional[str]) -> Tuple[TriggerRule, ...]:
    """
    Load a trigger table from JSON, or return the built-in table.

    File format: a list of objects
        {"flags": [...], "name_contains": [...], "type_equals": [...]}
    Flag names are the snake_case SubmittalTypeFlags fields.
    """
    if not path:
        return DEFAULT_TRIGGERS

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    known = set(SubmittalTypeFlags.flag_names())
    rules: List[TriggerRule] = []
    for i, item in enumerate(raw):
        flags = tuple(item.get("flags") or ())
        unknown = [f for f in flags if f not in known]
        if not flags or unknown:
            raise ValueError(f"Trigger rule #{i}: unknown or missing flags {unknown or flags}")
        rules.append(
            TriggerRule(
                flags=flags,
                name_contains=tuple(s.lower() for s in item.get("name_contains") or ()),
                type_equals=tuple(s.lower() for s in item.get("type_equals") or ()),
            )
        )
    logger.info(f"Loaded {len(rules)} submittal type triggers from {path}")
    return tuple(rules)


def classify_submittal_types(
    documents: Iterable[DocumentRequest],
    triggers: Sequence[TriggerRule] = DEFAULT_TRIGGERS,
) -> SubmittalTypeFlags:
    """
    Derive submittal type flags from the selected documents.

    Flags only ever go from False to True; an empty list yields all-False.
    """
    flags = dict.fromkeys(SubmittalTypeFlags.flag_names(), False)

    for doc in documents:
        name = (doc.name or "").lower()
        doc_type = (doc.type or "").lower()
        for rule in triggers:
            if rule.matches(name, doc_type):
                for flag in rule.flags:
                    flags[flag] = True

    return SubmittalTypeFlags(**flags)
