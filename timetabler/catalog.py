"""
Class-subject catalog resolution.

Class names look like 'JS1 silver' or 'SS2 gold': a stage ('JS' junior
secondary, 'SS' senior secondary), a year within the stage, then an arm.
Subjects list the classes they apply to using any of these forms:

- an exact class name ('SS2 gold')
- a stage-level ('SS2')
- a bare stage ('SS')

A subject with no classes applies to every class.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .data.models import Subject

STAGE_LEVEL_PATTERN = re.compile(r"^(JS|SS)([1-3])", re.IGNORECASE)


def class_stage(class_name: Optional[str]) -> str:
    """Return 'JS' or 'SS' for a class name, or '' for anything else."""
    if not class_name:
        return ""
    if class_name.startswith("JS"):
        return "JS"
    if class_name.startswith("SS"):
        return "SS"
    return ""


def class_stage_level(class_name: Optional[str]) -> str:
    """
    Return the stage-level of a class name.

    Example:
        >>> class_stage_level("SS2 gold")
        'SS2'
        >>> class_stage_level("Primary 4")
        'Pri'
    """
    if not class_name:
        return ""
    match = STAGE_LEVEL_PATTERN.match(class_name)
    if match:
        return f"{match.group(1)}{match.group(2)}"
    return class_name[:3]


def subject_applies(subject: Subject, class_name: str) -> bool:
    """Whether a subject is taught to a class."""
    if not subject.classes:
        return True

    stage = class_stage(class_name)
    level = class_stage_level(class_name)
    for entry in subject.classes:
        if entry == class_name or entry == level or (stage and entry == stage):
            return True
        # Stage-wide match, e.g. 'SS1' entries still reach 'SS2 gold'
        if stage and entry.startswith(stage):
            return True
    return False


def is_exact_match(subject: Subject, class_name: str) -> bool:
    """Whether a subject names the class or its stage-level explicitly."""
    level = class_stage_level(class_name)
    return class_name in subject.classes or level in subject.classes


def resolve_subjects(class_name: Optional[str], all_subjects: Iterable[Subject]) -> list[Subject]:
    """
    Filter the subject catalog down to the subjects taught to a class.

    Subjects that name the class or its stage-level come first; each group
    is ordered by name. An empty class name returns the whole catalog
    unchanged.

    Args:
        class_name: Class identifier such as 'SS2 gold'
        all_subjects: The full subject catalog

    Returns:
        Ordered list of applicable subjects
    """
    subjects = list(all_subjects)
    if not class_name:
        return subjects

    applicable = [s for s in subjects if subject_applies(s, class_name)]
    return sorted(
        applicable,
        key=lambda s: (not is_exact_match(s, class_name), s.name.casefold()),
    )


def is_subject_available(subject_name: str, class_name: str, all_subjects: Iterable[Subject]) -> bool:
    """
    Check a subject name against the subjects resolved for a class.

    An empty resolution accepts any subject, so manual entries still work
    for schools that have not filled in their catalog.
    """
    resolved = resolve_subjects(class_name, all_subjects)
    if not resolved:
        return True
    return any(s.name == subject_name for s in resolved)
