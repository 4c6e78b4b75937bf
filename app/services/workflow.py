"""Work item variants and their status state machines.

Each variant keeps its own closed status and priority enums. A status is
valid for an item only if it belongs to the item's own variant; the
transition graphs are checked on top of that when
``ENFORCE_STATUS_TRANSITIONS`` is enabled.
"""

from dataclasses import dataclass, field

from flask import current_app

from app.errors import ValidationError

JIRA_PRIORITIES = ("Highest", "High", "Medium", "Low", "Lowest")


@dataclass(frozen=True)
class WorkItemVariant:
    """Static description of one work item type."""

    name: str
    key_prefix: str | None  # None means "<PROJECT>-<N>"
    statuses: tuple[str, ...]
    priorities: tuple[str, ...]
    default_priority: str
    transitions: dict[str, tuple[str, ...]]
    done_statuses: frozenset[str] = field(default_factory=frozenset)
    severities: tuple[str, ...] = ()
    default_severity: str | None = None

    @property
    def initial_status(self) -> str:
        return self.statuses[0]

    def allowed_transitions(self, current: str) -> tuple[str, ...]:
        return self.transitions.get(current, ())


STORY = WorkItemVariant(
    name="Story",
    key_prefix=None,
    statuses=("Backlog", "To Do", "In Progress", "In Review", "Done", "Blocked"),
    priorities=JIRA_PRIORITIES,
    default_priority="Medium",
    transitions={
        "Backlog": ("To Do", "In Progress", "Blocked"),
        "To Do": ("Backlog", "In Progress", "Blocked"),
        "In Progress": ("To Do", "In Review", "Done", "Blocked"),
        "In Review": ("In Progress", "Done", "Blocked"),
        "Blocked": ("Backlog", "To Do", "In Progress", "In Review"),
        "Done": ("In Progress",),
    },
    done_statuses=frozenset({"Done"}),
)

EPIC = WorkItemVariant(
    name="Epic",
    key_prefix="EPIC",
    statuses=("To Do", "In Progress", "Done", "Blocked"),
    priorities=JIRA_PRIORITIES,
    default_priority="Medium",
    transitions={
        "To Do": ("In Progress", "Blocked"),
        "In Progress": ("To Do", "Done", "Blocked"),
        "Blocked": ("To Do", "In Progress"),
        "Done": ("In Progress",),
    },
    done_statuses=frozenset({"Done"}),
)

TASK = WorkItemVariant(
    name="Task",
    key_prefix="TASK",
    statuses=("Planning", "In Progress", "Completed", "Cancelled", "On Hold"),
    priorities=("Low", "Medium", "High", "Critical"),
    default_priority="Medium",
    transitions={
        "Planning": ("In Progress", "On Hold", "Cancelled"),
        "In Progress": ("Planning", "Completed", "On Hold", "Cancelled"),
        "On Hold": ("Planning", "In Progress", "Cancelled"),
        "Completed": ("In Progress",),
        "Cancelled": ("Planning",),
    },
    done_statuses=frozenset({"Completed"}),
)

DEFECT = WorkItemVariant(
    name="Defect",
    key_prefix="BUG",
    statuses=("Open", "In Progress", "Resolved", "Closed", "Reopened"),
    priorities=JIRA_PRIORITIES,
    default_priority="High",
    transitions={
        "Open": ("In Progress", "Resolved", "Closed"),
        "In Progress": ("Open", "Resolved", "Closed"),
        "Resolved": ("Closed", "Reopened"),
        "Closed": ("Reopened",),
        "Reopened": ("In Progress", "Resolved", "Closed"),
    },
    done_statuses=frozenset({"Resolved", "Closed"}),
    severities=("Low", "Medium", "High", "Critical"),
    default_severity="Medium",
)

FEATURE = WorkItemVariant(
    name="Feature",
    key_prefix="FEAT",
    statuses=("PLANNED", "IN_PROGRESS", "IN_REVIEW", "COMPLETED", "ON_HOLD", "CANCELLED"),
    priorities=("LOW", "MEDIUM", "HIGH", "CRITICAL"),
    default_priority="MEDIUM",
    transitions={
        "PLANNED": ("IN_PROGRESS", "ON_HOLD", "CANCELLED"),
        "IN_PROGRESS": ("PLANNED", "IN_REVIEW", "COMPLETED", "ON_HOLD", "CANCELLED"),
        "IN_REVIEW": ("IN_PROGRESS", "COMPLETED", "ON_HOLD", "CANCELLED"),
        "ON_HOLD": ("PLANNED", "IN_PROGRESS", "CANCELLED"),
        "COMPLETED": ("IN_PROGRESS",),
        "CANCELLED": ("PLANNED",),
    },
    done_statuses=frozenset({"COMPLETED"}),
)

VARIANTS: dict[str, WorkItemVariant] = {
    variant.name: variant for variant in (STORY, TASK, DEFECT, FEATURE, EPIC)
}

# Older clients file defects as "Bug"
TYPE_ALIASES = {"bug": "defect"}

SPRINT_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "PLANNING": ("IN_PROGRESS", "CANCELLED"),
    "IN_PROGRESS": ("COMPLETED", "CANCELLED"),
    "COMPLETED": (),
    "CANCELLED": (),
}


def get_variant(type_name: str | None) -> WorkItemVariant:
    """Resolve a type tag (case-insensitive) to its variant."""
    if isinstance(type_name, str):
        lookup = type_name.strip().lower()
        lookup = TYPE_ALIASES.get(lookup, lookup)
        for name, variant in VARIANTS.items():
            if name.lower() == lookup:
                return variant
    raise ValidationError(
        f"Invalid work item type: {type_name!r}",
        field="type",
        allowed=list(VARIANTS),
    )


def transitions_enforced() -> bool:
    return bool(current_app.config.get("ENFORCE_STATUS_TRANSITIONS", False))


def validate_status(variant: WorkItemVariant, status) -> str:
    if status not in variant.statuses:
        raise ValidationError(
            f'Invalid status "{status}" for {variant.name}. '
            f'Must be one of: {", ".join(variant.statuses)}',
            field="status",
            allowed=list(variant.statuses),
        )
    return status


def check_transition(
    allowed_by_status: dict[str, tuple[str, ...]],
    current: str,
    target: str,
    label: str,
) -> None:
    """Reject ``current -> target`` when it is not in the graph."""
    if current == target or not transitions_enforced():
        return
    allowed = allowed_by_status.get(current, ())
    if target not in allowed:
        raise ValidationError(
            f'{label} cannot move from "{current}" to "{target}"',
            field="status",
            allowed=list(allowed),
        )


def validate_priority(variant: WorkItemVariant, priority) -> str:
    if priority not in variant.priorities:
        raise ValidationError(
            f'Invalid priority "{priority}" for {variant.name}. '
            f'Must be one of: {", ".join(variant.priorities)}',
            field="priority",
            allowed=list(variant.priorities),
        )
    return priority


def validate_severity(variant: WorkItemVariant, severity) -> str:
    if not variant.severities:
        raise ValidationError(
            f"{variant.name} items have no severity", field="severity"
        )
    if severity not in variant.severities:
        raise ValidationError(
            f'Invalid severity "{severity}". Must be one of: {", ".join(variant.severities)}',
            field="severity",
            allowed=list(variant.severities),
        )
    return severity
