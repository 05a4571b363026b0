"""Item schemas and fallback lists for the structured generation actions."""

from __future__ import annotations

from typing import Any, Mapping

from ..workspace.schema.enums import (
    DeploymentCategory,
    DeploymentEnvironment,
    DeploymentPlatform,
    DeploymentPriority,
    DeploymentStatus,
    RoadmapPhase,
    RoadmapStatus,
    TaskPriority,
    TaskStatus,
)
from .actions import Action
from .normalize import FieldSpec, ItemSchema

__all__ = [
    "ROADMAP_SCHEMA",
    "TASK_SCHEMA",
    "DESIGN_TASK_SCHEMA",
    "DEPLOYMENT_SCHEMA",
    "SCHEMA_BY_ACTION",
]

_PHASES_BY_INDEX = (RoadmapPhase.MVP.value, RoadmapPhase.PHASE_2.value)


def _phase_for_index(index: int, _context: Mapping[str, Any]) -> str:
    if index < len(_PHASES_BY_INDEX):
        return _PHASES_BY_INDEX[index]
    return RoadmapPhase.BACKLOG.value


def _numbered(label: str):
    def _default(index: int, _context: Mapping[str, Any]) -> str:
        return f"{label} {index + 1}"

    return _default


def _requested_platform(_index: int, context: Mapping[str, Any]) -> str:
    return context.get("platform") or DeploymentPlatform.UNIVERSAL.value


ROADMAP_SCHEMA = ItemSchema(
    name="roadmap",
    fields=(
        FieldSpec("title", _numbered("Phase")),
        FieldSpec("description", "Description not provided"),
        FieldSpec("status", RoadmapStatus.PLANNED.value, RoadmapStatus.values()),
        FieldSpec("phase", _phase_for_index, RoadmapPhase.values()),
        FieldSpec("milestone", False, kind="bool"),
        FieldSpec("color", "#3b82f6", kind="color"),
    ),
    fallback=(
        {
            "title": "MVP - Core Features",
            "description": "Build the essential features needed for the minimum viable product",
            "status": "planned",
            "phase": "mvp",
            "milestone": True,
            "color": "#3b82f6",
        },
        {
            "title": "Phase 2 - Enhanced Features",
            "description": "Add additional features and improvements based on user feedback",
            "status": "planned",
            "phase": "phase_2",
            "milestone": False,
            "color": "#10b981",
        },
        {
            "title": "Future Enhancements",
            "description": "Advanced features and optimizations for future releases",
            "status": "planned",
            "phase": "backlog",
            "milestone": False,
            "color": "#f59e0b",
        },
    ),
)


def _task_fields(title_label: str, description: str) -> tuple[FieldSpec, ...]:
    return (
        FieldSpec("title", _numbered(title_label)),
        FieldSpec("description", description),
        FieldSpec("status", TaskStatus.TODO.value, TaskStatus.values()),
        FieldSpec("priority", TaskPriority.MEDIUM.value, TaskPriority.values()),
        FieldSpec("estimated_hours", None, kind="hours"),
        FieldSpec("due_date", None, kind="optional_text"),
        FieldSpec("tags", [], kind="string_list"),
        FieldSpec("dependencies", [], kind="string_list"),
    )


TASK_SCHEMA = ItemSchema(
    name="tasks",
    fields=_task_fields("Task", "Task description"),
    fallback=(
        {
            "title": "Set up project structure",
            "description": "Initialize the project repository and basic folder structure",
            "status": "todo",
            "priority": "high",
            "estimated_hours": 4,
            "due_date": None,
            "tags": ["setup", "backend"],
            "dependencies": [],
        },
        {
            "title": "Design user interface mockups",
            "description": "Create wireframes and mockups for the main user interface",
            "status": "todo",
            "priority": "medium",
            "estimated_hours": 8,
            "due_date": None,
            "tags": ["design", "frontend"],
            "dependencies": [],
        },
        {
            "title": "Implement core functionality",
            "description": "Build the main features identified in the PRD",
            "status": "todo",
            "priority": "high",
            "estimated_hours": 20,
            "due_date": None,
            "tags": ["frontend", "backend"],
            "dependencies": [],
        },
    ),
)

DESIGN_TASK_SCHEMA = ItemSchema(
    name="design_tasks",
    fields=_task_fields("Design task", "Design improvement"),
    fallback=(
        {
            "title": "Review visual hierarchy",
            "description": "Check headings, spacing and emphasis so the primary action stands out",
            "status": "todo",
            "priority": "medium",
            "estimated_hours": 3,
            "due_date": None,
            "tags": ["design", "ui"],
            "dependencies": [],
        },
        {
            "title": "Improve color contrast",
            "description": "Make text and interactive elements meet accessible contrast ratios",
            "status": "todo",
            "priority": "high",
            "estimated_hours": 2,
            "due_date": None,
            "tags": ["design", "accessibility"],
            "dependencies": [],
        },
        {
            "title": "Tighten responsive layout",
            "description": "Verify the layout on small screens and fix overflowing components",
            "status": "todo",
            "priority": "medium",
            "estimated_hours": 4,
            "due_date": None,
            "tags": ["design", "frontend"],
            "dependencies": [],
        },
    ),
)


def _deployment_fallback(title: str, description: str, category: str, priority: str) -> dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "category": category,
        "platform": DeploymentPlatform.UNIVERSAL.value,
        "environment": DeploymentEnvironment.PRODUCTION.value,
        "status": DeploymentStatus.TODO.value,
        "priority": priority,
        "is_required": True,
        "estimated_hours": None,
        "verification_notes": "",
        "helpful_links": [],
        "tags": [category],
        "is_auto_generated": True,
    }


DEPLOYMENT_SCHEMA = ItemSchema(
    name="deployment_checklist",
    fields=(
        FieldSpec("title", _numbered("Deployment task")),
        FieldSpec("description", "Deployment task description"),
        FieldSpec("category", DeploymentCategory.GENERAL.value, DeploymentCategory.values()),
        FieldSpec("platform", _requested_platform, DeploymentPlatform.values()),
        FieldSpec(
            "environment", DeploymentEnvironment.PRODUCTION.value, DeploymentEnvironment.values()
        ),
        FieldSpec("status", DeploymentStatus.TODO.value, DeploymentStatus.values()),
        FieldSpec("priority", DeploymentPriority.MEDIUM.value, DeploymentPriority.values()),
        FieldSpec("is_required", True, kind="bool"),
        FieldSpec("estimated_hours", None, kind="hours"),
        FieldSpec("verification_notes", ""),
        FieldSpec("helpful_links", [], kind="links"),
        FieldSpec("tags", [], kind="string_list"),
    ),
    constants={"is_auto_generated": True},
    fallback=(
        _deployment_fallback(
            "Configure production environment variables",
            "Set every required secret and configuration value in the hosting provider",
            "env",
            "critical",
        ),
        _deployment_fallback(
            "Deploy the application to production hosting",
            "Build the production bundle and publish it to the chosen host",
            "hosting",
            "critical",
        ),
        _deployment_fallback(
            "Verify SSL certificate",
            "Confirm the production domain serves a valid HTTPS certificate",
            "ssl",
            "high",
        ),
        _deployment_fallback(
            "Configure custom domain and DNS",
            "Point the domain records at the production deployment",
            "dns",
            "high",
        ),
        _deployment_fallback(
            "Set up error monitoring",
            "Capture runtime errors and alert on failures in production",
            "monitoring",
            "medium",
        ),
        _deployment_fallback(
            "Run a production smoke test",
            "Exercise sign-in and the main user flows against the live deployment",
            "testing",
            "high",
        ),
    ),
)

SCHEMA_BY_ACTION: Mapping[Action, ItemSchema] = {
    Action.ROADMAP: ROADMAP_SCHEMA,
    Action.TASKS: TASK_SCHEMA,
    Action.DESIGN_TASKS: DESIGN_TASK_SCHEMA,
    Action.DESIGN_TASKS_IMAGE: DESIGN_TASK_SCHEMA,
    Action.DEPLOYMENT_CHECKLIST: DEPLOYMENT_SCHEMA,
}
