"""Static task catalogue used to build prompts.

The templates live in ``config/tasks.yaml`` and are read once when the service
container starts; each :class:`TaskSpec` is immutable afterwards. Instruction
text may reference ``{{variable}}`` placeholders which are filled per call.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
TASKS_FILE = CONFIG_DIR / "tasks.yaml"

RECOMMENDATIONS_TASK = "recommendations"
WEEKLY_REPORT_TASK = "weekly-report"
OVERALL_REPORT_TASK = "overall-report"

DEFAULT_PERSONALITY = "Professional, analytical, and data-driven"


@dataclass(frozen=True, slots=True)
class TaskSpec:
    type: str
    role_text: str
    background_text: str
    guidelines: tuple[str, ...]
    instruction: str
    expected_response_shape: str | None = None
    personality: str = DEFAULT_PERSONALITY
    requires_transactions: bool = True
    # enrichment switches applied when this task builds its context
    include_profile: bool = True
    include_sensitive_field: bool = True


# Extra system-prompt rules appended per task type.
INSTRUCTION_APPENDICES: dict[str, tuple[str, ...]] = {
    RECOMMENDATIONS_TASK: (
        "Identify spending patterns and areas for improvement",
        "Consider the emotional impact of purchases (emotion field) when it is present",
        "Focus on the most impactful recommendations",
        "Return recommendations as a JSON array of objects with category and advice fields",
    ),
    WEEKLY_REPORT_TASK: (
        "Focus on the last 7 days of expense data",
        "Highlight emotional drivers: categories with avg. emotion <= -3 and >= +3",
        "Mark outliers (>= P95 of the last 6 weeks or > 2x category average)",
        'Deliver "What stood out?" as exactly 3 bullet points',
    ),
    OVERALL_REPORT_TASK: (
        "Summarize the overall spending behavior across the whole analysis period",
        "Name at most three strengths and three risks",
    ),
}


def instruction_appendix(task_type: str) -> tuple[str, ...]:
    return INSTRUCTION_APPENDICES.get(task_type, ())


def _load_templates(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp)
    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        raise ValueError(f"{path} must define a 'tasks' list")
    return data


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def build_task_catalogue(path: Path | None = None) -> dict[str, TaskSpec]:
    """Return the task specifications keyed by type.

    ``path`` defaults to the bundled ``tasks.yaml``. Fields missing from a
    task entry fall back to the file's ``defaults`` block.
    """

    data = _load_templates(path or TASKS_FILE)
    defaults = data.get("defaults") or {}

    catalogue: dict[str, TaskSpec] = {}
    for entry in data["tasks"]:
        task_type = _text(entry.get("type"))
        if not task_type:
            raise ValueError("task entries require a type")
        if task_type in catalogue:
            raise ValueError(f"duplicate task type {task_type!r}")

        guidelines = entry.get("guidelines", defaults.get("guidelines")) or []
        shape = _text(entry.get("response_shape"))
        catalogue[task_type] = TaskSpec(
            type=task_type,
            role_text=_text(entry.get("role", defaults.get("role"))),
            background_text=_text(entry.get("background", defaults.get("background"))),
            guidelines=tuple(_text(item) for item in guidelines),
            instruction=_text(entry.get("instruction")),
            expected_response_shape=shape or None,
            personality=_text(entry.get("personality", defaults.get("personality"))) or DEFAULT_PERSONALITY,
            requires_transactions=bool(entry.get("requires_transactions", True)),
            include_profile=bool(entry.get("include_profile", defaults.get("include_profile", True))),
            include_sensitive_field=bool(
                entry.get("include_sensitive_field", defaults.get("include_sensitive_field", True))
            ),
        )
    return catalogue


__all__ = [
    "OVERALL_REPORT_TASK",
    "RECOMMENDATIONS_TASK",
    "TaskSpec",
    "WEEKLY_REPORT_TASK",
    "build_task_catalogue",
    "instruction_appendix",
]
