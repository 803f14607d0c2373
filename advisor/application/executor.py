"""Builds prompts for a task and runs a single generative call."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from advisor.application.enrichment import render_context
from advisor.core.errors import EmptyResponseError, NoDataError, UpstreamError
from advisor.core.schema import EnrichedContext, UsageStats
from advisor.core.tasks import TaskSpec, instruction_appendix
from advisor.infrastructure import GenerationResult, GenerativeService

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


@dataclass(slots=True)
class TaskOutcome:
    task_type: str
    content: str
    raw: GenerationResult
    system_text: str
    user_text: str

    @property
    def usage(self) -> UsageStats | None:
        return self.raw.usage

    @property
    def model(self) -> str | None:
        return self.raw.model


def apply_variables(text: str, variables: dict[str, str] | None) -> str:
    """Substitute ``{{name}}`` placeholders; unknown names are left untouched."""

    if not variables:
        return text

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(variables[name]) if name in variables else match.group(0)

    return _PLACEHOLDER.sub(_replace, text)


class TaskExecutor:
    def __init__(self, generative: GenerativeService) -> None:
        self._generative = generative

    @staticmethod
    def build_system_text(spec: TaskSpec) -> str:
        rules = [*spec.guidelines, *instruction_appendix(spec.type)]
        lines = [
            f"Role: {spec.role_text}",
            "",
            f"Background: {spec.background_text}",
            "",
            f"Personality: {spec.personality}",
            "",
            "Rules:",
            *(f"- {rule}" for rule in rules),
            "",
            "Please respond according to this specification and maintain consistency throughout the conversation.",
        ]
        return "\n".join(lines)

    @staticmethod
    def build_user_text(spec: TaskSpec, context: EnrichedContext, variables: dict[str, str] | None = None) -> str:
        merged: dict[str, str] = {}
        if context.period is not None:
            merged.update(start_date=context.period.start, end_date=context.period.end)
        merged.update(variables or {})

        sections = [apply_variables(spec.instruction, merged), render_context(context)]
        if spec.expected_response_shape:
            sections.append(f"Please respond in the following JSON format:\n{spec.expected_response_shape}")
        return "\n\n".join(sections)

    def execute(
        self,
        spec: TaskSpec,
        context: EnrichedContext,
        variables: dict[str, str] | None = None,
    ) -> TaskOutcome:
        if spec.requires_transactions and context.has_empty_window:
            logger.info(
                "No transactions for entity %s; skipping %s generation", context.entity_id, spec.type
            )
            raise NoDataError(
                f"no transaction data for entity {context.entity_id} in the requested period; "
                f"{spec.type} generation skipped",
                partial=context,
            )

        system_text = self.build_system_text(spec)
        user_text = self.build_user_text(spec, context, variables)

        try:
            result = self._generative.complete(system_text, user_text)
        except Exception as exc:
            logger.warning("Generative call for %s (entity %s) failed: %s", spec.type, context.entity_id, exc)
            raise UpstreamError(str(exc) or exc.__class__.__name__, partial=context) from exc

        if result.choices <= 0:
            raise EmptyResponseError(
                f"generative service returned no choices for {spec.type}", partial=context
            )

        return TaskOutcome(
            task_type=spec.type,
            content=result.content,
            raw=result,
            system_text=system_text,
            user_text=user_text,
        )


__all__ = ["TaskExecutor", "TaskOutcome", "apply_variables"]
