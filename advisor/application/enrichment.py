"""Attaches profile and time-windowed transactions to a prompt."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

from advisor.core.date_range import resolve_date_range
from advisor.core.errors import AdvisorError, NotFoundError
from advisor.core.schema import EnrichedContext, EnrichmentConfig
from advisor.infrastructure import RecordStore
from advisor.infrastructure.records import record_day

logger = logging.getLogger(__name__)

SENSITIVE_FIELD = "emotion"
NO_TRANSACTIONS_SENTINEL = "No transaction data available for the specified period."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordEnrichmentService:
    def __init__(self, record_store: RecordStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = record_store
        self._clock = clock

    def enrich(self, entity_id: str, config: EnrichmentConfig) -> EnrichedContext:
        # resolve first so malformed dates fail before any store read
        period = resolve_date_range(config.date_range, self._clock()) if config.date_range is not None else None

        profile: dict[str, Any] | None = None
        if config.include_profile:
            try:
                profile = self._store.get_profile(entity_id)
            except NotFoundError:
                if config.require_profile:
                    raise
                logger.warning("Profile for entity %s not found; continuing without it", entity_id)
            except Exception as exc:
                logger.warning("Could not fetch profile for entity %s: %s", entity_id, exc)

        transactions: list[dict[str, Any]] | None = None
        if period is not None:
            try:
                records = self._store.list_transactions(entity_id, period.start, period.end)
            except Exception as exc:
                partial = EnrichedContext(entity_id=entity_id, profile=profile, period=period)
                raise AdvisorError(
                    f"failed to fetch transactions for entity {entity_id}: {exc}", partial=partial
                ) from exc

            transactions = [dict(record) for record in records]
            if not config.include_sensitive_field:
                for record in transactions:
                    record.pop(SENSITIVE_FIELD, None)
            transactions.sort(key=record_day, reverse=True)
            logger.debug(
                "Enriched entity %s with %d transaction(s) from %s to %s",
                entity_id,
                len(transactions),
                period.start,
                period.end,
            )

        return EnrichedContext(entity_id=entity_id, profile=profile, transactions=transactions, period=period)


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def render_context(context: EnrichedContext) -> str:
    """Render ``context`` as a block that can be appended to a user prompt."""

    parts = ["--- USER DATA ---"]
    if context.profile:
        parts.append(f"User Profile:\n{_to_json(context.profile)}")
    if context.period is not None:
        parts.append(f"Analysis Period: {context.period.start} to {context.period.end}")
    if context.transactions:
        parts.append(f"Expense Data ({len(context.transactions)} transactions):\n{_to_json(context.transactions)}")
    else:
        parts.append(NO_TRANSACTIONS_SENTINEL)
    return "\n\n".join(parts)


__all__ = ["NO_TRANSACTIONS_SENTINEL", "RecordEnrichmentService", "SENSITIVE_FIELD", "render_context"]
