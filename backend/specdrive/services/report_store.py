"""Report store — persistence of validation reports and rule definitions."""

from typing import Optional

import structlog
from pydantic import ValidationError

from specdrive.services.store import Store
from specdrive.validators.models import ValidationReport, ValidationRule, parse_rule

logger = structlog.get_logger()


class ReportStore:
    """Thin typed layer over the Store for the validation engine."""

    def __init__(self, store: Store):
        self.store = store

    async def save(self, report: ValidationReport) -> None:
        await self.store.save_report(report)
        logger.info(
            "validation_report_saved",
            report_id=report.id,
            project_id=report.project_id,
            status=report.overall_status,
        )

    async def history(self, project_id: str, limit: int) -> list[ValidationReport]:
        return await self.store.list_reports(project_id, limit)

    async def get(self, report_id: str) -> Optional[ValidationReport]:
        return await self.store.get_report(report_id)

    async def save_rule(self, rule: ValidationRule) -> None:
        await self.store.save_rule(rule.model_dump(mode="json"))

    async def delete_rule(self, rule_id: str) -> bool:
        return await self.store.delete_rule(rule_id)

    async def load_rules(self) -> list[ValidationRule]:
        """Stored rules in insertion order; rows that no longer parse are skipped."""
        rules = []
        for data in await self.store.list_rules():
            try:
                rules.append(parse_rule(data))
            except ValidationError as e:
                logger.warning("stored_rule_invalid", rule_id=data.get("id"), error=str(e))
        return rules
