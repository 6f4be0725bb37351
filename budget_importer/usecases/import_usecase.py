from __future__ import annotations

import logging
from datetime import date

from budget_importer.datasets.budgets.columns import MIN_COLUMNS
from budget_importer.datasets.budgets.mapper import to_budget_record, to_insert_payload
from budget_importer.datasets.budgets.normalized import BudgetCandidate
from budget_importer.datasets.budgets.normalizer_spec import BudgetsNormalizerSpec
from budget_importer.datasets.budgets.suggestions import suggest_corrections
from budget_importer.datasets.budgets.validation_spec import BudgetsValidationSpec, describe_candidate
from budget_importer.domain.error_codes import ErrorCode
from budget_importer.domain.importing.summary import ImportDiagnostics, ImportSummary, build_summary
from budget_importer.domain.models import BudgetRecord
from budget_importer.domain.transform.normalizer import Normalizer
from budget_importer.domain.transform.result import TransformResult
from budget_importer.domain.transform.scale import ScaleCorrector
from budget_importer.domain.validation.dataset_rules import DuplicateRecordRule
from budget_importer.domain.validation.deps import DatasetValidationState
from budget_importer.domain.validation.pipeline import DatasetValidator, logValidationFailure
from budget_importer.domain.validation.validator import Validator
from budget_importer.infra.sources.csv_text_source import parse_rows
from budget_importer.usecases.ports import BudgetStoreProtocol, PersistRowResult


class ImportPipeline:
    """
    Назначение/ответственность:
        Один проход импорта: parse -> normalize -> scale -> validate -> dedupe -> summary.

    Ограничения:
        - Состояние дубликатов и накопитель находок создаются на каждый вызов.
        - EmptyFileError/NoDataRowsError пробрасываются до обработки строк.
    """

    def __init__(
        self,
        delimiter: str = ";",
        min_columns: int = MIN_COLUMNS,
        logger: logging.Logger | None = None,
        run_id: str = "-",
    ) -> None:
        self.delimiter = delimiter
        self.min_columns = min_columns
        self.logger = logger or logging.getLogger("budget_importer.import")
        self.run_id = run_id
        self.normalizer = Normalizer(BudgetsNormalizerSpec())
        self.validator = Validator(BudgetsValidationSpec())
        self.scale_corrector = ScaleCorrector()

    def parse_and_validate(self, text: str | None, owner_id: str | None = None) -> ImportSummary:
        parsed = parse_rows(text, delimiter=self.delimiter, min_columns=self.min_columns)
        self._log(logging.INFO, "parse", f"parsed rows={len(parsed.rows)} rejected={len(parsed.rejected)}")

        diagnostics = ImportDiagnostics()
        for rejected in parsed.rejected:
            self._log(logging.WARNING, "parse", f"row={rejected.line_no} {rejected}")
            diagnostics.add_rejected(rejected)

        normalized = [
            self.normalizer.normalize(TransformResult(record=row, row=None, row_ref=None, match_key=None))
            for row in parsed.rows
        ]

        scale_report = self.scale_corrector.apply(normalized)
        detection = scale_report.detection
        self._log(
            logging.INFO,
            "scale",
            f"scale={scale_report.scale} integer_mode={detection.is_integer_mode} "
            f"confidence={detection.confidence:.2f} converted={scale_report.converted_rows} "
            f"rounded={scale_report.rounded_rows}",
        )

        dataset_validator = DatasetValidator(
            (DuplicateRecordRule(describe=describe_candidate),),
            DatasetValidationState(),
        )
        for item in normalized:
            validated = self.validator.validate(item)
            validation = validated.row.validation
            candidate: BudgetCandidate | None = validated.row.row
            if candidate is not None:
                dataset_validator.validate(candidate, validation)

            row_no = validation.line_no
            record: BudgetRecord | None = None
            suggestions = {}
            if candidate is not None and validation.valid:
                record = to_budget_record(candidate, row_no)
            elif candidate is not None:
                suggestions = suggest_corrections(candidate)

            for warning in validation.warnings:
                if warning.code == ErrorCode.UNKNOWN_DEVICE_TYPE.value:
                    self._log(logging.WARNING, "validate", f"row={row_no} unknown device type value={warning.value}")
            if not validation.valid:
                logValidationFailure(self.logger, self.run_id, "validate", validation)

            diagnostics.add_row(
                row_no,
                errors=validation.errors,
                warnings=validation.warnings,
                record=record,
                suggestions=suggestions,
                label=describe_candidate(candidate) if candidate is not None else None,
            )

        summary = build_summary(
            diagnostics,
            owner_id=owner_id,
            integer_mode=detection.is_integer_mode,
            confidence=detection.confidence,
            recommendations=detection.recommendations,
        )
        self._log(
            logging.INFO,
            "summary",
            f"total={summary.total} valid={summary.valid} invalid={summary.invalid} warnings={summary.warnings}",
        )
        return summary

    def _log(self, level: int, component: str, message: str) -> None:
        self.logger.log(level, message, extra={"runId": self.run_id, "component": component})


def persist_records(
    store: BudgetStoreProtocol,
    records: list[BudgetRecord],
    owner_id: str,
    today: date | None = None,
) -> list[PersistRowResult]:
    """
    Назначение:
        Передать валидные записи хранилищу.

    Контракт:
        - Перевод в centavos происходит здесь, через to_insert_payload.
        - Результаты по строкам возвращаются как есть, без повторов.
    """
    if not records:
        return []
    payloads = [to_insert_payload(record, owner_id, today) for record in records]
    return store.insert_many(payloads)
