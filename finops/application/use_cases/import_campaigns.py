"""Campaign spreadsheet preview and import."""

from dataclasses import dataclass
from datetime import date
import time
from typing import Callable, Optional

from finops.application.errors import FileRejectedError, PersistenceError, ValidationError
from finops.application.ports import Clock, UnitOfWork
from finops.application.use_cases.audit import AuditTrail, require
from finops.domain.entities import AdCampaign, AdPerformance, AdPlatform, AuditAction, snapshot
from finops.domain.imports import (
    ImportRowWarning,
    ImportTotals,
    ParsedImport,
    decode_csv_content,
    parse_campaign_csv,
    validate_csv_file,
)
from finops.domain.imports.file_validation import MAX_FILE_SIZE
from finops.domain.imports.threats import SQL_REASON, XSS_REASON
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import AuditEventType, SecurityLogger, get_logger
from finops.shared.logging.context import get_correlation_id

_THREAT_TYPES = {SQL_REASON: "SQL", XSS_REASON: "XSS"}


@dataclass(frozen=True)
class PreviewImportRequest:
    filename: str
    content_type: Optional[str]
    content: bytes


class PreviewImportUseCase:
    """
    Validate and parse an uploaded spreadsheet without persisting anything.

    Rows live only in memory; the caller shows them to the operator and
    submits the same file (or the parsed rows) to ImportCampaignsUseCase.
    """

    def __init__(self, max_file_size: int = MAX_FILE_SIZE) -> None:
        self._max_file_size = max_file_size
        self._logger = get_logger("application.preview_import")
        self._security = SecurityLogger("application.preview_import")

    def execute(self, request: PreviewImportRequest, session: SessionContext) -> ParsedImport:
        """
        Parse an upload.

        Raises:
            AuthorizationError: Caller cannot edit
            FileRejectedError: Size, extension, MIME type or encoding rejected
        """
        require(session, Capability.EDIT)
        start = time.time()

        check = validate_csv_file(
            request.filename,
            request.content_type,
            len(request.content),
            max_size=self._max_file_size,
        )
        if not check.valid:
            self._security.file_rejected(check.reason, filename=request.filename, size=len(request.content))
            raise FileRejectedError(check.reason, check.error)

        text = decode_csv_content(request.content)
        if text is None:
            self._security.file_rejected("unreadable_content", filename=request.filename)
            raise FileRejectedError("unreadable_content", "File is empty or not valid UTF-8 text")

        parsed = parse_campaign_csv(text)
        self._report_threats(parsed.warnings)

        self._logger.info(
            "campaign_import_previewed",
            campaigns=len(parsed.campaigns),
            has_summary=parsed.summary is not None,
            warnings=len(parsed.warnings),
            duration_ms=(time.time() - start) * 1000,
            correlation_id=get_correlation_id(),
        )
        return parsed

    def _report_threats(self, warnings: tuple[ImportRowWarning, ...]) -> None:
        for warning in warnings:
            injection_type = _THREAT_TYPES.get(warning.message)
            if injection_type:
                self._security.injection_attempt(
                    injection_type,
                    field_name=warning.column,
                    line=warning.line,
                )


@dataclass(frozen=True)
class ImportCampaignsRequest:
    platform: AdPlatform
    date: date
    parsed: ParsedImport
    manager: Optional[str] = None


@dataclass(frozen=True)
class ImportCampaignsResponse:
    ad_performance_id: str
    campaigns_imported: int
    totals: ImportTotals
    warnings: tuple[ImportRowWarning, ...]


class ImportCampaignsUseCase:
    """
    Persist a parsed spreadsheet as one AdPerformance record plus its campaigns.

    Parent, campaigns and audit row are written in one unit of work: either
    all of them exist afterwards or none does.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._audit = AuditTrail("application.import_campaigns")
        self._logger = get_logger("application.import_campaigns")

    def execute(self, request: ImportCampaignsRequest, session: SessionContext) -> ImportCampaignsResponse:
        """
        Import campaigns.

        Raises:
            AuthorizationError: Caller cannot edit
            ValidationError: No campaign rows
            PersistenceError: Storage failed; nothing was written
        """
        require(session, Capability.EDIT)
        parsed = request.parsed
        if parsed.is_empty:
            raise ValidationError("campaigns", "the file has no campaign rows")

        start = time.time()
        totals = parsed.totals()
        now = self._clock.now()
        try:
            platform = AdPlatform(request.platform)
        except ValueError as error:
            raise ValidationError("platform", "unknown ad platform") from error

        parent = AdPerformance(
            platform=platform,
            date=request.date,
            investment=totals.investment,
            revenue=totals.revenue,
            sales=totals.sales,
            cpa=totals.cpa,
            manager=request.manager,
            notes=f"Importado via planilha ({len(parsed.campaigns)} campanhas)",
            created_at=now,
            updated_at=now,
        )
        campaigns = [
            AdCampaign(ad_performance_id=parent.id, created_at=now, **row.values())
            for row in parsed.campaigns
        ]

        try:
            with self._uow_factory() as uow:
                uow.ad_performance.add(parent)
                uow.ad_campaigns.add_many(campaigns)
                self._audit.record(
                    uow,
                    session,
                    AuditAction.CREATE,
                    "ad_performance",
                    parent.id,
                    f"CSV Import - {platform.value} - {request.date.isoformat()}",
                    new_values=snapshot(parent),
                    event_type=AuditEventType.DATA_IMPORTED,
                )
        except PersistenceError as error:
            self._logger.error(
                "campaign_import_failed",
                ad_performance_id=parent.id,
                operation=error.operation,
                error_type=error.__class__.__name__,
            )
            raise

        self._logger.info(
            "campaign_import_completed",
            ad_performance_id=parent.id,
            campaigns_imported=len(campaigns),
            warnings=len(parsed.warnings),
            duration_ms=(time.time() - start) * 1000,
        )
        return ImportCampaignsResponse(
            ad_performance_id=parent.id,
            campaigns_imported=len(campaigns),
            totals=totals,
            warnings=parsed.warnings,
        )

