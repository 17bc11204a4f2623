"""Campaign spreadsheet import and campaign listing.

- POST /ads/imports/preview - Validate and parse an upload, nothing is stored
- POST /ads/imports - Parse the same upload and store it as one record
- GET /ads/campaigns - Campaign lines of one or more AdPerformance records
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool

from apps.api.deps import get_container, require_edit, require_view
from apps.api.schemas.imports import (
    CampaignRowOut,
    ImportPreviewResponse,
    ImportResultResponse,
    RowWarningOut,
    TotalsOut,
)
from finops.application.use_cases.import_campaigns import ImportCampaignsRequest, PreviewImportRequest
from finops.domain.entities import AdPlatform, snapshot
from finops.domain.imports import ParsedImport
from finops.domain.session import SessionContext
from finops.infrastructure.bootstrap import Container
from finops.shared.logging import get_logger

logger = get_logger("apps.api.ads")
router = APIRouter(prefix="/ads", tags=["ads"])


async def _parse_upload(file: UploadFile, session: SessionContext, container: Container) -> ParsedImport:
    # Read one byte past the limit so oversized files are rejected without buffering them whole
    content = await file.read(container.config.IMPORT_MAX_FILE_SIZE + 1)
    request = PreviewImportRequest(
        filename=file.filename or "",
        content_type=file.content_type,
        content=content,
    )
    return await run_in_threadpool(container.preview_import.execute, request, session)


@router.post("/imports/preview", response_model=ImportPreviewResponse)
async def preview_import(
    file: UploadFile = File(..., description="CSV export of the ads manager"),
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> ImportPreviewResponse:
    parsed = await _parse_upload(file, session, container)
    return ImportPreviewResponse(
        summary=CampaignRowOut.model_validate(parsed.summary) if parsed.summary else None,
        campaigns=[CampaignRowOut.model_validate(row) for row in parsed.campaigns],
        warnings=[RowWarningOut.model_validate(w) for w in parsed.warnings],
        totals=TotalsOut.model_validate(parsed.totals()),
    )


@router.post("/imports", response_model=ImportResultResponse, status_code=status.HTTP_201_CREATED)
async def submit_import(
    file: UploadFile = File(...),
    platform: AdPlatform = Form(...),
    date: dt.date = Form(..., description="Day the spreadsheet refers to"),
    manager: Optional[str] = Form(None, max_length=255),
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> ImportResultResponse:
    parsed = await _parse_upload(file, session, container)
    result = await run_in_threadpool(
        container.import_campaigns.execute,
        ImportCampaignsRequest(platform=platform, date=date, parsed=parsed, manager=manager),
        session,
    )
    logger.info(
        "campaign_import_request_completed",
        ad_performance_id=result.ad_performance_id,
        campaigns_imported=result.campaigns_imported,
    )
    return ImportResultResponse(
        ad_performance_id=result.ad_performance_id,
        campaigns_imported=result.campaigns_imported,
        totals=TotalsOut.model_validate(result.totals),
        warnings=[RowWarningOut.model_validate(w) for w in result.warnings],
    )


@router.get("/campaigns", response_model=list[dict])
def list_campaigns(
    ad_performance_id: list[str] = Query(..., description="Parent record ids"),
    session: SessionContext = Depends(require_view),
    container: Container = Depends(get_container),
) -> list[dict]:
    return [snapshot(c) for c in container.ad_campaigns.for_records(session, ad_performance_id)]
