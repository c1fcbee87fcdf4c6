from typing import Optional

from fastapi import APIRouter, Depends

from ..config import get_settings
from ..dependencies import get_pipeline, get_sms_source
from ..models import IngestRequest, IngestResult, RawMessage, ScanRequest, ScanResult, SmsSourceStatus
from ..services.ingestion import SmsIngestionPipeline
from ..services.sms_source import LocalSmsSource, SmsSource


router = APIRouter(prefix="/sms")


@router.get("/status", response_model=SmsSourceStatus)
def sms_status(source: SmsSource = Depends(get_sms_source)) -> SmsSourceStatus:
    return source.status()


@router.post("/ingest", response_model=IngestResult)
def ingest_messages(
    payload: IngestRequest,
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
) -> IngestResult:
    """Ingest a batch of SMS read from the device inbox."""
    return pipeline.ingest(payload.messages)


@router.post("/live", response_model=IngestResult)
def ingest_live(
    message: RawMessage,
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
) -> IngestResult:
    """One SMS forwarded by the broadcast listener as soon as it arrives."""
    return pipeline.ingest_live(message)


@router.post("/capture")
def capture_message(
    message: RawMessage,
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
    source: SmsSource = Depends(get_sms_source),
):
    """Background receiver: queue an SMS for the next drain."""
    if not isinstance(source, LocalSmsSource):
        return {"queued": False, "reason": source.status().message}
    queued = pipeline.capture(source, message)
    return {"queued": queued, "reason": None if queued else "Not a transaction SMS"}


@router.post("/drain", response_model=IngestResult)
def drain_pending(
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
    source: SmsSource = Depends(get_sms_source),
) -> IngestResult:
    return pipeline.drain_pending(source)


@router.post("/scan", response_model=ScanResult)
def scan_inbox(
    payload: Optional[ScanRequest] = None,
    pipeline: SmsIngestionPipeline = Depends(get_pipeline),
    source: SmsSource = Depends(get_sms_source),
) -> ScanResult:
    """Scan the last few days of the inbox for missed transactions."""
    payload = payload or ScanRequest()
    settings = get_settings()
    return pipeline.scan_inbox(
        source,
        days=payload.days or settings.scan_days,
        max_count=payload.max_count or settings.scan_max_count,
    )
