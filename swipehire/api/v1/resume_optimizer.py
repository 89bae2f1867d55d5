from __future__ import annotations

import asyncio
import logging
from numbers import Number
from typing import Any

from fastapi import APIRouter, File, HTTPException, Query, Request, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from swipehire.api.deps import SSE_HEADERS, enforce_rate_limit
from swipehire.core import analysis_store, events
from swipehire.core.config import settings
from swipehire.parsing.models import ParsedFileResult, ParsingProgress
from swipehire.parsing.parse import (
    FileParsingError,
    file_type_label,
    format_file_size,
    parse_bytes,
    parse_file,
)
from swipehire.schemas.resume import (
    DeleteAnalysisResponse,
    ExportInfo,
    ExportRequest,
    ExtractTextResponse,
    ResumeAnalysisRequest,
    ResumeAnalysisResponse,
    ResumeReanalysisRequest,
    SaveAnalysisRequest,
    SaveAnalysisResponse,
    SavedAnalysis,
)
from swipehire.services.export_service import (
    AVAILABLE_TEMPLATES,
    MAX_FILE_SIZE_LABEL,
    SUPPORTED_FORMATS,
    ExportError,
    export_resume,
)
from swipehire.services.resume_analysis import (
    ResumeAnalysisError,
    analyze_resume,
    reanalyze_resume,
    summarize_for_storage,
)
from swipehire.utils.sse import sse_json

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


def _parsing_status(exc: FileParsingError) -> int:
    if exc.code == "TIMEOUT_ERROR":
        return status.HTTP_408_REQUEST_TIMEOUT
    if exc.code == "UNKNOWN_ERROR":
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


async def _read_upload(file: UploadFile) -> bytes:
    limit = settings.max_upload_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File size must be less than {settings.max_upload_mb}MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _extract_response(result: ParsedFileResult) -> ExtractTextResponse:
    text = result.text
    truncated = len(text) > settings.extract_text_max_chars
    if truncated:
        text = text[: settings.extract_text_max_chars]
    meta = result.metadata
    return ExtractTextResponse(
        text=text,
        truncated=truncated,
        file_name=meta.file_name,
        file_size=meta.file_size,
        file_size_label=format_file_size(meta.file_size),
        file_type_label=file_type_label(meta.file_name),
        source_type=meta.source_type,
        page_count=meta.page_count,
        word_count=meta.word_count,
        character_count=meta.character_count,
        extraction_time_ms=meta.extraction_time_ms,
        warnings=meta.warnings,
    )


@router.post("/resume-optimizer/analyze", response_model=ResumeAnalysisResponse)
async def resume_analyze(request: Request, payload: ResumeAnalysisRequest):
    enforce_rate_limit(request, limit=20)
    try:
        return analyze_resume(payload.resume_text, payload.target_job, payload.template_id)
    except ResumeAnalysisError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/resume-optimizer/reanalyze", response_model=ResumeAnalysisResponse)
async def resume_reanalyze(request: Request, payload: ResumeReanalysisRequest):
    enforce_rate_limit(request, limit=20)
    try:
        return reanalyze_resume(
            payload.resume_text,
            payload.target_job,
            payload.original_analysis_id,
            payload.template_id,
        )
    except ResumeAnalysisError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/resume-optimizer/extract-text", response_model=ExtractTextResponse)
async def resume_extract_text(request: Request, file: UploadFile = File(...)):
    enforce_rate_limit(request, limit=20)
    filename = file.filename or "uploaded-file"
    content = await _read_upload(file)
    try:
        result = await parse_file(
            filename,
            content,
            content_type=file.content_type or "",
            allow_text=True,
        )
    except FileParsingError as exc:
        raise HTTPException(status_code=_parsing_status(exc), detail=str(exc)) from exc
    return _extract_response(result)


@router.post("/resume-optimizer/extract-text/stream")
async def resume_extract_text_stream(request: Request, file: UploadFile = File(...)):
    enforce_rate_limit(request, limit=20)
    filename = file.filename or "uploaded-file"
    content_type = file.content_type or ""
    content = await _read_upload(file)

    async def event_stream():
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def push_progress(progress: ParsingProgress) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, {"kind": "progress", "payload": progress.model_dump()})

        def worker() -> None:
            try:
                result = parse_bytes(
                    filename,
                    content,
                    content_type=content_type,
                    on_progress=push_progress,
                    allow_text=True,
                )
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {"kind": "result", "payload": _extract_response(result).model_dump(mode="json")},
                )
            except FileParsingError as exc:
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {"message": str(exc), "code": exc.code, "status": _parsing_status(exc)},
                    },
                )
            except Exception as exc:  # pragma: no cover - guard rail
                logger.exception("extract_text_stream_failed file=%s", filename)
                loop.call_soon_threadsafe(
                    queue.put_nowait,
                    {
                        "kind": "error",
                        "payload": {
                            "message": str(exc),
                            "code": "UNKNOWN_ERROR",
                            "status": status.HTTP_500_INTERNAL_SERVER_ERROR,
                        },
                    },
                )
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, {"kind": "done", "payload": {}})

        task = asyncio.create_task(asyncio.to_thread(worker))

        try:
            yield sse_json(events.CONNECTED, {"ok": True})
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=settings.parse_timeout_s)
                except asyncio.TimeoutError:
                    yield sse_json(
                        events.ERROR,
                        {
                            "message": "File parsing timed out. Please try with a smaller file.",
                            "code": "TIMEOUT_ERROR",
                            "status": status.HTTP_408_REQUEST_TIMEOUT,
                        },
                    )
                    break
                kind = event.get("kind")
                payload_data = event.get("payload", {})
                if kind == "progress":
                    yield sse_json(events.PROGRESS, payload_data)
                    continue
                if kind == "result":
                    yield sse_json(events.RESULT, payload_data)
                    continue
                if kind == "error":
                    yield sse_json(events.ERROR, payload_data)
                    continue
                if kind == "done":
                    break
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/resume-optimizer/save-analysis", response_model=SaveAnalysisResponse)
async def resume_save_analysis(request: Request, payload: SaveAnalysisRequest):
    enforce_rate_limit(request, limit=30)
    result = payload.analysis_result
    if not result:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Analysis result is required")
    score = result.get("overall_score", result.get("overallScore"))
    if not result.get("id") or isinstance(score, bool) or not isinstance(score, Number):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid analysis result format")

    summary = summarize_for_storage(result)
    ats_score = summary["ats_score"] if summary["ats_score"] is not None else result.get("atsScore")
    analysis_store.save_analysis(
        analysis_id=summary["analysis_id"],
        user_id=payload.user_id or "anonymous",
        overall_score=float(score),
        ats_score=ats_score if isinstance(ats_score, Number) and not isinstance(ats_score, bool) else None,
        target_job_title=summary["target_job_title"],
        analysis_result=result,
    )
    logger.info("analysis_saved analysis_id=%s", summary["analysis_id"])
    return SaveAnalysisResponse(saved=True, analysis_id=summary["analysis_id"])


@router.get("/resume-optimizer/save-analysis", response_model=SavedAnalysis | list[SavedAnalysis])
async def resume_get_saved_analysis(
    user_id: str | None = Query(default=None, max_length=100),
    analysis_id: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=50, ge=1, le=200),
):
    if analysis_id:
        record = analysis_store.get_analysis(analysis_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
        return SavedAnalysis(**record)
    if user_id:
        return [SavedAnalysis(**record) for record in analysis_store.list_analyses(user_id, limit=limit)]
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID or Analysis ID is required")


@router.delete("/resume-optimizer/save-analysis", response_model=DeleteAnalysisResponse)
async def resume_delete_saved_analysis(
    request: Request,
    analysis_id: str | None = Query(default=None, max_length=100),
    user_id: str | None = Query(default=None, max_length=100),
):
    enforce_rate_limit(request, limit=30)
    if not analysis_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Analysis ID is required")
    return DeleteAnalysisResponse(deleted=analysis_store.delete_analysis(analysis_id, user_id))


@router.post("/resume-optimizer/export")
async def resume_export(request: Request, payload: ExportRequest):
    enforce_rate_limit(request, limit=20)
    try:
        exported = await asyncio.to_thread(
            export_resume,
            payload.resume_text,
            payload.format,
            template=payload.template,
            file_name=payload.file_name,
        )
    except ExportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.file_name}"'},
    )


@router.get("/resume-optimizer/export", response_model=ExportInfo)
async def resume_export_info():
    return ExportInfo(
        supported_formats=list(SUPPORTED_FORMATS),
        available_templates=list(AVAILABLE_TEMPLATES),
        max_file_size=MAX_FILE_SIZE_LABEL,
    )
