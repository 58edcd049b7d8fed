"""FastAPI application exposing transcription, report generation and the full pipeline.

The OpenAI credential never leaves the server: clients upload audio and
prompts, the orchestrators call the services.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from config import Config, create_use_cases, get_config
from domain.models import AudioPayload, ProgressEvent
from exceptions import ConfigurationError, InvalidPayloadError, ServiceError
from mappers import pipeline_to_dto, progress_to_dto, report_to_dto, transcript_to_dto
from models import ErrorResponse, ReportRequest

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


def _success(data: Any) -> dict:
    return {"success": True, "data": data.model_dump(mode="json")}


async def _read_payload(audio: UploadFile) -> AudioPayload:
    data = await audio.read()
    return AudioPayload(
        data=data,
        content_type=audio.content_type,
        filename=audio.filename or "audio.wav",
    )


def create_app(cfg: Optional[Config] = None, use_cases: Optional[dict] = None) -> FastAPI:
    cfg = cfg or get_config()
    app = FastAPI(title="Recording Report Pipeline")
    app.state.config = cfg
    app.state.config_error = None

    if use_cases is None:
        try:
            use_cases = create_use_cases(cfg)
        except ConfigurationError as e:
            logger.error(f"Server configuration incomplete: {e}")
            app.state.config_error = str(e)
    app.state.use_cases = use_cases

    def _use_case(name: str):
        if app.state.use_cases is None:
            raise ConfigurationError("OPENAI_API_KEY")
        return app.state.use_cases[name]

    def _progress():
        return app.state.use_cases.get("progress")

    @app.exception_handler(InvalidPayloadError)
    async def _invalid_payload(request: Request, exc: InvalidPayloadError):
        return _error(400, "Invalid audio file", exc.reason)

    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError):
        return _error(502, "Upstream service error", exc.detail)

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError):
        return _error(500, "Server configuration incomplete", str(exc))

    @app.get("/health")
    async def health():
        return {
            "status": "ok" if app.state.config_error is None else "misconfigured",
            "config": cfg.as_dict(),
        }

    @app.post("/api/transcribe")
    async def transcribe(audio: Optional[UploadFile] = File(None)):
        if audio is None:
            return _error(400, "Audio file not found in request")
        orchestrator = _use_case("transcription")
        payload = await _read_payload(audio)
        result = await orchestrator.transcribe(payload, on_progress=_progress())
        return _success(transcript_to_dto(result))

    @app.post("/api/generate-report")
    async def generate_report(body: ReportRequest):
        if not body.transcription or not body.prompt:
            return _error(400, "Transcription and prompt are required")
        orchestrator = _use_case("report")
        result = await orchestrator.generate(body.transcription, body.prompt, on_progress=_progress())
        return _success(report_to_dto(result))

    @app.post("/api/process")
    async def process(
        audio: Optional[UploadFile] = File(None),
        prompt: str = Form(""),
    ):
        if audio is None or not prompt:
            return _error(400, "Audio file and prompt are required")
        pipeline = _use_case("pipeline")
        payload = await _read_payload(audio)
        return StreamingResponse(
            _stream_pipeline(pipeline, payload, prompt, _progress()),
            media_type="application/x-ndjson",
        )

    return app


async def _stream_pipeline(pipeline, payload: AudioPayload, prompt: str, observer=None):
    """Yield one JSON line per progress event, then a result or error line."""
    queue: asyncio.Queue = asyncio.Queue()
    done = object()

    def on_progress(event: ProgressEvent) -> None:
        if observer is not None:
            observer(event)
        queue.put_nowait(progress_to_dto(event).model_dump_json() + "\n")

    def emit(line: dict) -> None:
        queue.put_nowait(json.dumps(line) + "\n")

    async def run() -> None:
        try:
            result = await pipeline.execute(payload, prompt, on_progress=on_progress)
            emit({"type": "result", "data": pipeline_to_dto(result).model_dump(mode="json")})
        except InvalidPayloadError as e:
            emit({"type": "error", "error": "Invalid audio file", "details": e.reason})
        except ServiceError as e:
            logger.error(f"Pipeline failed: {e}")
            emit({"type": "error", "error": "Upstream service error", "details": e.detail})
        except Exception as e:
            logger.exception(f"Pipeline failed unexpectedly: {e}")
            emit({"type": "error", "error": "Internal server error", "details": None})
        finally:
            queue.put_nowait(done)

    task = asyncio.create_task(run())
    try:
        while True:
            item = await queue.get()
            if item is done:
                break
            yield item
        await task
    finally:
        if not task.done():
            task.cancel()
