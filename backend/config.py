import os
import logging
from typing import Dict, Optional, Any

from dotenv import load_dotenv

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8001
DEFAULT_TRANSCRIBE_MODEL = "whisper-1"
DEFAULT_REPORT_MODEL = "gpt-4o"
DEFAULT_MAX_SEGMENT_MB = 24.0
DEFAULT_CHUNK_THRESHOLD = 8000
DEFAULT_CHUNK_SIZE = 6000
DEFAULT_SEGMENT_DELAY = 1.0
DEFAULT_CHUNK_DELAY = 2.0
DEFAULT_STAGE_DELAY = 0.8


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(name, f"must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(name, f"must be an integer, got {raw!r}") from e


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    @classmethod
    def reload(cls) -> "Config":
        cls._instance = None
        return cls()

    def _initialize(self):
        self.host = os.environ.get("HOST", DEFAULT_HOST)
        self.port = _env_int("PORT", DEFAULT_PORT)
        self.debug = os.environ.get("DEBUG", "0") == "1"
        self.openai_api_key = os.environ.get("OPENAI_API_KEY", "").strip() or None
        self.openai_base_url = os.environ.get("OPENAI_BASE_URL", "").strip() or None
        self.transcribe_model = os.environ.get("TRANSCRIBE_MODEL", DEFAULT_TRANSCRIBE_MODEL)
        self.report_model = os.environ.get("REPORT_MODEL", DEFAULT_REPORT_MODEL)
        self.report_max_tokens = _env_int("REPORT_MAX_TOKENS", 2000)
        self.report_temperature = _env_float("REPORT_TEMPERATURE", 0.1)
        self.max_segment_mb = _env_float("MAX_SEGMENT_MB", DEFAULT_MAX_SEGMENT_MB)
        self.chunk_threshold = _env_int("REPORT_CHUNK_THRESHOLD", DEFAULT_CHUNK_THRESHOLD)
        # Chunk size may not exceed the threshold that triggers chunking
        self.chunk_size = min(_env_int("REPORT_CHUNK_SIZE", DEFAULT_CHUNK_SIZE), self.chunk_threshold)
        self.segment_delay = _env_float("SEGMENT_DELAY", DEFAULT_SEGMENT_DELAY)
        self.chunk_delay = _env_float("CHUNK_DELAY", DEFAULT_CHUNK_DELAY)
        self.stage_delay = _env_float("STAGE_DELAY", DEFAULT_STAGE_DELAY)
        self.confidence_policy = os.environ.get("CONFIDENCE_POLICY", "planned").lower()

        if self.confidence_policy not in ("planned", "completed"):
            raise ConfigurationError("CONFIDENCE_POLICY", f"must be 'planned' or 'completed', got {self.confidence_policy!r}")
        if self.max_segment_mb <= 0:
            raise ConfigurationError("MAX_SEGMENT_MB", "must be positive")

    def get_openai_api_key(self) -> Optional[str]:
        return self.openai_api_key

    def as_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "has_openai_key": self.openai_api_key is not None,
            "transcribe_model": self.transcribe_model,
            "report_model": self.report_model,
            "max_segment_mb": self.max_segment_mb,
            "chunk_threshold": self.chunk_threshold,
            "chunk_size": self.chunk_size,
            "segment_delay": self.segment_delay,
            "chunk_delay": self.chunk_delay,
            "stage_delay": self.stage_delay,
            "confidence_policy": self.confidence_policy,
        }


def get_config() -> Config:
    return Config()


def create_service_adapters(cfg: Config):
    """Create the speech and text-generation adapters.

    Raises ConfigurationError when the OpenAI credential is missing, so a
    misconfigured process fails before any job runs.
    """
    from adapters.openai import OpenAISpeechToTextAdapter, OpenAITextGenerationAdapter

    if not cfg.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY")

    speech = OpenAISpeechToTextAdapter(
        api_key=cfg.openai_api_key,
        model=cfg.transcribe_model,
        base_url=cfg.openai_base_url,
    )
    generator = OpenAITextGenerationAdapter(
        api_key=cfg.openai_api_key,
        model=cfg.report_model,
        max_tokens=cfg.report_max_tokens,
        temperature=cfg.report_temperature,
        base_url=cfg.openai_base_url,
    )
    logger.info(f"Service adapters: transcription={speech.model_name()}, report={generator.model_name()}")
    return speech, generator


def create_infra_adapters(cfg: Config):
    """Create rate limiters and the progress adapter."""
    from adapters.local.fixed_delay import FixedDelayRateLimiter
    from adapters.local.noop_rate_limiter import NoOpRateLimiter
    from adapters.local.log_progress import LogProgressAdapter

    adapters = {
        "segment_limiter": FixedDelayRateLimiter(cfg.segment_delay),
        "chunk_limiter": FixedDelayRateLimiter(cfg.chunk_delay),
        "stage_pacer": FixedDelayRateLimiter(cfg.stage_delay) if cfg.stage_delay > 0 else NoOpRateLimiter(),
        "progress": LogProgressAdapter(),
    }
    logger.info(f"Infra adapters: {', '.join(type(v).__name__ for v in adapters.values())}")
    return adapters


def create_use_cases(cfg: Config, speech=None, generator=None, infra=None):
    """Wire orchestrators with explicit dependencies.

    Pass speech/generator/infra to override the adapters built from cfg.
    """
    from use_cases.generate_report import ReportOrchestrator
    from use_cases.process_recording import ProcessRecordingUseCase
    from use_cases.transcribe import TranscriptionOrchestrator

    if speech is None or generator is None:
        default_speech, default_generator = create_service_adapters(cfg)
        speech = speech or default_speech
        generator = generator or default_generator
    infra = infra or create_infra_adapters(cfg)

    transcription = TranscriptionOrchestrator(
        speech,
        rate_limiter=infra["segment_limiter"],
        stage_pacer=infra["stage_pacer"],
        limit_mb=cfg.max_segment_mb,
        confidence_policy=cfg.confidence_policy,
    )
    report = ReportOrchestrator(
        generator,
        rate_limiter=infra["chunk_limiter"],
        stage_pacer=infra["stage_pacer"],
        chunk_threshold=cfg.chunk_threshold,
        chunk_size=cfg.chunk_size,
    )
    return {
        "transcription": transcription,
        "report": report,
        "pipeline": ProcessRecordingUseCase(transcription, report),
        "progress": infra["progress"],
    }
