import pytest

from conftest import FakeGenerator
from domain.models import TextChunk
from exceptions import ServiceError
from use_cases.generate_report import PART_SEPARATOR, ReportOrchestrator, chunk_placeholder, frame_instruction

INSTRUCTION = "Write a structured clinical summary."


def scenario_text() -> str:
    return "a" * 6000 + "b" * 6000 + "c" * 1000


def make(generator, limiter, **kwargs):
    kwargs.setdefault("chunk_threshold", 6000)
    return ReportOrchestrator(generator, rate_limiter=limiter, **kwargs)


async def test_single_call_passes_instruction_verbatim(generator, limiter, recorder):
    result = await make(generator, limiter).generate("short transcript", INSTRUCTION, on_progress=recorder)

    assert generator.calls == [(INSTRUCTION, "short transcript")]
    assert result.content == "part 1"
    assert result.prompt == INSTRUCTION
    assert result.token_count == 100
    assert result.chunk_count == 1
    assert recorder.steps == [("generating", "analyzing"), ("generating", "processing")]
    assert limiter.calls == 0


async def test_threshold_is_inclusive(generator, limiter):
    await make(generator, limiter).generate("x" * 6000, INSTRUCTION)
    assert len(generator.calls) == 1


async def test_single_call_missing_token_count(limiter):
    generator = FakeGenerator(default_tokens=None)
    result = await make(generator, limiter).generate("short", INSTRUCTION)
    assert result.token_count == 0


async def test_single_call_failure_propagates(limiter):
    generator = FakeGenerator(fail_on={0})
    with pytest.raises(ServiceError) as exc:
        await make(generator, limiter).generate("short", INSTRUCTION)
    assert exc.value.detail == "Rate limit reached"


async def test_chunked_scenario(limiter, recorder):
    generator = FakeGenerator(token_counts={0: 120, 1: None, 2: 80})
    result = await make(generator, limiter).generate(scenario_text(), INSTRUCTION, on_progress=recorder)

    assert [len(text) for _, text in generator.calls] == [6000, 6000, 1000]
    instructions = [instruction for instruction, _ in generator.calls]
    assert all(i.startswith(INSTRUCTION) for i in instructions)
    assert "first part" in instructions[0]
    assert "part 2 of 3" in instructions[1]
    assert "last part" in instructions[2]
    assert "Continue the report" in instructions[0]
    assert "Continue the report" in instructions[1]
    assert "Conclude the report" in instructions[2]

    assert result.content == PART_SEPARATOR.join(["part 1", "part 2", "part 3"])
    assert result.content.count("\n\n---\n\n") == 2
    assert result.prompt == INSTRUCTION
    assert result.token_count == 200
    assert result.chunk_count == 3
    assert limiter.calls == 2


async def test_chunked_progress_sequence(generator, limiter, recorder):
    await make(generator, limiter).generate(scenario_text(), INSTRUCTION, on_progress=recorder)

    assert [e.step for e in recorder.events] == [
        "analyzing", "splitting", "processing", "processing", "processing", "merging",
    ]
    assert all(e.stage == "generating" for e in recorder.events)
    processing = [e for e in recorder.events if e.step == "processing"]
    assert [(e.current, e.total) for e in processing] == [(1, 3), (2, 3), (3, 3)]
    assert processing[0].message == "Generating report - part 1 of 3..."
    currents = [e.current for e in recorder.events]
    assert currents == sorted(currents)
    assert (recorder.events[-1].current, recorder.events[-1].total) == (3, 3)


async def test_chunk_failure_is_absorbed(limiter, recorder):
    generator = FakeGenerator(fail_on={1})
    result = await make(generator, limiter).generate(scenario_text(), INSTRUCTION, on_progress=recorder)

    assert result.content == PART_SEPARATOR.join(["part 1", "[part 2/3 processing failed]", "part 3"])
    assert result.failed_chunks == (1,)
    assert result.token_count == 200
    assert recorder.events[-1].step == "merging"
    assert limiter.calls == 2


async def test_chunk_size_separate_from_threshold(generator, limiter):
    orchestrator = make(generator, limiter, chunk_threshold=8000, chunk_size=6000)

    await orchestrator.generate("x" * 8000, INSTRUCTION)
    assert len(generator.calls) == 1

    await orchestrator.generate("x" * 9000, INSTRUCTION)
    assert [len(text) for _, text in generator.calls[1:]] == [6000, 3000]


def test_chunk_size_may_not_exceed_threshold(generator, limiter):
    with pytest.raises(ValueError):
        make(generator, limiter, chunk_threshold=6000, chunk_size=7000)


def test_frame_instruction_positions():
    first = frame_instruction("Do it.", TextChunk(0, 4, ""))
    middle = frame_instruction("Do it.", TextChunk(2, 4, ""))
    last = frame_instruction("Do it.", TextChunk(3, 4, ""))

    assert first.startswith("Do it.\n\n")
    assert "first part" in first
    assert "part 3 of 4" in middle
    assert "last part" in last


def test_chunk_placeholder():
    assert chunk_placeholder(0, 5) == "[part 1/5 processing failed]"


def test_zero_chunk_size_is_rejected(generator, limiter):
    with pytest.raises(ValueError):
        make(generator, limiter, chunk_threshold=6000, chunk_size=0)
