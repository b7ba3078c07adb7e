"""
Tests for Base Pipeline Module

Tests for shotplan/pipelines/base_pipeline.py
"""

import asyncio

import pytest
from unittest.mock import MagicMock

from shotplan.core.exceptions import PlanningError
from shotplan.pipelines.base_pipeline import (
    BasePipeline,
    PipelineStep,
    PipelineResult,
    PipelineStatus
)


class MockPipeline(BasePipeline):
    """Mock pipeline for testing."""

    def __init__(self, fail_at=None, optional_fail=False, slow_step=False):
        self.fail_at = fail_at
        self.optional_fail = optional_fail
        self.slow_step = slow_step
        super().__init__("mock_pipeline")

    def _define_steps(self):
        self._steps = [
            PipelineStep("step1", "First step"),
            PipelineStep("step2", "Second step", required=not self.optional_fail),
            PipelineStep("step3", "Third step", timeout_seconds=0.05 if self.slow_step else None),
        ]

    async def _execute_step(self, step, input_data, context):
        context.setdefault("seen", []).append(step.name)
        if step.name == self.fail_at:
            raise PlanningError(f"{step.name} exploded")
        if step.name == "step3" and self.slow_step:
            await asyncio.sleep(1)
        return f"{input_data}_{step.name}"


class TestPipelineStep:
    """Tests for PipelineStep class."""

    def test_step_creation(self):
        """Test creating a pipeline step."""
        step = PipelineStep("test_step", "A test step")

        assert step.name == "test_step"
        assert step.description == "A test step"
        assert step.required is True
        assert step.timeout_seconds is None


class TestPipelineResult:
    """Tests for PipelineResult class."""

    def test_success_result(self):
        """Test successful result."""
        result = PipelineResult(status=PipelineStatus.COMPLETED, output={"output": "test"})

        assert result.success is True
        assert result.output["output"] == "test"

    def test_failure_result(self):
        """Test failure result."""
        error = PlanningError("Something went wrong")
        result = PipelineResult(
            status=PipelineStatus.FAILED,
            error=str(error),
            exception=error,
            failed_step="step1"
        )

        assert result.success is False
        with pytest.raises(PlanningError):
            result.raise_for_status()

    def test_raise_for_status_on_success(self):
        PipelineResult(status=PipelineStatus.COMPLETED).raise_for_status()


class TestBasePipeline:
    """Tests for BasePipeline class."""

    @pytest.mark.asyncio
    async def test_pipeline_data_flow(self):
        """Test data flows through pipeline steps."""
        pipeline = MockPipeline()

        result = await pipeline.run("data")

        assert result.status == PipelineStatus.COMPLETED
        assert result.output == "data_step1_step2_step3"
        assert result.metadata["steps_completed"] == 3
        assert set(result.metadata["step_durations"]) == {"step1", "step2", "step3"}
        assert pipeline.status == PipelineStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_shared_context(self):
        pipeline = MockPipeline()
        context = {}

        await pipeline.run("data", context)

        assert context["seen"] == ["step1", "step2", "step3"]

    @pytest.mark.asyncio
    async def test_required_step_failure(self):
        """Test a failing required step stops the pipeline and keeps the exception."""
        pipeline = MockPipeline(fail_at="step2")

        result = await pipeline.run("data")

        assert result.status == PipelineStatus.FAILED
        assert result.failed_step == "step2"
        assert isinstance(result.exception, PlanningError)
        assert "step2 exploded" in result.error
        assert pipeline.status == PipelineStatus.FAILED

    @pytest.mark.asyncio
    async def test_optional_step_failure(self):
        """Test an optional step failure passes the previous output along."""
        pipeline = MockPipeline(fail_at="step2", optional_fail=True)

        result = await pipeline.run("data")

        assert result.status == PipelineStatus.COMPLETED
        assert result.output == "data_step1_step3"

    @pytest.mark.asyncio
    async def test_step_timeout(self):
        pipeline = MockPipeline(slow_step=True)

        result = await pipeline.run("data")

        assert result.status == PipelineStatus.FAILED
        assert result.failed_step == "step3"
        assert isinstance(result.exception, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_cancel_from_progress_callback(self):
        """Test cancellation takes effect before the next step."""
        pipeline = MockPipeline()

        def on_progress(update):
            if update["step"] == "step2":
                pipeline.cancel()

        pipeline.set_progress_callback(on_progress)
        result = await pipeline.run("data")

        assert result.status == PipelineStatus.CANCELLED
        assert result.metadata["steps_completed"] == 2
        assert pipeline.cancelled is True

    @pytest.mark.asyncio
    async def test_progress_updates(self):
        pipeline = MockPipeline()
        callback = MagicMock()
        pipeline.set_progress_callback(callback)

        await pipeline.run("data")

        updates = [c.args[0] for c in callback.call_args_list]
        assert [u["current"] for u in updates] == [1, 2, 3]
        assert updates[-1]["percent"] == 100

    def test_pipeline_name(self):
        """Test pipeline name."""
        pipeline = MockPipeline()

        assert pipeline.name == "mock_pipeline"
        assert pipeline.status == PipelineStatus.PENDING
        assert pipeline.progress == 0.0

    def test_get_steps(self):
        """Test getting pipeline steps."""
        steps = MockPipeline().steps

        assert [s.name for s in steps] == ["step1", "step2", "step3"]


class TestPipelineStatus:
    """Tests for PipelineStatus enum."""

    def test_status_values(self):
        """Test status enum values."""
        assert PipelineStatus.PENDING.value == "pending"
        assert PipelineStatus.RUNNING.value == "running"
        assert PipelineStatus.COMPLETED.value == "completed"
        assert PipelineStatus.FAILED.value == "failed"
        assert PipelineStatus.CANCELLED.value == "cancelled"
