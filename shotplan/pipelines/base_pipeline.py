"""
Shotplan Base Pipeline

Abstract base class for the planning and render pipelines.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from shotplan.core.logging_config import get_logger

logger = get_logger("pipelines.base")

InputT = TypeVar('InputT')
OutputT = TypeVar('OutputT')


class PipelineStatus(Enum):
    """Status of a pipeline execution."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class PipelineResult(Generic[OutputT]):
    """Result from a pipeline execution."""
    status: PipelineStatus
    output: Optional[OutputT] = None
    error: Optional[str] = None
    exception: Optional[BaseException] = None
    failed_step: Optional[str] = None
    duration_seconds: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status == PipelineStatus.COMPLETED

    def raise_for_status(self) -> None:
        """Re-raise the failure that stopped the pipeline, if any."""
        if self.exception is not None:
            raise self.exception


@dataclass
class PipelineStep:
    """A step in a pipeline."""
    name: str
    description: str
    required: bool = True
    timeout_seconds: Optional[float] = None


class BasePipeline(ABC, Generic[InputT, OutputT]):
    """
    Abstract base class for step-based pipelines.

    Subclasses declare their steps in _define_steps() and dispatch on
    step.name in _execute_step(). Each step receives the previous step's
    output. Failures are captured in the PipelineResult together with the
    original exception.
    """

    def __init__(self, name: str):
        self.name = name
        self._steps: List[PipelineStep] = []
        self._current_step: int = 0
        self._status = PipelineStatus.PENDING
        self._cancelled = False
        self._progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None

        self._define_steps()

    @abstractmethod
    def _define_steps(self) -> None:
        """Define the pipeline steps. Override in subclasses."""
        pass

    @abstractmethod
    async def _execute_step(
        self,
        step: PipelineStep,
        input_data: Any,
        context: Dict[str, Any]
    ) -> Any:
        """Execute a single step. Override in subclasses."""
        pass

    async def run(
        self,
        input_data: InputT,
        context: Dict[str, Any] = None
    ) -> PipelineResult[OutputT]:
        """
        Run every step in order.

        Args:
            input_data: Input for the first step
            context: Shared state visible to every step

        Returns:
            PipelineResult with the last step's output
        """
        context = context if context is not None else {}
        start_time = datetime.now()
        step_durations: Dict[str, float] = {}

        self._status = PipelineStatus.RUNNING
        self._current_step = 0
        self._cancelled = False

        logger.info(f"Starting pipeline: {self.name}")

        current_data = input_data
        step = None
        try:
            for i, step in enumerate(self._steps):
                if self._cancelled:
                    self._status = PipelineStatus.CANCELLED
                    return PipelineResult(
                        status=PipelineStatus.CANCELLED,
                        duration_seconds=self._get_duration(start_time),
                        metadata={'steps_completed': i, 'step_durations': step_durations}
                    )

                self._current_step = i
                self._report_progress(step, i, len(self._steps))
                logger.debug(f"Executing step: {step.name}")

                step_start = datetime.now()
                try:
                    current_data = await self._run_step(step, current_data, context)
                except Exception as e:
                    if step.required:
                        raise
                    logger.warning(f"Optional step failed: {step.name} - {e}")
                finally:
                    step_durations[step.name] = self._get_duration(step_start)

            self._status = PipelineStatus.COMPLETED
            logger.info(f"Pipeline completed: {self.name} in {self._get_duration(start_time):.2f}s")

            return PipelineResult(
                status=PipelineStatus.COMPLETED,
                output=current_data,
                duration_seconds=self._get_duration(start_time),
                metadata={'steps_completed': len(self._steps), 'step_durations': step_durations}
            )

        except Exception as e:
            self._status = PipelineStatus.FAILED
            failed = step.name if step else None
            logger.error(f"Pipeline failed: {self.name} at {failed} - {e}")

            return PipelineResult(
                status=PipelineStatus.FAILED,
                error=str(e),
                exception=e,
                failed_step=failed,
                duration_seconds=self._get_duration(start_time),
                metadata={'failed_step': self._current_step, 'step_durations': step_durations}
            )

    async def _run_step(self, step: PipelineStep, input_data: Any, context: Dict[str, Any]) -> Any:
        if step.timeout_seconds:
            return await asyncio.wait_for(
                self._execute_step(step, input_data, context),
                timeout=step.timeout_seconds
            )
        return await self._execute_step(step, input_data, context)

    def cancel(self) -> None:
        """Stop before the next step starts."""
        self._cancelled = True
        logger.info(f"Pipeline cancelled: {self.name}")

    def set_progress_callback(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Set a callback for progress updates."""
        self._progress_callback = callback

    def _report_progress(self, step: PipelineStep, current: int, total: int) -> None:
        if self._progress_callback:
            self._progress_callback({
                'pipeline': self.name,
                'step': step.name,
                'current': current + 1,
                'total': total,
                'percent': (current + 1) / total * 100
            })

    def _get_duration(self, start_time: datetime) -> float:
        return (datetime.now() - start_time).total_seconds()

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def progress(self) -> float:
        """Get current progress (0-1)."""
        if not self._steps:
            return 0.0
        return self._current_step / len(self._steps)

    @property
    def steps(self) -> List[PipelineStep]:
        return self._steps.copy()

    @property
    def cancelled(self) -> bool:
        return self._cancelled
