"""
Receipt Processing Pipeline

End-to-end pipeline for receipt text:
parse -> validate -> correct (optional) -> route

Provides a single entry point for receipt processing with stage timings,
stage callbacks and review routing, plus concurrent batch processing.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from recex.config.receipt_config import ReceiptConfig
from recex.models.invoice import Invoice, ReceiptStatus, ValidationResult
from recex.processors.receipt.corrections import apply_corrections
from recex.processors.receipt.parser import ReceiptParser
from recex.processors.receipt.validator import ReceiptValidator

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Pipeline processing stages"""
    PARSE = "parse"
    VALIDATE = "validate"
    CORRECT = "correct"
    ROUTE = "route"
    COMPLETE = "complete"


@dataclass
class PipelineContext:
    """Context passed through pipeline stages"""
    raw_text: str

    # Stage results
    invoice: Optional[Invoice] = None
    validation: Optional[ValidationResult] = None
    corrected: bool = False

    # Status tracking
    current_stage: PipelineStage = PipelineStage.PARSE
    status: ReceiptStatus = ReceiptStatus.PARSED
    review_reasons: List[str] = field(default_factory=list)

    # Timing
    stage_times: Dict[str, int] = field(default_factory=dict)
    total_time_ms: int = 0

    # Errors
    error: Optional[str] = None
    error_stage: Optional[PipelineStage] = None

    @property
    def needs_review(self) -> bool:
        return self.status == ReceiptStatus.NEEDS_REVIEW


class ReceiptProcessingResult(BaseModel):
    """Outcome of running one receipt through the pipeline"""
    success: bool = True
    status: ReceiptStatus = ReceiptStatus.PARSED
    invoice: Optional[Invoice] = None
    validation: Optional[ValidationResult] = None
    corrected: bool = False
    needs_review: bool = False
    review_reasons: List[str] = Field(default_factory=list)
    stage_times: Dict[str, int] = Field(default_factory=dict)
    total_time_ms: int = 0
    error: Optional[str] = None
    error_stage: Optional[PipelineStage] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode='json')
        if self.validation is not None:
            data['validation'] = self.validation.to_dict()
        return data


class ReceiptPipeline:
    """
    End-to-end receipt processing pipeline.

    Usage:
        pipeline = ReceiptPipeline(apply_corrections=True)
        result = pipeline.process(text)
        if result.needs_review:
            ...
    """

    def __init__(
        self,
        config: Optional[ReceiptConfig] = None,
        apply_corrections: bool = False,
        today: Optional[date] = None
    ):
        self.config = config or ReceiptConfig.load_default()
        self.apply_corrections = apply_corrections
        self.today = today

        self.parser = ReceiptParser(self.config)
        self.validator = ReceiptValidator(self.config)

        # Callbacks
        self._stage_callbacks: Dict[PipelineStage, List[Callable]] = {}

    def process(self, text: str) -> ReceiptProcessingResult:
        """
        Process one receipt through the complete pipeline.

        Failures are recorded in the result rather than raised.

        Args:
            text: Raw receipt text

        Returns:
            ReceiptProcessingResult
        """
        start_time = time.time()
        ctx = PipelineContext(raw_text=text)

        try:
            self._run_stage(ctx, PipelineStage.PARSE, self._stage_parse)
            self._run_stage(ctx, PipelineStage.VALIDATE, self._stage_validate)
            if self.apply_corrections:
                self._run_stage(ctx, PipelineStage.CORRECT, self._stage_correct)
            self._run_stage(ctx, PipelineStage.ROUTE, self._stage_route)
            ctx.current_stage = PipelineStage.COMPLETE
        except Exception as e:
            logger.exception(f"Receipt pipeline failed at {ctx.current_stage.value}: {e}")
            ctx.status = ReceiptStatus.ERROR

        ctx.total_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Receipt processed: status={ctx.status.value}, total_time_ms={ctx.total_time_ms}"
        )

        return ReceiptProcessingResult(
            success=ctx.error is None,
            status=ctx.status,
            invoice=ctx.invoice,
            validation=ctx.validation,
            corrected=ctx.corrected,
            needs_review=ctx.needs_review,
            review_reasons=ctx.review_reasons,
            stage_times=ctx.stage_times,
            total_time_ms=ctx.total_time_ms,
            error=ctx.error,
            error_stage=ctx.error_stage
        )

    def _run_stage(
        self,
        ctx: PipelineContext,
        stage: PipelineStage,
        stage_func: Callable
    ) -> None:
        """Run a pipeline stage with timing and error handling"""
        if ctx.error:
            return

        ctx.current_stage = stage
        start = time.time()

        try:
            stage_func(ctx)

            for callback in self._stage_callbacks.get(stage, []):
                try:
                    callback(ctx)
                except Exception as e:
                    logger.warning(f"Stage callback failed: {e}")

        except Exception as e:
            ctx.error = str(e)
            ctx.error_stage = stage
            raise

        finally:
            ctx.stage_times[stage.value] = int((time.time() - start) * 1000)

    def _stage_parse(self, ctx: PipelineContext) -> None:
        ctx.invoice = self.parser.parse(ctx.raw_text)
        ctx.status = ReceiptStatus.PARSED

    def _stage_validate(self, ctx: PipelineContext) -> None:
        ctx.validation = self.validator.validate(ctx.invoice, today=self.today)
        ctx.status = ReceiptStatus.VALIDATED

    def _stage_correct(self, ctx: PipelineContext) -> None:
        """Apply suggested corrections and validate the corrected invoice"""
        if not ctx.validation.corrections:
            return
        ctx.invoice = apply_corrections(ctx.invoice, ctx.validation)
        ctx.validation = self.validator.validate(ctx.invoice, today=self.today)
        ctx.corrected = True

    def _stage_route(self, ctx: PipelineContext) -> None:
        """Route stage: errors need human review"""
        if not ctx.validation.is_valid:
            ctx.status = ReceiptStatus.NEEDS_REVIEW
            ctx.review_reasons.extend(ctx.validation.errors)
        elif ctx.corrected:
            ctx.status = ReceiptStatus.CORRECTED
        else:
            ctx.status = ReceiptStatus.VALIDATED

    def on_stage(self, stage: PipelineStage, callback: Callable) -> None:
        """Register a callback for a pipeline stage"""
        if stage not in self._stage_callbacks:
            self._stage_callbacks[stage] = []
        self._stage_callbacks[stage].append(callback)


def process_receipt(
    text: str,
    config: Optional[ReceiptConfig] = None,
    apply_corrections: bool = False,
    today: Optional[date] = None
) -> ReceiptProcessingResult:
    """
    Convenience function to process one receipt.

    Args:
        text: Raw receipt text
        config: Optional receipt configuration
        apply_corrections: Apply suggested corrections before routing
        today: Reference date for the future-date rule

    Returns:
        ReceiptProcessingResult
    """
    pipeline = ReceiptPipeline(config, apply_corrections=apply_corrections, today=today)
    return pipeline.process(text)


def process_batch(
    texts: Sequence[str],
    config: Optional[ReceiptConfig] = None,
    apply_corrections: bool = False,
    today: Optional[date] = None,
    max_workers: Optional[int] = None
) -> List[ReceiptProcessingResult]:
    """
    Process many receipts concurrently.

    The pipeline holds no per-receipt state, so one instance is shared by
    every worker. Results are returned in input order.
    """
    pipeline = ReceiptPipeline(config, apply_corrections=apply_corrections, today=today)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(pipeline.process, texts))
    logger.info(f"Processed batch of {len(results)} receipts")
    return results
