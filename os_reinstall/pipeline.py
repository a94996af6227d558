# ----------------------------------------------------------------
# Stage Sequencer
# ----------------------------------------------------------------
"""
Single-pass provisioning state machine.

Stages run strictly in order. A FATAL stage that raises stops the run where it
is, with no rollback; a TOLERATED stage that raises is logged and the run moves
on to the stage's failure state.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from .config import AppConfig
from .console import NordColors, console, print_section

logger = logging.getLogger(__name__)


class FailurePolicy(Enum):
    FATAL = "fatal"
    TOLERATED = "tolerated"


class ProvisioningState(Enum):
    STARTED = "started"
    REPOS_CONFIGURED = "repos_configured"
    PACKAGES_INSTALLED = "packages_installed"
    STORAGE_CONFIGURED = "storage_configured"
    TOOLS_INSTALLED = "tools_installed"
    DRIVER_INSTALLED = "driver_installed"
    DRIVER_SKIPPED = "driver_skipped"
    DONE = "done"


StageAction = Callable[[AppConfig], Optional[ProvisioningState]]


@dataclass(frozen=True)
class Stage:
    name: str
    description: str
    action: StageAction
    reached: ProvisioningState
    policy: FailurePolicy = FailurePolicy.FATAL
    on_failure: Optional[ProvisioningState] = None


@dataclass
class StageResult:
    name: str
    status: str = "pending"
    message: str = ""
    elapsed: float = 0.0


@dataclass
class PipelineResult:
    state: ProvisioningState = ProvisioningState.STARTED
    exit_code: int = 0
    results: List[StageResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is ProvisioningState.DONE


def failure_exit_code(error: BaseException) -> int:
    """Exit status for a fatal stage failure, never zero."""
    code = getattr(error, "exit_code", 1)
    return code if isinstance(code, int) and code > 0 else 1


def run_with_progress(desc: str, func: StageAction, config: AppConfig):
    """Run a stage action under a Rich spinner."""
    progress = Progress(
        SpinnerColumn(spinner_name="dots", style=f"bold {NordColors.FROST_1}"),
        TextColumn(f"[bold {NordColors.FROST_2}]{{task.description}}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        progress.add_task(desc, total=None)
        return func(config)


def run_pipeline(stages: Sequence[Stage], config: AppConfig) -> PipelineResult:
    result = PipelineResult(results=[StageResult(stage.name) for stage in stages])
    logger.info("STARTING PROVISIONING")

    for stage, stage_result in zip(stages, result.results):
        print_section(stage.description)
        start = time.time()
        try:
            reached = run_with_progress(stage.description, stage.action, config)
        except Exception as e:
            stage_result.elapsed = time.time() - start
            if stage.policy is FailurePolicy.TOLERATED:
                logger.warning(f"{stage.description} failed or skipped: {e}")
                stage_result.status = "tolerated"
                stage_result.message = str(e)
                if stage.on_failure is not None:
                    result.state = stage.on_failure
                continue

            logger.critical(f"{stage.description} failed: {e}")
            logger.debug("Stage failure details", exc_info=True)
            stage_result.status = "failed"
            stage_result.message = str(e)
            result.exit_code = failure_exit_code(e)
            return result

        stage_result.elapsed = time.time() - start
        result.state = reached or stage.reached
        if result.state is stage.on_failure:
            stage_result.status = "skipped"
            stage_result.message = f"Skipped after {stage_result.elapsed:.2f}s."
        else:
            stage_result.status = "success"
            stage_result.message = f"Completed in {stage_result.elapsed:.2f}s."
        logger.info(f"{stage.description}: {stage_result.message}")

    result.state = ProvisioningState.DONE
    logger.info("PROVISIONING COMPLETE. Please reboot.")
    return result
