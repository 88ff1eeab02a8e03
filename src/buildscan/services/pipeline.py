"""Sequential task pipeline."""

import logging
import time

from buildscan.domain.exceptions import PipelineFatalError
from buildscan.domain.models import Context, PipelineResult
from buildscan.services.tasks import get_task

logger = logging.getLogger(__name__)

# Each chain is a list of task names that will be resolved from the registry
CHAINS = {
    "scan": [
        "check_tools",
        "load_build_metadata",
        "measure_image",
        "scan_vulnerabilities",
        "summarize_findings",
        "write_summary",
    ],
    "estimate": [
        "check_tools",
        "measure_artifacts",
        "measure_image",
        "save_build_metadata",
    ],
    "summarize": [
        "load_scan_report",
        "summarize_findings",
        "write_summary",
    ],
}


def get_task_chain(chain: str) -> list[str]:
    """
    Get the task names for a chain.

    Raises:
        ValueError: If the chain is unknown
    """
    if chain not in CHAINS:
        raise ValueError(
            f"Unknown chain: {chain}. Available chains: {list(CHAINS.keys())}"
        )
    return CHAINS[chain]


def run_pipeline(ctx: Context) -> PipelineResult:
    """
    Run every task of ``ctx.chain`` in order.

    Each task is timed and its duration recorded on ``ctx.durations``.
    A PipelineFatalError stops the chain and yields an unsuccessful result
    carrying the partial context.

    Raises:
        ValueError: If the chain is unknown or a task is not registered
    """
    task_names = get_task_chain(ctx.chain)

    tasks = []
    missing_tasks = []
    for task_name in task_names:
        task = get_task(task_name)
        if task is None:
            missing_tasks.append(task_name)
        else:
            tasks.append(task)

    if missing_tasks:
        raise ValueError(f"Missing tasks in registry: {', '.join(missing_tasks)}")

    pipeline_start = time.perf_counter()
    log = ctx.log_display

    for task in tasks:
        status_msg = task.get_status_message(ctx)
        if log:
            log.set_mode("task")
            log.write_task_section(status_msg)

        task_start = time.perf_counter()
        try:
            ctx = task.run(ctx)
        except PipelineFatalError as e:
            task_duration = time.perf_counter() - task_start
            ctx.durations = ctx.durations.record(task.name, task_duration).record(
                "total", time.perf_counter() - pipeline_start
            )
            logger.error("%s failed: %s", task.name, e.message)
            if log:
                log.write_error(f"{status_msg} failed after {task_duration:.1f} seconds")
                log.write_error(f"ERROR: {e.message}")
            return PipelineResult(
                ctx=ctx,
                succeeded=False,
                error=e.message,
                failed_task=e.source or task.name,
            )

        task_duration = time.perf_counter() - task_start
        ctx.durations = ctx.durations.record(task.name, task_duration)
        logger.debug("%s finished in %.2fs", task.name, task_duration)
        if log:
            log.write(f"{status_msg} completed in {task_duration:.1f} seconds")

    ctx.durations = ctx.durations.record("total", time.perf_counter() - pipeline_start)
    if log:
        log.set_mode("action")
    return PipelineResult(ctx=ctx, succeeded=True)
