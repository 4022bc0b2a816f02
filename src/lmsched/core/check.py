from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, Sequence

from lmsched.core import events as ev
from lmsched.core.order_check import check_order
from lmsched.core.schedule import diagnostic_events, load_registry_events, resolve_config_path


def check_events(
    project_dir: Path,
    names: Sequence[str],
    *,
    config_path: Path | None = None,
) -> Iterable[ev.LmschedEvent]:
    project_dir = project_dir.resolve()
    config_path = resolve_config_path(project_dir, config_path)

    yield ev.CommandStarted(
        command="check",
        project_dir=project_dir,
        config_path=config_path,
        options={"order": list(names)},
    )

    loaded = yield from load_registry_events("check", project_dir, config_path)
    if loaded.failed:
        yield ev.CommandCompleted(command="check", ok=False, exit_code=2)
        return

    yield ev.StageStarted(command="check", stage_id="check_order", label="Check order")
    started = time.perf_counter()
    result = check_order(loaded.registry, names)
    yield from diagnostic_events("check", result.diagnostics)
    yield ev.OrderChecked(
        command="check",
        valid=result.valid,
        order=list(result.order),
        suggested_order=list(result.suggested_order) if result.suggested_order is not None else None,
    )
    duration_ms = _elapsed_ms(started)
    if not result.valid:
        yield ev.StageFailed(
            command="check",
            stage_id="check_order",
            duration_ms=duration_ms,
            error_code="order_invalid",
            message=f"Plugin order has {len([d for d in result.diagnostics if d.is_error])} error(s).",
        )
        yield ev.CommandCompleted(command="check", ok=False, exit_code=2)
        return
    yield ev.StageCompleted(
        command="check",
        stage_id="check_order",
        duration_ms=duration_ms,
        status="success",
    )
    yield ev.CommandCompleted(command="check", ok=True, exit_code=0)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
