"""Scripted reproduction of the device revert on processing stage toggles."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.table import Table

from device_session.app import DeviceSessionApp
from device_session.session.models import Session, SessionStatus, TransitionKind

logger = logging.getLogger(__name__)


@dataclass
class ReproResult:
    """Outcome of one reproduction run."""

    session: Session
    target_device_id: str | None
    pipeline_device_id: str | None
    spurious_reverts: int

    @property
    def device_kept(self) -> bool:
        """Whether the selection survived and the pipeline ended up on it."""
        return (
            self.target_device_id is not None
            and self.session.selected_device_id == self.target_device_id
            and self.pipeline_device_id == self.target_device_id
        )


async def run_reproduction(app: DeviceSessionApp) -> ReproResult:
    """Initialize, select a non-default device, then toggle the stage off and on."""
    session = await app.initialize()
    target: str | None = None

    if session.status is not SessionStatus.READY:
        logger.error("Initialization failed: %s", session.error)
    else:
        candidates = [d for d in session.devices if d.id != session.selected_device_id]
        if not candidates:
            logger.warning("Only one input device available, nothing to reproduce")
        else:
            target = candidates[0].id
            await app.select_device(target)
            await app.disable_stage()
            await app.enable_stage()

    session = app.session
    reverts = sum(1 for r in session.history if r.kind is TransitionKind.SPURIOUS_REVERT)
    return ReproResult(
        session=session,
        target_device_id=target,
        pipeline_device_id=app.pipeline.active_device_id,
        spurious_reverts=reverts,
    )


def render_result(result: ReproResult, console: Console | None = None) -> None:
    """Print the transition history and a verdict."""
    console = console or Console()
    session = result.session

    table = Table(title="Device session history")
    table.add_column("#", justify="right")
    table.add_column("Transition")
    table.add_column("Status")
    table.add_column("Selected")
    table.add_column("Reported")
    table.add_column("Detail")
    for record in session.history:
        style = "yellow" if record.kind is TransitionKind.SPURIOUS_REVERT else None
        table.add_row(
            str(record.sequence),
            record.kind.value,
            record.status.value,
            session.label_for(record.selected_device_id),
            session.label_for(record.reported_device_id),
            record.detail,
            style=style,
        )
    console.print(table)

    console.print(f"Spurious reverts detected: {result.spurious_reverts}")
    if result.device_kept:
        console.print(
            f"[green]Selected device kept:[/green] {session.label_for(result.target_device_id)}"
        )
    else:
        console.print(
            f"[red]Device mismatch:[/red] selected {session.label_for(session.selected_device_id)}, "
            f"pipeline on {session.label_for(result.pipeline_device_id)}"
        )
