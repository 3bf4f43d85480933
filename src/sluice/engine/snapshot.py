"""Snapshot coordination: materialize one pipe without disturbing the session.

A snapshot walks the terminal's lineage, cuts a disposable sub-flow holding
exactly that lineage plus a temporary sink, swaps it in as the session's
active flow, runs it, and puts the original flow back. The restore happens
in a ``finally`` block, so the session's flow is the same object afterwards
whether the run succeeded, failed, timed out or was interrupted.

Lifecycle:
    IDLE -> BUILDING -> SWAPPED -> EXECUTING -> RESTORING -> IDLE
"""

from __future__ import annotations

from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from sluice.contracts import (
    ExecutionError,
    ResultTooLargeError,
    RunResult,
    SnapshotExecutionError,
    SnapshotInProgressError,
    SnapshotReadError,
    SnapshotState,
)
from sluice.core.config import SnapshotSettings, SourceSettings
from sluice.core.flow import FlowDef, Pipe
from sluice.core.lineage import reachable_pipes, resolve_sources
from sluice.core.subflow import build_sub_flow
from sluice.engine.executor import ExecutorProtocol, iter_source
from sluice.plugins.manager import PluginManager

if TYPE_CHECKING:
    from sluice.engine.session import Session

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SnapshotSource:
    """Handle to a materialized snapshot.

    ``descriptor`` reads the snapshot back; register it in a flow (see
    Session.read_snapshot) to keep building on the materialized rows.

    Attributes:
        source_id: Identifier to bind the snapshot under (``snapshot_<hex>``)
        descriptor: Source descriptor pointing at ``path``
        path: File the temporary sink wrote
        terminal: Pipe that was materialized
        rows_written: Number of rows in the snapshot
    """

    source_id: str
    descriptor: SourceSettings
    path: Path
    terminal: Pipe
    rows_written: int = 0

    def read(self, manager: PluginManager) -> list[dict[str, Any]]:
        """Read every row of the snapshot.

        Raises:
            SnapshotReadError: If the snapshot file cannot be read back
        """
        return list(self.iter_rows(manager, run_id=self.source_id))

    def iter_rows(self, manager: PluginManager, *, run_id: str) -> Iterator[dict[str, Any]]:
        """Stream the snapshot's rows.

        Raises:
            SnapshotReadError: If the snapshot file cannot be read back
        """
        try:
            yield from iter_source(
                self.descriptor, manager, run_id=run_id, node_id=self.source_id
            )
        except Exception as exc:
            raise SnapshotReadError(str(self.path), exc) from exc


class SnapshotCoordinator:
    """Runs snapshots against a session's active flow.

    The session lock is held from BUILDING through RESTORING, so other
    threads reading ``session.flow`` block until the original flow is back.
    A second snapshot from the same thread while one is in flight (e.g.
    from inside a plugin) raises SnapshotInProgressError.
    """

    def __init__(
        self,
        session: Session,
        executor: ExecutorProtocol,
        settings: SnapshotSettings,
    ) -> None:
        self._session = session
        self._executor = executor
        self._settings = settings
        self._state = SnapshotState.IDLE

    @property
    def state(self) -> SnapshotState:
        """Current lifecycle state."""
        return self._state

    @property
    def settings(self) -> SnapshotSettings:
        """Staging configuration used for temporary sinks."""
        return self._settings

    def snapshot(self, terminal: Pipe) -> SnapshotSource:
        """Materialize ``terminal`` into a fresh temporary sink.

        Raises:
            UnknownNodeError: If ``terminal`` is not in the active flow
            InvalidTerminalError: If its lineage cannot run on its own
            SnapshotInProgressError: If a snapshot is already running on this session
            SnapshotExecutionError: If the run failed; the active flow is restored
            KeyboardInterrupt: Not wrapped as SnapshotExecutionError. The active
                flow is restored and the interrupt propagates unchanged, as does
                SystemExit.
        """
        with self._session.lock:
            if self._state is not SnapshotState.IDLE:
                raise SnapshotInProgressError(
                    f"Cannot snapshot {terminal!r}: another snapshot is {self._state.value}"
                )
            try:
                return self._run(terminal)
            finally:
                self._state = SnapshotState.IDLE

    def materialize_and_list(
        self, terminal: Pipe, *, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Snapshot ``terminal`` and read the rows back eagerly.

        Args:
            terminal: Pipe to materialize
            limit: Maximum rows to collect (defaults to ``max_collect_rows``)

        Raises:
            ResultTooLargeError: If the snapshot holds more than ``limit`` rows.
                The snapshot file is left in place.
            SnapshotReadError: If the snapshot ran but cannot be read back
        """
        limit = self._settings.max_collect_rows if limit is None else limit
        snap = self.snapshot(terminal)

        rows: list[dict[str, Any]] = []
        for row in snap.iter_rows(self._session.manager, run_id=snap.source_id):
            if len(rows) >= limit:
                raise ResultTooLargeError(str(snap.path), limit)
            rows.append(row)
        return rows

    def _run(self, terminal: Pipe) -> SnapshotSource:
        self._state = SnapshotState.BUILDING
        active = self._session.flow
        log = logger.bind(terminal=terminal.label)
        log.info("snapshot_started")

        lineage = reachable_pipes(terminal, active)
        source_ids = resolve_sources(lineage.heads, active)
        log.debug(
            "snapshot_sources_resolved",
            source_ids=sorted(source_ids),
            pipes=len(lineage.visited),
        )

        sub = build_sub_flow(
            terminal,
            lineage.visited,
            source_ids,
            active,
            staging_dir=self._settings.staging_dir,
            fmt=self._settings.format,
        )
        log = log.bind(sink=sub.sink.name, path=str(sub.sink.path))

        try:
            with self._swapped(sub.flow):
                self._state = SnapshotState.EXECUTING
                result = self._execute(self._session.flow)
        except Exception as exc:
            log.error("snapshot_failed", error=str(exc), error_type=type(exc).__name__)
            raise SnapshotExecutionError(terminal, str(sub.sink.path), exc) from exc

        rows_written = result.rows_written.get(sub.sink.name, 0)
        log.info("snapshot_completed", rows=rows_written)
        return SnapshotSource(
            source_id=sub.sink.name,
            descriptor=sub.sink.source_descriptor(),
            path=sub.sink.path,
            terminal=terminal,
            rows_written=rows_written,
        )

    @contextmanager
    def _swapped(self, flow: FlowDef) -> Iterator[FlowDef]:
        """Install ``flow`` as the session's active flow for the block."""
        saved = self._session.swap_flow(flow)
        self._state = SnapshotState.SWAPPED
        try:
            yield flow
        finally:
            self._state = SnapshotState.RESTORING
            self._session.swap_flow(saved)
            logger.debug("flow_restored", pipes=len(saved))

    def _execute(self, flow: FlowDef) -> RunResult:
        timeout = self._settings.timeout_seconds
        if timeout is None:
            return self._executor.execute(flow)

        # The worker may outlive the timeout; it holds the sub-flow, never the session
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sluice-snapshot")
        try:
            future = pool.submit(self._executor.execute, flow)
            return future.result(timeout=timeout)
        except TimeoutError as e:
            raise ExecutionError(f"Snapshot run exceeded {timeout}s") from e
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
