"""
Sysroot build pipeline.

Runs the stages in their required order:

1. source: make sure the standard library sources are cached
2. host:   mirror the host runtime libraries
3. target: build the selected crates for the target and harvest them

Each stage produces a StageOutcome. The pipeline stops at the first failed
outcome and returns a PipelineResult instead of raising, so the caller
decides how to report the failure. Completed stages are not rolled back;
each of them is idempotent and safe to leave in place.

Example:
    >>> pipeline = SysrootPipeline()
    >>> result = pipeline.run(ctx)
    >>> if not result.ok:
    ...     print(result.failure.describe())
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import requests

from sysrootkit.build.target import TargetCrateBuilder
from sysrootkit.config.parser import SysrootConfig
from sysrootkit.core.context import BuildContext
from sysrootkit.core.events import EventBus, LoggingObserver
from sysrootkit.core.exceptions import SysrootKitError
from sysrootkit.core.locking import sysroot_lock
from sysrootkit.core.process import CommandRunner
from sysrootkit.host.linker import HostCrateLinker
from sysrootkit.sources.cache import SourceCache

logger = logging.getLogger(__name__)


@dataclass
class StageOutcome:
    """
    Outcome of one pipeline stage.

    Attributes:
        stage: Stage name
        ok: Whether the stage succeeded
        value: Stage return value on success
        error: Exception raised on failure
    """

    stage: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None

    def describe(self) -> str:
        if self.ok:
            return f"{self.stage} succeeded"
        return f"{self.stage} failed: {self.error}"


@dataclass
class PipelineResult:
    """Outcomes of the stages that ran, in order."""

    outcomes: List[StageOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failure(self) -> Optional[StageOutcome]:
        return next((o for o in self.outcomes if not o.ok), None)

    def value(self, stage: str) -> Any:
        for outcome in self.outcomes:
            if outcome.stage == stage:
                return outcome.value
        return None


class SysrootPipeline:
    """Assemble a sysroot from its stages."""

    def __init__(
        self,
        events: Optional[EventBus] = None,
        runner: Optional[CommandRunner] = None,
        session: Optional[requests.Session] = None,
        lock_timeout: float = 0,
    ):
        """
        Initialize the pipeline.

        Args:
            events: Event bus (a bus logging every event if None)
            runner: Command runner shared by the stages
            session: Optional requests session for the source download
            lock_timeout: Seconds to wait for the output directory lock
        """
        self.events = events or EventBus([LoggingObserver()])
        self.runner = runner or CommandRunner()
        self.session = session
        self.lock_timeout = lock_timeout

    def run(self, ctx: BuildContext) -> PipelineResult:
        """Run every stage for ctx, stopping at the first failure."""
        result = PipelineResult()

        try:
            with sysroot_lock(ctx.out_dir, timeout=self.lock_timeout):
                self._run_stages(ctx, result)
        except (SysrootKitError, OSError) as e:
            # Only the lock itself can fail outside a stage.
            self.events.stage_failed("lock", str(e))
            result.outcomes.append(StageOutcome("lock", ok=False, error=e))

        return result

    def _run_stages(self, ctx: BuildContext, result: PipelineResult) -> None:
        config = SysrootConfig.load(ctx.config_path)
        source_cache = SourceCache(ctx.src_dir, self.events, session=self.session)
        linker = HostCrateLinker(self.events, self.runner)
        builder = TargetCrateBuilder(self.events, self.runner)

        stages: List[tuple] = [
            ("source", lambda: source_cache.ensure(ctx.snapshot)),
            ("host", lambda: linker.link(ctx)),
            ("target", lambda: builder.build(ctx, config.crates(ctx.target.triple))),
        ]

        for name, action in stages:
            outcome = self.run_stage(name, action)
            result.outcomes.append(outcome)
            if not outcome.ok:
                return

    def run_stage(self, name: str, action: Callable[[], Any]) -> StageOutcome:
        """Run one stage; a SysrootKitError or OSError becomes a failed outcome."""
        self.events.stage_started(name, "started")
        try:
            value = action()
        except (SysrootKitError, OSError) as e:
            self.events.stage_failed(name, str(e))
            return StageOutcome(name, ok=False, error=e)

        self.events.stage_finished(name, "finished")
        return StageOutcome(name, ok=True, value=value)
