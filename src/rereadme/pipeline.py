"""Pipeline orchestrator: snapshots, step loop, formatting, cleanup.

Phases run strictly in order:

    Init -> DependencyCheck -> SnapshotGeneration -> StepLoop -> Format -> Cleanup

``DependencyCheck`` and ``StepLoop`` (without continue-on-error) can end the
run early with a failed ``PipelineResult``. The orchestrator never exits the
process; the CLI turns the result into an exit status.

The document is rewritten after every successful step, so a failure in step
N still leaves step N-1's output on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .completion import CompletionClient
from .config import PipelineOptions, Settings, SnapshotConfig
from .dependencies import check_dependencies
from .exceptions import DependencyMissing, StepError, WriteFailure
from .formatter import format_document
from .snapshot import cleanup_snapshots, generate_snapshots, run_snapshot
from .steps import (
    STEP_DEFINITIONS,
    PipelineStep,
    StepDefinition,
    StepProcessor,
    build_step_list,
    load_step_contexts,
)
from .writer import DocumentWriter

logger = logging.getLogger("rereadme.pipeline")


@dataclass
class PipelineResult:
    """Outcome of one run."""

    success: bool
    reason: str = ""
    completed_steps: list[int] = field(default_factory=list)
    failed_steps: list[int] = field(default_factory=list)
    stopped_by_operator: bool = False

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class PipelineOrchestrator:
    """Drives one README refresh run.

    Collaborators default to the real implementations and can be replaced
    for tests: *client* skips client construction, *dependency_check*,
    *snapshot_runner* and *formatter* stand in for the subprocess wrappers,
    *confirm* replaces ``input()`` in interactive mode.
    """

    def __init__(
        self,
        options: PipelineOptions,
        settings: Settings,
        client: Optional[CompletionClient] = None,
        dependency_check: Optional[Callable[[str], bool]] = None,
        snapshot_runner: Optional[Callable[..., bool]] = None,
        formatter: Optional[Callable[..., bool]] = None,
        confirm: Callable[[str], str] = input,
        writer: Optional[DocumentWriter] = None,
        step_definitions: tuple[StepDefinition, ...] = STEP_DEFINITIONS,
    ) -> None:
        self.options = options
        self.settings = settings
        self.client = client
        self._dependency_check = dependency_check or check_dependencies
        self._snapshot_runner = snapshot_runner or run_snapshot
        self._formatter = formatter or format_document
        self._confirm = confirm
        self.writer = writer or DocumentWriter(options.output_path)
        self.step_definitions = step_definitions

    @property
    def snapshot_configs(self) -> list[SnapshotConfig]:
        return self.options.snapshot_configs

    @property
    def debug(self) -> bool:
        return self.settings.debug_mode or self.options.verbose

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def plan_steps(self) -> list[PipelineStep]:
        if self.options.include_external_sources:
            print("[Pipeline] Including external sources step (Confluence MCP server)")
        return build_step_list(self.options.include_external_sources, self.step_definitions)

    def ensure_dependencies(self) -> CompletionClient:
        """Verify tools and credentials, then build the client.

        Raises:
            DependencyMissing: any precondition is missing.
        """
        if not self._dependency_check(self.settings.openai_api_key):
            raise DependencyMissing("Missing required dependencies")
        if self.client is None:
            self.client = CompletionClient(
                api_key=self.settings.openai_api_key,
                model=self.settings.model,
                debug=self.debug,
                timeout=self.settings.request_timeout,
            )
        return self.client

    def generate_snapshots(self) -> dict[str, bool]:
        print("[Pipeline] Generating context with gitingest...")
        return generate_snapshots(
            self.snapshot_configs,
            verbose=self.debug,
            runner=self._snapshot_runner,
        )

    def run_steps(self, steps: list[PipelineStep], processor: StepProcessor) -> PipelineResult:
        """Run *steps* in order, threading the continuation token through.

        Step errors end the run unless continue-on-error is set. A write
        failure always ends it. On failure the token is kept, so the next
        step still continues from the last successful exchange.
        """
        result = PipelineResult(success=True)
        token: Optional[str] = None

        for step in steps:
            try:
                outcome = processor.process(step, token)
            except StepError as e:
                logger.error("[Pipeline] Failed at step %d (%s): %s", step.ordinal, step.name, e)
                result.failed_steps.append(step.ordinal)
                if not self.options.continue_on_error:
                    result.success = False
                    result.reason = f"Step {step.ordinal} ({step.name}) failed: {e}"
                    return result
                continue

            try:
                self.writer.write(outcome.content)
            except WriteFailure as e:
                logger.error("[Pipeline] Failed at step %d (%s): %s", step.ordinal, step.name, e)
                result.failed_steps.append(step.ordinal)
                result.success = False
                result.reason = str(e)
                return result

            result.completed_steps.append(step.ordinal)
            token = outcome.next_token
            if self.debug:
                print(f"   Response ID for step {step.ordinal}: {token}")

            if self.options.interactive:
                answer = self._confirm("Continue to next step? (y/n): ")
                if answer.strip().lower() != "y":
                    print("[Pipeline] Stopped by operator")
                    result.stopped_by_operator = True
                    break

        return result

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self) -> PipelineResult:
        print("[Pipeline] Starting README refresh workflow")
        if not self.options.uses_default_paths:
            print(f"[Pipeline] Input file: {self.options.input_path}")
            print(f"[Pipeline] Output file: {self.options.output_path}")

        steps = self.plan_steps()

        try:
            client = self.ensure_dependencies()
        except DependencyMissing as e:
            logger.error("[Pipeline] Workflow failed: %s", e)
            return PipelineResult(success=False, reason=str(e))

        self.generate_snapshots()
        steps = load_step_contexts(steps)

        processor = StepProcessor(
            client=client,
            input_path=self.options.input_path,
            prompts_dir=self.settings.prompts_dir,
            template_path=self.settings.template_path,
        )

        result = self.run_steps(steps, processor)
        if not result.success:
            logger.error("[Pipeline] Workflow failed: %s", result.reason)
            return result

        self._formatter(self.options.output_path, verbose=self.options.verbose)

        if not self.options.keep_context:
            cleanup_snapshots(self.snapshot_configs)

        print("[Pipeline] README refresh completed successfully!")
        return result
