"""Pipeline steps: definitions, context wiring, and the per-step processor.

A step pairs an instruction file (sent as the system instruction) with the
current document. The processor builds the user payload, calls the
completion client, and rejects empty output. It never writes the document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from .completion import CompletionClient, CompletionResult
from .exceptions import EmptyCompletionError, StepInputError
from .snapshot import read_snapshot

logger = logging.getLogger("rereadme.steps")


@dataclass(frozen=True)
class PipelineStep:
    """One instruction-driven rewrite of the document.

    ``context_source`` names the snapshot file this step draws context
    from; ``context`` holds its text once loaded.
    """

    ordinal: int
    name: str
    instruction_ref: str
    context_source: Optional[Path] = None
    context: str = ""


@dataclass(frozen=True)
class StepDefinition:
    name: str
    instruction_ref: str
    context_source: Optional[Path] = None
    external_sources: bool = False


# Order matters: each step refines the previous step's document.
STEP_DEFINITIONS: tuple[StepDefinition, ...] = (
    StepDefinition("prep", "1_prep_readme.txt"),
    StepDefinition("external-sources", "2_external_sources.txt", external_sources=True),
    StepDefinition("codebase-analysis", "3_gitingest_readme.txt", context_source=Path("gitingest-code.txt")),
)


def build_step_list(
    include_external_sources: bool = False,
    definitions: tuple[StepDefinition, ...] = STEP_DEFINITIONS,
) -> list[PipelineStep]:
    """Select the steps for this run and number them 1..N."""
    selected = [
        d for d in definitions
        if include_external_sources or not d.external_sources
    ]
    return [
        PipelineStep(
            ordinal=i,
            name=d.name,
            instruction_ref=d.instruction_ref,
            context_source=d.context_source,
        )
        for i, d in enumerate(selected, 1)
    ]


def load_step_contexts(steps: list[PipelineStep]) -> list[PipelineStep]:
    """Fill each step's context from its snapshot file (empty if absent)."""
    return [
        replace(step, context=read_snapshot(step.context_source)) if step.context_source else step
        for step in steps
    ]


# ---------------------------------------------------------------------------
# Payload assembly
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(
    r"\A```(?P<lang>markdown|md)?[ \t]*\n(?P<body>.*?)\n?```\Z",
    re.DOTALL | re.IGNORECASE,
)
_FENCE_LINE_RE = re.compile(r"^ {0,3}```(?P<info>.*)$")


def _fence_lines(body: str) -> list[str]:
    """Info strings of every fence line in *body*, in order."""
    return [
        m.group("info").strip()
        for m in map(_FENCE_LINE_RE.match, body.splitlines())
        if m
    ]


def _fences_balanced(body: str) -> bool:
    """True when every fence opened in *body* is closed again.

    Any fence line opens a block; only a bare fence closes one.
    """
    open_block = False
    for info in _fence_lines(body):
        if not open_block:
            open_block = True
        elif not info:
            open_block = False
    return not open_block


def strip_markdown_fence(content: str) -> str:
    """Unwrap output that the model returned inside a single code fence.

    A bare ``` wrapper is only removed when its body holds no fence line
    at all. A ```markdown wrapper may hold code blocks, but only if they
    pair up; otherwise the content is a document that merely starts and
    ends with code blocks, and is returned untouched.
    """
    match = _FENCE_RE.match(content.strip())
    if not match:
        return content
    body = match.group("body")
    if match.group("lang"):
        if not _fences_balanced(body):
            return content
    elif _fence_lines(body):
        return content
    return body


def build_user_payload(template: str, document: str, document_name: str, context: str = "") -> str:
    """Static template first, then the document, then the optional context.

    Provider-side prompt caching keys on the prefix, so the part that never
    changes between steps goes first.
    """
    payload = (
        f"README Format:\n\n{template}\n\n---\n"
        f"Current {document_name} content:\n\n{document}"
    )
    if context:
        payload += f"\n\nContext:\n{context}\n"
    return payload


def _read_asset(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StepInputError(f"Failed to read {what}: {path} ({e})") from e


class StepProcessor:
    """Runs a single step against the completion client."""

    def __init__(
        self,
        client: CompletionClient,
        input_path: Path,
        prompts_dir: Path,
        template_path: Path,
    ) -> None:
        self.client = client
        self.input_path = Path(input_path)
        self.prompts_dir = Path(prompts_dir)
        self.template_path = Path(template_path)

    def read_document(self) -> str:
        """Current document text; empty (with a warning) on first run."""
        if not self.input_path.exists():
            logger.warning(
                "Input file %s not found, starting with empty content", self.input_path,
            )
            return ""
        return _read_asset(self.input_path, "input document")

    def build_payload(self, step: PipelineStep) -> str:
        template = _read_asset(self.template_path, "output-format template")
        return build_user_payload(
            template=template,
            document=self.read_document(),
            document_name=self.input_path.name,
            context=step.context,
        )

    def process(
        self,
        step: PipelineStep,
        continuation_token: Optional[str] = None,
    ) -> CompletionResult:
        """Produce the next version of the document for *step*.

        Raises:
            StepInputError: instruction, template or document unreadable.
            CompletionError: the provider call failed.
            EmptyCompletionError: the provider returned no usable text.
        """
        print(f"[Step {step.ordinal}] Processing {step.name}: {step.instruction_ref}")

        instruction = _read_asset(self.prompts_dir / step.instruction_ref, "instruction file")
        payload = self.build_payload(step)

        result = self.client.exchange(instruction, payload, continuation_token)
        content = strip_markdown_fence(result.content)
        if not content.strip():
            raise EmptyCompletionError(f"No response from completion service for step {step.ordinal}")

        return CompletionResult(content=content, next_token=result.next_token)
