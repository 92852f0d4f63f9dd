"""Instruction runner: the outer loop over the instruction list.

Reads the instruction list, loads each instruction's documents in source
order and hands them one at a time to the reconciler. Per-document and
per-instruction failures become failed ``ApplyResult`` entries; the run only
stops early when ``abort_on_error`` is set.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from kubeapply.core.errors import (
    DecodeError,
    InstructionError,
    LocatorError,
    UnknownActionError,
)
from kubeapply.core.reporter import summarize
from kubeapply.core.schema.document import Document
from kubeapply.core.schema.instruction import Action, Instruction
from kubeapply.core.schema.result import ApplyResult
from kubeapply.k8s import source
from kubeapply.k8s.reconciler import Reconciler

logger = logging.getLogger(__name__)

Loader = Callable[[str], List[Document]]


def parse_instructions(data: Any, path: Optional[str] = None) -> List[Instruction]:
    """Turn decoded instruction JSON into Instruction objects.

    Raises:
        InstructionError: If the data is not a list of objects
    """
    if not isinstance(data, list):
        raise InstructionError(
            f"Instruction list must be a JSON array, got {type(data).__name__}", path=path
        )
    instructions = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise InstructionError(
                f"Instruction {index} must be an object, got {type(entry).__name__}", path=path
            )
        instructions.append(Instruction.from_dict(entry))
    return instructions


def load_instructions(path: str) -> List[Instruction]:
    """Read the instruction list from a JSON file.

    Args:
        path: Path to a file holding ``[{"uri": ..., "action": ...}, ...]``

    Returns:
        Instructions in file order

    Raises:
        InstructionError: If the file cannot be read or is not a JSON array
            of objects. This is fatal for the run.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as e:
        raise InstructionError(f"Cannot read instructions {path}: {e}", path=path) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InstructionError(f"Instructions {path} are not valid JSON: {e}", path=path) from e
    return parse_instructions(data, path=path)


def apply_instruction(
    instruction: Instruction,
    reconciler: Reconciler,
    loader: Loader = source.load,
    abort_on_error: bool = False,
) -> List[ApplyResult]:
    """Apply every document of one instruction.

    Args:
        instruction: Locator and action
        reconciler: Reconciler that executes the action per document
        loader: Resolves a locator into documents
        abort_on_error: Stop at the first failed document

    Returns:
        One result per document, or a single failed result when the action
        is unknown or the locator cannot be loaded
    """
    reporter = reconciler.reporter

    def failed(error, outcome: str = "failed") -> List[ApplyResult]:
        result = ApplyResult(locator=instruction.locator, action=instruction.action)
        result.fail(error, outcome=outcome)
        reporter.finish(result)
        return [result]

    try:
        action = Action.parse(instruction.action)
    except UnknownActionError as e:
        return failed(e, outcome="skipped")

    if not instruction.locator:
        return failed(LocatorError("Instruction has no uri"))

    try:
        documents = loader(instruction.locator)
    except (LocatorError, DecodeError) as e:
        return failed(e)

    if not documents:
        logger.info(f"No documents in {instruction.locator}")

    results = []
    for document in documents:
        result = reconciler.reconcile(document, action, locator=instruction.locator)
        results.append(result)
        if abort_on_error and not result.ok:
            break
    return results


def apply_instructions(
    instructions: Iterable[Instruction],
    reconciler: Reconciler,
    loader: Loader = source.load,
    abort_on_error: Optional[bool] = None,
) -> Tuple[List[ApplyResult], Dict[str, Any]]:
    """Apply instructions strictly in order.

    Args:
        instructions: Instruction list
        reconciler: Reconciler bound to the target API server
        loader: Resolves a locator into documents (default: ``source.load``)
        abort_on_error: Stop at the first failure (default: the
            reconciler's ``ApplyConfig.abort_on_error``)

    Returns:
        Tuple of (results, metadata)

        metadata contains:
        - aborted: Whether the run stopped early on a failure
        - instructions_processed: Number of instructions attempted
        - summary: Totals from ``summarize``
    """
    if abort_on_error is None:
        abort_on_error = reconciler.config.abort_on_error

    results: List[ApplyResult] = []
    processed = 0
    aborted = False
    for instruction in instructions:
        processed += 1
        instruction_results = apply_instruction(
            instruction, reconciler, loader=loader, abort_on_error=abort_on_error
        )
        results.extend(instruction_results)
        if abort_on_error and any(not r.ok for r in instruction_results):
            logger.error(f"Aborting after failure in {instruction.locator}")
            aborted = True
            break

    metadata = {
        "aborted": aborted,
        "instructions_processed": processed,
        "summary": summarize(results),
    }
    return results, metadata


def run(
    instructions_path: str,
    reconciler: Reconciler,
    loader: Loader = source.load,
) -> Tuple[List[ApplyResult], Dict[str, Any]]:
    """Load the instruction file and apply it.

    Raises:
        InstructionError: If the instruction file cannot be read
    """
    instructions = load_instructions(instructions_path)
    logger.info(f"Applying {len(instructions)} instruction(s) from {instructions_path}")
    return apply_instructions(instructions, reconciler, loader=loader)


__all__ = [
    "apply_instruction",
    "apply_instructions",
    "load_instructions",
    "parse_instructions",
    "run",
]
