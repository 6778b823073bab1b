# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Core logic for repairing converted XFA forms."""

# Standard Library
import logging
import time
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

# Third Party
import pikepdf
from tqdm import tqdm

# Local
from .exceptions import RepairError
from .forms import (
    ensure_acroform,
    ensure_acroform_defaults,
    list_terminal_fields,
    reconcile_widgets,
)
from .remote import RemoteConfig, try_remote_convert
from .sanitizers import sanitize_scripts

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = "_clean"

# Repair statistics key -> message mappings for RepairResult.messages
_REPAIR_MESSAGES: list[tuple[str, str]] = [
    ("actions_removed", "action(s) removed"),
    ("field_actions_removed", "form field action(s) removed"),
    ("javascript_removed", "named JavaScript tree(s) removed"),
    ("xfa_nodes_removed", "XFA script/event node(s) removed"),
    ("xfa_packets_failed", "XFA packet(s) could not be parsed and were left as is"),
    ("fields_created", "form field(s) created"),
    ("widgets_attached", "orphan widget(s) attached"),
    ("fields_renamed", "duplicate field name(s) disambiguated"),
]


@dataclass
class RepairResult:
    """Result of a form repair.

    Attributes:
        success: True if the repaired file was written.
        input_path: Path to the input PDF.
        output_path: Path to the repaired PDF.
        converted_remotely: True if the remote service converted the
            input before the local repair.
        stats: Counters collected by the repair stages.
        messages: Human-readable summary of the changes made.
        processing_time: Processing time in seconds.
        error: Error message if success=False.
    """

    success: bool
    input_path: Path
    output_path: Path
    converted_remotely: bool = False
    stats: dict[str, Any] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    processing_time: float = 0.0
    error: str | None = None


def generate_output_path(input_path: Path, output_dir: Path | None = None) -> Path:
    """Generates the output path for a repaired PDF.

    The name is cut at its last ``.pdf`` (case-insensitive), so
    ``form.pdf`` and ``form.pdf.bak`` both become ``form_clean.pdf``. A name
    without ``.pdf``, or starting with it, gets ``_clean.pdf`` appended.

    Args:
        input_path: Path to the input PDF.
        output_dir: Optional output directory.

    Returns:
        Path for the repaired PDF.
    """
    name = input_path.name
    cut = name.lower().rfind(".pdf")
    if cut > 0:
        name = name[:cut]
    output_name = f"{name}{OUTPUT_SUFFIX}.pdf"
    if output_dir is not None:
        return output_dir / output_name
    return input_path.parent / output_name


def repair_document(pdf: pikepdf.Pdf) -> dict[str, Any]:
    """Repairs an open document in place.

    Runs, in order: script sanitization (actions, named JavaScript, XFA
    packets), AcroForm creation and defaults, and widget reconciliation.
    Every stage is idempotent.

    Args:
        pdf: Opened pikepdf PDF object (modified in place).

    Returns:
        Dictionary with the statistics of all stages.
    """
    stats = sanitize_scripts(pdf)

    acroform, created = ensure_acroform(pdf)
    stats["acroform_created"] = created
    ensure_acroform_defaults(pdf, acroform)

    reconciled = reconcile_widgets(pdf, acroform)
    stats["fields_created"] = reconciled.fields_created
    stats["widgets_attached"] = reconciled.widgets_attached
    stats["fields_renamed"] = len(reconciled.names_renamed)
    return stats


def _summarize(stats: dict[str, Any]) -> list[str]:
    messages = []
    for key, message in _REPAIR_MESSAGES:
        count = stats.get(key, 0)
        if count > 0:
            messages.append(f"{count} {message}")
    return messages


def repair_pdf(
    input_path: Path,
    output_path: Path,
    *,
    use_remote: bool = True,
    remote_config: RemoteConfig | None = None,
) -> RepairResult:
    """Repairs a PDF file and writes the result.

    If remote conversion is enabled and configured, the input is first
    converted by the service; the local repair always runs afterwards,
    on the converted bytes if the conversion succeeded and on the
    original input otherwise. Encryption is removed on save.

    Args:
        input_path: Path to the input PDF.
        output_path: Path for the repaired PDF (may equal input_path).
        use_remote: If False, the remote service is never contacted.
        remote_config: Service configuration; read from the environment
            if None.

    Returns:
        RepairResult with status and details.

    Raises:
        RepairError: If the document cannot be loaded, repaired or saved.
    """
    start_time = time.perf_counter()
    logger.info("Starting repair: %s -> %s", input_path, output_path)

    try:
        data = input_path.read_bytes()
    except OSError as e:
        raise RepairError(f"Cannot read input: {e}") from e

    converted_remotely = False
    if use_remote:
        converted = try_remote_convert(data, remote_config)
        if converted is not None:
            data = converted
            converted_remotely = True

    try:
        with pikepdf.open(BytesIO(data)) as pdf:
            was_encrypted = pdf.is_encrypted
            if was_encrypted:
                logger.info("Removing document security")

            stats = repair_document(pdf)
            stats["encryption_removed"] = was_encrypted

            output_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Saving repaired PDF: %s", output_path)
            pdf.save(output_path, encryption=False)

    except pikepdf.PasswordError as e:
        error_msg = f"PDF requires a password to open: {input_path}"
        logger.error(error_msg)
        raise RepairError(error_msg) from e

    except pikepdf.PdfError as e:
        error_msg = f"PDF processing error: {e}"
        logger.error(error_msg)
        raise RepairError(error_msg) from e

    except OSError as e:
        error_msg = f"Cannot write output: {e}"
        logger.error(error_msg)
        raise RepairError(error_msg) from e

    processing_time = time.perf_counter() - start_time
    messages = _summarize(stats)
    if stats["encryption_removed"]:
        messages.append("document security removed")

    logger.info("Repair successful: %s (%.2f seconds)", output_path, processing_time)

    return RepairResult(
        success=True,
        input_path=input_path,
        output_path=output_path,
        converted_remotely=converted_remotely,
        stats=stats,
        messages=messages,
        processing_time=processing_time,
    )


def repair_directory(
    input_dir: Path,
    output_dir: Path | None = None,
    *,
    recursive: bool = False,
    show_progress: bool = True,
    use_remote: bool = True,
    remote_config: RemoteConfig | None = None,
) -> list[RepairResult]:
    """Repairs all PDFs in a directory.

    Files whose stem already ends in ``_clean`` are skipped when the
    output goes to the input directory. A failure on one file is recorded
    in its result and does not stop the others.

    Args:
        input_dir: Input directory with PDF files.
        output_dir: Optional output directory. If None, files are saved
            next to their inputs.
        recursive: If True, subdirectories are included.
        show_progress: If True, a progress bar is shown.
        use_remote: If False, the remote service is never contacted.
        remote_config: Service configuration; read from the environment
            if None.

    Returns:
        List of RepairResult for all processed files.

    Raises:
        RepairError: If the input directory does not exist.
    """
    if not input_dir.is_dir():
        raise RepairError(f"Directory does not exist: {input_dir}")

    pattern = "**/*.pdf" if recursive else "*.pdf"
    pdf_files = sorted(input_dir.glob(pattern))
    if output_dir is None:
        pdf_files = [p for p in pdf_files if not p.stem.endswith(OUTPUT_SUFFIX)]

    if not pdf_files:
        logger.warning("No PDF files found in: %s", input_dir)
        return []

    logger.info(
        "Found: %d PDF file(s) in %s%s",
        len(pdf_files),
        input_dir,
        " (recursive)" if recursive else "",
    )

    if remote_config is None and use_remote:
        remote_config = RemoteConfig.from_env()
    use_remote = use_remote and remote_config is not None

    file_pairs: list[tuple[Path, Path]] = []
    for pdf_file in pdf_files:
        if output_dir is not None:
            rel_parent = pdf_file.relative_to(input_dir).parent
            out_path = generate_output_path(pdf_file, output_dir / rel_parent)
        else:
            out_path = generate_output_path(pdf_file)
        file_pairs.append((pdf_file, out_path))

    results: list[RepairResult] = []
    for input_path, output_path in tqdm(
        file_pairs,
        desc="Repairing",
        unit="file",
        ncols=80,
        disable=not show_progress,
    ):
        try:
            results.append(
                repair_pdf(
                    input_path,
                    output_path,
                    use_remote=use_remote,
                    remote_config=remote_config,
                )
            )
        except RepairError as e:
            logger.error("Error for %s: %s", input_path.name, e)
            results.append(
                RepairResult(
                    success=False,
                    input_path=input_path,
                    output_path=output_path,
                    error=str(e),
                )
            )

    successful = sum(1 for r in results if r.success)
    logger.info(
        "Directory repair completed: %d successful, %d failed",
        successful,
        len(results) - successful,
    )
    return results


def list_fields(input_path: Path) -> list[str] | None:
    """Lists the terminal field names of a PDF without modifying it.

    Args:
        input_path: Path to the PDF.

    Returns:
        List of partial names, or None if the PDF has no AcroForm.

    Raises:
        RepairError: If the PDF cannot be opened.
    """
    try:
        with pikepdf.open(input_path) as pdf:
            return list_terminal_fields(pdf)
    except pikepdf.PasswordError as e:
        raise RepairError(f"PDF requires a password to open: {input_path}") from e
    except pikepdf.PdfError as e:
        raise RepairError(f"PDF processing error: {e}") from e
