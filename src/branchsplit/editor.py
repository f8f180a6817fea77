"""Hand a plan to the user's editor and read back their changes."""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Mapping

from branchsplit.codec import decode_plan, encode_plan
from branchsplit.errors import EditorError
from branchsplit.models import SplitPlan


LOG = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"
TEMP_PREFIX = "split-config-"
TEMP_SUFFIX = ".yaml"


def resolve_editor_command(environ: Mapping[str, str] | None = None) -> list[str]:
    """
    Build the editor command from ``$EDITOR``.

    The value is split on whitespace so that extra arguments such as
    ``code -w`` survive. Falls back to ``vi`` when unset or blank.
    """
    env = os.environ if environ is None else environ
    parts = env.get("EDITOR", "").split()
    return parts or [DEFAULT_EDITOR]


def _write_temp(text: str) -> Path:
    try:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX)
    except OSError as e:
        raise EditorError(f"Failed to create temporary plan file: {e}")

    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        _remove_temp(path)
        raise EditorError(f"Failed to write temporary plan file {path}: {e}")

    return path


def _remove_temp(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        LOG.warning("Could not remove temporary plan file %s: %s", path, e)


def open_editor(file_path: Path, command: list[str]) -> None:
    """Open the file in an editor and wait for it to close."""
    cmd = [*command, str(file_path)]
    LOG.debug("Launching editor: %s", " ".join(cmd))

    try:
        # Inherits the terminal; blocks until the editor exits
        result = subprocess.run(cmd, check=False)
    except OSError as e:
        raise EditorError(f"Failed to launch editor {command[0]!r}: {e}")

    if result.returncode != 0:
        raise EditorError(f"Editor {command[0]!r} exited with code {result.returncode}")


def edit_text(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Let the user edit ``text`` in a temporary file and return the result."""
    command = resolve_editor_command(environ)
    path = _write_temp(text)

    try:
        open_editor(path, command)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EditorError(f"Failed to read edited plan {path}: {e}")
    finally:
        _remove_temp(path)


def edit_plan(plan: SplitPlan, environ: Mapping[str, str] | None = None) -> SplitPlan:
    """Round-trip a plan through the user's editor."""
    edited = edit_text(encode_plan(plan), environ)
    return decode_plan(edited)
