"""Open a file at a line in an external editor."""

import logging
import shutil
import subprocess
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class Editor(Enum):
    """Supported editors."""

    XCODE = "xcode"
    ZED = "zed"
    CODE = "code"


class EditorLaunchError(RuntimeError):
    """Raised when an editor cannot be started."""


def editor_command(editor: Editor, file_path: Path, line: int) -> list[str]:
    """Command line that opens file_path at line."""
    if editor is Editor.XCODE:
        return ["xed", "-l", str(line), str(file_path)]
    if editor is Editor.ZED:
        return ["zed", f"{file_path}:{line}"]
    return ["code", "-g", f"{file_path}:{line}"]


def open_in_editor(file_path: Path, line: int, editor: Editor = Editor.XCODE) -> None:
    """Launch the editor without waiting for it.

    Raises EditorLaunchError if the executable is missing or fails to start.
    """
    command = editor_command(editor, file_path, max(line, 1))
    if shutil.which(command[0]) is None:
        raise EditorLaunchError(f"{command[0]} not found on PATH")
    try:
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as e:
        raise EditorLaunchError(f"Could not start {command[0]}: {e}") from e
    logger.debug("Launched %s", " ".join(command))
