"""Tests for opening items in an editor."""

from pathlib import Path

import pytest

from deadwood import editors
from deadwood.editors import Editor, EditorLaunchError, editor_command, open_in_editor

FILE = Path("/work/App/Sources/Util.swift")


class TestEditorCommand:
    """Tests for editor_command function."""

    @pytest.mark.parametrize(
        "editor,expected",
        [
            (Editor.XCODE, ["xed", "-l", "12", "/work/App/Sources/Util.swift"]),
            (Editor.ZED, ["zed", "/work/App/Sources/Util.swift:12"]),
            (Editor.CODE, ["code", "-g", "/work/App/Sources/Util.swift:12"]),
        ],
    )
    def test_command_per_editor(self, editor, expected):
        """Each editor should get its own line syntax."""
        assert editor_command(editor, FILE, 12) == expected


class TestOpenInEditor:
    """Tests for open_in_editor function."""

    def test_missing_executable(self, monkeypatch):
        """A missing editor should raise EditorLaunchError."""
        monkeypatch.setattr(editors.shutil, "which", lambda name: None)

        with pytest.raises(EditorLaunchError, match="zed not found"):
            open_in_editor(FILE, 3, Editor.ZED)

    def test_launches_without_waiting(self, monkeypatch):
        """The editor process should be started with the clamped line."""
        launched = []
        monkeypatch.setattr(editors.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(
            editors.subprocess, "Popen", lambda command, **kwargs: launched.append(command)
        )

        open_in_editor(FILE, 0, Editor.CODE)

        assert launched == [["code", "-g", "/work/App/Sources/Util.swift:1"]]

    def test_start_failure(self, monkeypatch):
        """An OSError from the launch should become EditorLaunchError."""

        def fail(command, **kwargs):
            raise OSError("permission denied")

        monkeypatch.setattr(editors.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(editors.subprocess, "Popen", fail)

        with pytest.raises(EditorLaunchError, match="Could not start xed"):
            open_in_editor(FILE, 5)
