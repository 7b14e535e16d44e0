"""Tests for the exclusion module."""

from pathlib import Path

from deadwood.exclusion import DEFAULT_EXCLUDES, FileExcluder


class TestDefaultExcludes:
    """Tests for default exclusion patterns."""

    def test_default_excludes_list(self) -> None:
        """Verify DEFAULT_EXCLUDES contains expected patterns."""
        assert ".build" in DEFAULT_EXCLUDES
        assert "DerivedData" in DEFAULT_EXCLUDES
        assert "Pods" in DEFAULT_EXCLUDES
        assert ".deadwood" in DEFAULT_EXCLUDES

    def test_excludes_build_products(self, tmp_path: Path) -> None:
        """Should exclude SwiftPM build output and checkouts."""
        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / ".build" / "checkouts" / "Lib" / "A.swift")
        assert excluder.should_exclude(tmp_path / "Pods" / "Alamofire" / "Request.swift")

    def test_does_not_exclude_source_files(self, tmp_path: Path) -> None:
        """Should not exclude normal source files."""
        excluder = FileExcluder(tmp_path)

        assert not excluder.should_exclude(tmp_path / "Sources" / "App" / "Model.swift")
        assert not excluder.should_exclude(tmp_path / "main.swift")


class TestGitignore:
    """Tests for .gitignore handling."""

    def test_respects_gitignore(self, tmp_path: Path) -> None:
        """Should exclude files listed in .gitignore."""
        (tmp_path / ".gitignore").write_text("# generated\nGenerated/\n*.generated.swift\n")

        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / "Generated" / "Assets.swift")
        assert excluder.should_exclude(tmp_path / "Sources" / "R.generated.swift")
        assert not excluder.should_exclude(tmp_path / "Sources" / "R.swift")
        assert str(tmp_path / ".gitignore") in excluder.sources

    def test_config_excludes(self, tmp_path: Path) -> None:
        """Extra patterns from config should be honoured."""
        excluder = FileExcluder(tmp_path, config={"analysis": {"exclude": ["Vendor/"]}})

        assert excluder.should_exclude(tmp_path / "Vendor" / "Lib.swift")
        assert "Vendor/" in excluder.patterns

    def test_pyproject_excludes(self, tmp_path: Path) -> None:
        """Should read exclude patterns from [tool.deadwood]."""
        (tmp_path / "pyproject.toml").write_text('[tool.deadwood]\nexclude = ["Legacy/"]\n')

        excluder = FileExcluder(tmp_path)

        assert excluder.should_exclude(tmp_path / "Legacy" / "Old.swift")


class TestTestFiles:
    """Tests for test-file detection and partitioning."""

    def test_default_test_patterns(self, tmp_path: Path) -> None:
        """Test targets and *Tests.swift files are tests."""
        excluder = FileExcluder(tmp_path)

        assert excluder.is_test_file(tmp_path / "Tests" / "AppTests" / "ModelTests.swift")
        assert excluder.is_test_file(tmp_path / "Sources" / "LoginSpec.swift")
        assert not excluder.is_test_file(tmp_path / "Sources" / "Testing.swift")

    def test_partition(self, tmp_path: Path) -> None:
        """Tests should be split off and build output dropped."""
        files = [
            tmp_path / "Sources" / "Model.swift",
            tmp_path / "Tests" / "ModelTests.swift",
            tmp_path / ".build" / "Gen.swift",
        ]

        kept, tests = FileExcluder(tmp_path).partition(files)

        assert kept == [files[0]]
        assert tests == [files[1]]

    def test_include_tests(self, tmp_path: Path) -> None:
        """With include_tests, test files are analyzed like any other."""
        files = [tmp_path / "Sources" / "Model.swift", tmp_path / "Tests" / "ModelTests.swift"]

        kept, tests = FileExcluder(tmp_path, include_tests=True).partition(files)

        assert kept == files
        assert tests == []

    def test_custom_test_patterns(self, tmp_path: Path) -> None:
        """Test patterns should come from config when given."""
        excluder = FileExcluder(tmp_path, config={"analysis": {"test_patterns": ["Checks/"]}})

        assert excluder.is_test_file(tmp_path / "Checks" / "A.swift")
        assert not excluder.is_test_file(tmp_path / "Tests" / "A.swift")
