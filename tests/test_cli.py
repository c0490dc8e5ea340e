"""Tests for the cms-schema CLI.

Rich output is captured by swapping the module console for one writing
to a StringIO; database commands patch connect_and_validate().
"""

from io import StringIO
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from cms_schema.cli import main
from cms_schema.schema.models import ColumnDiff, ConnectionResult, SchemaValidationResult


@pytest.fixture
def output(tmp_path: Path, monkeypatch) -> StringIO:
    """Run from an empty directory and capture rich console output."""
    monkeypatch.chdir(tmp_path)
    buffer = StringIO()
    with patch("cms_schema.cli.console", Console(file=buffer, width=200)):
        yield buffer


class TestSchemaCommands:
    def test_routes_in_mount_order(self, output: StringIO) -> None:
        assert main(["routes"]) == 0
        text = output.getvalue()
        assert "/api/categories-to-posts" in text
        positions = [text.index(f"/api/{r}") for r in ("users", "posts", "comments", "profiles")]
        assert positions == sorted(positions)

    def test_routes_use_configured_prefix(self, output: StringIO, tmp_path: Path) -> None:
        (tmp_path / "cms.toml").write_text('[api]\nprefix = "/v2/"\n')
        assert main(["routes"]) == 0
        assert "/v2/posts" in output.getvalue()

    def test_tables_single(self, output: StringIO) -> None:
        assert main(["tables", "categoriesToPosts"]) == 0
        text = output.getvalue()
        assert "posts.id" in text
        assert "categories.id" in text
        assert "createdOn" in text

    def test_tables_shows_indexes_and_choices(self, output: StringIO) -> None:
        assert main(["tables"]) == 0
        text = output.getvalue()
        assert "commentsPostIdIndex (postId)" in text
        assert "admin | user" in text

    def test_tables_unknown(self, output: StringIO) -> None:
        assert main(["tables", "nonexistent"]) == 1
        assert "Unknown entity: nonexistent" in output.getvalue()

    def test_relations_for_entity(self, output: StringIO) -> None:
        assert main(["relations", "posts"]) == 0
        text = output.getvalue()
        assert "posts.categories" in text
        assert "via categoriesToPosts" in text
        assert "users.posts" not in text

    def test_relations_unknown(self, output: StringIO) -> None:
        assert main(["relations", "nonexistent"]) == 1

    def test_ddl(self, output: StringIO, capsys) -> None:
        assert main(["ddl"]) == 0
        out = capsys.readouterr().out
        assert 'CREATE TABLE "categoriesToPosts"' in out
        assert 'PRIMARY KEY ("postId", "categoryId")' in out
        assert out.count(";") == 9

    def test_ddl_rejects_unknown_dialect(self, output: StringIO) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["ddl", "--dialect", "oracle"])
        assert exc_info.value.code == 2

    def test_command_required(self, output: StringIO) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2


class TestDatabaseCommands:
    def test_connect_success(self, output: StringIO) -> None:
        result = ConnectionResult(
            success=True,
            profile_name="local",
            schema_valid=True,
            schema_report=SchemaValidationResult(valid=True, extra_tables=["legacy"]),
        )
        with patch("cms_schema.cli.connect_and_validate", new=AsyncMock(return_value=result)) as mock_cv:
            assert main(["--env-prefix", "BLOG_", "connect"]) == 0

        mock_cv.assert_awaited_once_with(env_prefix="BLOG_")
        text = output.getvalue()
        assert "Connected to profile: local" in text
        assert "PASSED" in text
        assert "legacy" in text

    def test_connect_reports_switch(self, output: StringIO) -> None:
        result = ConnectionResult(success=True, profile_name="prod")
        with patch("cms_schema.cli.read_profile_lock", return_value="local"), \
             patch("cms_schema.cli.connect_and_validate", new=AsyncMock(return_value=result)):
            assert main(["connect"]) == 0
        assert "Switched from local to prod" in output.getvalue()

    def test_connect_failure_prints_report(self, output: StringIO) -> None:
        report = SchemaValidationResult(
            valid=False,
            missing_columns=[ColumnDiff(table="posts", column="userId")],
        )
        result = ConnectionResult(
            success=False,
            profile_name="local",
            schema_valid=False,
            schema_report=report,
            error="Schema validation failed: 1 errors",
        )
        with patch("cms_schema.cli.connect_and_validate", new=AsyncMock(return_value=result)):
            assert main(["connect"]) == 1
        text = output.getvalue()
        assert "Schema validation failed: 1 errors" in text
        assert "posts.userId" in text

    def test_validate_without_lock(self, output: StringIO) -> None:
        with patch("cms_schema.cli.read_profile_lock", return_value=None):
            assert main(["validate"]) == 1
        assert "No validated profile" in output.getvalue()

    def test_validate_uses_locked_profile(self, output: StringIO) -> None:
        result = ConnectionResult(success=True, profile_name="local", schema_valid=True)
        with patch("cms_schema.cli.read_profile_lock", return_value="local"), \
             patch("cms_schema.cli.connect_and_validate", new=AsyncMock(return_value=result)) as mock_cv:
            assert main(["validate"]) == 0

        mock_cv.assert_awaited_once_with(profile_name="local", env_prefix="", validate_only=True)
        assert "Schema is valid" in output.getvalue()

    def test_validate_drift(self, output: StringIO) -> None:
        result = ConnectionResult(success=False, profile_name="local", error="Failed to connect")
        with patch("cms_schema.cli.read_profile_lock", return_value="local"), \
             patch("cms_schema.cli.connect_and_validate", new=AsyncMock(return_value=result)):
            assert main(["validate"]) == 1
        text = output.getvalue()
        assert "Schema has drifted" in text
        assert "Failed to connect" in text
