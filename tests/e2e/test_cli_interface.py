"""End-to-end tests for the command-line interface.

Each test drives the Typer app against a temporary SQLite file.
"""

import pytest
import typer.testing

from taskflow.cli import app


runner = typer.testing.CliRunner()


@pytest.fixture
def invoke(db_path):
    """Run a CLI command against the temporary database."""

    def _invoke(*args):
        return runner.invoke(app, ["--db", str(db_path), *args])

    return _invoke


@pytest.fixture
def family(invoke):
    """Create task 1 with sub-tasks 2 and 3."""
    assert invoke("add", "Plan trip", "--due", "2024-06-01").exit_code == 0
    assert invoke("add", "Book flights", "--parent", "1").exit_code == 0
    assert invoke("add", "Reserve hotel", "--parent", "1").exit_code == 0


class TestBasicCommands:
    """Test creating and listing tasks."""

    def test_init_creates_database(self, invoke, db_path):
        """Test init creates the database file."""
        result = invoke("init")

        assert result.exit_code == 0
        assert "Task database ready" in result.output
        assert db_path.exists()

    def test_add_and_list(self, invoke):
        """Test a created task shows up in the list."""
        result = invoke("add", "Write report", "-d", "Quarterly numbers")
        assert result.exit_code == 0
        assert "Task 1 created" in result.output

        result = invoke("list")
        assert result.exit_code == 0
        assert "Write report" in result.output
        assert "Todo" in result.output

    def test_empty_list(self, invoke):
        """Test an empty store prints a notice."""
        result = invoke("list")
        assert result.exit_code == 0
        assert "No tasks found" in result.output

    def test_subtasks_hidden_unless_all_types(self, invoke, family):
        """Test the default list shows top-level tasks only."""
        default = invoke("list")
        everything = invoke("list", "--all-types")

        assert "Plan trip" in default.output
        assert "Book flights" not in default.output
        assert "Book flights" in everything.output

    def test_list_search(self, invoke):
        """Test list --search filters case-insensitively."""
        invoke("add", "Buy milk")
        invoke("add", "Call plumber")

        result = invoke("list", "--search", "MILK")

        assert "Buy milk" in result.output
        assert "Call plumber" not in result.output

    def test_add_subtask_of_missing_parent(self, invoke):
        """Test validation errors exit with code 1."""
        result = invoke("add", "Orphan", "--parent", "9")

        assert result.exit_code == 1
        assert "Parent task 9 does not exist" in result.output

    def test_add_invalid_due_date(self, invoke):
        """Test an unparseable due date is a usage error."""
        result = invoke("add", "Someday", "--due", "next week")
        assert result.exit_code == 2


class TestStatusCommand:
    """Test status transitions through the CLI."""

    def test_set_status(self, invoke):
        """Test statuses can be given in any case."""
        invoke("add", "Refactor")

        result = invoke("status", "1", "in progress")

        assert result.exit_code == 0
        assert "now In Progress" in result.output

    def test_unknown_status(self, invoke):
        """Test an unknown status is a usage error."""
        invoke("add", "Refactor")
        result = invoke("status", "1", "Blocked")
        assert result.exit_code == 2

    def test_unknown_task(self, invoke):
        """Test a missing id exits with code 1."""
        result = invoke("status", "7", "Review")

        assert result.exit_code == 1
        assert "Task 7 does not exist" in result.output

    def test_completion_constraint(self, invoke, family):
        """Test a parent cannot complete before its sub-tasks."""
        blocked = invoke("status", "1", "Completed")
        assert blocked.exit_code == 1
        assert "Cannot complete task 1" in blocked.output

        assert invoke("status", "2", "Completed").exit_code == 0
        assert invoke("status", "3", "completed").exit_code == 0
        assert invoke("status", "1", "Completed").exit_code == 0

        completed = invoke("list", "--completed")
        active = invoke("list", "--active")
        assert "Plan trip" in completed.output
        assert "No tasks found" in active.output

    def test_list_hides_completed_by_default(self, invoke):
        """Test completed tasks need --all, --completed or --status to show."""
        invoke("add", "Water plants")
        invoke("add", "Pay rent")
        assert invoke("status", "2", "Completed").exit_code == 0

        default = invoke("list")
        assert "Water plants" in default.output
        assert "Pay rent" not in default.output

        assert "Pay rent" in invoke("list", "--all").output
        assert "Pay rent" in invoke("list", "--status", "Completed").output


class TestShowAndDelete:
    """Test task details and cascading deletes."""

    def test_show_with_subtasks(self, invoke, family):
        """Test show prints the task and its sub-tasks."""
        invoke("status", "2", "Completed")
        invoke("status", "3", "Completed")

        result = invoke("show", "1")

        assert result.exit_code == 0
        assert "Plan trip" in result.output
        assert "2024-06-01" in result.output
        assert "Book flights" in result.output
        assert "All sub-tasks completed" in result.output

    def test_show_missing(self, invoke):
        """Test show of an unknown id exits with code 1."""
        result = invoke("show", "5")

        assert result.exit_code == 1
        assert "Task 5 not found" in result.output

    def test_delete_cascades(self, invoke, family):
        """Test deleting a parent removes its sub-tasks."""
        result = invoke("delete", "1")
        assert result.exit_code == 0

        assert invoke("show", "2").exit_code == 1
        assert "No tasks found" in invoke("list", "--all-types").output

    def test_delete_missing_is_ok(self, invoke):
        """Test deleting an unknown id succeeds quietly."""
        assert invoke("delete", "99").exit_code == 0


class TestBackupCommands:
    """Test export and import."""

    def test_export_to_stdout(self, invoke, family):
        """Test export without --output prints the document."""
        result = invoke("export")

        assert result.exit_code == 0
        assert "id,title,description,dueDate,status,type,parentId,createdAt" in (
            result.output
        )
        assert "2,Book flights,,,Todo,sub-task,1," in result.output

    def test_export_import_between_databases(self, invoke, family, tmp_path):
        """Test a backup file restores into another database."""
        backup = tmp_path / "backup.csv"
        exported = invoke("export", "--output", str(backup))
        assert exported.exit_code == 0
        assert "Exported 3 task(s)" in exported.output

        other_db = tmp_path / "other.sqlite3"
        imported = runner.invoke(app, ["--db", str(other_db), "import", str(backup)])
        assert imported.exit_code == 0
        assert "Imported 3 task(s)" in imported.output

        listed = runner.invoke(app, ["--db", str(other_db), "show", "1"])
        assert "Plan trip" in listed.output
        assert "Reserve hotel" in listed.output

    def test_import_malformed_file(self, invoke, tmp_path):
        """Test a malformed row aborts the import with code 1."""
        backup = tmp_path / "broken.csv"
        backup.write_text(
            "id,title,description,dueDate,status,type,parentId,createdAt\n"
            "1,Too,few\n",
            encoding="utf-8",
        )

        result = invoke("import", str(backup))

        assert result.exit_code == 1
        assert "line 2" in result.output
        assert "No tasks found" in invoke("list").output

    def test_import_missing_file(self, invoke, tmp_path):
        """Test an unreadable file exits with code 1."""
        result = invoke("import", str(tmp_path / "nope.csv"))

        assert result.exit_code == 1
        assert "Cannot read" in result.output
