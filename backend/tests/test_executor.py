"""
Tests for executor.py - tool-call validation and application.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from executor import apply_tool_call
from conftest import make_task


@pytest.fixture
def tasks():
    return [
        make_task("buy milk", priority="low", tags=["groceries"]),
        make_task("morning run", done=True),
        make_task("write report", time="10:00"),
    ]


class TestPayloadShape:
    """Tests for payloads that are not a usable action."""

    @pytest.mark.parametrize("payload", [None, "create", 5, [], ["create"], {}, {"action": ""}])
    def test_not_an_action_object(self, payload, tasks):
        """Test that non-object payloads are rejected."""
        result = apply_tool_call(payload, tasks)
        assert result.ok is False
        assert result.message == "Invalid tool payload."
        assert result.tasks is None

    def test_unknown_action_is_named(self, tasks):
        """Test that an unknown action is reported by name."""
        result = apply_tool_call({"action": "archive"}, tasks)
        assert result.ok is False
        assert result.message == "Unknown action: archive"

    def test_input_list_is_never_modified(self, tasks):
        """Test that the caller's list is left untouched."""
        before = [t.model_dump() for t in tasks]
        apply_tool_call({"action": "delete", "match": {"text": "milk"}}, tasks)
        apply_tool_call({"action": "complete", "match": {"text": "report"}}, tasks)
        assert [t.model_dump() for t in tasks] == before


class TestCreate:
    """Tests for the create action."""

    def test_create_with_defaults(self, tasks):
        """Test that missing fields take their defaults."""
        result = apply_tool_call({"action": "create", "task": {"text": "  call mom "}}, tasks)

        assert result.ok is True
        assert result.message == "Added: call mom"
        new = result.tasks[0]
        assert new.text == "call mom"
        assert new.priority == "med"
        assert new.tags == []
        assert new.notes == ""
        assert new.time == ""
        assert new.done is False
        assert result.tasks[1:] == tasks
        assert result.celebrate is False

    def test_create_sanitizes_fields(self, tasks):
        """Test that invalid fields are dropped, not rejected."""
        result = apply_tool_call({
            "action": "create",
            "task": {
                "text": "stretch",
                "priority": "urgent",
                "tags": ["health", 3, None, "", {"x": 1}],
                "done": "yes",
                "extra": "ignored",
            },
            "message": "Stretch added.",
        }, tasks)

        new = result.tasks[0]
        assert result.message == "Stretch added."
        assert new.priority == "med"
        assert new.tags == ["health", "3"]
        assert new.done is False

    def test_create_done_signals_celebration(self, tasks):
        """Test that creating a done task celebrates."""
        result = apply_tool_call({"action": "create", "task": {"text": "inbox zero", "done": True}}, tasks)
        assert result.tasks[0].done is True
        assert result.celebrate is True

    @pytest.mark.parametrize("task", [{}, {"text": ""}, {"text": "   "}, {"text": 42}, "buy milk", None])
    def test_create_requires_text(self, task, tasks):
        """Test that create needs non-blank text."""
        result = apply_tool_call({"action": "create", "task": task}, tasks)
        assert result.ok is False
        assert result.message == 'Create failed: "task.text" is required.'
        assert result.tasks is None

    def test_create_without_task_object(self, tasks):
        """Test create with no task object at all."""
        result = apply_tool_call({"action": "create"}, tasks)
        assert result.ok is False
        assert "task.text" in result.message


class TestUpdate:
    """Tests for the update action."""

    def test_invalid_priority_dropped(self, tasks):
        """Prefix match resolves; bad priority is ignored but the update still succeeds."""
        result = apply_tool_call(
            {"action": "update", "match": {"text": "mil"}, "changes": {"priority": "xx"}}, tasks
        )
        assert result.ok is True
        assert result.message == "Updated: buy milk"
        assert result.tasks[0].priority == "low"
        assert result.tasks[0].id == tasks[0].id

    def test_sparse_patch(self, tasks):
        """Test that only the given fields change."""
        result = apply_tool_call({
            "action": "update",
            "match": {"text": "write report"},
            "changes": {"time": "14:30", "notes": " bring charts ", "tags": ["work"], "done": "no"},
        }, tasks)

        updated = result.tasks[2]
        assert updated.time == "14:30"
        assert updated.notes == "bring charts"
        assert updated.tags == ["work"]
        assert updated.done is False
        assert updated.text == "write report"
        assert updated.created_at == tasks[2].created_at
        assert result.celebrate is False

    def test_bad_time_and_blank_text_dropped(self, tasks):
        """Test that an invalid time and a blank title are ignored."""
        result = apply_tool_call({
            "action": "update",
            "match": {"text": "report"},
            "changes": {"time": "5pm", "text": "  "},
        }, tasks)
        assert result.ok is True
        assert result.tasks[2].time == "10:00"
        assert result.tasks[2].text == "write report"

    def test_update_done_true_celebrates(self, tasks):
        """Test that setting done celebrates."""
        result = apply_tool_call(
            {"action": "update", "match": {"text": "milk"}, "changes": {"done": True}}, tasks
        )
        assert result.tasks[0].done is True
        assert result.celebrate is True

    def test_update_requires_match_text(self, tasks):
        """Test update without match.text."""
        result = apply_tool_call({"action": "update", "changes": {"priority": "high"}}, tasks)
        assert result.ok is False
        assert result.message == 'Update failed: "match.text" is required.'


class TestMatchFailures:
    """Tests for match failures shared by the matching actions."""

    @pytest.mark.parametrize("action", ["update", "delete", "complete", "uncomplete"])
    def test_no_match_leaves_list_alone(self, action, tasks):
        """Test that an unmatched query changes nothing."""
        before = [t.model_dump() for t in tasks]
        result = apply_tool_call({"action": action, "match": {"text": "taxes"}, "changes": {"done": True}}, tasks)

        assert result.ok is False
        assert result.message == f'{action.capitalize()} failed: No task found for "taxes".'
        assert result.tasks is None
        assert [t.model_dump() for t in tasks] == before

    @pytest.mark.parametrize("action", ["delete", "complete", "uncomplete"])
    def test_match_text_required(self, action, tasks):
        """Test that match must be an object with text."""
        result = apply_tool_call({"action": action, "match": "milk"}, tasks)
        assert result.ok is False
        assert '"match.text" is required' in result.message


class TestDeleteCompleteUncomplete:
    """Tests for delete, complete and uncomplete."""

    def test_delete_removes_by_identity(self, tasks):
        """Test that only the matched task is removed, not its twin."""
        twin = make_task("buy milk")
        result = apply_tool_call({"action": "delete", "match": {"text": "buy milk"}}, [*tasks, twin])

        assert result.ok is True
        assert result.message == "Deleted: buy milk"
        assert [t.id for t in result.tasks] == [tasks[1].id, tasks[2].id, twin.id]

    def test_complete(self, tasks):
        """Test marking a task done."""
        result = apply_tool_call({"action": "complete", "match": {"text": "report"}}, tasks)
        assert result.ok is True
        assert result.message == "Marked done: write report"
        assert result.tasks[2].done is True
        assert result.celebrate is True

    def test_complete_is_idempotent(self, tasks):
        """Test completing a task that is already done."""
        result = apply_tool_call({"action": "complete", "match": {"text": "run"}, "message": "Nice!"}, tasks)
        assert result.ok is True
        assert result.message == "Already done: morning run"
        assert result.tasks is None
        assert result.celebrate is False

    def test_uncomplete(self, tasks):
        """Test marking a task not done."""
        result = apply_tool_call({"action": "uncomplete", "match": {"text": "morning"}}, tasks)
        assert result.ok is True
        assert result.message == "Marked not done: morning run"
        assert result.tasks[1].done is False
        assert result.celebrate is False

    def test_uncomplete_already_active(self, tasks):
        """Test uncompleting a task that is not done."""
        result = apply_tool_call({"action": "uncomplete", "match": {"text": "milk"}}, tasks)
        assert result.ok is True
        assert result.message == "Already active: buy milk"
        assert result.tasks is None


class TestSwitchDate:
    """Tests for the switch_date action."""

    def test_switch_date(self, tasks):
        """Test switching to a valid date."""
        result = apply_tool_call({"action": "switch_date", "date": "2025-10-01"}, tasks)
        assert result.ok is True
        assert result.date == "2025-10-01"
        assert result.message == "Switched to 2025-10-01."
        assert result.tasks is None

    def test_shape_only_check(self, tasks):
        """Test that the date is checked for shape only."""
        result = apply_tool_call({"action": "switch_date", "date": "2025-02-30"}, tasks)
        assert result.ok is True
        assert result.date == "2025-02-30"

    @pytest.mark.parametrize("date", [None, "", "tomorrow", "2025-9-1", "2025/09/01", 20250901, "٢٠٢٥-٠٩-٢٨"])
    def test_bad_date(self, date, tasks):
        """Test dates that are not YYYY-MM-DD with ASCII digits."""
        result = apply_tool_call({"action": "switch_date", "date": date}, tasks)
        assert result.ok is False
        assert result.message == 'Switch failed: "date" must be YYYY-MM-DD.'
        assert result.date is None
