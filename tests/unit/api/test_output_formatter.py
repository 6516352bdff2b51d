"""Tests for HandoffConsole rendering of progress updates."""

from datetime import datetime

from rich.console import Console

from handoff.api.cli.output_formatter import HandoffConsole
from handoff.application.orchestrator import ProgressUpdate


def make_console(debug=False):
    rich_console = Console(record=True, width=120, highlight=False)
    return HandoffConsole(debug=debug, console=rich_console), rich_console


def update(event_type, message="", **details):
    return ProgressUpdate(timestamp=datetime.now(), event_type=event_type, message=message, details=details)


class TestHandleProgress:
    def test_outbox_ready_shows_file_name_and_steps(self):
        console, rich_console = make_console()

        console.handle_progress(update("outbox_ready", "ready", path="/tmp/outbox/abc_seq0001.txt"))

        text = rich_console.export_text()
        assert "abc_seq0001.txt" in text
        assert "Paste into your LLM chat" in text

    def test_result_lines(self):
        console, rich_console = make_console()

        console.handle_progress(
            update("result", success=True, command_type="CREATE_FILE", summary="Created 'a.py'")
        )
        console.handle_progress(
            update("result", success=False, command_type="PARSE_ERROR", summary="DONE missing closing tag")
        )

        text = rich_console.export_text()
        assert "[OK] CREATE_FILE: Created 'a.py'" in text
        assert "[FAIL] PARSE_ERROR: DONE missing closing tag" in text

    def test_agent_text_is_not_treated_as_markup(self):
        console, rich_console = make_console()

        console.handle_progress(update("message", "Use [CREATE_FILE path=\"x\"] then [/CREATE_FILE]"))

        assert '[CREATE_FILE path="x"] then [/CREATE_FILE]' in rich_console.export_text()

    def test_output_shown_only_in_debug(self):
        quiet, quiet_console = make_console(debug=False)
        loud, loud_console = make_console(debug=True)
        result = update("result", success=True, command_type="RUN_COMMAND", summary="Ran", output="hello-output")

        quiet.handle_progress(result)
        loud.handle_progress(result)

        assert "hello-output" not in quiet_console.export_text()
        assert "hello-output" in loud_console.export_text()

    def test_complete(self):
        console, rich_console = make_console()

        console.handle_progress(update("complete", "Built the app"))

        text = rich_console.export_text()
        assert "Task complete!" in text
        assert "Built the app" in text
