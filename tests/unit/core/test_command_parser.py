"""
Unit tests for the command parser.

Tests verify:
- Every command kind is recognized with its attributes and body
- Bodies are verbatim for file commands and trimmed for the others
- Malformed input becomes ParseErrorCommand entries instead of raising
- Text outside command blocks is ignored and order is preserved
"""

import pytest

from handoff.core.domain.command_parser import parse
from handoff.core.domain.commands import (
    CreateFileCommand,
    DeleteFileCommand,
    DoneCommand,
    EditFileCommand,
    MessageCommand,
    ParseErrorCommand,
    ReadFileCommand,
    RunCommand,
)


class TestCommandParser:
    """Test suite for parse()."""

    def test_empty_text_returns_no_commands(self):
        assert parse("") == []
        assert parse("Sure, here is my plan.\nNothing to do yet.") == []

    def test_create_file_keeps_body_verbatim(self):
        text = '[CREATE_FILE path="src/app.py"]\ndef main():\n    return 1\n\n[/CREATE_FILE]'

        commands = parse(text)

        assert commands == [CreateFileCommand("src/app.py", "def main():\n    return 1\n")]

    def test_crlf_line_endings_are_stripped(self):
        text = '[CREATE_FILE path="a.txt"]\r\none\r\ntwo\r\n[/CREATE_FILE]\r\n'

        assert parse(text) == [CreateFileCommand("a.txt", "one\ntwo")]

    def test_edit_file_parses_line_numbers(self):
        text = '[EDIT_FILE path="a.py" start_line="2" end_line="3"]\nX\n  Y\n[/EDIT_FILE]'

        assert parse(text) == [EditFileCommand("a.py", 2, 3, "X\n  Y")]

    def test_self_closing_commands(self):
        text = '[DELETE_FILE path="old.txt"]\n[READ_FILE path="docs/readme.md"]'

        assert parse(text) == [DeleteFileCommand("old.txt"), ReadFileCommand("docs/readme.md")]

    def test_run_message_and_done_bodies_are_trimmed(self):
        text = (
            "[RUN_COMMAND]\n  pytest -q  \n[/RUN_COMMAND]\n"
            "[MESSAGE]\n\nHello there\n\n[/MESSAGE]\n"
            "[DONE]\n  All done  \n[/DONE]\n"
        )

        assert parse(text) == [
            RunCommand("pytest -q"),
            MessageCommand("Hello there"),
            DoneCommand("All done"),
        ]

    def test_single_line_block(self):
        assert parse("[DONE]Finished the task[/DONE]") == [DoneCommand("Finished the task")]

    def test_tags_are_matched_after_trimming_whitespace(self):
        text = '   [READ_FILE path="a.txt"]   \n  [MESSAGE]\nhi\n   [/MESSAGE]  '

        assert parse(text) == [ReadFileCommand("a.txt"), MessageCommand("hi")]

    def test_attribute_keys_are_case_insensitive(self):
        text = '[EDIT_FILE PATH="a.py" Start_Line="1" END_LINE="1"]\nx\n[/EDIT_FILE]'

        assert parse(text) == [EditFileCommand("a.py", 1, 1, "x")]

    def test_prose_between_commands_is_ignored_and_order_kept(self):
        text = (
            "I'll start by creating the file.\n"
            '[CREATE_FILE path="hello.py"]\nprint("hi")\n[/CREATE_FILE]\n'
            "Now let's run it:\n"
            "[RUN_COMMAND]\npython hello.py\n[/RUN_COMMAND]\n"
            "Hope that helps!"
        )

        commands = parse(text)

        assert [type(c) for c in commands] == [CreateFileCommand, RunCommand]

    def test_body_may_contain_other_tags(self):
        text = (
            '[CREATE_FILE path="PROTOCOL.md"]\n'
            '[DELETE_FILE path="x"]\n'
            "[/CREATE_FILE]"
        )

        assert parse(text) == [CreateFileCommand("PROTOCOL.md", '[DELETE_FILE path="x"]')]

    def test_unknown_tags_are_ignored(self):
        assert parse("[NOTE]\nhello\n[/NOTE]\n[TODO]") == []


class TestCommandParserErrors:
    """Malformed input degrades to ParseErrorCommand entries."""

    @pytest.mark.parametrize("tag", ["DELETE_FILE", "READ_FILE"])
    def test_self_closing_without_path(self, tag):
        assert parse(f"[{tag}]") == [ParseErrorCommand(f"{tag} missing path attribute")]

    def test_create_file_without_path(self):
        commands = parse("[CREATE_FILE]\ncontent\n[/CREATE_FILE]")

        assert commands[0] == ParseErrorCommand("CREATE_FILE missing path attribute")

    def test_edit_file_missing_attributes(self):
        commands = parse('[EDIT_FILE path="a.py"]\nx\n[/EDIT_FILE]')

        assert isinstance(commands[0], ParseErrorCommand)
        assert "start_line" in commands[0].error
        assert "end_line" in commands[0].error

    def test_edit_file_non_integer_line(self):
        commands = parse('[EDIT_FILE path="a.py" start_line="one" end_line="2"]\nx\n[/EDIT_FILE]')

        assert isinstance(commands[0], ParseErrorCommand)
        assert "integers" in commands[0].error
        assert 'start_line="one"' in commands[0].error

    def test_missing_closing_tag_reports_path(self):
        commands = parse('[CREATE_FILE path="a.py"]\nprint(1)\n')

        assert commands == [ParseErrorCommand("CREATE_FILE for 'a.py' missing closing tag")]

    def test_parsing_resumes_after_unclosed_block(self):
        text = "[MESSAGE]\nstill talking\n[DELETE_FILE path=\"a.txt\"]"

        commands = parse(text)

        assert commands[0] == ParseErrorCommand("MESSAGE missing closing tag")
        assert DeleteFileCommand("a.txt") in commands[1:]

    def test_parsing_resumes_after_header_error(self):
        text = '[EDIT_FILE path="a.py"]\nx\n[/EDIT_FILE]\n[DONE]\nok\n[/DONE]'

        commands = parse(text)

        assert isinstance(commands[0], ParseErrorCommand)
        assert commands[-1] == DoneCommand("ok")

    @pytest.mark.parametrize(
        "text",
        [
            "[",
            "]]]",
            '[CREATE_FILE path="unterminated]',
            "[/DONE]",
            "[EDIT_FILE start_line=\"\" end_line=\"\"]",
            "\x00\x01[RUN_COMMAND]",
            None,
        ],
    )
    def test_never_raises(self, text):
        result = parse(text)
        assert isinstance(result, list)

    def test_text_after_opening_tag_is_an_error(self):
        text = '[CREATE_FILE path="a"]foo]\nbar\n[/CREATE_FILE]\n[DONE]ok[/DONE]'

        commands = parse(text)

        assert commands == [
            ParseErrorCommand("CREATE_FILE for 'a' has unexpected text after opening tag"),
            DoneCommand("ok"),
        ]

    @pytest.mark.parametrize("value", ["1_0", "1.0", "0x1", "²"])
    def test_edit_file_rejects_non_decimal_line_numbers(self, value):
        commands = parse(f'[EDIT_FILE path="a.py" start_line="{value}" end_line="2"]\nx\n[/EDIT_FILE]')

        assert isinstance(commands[0], ParseErrorCommand)
        assert "integers" in commands[0].error

    def test_edit_file_accepts_padded_and_signed_line_numbers(self):
        commands = parse('[EDIT_FILE path="a.py" start_line=" 2 " end_line="+3"]\nx\n[/EDIT_FILE]')

        assert commands == [EditFileCommand("a.py", 2, 3, "x")]
