"""Tests for the command line."""

import pytest

from remindsync.cli import build_parser, cmd_add, cmd_serve, main


def _printed_id(out: str, title: str) -> str:
    """Id from the reminder line that mentions ``title``."""
    line = next(line for line in out.splitlines() if title in line)
    return line.split()[0]


class TestBuildParser:
    def test_add(self):
        args = build_parser().parse_args(["add", "water plants tomorrow", "--notes", "ferns"])
        assert args.func is cmd_add
        assert args.text == "water plants tomorrow"
        assert args.notes == "ferns"
        assert args.user is None

    def test_global_options(self):
        args = build_parser().parse_args(["--user", "u1", "--device", "phone", "list"])
        assert args.user == "u1"
        assert args.device == "phone"

    def test_serve(self):
        args = build_parser().parse_args(["serve", "--port", "9000"])
        assert args.func is cmd_serve
        assert args.port == 9000

    def test_snooze_minutes(self):
        args = build_parser().parse_args(["snooze", "r1", "--minutes", "30"])
        assert args.minutes == 30

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestLocalCommands:
    """Commands against the shared local store."""

    def test_add_then_list(self, capsys: pytest.CaptureFixture[str]):
        main(["add", "call mom in 30 minutes"])
        reminder_id = _printed_id(capsys.readouterr().out, "Call Mom")

        main(["list"])
        listed = capsys.readouterr().out

        assert reminder_id in listed
        assert "Call Mom" in listed

    def test_complete_removes_from_list(self, capsys: pytest.CaptureFixture[str]):
        main(["add", "stretch in 2 hours"])
        reminder_id = _printed_id(capsys.readouterr().out, "Stretch")

        main(["complete", reminder_id])
        assert "completed" in capsys.readouterr().out

        main(["list"])
        assert "No active reminders." in capsys.readouterr().out

    def test_extension_snooze_then_drain(self, capsys: pytest.CaptureFixture[str]):
        main(["add", "stretch in 2 hours"])
        reminder_id = _printed_id(capsys.readouterr().out, "Stretch")

        main(["extension-snooze", reminder_id, "--minutes", "5"])
        assert "queued" in capsys.readouterr().out

        main(["drain"])
        assert "cleared=1" in capsys.readouterr().out

    def test_unknown_id(self, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit) as exc_info:
            main(["complete", "missing"])

        assert exc_info.value.code == 1
        assert "Reminder not found" in capsys.readouterr().err

    def test_push_needs_remote_backend(self, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit):
            main(["push", '{"action": "deleted", "reminderId": "r1"}'])
        assert "remote backend" in capsys.readouterr().err
