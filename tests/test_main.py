"""Tests for the command line entry point."""

import orjson
import pytest

from src.sports import main as main_module


@pytest.fixture
def quiet_main(monkeypatch):
    """Run main() without configuring global logging or touching the network."""
    seen = []

    async def fake_run(args):
        seen.append(args)
        return [{"id": "7", "sportId": 1}]

    monkeypatch.setattr(main_module, "setup_logging", lambda *a, **kw: None)
    monkeypatch.setattr(main_module, "run", fake_run)
    return seen


class TestCommandLine:
    """Tests for argument parsing and output."""

    def test_parser_defaults(self):
        """Test subcommand arguments and defaults."""
        parser = main_module.build_parser()

        upcoming = parser.parse_args(["upcoming", "--sport", "nba", "--limit", "5"])
        odds = parser.parse_args(["odds", "1035037"])

        assert (upcoming.command, upcoming.sport, upcoming.limit) == ("upcoming", "nba", 5)
        assert (odds.event_id, odds.sport) == ("1035037", "football")

    def test_command_is_required(self):
        """Test that running without a subcommand is a usage error."""
        with pytest.raises(SystemExit):
            main_module.build_parser().parse_args([])

    def test_main_prints_json(self, quiet_main, capsys):
        """Test that results are written to stdout as JSON."""
        assert main_module.main(["live", "--sport", "football"]) == 0

        assert orjson.loads(capsys.readouterr().out) == [{"id": "7", "sportId": 1}]
        assert quiet_main[0].sport == "football"
