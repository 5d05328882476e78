# Tests for the command-line entry point.
# Created: 2026-10-16

from unittest.mock import patch

import pytest

from dufs.__main__ import build_parser, load_settings, main


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.path == "."
        assert args.address == "127.0.0.1"
        assert args.port == 5000
        assert args.readonly is False
        assert args.auth is None
        assert args.log_level == "INFO"

    def test_all_options(self):
        args = build_parser().parse_args(
            ["-b", "0.0.0.0", "-p", "9000", "-E", "-a", "alice:secret", "/srv"]
        )
        assert args.address == "0.0.0.0"
        assert args.port == 9000
        assert args.readonly is True
        assert args.auth == "alice:secret"
        assert args.path == "/srv"

    def test_long_options(self):
        args = build_parser().parse_args(["--bind", "::1", "--port", "1", "--no-edit"])
        assert args.address == "::1"
        assert args.port == 1
        assert args.readonly is True

    def test_port_must_be_int(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["-p", "http"])


class TestLoadSettings:
    def test_builds_settings(self, tmp_path):
        args = build_parser().parse_args(["-E", "-a", "u:p", str(tmp_path)])
        settings = load_settings(args)
        assert settings.path == tmp_path.resolve()
        assert settings.readonly is True
        assert settings.auth == "u:p"


@patch("dufs.__main__.setup_logging")
class TestMain:
    def test_missing_path_exits_1(self, _mock_logging, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(tmp_path / "missing")])
        assert exc.value.code == 1
        assert "error:" in capsys.readouterr().err

    def test_port_out_of_range_exits_1(self, _mock_logging, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["-p", "70000", str(tmp_path)])
        assert exc.value.code == 1
        assert "port" in capsys.readouterr().err

    def test_runs_server(self, _mock_logging, tmp_path):
        with patch("dufs.server.run_server") as mock_run:
            main(["-p", "0", str(tmp_path)])
        settings = mock_run.call_args.args[0]
        assert settings.port == 0
        assert settings.path == tmp_path.resolve()

    def test_keyboard_interrupt_is_clean(self, _mock_logging, tmp_path):
        with patch("dufs.server.run_server", side_effect=KeyboardInterrupt):
            main([str(tmp_path)])
