from unittest import mock

import pytest

from lidarkit.cli import DEFAULT_RUN_TIME, main, parse_args


def test_parse_args_splits_codes_on_ampersand():
    args = parse_args(["-c", "AAA&BBB&CCC"])
    assert args.codes == ["AAA", "BBB", "CCC"]


def test_parse_args_defaults():
    args = parse_args([])
    assert args.codes == []
    assert args.log is False
    assert args.time == DEFAULT_RUN_TIME
    assert args.baud == 9600
    assert args.parity == "8N1"


def test_parse_args_explicit_port_and_serial_settings():
    args = parse_args(["--port", "loop://", "-b", "115200", "--parity", "7E1"])
    assert args.port == "loop://"
    assert args.baud == 115200
    assert args.parity == "7E1"


def test_parse_args_rejects_unknown_baud():
    with pytest.raises(SystemExit):
        parse_args(["-b", "1234"])


def test_parse_args_rejects_negative_time():
    with pytest.raises(SystemExit):
        parse_args(["-t", "-1"])


def test_main_runs_with_loopback_port(capsys):
    status = main(["--port", "loop://", "--time", "0"])
    out = capsys.readouterr().out
    assert status == 0
    assert "Synchro start success" in out
    assert "automatic connection mode" in out


def test_main_lists_whitelisted_codes(capsys):
    status = main(["--port", "loop://", "--time", "0", "-c", "ABC&DEF"])
    out = capsys.readouterr().out
    assert status == 0
    assert "Disable auto connect mode!" in out
    lines = out.splitlines()
    assert "ABC" in lines
    assert "DEF" in lines


def test_main_reports_duplicate_code(capsys):
    main(["--port", "loop://", "--time", "0", "-c", "ABC&ABC"])
    out = capsys.readouterr().out
    assert "not registered" in out
    assert out.splitlines().count("ABC") == 1


def test_main_fails_on_missing_port(capsys):
    status = main(["--port", "/nonexistent/lidarkit-tty", "--time", "0"])
    out = capsys.readouterr().out
    assert status == 1
    assert "Synchro start failed" in out


def test_main_sleeps_for_requested_time():
    with mock.patch("time.sleep") as sleep:
        status = main(["--port", "loop://", "--time", "7"])
    assert status == 0
    sleep.assert_called_once_with(7.0)