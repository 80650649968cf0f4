import json
import logging

import pytest

from hlscaptionfinder import cli
from hlscaptionfinder.models import ExtractorConfig

from fakes import BASE, FakeClient, media_playlist
from ts_builders import caption_segment, empty_segment


@pytest.fixture
def fake_client(monkeypatch):
    url = BASE + "index.m3u8"
    client = FakeClient(
        {url: [media_playlist(["seg0.ts", "seg1.ts", "seg2.ts"], ended=True)]},
        {
            BASE + "seg0.ts": empty_segment(),
            BASE + "seg1.ts": caption_segment("HELLO"),
            BASE + "seg2.ts": empty_segment(),
        },
    )
    monkeypatch.setattr(cli, "HLSClient", lambda config: client)
    monkeypatch.setattr(cli, "install_interrupt_handler", lambda controller: None)
    return url, client


def test_vod_run_exits_zero(fake_client, capsys):
    url, _ = fake_client
    assert cli.main([url]) == cli.EXIT_OK
    out = capsys.readouterr().out
    assert "  Caption: HELLO" in out
    assert "Summary: 1/3 segments contained captions (1 total captions found)" in out


def test_json_output(fake_client, capsys):
    url, _ = fake_client
    assert cli.main([url, "--json"]) == cli.EXIT_OK
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    segments = [line for line in lines if line["type"] == "segment"]
    assert len(segments) == 3
    assert segments[1]["captions"] == [{"channel": "CC1", "text": "HELLO"}]
    assert lines[-1]["type"] == "summary"
    assert lines[-1]["segments_with_captions"] == 1
    assert lines[-1]["summary"] == "1/3 segments contained captions (1 total captions found)"


def test_playlist_error_exits_one(monkeypatch, capsys):
    monkeypatch.setattr(cli, "HLSClient", lambda config: FakeClient({}, {}))
    monkeypatch.setattr(cli, "install_interrupt_handler", lambda controller: None)
    assert cli.main([BASE + "missing.m3u8"]) == cli.EXIT_PLAYLIST_ERROR
    assert "Error:" in capsys.readouterr().err


def test_options_override_environment(monkeypatch):
    monkeypatch.setenv("HLSCAPTIONFINDER_TIMEOUT", "12")
    monkeypatch.setenv("HLSCAPTIONFINDER_MAX_POLLS", "3")
    args = cli.build_parser().parse_args(["u", "--timeout", "5", "--insecure", "--max-segments", "2"])
    config = cli.build_config(args)
    assert config.timeout == 5
    assert config.verify_ssl is False
    assert config.max_polls == 3
    assert config.max_segments == 2


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("HLSCAPTIONFINDER_TIMEOUT", "7.5")
    monkeypatch.setenv("HLSCAPTIONFINDER_VERIFY_SSL", "false")
    monkeypatch.delenv("HLSCAPTIONFINDER_MAX_POLLS", raising=False)
    config = ExtractorConfig.from_env()
    assert config.timeout == 7.5
    assert config.verify_ssl is False
    assert config.max_polls is None


def test_log_level_is_case_insensitive():
    args = cli.build_parser().parse_args(["u", "--log-level", "debug"])
    assert args.log_level == "DEBUG"


def test_missing_url_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        cli.build_parser().parse_args([])
    assert exc_info.value.code == 2


def test_interrupt_handler_stops_then_aborts(monkeypatch):
    installed = {}
    monkeypatch.setattr(cli.signal, "signal", lambda signum, handler: installed.setdefault("handler", handler))

    class Controller:
        stopped = False

        def stop(self):
            self.stopped = True

    controller = Controller()
    cli.install_interrupt_handler(controller)
    handler = installed["handler"]

    handler(2, None)
    assert controller.stopped
    with pytest.raises(KeyboardInterrupt):
        handler(2, None)


def test_malformed_environment_keeps_defaults(monkeypatch, caplog):
    monkeypatch.setenv("HLSCAPTIONFINDER_TIMEOUT", "soon")
    monkeypatch.setenv("HLSCAPTIONFINDER_MAX_POLLS", "3.5")
    with caplog.at_level(logging.WARNING, logger="hlscaptionfinder.models"):
        config = ExtractorConfig.from_env()
    assert config.timeout == 30.0
    assert config.max_polls is None
    assert "HLSCAPTIONFINDER_TIMEOUT" in caplog.text
    assert "HLSCAPTIONFINDER_MAX_POLLS" in caplog.text


def test_malformed_environment_does_not_abort_run(fake_client, monkeypatch, capsys):
    url, _ = fake_client
    monkeypatch.setenv("HLSCAPTIONFINDER_TIMEOUT", "soon")
    assert cli.main([url]) == cli.EXIT_OK
    assert "  Caption: HELLO" in capsys.readouterr().out
