import pytest
from livestats import cli
from livestats.core.config import Settings
from pydantic import ValidationError


@pytest.fixture
def base():
    return Settings(_env_file=None)


def test_server_options_override_settings(base):
    args = cli.build_parser().parse_args(
        [
            "server",
            "-p",
            "4000",
            "-r",
            "redis://cache:6379",
            "-t",
            "60",
            "-c",
            "https://a.example,https://b.example",
        ]
    )

    s = cli.settings_from_args(args, base)

    assert s.port == 4000
    assert s.redis_url == "redis://cache:6379"
    assert s.stats_ttl_seconds == 60
    assert s.cors_origins == ["https://a.example", "https://b.example"]


def test_missing_options_keep_defaults(base):
    args = cli.build_parser().parse_args(["server"])

    s = cli.settings_from_args(args, base)

    assert s.port == base.port
    assert s.redis_url == base.redis_url
    assert s.cors_origins == base.cors_origins


def test_subcommand_required():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


class _FakeServer:
    started = True

    def __init__(self, config):
        self.config = config

    def run(self):
        return None


@pytest.mark.parametrize("started, code", [(True, 0), (False, 1)])
def test_run_server_exit_codes(monkeypatch, base, started, code):
    server_cls = type("Server", (_FakeServer,), {"started": started})
    monkeypatch.setattr(cli.uvicorn, "Server", server_cls)

    assert cli.run_server(base) == code


def test_main_dispatches_server(monkeypatch):
    seen = {}

    def fake_run(settings):
        seen["settings"] = settings
        return 0

    monkeypatch.setattr(cli, "run_server", fake_run)

    assert cli.main(["server", "--port", "5005"]) == 0
    assert seen["settings"].port == 5005


@pytest.mark.parametrize(
    "argv",
    [
        ["server", "-t", "0"],
        ["server", "--ttl", "-5"],
        ["server", "-p", "-1"],
        ["server", "-p", "70000"],
    ],
)
def test_out_of_range_options_rejected(base, argv):
    args = cli.build_parser().parse_args(argv)

    with pytest.raises(ValidationError):
        cli.settings_from_args(args, base)


def test_main_exits_with_usage_error_on_bad_ttl(monkeypatch, capsys):
    monkeypatch.setattr(cli, "run_server", lambda settings: 0)

    with pytest.raises(SystemExit) as exc:
        cli.main(["server", "-t", "0"])

    assert exc.value.code == 2
    assert "greater than or equal to 1" in capsys.readouterr().err
