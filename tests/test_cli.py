import pytest

from server_optimizer import cli
from server_optimizer.errors import ExternalToolError
from server_optimizer.gateway import CommandResult


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "absent.yaml")]


@pytest.fixture
def as_root(monkeypatch, tmp_path):
    monkeypatch.setattr("server_optimizer.utils.os.geteuid", lambda: 0)
    monkeypatch.setattr(cli, "setup_logging", lambda log_file, verbose=False: None)


def test_non_root_exits_1(monkeypatch, no_config, capsys):
    monkeypatch.setattr("server_optimizer.utils.os.geteuid", lambda: 1000)

    assert cli.main(no_config) == 1
    assert "Run this script as root." in capsys.readouterr().out


def test_invalid_config_exits_1(tmp_path, capsys):
    path = tmp_path / "config.yaml"
    path.write_text("unknown_option: true\n")

    assert cli.main(["--config", str(path)]) == 1
    assert "unknown_option" in capsys.readouterr().out


def test_show_config_needs_no_root(monkeypatch, no_config, capsys):
    monkeypatch.setattr("server_optimizer.utils.os.geteuid", lambda: 1000)

    assert cli.main(no_config + ["--show-config"]) == 0
    assert "dhcpd.conf" in capsys.readouterr().out


class StubProvisioner:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def ensure_packages_installed(self):
        self.calls.append("install")

    def apply_performance_tuning(self):
        self.calls.append("tune")
        if self.fail:
            raise ExternalToolError("Performance tuning", [CommandResult(["sysctl", "-p"], 255)])


def test_single_action_runs_without_menu(monkeypatch, as_root, no_config):
    stub = StubProvisioner()
    monkeypatch.setattr(cli.HostProvisioner, "from_settings", classmethod(lambda cls, s, out=None: stub))

    assert cli.main(no_config + ["tune"]) == 0
    assert stub.calls == ["tune"]


def test_failed_action_exits_1(monkeypatch, as_root, no_config):
    stub = StubProvisioner(fail=True)
    monkeypatch.setattr(cli.HostProvisioner, "from_settings", classmethod(lambda cls, s, out=None: stub))

    assert cli.main(no_config + ["tune"]) == 1


def test_interactive_mode_installs_then_shows_menu(monkeypatch, as_root, no_config):
    stub = StubProvisioner()
    monkeypatch.setattr(cli.HostProvisioner, "from_settings", classmethod(lambda cls, s, out=None: stub))
    monkeypatch.setattr(cli.MainMenu, "run", lambda self: stub.calls.append("menu") or 0)

    assert cli.main(no_config) == 0
    assert stub.calls == ["install", "menu"]


def test_skip_install(monkeypatch, as_root, no_config):
    stub = StubProvisioner()
    monkeypatch.setattr(cli.HostProvisioner, "from_settings", classmethod(lambda cls, s, out=None: stub))
    monkeypatch.setattr(cli.MainMenu, "run", lambda self: stub.calls.append("menu") or 0)

    assert cli.main(no_config + ["--skip-install"]) == 0
    assert stub.calls == ["menu"]


def test_interrupt_exits_130(monkeypatch, as_root, no_config):
    stub = StubProvisioner()
    monkeypatch.setattr(cli.HostProvisioner, "from_settings", classmethod(lambda cls, s, out=None: stub))

    def interrupted(self):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli.MainMenu, "run", interrupted)

    assert cli.main(no_config + ["--skip-install"]) == 130
