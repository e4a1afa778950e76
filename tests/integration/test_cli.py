import tarfile

import pytest
import yaml
from click.testing import CliRunner

from dfiles.ASPECTS.host import Name, X11
from dfiles.CLI.main import build_cli, cli
from dfiles.MANAGERS.container_manager import ContainerManager
from dfiles.MODELS.host_facts import HostFacts
from dfiles.UTILS.dirs import Dirs


class RecordingEngine:
    def __init__(self):
        self.builds = []
        self.runs = []

    def build(self, archive_path, tags):
        self.builds.append(list(tags))

    def run(self, args):
        self.runs.append(list(args))


@pytest.fixture
def xdg_env(tmp_path):
    return {
        "XDG_CONFIG_HOME": str(tmp_path / "config"),
        "XDG_DATA_HOME": str(tmp_path / "data"),
    }


@pytest.fixture
def demo_cli(tmp_path):
    manager = ContainerManager.default_debian(
        "demo",
        ["dfiles/demo:1.0"],
        [],
        [Name("demo")],
        ["demo-bin"],
        dirs=Dirs(config_root=tmp_path / "config", data_root=tmp_path / "data"),
        engine=RecordingEngine(),
        host=HostFacts(),
        workdir=str(tmp_path),
    )
    return manager, build_cli(manager)


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    for application in ('discord', 'firefox', 'signal'):
        assert application in result.output


def test_cli_unknown_application():
    runner = CliRunner()
    result = runner.invoke(cli, ['chrome', 'run'])
    assert result.exit_code == 2


def test_application_help(xdg_env):
    runner = CliRunner()
    result = runner.invoke(cli, ['firefox', '--help'], env=xdg_env)
    assert result.exit_code == 0
    for subcommand in ('run', 'cmd', 'build', 'config', 'generate-archive'):
        assert subcommand in result.output


def test_subcommand_options(xdg_env):
    runner = CliRunner()
    result = runner.invoke(cli, ['signal', 'run', '--help'], env=xdg_env)
    assert result.exit_code == 0
    for option in ('--mount', '--timezone', '--memory', '--cpu-shares', '--network',
                   '--locale', '--profile', '--entrypoint-script', '--name'):
        assert option in result.output


def test_config_saves_layer(tmp_path, xdg_env):
    runner = CliRunner()
    args = ['firefox', 'config', '--mount', '/srv/downloads:/downloads', '--timezone', 'UTC']
    for _ in range(2):
        result = runner.invoke(cli, args, env=xdg_env)
        assert result.exit_code == 0, result.output
        assert 'Saved config to' in result.output

    path = tmp_path / 'config' / 'dfiles' / 'applications' / 'firefox' / 'config.yaml'
    with open(path) as f:
        assert yaml.safe_load(f) == {
            'mounts': [{'host_path': '/srv/downloads', 'container_path': '/downloads'}],
            'timezone': 'UTC',
        }


def test_config_profile_and_global(tmp_path, xdg_env):
    runner = CliRunner()
    result = runner.invoke(cli, ['discord', 'config', '--profile', 'work', '--memory', '2g'], env=xdg_env)
    assert result.exit_code == 0, result.output
    result = runner.invoke(cli, ['discord', 'config', '--global', '--locale', 'en_US.UTF-8'], env=xdg_env)
    assert result.exit_code == 0, result.output

    root = tmp_path / 'config' / 'dfiles'
    assert (root / 'applications' / 'discord' / 'profiles' / 'work' / 'config.yaml').exists()
    assert yaml.safe_load((root / 'config.yaml').read_text()) == {
        'locale': {'language': 'en', 'territory': 'US', 'codeset': 'UTF-8'},
    }


def test_config_invalid_mount(xdg_env):
    runner = CliRunner()
    result = runner.invoke(cli, ['firefox', 'config', '--mount', 'nowhere'], env=xdg_env)
    assert result.exit_code == 1
    assert 'invalid mount `nowhere`' in result.output


def test_generate_archive(tmp_path, xdg_env):
    runner = CliRunner()
    output = tmp_path / 'firefox.tar'
    result = runner.invoke(cli, ['firefox', 'generate-archive', '-o', str(output)], env=xdg_env)
    assert result.exit_code == 0, result.output

    with tarfile.open(output) as tar:
        assert tar.getnames() == ['Dockerfile', 'pulse-client.conf']
        dockerfile = tar.extractfile('Dockerfile').read().decode('utf-8')
    assert dockerfile.startswith('FROM debian:bookworm')
    assert 'firefox-esr' in dockerfile


def test_generate_archive_is_stable(tmp_path, xdg_env):
    runner = CliRunner()
    outputs = [tmp_path / 'first.tar', tmp_path / 'second.tar']
    for output in outputs:
        result = runner.invoke(cli, ['signal', 'generate-archive', '--output', str(output)], env=xdg_env)
        assert result.exit_code == 0, result.output
    assert outputs[0].read_bytes() == outputs[1].read_bytes()


def test_build_dispatch(demo_cli):
    manager, group = demo_cli
    result = CliRunner().invoke(group, ['-v', 'build'])
    assert result.exit_code == 0, result.output
    assert manager.engine.builds == [['dfiles/demo:1.0']]


def test_run_dispatch(demo_cli):
    manager, group = demo_cli
    result = CliRunner().invoke(group, ['run', '--profile', 'work', '--network', 'host'])
    assert result.exit_code == 0, result.output
    assert manager.engine.runs == [
        ['--rm', '--name', 'demo-work', '--network', 'host', 'dfiles/demo:1.0', 'demo-bin'],
    ]


def test_cmd_dispatch(demo_cli):
    manager, group = demo_cli
    result = CliRunner().invoke(group, ['cmd', '--name', 'shell', 'ls', '-la'])
    assert result.exit_code == 0, result.output
    assert manager.engine.runs[0][-4:] == ['shell', 'dfiles/demo:1.0', 'ls', '-la']


def test_cmd_requires_command(demo_cli):
    manager, group = demo_cli
    result = CliRunner().invoke(group, ['cmd'])
    assert result.exit_code == 2
    assert manager.engine.runs == []


def test_missing_host_fact_reported(tmp_path):
    manager = ContainerManager(
        "demo", ["dfiles/demo:1.0"], [], [X11()], ["demo-bin"],
        dirs=Dirs(config_root=tmp_path / "config", data_root=tmp_path / "data"),
        engine=RecordingEngine(),
        host=HostFacts(),
        workdir=str(tmp_path),
    )
    result = CliRunner().invoke(build_cli(manager), ['run'])
    assert result.exit_code == 1
    assert 'X11: missing environment variable DISPLAY' in result.output


@pytest.mark.parametrize("subcommand", ['build', 'config', 'generate-archive'])
def test_entrypoint_script_validated(tmp_path, demo_cli, subcommand):
    manager, group = demo_cli
    result = CliRunner().invoke(group, [subcommand, '--entrypoint-script', 'relative/setup.sh'])
    assert result.exit_code == 1
    assert 'invalid entrypoint script `relative/setup.sh`' in result.output
    assert manager.engine.builds == []
    assert not (tmp_path / 'config').exists()
