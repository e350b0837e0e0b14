import os
import pytest
from click.testing import CliRunner
from podbox.CLI.main import cli
from podbox.MANAGERS.preflight import PreflightChecker

@pytest.fixture
def obj(config, fake_runner, fake_process):
    return {
        'config': config,
        'runner': fake_runner,
        'preflight': PreflightChecker(fake_process(1000)),
    }

def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'rootless Podman sandbox' in result.output
    for command in ('install', 'build', 'start', 'stop', 'status', 'login', 'cleanup', 'menu'):
        assert command in result.output

def test_cli_status_absent(obj):
    runner = CliRunner()
    result = runner.invoke(cli, ['status'], obj=obj)
    assert result.exit_code == 0
    assert 'Status: STOPPED' in result.output

def test_cli_stop_not_running(obj, fake_runner):
    runner = CliRunner()
    result = runner.invoke(cli, ['stop'], obj=obj)
    assert result.exit_code == 0
    assert 'Container is not running' in result.output
    assert fake_runner.commands('podman', 'stop') == []

def test_cli_materialize(obj, config):
    runner = CliRunner()
    result = runner.invoke(cli, ['materialize'], obj=obj)
    assert result.exit_code == 0
    assert os.path.exists(os.path.join(config.workspace, 'Dockerfile'))
    assert os.path.exists(os.path.join(config.workspace, 'manage.sh'))

def test_cli_build_failure(obj, config, fake_runner):
    runner = CliRunner()
    runner.invoke(cli, ['materialize'], obj=dict(obj))
    fake_runner.fail('podman', 'build')

    result = runner.invoke(cli, ['build'], obj=dict(obj))
    assert result.exit_code == 1
    assert 'All build attempts failed' in result.output
    assert 'sudo modprobe tun' in result.output
    assert 'podman system reset --force' in result.output
    assert os.path.exists(os.path.join(config.workspace, 'Dockerfile.simple'))

def test_cli_start_falls_back_to_bridge(obj, fake_runner):
    fake_runner.fail('podman', 'run', '-d', '--name', 'mcp-server', '--network', 'host')
    runner = CliRunner()
    result = runner.invoke(cli, ['start'], obj=obj)
    assert result.exit_code == 0
    assert 'bridge (port mapping)' in result.output

def test_cli_start_failure_exit_code(obj, fake_runner):
    fake_runner.fail('podman', 'run')
    runner = CliRunner()
    result = runner.invoke(cli, ['start'], obj=obj)
    assert result.exit_code == 1

def test_cli_install_as_root(obj, fake_runner, fake_process):
    obj['preflight'] = PreflightChecker(fake_process(0))
    runner = CliRunner()
    result = runner.invoke(cli, [], obj=obj)
    assert result.exit_code == 1
    assert 'must NOT be run as root' in result.output
    assert fake_runner.calls == []

def test_cli_install_full_flow(obj, config, fake_runner):
    runner = CliRunner()
    result = runner.invoke(cli, ['install'], obj=obj, input='5\n')
    assert result.exit_code == 0, result.output

    assert fake_runner.commands('podman', 'build')
    assert len(fake_runner.commands('podman', 'run')) == 1
    assert 'Status: RUNNING' in result.output
    assert 'Login cancelled' in result.output
    assert not os.path.exists(os.path.join(config.state_dir, 'podbox.pid'))
    with open(os.path.join(config.state_dir, 'state.yml')) as f:
        assert 'default-network' in f.read()

def test_cli_menu_exit(obj):
    runner = CliRunner()
    result = runner.invoke(cli, ['menu'], obj=obj, input='10\n')
    assert result.exit_code == 0
    assert 'Goodbye!' in result.output

def test_cli_unreadable_config(tmp_path):
    workspace = tmp_path / "ws"
    (workspace / "podbox.yml").mkdir(parents=True)
    runner = CliRunner()
    result = runner.invoke(cli, ['--workspace', str(workspace), 'status'], obj={})
    assert result.exit_code == 1
    assert 'Cannot read' in result.output

@pytest.fixture
def held_lock(config, monkeypatch):
    os.makedirs(config.state_dir)
    with open(os.path.join(config.state_dir, 'podbox.pid'), 'w') as f:
        f.write('4242')
    monkeypatch.setattr('podbox.MANAGERS.instance_lock.psutil.pid_exists', lambda pid: True)

@pytest.mark.parametrize('command', ['start', 'stop', 'build', 'cleanup', 'menu'])
def test_cli_held_lock_blocks_mutating_commands(obj, fake_runner, held_lock, command):
    runner = CliRunner()
    result = runner.invoke(cli, [command], obj=obj, input='10\n')
    assert result.exit_code == 1
    assert 'Another podbox process (pid 4242)' in result.output
    assert fake_runner.calls == []

def test_cli_held_lock_allows_status(obj, held_lock):
    runner = CliRunner()
    result = runner.invoke(cli, ['status'], obj=obj)
    assert result.exit_code == 0

def test_cli_lock_released_after_command(obj, config):
    runner = CliRunner()
    result = runner.invoke(cli, ['start'], obj=obj)
    assert result.exit_code == 0
    assert not os.path.exists(os.path.join(config.state_dir, 'podbox.pid'))

def test_cli_cleanup_failure_exit_code(obj, fake_runner):
    fake_runner.fail('podman', 'image', 'prune')
    runner = CliRunner()
    result = runner.invoke(cli, ['cleanup'], obj=obj)
    assert result.exit_code == 1
    assert 'Cleanup finished with errors' in result.output
