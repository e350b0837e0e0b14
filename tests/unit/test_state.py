import os
import pytest
from podbox.MANAGERS.instance_lock import InstanceLock
from podbox.MANAGERS.state_store import StateStore
from podbox.MODELS.build_attempt import BuildAttempt, BuildMethod, BuildOutcome, BuildResult
from podbox.MODELS.container_state import NetworkMode
from podbox.errors import LockHeldError

def test_lock_acquire_and_release(tmp_path):
    path = str(tmp_path / ".podbox" / "podbox.pid")
    with InstanceLock(path) as lock:
        assert lock.owner() == os.getpid()
    assert not os.path.exists(path)

def test_lock_held_by_live_process(tmp_path, monkeypatch):
    path = tmp_path / "podbox.pid"
    path.write_text("4242")
    monkeypatch.setattr("podbox.MANAGERS.instance_lock.psutil.pid_exists", lambda pid: True)
    with pytest.raises(LockHeldError):
        InstanceLock(str(path)).acquire()
    assert path.read_text() == "4242"

def test_stale_lock_is_taken_over(tmp_path, monkeypatch):
    path = tmp_path / "podbox.pid"
    path.write_text("4242")
    monkeypatch.setattr("podbox.MANAGERS.instance_lock.psutil.pid_exists", lambda pid: False)
    lock = InstanceLock(str(path))
    lock.acquire()
    assert lock.owner() == os.getpid()
    lock.release()

def test_state_store_empty(tmp_path):
    state = StateStore(str(tmp_path)).load()
    assert state.build_method is None
    assert state.network_mode is None

def test_state_store_records_build_and_start(tmp_path):
    store = StateStore(str(tmp_path / ".podbox"))
    result = BuildResult(
        image_ref="mcp-server:latest",
        method=BuildMethod.REDUCED_DEFINITION,
        attempts=[BuildAttempt(method=BuildMethod.REDUCED_DEFINITION, outcome=BuildOutcome.SUCCESS)],
        definition="Dockerfile.simple",
    )
    store.record_build(result)
    store.record_start(NetworkMode.BRIDGE)

    state = StateStore(str(tmp_path / ".podbox")).load()
    assert state.image_ref == "mcp-server:latest"
    assert state.build_method == BuildMethod.REDUCED_DEFINITION
    assert state.degraded
    assert state.network_mode == NetworkMode.BRIDGE
    assert state.built_at and state.started_at

def test_state_store_ignores_corrupt_file(tmp_path):
    (tmp_path / "state.yml").write_text("network_mode: [\n")
    assert StateStore(str(tmp_path)).load().network_mode is None
