import subprocess

import pytest

from thread_lens.utils import docker


class FakeDocker:
    """Records docker invocations and answers `ps` with the given container ids."""

    def __init__(self, running: str = ""):
        self.running = running
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        if cmd[1] == "ps":
            return subprocess.CompletedProcess(cmd, 0, stdout=self.running, stderr="")
        if cmd[1] == "run":
            return subprocess.CompletedProcess(cmd, 0, stdout="abc123def456789\n", stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture
def fake_docker(monkeypatch):
    fake = FakeDocker()
    monkeypatch.setattr(docker.subprocess, "run", fake)
    monkeypatch.setattr(docker, "_wait_until_ready", lambda port, timeout: True)
    monkeypatch.setattr(docker, "_started_container_id", None)
    return fake


def test_publishes_requested_port(fake_docker):
    docker.ensure_camofox_running(9555)
    run = fake_docker.calls[1]
    assert run[:2] == ["docker", "run"]
    assert "9555:9377" in run

    docker.stop_camofox_if_started()
    assert fake_docker.calls[-1] == ["docker", "stop", "abc123def456789"]


def test_leaves_running_container_alone(fake_docker):
    fake_docker.running = "deadbeef\n"
    docker.ensure_camofox_running(9555)
    docker.stop_camofox_if_started()
    assert [c[1] for c in fake_docker.calls] == ["ps"]


def test_missing_docker_is_logged(monkeypatch, caplog):
    def no_docker(cmd, **kwargs):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(docker.subprocess, "run", no_docker)
    monkeypatch.setattr(docker, "_started_container_id", None)

    docker.ensure_camofox_running()

    assert "Could not ensure camofox-browser is running" in caplog.text
