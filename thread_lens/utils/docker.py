import logging
import subprocess
import time

import httpx

CAMOFOX_IMAGE = "camofox-browser:latest"
CAMOFOX_CONTAINER_PORT = 9377

logger = logging.getLogger(__name__)

_started_container_id: str | None = None


def _docker(*args: str, timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(["docker", *args], capture_output=True, text=True, check=True, timeout=timeout)


def _wait_until_ready(port: int, timeout: float, interval: float = 0.25) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            httpx.get(f"http://localhost:{port}/", timeout=interval * 4)
            return True
        except httpx.TransportError:
            time.sleep(interval)
    return False


def ensure_camofox_running(port: int = CAMOFOX_CONTAINER_PORT, ready_timeout: float = 10.0) -> None:
    """Start camofox-browser with its API published on ``port``, unless a container is up already.

    Failures are logged, not raised: the API still serves cached data and
    reports upstream errors per request.
    """
    global _started_container_id
    try:
        running = _docker("ps", "--filter", f"ancestor={CAMOFOX_IMAGE}", "--format", "{{.ID}}", timeout=5)
        if running.stdout.strip():
            logger.info("camofox-browser already running (%s)", running.stdout.split()[0])
            return
        logger.info("Starting %s on port %d", CAMOFOX_IMAGE, port)
        started = _docker("run", "-d", "--rm", "-p", f"{port}:{CAMOFOX_CONTAINER_PORT}", CAMOFOX_IMAGE, timeout=15)
        _started_container_id = started.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not ensure camofox-browser is running: %s", e)
        return

    if not _wait_until_ready(port, ready_timeout):
        logger.warning("camofox-browser did not answer on port %d within %.0fs", port, ready_timeout)


def stop_camofox_if_started() -> None:
    global _started_container_id
    if not _started_container_id:
        return
    try:
        _docker("stop", _started_container_id, timeout=10)
        logger.info("Stopped camofox-browser container %s", _started_container_id[:12])
        _started_container_id = None
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not stop camofox-browser container: %s", e)
