"""
Run Ollama inside a Docker container and make sure a model is pulled.
"""

import logging
import subprocess
import time
from typing import Optional

import requests

from .errors import LLMError

logger = logging.getLogger(__name__)

OLLAMA_CONTAINER_NAME = "scia-ollama"
OLLAMA_IMAGE = "ollama/ollama"
OLLAMA_PORT = "11434"
OLLAMA_DOCKER_URL = f"http://localhost:{OLLAMA_PORT}"
STARTUP_TIMEOUT_S = 30.0


class DockerSetupError(LLMError):
    """Docker is missing, or the Ollama container could not be prepared."""


def _docker(*args: str, check: bool = False) -> subprocess.CompletedProcess:
    return subprocess.run(["docker", *args], check=check, capture_output=True, text=True)


def is_docker_available() -> bool:
    try:
        return _docker("ps").returncode == 0
    except OSError:
        return False


def _container_names(all_containers: bool = False) -> str:
    args = ["ps"]
    if all_containers:
        args.append("-a")
    args += ["--filter", f"name={OLLAMA_CONTAINER_NAME}", "--format", "{{.Names}}"]
    proc = _docker(*args)
    if proc.returncode != 0:
        return ""
    return proc.stdout.strip()


def is_ollama_container_running() -> bool:
    return _container_names() == OLLAMA_CONTAINER_NAME


def is_ollama_accessible(url: str, timeout_s: float = 5.0) -> bool:
    """GET ``{url}/api/version`` answered 200."""
    try:
        response = requests.get(f"{url.rstrip('/')}/api/version", timeout=timeout_s)
    except requests.RequestException:
        return False
    return response.status_code == 200


def start_ollama_container(startup_timeout_s: float = STARTUP_TIMEOUT_S, poll_interval_s: float = 1.0) -> None:
    """
    Start the existing container, or create it, then wait until the API answers.

    Raises:
        DockerSetupError: If docker fails or the API does not come up in time
    """
    if _container_names(all_containers=True) == OLLAMA_CONTAINER_NAME:
        logger.info("Starting existing Ollama container...")
        try:
            _docker("start", OLLAMA_CONTAINER_NAME, check=True)
        except subprocess.CalledProcessError as e:
            raise DockerSetupError(f"failed to start existing container: {e.stderr}") from e
    else:
        logger.info("Creating Ollama container...")
        try:
            _docker(
                "run", "-d",
                "--name", OLLAMA_CONTAINER_NAME,
                "-p", f"{OLLAMA_PORT}:{OLLAMA_PORT}",
                "-v", "ollama-data:/root/.ollama",
                "--security-opt", "no-new-privileges:true",
                "--memory", "8g",
                "--cpus", "4.0",
                OLLAMA_IMAGE,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise DockerSetupError(f"failed to create container: {e.stderr or e.stdout}") from e

    logger.info("Waiting for Ollama to be ready...")
    deadline = time.monotonic() + startup_timeout_s
    while time.monotonic() < deadline:
        if is_ollama_accessible(OLLAMA_DOCKER_URL):
            logger.info("Ollama container is ready")
            return
        time.sleep(poll_interval_s)
    raise DockerSetupError("timeout waiting for Ollama to start")


def ensure_model_available(model: str, show_progress: bool = False) -> None:
    """
    Pull ``model`` inside the container unless ``ollama list`` already shows it.

    Raises:
        DockerSetupError: If listing or pulling fails
    """
    listing = _docker("exec", OLLAMA_CONTAINER_NAME, "ollama", "list")
    if listing.returncode != 0:
        raise DockerSetupError(f"failed to list models: {listing.stderr.strip()}")

    if model in listing.stdout:
        logger.info(f"Model {model} is already available")
        return

    logger.info(f"Pulling model {model} (this may take a while)...")
    cmd = ["docker", "exec", OLLAMA_CONTAINER_NAME, "ollama", "pull", model]
    if show_progress:
        proc = subprocess.run(cmd, check=False)
    else:
        proc = subprocess.run(cmd, check=False, capture_output=True, text=True)
    if proc.returncode != 0:
        raise DockerSetupError(f"failed to pull model {model}")
    logger.info(f"Model {model} is ready")


def setup_ollama_docker(model: str, show_progress: bool = False,
                        startup_timeout_s: Optional[float] = None) -> str:
    """
    Ensure the container runs with ``model`` pulled.

    Returns:
        The Ollama base URL to use
    """
    if not is_docker_available():
        raise DockerSetupError("Docker is not available")

    if is_ollama_container_running():
        logger.info("Ollama container is already running")
    else:
        start_ollama_container(startup_timeout_s or STARTUP_TIMEOUT_S)

    ensure_model_available(model, show_progress=show_progress)
    return OLLAMA_DOCKER_URL
