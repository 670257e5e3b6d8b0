"""
Execute call sequences inside a throwaway Docker container.

The sequence is rendered as a Python script, the program under test is mounted
read-only, and the script reports the outcome of the last statement as one JSON
line on stdout. Running out-of-process isolates the generator from crashes, hangs
and side effects of the code under test.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import docker
import docker.errors

from ..entities import (
    ExceptionalExecution,
    ExecutionOutcome,
    NormalExecution,
    Sequence,
)
from .in_process import SequenceExecutor


logger = logging.getLogger(__name__)

SCRIPT_PATH = "/sandbox/sequence.py"
WORKSPACE_PATH = "/workspace"

SCRIPT_TEMPLATE = """\
import importlib
import json

try:
{body}
except BaseException as e:
    print(json.dumps({{"status": "exception", "type": type(e).__name__, "message": str(e)}}))
else:
    print(json.dumps({{"status": "normal", "is_none": {last} is None, "type": type({last}).__name__, "repr": repr({last})[:200]}}))
"""


class RemoteExecutionError(Exception):
    """An exception raised by the sequence inside the container, or by the container itself."""
    pass


@dataclass(frozen=True)
class RemoteValue:
    """Stand-in for a value that only existed inside the container."""
    type_name: str
    text: str


class DockerSequenceExecutor(SequenceExecutor):
    """Sandboxed executor backed by the Docker SDK."""

    def __init__(self, image_name: str = "python:3.12-slim",
                 project_root: Optional[Union[str, Path]] = None,
                 timeout: Optional[float] = 30.0):
        """Initialize the executor and make sure the image is available."""
        self.docker_client = docker.from_env()
        self.image_name = image_name
        self.project_root = Path(project_root or os.getcwd()).resolve()
        self.timeout = timeout

        try:
            self.docker_client.images.get(self.image_name)
        except docker.errors.ImageNotFound:
            logger.info(f"Pulling Docker image: {self.image_name}")
            self.docker_client.images.pull(self.image_name)

    def render_script(self, sequence: Sequence) -> str:
        body = "\n".join(f"    {line}" for line in sequence.to_code().splitlines())
        return SCRIPT_TEMPLATE.format(body=body, last=f"v{len(sequence) - 1}")

    def run(self, sequence: Sequence) -> ExecutionOutcome:
        with tempfile.NamedTemporaryFile(mode='w', suffix='.py', delete=False) as f:
            f.write(self.render_script(sequence))
            script_path = f.name

        container = None
        try:
            container = self.docker_client.containers.run(
                self.image_name,
                ["python", SCRIPT_PATH],
                volumes={
                    script_path: {'bind': SCRIPT_PATH, 'mode': 'ro'},
                    str(self.project_root): {'bind': WORKSPACE_PATH, 'mode': 'ro'}
                },
                environment={"PYTHONPATH": WORKSPACE_PATH},
                network_disabled=True,
                detach=True
            )
            status = container.wait(timeout=self.timeout)
            stdout = container.logs(stdout=True, stderr=False)
            if isinstance(stdout, bytes):
                stdout = stdout.decode('utf-8', errors='replace')
            exit_code = status.get('StatusCode', 1) if isinstance(status, dict) else 1
            return self._parse_outcome(stdout, exit_code)

        except docker.errors.ContainerError as e:
            return ExceptionalExecution(RemoteExecutionError(
                f"Sequence container failed with exit code {e.exit_status}"))
        except docker.errors.APIError as e:
            return ExceptionalExecution(RemoteExecutionError(f"Docker error: {e}"))
        except Exception as e:
            # requests raises its own timeout types from container.wait
            return ExceptionalExecution(RemoteExecutionError(f"Execution did not complete: {e}"))
        finally:
            if container is not None:
                try:
                    container.remove(force=True)
                except docker.errors.DockerException as e:
                    logger.warning(f"Failed to remove container: {e}")
            try:
                os.unlink(script_path)
            except OSError:
                pass

    def cleanup(self) -> None:
        """Clean up Docker resources"""
        try:
            self.docker_client.close()
        except Exception as e:
            logger.warning(f"Error closing Docker client: {e}")

    def _parse_outcome(self, stdout: str, exit_code: int) -> ExecutionOutcome:
        """Read the JSON status line written by the rendered script."""
        report: Optional[Dict[str, Any]] = None
        for line in reversed(stdout.strip().splitlines()):
            try:
                parsed = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                report = parsed
                break

        if exit_code != 0 or not isinstance(report, dict):
            return ExceptionalExecution(RemoteExecutionError(
                f"Sequence script exited with code {exit_code}"))

        if report.get("status") == "normal":
            if report.get("is_none"):
                return NormalExecution(None)
            return NormalExecution(RemoteValue(type_name=report.get("type", ""), text=report.get("repr", "")))

        return ExceptionalExecution(RemoteExecutionError(
            f"{report.get('type', 'Exception')}: {report.get('message', '')}"))
