"""
Sequence executors for seqsynth.
"""

from .in_process import SequenceExecutor, InProcessExecutor

__all__ = [
    "SequenceExecutor",
    "InProcessExecutor",
    "create_executor"
]


def create_executor(kind: str = "in_process", **kwargs) -> SequenceExecutor:
    """
    Create an executor by name.

    Args:
        kind: One of "in_process", "docker"
        **kwargs: Arguments for the executor (image_name, project_root, timeout for docker)

    Returns:
        Configured SequenceExecutor
    """
    if kind == "in_process":
        return InProcessExecutor()
    if kind == "docker":
        # Imported lazily so in-process runs do not need a Docker daemon
        from .docker_runner import DockerSequenceExecutor
        return DockerSequenceExecutor(**kwargs)
    raise ValueError(f"Unknown executor: {kind}. Available: ['in_process', 'docker']")
