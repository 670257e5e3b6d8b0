import pytest
from unittest.mock import Mock, patch
import docker
import docker.errors
import sample_program
from seqsynth.entities import (
    ExceptionalExecution,
    NormalExecution,
    NotExecuted,
    Sequence,
)
from seqsynth.execution import InProcessExecutor, create_executor
from seqsynth.execution.docker_runner import (
    DockerSequenceExecutor,
    RemoteExecutionError,
    RemoteValue,
)
from seqsynth.types import ReflectionTypeUniverse


@pytest.fixture
def universe():
    return ReflectionTypeUniverse()


def constructor(universe, cls):
    [ctor] = universe.constructors_of(universe.type_for_class(cls))
    return ctor


def pair_sequence(universe, first, second):
    int_type = universe.type_for_class(int)
    return Sequence.create(
        constructor(universe, sample_program.Pair),
        [Sequence.for_literal(first, int_type), Sequence.for_literal(second, int_type)],
        [0, 1],
    )


class TestInProcessExecutor:
    """Test direct execution of sequences"""

    def test_normal_execution(self, universe):
        outcome = InProcessExecutor().run(pair_sequence(universe, 1, 2))

        assert isinstance(outcome, NormalExecution)
        assert isinstance(outcome.value, sample_program.Pair)
        assert outcome.value.second == 2

    def test_exception_is_outcome(self, universe):
        outcome = InProcessExecutor().run(pair_sequence(universe, -5, 2))

        assert isinstance(outcome, ExceptionalExecution)
        assert isinstance(outcome.exception, ValueError)

    def test_statements_after_failure_not_executed(self, universe):
        fragile = Sequence.create(constructor(universe, sample_program.Fragile), [], [])
        swap = next(op for op in universe.methods_of(universe.type_for_class(sample_program.Pair))
                    if op.name == "swap")
        # A failing prefix followed by an unrelated call.
        seq = Sequence.create(swap, [fragile, pair_sequence(universe, 1, 2)], [3])

        outcomes = InProcessExecutor().run_all(seq)

        assert isinstance(outcomes[0], ExceptionalExecution)
        assert all(isinstance(o, NotExecuted) for o in outcomes[1:])
        assert len(outcomes) == len(seq)

    def test_instance_method_receives_receiver(self, universe):
        swap = next(op for op in universe.methods_of(universe.type_for_class(sample_program.Pair))
                    if op.name == "swap")
        seq = Sequence.create(swap, [pair_sequence(universe, 1, 2)], [2])

        outcome = InProcessExecutor().run(seq)

        assert outcome.value.first == 2

    def test_empty_sequence(self):
        assert isinstance(InProcessExecutor().run(Sequence(())), NotExecuted)


class TestCreateExecutor:
    """Test executor factory"""

    def test_in_process(self):
        assert isinstance(create_executor("in_process"), InProcessExecutor)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown executor"):
            create_executor("ssh")

    @patch('seqsynth.execution.docker_runner.docker')
    def test_docker(self, mock_docker):
        mock_docker.from_env.return_value = Mock()
        executor = create_executor("docker", image_name="python:3.11", timeout=5)

        assert isinstance(executor, DockerSequenceExecutor)
        assert executor.timeout == 5


class TestDockerSequenceExecutor:
    """Test the DockerSequenceExecutor class"""

    @pytest.fixture
    def mock_docker_client(self):
        """Mock Docker client for testing"""
        with patch('seqsynth.execution.docker_runner.docker') as mock_docker:
            mock_client = Mock()
            mock_docker.from_env.return_value = mock_client

            mock_client.images.get.return_value = Mock()

            # Properly mock docker.errors with real exception classes
            mock_docker.errors = Mock()
            mock_docker.errors.ContainerError = docker.errors.ContainerError
            mock_docker.errors.ImageNotFound = docker.errors.ImageNotFound
            mock_docker.errors.APIError = docker.errors.APIError
            mock_docker.errors.DockerException = docker.errors.DockerException

            yield mock_client

    def mock_container(self, mock_client, stdout, status_code=0):
        container = Mock()
        container.wait.return_value = {'StatusCode': status_code}
        container.logs.return_value = stdout.encode('utf-8')
        mock_client.containers.run.return_value = container
        return container

    def test_init_pulls_missing_image(self, mock_docker_client):
        mock_docker_client.images.get.side_effect = docker.errors.ImageNotFound("missing")

        DockerSequenceExecutor(image_name="python:3.12-slim")

        mock_docker_client.images.pull.assert_called_once_with("python:3.12-slim")

    def test_render_script(self, mock_docker_client, universe):
        executor = DockerSequenceExecutor()
        script = executor.render_script(pair_sequence(universe, 1, 2))

        assert "    v0 = 1" in script
        assert "    v2 = importlib.import_module('sample_program').Pair(v0, v1)" in script
        assert "v2 is None" in script

    def test_normal_run(self, mock_docker_client, universe, tmp_path):
        container = self.mock_container(
            mock_docker_client,
            '{"status": "normal", "is_none": false, "type": "Pair", "repr": "<Pair>"}\n'
        )
        executor = DockerSequenceExecutor(project_root=tmp_path, timeout=12)

        outcome = executor.run(pair_sequence(universe, 1, 2))

        assert outcome == NormalExecution(RemoteValue(type_name="Pair", text="<Pair>"))
        call_kwargs = mock_docker_client.containers.run.call_args[1]
        assert call_kwargs['network_disabled'] is True
        assert call_kwargs['volumes'][str(tmp_path.resolve())]['mode'] == 'ro'
        container.wait.assert_called_once_with(timeout=12)
        container.remove.assert_called_once_with(force=True)

    def test_none_value(self, mock_docker_client, universe):
        self.mock_container(
            mock_docker_client,
            '{"status": "normal", "is_none": true, "type": "NoneType", "repr": "None"}'
        )
        outcome = DockerSequenceExecutor().run(pair_sequence(universe, 1, 2))
        assert outcome == NormalExecution(None)

    def test_exception_reported_by_script(self, mock_docker_client, universe):
        self.mock_container(
            mock_docker_client,
            'noise\n{"status": "exception", "type": "ValueError", "message": "negative"}\n'
        )
        outcome = DockerSequenceExecutor().run(pair_sequence(universe, -5, 2))

        assert isinstance(outcome, ExceptionalExecution)
        assert isinstance(outcome.exception, RemoteExecutionError)
        assert "ValueError: negative" in str(outcome.exception)

    def test_non_zero_exit(self, mock_docker_client, universe):
        self.mock_container(mock_docker_client, "Segmentation fault", status_code=139)
        outcome = DockerSequenceExecutor().run(pair_sequence(universe, 1, 2))

        assert isinstance(outcome, ExceptionalExecution)
        assert "139" in str(outcome.exception)

    def test_container_error(self, mock_docker_client, universe):
        mock_docker_client.containers.run.side_effect = docker.errors.ContainerError(
            container="test", exit_status=1, command="python", image="python", stderr="boom"
        )
        outcome = DockerSequenceExecutor().run(pair_sequence(universe, 1, 2))

        assert isinstance(outcome, ExceptionalExecution)
        assert "exit code 1" in str(outcome.exception)

    def test_timeout(self, mock_docker_client, universe):
        container = self.mock_container(mock_docker_client, "")
        container.wait.side_effect = TimeoutError("read timed out")

        outcome = DockerSequenceExecutor().run(pair_sequence(universe, 1, 2))

        assert isinstance(outcome, ExceptionalExecution)
        assert "did not complete" in str(outcome.exception)
        container.remove.assert_called_once_with(force=True)

    def test_cleanup(self, mock_docker_client):
        executor = DockerSequenceExecutor()
        executor.cleanup()
        mock_docker_client.close.assert_called_once()
