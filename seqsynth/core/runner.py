"""
Runner for seqsynth - wires the demand-driven components into one tracked run.

This module coordinates:
- Resolving the user-specified classes into a generation session
- Mining literals from those classes and seeding the sequence pool
- Choosing the input selection strategy
- Demand-driven creation for each requested target type
- MLflow tracking of the run's parameters, metrics and diagnostic report
"""

import logging
import random
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import docker.errors
import mlflow

from ..entities import Sequence, TypeRef
from ..execution import SequenceExecutor, create_executor
from ..literals import LiteralFrequencyTable, mine_classes
from ..types.universe import ReflectionTypeUniverse, TypeUniverse
from .demand_driven import DemandDrivenInputCreator
from .pool import SequencePool
from .producers import ProducerSearch, parse_producer_order
from .selection import create_selector
from .session import ConfigurationError, GenerationSession
from .synthesizer import SequenceSynthesizer


logger = logging.getLogger(__name__)


@dataclass
class SynthesisConfig:
    """Configuration for a demand-driven synthesis run."""
    seed: Optional[int] = None
    selection_strategy: str = "constant_mining"
    producer_order: str = "reversed"
    exact_type_match: bool = False
    only_receivers: bool = False
    rounds_per_target: int = 3  # Complex values may need several demand-driven passes
    unspecified_report_path: Optional[str] = None
    verbose: bool = True

    # Execution
    executor: str = "in_process"
    docker_image: str = "python:3.12-slim"
    execution_timeout: float = 30.0
    project_root: Optional[str] = None

    # MLflow configuration
    experiment_name: str = "seqsynth_demand_driven"
    log_artifacts: bool = True
    tracking_uri: Optional[str] = None  # Use default local tracking if None


class SynthesisRunner:
    """
    Builds every component for one generation session and drives it.

    Args:
        classes: Qualified names of the classes under test
        config: Run configuration
        universe: Type universe; reflection over live Python classes by default
        executor: Executor override, otherwise built from config.executor

    Raises:
        ConfigurationError: If a class cannot be resolved, a strategy name is unknown,
            or the Docker executor cannot start
    """

    def __init__(self, classes: List[str], config: Optional[SynthesisConfig] = None,
                 universe: Optional[TypeUniverse] = None,
                 executor: Optional[SequenceExecutor] = None):
        self.config = config or SynthesisConfig()
        self.universe = universe or ReflectionTypeUniverse()
        self.session = GenerationSession(
            self.universe, classes, report_path=self.config.unspecified_report_path
        )
        self.rng = random.Random(self.config.seed)

        runtime_classes = [t.runtime_class for t in self.session.specified_types
                           if t.runtime_class is not None]
        self.frequency_table = LiteralFrequencyTable.from_constant_sets(
            mine_classes(runtime_classes), self.universe
        )
        self.pool = SequencePool(self.universe, self.frequency_table.literal_sequences())

        try:
            selector = create_selector(self.config.selection_strategy,
                                       frequency_table=self.frequency_table, rng=self.rng)
            order = parse_producer_order(self.config.producer_order)
            self.executor = executor or create_executor(self.config.executor, **self._executor_kwargs())
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        except docker.errors.DockerException as e:
            raise ConfigurationError(f"Docker executor unavailable: {e}") from e

        self.creator = DemandDrivenInputCreator(
            pool=self.pool,
            search=ProducerSearch(self.universe, self.session, order),
            synthesizer=SequenceSynthesizer(selector),
            executor=self.executor,
        )

        self._setup_mlflow()

    def _executor_kwargs(self) -> Dict[str, Any]:
        if self.config.executor != "docker":
            return {}
        return {
            "image_name": self.config.docker_image,
            "project_root": self.config.project_root,
            "timeout": self.config.execution_timeout
        }

    def _setup_mlflow(self):
        """Set up MLflow experiment."""
        if self.config.tracking_uri:
            mlflow.set_tracking_uri(self.config.tracking_uri)

        experiment = mlflow.get_experiment_by_name(self.config.experiment_name)
        if experiment is None:
            experiment_id = mlflow.create_experiment(self.config.experiment_name)
            logger.info(f"Created new MLflow experiment: {self.config.experiment_name}")
        else:
            experiment_id = experiment.experiment_id
            logger.info(f"Using existing MLflow experiment: {self.config.experiment_name}")

        mlflow.set_experiment(experiment_id=experiment_id)

    def run(self, targets: List[str]) -> Dict[str, Any]:
        """
        Run demand-driven creation for each target type name.

        Returns:
            Dictionary containing per-target results and statistics
        """
        logger.info(f"Starting demand-driven synthesis for {len(targets)} targets")

        with mlflow.start_run():
            return self._run_targets(targets)

    def _run_targets(self, targets: List[str]) -> Dict[str, Any]:
        for key, value in asdict(self.config).items():
            if value is not None:
                mlflow.log_param(key, value)
        mlflow.log_metric("initial_pool_size", len(self.pool))
        mlflow.log_metric("mined_literals", len(self.frequency_table.document_frequencies))

        results: Dict[str, int] = {}
        for step, name in enumerate(targets):
            try:
                target = self.universe.resolve(name)
            except LookupError as e:
                raise ConfigurationError(f"Class not found: {name}") from e

            sequences = self.synthesize_target(target)
            results[name] = len(sequences)

            mlflow.log_metrics({
                "sequences_returned": len(sequences),
                "pool_size": len(self.pool)
            }, step=step)

            if self.config.verbose:
                status = "✓" if sequences else "✗"
                print(f"{status} {name}: {len(sequences)} sequences")

        final_results = self._get_final_results(results)
        self._log_final_results(final_results)
        return final_results

    def synthesize_target(self, target: TypeRef) -> List[Sequence]:
        """Call demand-driven creation until the target is available or rounds run out."""
        sequences: List[Sequence] = []
        for _ in range(max(1, self.config.rounds_per_target)):
            sequences = self.creator.create_input_for_type(
                target, self.config.exact_type_match, self.config.only_receivers
            )
            if sequences:
                break
        return sequences

    def _get_final_results(self, results: Dict[str, int]) -> Dict[str, Any]:
        return {
            'targets': results,
            'synthesis_stats': dict(self.creator.stats),
            'pool_stats': self.pool.get_statistics(),
            'unspecified_types': [t.name for t in self.session.tracker.unspecified_types()],
            'non_builtin_unspecified_types': [
                t.name for t in self.session.tracker.non_builtin_unspecified_types()
            ]
        }

    def _log_final_results(self, results: Dict[str, Any]):
        """Log final synthesis results to MLflow."""
        stats = results['synthesis_stats']
        mlflow.log_metrics({
            "final_pool_size": results['pool_stats']['count'],
            "targets_satisfied": sum(1 for n in results['targets'].values() if n > 0),
            "unspecified_types": len(results['unspecified_types']),
            **{f"final_{key}": value for key, value in stats.items()}
        })

        if self.config.log_artifacts and self.config.unspecified_report_path:
            self.session.write_report()
            mlflow.log_artifact(self.config.unspecified_report_path)

    def cleanup(self):
        """Clean up resources."""
        try:
            self.executor.cleanup()
        except Exception as e:
            logger.warning(f"Error during executor cleanup: {e}")

        try:
            if mlflow.active_run():
                mlflow.end_run()
        except Exception as e:
            logger.warning(f"Error ending MLflow run: {e}")
