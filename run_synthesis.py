#!/usr/bin/env python3
"""
seqsynth Entrypoint - Run demand-driven input synthesis from YAML configuration.

Usage:
    python run_synthesis.py config.yaml
    python run_synthesis.py --config config.yaml
    python run_synthesis.py --config config.yaml --dry-run
"""

import argparse
import logging
import sys
import yaml
from pathlib import Path
from typing import Dict, Any, List

from seqsynth.core import SynthesisRunner, SynthesisConfig


def setup_logging(verbose: bool = False):
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def create_synthesis_config(config_dict: Dict[str, Any]) -> SynthesisConfig:
    """Create SynthesisConfig from configuration dictionary."""
    synthesis_config = config_dict.get('synthesis', {})
    docker_config = config_dict.get('docker', {})
    mlflow_config = config_dict.get('mlflow', {})

    return SynthesisConfig(
        seed=synthesis_config.get('seed'),
        selection_strategy=synthesis_config.get('selection_strategy', 'constant_mining'),
        producer_order=synthesis_config.get('producer_order', 'reversed'),
        exact_type_match=synthesis_config.get('exact_type_match', False),
        only_receivers=synthesis_config.get('only_receivers', False),
        rounds_per_target=synthesis_config.get('rounds_per_target', 3),
        unspecified_report_path=synthesis_config.get('unspecified_report_path'),
        verbose=synthesis_config.get('verbose', True),
        executor=synthesis_config.get('executor', 'in_process'),
        docker_image=docker_config.get('image_name', 'python:3.12-slim'),
        execution_timeout=docker_config.get('timeout', 30.0),
        project_root=docker_config.get('project_root'),
        experiment_name=mlflow_config.get('experiment_name', 'seqsynth_demand_driven'),
        log_artifacts=mlflow_config.get('log_artifacts', True),
        tracking_uri=mlflow_config.get('tracking_uri')
    )


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration dictionary."""
    if not isinstance(config, dict):
        raise ValueError("Configuration file must contain a mapping")

    required_sections = ['classes', 'targets']
    for section in required_sections:
        if section not in config:
            raise ValueError(f"Missing required configuration section: {section}")

    for section in required_sections:
        value = config[section]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"Section '{section}' must be a list of qualified class names")


def load_config(config_file: Path) -> Dict[str, Any]:
    with open(config_file, 'r') as f:
        return yaml.safe_load(f)


def print_results(results: Dict[str, Any], targets: List[str]) -> None:
    print("\n" + "=" * 60)
    print("Synthesis Complete!")
    print("=" * 60)

    stats = results['synthesis_stats']
    print(f"Targets satisfied: {sum(1 for t in targets if results['targets'].get(t))}/{len(targets)}")
    print(f"Sequences admitted: {stats['sequences_admitted']}")
    print(f"Execution failures: {stats['execution_failures']}")
    print(f"Final pool size: {results['pool_stats']['count']}")

    if results.get('non_builtin_unspecified_types'):
        print("\nClasses used without being specified:")
        for name in results['non_builtin_unspecified_types']:
            print(f"  {name}")


def run_synthesis(config_file: Path, dry_run: bool = False) -> None:
    """Run demand-driven synthesis from configuration file."""
    try:
        config = load_config(config_file)
    except Exception as e:
        print(f"Error loading configuration file: {e}")
        sys.exit(1)

    try:
        validate_config(config)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    synthesis_config = create_synthesis_config(config)
    setup_logging(verbose=config.get('synthesis', {}).get('debug', False))
    logger = logging.getLogger(__name__)

    if dry_run:
        print("Dry run mode - configuration validated successfully!")
        return

    runner = None
    try:
        logger.info("Creating synthesis components...")
        runner = SynthesisRunner(config['classes'], synthesis_config)

        logger.info("Starting demand-driven synthesis...")
        results = runner.run(config['targets'])
        print_results(results, config['targets'])

    except KeyboardInterrupt:
        logger.info("Synthesis interrupted by user")
        print("\nSynthesis interrupted!")
    except Exception as e:
        logger.error(f"Synthesis failed: {e}", exc_info=True)
        print(f"Synthesis failed: {e}")
        sys.exit(1)
    finally:
        if runner is not None:
            runner.cleanup()


def main():
    """Main entrypoint."""
    parser = argparse.ArgumentParser(
        description="Run seqsynth demand-driven input synthesis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_synthesis.py config.yaml
  python run_synthesis.py --config my_config.yaml
  python run_synthesis.py --config config.yaml --dry-run
  python run_synthesis.py --example-config > example.yaml
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        type=Path,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--config', '-c',
        type=Path,
        help='Path to YAML configuration file (alternative to positional argument)'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without running synthesis'
    )

    parser.add_argument(
        '--example-config',
        action='store_true',
        help='Print an example configuration file and exit'
    )

    args = parser.parse_args()

    if args.example_config:
        example_config_path = Path(__file__).parent / "config" / "example_config.yaml"
        try:
            with open(example_config_path, 'r') as f:
                print(f.read())
        except FileNotFoundError:
            print("Error: Example configuration file not found.")
            sys.exit(1)
        return

    config_file = args.config or args.config_file
    if not config_file:
        parser.error("Configuration file is required (provide as positional argument or with --config)")

    if not config_file.exists():
        print(f"Error: Configuration file not found: {config_file}")
        sys.exit(1)

    run_synthesis(config_file, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
