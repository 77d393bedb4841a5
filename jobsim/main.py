"""Main entry point for the jobsim simulator."""

import argparse
import sys
from pathlib import Path

import yaml

from jobsim.core.simulator import Simulator
from jobsim.utils.io import save_jobs_json, save_trace_csv
from jobsim.utils.logger import setup_logger
from configs import DEFAULT_CONFIG_PATH, load_config, merge_configs


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="jobsim: round-robin job scheduler simulator"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to configuration file",
    )
    parser.add_argument(
        "--scenario",
        type=str,
        default=None,
        help="YAML job list to simulate instead of the configured workload",
    )
    parser.add_argument(
        "--case",
        type=int,
        default=None,
        help="Built-in scenario number",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=None,
        help="Last simulated timestep",
    )
    parser.add_argument(
        "--tick-interval",
        type=float,
        default=None,
        help="Wall-clock seconds to sleep between timesteps",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="results",
        help="Directory to save results",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Generate visualization plots",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging (every dispatched event)",
    )
    return parser.parse_args(argv)


def build_config(args) -> dict:
    """Merge the config file with command line overrides."""
    config = load_config(args.config)
    if Path(args.config).resolve() != DEFAULT_CONFIG_PATH:
        config = merge_configs(load_config(str(DEFAULT_CONFIG_PATH)), config)

    overrides = {'simulation': {}, 'workload': {}}
    if args.scenario:
        overrides['workload'] = {'type': 'file', 'path': args.scenario}
    elif args.case is not None:
        overrides['workload'] = {'type': 'builtin', 'scenario': args.case}
    if args.duration is not None:
        overrides['simulation']['duration'] = args.duration
    if args.tick_interval is not None:
        overrides['simulation']['tick_interval'] = args.tick_interval
    if args.progress:
        overrides['simulation']['progress'] = True

    return merge_configs(config, overrides)


def log_results(logger, results: dict, percentiles) -> None:
    """Log the headline metrics of a run."""
    logger.info("\n=== Simulation Results ===")
    logger.info(f"Jobs completed: {results['completed_jobs']}/{results['total_jobs']}")
    logger.info(f"Final time: {results['final_time']}")
    if 'mean_turnaround' in results:
        logger.info(f"Mean turnaround: {results['mean_turnaround']:.2f}")
        for p in percentiles:
            key = f"p{p}_turnaround"
            if key in results:
                logger.info(f"P{p} turnaround: {results[key]:.2f}")
    if 'mean_wait' in results:
        logger.info(f"Mean wait: {results['mean_wait']:.2f}")
    if 'cpu_utilization' in results:
        logger.info(f"CPU utilization: {results['cpu_utilization']:.2%}")
    if 'mean_memory_util' in results:
        logger.info(f"Mean memory util: {results['mean_memory_util']:.2%}")
    logger.info(f"Preemptions: {results['preemptions']}")


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    # Setup logging
    log_level = "DEBUG" if args.verbose else "INFO"
    logger = setup_logger("jobsim", level=log_level)

    logger.info("=== jobsim: round-robin job scheduler simulator ===")
    logger.info(f"Loading configuration from {args.config}")

    try:
        config = build_config(args)
        logger.info(f"Workload: {config['workload']['type']}")

        simulator = Simulator(config)
        results = simulator.run()

        # Save results
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        results_file = output_dir / "results.yaml"
        with open(results_file, 'w') as f:
            yaml.dump(results, f, default_flow_style=False)
        collector = simulator.metrics_collector
        save_trace_csv(collector.trace, output_dir / "trace.csv")
        save_jobs_json(collector.jobs.values(), output_dir / "jobs.json")
        logger.info(f"Results saved to {output_dir}")

        log_results(logger, results, config.get('metrics', {}).get('percentiles', []))

        # Generate visualizations
        if args.visualize:
            from jobsim.utils.visualization import plot_results

            logger.info("Generating visualization plots...")
            plot_results(collector.trace, collector.jobs.values(),
                         simulator.control.memory_capacity, output_dir)
            logger.info(f"Plots saved to {output_dir}")

        logger.info("Simulation completed successfully!")
        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
