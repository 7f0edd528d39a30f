#!/usr/bin/env python3
"""
Activity Placement - Camp Activity Assignment System

Main entry point. Runs the best-of-N search over the assignment engine
for a YAML configuration (or the built-in sample catalogue), prints the
result and exports it.
"""

import sys
import argparse
import time
from pathlib import Path

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from activity_placement.config_loader import (
    DEFAULT_TRIALS,
    ConfigurationError,
    create_input_from_config,
    get_output_config,
    get_search_config,
    load_config,
    print_config_summary,
    resolve_random_seed,
    save_config
)
from activity_placement.fitness import SolutionMetrics, print_solution_report
from activity_placement.sample_data import generate_sample_input, input_to_config
from activity_placement.search import run_search
from activity_placement.solution_exporter import create_solution_file


def load_run_inputs(config_path="config.yaml", use_sample=False, sample_seed=None):
    """Return (input_data, search_config, output_config) for this run"""
    if use_sample:
        sample_seed = resolve_random_seed(sample_seed)
        print(f"Using generated sample catalogue (seed {sample_seed})")
        input_data = generate_sample_input(sample_seed)
        search_config = {'trials': DEFAULT_TRIALS, 'random_seed': sample_seed}
        return input_data, search_config, {'directory': 'output'}

    config = load_config(config_path)
    print_config_summary(config_path, config)
    input_data = create_input_from_config(config)
    return input_data, get_search_config(config), get_output_config(config)


def print_assignments(input_data, solution):
    """Print every person's assigned activities"""
    print("\nAssignments:")
    for person in input_data.persons():
        held = solution.held_activities(input_data, person.id)
        names = ", ".join(f"{a.name} ({a.module.value}, {a.block.value})" for a in held)
        print(f"  {person.name}: {names}")


def run_search_command(args):
    input_data, search_config, output_config = load_run_inputs(
        args.config, args.sample, args.seed
    )

    num_trials = args.trials if args.trials else search_config['trials']
    seed = args.seed if args.seed is not None else search_config['random_seed']
    seed = resolve_random_seed(seed)

    print("\n" + "=" * 60)
    print(f"RUNNING {num_trials} TRIALS (seed {seed})")
    print("=" * 60)
    start_time = time.time()

    search_result = run_search(input_data, num_trials, seed, verbose=args.verbose)

    elapsed_time = time.time() - start_time
    print(f"Search completed in {elapsed_time:.3f} seconds")

    scores = search_result.scores
    print(f"\nResults Summary:")
    print(f"  Best score: {search_result.best_score:.3f} "
          f"(trial {search_result.best_trial + 1}, seed {search_result.best_seed})")
    print(f"  Average: {sum(scores) / len(scores):.3f}")
    print(f"  Range: {min(scores):.3f} - {max(scores):.3f}")

    best = search_result.best_solution
    print_assignments(input_data, best)

    metrics = None
    if args.detailed or args.plot:
        metrics = SolutionMetrics(input_data).analyze_solution(best)

    if args.detailed:
        print("\n" + print_solution_report(metrics, input_data))

    output_dir = output_config['directory']
    output_name = args.output_name or f"assignment_{int(time.time())}"

    if args.sample:
        sample_config = input_to_config(input_data)
        sample_config['search'] = {'trials': num_trials, 'random_seed': seed}
        input_path = save_config(sample_config, str(Path(output_dir) / f"{output_name}_input.yaml"))
        print(f"\nSample catalogue written to {input_path} (rerun with --config)")

    print(f"\nExporting assignment file as '{output_name}.csv'...")
    try:
        file_path = create_solution_file(input_data, best, output_name, output_dir,
                                         search_result.best_score)
        print(f"  ✓ CSV: {file_path}")
    except OSError as e:
        print(f"  ✗ CSV: Failed - {e}")

    if args.plot:
        print(f"\nGenerating visualization plot...")
        # Non-interactive backend, set before pyplot is imported
        import matplotlib
        matplotlib.use('Agg')
        from activity_placement.visualization import SolutionVisualizer

        Path(output_dir).mkdir(parents=True, exist_ok=True)
        plot_path = f"{output_dir}/{output_name}_plot.png"
        SolutionVisualizer(input_data).plot_search_summary(
            search_result, metrics, save_path=plot_path
        )
        print(f"  ✓ Plot: {plot_path}")

    return search_result


def main():
    """Main entry point with command-line argument parsing"""
    parser = argparse.ArgumentParser(
        description="Activity Placement - Camp Activity Assignment System",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py                               # Search with config.yaml (CSV export)
  python3 main.py --detailed                    # With quality report
  python3 main.py --plot                        # With score/staffing plot
  python3 main.py --trials 500 --seed 7         # Override search settings
  python3 main.py --sample                      # Use the generated sample catalogue
  python3 main.py --config camp.yaml -n camp_v1 # Custom config and output name
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config.yaml',
        help='Configuration file path (default: config.yaml)'
    )

    parser.add_argument(
        '--sample', '-s',
        action='store_true',
        help='Use the generated sample catalogue instead of a config file (also saved as YAML)'
    )

    parser.add_argument(
        '--trials', '-t',
        type=int,
        metavar='N',
        help='Number of trials (default: search.trials from config)'
    )

    parser.add_argument(
        '--seed',
        type=int,
        metavar='SEED',
        help='Base random seed (default: search.random_seed from config)'
    )

    parser.add_argument(
        '--detailed', '-d',
        action='store_true',
        help='Print the solution quality report'
    )

    parser.add_argument(
        '--plot', '-p',
        action='store_true',
        help='Save a plot of trial scores and staffing'
    )

    parser.add_argument(
        '--output-name', '-n',
        type=str,
        metavar='NAME',
        help='Base name for CSV file (default: assignment_TIMESTAMP)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Print every trial score'
    )

    args = parser.parse_args()

    if args.trials is not None and args.trials <= 0:
        parser.error("--trials must be positive")

    try:
        run_search_command(args)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
