import os
import sys
import logging
import argparse

# Required: Use uvloop for the router event loop
import uvloop

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    SERVER_HOST, SERVER_PORT, LISTEN_HOST, DEFAULT_START_RATE, DEFAULT_DURATION_SECONDS,
    DEFAULT_WRITE_RATIO, DEFAULT_RATE_STEP, MAX_TARGET_RATE, KEYSPACE_SIZE, RESULTS_FILENAME,
    DEFAULT_OUTPUT_DIR, DEFAULT_PLOTS_DIR, DEFAULT_BACKEND, DEFAULT_WAIT_STRATEGY,
    REDIS_HOST, REDIS_PORT, REDIS_DB, PROMETHEUS_PORT, MAX_CONSECUTIVE_INCOMPLETE,
)

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class LatencyBenchCLI:
    """Simple CLI interface for the UDP key-value latency benchmark."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='Open-loop UDP key-value latency benchmark',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Server: request router in front of a local Redis on port 5001
  python main.py serve --port 5001

  # Client: sweep from 1000 req/s, 1 second trials, 50% writes
  python main.py sweep --start-rate 1000 --duration 1 --write-ratio 50

  # Finer sweep with 4 generator threads, stop after 3 incomplete trials in a row
  python main.py sweep --start-rate 1000 --rate-step 50 --generators 4 --max-consecutive-incomplete 3

  # Plot the latency curve
  python main.py visualize --results-file latency.txt --output-dir plots
            """
        )
        parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Sweep command
        sweep_parser = subparsers.add_parser('sweep', help='Run the open-loop rate sweep (client)')
        sweep_parser.add_argument('--start-rate', type=int, default=DEFAULT_START_RATE,
                                  help=f'Starting target rate in req/s (default: {DEFAULT_START_RATE})')
        sweep_parser.add_argument('--duration', type=int, default=DEFAULT_DURATION_SECONDS,
                                  help=f'Trial duration in seconds (default: {DEFAULT_DURATION_SECONDS})')
        sweep_parser.add_argument('--write-ratio', type=int, default=DEFAULT_WRITE_RATIO,
                                  help=f'Percent of PUT requests, 0-100 (default: {DEFAULT_WRITE_RATIO})')
        sweep_parser.add_argument('--rate-step', type=int, default=DEFAULT_RATE_STEP,
                                  help=f'Rate increment per trial (default: {DEFAULT_RATE_STEP})')
        sweep_parser.add_argument('--max-rate', type=int, default=MAX_TARGET_RATE,
                                  help=f'Highest target rate tried (default: {MAX_TARGET_RATE})')
        sweep_parser.add_argument('--generators', type=int, default=None,
                                  help='Generator threads per trial (default: one per second of duration)')
        sweep_parser.add_argument('--keyspace', type=int, default=KEYSPACE_SIZE,
                                  help=f'Number of distinct keys (default: {KEYSPACE_SIZE})')
        sweep_parser.add_argument('--seed', type=int, default=None,
                                  help='Seed for arrival gaps, operations and keys (default: random)')
        sweep_parser.add_argument('--host', type=str, default=SERVER_HOST,
                                  help=f'Router host (default: {SERVER_HOST})')
        sweep_parser.add_argument('--port', type=int, default=SERVER_PORT,
                                  help=f'Router port (default: {SERVER_PORT})')
        sweep_parser.add_argument('--results-file', type=str, default=RESULTS_FILENAME,
                                  help=f'Latency file appended per completed trial (default: {RESULTS_FILENAME})')
        sweep_parser.add_argument('--output-dir', type=str, default=DEFAULT_OUTPUT_DIR,
                                  help=f'Directory for Parquet results (default: {DEFAULT_OUTPUT_DIR})')
        sweep_parser.add_argument('--prometheus-port', type=int, default=PROMETHEUS_PORT,
                                  help='Expose sweep metrics on this port (0 = disabled)')
        sweep_parser.add_argument('--max-consecutive-incomplete', type=int, default=MAX_CONSECUTIVE_INCOMPLETE,
                                  help='Stop after this many discarded trials in a row (0 = never)')
        sweep_parser.add_argument('--wait', choices=['busy', 'hybrid'], default=DEFAULT_WAIT_STRATEGY,
                                  help=f'Pacing wait strategy (default: {DEFAULT_WAIT_STRATEGY})')

        # Serve command
        serve_parser = subparsers.add_parser('serve', help='Run the request router (server)')
        serve_parser.add_argument('--port', type=int, default=SERVER_PORT,
                                  help=f'Listen port (default: {SERVER_PORT})')
        serve_parser.add_argument('--host', type=str, default=LISTEN_HOST,
                                  help=f'Listen address (default: {LISTEN_HOST})')
        serve_parser.add_argument('--backend', choices=['redis', 'memory'], default=DEFAULT_BACKEND,
                                  help=f'Key-value backend (default: {DEFAULT_BACKEND})')
        serve_parser.add_argument('--redis-host', type=str, default=REDIS_HOST,
                                  help=f'Redis host (default: {REDIS_HOST})')
        serve_parser.add_argument('--redis-port', type=int, default=REDIS_PORT,
                                  help=f'Redis port (default: {REDIS_PORT})')
        serve_parser.add_argument('--redis-db', type=int, default=REDIS_DB,
                                  help=f'Redis database (default: {REDIS_DB})')
        serve_parser.add_argument('--keyspace', type=int, default=KEYSPACE_SIZE,
                                  help=f'Keys preloaded at startup (default: {KEYSPACE_SIZE})')
        serve_parser.add_argument('--no-preload', action='store_true',
                                  help='Skip preloading the keyspace')
        serve_parser.add_argument('--prometheus-port', type=int, default=PROMETHEUS_PORT,
                                  help='Expose router metrics on this port (0 = disabled)')

        # Visualize command
        visualize_parser = subparsers.add_parser('visualize', help='Generate plots from sweep results')
        visualize_parser.add_argument('--results-file', type=str, required=True,
                                      help='Parquet file or latency text file produced by a sweep')
        visualize_parser.add_argument('--output-dir', type=str, default=DEFAULT_PLOTS_DIR,
                                      help=f'Output directory for generated plots (default: {DEFAULT_PLOTS_DIR})')

        return parser

    def run_sweep(self, args):
        """Run the client rate sweep."""
        from cli.sweep import SweepRunner
        from common.transport import TransportError

        logger.info("=== Rate Sweep ===")

        try:
            runner = SweepRunner(
                host=args.host,
                port=args.port,
                start_rate=args.start_rate,
                duration_seconds=args.duration,
                write_ratio=args.write_ratio,
                rate_step=args.rate_step,
                max_rate=args.max_rate,
                keyspace_size=args.keyspace,
                num_generators=args.generators,
                seed=args.seed,
                results_file=args.results_file,
                output_dir=args.output_dir,
                prometheus_port=args.prometheus_port,
                max_consecutive_incomplete=args.max_consecutive_incomplete,
                wait_strategy=args.wait,
            )
            summary = runner.run()
        except ValueError as e:
            logger.error(f"Invalid sweep configuration: {e}")
            return 1
        except TransportError as e:
            logger.error(f"Could not create socket: {e}")
            return 1

        logger.info(
            f"Sweep completed: {len(summary['results'])} trials recorded, "
            f"{summary['trials_discarded']} discarded ({summary['stop_reason']})"
        )
        return 0

    def run_serve(self, args):
        """Run the request router until interrupted."""
        from cli.server import RouterServer, prepare_backend
        from common.storage_factory import create_backend
        from systems.base import BackendError

        logger.info("=== Request Router ===")

        if args.backend == 'redis':
            backend = create_backend('redis', host=args.redis_host, port=args.redis_port, db=args.redis_db)
        else:
            backend = create_backend(args.backend)

        try:
            prepare_backend(backend, 0 if args.no_preload else args.keyspace)
        except BackendError as e:
            logger.error(f"Failed to connect to backend: {e}")
            backend.close()
            return 1

        exporter = None
        if args.prometheus_port:
            from persistence.prom import SimplePrometheusExporter
            exporter = SimplePrometheusExporter(args.prometheus_port)
            exporter.start_server()

        server = RouterServer(backend, host=args.host, port=args.port, metrics=exporter)
        try:
            uvloop.run(server.serve_forever())
        except OSError as e:
            logger.error(f"Could not bind socket on {args.host}:{args.port}: {e}")
            return 1
        finally:
            backend.close()
        return 0

    def run_visualize(self, args):
        """Run the visualization phase."""
        try:
            from cli.visualiser import BenchmarkVisualizer

            logger.info("=== Visualization Phase ===")

            if not os.path.exists(args.results_file):
                logger.error(f"Results file not found: {args.results_file}")
                return 1

            visualizer = BenchmarkVisualizer(args.results_file, args.output_dir)
            plots = visualizer.create_all_plots()

            if plots:
                logger.info(f"Successfully created {len(plots)} plots in {args.output_dir}")
                for plot in plots:
                    logger.info(f"  - {plot}")
                return 0
            else:
                logger.error("No plots were created")
                return 1

        except Exception as e:
            logger.error(f"Error in visualization phase: {e}")
            return 1

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            if parsed_args.command == 'sweep':
                return self.run_sweep(parsed_args)
            elif parsed_args.command == 'serve':
                return self.run_serve(parsed_args)
            elif parsed_args.command == 'visualize':
                return self.run_visualize(parsed_args)
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            return 1


def main():
    """Main entry point."""
    cli = LatencyBenchCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
