"""
Command line interface.

    muon-tomo --config run.yaml --events 10000
    muon-tomo --defect centered-cylinder --source uniform-area --output scan.txt
    muon-tomo --interactive --events 20

Exit codes: 0 on completion, 2 on a configuration error or when the output
log cannot be opened (no event is simulated in either case).
"""

import argparse
import logging
import sys
from typing import Iterable, Optional

from muon_tomo.config import DEFECT_KINDS, SOURCE_KINDS, RunConfig, load_config
from muon_tomo.errors import ConfigurationError, ResourceError
from muon_tomo.logging_config import setup_logging
from muon_tomo.recording.recorder import FIELD_HEADERS, LOG_ENERGY_UNITS
from muon_tomo.run.controller import RunController
from muon_tomo.transport.engine import TransportEngine

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 2


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='muon-tomo',
        description='Muon tomography detector simulation')
    parser.add_argument('-c', '--config', type=str, default=None,
                        help='YAML run configuration')
    parser.add_argument('-n', '--events', type=int, default=None,
                        help='Number of events (overrides the configuration)')
    parser.add_argument('-p', '--physics', type=str, default=None,
                        help='Name of the reference physics list, e.g. FTFP_BERT')
    parser.add_argument('-o', '--output', type=str, default=None,
                        help='Deposit log path')
    parser.add_argument('--fields', nargs='+', choices=list(FIELD_HEADERS), default=None,
                        help='Columns of the deposit log, in order')
    parser.add_argument('--energy-unit', choices=LOG_ENERGY_UNITS, default=None,
                        help='Energy unit of the deposit log')
    parser.add_argument('--defect', choices=DEFECT_KINDS, default=None,
                        help='Defect descriptor')
    parser.add_argument('--source', choices=SOURCE_KINDS, default=None,
                        help='Primary sampling policy')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for source and physics random streams')
    parser.add_argument('-i', '--interactive', action='store_true',
                        help='Open the viewer and read commands after the run')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write the log to this file')
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RunConfig:
    """Load the configuration file and apply command line overrides."""
    config = load_config(args.config) if args.config else RunConfig()

    if args.events is not None:
        if args.events < 0:
            raise ConfigurationError(f"--events must not be negative, got {args.events}")
        config.events = args.events
    if args.physics is not None:
        config.physics_list = args.physics
    if args.output is not None:
        config.output.path = args.output
    if args.fields is not None:
        config.output.fields = tuple(args.fields)
    if args.energy_unit is not None:
        config.output.energy_unit = args.energy_unit
    if args.defect is not None:
        config.geometry.defect.kind = args.defect
    if args.source is not None:
        config.source.kind = args.source
    if args.seed is not None:
        config.source.seed = args.seed
    if args.interactive:
        config.interactive = True
    return config


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        config = build_config(args)
        engine = TransportEngine(verbose=1, seed=args.seed)
        controller = RunController.from_config(config, engine=engine)
        controller.initialize()
    except ResourceError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        if config.interactive:
            summary = controller.run_interactive(config.events)
        else:
            summary = controller.run_batch(config.events)
    except KeyboardInterrupt:
        logger.warning("Run interrupted; log closed with %d rows",
                       controller.recorder.rows_written)
        return 130

    print(summary)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
