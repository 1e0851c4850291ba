"""Entry point to the franchise map chat REST API service.

This source file contains entry point to the service. It is implemented in the
main() function.
"""

import os
from argparse import ArgumentParser

import constants
from configuration import configuration
from log import configure_root_logger, get_logger
from runners.uvicorn import start_uvicorn

logger = get_logger(__name__)


def create_argument_parser() -> ArgumentParser:
    """Create and configure argument parser object.

    The parser includes these options:
    - -v / --verbose: enable verbose output
    - -d / --dump-configuration: dump the loaded configuration to JSON and exit
    - -c / --config: path to the configuration file (default "franchise-chat.yaml")

    Returns:
        Configured ArgumentParser for parsing the service CLI options.
    """
    parser = ArgumentParser()
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        help="make it verbose",
        action="store_true",
        default=False,
    )
    parser.add_argument(
        "-d",
        "--dump-configuration",
        dest="dump_configuration",
        help="dump actual configuration into JSON file and quit",
        action="store_true",
        default=False,
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        help=f"path to configuration file (default: {constants.DEFAULT_CONFIGURATION_FILE})",
        default=constants.DEFAULT_CONFIGURATION_FILE,
    )

    return parser


def main() -> None:
    """Entry point to the web service.

    Parses command-line arguments, loads the configured settings, and then:
    - If --dump-configuration is provided, writes the active configuration to
      configuration.json and exits (exits with status 1 on failure).
    - Otherwise, stores the configuration path for worker processes and
      starts the Uvicorn web service.

    Raises:
        SystemExit: when configuration dumping fails (exits with status 1).
    """
    parser = create_argument_parser()
    args = parser.parse_args()
    configure_root_logger(verbose=args.verbose)

    logger.info("Franchise chat startup")
    configuration.load_configuration(args.config_file)
    configure_root_logger(
        verbose=args.verbose, color=configuration.service_configuration.color_log
    )
    logger.info("Service name: %s", configuration.configuration.name)

    # -d or --dump-configuration CLI flags are used to dump the actual configuration
    # to a JSON file w/o doing any other operation
    if args.dump_configuration:
        try:
            configuration.configuration.dump()
            logger.info("Configuration dumped to configuration.json")
        except OSError as e:
            logger.error("Failed to dump configuration: %s", e)
            raise SystemExit(1) from e
        return

    # Store config path in env so each uvicorn worker can load it
    # (step is needed because process context isn't shared).
    os.environ[constants.CONFIGURATION_PATH_ENV_VARIABLE] = args.config_file

    start_uvicorn(configuration.service_configuration)
    logger.info("Franchise chat finished")


if __name__ == "__main__":
    main()
