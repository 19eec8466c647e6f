"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the HTTP service.
"""

import argparse
import logging
import os

from devsecops_demo.bootstrap import bootstrap_run_service
from devsecops_demo.config import SettingsLoadError, config_load_settings
from devsecops_demo.observability import logging_configure
from devsecops_demo.runtime import EXIT_CODE_CLEAN, EXIT_CODE_FORCED


def main(argv: list[str] | None = None) -> None:
    """Run the service with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Raises:
        SystemExit: Always raised with the lifecycle exit code.
    """

    argument_parser = argparse.ArgumentParser(description="Secure Cloud DevSecOps demo service")
    argument_parser.add_argument(
        "--host",
        dest="application_host",
        type=str,
        help="Interface to bind, overrides APP_HOST",
    )
    argument_parser.add_argument(
        "--port",
        dest="application_port",
        type=int,
        help="Port to listen on, overrides PORT",
    )
    parsed_arguments = argument_parser.parse_args(argv)

    try:
        settings = config_load_settings(
            application_host=parsed_arguments.application_host,
            application_port=parsed_arguments.application_port,
        )
    except SettingsLoadError as error:
        # Logging settings are part of the rejected configuration, use defaults.
        logging_configure().error(
            "Invalid configuration: %s",
            error,
            extra={"error_type": type(error).__name__, "exit_code": EXIT_CODE_FORCED},
        )
        raise SystemExit(EXIT_CODE_FORCED) from error

    logger = logging_configure(level=settings.log_level, log_format=settings.log_format)
    exit_code = bootstrap_run_service(settings, logger)
    if exit_code != EXIT_CODE_CLEAN:
        # Abandoned request threads must not keep the interpreter alive.
        logging.shutdown()
        os._exit(exit_code)  # pylint: disable=protected-access
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
