#!python
"""CLI for alphaXIC.

Ideally the CLI module should have as little logic as possible so that the extraction behaves the same from the CLI or a jupyter notebook.
"""

import argparse
import json
import logging
import os
import signal
from pathlib import Path

import yaml

from alphaxic import __version__
from alphaxic.constants.keys import ConfigKeys

logger = logging.getLogger()

EXIT_CODE_USER_ERROR = 1
EXIT_CODE_WRONG_CLI_PARAM = 126
EXIT_CODE_UNKNOWN_ERROR = 127
EXIT_CODE_CANCELLED = 130

epilog = "Parameters passed via CLI will overwrite parameters from config file."

parser = argparse.ArgumentParser(
    description="Extract label-free chromatographic profiles of identified peptides with alphaXIC",
    epilog=epilog,
)
parser.add_argument(
    "--version",
    "-v",
    action="store_true",
    help="Print version and exit",
)
parser.add_argument(
    "--check",
    action="store_true",
    help="Check if package can be imported",
)
parser.add_argument(
    "--output",
    "--output-directory",
    "-o",
    type=str,
    help="Output directory.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--identifications",
    "--identification-path",
    "-i",
    type=str,
    help="Path to the tab separated list of identified spectra.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--directory",
    "--raw-directory",
    "-d",
    type=str,
    help="Directory which is searched recursively for the raw files of all experiments.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--threads",
    "-t",
    type=int,
    help="Number of worker threads, 0 uses all processors.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--config",
    "-c",
    type=str,
    help="Path to config yaml file which will be used to update the default config.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--config-dict",
    type=str,
    help="Python dictionary which will be used to update the default config. Keys and string values need to be surrounded by "
    'escaped double quotes, e.g. "{\\"key1\\": \\"value1\\"}".',
    nargs="?",
    default="{}",
)


def _recursive_update(full_dict: dict, update_dict: dict):
    """recursively update a dict with a second dict. The dict is updated inplace.

    Parameters
    ----------
    full_dict : dict
        dict to be updated, is updated inplace.

    update_dict : dict
        dict with new values

    """
    for key, value in update_dict.items():
        if key in full_dict:
            if isinstance(value, dict):
                _recursive_update(full_dict[key], update_dict[key])
            else:
                full_dict[key] = value
        else:
            full_dict[key] = value


def _get_config_from_args(
    args: argparse.Namespace,
) -> tuple[dict, str | None, str | None]:
    """Parse config file from `args.config` if given and update with optional JSON string `args.config_dict`."""

    config = {}
    if args.config is not None:
        with open(args.config) as f:
            config = yaml.safe_load(f)

    if args.config_dict:
        try:
            _recursive_update(config, json.loads(args.config_dict))
        except Exception as e:
            print(f"Could not parse config update: {e}")

    return config, args.config, args.config_dict


def _get_from_args_or_config(
    args: argparse.Namespace, config: dict, *, args_key: str, config_key: str
) -> str:
    """Get a value from command line arguments (key: `args_key`) or config file (key: `config_key`), the former taking precedence."""
    value_from_args = args.__dict__.get(args_key)
    return value_from_args if value_from_args is not None else config.get(config_key)


def _get_cli_params_config(args: argparse.Namespace) -> dict:
    """Collect the config values given as dedicated CLI parameters."""
    return {
        **(
            {ConfigKeys.IDENTIFICATION_PATH: args.identifications}
            if args.identifications is not None
            else {}
        ),
        **(
            {ConfigKeys.RAW_DIRECTORY: args.directory}
            if args.directory is not None
            else {}
        ),
        **(
            {ConfigKeys.GENERAL: {ConfigKeys.THREAD_COUNT: args.threads}}
            if args.threads is not None
            else {}
        ),
    }


def _install_interrupt_handler(progress):
    """Map Ctrl+C to a cooperative cancellation of `progress`, a second Ctrl+C interrupts immediately.

    Returns the previous SIGINT handler.
    """

    def _handle_interrupt(signum, frame):
        if progress.is_cancellation_pending():
            raise KeyboardInterrupt
        progress.request_cancellation()

    return signal.signal(signal.SIGINT, _handle_interrupt)


def run(*args, **kwargs):
    args, unknown = parser.parse_known_args()

    if unknown:
        print(f"Unknown arguments: {unknown}")
        parser.print_help()
        return EXIT_CODE_WRONG_CLI_PARAM

    if args.version:
        print(f"{__version__}")
        return

    # load modules only here to speed up -v and -h commands
    from alphaxic.exceptions import CustomError, OperationCancelledError
    from alphaxic.extraction_step import ExtractionStep
    from alphaxic.reporting import reporting

    if args.check:
        print(f"{__version__}")
        print("Importing alphaXIC works!")
        return

    user_config, config_file_path, extra_config_dict = _get_config_from_args(args)

    output_directory = _get_from_args_or_config(
        args, user_config, args_key="output", config_key=ConfigKeys.OUTPUT_DIRECTORY
    )

    if output_directory is None:
        parser.print_help()

        print("No output directory specified. Please do so via CL-argument or config.")
        return

    reporting.init_logging(output_directory)

    logger.info(
        f"Output directory: {Path(output_directory).absolute()}, cwd: {os.getcwd()}."
    )
    if config_file_path:
        logger.info(f"User provided config file: {config_file_path}.")
    if extra_config_dict:
        logger.info(f"User provided config dict: {extra_config_dict}.")

    cli_params_config = _get_cli_params_config(args)

    progress = reporting.ProgressReporter()
    previous_handler = _install_interrupt_handler(progress)

    try:
        ExtractionStep(
            output_directory, user_config, cli_params_config, progress=progress
        ).run()

    except OperationCancelledError as e:
        logger.warning(f"Extraction stopped: {e.msg}")
        return EXIT_CODE_CANCELLED

    except Exception as e:
        if isinstance(e, CustomError):
            exit_code = EXIT_CODE_USER_ERROR
        else:
            import traceback

            logger.info(traceback.format_exc())
            exit_code = EXIT_CODE_UNKNOWN_ERROR

        logger.error(e)
        return exit_code

    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__" and os.getenv("RUN_MAIN") == "1":
    run()
