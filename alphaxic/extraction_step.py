import logging
import os
from collections.abc import Callable

from alphaxic.constants.keys import ConfigKeys, OutputFiles
from alphaxic.exceptions import InvalidValueConfigError, NoProfileFoundError
from alphaxic.identification import create_profiles, load_identifications
from alphaxic.outputtransform.profile_writer import write_manifest
from alphaxic.raw_data.alpharaw_wrapper import get_raw_reader
from alphaxic.raw_data.interface import RawReader
from alphaxic.reporting.logging import print_environment, print_logo
from alphaxic.reporting.reporting import (
    ProgressReporter,
    init_logging,
    move_existing_file,
)
from alphaxic.scheduler import FileScheduler, find_raw_files
from alphaxic.workflow.config import (
    USER_DEFINED,
    USER_DEFINED_CLI_PARAM,
    Config,
    validate,
)

logger = logging.getLogger()


class ExtractionStep:
    def __init__(
        self,
        output_folder: str,
        config: dict | Config | None = None,
        cli_config: dict | None = None,
        progress: ProgressReporter | None = None,
        reader_factory: Callable[[str], RawReader] = get_raw_reader,
    ) -> None:
        """Highest level class of a label-free profile extraction.

        Owns the config, the identification list and the raw file lookup.

        Parameters
        ----------

        output_folder : str
            output folder to save the results

        config : dict, optional
            values to update the default config. Overrides values in `default.yaml`.

        cli_config : dict, optional
            additional config values (parameters from the command line). Overrides values in `config`.

        progress : ProgressReporter, optional
            progress reporting and cancellation, shared with all workers.

        reader_factory : Callable[[str], RawReader], optional
            opens a raw file, by default the alpharaw based reader.

        """

        self.output_folder = output_folder
        os.makedirs(output_folder, exist_ok=True)
        init_logging(self.output_folder)

        self._config = self._init_config(config, cli_config, output_folder)
        validate(self._config)
        self._save_config(output_folder)

        logger.setLevel(logging.getLevelName(self._config["general"]["log_level"]))

        self.progress = progress if progress is not None else ProgressReporter()
        self._reader_factory = reader_factory

    @property
    def config(self) -> Config:
        return self._config

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.output_folder, OutputFiles.MANIFEST_FILE_NAME)

    def _save_config(self, output_folder: str) -> None:
        """Save the config to a file in the output folder, moving an existing file if necessary."""
        file_path = os.path.join(output_folder, OutputFiles.FROZEN_CONFIG_FILE_NAME)
        moved_path = move_existing_file(file_path)
        self._config.to_yaml(file_path)
        if moved_path:
            logging.info(f"Moved existing config file {file_path} to {moved_path}")

    @staticmethod
    def _init_config(
        user_config: dict | Config | None,
        cli_config: dict | None,
        output_folder: str,
    ) -> Config:
        """Initialize the config with default values and update with user defined values."""

        config = Config.default()

        config_updates = []

        if user_config:
            logger.info("loading additional config provided via CLI")
            if isinstance(user_config, Config):
                config_updates.append(user_config)
            else:
                config_updates.append(Config(user_config, name=USER_DEFINED))

        if cli_config:
            logger.info("loading additional config provided via CLI parameters")
            config_updates.append(Config(cli_config, name=USER_DEFINED_CLI_PARAM))

        if config_updates:
            config.update(config_updates, do_print=True)

        if (
            current_config_output_folder := config.get(ConfigKeys.OUTPUT_DIRECTORY)
        ) is not None and current_config_output_folder != output_folder:
            logger.warning(
                f"Using output directory '{output_folder}' provided via CLI, the value specified in config ('{current_config_output_folder}') will be ignored."
            )
        config[ConfigKeys.OUTPUT_DIRECTORY] = output_folder

        return config

    def run(self) -> str | None:
        """Extract the profiles of all identifications and write the manifest.

        Returns
        -------
        str | None
            Path of the manifest, None if an existing manifest was kept.

        Raises
        ------
        NoProfileFoundError
            if no profile passed the filters in any raw file
        """
        print_logo()
        print_environment()

        if os.path.exists(self.manifest_path) and not self._config["general"]["overwrite"]:
            logger.info(
                f"Manifest {self.manifest_path} exists and overwrite is disabled, skipping extraction"
            )
            return None

        for key in [ConfigKeys.IDENTIFICATION_PATH, ConfigKeys.RAW_DIRECTORY]:
            if self._config[key] is None:
                raise InvalidValueConfigError(key, "None", "must be set")

        extraction = self._config[ConfigKeys.EXTRACTION]

        identifications = load_identifications(
            self._config[ConfigKeys.IDENTIFICATION_PATH]
        )
        file_groups = create_profiles(
            identifications,
            self.output_folder,
            extraction[ConfigKeys.MINIMUM_ISOTOPIC_PERCENTAGE],
            extraction[ConfigKeys.PROFILE_LENGTH],
        )

        raw_directory = self._config[ConfigKeys.RAW_DIRECTORY]
        raw_files = find_raw_files(
            raw_directory, self._config[ConfigKeys.RAW_FILE_EXTENSIONS]
        )

        rows = FileScheduler(
            self._config,
            self.output_folder,
            reader_factory=self._reader_factory,
            progress=self.progress,
        ).run(file_groups, raw_files)

        if not rows:
            raise NoProfileFoundError()

        write_manifest(rows, self.manifest_path)
        logger.progress("=================== Extraction Finished ===================")

        return self.manifest_path
