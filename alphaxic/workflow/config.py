"""This module is responsible for creating, validating and storing the configuration.

The default configuration is updated with one or more other configuration objects.
The order of configs holds significance, with configurations later in the sequence overwriting previous values.
Lists are always overwritten completely.
"""

import json
import logging
from collections import UserDict
from copy import deepcopy
from pathlib import Path

import yaml

from alphaxic.constants.keys import ConfigKeys
from alphaxic.exceptions import (
    InvalidValueConfigError,
    KeyAddedConfigError,
    TypeMismatchConfigError,
)

logger = logging.getLogger()

DEFAULT = "default"
USER_DEFINED = "user defined"
USER_DEFINED_CLI_PARAM = "user defined (cli)"

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "constants" / "default.yaml"

# keys which may be set directly, all others have to go through update()
_SETTABLE_KEYS = (
    ConfigKeys.OUTPUT_DIRECTORY,
    ConfigKeys.IDENTIFICATION_PATH,
    ConfigKeys.RAW_DIRECTORY,
)


class Config(UserDict):
    """Dict-like config class that can read from and write to yaml and json files and allows updating with other config objects."""

    def __init__(self, data: dict = None, name: str = DEFAULT) -> None:
        # super class deliberately not called as this calls "update" (which we overwrite)
        self.data = {**data} if data is not None else {}
        self.name = name

    @classmethod
    def default(cls) -> "Config":
        """Load the default config shipped with the package."""
        logger.info(f"loading default config from {DEFAULT_CONFIG_PATH}")
        config = cls()
        config.from_yaml(str(DEFAULT_CONFIG_PATH))
        return config

    def from_yaml(self, path: str) -> None:
        with open(path) as f:
            self.data = yaml.safe_load(f)

    def from_json(self, path: str) -> None:
        with open(path) as f:
            self.data = json.load(f)

    def to_yaml(self, path: str) -> None:
        with open(path, "w") as f:
            yaml.dump(self.data, f, sort_keys=False)

    def to_json(self, path: str) -> None:
        with open(path, "w") as f:
            json.dump(self.data, f)

    def __setitem__(self, key, item):
        if key not in _SETTABLE_KEYS:
            raise NotImplementedError("Use update() to update the config.")
        return super().__setitem__(key, item)

    def __delitem__(self, key):
        raise NotImplementedError("Use update() to update the config.")

    def copy(self):
        raise NotImplementedError("Use deepcopy() to copy the config.")

    def update(self, configs: list["Config"], do_print: bool = False):
        """
        Updates the config with one or more other config objects.

        Parameters
        ----------
        configs : list of configs
            List of config objects to update the current config with. The order of the configs is important (last one wins).

        do_print : bool, optional
            Whether to log the values which differ from the current config. Default is False.
        """
        changes: dict[str, tuple] = {}

        current_config = deepcopy(self.data)
        for config in configs:
            logger.info(f"Updating config with '{config.name}'")
            _update(current_config, config.data, changes, config.name)

        self.data = current_config

        if do_print:
            for full_key, (old_value, new_value, config_name) in changes.items():
                logger.info(
                    f"{full_key}: {new_value} [{config_name}, previous: {old_value}]"
                )


def _update(
    target_config: dict,
    update_config: dict,
    changes: dict,
    config_name: str,
    parent_keys: str = "",
) -> None:
    """
    Recursively update target_config in-place with values from update_config.

    Parameters
    ----------
    target_config:
        The config dictionary to be modified
    update_config:
        The config dictionary containing update values
    changes:
        Maps the dotted key of every changed leaf to (previous value, new value, config_name).
    config_name:
        The name of the current config object
    parent_keys:
        Names of the parent keys, separated by dots. Used only for exception messages.

    Raises
    ------
    - KeyAddedConfigError: a key is not found in the target_config
    - TypeMismatchConfigError: the type of the update value does not match the type of the target value
    """
    for key, update_value in update_config.items():
        full_key = f"{parent_keys}.{key}" if parent_keys else key

        if key not in target_config:
            raise KeyAddedConfigError(full_key, update_value, config_name)

        target_value = target_config[key]

        # strings "true"/"false" are passed by the --config-dict CLI parameter
        if isinstance(update_value, str) and update_value.lower() in ("true", "false"):
            update_value = update_value.lower() == "true"

        if (
            target_value is not None
            and type(target_value) != type(update_value)
            and not (
                isinstance(target_value, int | float)
                and isinstance(update_value, int | float)
                and not isinstance(update_value, bool)
            )
        ):
            raise TypeMismatchConfigError(
                full_key,
                update_value,
                config_name,
                f"{type(update_value)} != {type(target_value)}",
            )

        if isinstance(target_value, dict):
            _update(
                target_value, update_value, changes, config_name, parent_keys=full_key
            )
            continue

        if target_value != update_value:
            changes[full_key] = (target_value, update_value, config_name)
        target_config[key] = update_value


def validate(config: Config) -> None:
    """Check that the extraction parameters are usable before any raw file is touched.

    Raises
    ------
    InvalidValueConfigError
        if a value is out of range
    """
    general = config[ConfigKeys.GENERAL]
    extraction = config[ConfigKeys.EXTRACTION]

    def _check(section: str, key: str, value, is_valid: bool, msg: str):
        if not is_valid:
            raise InvalidValueConfigError(f"{section}.{key}", str(value), msg)

    thread_count = general[ConfigKeys.THREAD_COUNT]
    _check(
        ConfigKeys.GENERAL,
        ConfigKeys.THREAD_COUNT,
        thread_count,
        thread_count >= 0,
        "must be >= 0",
    )

    for key, lower in [
        (ConfigKeys.MZ_TOLERANCE_PPM, 0),
        (ConfigKeys.RETENTION_TIME_WINDOW, 0),
    ]:
        value = extraction[key]
        _check(ConfigKeys.EXTRACTION, key, value, value > lower, f"must be > {lower}")

    value = extraction[ConfigKeys.MINIMUM_ISOTOPIC_PERCENTAGE]
    _check(
        ConfigKeys.EXTRACTION,
        ConfigKeys.MINIMUM_ISOTOPIC_PERCENTAGE,
        value,
        0 <= value <= 100,
        "must be between 0 and 100",
    )

    value = extraction[ConfigKeys.MINIMUM_CORRELATION]
    _check(
        ConfigKeys.EXTRACTION,
        ConfigKeys.MINIMUM_CORRELATION,
        value,
        -1 <= value <= 1,
        "must be between -1 and 1",
    )

    value = extraction[ConfigKeys.MINIMUM_SCAN_COUNT]
    _check(
        ConfigKeys.EXTRACTION,
        ConfigKeys.MINIMUM_SCAN_COUNT,
        value,
        isinstance(value, int) and value >= 1,
        "must be an integer >= 1",
    )

    value = extraction[ConfigKeys.PROFILE_LENGTH]
    _check(
        ConfigKeys.EXTRACTION,
        ConfigKeys.PROFILE_LENGTH,
        value,
        isinstance(value, int) and value >= 2,
        "must be an integer >= 2",
    )
