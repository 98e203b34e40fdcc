"""Module containing custom exceptions."""


class CustomError(Exception):
    """Custom alphaXIC error class."""

    _error_code = ""
    _msg = ""
    _detail_msg = ""
    _user_msg = ""

    @property
    def error_code(self):
        return self._error_code

    @property
    def msg(self):
        return self._msg

    @property
    def detail_msg(self):
        return self._detail_msg

    def __init__(self, msg: str = ""):
        self._user_msg = msg

        super().__init__(self._msg)

    def __str__(self):
        return (
            f"{self._error_code}: {self._msg}\n'{self._user_msg}'\n{self._detail_msg}"
        )


class BusinessError(CustomError):
    """Custom error class for 'business' errors.

    A 'business' error is an error that is caused during processing the input (data, configuration, ...) and not by a
    malfunction in alphaXIC.
    """


class UserError(CustomError):
    """Custom error class for 'user' errors.

    A 'user' error is an error that is caused by the incompatible user input (data, configuration, ...) and not by a
    malfunction in alphaXIC.
    """


class OperationCancelledError(CustomError):
    """Raise when the extraction was stopped on request.

    This is a deliberate stop and not a fault. Profiles written to disk before the request stay on disk.
    """

    _error_code = "OPERATION_CANCELLED"

    _msg = "Operation cancelled by user."


class MissingRawFileError(UserError):
    """Raise when experiments of the identification list cannot be resolved to exactly one raw file."""

    _error_code = "MISSING_RAW_FILE"

    _msg = "Cannot resolve raw files for all experiments."

    def __init__(
        self,
        raw_directory: str,
        missing: list[str],
        ambiguous: dict[str, list[str]] | None = None,
    ):
        self.missing = sorted(missing)
        self.ambiguous = ambiguous if ambiguous is not None else {}

        lines = []
        if self.missing:
            lines.append(
                f"Cannot find raw file of {'/'.join(self.missing)} in directory {raw_directory}"
            )
        for experiment, paths in sorted(self.ambiguous.items()):
            lines.append(
                f"Found {len(paths)} raw files for {experiment}: {', '.join(sorted(paths))}"
            )
        self._detail_msg = "\n".join(lines)
        super().__init__(raw_directory)


class NoIdentificationError(UserError):
    """Raise when the identification list is empty."""

    _error_code = "NO_IDENTIFICATION"

    _msg = "No identified spectra found in input, can't continue."


class MalformedIdentificationError(UserError):
    """Raise when the identification list misses columns or contains invalid rows."""

    _error_code = "MALFORMED_IDENTIFICATION"

    _msg = "Malformed identification input."

    def __init__(self, path: str, problems: list[str]):
        self.problems = problems
        self._detail_msg = "\n".join(problems)
        super().__init__(path)


class UnsupportedRawFormatError(UserError):
    """Raise when no reader is available for a raw file."""

    _error_code = "UNSUPPORTED_RAW_FORMAT"

    _msg = "Unsupported raw file format."

    _detail_msg = """Supported formats are Thermo (.raw), mzML (.mzml) and alpharaw HDF (.hdf)."""


class NoProfileFoundError(BusinessError):
    """Raise when no chromatographic profile passed the filters in any raw file."""

    _error_code = "NO_PROFILE_FOUND"

    _msg = "Cannot find chromatograph!"

    _detail_msg = """No profile passed the minimum scan count filter, the boundary step cannot run on an empty manifest.
                 This can have the following reasons:
                   1. The identifications do not belong to the provided raw files.
                   2. The mass tolerance is too narrow or the minimum correlation is too strict.
                   3. The minimum scan count is too high for the scan density of the data."""


class ConfigError(UserError):
    """Raise when something is wrong with the provided configuration."""

    _error_code = "CONFIG_ERROR"

    _msg = "Malformed or invalid configuration."
    _key = ""
    _config_name = ""
    _detail_msg = ""

    def __init__(
        self,
        key: str = "",
        value: str = "",
        config_name: str = "",
        detail_msg: str = "",
    ):
        self._key = key
        self._value = value
        self._config_name = config_name
        self._detail_msg = detail_msg


class KeyAddedConfigError(ConfigError):
    """Raise when a key should be added to a config."""

    def __init__(self, key: str, value: str, config_name: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Defining new keys is not allowed when updating a config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}'"
        )


class TypeMismatchConfigError(ConfigError):
    """Raise when the type of a value does not match the default type."""

    def __init__(self, key: str, value: str, config_name: str, extra_msg: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Types of values must match default config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}', types='{extra_msg}'"
        )


class InvalidValueConfigError(ConfigError):
    """Raise when a config value is outside of its allowed range."""

    def __init__(self, key: str, value: str, extra_msg: str):
        super().__init__(key, value)
        self._detail_msg = (
            f"Invalid value for key='{self._key}', value='{self._value}': {extra_msg}"
        )
