class ConstantsClass(type):
    """A metaclass for classes that should only contain string constants."""

    def __setattr__(self, name, value):
        raise TypeError("Constants class cannot be modified")

    def get_values(cls):
        """Get all user-defined string values of the class."""
        return [
            value
            for key, value in cls.__dict__.items()
            if not key.startswith("__") and isinstance(value, str)
        ]


class ConfigKeys(metaclass=ConstantsClass):
    """String constants for accessing the config."""

    VERSION = "version"
    OUTPUT_DIRECTORY = "output_directory"
    IDENTIFICATION_PATH = "identification_path"
    RAW_DIRECTORY = "raw_directory"
    RAW_FILE_EXTENSIONS = "raw_file_extensions"

    GENERAL = "general"
    THREAD_COUNT = "thread_count"
    LOG_LEVEL = "log_level"
    OVERWRITE = "overwrite"

    EXTRACTION = "extraction"
    MZ_TOLERANCE_PPM = "mz_tolerance_ppm"
    MINIMUM_ISOTOPIC_PERCENTAGE = "minimum_isotopic_percentage"
    RETENTION_TIME_WINDOW = "retention_time_window"
    MINIMUM_SCAN_COUNT = "minimum_scan_count"
    MINIMUM_CORRELATION = "minimum_correlation"
    PROFILE_LENGTH = "profile_length"


class IdentificationCols(metaclass=ConstantsClass):
    """String constants for reading the identification table."""

    EXPERIMENT = "experiment"
    SEQUENCE = "sequence"
    MODIFIED_SEQUENCE = "modified_sequence"
    CHARGE = "charge"
    THEORETICAL_MZ = "theoretical_mz"
    OBSERVED_MZ = "observed_mz"
    SCAN = "scan"
    RETENTION_TIME = "retention_time"

    # marker column of the retention time prediction variant
    PREDICTED_RT = "predicted_rt"

    # derived on load, the modified sequence if available, otherwise the sequence
    PEPTIDE_ID = "peptide_id"


class ProfileCols(metaclass=ConstantsClass):
    """String constants for writing the per-peptide scan table."""

    SCAN = "scan"
    RETENTION_TIME = "retentionTime"
    ISOTOPE_PREFIX = "isotope_"
    IDENTIFIED = "identified"


class ManifestCols(metaclass=ConstantsClass):
    """String constants for writing the manifest consumed by the boundary step."""

    DIRECTORY = "directory"
    FILE = "file"
    EXPERIMENT = "experiment"
    PEPTIDE_ID = "peptideId"
    THEORETICAL_MZ = "theoreticalMz"
    CHARGE = "charge"
    IDENTIFIED_SCAN = "identifiedScan"


class OutputFiles(metaclass=ConstantsClass):
    MANIFEST_FILE_NAME = "chros.tsv"
    PROFILE_FOLDER_NAME = "chros"
    SUB_FOLDER_NAME = "sub"
    PROFILE_SUFFIX = ".chro.tsv"
    SUB_PROFILE_SUFFIX = ".sub.tsv"
    STRUCTURED_SUFFIX = ".json"
    FROZEN_CONFIG_FILE_NAME = "frozen_config.yaml"
