"""Domain errors and failure typing."""


class IngestError(Exception):
    """Base class for ingestion failures."""

    error_code = "INGEST_ERROR"


class ConfigError(IngestError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class InvalidInputError(IngestError):
    """Raised when an uploaded payload is not a usable FeatureCollection."""

    error_code = "INVALID_INPUT"


class NoValidFeaturesError(IngestError):
    """Raised when no feature survived extraction and conversion."""

    error_code = "NO_VALID_FEATURES"


class PersistenceError(IngestError):
    """Raised when the record sink rejects an insert."""

    error_code = "PERSISTENCE_ERROR"
