"""Exception types raised by the exporter."""


class ExporterError(Exception):
    """Base class for exporter errors."""


class ConfigurationError(ExporterError):
    """Invalid or unreadable configuration. Fatal at startup."""


class InvalidDayRangeError(ConfigurationError):
    """Malformed --statistics.days argument."""


class StoreConnectionError(ExporterError):
    """ClickHouse could not be reached."""


class LedgerReadError(ExporterError):
    """The status ledger could not be read."""


class LedgerResetError(ExporterError):
    """A ledger entry could not be deleted before recomputation."""

    def __init__(self, kind, day: int, message: str):
        super().__init__(f"error resetting {kind.value} status for day {day}: {message}")
        self.kind = kind
        self.day = day


class DatasetWriterError(ExporterError):
    """The dataset writer failed for a day."""

    def __init__(self, kind, day: int, message: str):
        super().__init__(f"error exporting {kind.value} for day {day}: {message}")
        self.kind = kind
        self.day = day
