"""Error taxonomy and process exit codes."""

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG = 2
EXIT_QUERY = 3
EXIT_LOAD = 4
EXIT_PARTIAL_DOWNLOAD = 5
EXIT_WRITE = 6


class DumptruckError(Exception):
    """Base class for errors that end a run with a known exit code."""

    exit_code = EXIT_UNEXPECTED


class ConfigError(DumptruckError):
    """Invalid or conflicting run options or settings."""

    exit_code = EXIT_CONFIG


class QueryParseError(DumptruckError):
    """Malformed query string."""

    exit_code = EXIT_QUERY

    def __init__(self, fragment: str, expected: str) -> None:
        self.fragment = fragment
        self.expected = expected
        super().__init__(f"invalid query fragment '{fragment}': expected {expected}")


class FeedLoadError(DumptruckError):
    """Feed could not be fetched, read or parsed."""

    exit_code = EXIT_LOAD


class FetchError(DumptruckError):
    """A single enclosure download failed."""

    exit_code = EXIT_PARTIAL_DOWNLOAD


class OutputWriteError(DumptruckError):
    """Destination directory or output document cannot be written."""

    exit_code = EXIT_WRITE
