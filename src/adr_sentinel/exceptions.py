"""Exceptions raised by the matching and duplicate-detection engine."""


class MatchingError(Exception):
    """Base exception for matching engine failures."""


class RecordStoreUnavailable(MatchingError):
    """Raised when the record store fails to return records.

    Callers must treat this differently from an empty result: the
    request can be retried, whereas "no match" is a valid answer.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"[{source}] {message}")


class CandidateFetchTimeout(RecordStoreUnavailable):
    """Raised when a candidate fetch exceeds the caller's deadline."""

    pass


class IndexNotReady(MatchingError):
    """Raised when a snapshot is requested before the first build."""

    pass


class ReportNotFound(MatchingError):
    """Raised when a report id does not exist in the record store."""

    def __init__(self, report_id: str):
        self.report_id = report_id
        super().__init__(f"Report not found: {report_id}")
