"""
Error taxonomy for the jurisdiction search service.

Every error carries a user-facing message (Japanese, shown as-is by the API)
and the HTTP status the API layer answers with. Diagnostic detail belongs in
the log, not in the message.
"""


class JurisdictionFinderError(Exception):
    """Base class for all errors surfaced by this package."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingParameter(JurisdictionFinderError):
    """Prefecture or city is empty after trimming."""
    status_code = 400


class ConfigurationMissing(JurisdictionFinderError):
    """Required credentials are absent. Raised before any network call."""


class UpstreamError(JurisdictionFinderError):
    """The AI search service could not give a usable answer."""


class UpstreamUnavailable(UpstreamError):
    """Transport failure or non-2xx answer from the AI search service."""


class UpstreamMalformed(UpstreamError):
    """The AI search service answered, but the content is unusable."""


class ProcedureFetchFailed(JurisdictionFinderError):
    """Detail fetch failed. There is no safe fallback procedure list."""


class MalformedUpstreamResponse(JurisdictionFinderError):
    """Detail fetch succeeded but the payload fails shape validation."""

    def __init__(self, message: str = "検索結果の形式が正しくありません"):
        super().__init__(message)


class HistoryStoreError(JurisdictionFinderError):
    """The history store rejected or failed an operation."""


class RecordNotFound(HistoryStoreError):
    status_code = 404


class SheetExportFailed(JurisdictionFinderError):
    def __init__(self, message: str = "スプレッドシートへの保存に失敗しました"):
        super().__init__(message)
