"""Exceptions surfaced by portfolio data providers."""


class PortfolioProviderError(Exception):
    """Any failure fetching or parsing portfolio data.

    Upstream HTTP errors, transport errors, timeouts and malformed payloads
    are all wrapped into this type so callers handle a single exception.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out
