from __future__ import annotations


class StocksyError(Exception):
    """Base error carrying the HTTP status the web layer answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(StocksyError):
    status_code = 400


class NotFoundError(StocksyError):
    status_code = 404


class UpstreamError(StocksyError):
    status_code = 500
