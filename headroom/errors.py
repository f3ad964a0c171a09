class HeadroomError(Exception):
    """Base class for errors raised while computing bracket headroom."""


class MissingProfile(HeadroomError):
    """No filing profile (status + standard deduction) exists for the year."""

    def __init__(self, year=None):
        self.year = year
        message = "No filing profile set"
        if year is not None:
            message += f" for {year}"
        super().__init__(message)


class TablesUnavailable(HeadroomError):
    """No bracket table could be found for a (year, filing status) pair."""

    def __init__(self, year, status, reason: str = ""):
        self.year = year
        self.status = status
        self.reason = reason
        message = f"Tax table not available for {year} ({getattr(status, 'value', status)})"
        if reason:
            message += f": {reason}"
        super().__init__(message)
