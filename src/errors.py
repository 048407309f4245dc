# src/errors.py


class ForecastReportError(Exception):
    """Base class for every error raised while building the report."""


class InvalidInputError(ForecastReportError, ValueError):
    """Malformed or insufficient input handed to a pure transform."""


class DataUnavailableError(ForecastReportError):
    """The market-data provider failed or returned nothing usable."""


class TrainingError(ForecastReportError):
    """A forecasting model failed while fitting, predicting or evaluating."""
