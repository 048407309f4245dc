# config.py

from dataclasses import dataclass, field
from datetime import date

from src.errors import InvalidInputError

STOCK_SYMBOL = "AAPL"
START_DATE = "2015-01-01"
END_DATE = date.today().strftime("%Y-%m-%d")  # auto-updates each day

TIME_STEP = 60
TRAIN_FRACTION = 0.8

LSTM_EPOCHS = 20
LSTM_BATCH_SIZE = 64
LSTM_VALIDATION_SPLIT = 0.1

FORECAST_HORIZON_DAYS = 30
DISPLAY_WINDOW_DAYS = 180

# "autoregressive" feeds each prediction back into the window,
# "repeated" predicts every step from the same trailing window.
FORECAST_STRATEGY = "autoregressive"
FORECAST_STRATEGIES = ("autoregressive", "repeated")

YEARLY_SEASONALITY = True
WEEKLY_SEASONALITY = True
DAILY_SEASONALITY = False
INTERVAL_WIDTH = 0.8

OUTPUTS_DIR = "outputs"
PLOTS_DIR = "plots"
REPORT_NAME = "forecast_report.html"


@dataclass(frozen=True)
class TrainingParams:
    epochs: int = LSTM_EPOCHS
    batch_size: int = LSTM_BATCH_SIZE
    validation_split: float = LSTM_VALIDATION_SPLIT

    def __post_init__(self):
        if self.epochs < 1:
            raise InvalidInputError(f"epochs must be >= 1, got {self.epochs}")
        if self.batch_size < 1:
            raise InvalidInputError(f"batch_size must be >= 1, got {self.batch_size}")
        if not 0.0 <= self.validation_split < 1.0:
            raise InvalidInputError(
                f"validation_split must be in [0, 1), got {self.validation_split}"
            )


@dataclass(frozen=True)
class ForecastConfig:
    """
    Everything one report run needs. Built once at the top of the run and
    passed down explicitly.
    """

    symbol: str = STOCK_SYMBOL
    start_date: str = START_DATE
    end_date: str = END_DATE
    time_step: int = TIME_STEP
    train_fraction: float = TRAIN_FRACTION
    horizon_days: int = FORECAST_HORIZON_DAYS
    display_window_days: int = DISPLAY_WINDOW_DAYS
    forecast_strategy: str = FORECAST_STRATEGY
    training: TrainingParams = field(default_factory=TrainingParams)
    yearly_seasonality: bool = YEARLY_SEASONALITY
    weekly_seasonality: bool = WEEKLY_SEASONALITY
    daily_seasonality: bool = DAILY_SEASONALITY
    interval_width: float = INTERVAL_WIDTH
    outputs_dir: str = OUTPUTS_DIR
    plots_dir: str = PLOTS_DIR
    report_name: str = REPORT_NAME

    def __post_init__(self):
        if not self.symbol:
            raise InvalidInputError("symbol must not be empty")
        if self.time_step < 1:
            raise InvalidInputError(f"time_step must be >= 1, got {self.time_step}")
        if not 0.0 < self.train_fraction < 1.0:
            raise InvalidInputError(
                f"train_fraction must be in (0, 1), got {self.train_fraction}"
            )
        if self.horizon_days < 1:
            raise InvalidInputError(f"horizon_days must be >= 1, got {self.horizon_days}")
        if self.display_window_days < 0:
            raise InvalidInputError("display_window_days must not be negative")
        if self.forecast_strategy not in FORECAST_STRATEGIES:
            raise InvalidInputError(
                f"forecast_strategy must be one of {FORECAST_STRATEGIES}, "
                f"got {self.forecast_strategy!r}"
            )
        if not 0.0 < self.interval_width < 1.0:
            raise InvalidInputError(
                f"interval_width must be in (0, 1), got {self.interval_width}"
            )
