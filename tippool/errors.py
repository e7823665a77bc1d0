class TipPoolError(Exception):
    """Base class for every error raised by the allocation pipeline."""


class ConfigurationError(TipPoolError):
    pass


class DataQualityError(TipPoolError):
    """A single source record could not be interpreted."""


class DateRangeMismatchError(TipPoolError):
    def __init__(self, clock_dates, transaction_dates):
        self.clock_dates = sorted(clock_dates)
        self.transaction_dates = sorted(transaction_dates)
        super().__init__(
            "Clock data and transaction data cover different dates "
            f"(clock: {_span(self.clock_dates)}, transactions: {_span(self.transaction_dates)})"
        )


class StrandedTipsError(TipPoolError):
    def __init__(self, stranded):
        self.stranded = dict(stranded)
        days = ", ".join(f"{day}: ${amount:.2f}" for day, amount in sorted(self.stranded.items()))
        super().__init__(f"Unallocated tips on days with nobody clocked in: {days}")


class ConservationError(TipPoolError):
    def __init__(self, expected: float, actual: float, delta: float):
        self.expected = expected
        self.actual = actual
        self.delta = delta
        super().__init__(
            f"Allocated total ${actual:.2f} does not match transaction total ${expected:.2f} "
            f"(delta {delta:+.4f})"
        )


def _span(dates) -> str:
    if not dates:
        return "none"
    if len(dates) == 1:
        return str(dates[0])
    return f"{dates[0]} to {dates[-1]}"
