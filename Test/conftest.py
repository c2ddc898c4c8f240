import pytest
from ophistory import getDefaultMergeSpan, setDefaultMergeSpan


class FakeClock:

    """Callable clock for controllers. Each call returns the current time and
    then moves it forward by `step` seconds.
    """

    def __init__(self, now=1000.0, step=0.0):
        self.now = now
        self.step = step

    def __call__(self):
        now = self.now
        self.now += self.step
        return now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def steppingClock():
    # every operation is a second apart, so nothing merges
    return FakeClock(step=1.0)


@pytest.fixture(autouse=True)
def restoreDefaultMergeSpan():
    span = getDefaultMergeSpan()
    yield
    setDefaultMergeSpan(span)
