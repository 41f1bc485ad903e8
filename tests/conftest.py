"""Test configuration and fixtures."""

import pytest

from engines.errors import StoreUnavailable
from engines.settings import default_settings
from engines.store import DocumentStore


class FakeTimer:
    def __init__(self, clock, interval, function, args=None):
        self.clock = clock
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.daemon = False
        self.due = None
        self.cancelled = False
        self.fired = False

    def start(self):
        self.due = self.clock.now + self.interval
        self.clock.timers.append(self)

    def cancel(self):
        self.cancelled = True

    @property
    def live(self):
        return self.due is not None and not self.cancelled and not self.fired

    def fire(self):
        self.fired = True
        self.function(*self.args)


class FakeClock:
    """Timer factory with a manual clock, in place of threading.Timer."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def __call__(self, interval, function, args=None, kwargs=None):
        return FakeTimer(self, interval, function, args)

    def live(self):
        return [t for t in self.timers if t.live]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.live() if t.due <= target), key=lambda t: t.due)
            if not due:
                break
            self.now = due[0].due
            due[0].fire()
        self.now = target


class BrokenStore(DocumentStore):
    """A store whose backend is always unreachable."""

    def _read_root(self):
        raise StoreUnavailable('backend offline')

    def _write_root(self, root):
        raise StoreUnavailable('backend offline')


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    s = default_settings()
    s['storePath'] = str(tmp_path / 'store.json')
    return s


@pytest.fixture
def form_d_record():
    """Form D inputs for 100 employees at 30 000 kr/month."""
    return {
        'organizationName': 'Acme AB', 'contactPerson': 'Kim Berg',
        'startDate': '2024-01-01', 'endDate': '2024-12-31',
        'averageMonthlySalary': 30000, 'socialFeesPercentage': 40,
        'numberOfEmployees': 100, 'numberOfMonths': 12,
        'personnelOverheadPercentage': 20, 'scheduledWorkHoursPerYear': 1760,
        'scheduledWorkDaysPerYear': 220,
        'shortSickLeaveCostPercentage': 10, 'shortSickLeavePercentage': 2.5,
        'longSickLeaveCostPercentage': 1, 'longSickLeavePercentage': 3,
    }


@pytest.fixture
def api(store, settings, clock):
    """Flask test client bound to an in-memory store and a manual clock."""
    import app as app_module

    app_module.STATE.update({
        'settings': settings, 'store': store, 'sessions': {},
        'timer_factory': clock, 'loaded': True,
    })
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        client.clock = clock
        client.store = store
        yield client
    for session in app_module.STATE['sessions'].values():
        session.unmount()
    app_module.STATE.update({'settings': None, 'store': None, 'sessions': {},
                             'timer_factory': None, 'loaded': False})
