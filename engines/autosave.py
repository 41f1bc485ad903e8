"""
Mental Health ROI — Autosave Scheduler
Trailing debounce of form saves: a save fires once, a quiet period after the
most recent edit. Each new edit cancels the pending timer and starts a new
one, so a form instance has at most one pending save.

Timers come from a factory (threading.Timer by default) so tests can drive
them by hand.
"""
import copy, logging, threading

from engines.store import save_form_data

DEFAULT_DELAY = 10.0
DEFAULT_MESSAGE_DELAY = 3.0

SAVED_MESSAGE = 'Autosaved'
FAILED_MESSAGE = 'Could not autosave'


def _noop(_):
    pass


class AutosaveScheduler:
    """Debounced saver owned by one form instance.

    on_saving_change(bool) and on_message_change(str | None) are called from
    the timer thread.
    """

    def __init__(self, store, user_id, form_type, project_id=None,
                 delay=DEFAULT_DELAY, message_delay=DEFAULT_MESSAGE_DELAY,
                 on_saving_change=None, on_message_change=None, timer_factory=None):
        self.store = store
        self.user_id = user_id
        self.form_type = form_type
        self.project_id = project_id
        self.delay = delay
        self.message_delay = message_delay
        self.on_saving_change = on_saving_change or _noop
        self.on_message_change = on_message_change or _noop
        self.timer_factory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._timer = None
        self._generation = 0
        self._message_timer = None
        self.is_saving = False
        self.message = None
        self.saves = 0

    @property
    def pending(self):
        return self._timer is not None

    def _start(self, delay, fn, *args):
        timer = self.timer_factory(delay, fn, args=args)
        timer.daemon = True
        timer.start()
        return timer

    def schedule(self, data):
        """Arm (or re-arm) the save timer with a snapshot of data.

        Returns the timer, or None when there is no signed-in user.
        """
        if not self.user_id:
            logging.info(f"autosave: no user, not arming timer for form {self.form_type}")
            return None
        snapshot = copy.deepcopy(data)
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._timer = self._start(self.delay, self._fire, self._generation, snapshot)
            return self._timer

    def cancel(self):
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._message_timer is not None:
                self._message_timer.cancel()
                self._message_timer = None

    def _set_saving(self, saving):
        self.is_saving = saving
        self.on_saving_change(saving)

    def announce(self, message):
        """Show a transient status message that clears itself after message_delay."""
        with self._lock:
            if self._message_timer is not None:
                self._message_timer.cancel()
            self.message = message
            self._message_timer = self._start(self.message_delay, self._clear_message, message)
        self.on_message_change(message)

    def _clear_message(self, message):
        with self._lock:
            if self.message != message:
                return
            self.message = None
            self._message_timer = None
        self.on_message_change(None)

    def _fire(self, generation, data):
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
        suffix = f" for project {self.project_id}" if self.project_id else ''
        logging.info(f"autosave: saving form {self.form_type}{suffix}")
        self._set_saving(True)
        try:
            save_form_data(self.store, self.user_id, self.form_type, data, self.project_id)
        except Exception as e:
            logging.error(f"autosave: form {self.form_type} failed: {e}")
            self.announce(FAILED_MESSAGE)
        else:
            self.saves += 1
            self.announce(SAVED_MESSAGE)
        finally:
            self._set_saving(False)


def setup_form_autosave(user_id, form_type, data, on_saving_change, on_message_change,
                        project_id=None, store=None, delay=DEFAULT_DELAY,
                        message_delay=DEFAULT_MESSAGE_DELAY, timer_factory=None):
    """Arm a single debounced save of data; returns the cancellable timer or None."""
    scheduler = AutosaveScheduler(store, user_id, form_type, project_id, delay=delay,
                                  message_delay=message_delay,
                                  on_saving_change=on_saving_change,
                                  on_message_change=on_message_change,
                                  timer_factory=timer_factory)
    return scheduler.schedule(data)
