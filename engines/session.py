"""
Mental Health ROI — Form Session
Lifecycle of one open form: load, resolve references once, recalculate on
every edit, autosave on idle, cancel on close.
"""
import logging, threading

from engines import resolver
from engines.autosave import AutosaveScheduler
from engines.errors import DerivedFieldError, StoreUnavailable, ValidationError
from engines.formatting import parse_number_input
from engines.forms import ROW_FIELDS, check_form, is_numeric_field, merge_with_defaults, new_g_intervention
from engines.graph import dependents, is_derived, recalculate
from engines.shared_fields import apply_shared_fields, save_shared_fields_from_form
from engines.store import load_form_data, save_form_data

LOAD_ERROR = 'Could not load saved data. You can keep working; changes are saved when the connection is back.'
SAVED_MESSAGE = 'Saved'
SAVE_FAILED_MESSAGE = 'Could not save'


def _is_row_list(value):
    return isinstance(value, list) and all(isinstance(r, dict) for r in value)


class FormSession:
    def __init__(self, store, user_id, form_type, project_id=None, settings=None, timer_factory=None):
        settings = settings or {}
        self.store = store
        self.user_id = user_id
        self.form_type = check_form(form_type)
        self.project_id = project_id
        self.record = merge_with_defaults(self.form_type, None)
        self.field_states = {}
        self.warnings = {}
        self.input_warnings = {}
        self.error = None
        self.mounted = False
        self._lock = threading.RLock()
        self.resolver = resolver.ReferenceResolver(store, user_id, self.form_type, project_id)
        self.autosave = AutosaveScheduler(
            store, user_id, self.form_type, project_id,
            delay=settings.get('autosaveDelay', 10.0),
            message_delay=settings.get('messageClearDelay', 3.0),
            timer_factory=timer_factory,
        )

    # ── lifecycle ──

    def mount(self):
        """Load the stored record and resolve references. Repeated calls are no-ops."""
        with self._lock:
            if self.mounted:
                return self.state()
            data = None
            try:
                data = load_form_data(self.store, self.user_id, self.form_type, self.project_id)
            except StoreUnavailable as e:
                logging.error(f"session: load of form {self.form_type} failed: {e}")
                self.error = LOAD_ERROR

            record = merge_with_defaults(self.form_type, data)
            if self.form_type == 'G' and data is None and not record['interventions']:
                record['interventions'].append(new_g_intervention())

            for field, res in self.resolver.resolve_on_mount().items():
                self._apply(record, field, res)
            self.record = recalculate(self.form_type, record)
            self.mounted = True
            return self.state()

    def unmount(self):
        with self._lock:
            self.autosave.cancel()
            self.resolver.reset()
            self.mounted = False

    # ── edits ──

    def _apply(self, record, field, res):
        self.field_states[field] = resolver.apply_resolution(record, field, res)
        if res.status == resolver.FAILED:
            self.warnings[field] = f"Could not fetch the value: {res.reason}"
        else:
            self.warnings.pop(field, None)

    def _coerce(self, field, value):
        if not is_numeric_field(self.form_type, field) or not isinstance(value, str):
            return value
        _, raw, warning = parse_number_input(value)
        if warning:
            self.input_warnings[field] = warning
        else:
            self.input_warnings.pop(field, None)
        return raw

    def set_fields(self, values):
        """Apply user edits, recalculate and re-arm autosave.

        Returns the derived fields that were recomputed because of the edit.
        """
        with self._lock:
            for field in values:
                if is_derived(self.form_type, field):
                    raise DerivedFieldError(self.form_type, field)
                if self.field_states.get(field) == resolver.AUTO:
                    ref = resolver.find_reference(self.form_type, field)
                    raise ValidationError(f"Field '{field}' is filled from form {ref.source_form}")
                if field in ROW_FIELDS.get(self.form_type, ()) and not _is_row_list(values[field]):
                    raise ValidationError(f"Field '{field}' must be a list of rows")

            record = dict(self.record)
            touched = []
            for field, value in values.items():
                record[field] = self._coerce(field, value)
                if field in self.field_states:
                    self.field_states[field] = resolver.MISSING if record[field] is None else resolver.MANUAL
                touched.append(field)

            self.record = recalculate(self.form_type, record)
            self.autosave.schedule(self.record)
            changed = []
            for field in touched:
                changed.extend(d for d in dependents(self.form_type, field) if d not in changed)
            return changed

    def set_field(self, field, value):
        return self.set_fields({field: value})

    def fetch_reference(self, field):
        """User-triggered fetch of one referenced field from its source form."""
        with self._lock:
            ref = resolver.find_reference(self.form_type, field)
            res = self.resolver.fetch(field)
            record = dict(self.record)
            self._apply(record, field, res)
            if res.status == resolver.RESOLVED:
                self.record = recalculate(self.form_type, record)
                self.autosave.schedule(self.record)
                self.autosave.announce(f"Value fetched from form {ref.source_form}")
            elif res.status == resolver.MISSING:
                self.autosave.announce(f"No value found in form {ref.source_form}")
            else:
                self.autosave.announce(f"Could not fetch data from form {ref.source_form}")
            return res

    def apply_shared(self, shared, include_time_period=False):
        with self._lock:
            self.record = recalculate(self.form_type,
                                      apply_shared_fields(self.record, shared, include_time_period))
            self.autosave.schedule(self.record)

    def import_interventions(self):
        """Merge Form G's interventions into this H or I record."""
        with self._lock:
            if self.form_type not in ('H', 'I'):
                raise ValidationError(f"Form {self.form_type} cannot import interventions")
            g_record = load_form_data(self.store, self.user_id, 'G', self.project_id)
            if self.form_type == 'H':
                record, summary = resolver.import_interventions_into_h(self.record, g_record)
            else:
                record, summary = resolver.import_interventions_into_i(self.record, g_record)
            self.record = recalculate(self.form_type, record)
            self.autosave.schedule(self.record)
            self.autosave.announce(summary['message'])
            return summary

    # ── persistence ──

    def save(self):
        """Explicit save. A failure keeps the in-memory record and re-raises."""
        with self._lock:
            if not self.user_id:
                raise ValidationError('You must be signed in to save')
            self.autosave.cancel()
            try:
                save_form_data(self.store, self.user_id, self.form_type, self.record, self.project_id)
                if self.form_type in ('A', 'D'):
                    save_shared_fields_from_form(self.store, self.user_id, self.record, self.project_id)
            except StoreUnavailable:
                self.autosave.announce(SAVE_FAILED_MESSAGE)
                raise
            self.error = None
            self.autosave.announce(SAVED_MESSAGE)
            return self.state()

    def state(self):
        return {
            'formType': self.form_type,
            'projectId': self.project_id,
            'data': self.record,
            'fieldStates': dict(self.field_states),
            'warnings': dict(self.warnings),
            'inputWarnings': dict(self.input_warnings),
            'message': self.autosave.message,
            'isSaving': self.autosave.is_saving,
            'autosavePending': self.autosave.pending,
            'error': self.error,
        }
