"""
Mental Health ROI — Shared Fields
Organisation name, contact person and period are entered once and reused
across forms. Form A supplies the organisation, Form D overrides it and
supplies the dates; without Form D the dates come from Form C's timePeriod.
"""
import logging
from datetime import datetime, timezone

from engines.store import load_form_data

SHARED_KEYS = ('organizationName', 'contactPerson', 'startDate', 'endDate')
PERIOD_SEP = ' - '


def _text(v):
    return v if isinstance(v, str) else ''


def load_shared_fields(store, user_id, project_id=None):
    """Return the shared fields dict, or None when every field is empty."""
    shared = dict.fromkeys(SHARED_KEYS, '')

    form_a = load_form_data(store, user_id, 'A', project_id)
    if form_a:
        shared['organizationName'] = _text(form_a.get('organizationName'))
        shared['contactPerson'] = _text(form_a.get('contactPerson'))

    form_d = load_form_data(store, user_id, 'D', project_id)
    if form_d:
        for key in SHARED_KEYS:
            if _text(form_d.get(key)):
                shared[key] = form_d[key]
    else:
        form_c = load_form_data(store, user_id, 'C', project_id)
        parts = _text((form_c or {}).get('timePeriod')).split(PERIOD_SEP)
        if len(parts) == 2:
            shared['startDate'], shared['endDate'] = parts

    if not any(shared.values()):
        logging.info(f"shared fields: none found for user {user_id}")
        return None
    return shared


def apply_shared_fields(record, shared, include_time_period=False):
    """Return a copy of record filled with the shared fields.

    Organisation fields always take the shared value when it is set. Time
    fields change only with include_time_period: forms with start/end dates
    take them directly, forms with a combined timePeriod get 'start - end'.
    """
    shared = shared or {}
    out = dict(record)
    out['organizationName'] = shared.get('organizationName') or record.get('organizationName') or ''
    out['contactPerson'] = shared.get('contactPerson') or record.get('contactPerson') or ''

    has_dates = 'startDate' in record and 'endDate' in record
    if include_time_period:
        if has_dates:
            out['startDate'] = shared.get('startDate') or record.get('startDate') or ''
            out['endDate'] = shared.get('endDate') or record.get('endDate') or ''
        elif 'timePeriod' in record:
            if shared.get('startDate') and shared.get('endDate'):
                out['timePeriod'] = f"{shared['startDate']}{PERIOD_SEP}{shared['endDate']}"
            else:
                out['timePeriod'] = record.get('timePeriod') or ''
    elif has_dates:
        out['startDate'] = record.get('startDate') or ''
        out['endDate'] = record.get('endDate') or ''
    return out


def save_shared_fields_from_form(store, user_id, record, project_id=None):
    """Store the shared fields carried by a form record as the central copy."""
    base = f"users/{user_id}/projectForms/{project_id}" if project_id else f"users/{user_id}"
    shared = {key: _text(record.get(key)) for key in SHARED_KEYS}
    store.set(f"{base}/sharedFields", shared)
    store.set(f"{base}/sharedFields_timestamp", datetime.now(timezone.utc).isoformat())
    return shared
