"""
Mental Health ROI — Settings Loader
Reads consultant-editable settings from data/config/settings.xlsx and
overlays environment variables. Missing file or missing rows fall back to
the built-in defaults.
"""
import os, logging
import openpyxl

DATA_DIR = os.environ.get('ROI_DATA_DIR',
                          os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data'))

# Settings sheet label -> settings key
SETTING_MAP = {
    'Autosave Delay (s)': 'autosaveDelay',
    'Message Clear Delay (s)': 'messageClearDelay',
    'Store Path': 'storePath',
    'Currency': 'currency',
}
TEXT_SETTINGS = ('storePath', 'currency')

ENV_OVERRIDES = {
    'ROI_STORE_PATH': 'storePath',
    'ROI_AUTOSAVE_DELAY': 'autosaveDelay',
    'ROI_MESSAGE_CLEAR_DELAY': 'messageClearDelay',
}


def read_xlsx_sheet(filepath, sheet_name=None):
    wb = openpyxl.load_workbook(filepath, read_only=True, data_only=True)
    ws = wb[sheet_name] if sheet_name else wb.active
    rows = list(ws.iter_rows(values_only=True))
    wb.close()
    if len(rows) < 2:
        return []
    headers = [str(h).strip() if h else f'col_{i}' for i, h in enumerate(rows[0])]
    return [dict(zip(headers, row)) for row in rows[1:]]


def default_settings():
    return {
        'autosaveDelay': 10.0,        # quiet period after the last edit
        'messageClearDelay': 3.0,     # transient status messages
        'storePath': os.path.join(DATA_DIR, 'store.json'),
        'currency': 'SEK',
    }


def _coerce(key, val):
    if key in TEXT_SETTINGS:
        return str(val).strip()
    return float(val)


def load_settings(path=None):
    """Load settings from the xlsx sheet (Parameter / Value columns) plus env overrides."""
    path = path or os.path.join(DATA_DIR, 'config', 'settings.xlsx')
    s = default_settings()
    if os.path.exists(path):
        for row in read_xlsx_sheet(path):
            label = str(row.get('Parameter', '') or '').strip()
            val = row.get('Value')
            if label not in SETTING_MAP or val is None:
                continue
            key = SETTING_MAP[label]
            try:
                s[key] = _coerce(key, val)
            except (ValueError, TypeError):
                logging.warning(f"settings: ignoring unparseable value {val!r} for '{label}'")

    for env_key, key in ENV_OVERRIDES.items():
        raw = os.environ.get(env_key)
        if raw:
            try:
                s[key] = _coerce(key, raw)
            except (ValueError, TypeError):
                logging.warning(f"settings: ignoring unparseable {env_key}={raw!r}")
    return s
