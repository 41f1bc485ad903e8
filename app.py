"""
Mental Health ROI — Flask API Server
Linked forms A-J with cross-form references, recalculation on every edit,
idle autosave, project scoping, quick calculators and report export.

The caller's user id arrives in the X-User-Id header; without it form
routes answer 401 and no autosave is armed.
"""
import io
import logging
import os
import threading
import traceback
from flask import Flask, jsonify, request, send_file
from werkzeug.exceptions import HTTPException

from engines.settings import load_settings
from engines.store import JsonFileStore
from engines.errors import StoreUnavailable, ValidationError
from engines.forms import FORM_TITLES, check_form
from engines.session import FormSession
from engines.shared_fields import load_shared_fields
from engines.calculators import DEFAULTS as CALCULATOR_DEFAULTS, run_comparative, run_simple
from engines.report import build_report, export_report_xlsx
from engines import projects

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'),
                    format='%(asctime)s %(levelname)s %(message)s')

app = Flask(__name__)

STATE = {
    'settings': None, 'store': None,
    'sessions': {},          # (userId, projectId, form) -> FormSession
    'timer_factory': None,   # None -> threading.Timer
    'loaded': False,
}
SESSIONS_LOCK = threading.Lock()


@app.before_request
def _ensure_loaded():
    if STATE['loaded']:
        return
    STATE['settings'] = STATE['settings'] or load_settings()
    if STATE['store'] is None:
        STATE['store'] = JsonFileStore(STATE['settings']['storePath'])
    STATE['loaded'] = True
    logging.info(f"ROI engines loaded, store at {STATE['settings']['storePath']}")


# ══════════════════════════════════════════════════════════════
#  ERRORS
# ══════════════════════════════════════════════════════════════

class Unauthenticated(Exception):
    pass


@app.errorhandler(Unauthenticated)
def _unauthenticated(e):
    return jsonify({'error': 'You must be signed in'}), 401


@app.errorhandler(ValidationError)
def _validation_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(StoreUnavailable)
def _store_unavailable(e):
    logging.error(f"store unavailable: {e}")
    return jsonify({'error': 'Storage is unavailable, try again shortly'}), 503


@app.errorhandler(Exception)
def _unexpected(e):
    if isinstance(e, HTTPException):
        return e
    traceback.print_exc()
    return jsonify({'status': 'error', 'message': str(e)}), 500


# ══════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════

def _user():
    uid = (request.headers.get('X-User-Id') or '').strip()
    if not uid:
        raise Unauthenticated()
    return uid


def _project_id():
    return request.args.get('projectId') or None


def _body():
    return request.get_json(force=True, silent=True) or {}


def _session(form, mount=True):
    uid, pid, form = _user(), _project_id(), check_form(form)
    key = (uid, pid, form)
    with SESSIONS_LOCK:
        session = STATE['sessions'].get(key)
        if session is None:
            session = FormSession(STATE['store'], uid, form, pid,
                                  settings=STATE['settings'], timer_factory=STATE['timer_factory'])
            STATE['sessions'][key] = session
    if mount:
        session.mount()
    return session


# ══════════════════════════════════════════════════════════════
#  FORMS
# ══════════════════════════════════════════════════════════════

@app.route('/api/forms')
def api_forms():
    return jsonify([{'form': k, 'title': v} for k, v in FORM_TITLES.items()])


@app.route('/api/forms/<form>')
def api_form(form):
    return jsonify(_session(form).state())


@app.route('/api/forms/<form>/fields', methods=['POST'])
def api_form_fields(form):
    body = _body()
    session = _session(form)
    if isinstance(body.get('fields'), dict):
        changed = session.set_fields(body['fields'])
    elif body.get('field'):
        changed = session.set_field(body['field'], body.get('value'))
    else:
        raise ValidationError("Send 'field' and 'value', or 'fields'")
    return jsonify(dict(session.state(), recalculated=changed))


@app.route('/api/forms/<form>/fetch', methods=['POST'])
def api_form_fetch(form):
    field = _body().get('field')
    if not field:
        raise ValidationError("Send the 'field' to fetch")
    session = _session(form)
    res = session.fetch_reference(field)
    return jsonify(dict(session.state(), resolution=res._asdict()))


@app.route('/api/forms/<form>/save', methods=['POST'])
def api_form_save(form):
    return jsonify(_session(form).save())


@app.route('/api/forms/<form>/close', methods=['POST'])
def api_form_close(form):
    key = (_user(), _project_id(), check_form(form))
    with SESSIONS_LOCK:
        session = STATE['sessions'].pop(key, None)
    if session:
        session.unmount()
    return jsonify({'status': 'ok'})


@app.route('/api/forms/<form>/import-interventions', methods=['POST'])
def api_import_interventions(form):
    session = _session(form)
    summary = session.import_interventions()
    return jsonify(dict(session.state(), summary=summary))


@app.route('/api/shared-fields')
def api_shared_fields():
    return jsonify({'sharedFields': load_shared_fields(STATE['store'], _user(), _project_id())})


@app.route('/api/forms/<form>/shared-fields', methods=['POST'])
def api_apply_shared_fields(form):
    session = _session(form)
    shared = load_shared_fields(STATE['store'], session.user_id, session.project_id)
    if shared:
        session.apply_shared(shared, include_time_period=bool(_body().get('includeTimePeriod')))
    return jsonify(dict(session.state(), sharedFields=shared))


# ══════════════════════════════════════════════════════════════
#  CALCULATORS
# ══════════════════════════════════════════════════════════════

@app.route('/api/roi/defaults')
def api_roi_defaults():
    return jsonify(CALCULATOR_DEFAULTS)


@app.route('/api/roi/simple', methods=['POST'])
def api_roi_simple():
    return jsonify(run_simple(_body()))


@app.route('/api/roi/comparative', methods=['POST'])
def api_roi_comparative():
    return jsonify(run_comparative(_body()))


# ══════════════════════════════════════════════════════════════
#  PROJECTS
# ══════════════════════════════════════════════════════════════

@app.route('/api/projects', methods=['GET', 'POST'])
def api_projects():
    uid = _user()
    if request.method == 'GET':
        return jsonify(projects.list_projects(STATE['store'], uid))
    body = _body()
    project = projects.create_project(STATE['store'], uid, body.get('name'), body.get('description', ''))
    return jsonify(project), 201


@app.route('/api/projects/<pid>', methods=['GET', 'PATCH', 'DELETE'])
def api_project(pid):
    uid = _user()
    store = STATE['store']
    if request.method == 'DELETE':
        with SESSIONS_LOCK:
            closing = [STATE['sessions'].pop(k) for k in list(STATE['sessions']) if k[:2] == (uid, pid)]
        for session in closing:
            session.unmount()
        projects.delete_project(store, uid, pid)
        return jsonify({'status': 'ok'})
    if request.method == 'PATCH':
        body = _body()
        project = projects.update_project(store, uid, pid, body.get('name'), body.get('description'))
    else:
        project = projects.get_project(store, uid, pid)
    if project is None:
        return jsonify({'error': 'Project not found'}), 404
    return jsonify(project)


@app.route('/api/projects/<pid>/initialize', methods=['POST'])
def api_project_initialize(pid):
    uid = _user()
    if projects.get_project(STATE['store'], uid, pid) is None:
        return jsonify({'error': 'Project not found'}), 404
    copied = projects.initialize_project_from_default(STATE['store'], uid, pid)
    return jsonify({'status': 'ok', 'copied': copied})


# ══════════════════════════════════════════════════════════════
#  REPORT
# ══════════════════════════════════════════════════════════════

@app.route('/api/report')
def api_report():
    report = build_report(STATE['store'], _user(), _project_id())
    if report is None:
        return jsonify({'error': 'Fill in organisation details in form A or D first'}), 404
    return jsonify(report)


@app.route('/api/export')
def api_export():
    """Export the report to Excel."""
    report = build_report(STATE['store'], _user(), _project_id())
    if report is None:
        return jsonify({'error': 'Fill in organisation details in form A or D first'}), 404
    buf = io.BytesIO()
    export_report_xlsx(report, buf, currency=STATE['settings']['currency'])
    buf.seek(0)
    return send_file(buf, as_attachment=True, download_name='ROI_Report.xlsx',
                     mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')


if __name__ == '__main__':
    app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
