"""
Mental Health ROI — Document Store Adapter
Path-addressed key-value document store that mirrors the hosted layout:

  users/{uid}/forms/{form}                      default form records
  users/{uid}/forms/{form}_timestamp            ISO time of last save
  users/{uid}/projectForms/{pid}/{form}         project-scoped form records
  users/{uid}/projects/{pid}                    project metadata

DocumentStore keeps the tree in memory; JsonFileStore persists it to one
JSON file and re-reads it on every access so separate processes see each
other's writes. Both raise StoreUnavailable when the backend cannot be used.
"""
import copy, json, logging, math, os, tempfile, threading, uuid
from datetime import datetime, timezone

from engines.errors import StoreUnavailable


def _split(path):
    return [p for p in str(path).split('/') if p]


class DocumentStore:
    def __init__(self, root=None):
        self._root = root if root is not None else {}
        self._lock = threading.RLock()

    # ── backend hooks ──
    def _read_root(self):
        return self._root

    def _write_root(self, root):
        self._root = root

    # ── public API ──
    def get(self, path):
        """Return a deep copy of the value at path, or None if nothing is stored there."""
        with self._lock:
            node = self._read_root()
            for part in _split(path):
                if not isinstance(node, dict) or part not in node:
                    return None
                node = node[part]
            return copy.deepcopy(node)

    def set(self, path, value):
        parts = _split(path)
        if not parts:
            raise ValueError('cannot overwrite the store root')
        with self._lock:
            root = self._read_root()
            node = root
            for part in parts[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            if value is None:
                node.pop(parts[-1], None)
            else:
                node[parts[-1]] = copy.deepcopy(value)
            self._write_root(root)

    def update(self, path, values):
        with self._lock:
            current = self.get(path)
            if not isinstance(current, dict):
                current = {}
            current.update(values)
            self.set(path, current)

    def remove(self, path):
        self.set(path, None)

    def new_key(self):
        return uuid.uuid4().hex[:20]


class JsonFileStore(DocumentStore):
    def __init__(self, path):
        super().__init__()
        self.path = path

    def _read_root(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                root = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreUnavailable(f"Could not read store file {self.path}: {e}") from e
        if not isinstance(root, dict):
            raise StoreUnavailable(f"Store file {self.path} does not hold a JSON object")
        return root

    def _write_root(self, root):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, prefix='.store-', suffix='.json')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(root, f, ensure_ascii=False, indent=1)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreUnavailable(f"Could not write store file {self.path}: {e}") from e


# ══════════════════════════════════════════════════════════════
#  SERIALIZATION BOUNDARY
# ══════════════════════════════════════════════════════════════

def sanitize_record(data):
    """Normalize a record before it crosses into the store.

    NaN and infinities become None, sets become sorted lists and tuples
    become lists. Everything else, None included, is stored as given.
    Applied to every record on every save path.
    """
    if isinstance(data, dict):
        return {k: sanitize_record(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [sanitize_record(v) for v in data]
    if isinstance(data, (set, frozenset)):
        return sorted(sanitize_record(v) for v in data)
    if isinstance(data, float) and (math.isnan(data) or math.isinf(data)):
        return None
    return data


# ══════════════════════════════════════════════════════════════
#  FORM RECORDS
# ══════════════════════════════════════════════════════════════

def form_path(user_id, form_type, project_id=None):
    if project_id:
        return f"users/{user_id}/projectForms/{project_id}/{form_type}"
    return f"users/{user_id}/forms/{form_type}"


def load_form_data(store, user_id, form_type, project_id=None):
    """Return the stored record, or None when nothing has been saved.

    Raises StoreUnavailable when the backend cannot be reached; callers treat
    both outcomes as "nothing to prefill" but only surface the second.
    """
    path = form_path(user_id, form_type, project_id)
    data = store.get(path)
    if data is None:
        logging.info(f"load_form_data: no data at {path}")
        return None
    logging.info(f"load_form_data: loaded {path}")
    return data


def save_form_data(store, user_id, form_type, data, project_id=None):
    path = form_path(user_id, form_type, project_id)
    store.set(path, sanitize_record(data))
    store.set(f"{path}_timestamp", datetime.now(timezone.utc).isoformat())
    if project_id and store.get(f"users/{user_id}/projects/{project_id}") is not None:
        store.update(f"users/{user_id}/projects/{project_id}", {'updatedAt': now_millis()})
    logging.info(f"save_form_data: saved {path}")


def now_millis():
    return int(datetime.now(timezone.utc).timestamp() * 1000)
