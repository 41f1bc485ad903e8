"""
Mental Health ROI — Projects
A project isolates one set of form records under projectForms/{pid}.
Timestamps are epoch milliseconds.
"""
import logging

from engines.errors import ValidationError
from engines.store import now_millis


def _projects_path(user_id):
    return f"users/{user_id}/projects"


def list_projects(store, user_id):
    projects = store.get(_projects_path(user_id)) or {}
    return sorted(projects.values(), key=lambda p: p.get('updatedAt', 0), reverse=True)


def get_project(store, user_id, project_id):
    return store.get(f"{_projects_path(user_id)}/{project_id}")


def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('A project needs a name')
    return name.strip()


def create_project(store, user_id, name, description=''):
    name = _clean_name(name)
    project_id = store.new_key()
    ts = now_millis()
    project = {'id': project_id, 'name': name, 'description': description or '',
               'createdAt': ts, 'updatedAt': ts}
    store.set(f"{_projects_path(user_id)}/{project_id}", project)
    logging.info(f"projects: created {project_id} '{name}' for user {user_id}")
    return project


def update_project(store, user_id, project_id, name=None, description=None):
    if get_project(store, user_id, project_id) is None:
        return None
    updates = {'updatedAt': now_millis()}
    if name is not None:
        updates['name'] = _clean_name(name)
    if description is not None:
        updates['description'] = description
    store.update(f"{_projects_path(user_id)}/{project_id}", updates)
    return get_project(store, user_id, project_id)


def delete_project(store, user_id, project_id):
    """Remove the project and every form record stored under it."""
    store.remove(f"{_projects_path(user_id)}/{project_id}")
    store.remove(f"users/{user_id}/projectForms/{project_id}")
    logging.info(f"projects: deleted {project_id} and its forms for user {user_id}")


def initialize_project_from_default(store, user_id, project_id):
    """Copy the user's default forms into the project. Returns the number of records copied."""
    forms = store.get(f"users/{user_id}/forms")
    if not forms:
        return 0
    store.set(f"users/{user_id}/projectForms/{project_id}", forms)
    copied = sum(1 for k in forms if not k.endswith('_timestamp'))
    logging.info(f"projects: initialized {project_id} with {copied} default forms")
    return copied
