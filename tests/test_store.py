"""Tests for the document store adapter."""

import json

import pytest

from engines.errors import StoreUnavailable
from engines.store import JsonFileStore, form_path, load_form_data, sanitize_record, save_form_data


class TestSanitize:
    def test_non_finite_numbers_become_none(self):
        out = sanitize_record({'a': float('nan'), 'b': [1.0, float('inf')], 'c': {'d': float('-inf')}})
        assert out == {'a': None, 'b': [1.0, None], 'c': {'d': None}}

    def test_none_is_kept(self):
        out = sanitize_record({'organizationName': None, 'timePeriod': None, 'companyProfit': None})
        assert out == {'organizationName': None, 'timePeriod': None, 'companyProfit': None}

    def test_collections_become_lists(self):
        out = sanitize_record({'t': (1, 2), 's': {'b', 'a'}})
        assert out == {'t': [1, 2], 's': ['a', 'b']}


class TestDocumentStore:
    def test_paths(self):
        assert form_path('u1', 'C') == 'users/u1/forms/C'
        assert form_path('u1', 'C', 'p1') == 'users/u1/projectForms/p1/C'

    def test_get_returns_a_copy(self, store):
        store.set('a/b', {'x': [1]})
        got = store.get('a/b')
        got['x'].append(2)
        assert store.get('a/b') == {'x': [1]}

    def test_update_and_remove(self, store):
        store.set('a/b', {'x': 1})
        store.update('a/b', {'y': 2})
        assert store.get('a/b') == {'x': 1, 'y': 2}
        store.remove('a')
        assert store.get('a/b') is None

    def test_save_then_load_round_trip(self, store):
        record = {'organizationName': None, 'companyProfit': float('nan'), 'interventions': ['x'],
                  'percentHighStress': 12.5}
        save_form_data(store, 'u1', 'C', record)
        assert load_form_data(store, 'u1', 'C') == sanitize_record(record)
        assert store.get('users/u1/forms/C_timestamp')

    def test_none_text_field_round_trips_unchanged(self, store):
        record = {'organizationName': None, 'stressLevel': 5}
        save_form_data(store, 'u1', 'A', record)
        assert load_form_data(store, 'u1', 'A') == record

    def test_project_round_trip_is_isolated(self, store):
        save_form_data(store, 'u1', 'C', {'companyProfit': 1}, project_id='p1')
        assert load_form_data(store, 'u1', 'C') is None
        assert load_form_data(store, 'u1', 'C', 'p1') == {'companyProfit': 1}

    def test_project_save_bumps_updated_at(self, store):
        store.set('users/u1/projects/p1', {'id': 'p1', 'updatedAt': 0})
        save_form_data(store, 'u1', 'A', {'goals': 'x'}, project_id='p1')
        assert store.get('users/u1/projects/p1')['updatedAt'] > 0

    def test_unreachable_store_raises(self, broken_store):
        with pytest.raises(StoreUnavailable):
            load_form_data(broken_store, 'u1', 'C')


class TestJsonFileStore:
    def test_persists_between_instances(self, tmp_path):
        path = tmp_path / 'store.json'
        save_form_data(JsonFileStore(str(path)), 'u1', 'D', {'numberOfEmployees': 10})
        assert load_form_data(JsonFileStore(str(path)), 'u1', 'D') == {'numberOfEmployees': 10}
        assert json.loads(path.read_text(encoding='utf-8'))['users']['u1']['forms']['D']

    def test_missing_file_reads_empty(self, tmp_path):
        assert JsonFileStore(str(tmp_path / 'none.json')).get('users') is None

    def test_corrupt_file_is_unavailable(self, tmp_path):
        path = tmp_path / 'store.json'
        path.write_text('{not json', encoding='utf-8')
        with pytest.raises(StoreUnavailable):
            JsonFileStore(str(path)).get('users/u1')
