"""Tests for shared organisation fields."""

from engines.shared_fields import apply_shared_fields, load_shared_fields, save_shared_fields_from_form
from engines.store import save_form_data


class TestLoadSharedFields:
    def test_nothing_saved(self, store):
        assert load_shared_fields(store, 'u1') is None

    def test_form_a_only(self, store):
        save_form_data(store, 'u1', 'A', {'organizationName': 'Acme AB', 'contactPerson': 'Kim'})
        assert load_shared_fields(store, 'u1') == {
            'organizationName': 'Acme AB', 'contactPerson': 'Kim', 'startDate': '', 'endDate': ''}

    def test_form_d_overrides_a(self, store):
        save_form_data(store, 'u1', 'A', {'organizationName': 'Acme AB', 'contactPerson': 'Kim'})
        save_form_data(store, 'u1', 'D', {'organizationName': 'Acme Group', 'contactPerson': '',
                                          'startDate': '2024-01-01', 'endDate': '2024-12-31'})
        shared = load_shared_fields(store, 'u1')
        assert shared['organizationName'] == 'Acme Group'
        assert shared['contactPerson'] == 'Kim'
        assert (shared['startDate'], shared['endDate']) == ('2024-01-01', '2024-12-31')

    def test_dates_from_form_c_without_d(self, store):
        save_form_data(store, 'u1', 'C', {'timePeriod': '2024-01-01 - 2024-06-30'})
        shared = load_shared_fields(store, 'u1')
        assert (shared['startDate'], shared['endDate']) == ('2024-01-01', '2024-06-30')

    def test_unsplittable_period_ignored(self, store):
        save_form_data(store, 'u1', 'C', {'timePeriod': '12 månader'})
        assert load_shared_fields(store, 'u1') is None

    def test_project_scope(self, store):
        save_form_data(store, 'u1', 'A', {'organizationName': 'Acme AB'}, project_id='p1')
        assert load_shared_fields(store, 'u1') is None
        assert load_shared_fields(store, 'u1', 'p1')['organizationName'] == 'Acme AB'


class TestApplySharedFields:
    shared = {'organizationName': 'Acme AB', 'contactPerson': 'Kim',
              'startDate': '2024-01-01', 'endDate': '2024-12-31'}

    def test_organisation_always_filled(self):
        out = apply_shared_fields({'organizationName': None, 'contactPerson': 'Old', 'timePeriod': 'x'}, self.shared)
        assert out['organizationName'] == 'Acme AB'
        assert out['contactPerson'] == 'Kim'
        assert out['timePeriod'] == 'x'

    def test_combined_time_period(self):
        out = apply_shared_fields({'timePeriod': ''}, self.shared, include_time_period=True)
        assert out['timePeriod'] == '2024-01-01 - 2024-12-31'

    def test_separate_dates(self):
        out = apply_shared_fields({'startDate': None, 'endDate': '2025-01-01'}, self.shared,
                                  include_time_period=True)
        assert (out['startDate'], out['endDate']) == ('2024-01-01', '2024-12-31')

    def test_dates_kept_as_strings_when_not_included(self):
        out = apply_shared_fields({'startDate': None, 'endDate': None}, {})
        assert out == {'organizationName': '', 'contactPerson': '', 'startDate': '', 'endDate': ''}

    def test_record_not_mutated(self):
        record = {'organizationName': ''}
        apply_shared_fields(record, self.shared)
        assert record == {'organizationName': ''}


def test_save_shared_fields_from_form(store):
    save_shared_fields_from_form(store, 'u1', {'organizationName': 'Acme AB', 'contactPerson': None}, 'p1')
    assert store.get('users/u1/projectForms/p1/sharedFields') == {
        'organizationName': 'Acme AB', 'contactPerson': '', 'startDate': '', 'endDate': ''}
