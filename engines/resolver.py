"""
Mental Health ROI — Cross-Form Reference Resolver
Populates fields of a dependent form from values stored in other forms.

Every lookup returns a Resolution:
  RESOLVED  the source holds a value; it replaces the local value (rounded)
  MISSING   the source form or field has never been saved
  FAILED    the store could not be reached; the local value is kept

Also merges Form G interventions into Forms H and I.
"""
import copy, logging
from collections import namedtuple

from engines.errors import StoreUnavailable, ValidationError
from engines.formulas import is_missing, round_currency
from engines.forms import check_form, dict_rows, new_h_cost_item, new_h_intervention, new_internal_cost
from engines.store import load_form_data

Reference = namedtuple('Reference', ['field', 'source_form', 'source_field'])
Resolution = namedtuple('Resolution', ['status', 'value', 'reason'])

RESOLVED, MISSING, FAILED = 'resolved', 'missing', 'failed'

# Field states tracked per referencing field
AUTO, MANUAL = 'auto', 'manual'

REFERENCES = {
    'C': [
        Reference('totalPersonnelCosts', 'D', 'totalPersonnelCosts'),
        Reference('costShortSickLeave', 'D', 'totalShortSickLeaveCosts'),
        Reference('costLongSickLeave', 'D', 'totalLongSickLeaveCosts'),
    ],
    'J': [
        Reference('totalCostMentalHealthAlt1', 'C', 'totalCostMentalHealth'),
        Reference('totalCostMentalHealthAlt2', 'C', 'totalCostMentalHealth'),
        Reference('totalCostMentalHealthAlt3', 'C', 'totalCostMentalHealth'),
        Reference('totalInterventionCostAlt1', 'G', 'totalInterventionCost'),
        Reference('totalInterventionCostAlt3', 'G', 'totalInterventionCost'),
    ],
}


def resolved(value):
    return Resolution(RESOLVED, value, None)


def missing(reason):
    return Resolution(MISSING, None, reason)


def failed(reason):
    return Resolution(FAILED, None, reason)


def references_for(form_type):
    return REFERENCES.get(check_form(form_type), [])


def find_reference(form_type, field):
    for ref in references_for(form_type):
        if ref.field == field:
            return ref
    return None


def _resolve_from(ref, source):
    if source is None:
        return missing(f"Form {ref.source_form} has not been saved yet")
    value = source.get(ref.source_field)
    if is_missing(value):
        return missing(f"No value for {ref.source_field} in form {ref.source_form}")
    return resolved(round_currency(value))


class ReferenceResolver:
    """One-shot resolution of a form's references for one mount.

    resolve_on_mount() reads each source form at most once; later calls
    return nothing until reset(). fetch() is the explicit user-triggered
    lookup of a single field and always reads the store.
    """

    def __init__(self, store, user_id, form_type, project_id=None):
        self.store = store
        self.user_id = user_id
        self.form_type = check_form(form_type)
        self.project_id = project_id
        self.fetched = set()

    def _load_source(self, source_form):
        try:
            return load_form_data(self.store, self.user_id, source_form, self.project_id), None
        except StoreUnavailable as e:
            logging.warning(f"resolver: form {source_form} unavailable for {self.form_type}: {e}")
            return None, str(e)

    def resolve_on_mount(self):
        results = {}
        by_source = {}
        for ref in references_for(self.form_type):
            by_source.setdefault(ref.source_form, []).append(ref)

        for source_form, refs in by_source.items():
            if source_form in self.fetched:
                continue
            self.fetched.add(source_form)
            source, error = self._load_source(source_form)
            for ref in refs:
                results[ref.field] = failed(error) if error else _resolve_from(ref, source)
        logging.info(f"resolver: form {self.form_type} resolved "
                     f"{sum(1 for r in results.values() if r.status == RESOLVED)}/{len(results)} references")
        return results

    def fetch(self, field):
        ref = find_reference(self.form_type, field)
        if ref is None:
            raise ValidationError(f"Field '{field}' in form {self.form_type} has no source form")
        source, error = self._load_source(ref.source_form)
        if error:
            return failed(error)
        return _resolve_from(ref, source)

    def reset(self):
        self.fetched.clear()


def apply_resolution(record, field, resolution):
    """Write a resolution into record in place; returns the field state.

    A missing or failed lookup keeps whatever the user already entered.
    """
    if resolution.status == RESOLVED:
        record[field] = resolution.value
        return AUTO
    if resolution.status == FAILED:
        return FAILED
    return MANUAL if not is_missing(record.get(field)) else MISSING


# ══════════════════════════════════════════════════════════════
#  INTERVENTION IMPORT FROM FORM G
# ══════════════════════════════════════════════════════════════

def _g_sub_interventions(g_record):
    """(intervention name, [(cost row name, rounded external cost)]) for G rows with costs."""
    groups = []
    for iv in dict_rows((g_record or {}).get('interventions')):
        costs = dict_rows(iv.get('costs'))
        if not costs:
            continue
        subs = []
        for c in costs:
            ext = c.get('externalCost')
            subs.append((c.get('name', ''), None if is_missing(ext) else round_currency(ext)))
        groups.append((iv.get('name', ''), subs))
    return groups


def _import_message(added, updated):
    if added and updated:
        return f"{added} new sub-interventions added and {updated} existing updated from form G."
    if added:
        return f"{added} new sub-interventions added from form G."
    if updated:
        return f"{updated} existing sub-interventions updated from form G."
    return 'All interventions from form G are already imported.'


def import_interventions_into_h(h_record, g_record):
    """Merge G's interventions and external costs into an H record.

    Interventions match by name, cost items by sub-intervention name. New
    items get the default cost type; items whose amount differs from G's
    rounded external cost are updated. Returns (record, summary).
    """
    groups = _g_sub_interventions(g_record)
    if not groups:
        raise ValidationError('No interventions found in form G')

    record = copy.deepcopy(h_record or {})
    interventions = record['interventions'] = dict_rows(record.get('interventions'))
    added = updated = 0

    for name, subs in groups:
        target = next((iv for iv in interventions if iv.get('name') == name), None)
        if target is None:
            target = new_h_intervention(name)
            interventions.append(target)
        items = target['costItems'] = dict_rows(target.get('costItems'))
        existing = {item.get('subInterventionName'): item for item in items}
        for sub_name, amount in subs:
            item = existing.get(sub_name)
            if item is None:
                items.append(new_h_cost_item(name, sub_name, amount))
                added += 1
            elif item.get('amount') != amount:
                item['amount'] = amount
                updated += 1

    summary = {'added': added, 'updated': updated, 'message': _import_message(added, updated)}
    logging.info(f"import H from G: {added} added, {updated} updated")
    return record, summary


def import_interventions_into_i(i_record, g_record):
    """Add one empty internal-cost row per G (intervention, cost row) pair not yet present."""
    groups = _g_sub_interventions(g_record)
    if not groups:
        raise ValidationError('No interventions found in form G')

    record = copy.deepcopy(i_record or {})
    rows = record['internalCosts'] = dict_rows(record.get('internalCosts'))
    present = {(r.get('interventionName'), r.get('subInterventionName')) for r in rows}
    added = 0
    for name, subs in groups:
        for sub_name, _ in subs:
            if (name, sub_name) in present:
                continue
            rows.append(new_internal_cost(name, sub_name))
            present.add((name, sub_name))
            added += 1

    message = (f"{added} new sub-interventions added from form G." if added
               else 'All interventions from form G are already imported.')
    logging.info(f"import I from G: {added} added")
    return record, {'added': added, 'updated': 0, 'message': message}
