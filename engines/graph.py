"""
Mental Health ROI — Recalculation Controller
Explicit dependency graph of derived fields per form.

Each derived field is a Formula(target, inputs, fn). The evaluation order is
a topological sort of the graph built at import time, so a field is always
resolved after every field it reads. A cycle is a programming error and
fails the import with graphlib.CycleError.

Row-level totals for the list forms (G, H, I) are applied before the
form-level formulas, which then sum the rows.
"""
import copy
from collections import namedtuple
from graphlib import TopologicalSorter

from engines import formulas as f
from engines.forms import COST_CATEGORIES, check_form, dict_rows

Formula = namedtuple('Formula', ['target', 'inputs', 'fn'])


def _sum_rows(key):
    return lambda rows: sum(f.num(r.get(key)) for r in dict_rows(rows))


# ══════════════════════════════════════════════════════════════
#  FORMULA GRAPH
# ══════════════════════════════════════════════════════════════

FORMULAS = {
    'A': [],
    'B': [],
    'D': [
        Formula('averageSocialFeesPerMonth', ('averageMonthlySalary', 'socialFeesPercentage'),
                f.social_fees_per_month),
        Formula('totalSalaryCosts',
                ('averageMonthlySalary', 'averageSocialFeesPerMonth', 'numberOfEmployees', 'numberOfMonths'),
                f.total_salary_costs),
        Formula('totalPersonnelOverhead', ('totalSalaryCosts', 'personnelOverheadPercentage'),
                f.personnel_overhead),
        Formula('totalPersonnelCosts', ('totalSalaryCosts', 'totalPersonnelOverhead'),
                lambda salary, overhead: f.num(salary) + f.num(overhead)),
        Formula('personnelCostPerHour',
                ('totalPersonnelCosts', 'numberOfEmployees', 'scheduledWorkHoursPerYear'),
                f.cost_per_hour),
        Formula('shortSickLeaveCostPerDay', ('averageMonthlySalary', 'shortSickLeaveCostPercentage'),
                f.sick_leave_cost_per_day),
        Formula('totalShortSickDays',
                ('numberOfEmployees', 'scheduledWorkDaysPerYear', 'shortSickLeavePercentage'),
                f.sick_days),
        Formula('totalShortSickLeaveCosts', ('shortSickLeaveCostPerDay', 'totalShortSickDays'),
                f.sick_leave_cost),
        Formula('longSickLeaveCostPerDay', ('averageMonthlySalary', 'longSickLeaveCostPercentage'),
                f.sick_leave_cost_per_day),
        Formula('totalLongSickDays',
                ('numberOfEmployees', 'scheduledWorkDaysPerYear', 'longSickLeavePercentage'),
                f.sick_days),
        Formula('totalLongSickLeaveCosts', ('longSickLeaveCostPerDay', 'totalLongSickDays'),
                f.sick_leave_cost),
    ],
    'C': [
        Formula('totalWorkValue', ('totalPersonnelCosts', 'companyProfit'), f.work_value),
        Formula('totalProductionLoss', ('percentHighStress', 'productionLossHighStress'),
                f.production_loss_share),
        Formula('valueProductionLoss', ('totalWorkValue', 'totalProductionLoss'),
                f.production_loss_value),
        Formula('percentShortSickLeaveMentalHealth', (), lambda: f.MENTAL_HEALTH_SHARE_SHORT),
        Formula('percentLongSickLeaveMentalHealth', (), lambda: f.MENTAL_HEALTH_SHARE_LONG),
        Formula('costShortSickLeaveMentalHealth',
                ('costShortSickLeave', 'percentShortSickLeaveMentalHealth'), f.attributable_sick_leave),
        Formula('costLongSickLeaveMentalHealth',
                ('costLongSickLeave', 'percentLongSickLeaveMentalHealth'), f.attributable_sick_leave),
        Formula('totalCostSickLeaveMentalHealth',
                ('costShortSickLeaveMentalHealth', 'costLongSickLeaveMentalHealth'),
                lambda short, long: f.num(short) + f.num(long)),
        Formula('totalCostMentalHealth', ('valueProductionLoss', 'totalCostSickLeaveMentalHealth'),
                lambda loss, sick: f.num(loss) + f.num(sick)),
    ],
    'G': [
        Formula('totalExternalCost', ('interventions',), _sum_rows('totalExternalCost')),
        Formula('totalInternalCost', ('interventions',), _sum_rows('totalInternalCost')),
        Formula('totalInterventionCost', ('totalExternalCost', 'totalInternalCost'),
                lambda ext, internal: f.num(ext) + f.num(internal)),
    ],
    'H': [
        Formula('totalExternalCosts', ('interventions',), _sum_rows('totalCost')),
    ],
    'I': [
        Formula('totalInternalCost', ('internalCosts',), _sum_rows('totalCost')),
    ],
    'J': [
        Formula('economicBenefitAlt1', ('totalCostMentalHealthAlt1', 'reducedStressPercentageAlt1'),
                f.economic_benefit),
        Formula('economicSurplusAlt1', ('economicBenefitAlt1', 'totalInterventionCostAlt1'),
                f.economic_surplus),
        Formula('roiPercentageAlt1', ('economicBenefitAlt1', 'totalInterventionCostAlt1'),
                f.roi_percentage),
        Formula('maxInterventionCostAlt2', ('totalCostMentalHealthAlt2', 'reducedStressPercentageAlt2'),
                f.economic_benefit),
        Formula('minEffectForBreakEvenAlt3', ('totalInterventionCostAlt3', 'totalCostMentalHealthAlt3'),
                f.break_even_effect),
    ],
}


def _build_order(formulas):
    by_target = {fm.target: fm for fm in formulas}
    ts = TopologicalSorter()
    for fm in formulas:
        ts.add(fm.target, *[i for i in fm.inputs if i in by_target])
    return [by_target[t] for t in ts.static_order()]


ORDER = {form: _build_order(fms) for form, fms in FORMULAS.items()}

DERIVED_FIELDS = {form: frozenset(fm.target for fm in fms) for form, fms in FORMULAS.items()}


def is_derived(form_type, field):
    return field in DERIVED_FIELDS[check_form(form_type)]


def dependents(form_type, field):
    """All derived fields downstream of field, in evaluation order."""
    form_type = check_form(form_type)
    affected = {field}
    out = []
    for fm in ORDER[form_type]:
        if any(i in affected for i in fm.inputs):
            affected.add(fm.target)
            out.append(fm.target)
    return out


# ══════════════════════════════════════════════════════════════
#  ROW RULES (list forms)
# ══════════════════════════════════════════════════════════════

def _g_rows(record):
    for iv in dict_rows(record.get('interventions')):
        costs = dict_rows(iv.get('costs'))
        iv['totalExternalCost'] = sum(f.num(c.get('externalCost')) for c in costs)
        iv['totalInternalCost'] = sum(f.num(c.get('internalCost')) for c in costs)
        iv['totalCost'] = iv['totalExternalCost'] + iv['totalInternalCost']


def _h_rows(record):
    for iv in dict_rows(record.get('interventions')):
        iv['totalCost'] = sum(f.num(item.get('amount')) for item in dict_rows(iv.get('costItems')))


def _cost_category(cat):
    divisor = f.num(cat.get('divisor')) or f.MINUTES_PER_HOUR
    cat['divisor'] = divisor
    cat['hoursSpent'] = f.safe_div(cat.get('minutesSpent'), divisor)
    cat['totalHours'] = cat['hoursSpent'] * f.num(cat.get('employeeCount'))
    cat['totalCost'] = cat['totalHours'] * f.num(cat.get('hourlyCost'))


def _i_rows(record):
    for row in dict_rows(record.get('internalCosts')):
        total_hours = total_cost = 0
        for name in COST_CATEGORIES:
            cat = row.get(name)
            if not isinstance(cat, dict):
                continue
            _cost_category(cat)
            total_hours += cat['totalHours']
            total_cost += cat['totalCost']
        row['totalHours'] = total_hours
        row['totalCost'] = total_cost


ROW_RULES = {'G': _g_rows, 'H': _h_rows, 'I': _i_rows}


# ══════════════════════════════════════════════════════════════
#  RECALCULATION
# ══════════════════════════════════════════════════════════════

def recalculate(form_type, record):
    """Return a copy of record with every derived field recomputed.

    Inputs are never modified, so running this twice on the same inputs
    yields the same record.
    """
    form_type = check_form(form_type)
    out = copy.deepcopy(record) if record else {}
    rule = ROW_RULES.get(form_type)
    if rule:
        rule(out)
    for fm in ORDER[form_type]:
        out[fm.target] = fm.fn(*[out.get(i) for i in fm.inputs])
    return out
