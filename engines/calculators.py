"""
Mental Health ROI — Quick Calculators
Stand-alone ROI estimate from a handful of organisation figures, for one
intervention (simple) or several ranked by ROI (comparative).
"""
import logging, math

from engines import formulas as f
from engines.errors import ValidationError

BASE_FIELDS = (
    'num_employees', 'avg_monthly_salary', 'social_fees', 'personnel_costs',
    'stress_level', 'production_loss', 'workdays_per_year',
    'short_term_absence', 'long_term_absence',
)

SIMPLE_FIELDS = BASE_FIELDS + ('intervention_cost', 'expected_reduction')

DEFAULTS = {
    'social_fees': 42,
    'personnel_costs': 30,
    'production_loss': 9,
    'workdays_per_year': 220,
    'short_term_absence': 2.5,
    'long_term_absence': 3,
}


def _require(data, keys, message):
    absent = [k for k in keys if f.is_missing((data or {}).get(k))]
    if absent:
        logging.warning(f"calculator: refused, missing {absent}")
        raise ValidationError(message)
    values = {}
    for k in keys:
        try:
            values[k] = float(data[k])
        except (TypeError, ValueError):
            raise ValidationError(f"'{k}' must be a number")
        if not math.isfinite(values[k]):
            raise ValidationError(f"'{k}' must be a number")
    return values


# ══════════════════════════════════════════════════════════════
#  BASE DATA
# ══════════════════════════════════════════════════════════════

def _production_loss(total_personnel_cost, stress_level, production_loss):
    return total_personnel_cost * f.pct(stress_level) * f.pct(production_loss)


def compute_base(b):
    """Organisation-wide cost of poor mental health from the base figures."""
    annual_salary_cost = b['num_employees'] * b['avg_monthly_salary'] * 12
    social_fees_cost = annual_salary_cost * f.pct(b['social_fees'])
    personnel_overhead = (annual_salary_cost + social_fees_cost) * f.pct(b['personnel_costs'])
    total_personnel_cost = annual_salary_cost + social_fees_cost + personnel_overhead

    total_production_loss = _production_loss(total_personnel_cost, b['stress_level'], b['production_loss'])

    total_workdays = b['num_employees'] * b['workdays_per_year']
    short_term_days = total_workdays * f.pct(b['short_term_absence'])
    long_term_days = total_workdays * f.pct(b['long_term_absence'])
    short_term_cost = short_term_days * b['avg_monthly_salary'] * f.SHORT_TERM_DAY_COST
    long_term_cost = long_term_days * b['avg_monthly_salary'] * f.LONG_TERM_DAY_COST

    short_mh = f.attributable_sick_leave(short_term_cost, f.MENTAL_HEALTH_SHARE_SHORT)
    long_mh = f.attributable_sick_leave(long_term_cost, f.MENTAL_HEALTH_SHARE_LONG)
    total_sick_leave_cost = short_mh + long_mh

    return {
        'annual_salary_cost': annual_salary_cost,
        'social_fees_cost': social_fees_cost,
        'personnel_overhead': personnel_overhead,
        'total_personnel_cost': total_personnel_cost,
        'total_production_loss': total_production_loss,
        'short_term_days': short_term_days,
        'long_term_days': long_term_days,
        'short_term_cost': short_term_cost,
        'long_term_cost': long_term_cost,
        'short_term_mental_health_cost': short_mh,
        'long_term_mental_health_cost': long_mh,
        'total_sick_leave_cost': total_sick_leave_cost,
        'total_mental_health_cost': total_production_loss + total_sick_leave_cost,
    }


def evaluate_intervention(base_inputs, base, cost, expected_reduction):
    """Benefit, surplus, ROI and break-even of one intervention against the base."""
    reduced_stress = base_inputs['stress_level'] * (1 - f.pct(expected_reduction))
    reduced_loss = _production_loss(base['total_personnel_cost'], reduced_stress,
                                    base_inputs['production_loss'])
    production_loss_benefit = base['total_production_loss'] - reduced_loss
    sick_leave_benefit = base['total_sick_leave_cost'] * f.pct(expected_reduction)
    benefit = production_loss_benefit + sick_leave_benefit
    return {
        'cost': cost,
        'expected_reduction': expected_reduction,
        'production_loss_benefit': production_loss_benefit,
        'sick_leave_benefit': sick_leave_benefit,
        'economic_benefit': benefit,
        'economic_surplus': f.economic_surplus(benefit, cost),
        'roi_percentage': f.roi_percentage(benefit, cost),
        'break_even_effect': f.break_even_effect(cost, base['total_mental_health_cost']),
    }


# ══════════════════════════════════════════════════════════════
#  CALCULATORS
# ══════════════════════════════════════════════════════════════

def run_simple(data):
    inputs = _require(data, SIMPLE_FIELDS, 'All fields must be filled in to calculate ROI')
    base = compute_base(inputs)
    result = evaluate_intervention(inputs, base, inputs['intervention_cost'], inputs['expected_reduction'])
    out = dict(base)
    out.update(result)
    out['intervention_cost'] = out.pop('cost')
    return out


def run_comparative(data):
    """Rank independent interventions by ROI, highest first.

    Equal ROI keeps input order. The first result is flagged recommended.
    """
    data = data or {}
    inputs = _require(data, BASE_FIELDS, 'All base fields must be filled in to calculate ROI')
    interventions = data.get('interventions') or []
    if not isinstance(interventions, list) or not all(isinstance(iv, dict) for iv in interventions):
        raise ValidationError('Interventions must be a list of objects')
    if not interventions:
        raise ValidationError('Add at least one intervention')
    if any(f.is_missing(iv.get('cost')) or f.is_missing(iv.get('expected_reduction'))
           for iv in interventions):
        raise ValidationError('Every intervention needs a cost and an expected reduction')

    base = compute_base(inputs)
    results = []
    for iv in interventions:
        numbers = _require(iv, ('cost', 'expected_reduction'),
                           'Every intervention needs a cost and an expected reduction')
        row = {'id': iv.get('id'), 'name': iv.get('name') or ''}
        row.update(evaluate_intervention(inputs, base, numbers['cost'], numbers['expected_reduction']))
        results.append(row)

    results.sort(key=lambda r: r['roi_percentage'], reverse=True)
    for i, row in enumerate(results):
        row['rank'] = i + 1
        row['recommended'] = i == 0
    logging.info(f"comparative: ranked {len(results)} interventions, best '{results[0]['name']}'")

    out = dict(base)
    out['intervention_results'] = results
    return out
