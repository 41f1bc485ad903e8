"""
Mental Health ROI — Formula Library
Pure, stateless formulas shared by the linked forms and the calculators.

Every formula treats an absent input (None, '', NaN) as 0 for arithmetic.
The caller keeps the original absent value in the record so the UI can
still show it as missing. Divisions by zero resolve to 0, never NaN/inf.
"""
import math

# Share of sick-leave cost attributed to poor mental health (policy constants)
MENTAL_HEALTH_SHARE_SHORT = 6     # % of short-term sick-leave cost
MENTAL_HEALTH_SHARE_LONG = 40     # % of long-term sick-leave cost

# Daily sick-leave cost as share of monthly salary (calculators only)
SHORT_TERM_DAY_COST = 0.10
LONG_TERM_DAY_COST = 0.01

DEFAULT_MONTHS = 12
DEFAULT_WORK_DAYS = 220
DEFAULT_PRODUCTION_LOSS_HIGH_STRESS = 2.0
MINUTES_PER_HOUR = 60


def num(v):
    """Arithmetic value of an input: absent, blank or non-finite -> 0."""
    if v is None or v == '' or isinstance(v, bool):
        return 0
    try:
        f = float(v)
    except (TypeError, ValueError):
        return 0
    if math.isnan(f) or math.isinf(f):
        return 0
    return int(f) if isinstance(v, int) else f


def pct(v):
    return num(v) / 100


def safe_div(a, b):
    b = num(b)
    if b == 0:
        return 0
    return num(a) / b


def round_currency(v):
    """Round half away from zero to whole currency units (Math.round semantics for >= 0)."""
    v = num(v)
    return int(math.floor(v + 0.5)) if v >= 0 else -int(math.floor(-v + 0.5))


def is_missing(v):
    return v is None or v == '' or (isinstance(v, float) and math.isnan(v))


# ══════════════════════════════════════════════════════════════
#  PERSONNEL COSTS (Form D)
# ══════════════════════════════════════════════════════════════

def social_fees_per_month(salary, social_fees_pct):
    return num(salary) * pct(social_fees_pct)


def total_salary_costs(salary, social_per_month, employees, months):
    months = num(months) or DEFAULT_MONTHS
    return (num(salary) + num(social_per_month)) * num(employees) * months


def personnel_overhead(salary_costs, overhead_pct):
    return num(salary_costs) * pct(overhead_pct)


def total_personnel_cost(salary, social_fees_pct, employees, months, overhead_pct):
    """(salary + salary*fees%) * employees * months * (1 + overhead%)"""
    salary_costs = total_salary_costs(salary, social_fees_per_month(salary, social_fees_pct),
                                      employees, months)
    return salary_costs + personnel_overhead(salary_costs, overhead_pct)


def cost_per_hour(personnel_costs, employees, hours_per_year):
    if num(employees) <= 0 or num(hours_per_year) <= 0:
        return 0
    return num(personnel_costs) / num(employees) / num(hours_per_year)


def sick_leave_cost_per_day(salary, cost_pct):
    return num(salary) * pct(cost_pct)


def sick_days(employees, work_days, sick_pct):
    work_days = num(work_days) or DEFAULT_WORK_DAYS
    return num(employees) * work_days * pct(sick_pct)


def sick_leave_cost(cost_per_day, days):
    return num(cost_per_day) * num(days)


# ══════════════════════════════════════════════════════════════
#  COST OF POOR MENTAL HEALTH (Form C)
# ══════════════════════════════════════════════════════════════

def work_value(personnel_costs, profit):
    return num(personnel_costs) + num(profit)


def production_loss_share(stress_pct, loss_pct):
    """Share of total work value lost, in percent: stress% of staff losing loss% each."""
    return num(stress_pct) * num(loss_pct) / 100


def production_loss_value(value_of_work, loss_share_pct):
    return num(value_of_work) * pct(loss_share_pct)


def attributable_sick_leave(cost, share_pct):
    return num(cost) * pct(share_pct)


def mental_health_sick_leave(short_term_cost, long_term_cost):
    return (attributable_sick_leave(short_term_cost, MENTAL_HEALTH_SHARE_SHORT)
            + attributable_sick_leave(long_term_cost, MENTAL_HEALTH_SHARE_LONG))


# ══════════════════════════════════════════════════════════════
#  RETURN ON INVESTMENT (Form J, calculators)
# ══════════════════════════════════════════════════════════════

def economic_benefit(total_mental_health_cost, reduction_pct):
    return num(total_mental_health_cost) * pct(reduction_pct)


def economic_surplus(benefit, intervention_cost):
    return num(benefit) - num(intervention_cost)


def roi_percentage(benefit, intervention_cost):
    """(benefit - cost) / cost * 100, defined as 0 when the cost is 0."""
    return safe_div(economic_surplus(benefit, intervention_cost), intervention_cost) * 100


def break_even_effect(intervention_cost, total_mental_health_cost):
    """Minimum relative effect (%) for the intervention to pay for itself."""
    return safe_div(intervention_cost, total_mental_health_cost) * 100


def payback_months(cost, benefit, period_months=12):
    if num(cost) <= 0 or num(benefit) <= 0:
        return 0
    return num(cost) / (num(benefit) / period_months)
