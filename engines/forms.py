"""
Mental Health ROI — Form Catalogue
Blank records, numeric input fields and row constructors for forms A-J.
Field names are the stored contract and must not be renamed.
"""
import copy, uuid

from engines.errors import UnknownFormError
from engines.formulas import DEFAULT_PRODUCTION_LOSS_HIGH_STRESS, MINUTES_PER_HOUR

FORM_TYPES = ('A', 'B', 'C', 'D', 'G', 'H', 'I', 'J')

FORM_TITLES = {
    'A': 'Current situation and needs',
    'B': 'Intervention design',
    'C': 'Economic consequences of poor mental health',
    'D': 'Personnel and sick-leave costs',
    'G': 'Intervention costs',
    'H': 'External intervention costs',
    'I': 'Internal intervention costs',
    'J': 'Return on investment',
}

DEFAULTS = {
    'A': {
        'organizationName': '', 'contactPerson': '', 'businessDefinition': '',
        'currentSituation': '', 'stressLevel': 0, 'productionLoss': 0, 'sickLeaveCost': 0,
        'causeAnalysis': '', 'goals': '', 'interventions': [], 'recommendation': '',
    },
    'B': {
        'organizationName': '', 'contactPerson': '', 'initiativeName': '',
        'initiativeDescription': '', 'purpose': '', 'supportForGoals': '',
        'alternativeApproaches': '', 'goals': '', 'targetGroup': '', 'expectedEffect': '',
        'implementationPlan': [],
    },
    'C': {
        'organizationName': '', 'contactPerson': '', 'timePeriod': '',
        'totalPersonnelCosts': None, 'companyProfit': None, 'totalWorkValue': 0,
        'percentHighStress': None, 'productionLossHighStress': DEFAULT_PRODUCTION_LOSS_HIGH_STRESS,
        'totalProductionLoss': 0, 'valueProductionLoss': 0,
        'costShortSickLeave': None, 'percentShortSickLeaveMentalHealth': 6,
        'costShortSickLeaveMentalHealth': 0,
        'costLongSickLeave': None, 'percentLongSickLeaveMentalHealth': 40,
        'costLongSickLeaveMentalHealth': 0,
        'totalCostSickLeaveMentalHealth': 0, 'totalCostMentalHealth': 0,
    },
    'D': {
        'organizationName': '', 'contactPerson': '', 'startDate': '', 'endDate': '',
        'averageMonthlySalary': None, 'socialFeesPercentage': None, 'averageSocialFeesPerMonth': 0,
        'numberOfEmployees': None, 'numberOfMonths': None, 'totalSalaryCosts': 0,
        'personnelOverheadPercentage': None, 'totalPersonnelOverhead': 0, 'totalPersonnelCosts': 0,
        'scheduledWorkHoursPerYear': None, 'personnelCostPerHour': 0,
        'scheduledWorkDaysPerYear': None,
        'shortSickLeaveCostPercentage': None, 'shortSickLeaveCostPerDay': 0,
        'shortSickLeavePercentage': None, 'totalShortSickDays': 0, 'totalShortSickLeaveCosts': 0,
        'longSickLeaveCostPercentage': None, 'longSickLeaveCostPerDay': 0,
        'longSickLeavePercentage': None, 'totalLongSickDays': 0, 'totalLongSickLeaveCosts': 0,
    },
    'G': {
        'organizationName': '', 'contactPerson': '', 'timePeriod': '12 månader',
        'interventions': [], 'totalInterventionCost': 0,
        'totalExternalCost': 0, 'totalInternalCost': 0,
    },
    'H': {
        'organizationName': '', 'contactPerson': '', 'timePeriod': '',
        'interventions': [], 'totalExternalCosts': 0,
    },
    'I': {
        'organizationName': '', 'contactPerson': '',
        'internalCosts': [], 'totalInternalCost': 0,
    },
    'J': {
        'organizationName': '', 'contactPerson': '', 'timePeriod': '', 'interventionDescription': '',
        'totalCostMentalHealthAlt1': None, 'reducedStressPercentageAlt1': None,
        'economicBenefitAlt1': 0, 'totalInterventionCostAlt1': None,
        'economicSurplusAlt1': 0, 'roiPercentageAlt1': 0,
        'totalCostMentalHealthAlt2': None, 'reducedStressPercentageAlt2': None,
        'maxInterventionCostAlt2': 0,
        'totalInterventionCostAlt3': None, 'totalCostMentalHealthAlt3': None,
        'minEffectForBreakEvenAlt3': 0,
    },
}

# Fields whose blank value is None (shown as empty) rather than a number
NULLABLE_NUMERIC = {
    form: {k for k, v in fields.items() if v is None}
    for form, fields in DEFAULTS.items()
}

LIST_FIELDS = {
    form: {k for k, v in fields.items() if isinstance(v, list)}
    for form, fields in DEFAULTS.items()
}

# List fields whose entries are row objects
ROW_FIELDS = {'G': ('interventions',), 'H': ('interventions',), 'I': ('internalCosts',)}

H_DEFAULT_COST_TYPE = 'Fast avgift för insats/offert'
COST_CATEGORIES = ('staff', 'managers', 'administration')


def check_form(form_type):
    form_type = str(form_type or '').upper()
    if form_type not in FORM_TYPES:
        raise UnknownFormError(form_type)
    return form_type


def new_record(form_type):
    return copy.deepcopy(DEFAULTS[check_form(form_type)])


def merge_with_defaults(form_type, data):
    """Overlay a stored record on the blank record, keeping unknown keys."""
    record = new_record(form_type)
    for k, v in (data or {}).items():
        if k in LIST_FIELDS[form_type] and v is None:
            continue
        record[k] = v
    for k in ('organizationName', 'contactPerson', 'timePeriod', 'startDate', 'endDate'):
        if k in record and record[k] is None:
            record[k] = ''
    return record


def dict_rows(rows):
    """The dict entries of a row list; anything else counts as no rows."""
    return [r for r in (rows if isinstance(rows, list) else []) if isinstance(r, dict)]


def is_numeric_field(form_type, field):
    default = DEFAULTS[form_type].get(field, '')
    if field in NULLABLE_NUMERIC[form_type]:
        return True
    return isinstance(default, (int, float)) and not isinstance(default, bool)


def generate_id():
    return uuid.uuid4().hex[:9]


# ── Row constructors ──

def new_g_intervention(name=''):
    return {'id': generate_id(), 'name': name, 'description': '', 'costs': [],
            'totalExternalCost': 0, 'totalInternalCost': 0, 'totalCost': 0}


def new_g_cost(name=''):
    return {'id': generate_id(), 'name': name, 'externalCost': None, 'internalCost': None}


def new_h_intervention(name=''):
    return {'id': generate_id(), 'name': name, 'comment': '', 'costItems': [], 'totalCost': 0}


def new_h_cost_item(intervention_name, sub_name, amount=None, cost_type=H_DEFAULT_COST_TYPE):
    return {'id': generate_id(), 'interventionName': intervention_name,
            'subInterventionName': sub_name, 'costType': cost_type, 'amount': amount}


def new_cost_category():
    return {'minutesSpent': None, 'divisor': MINUTES_PER_HOUR, 'hoursSpent': 0,
            'employeeCount': None, 'totalHours': 0, 'hourlyCost': None, 'totalCost': 0}


def new_internal_cost(intervention_name, sub_name):
    row = {'id': generate_id(), 'interventionName': intervention_name,
           'subInterventionName': sub_name, 'totalHours': 0, 'totalCost': 0}
    for cat in COST_CATEGORIES:
        row[cat] = new_cost_category()
    return row
