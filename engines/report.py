"""
Mental Health ROI — Report Builder
Collects the saved forms into one report and exports it to Excel.

build_report() reads shared fields plus Forms A, B, C, D and J for a user
(optionally a project). Later forms override earlier ones where they carry
the same figure: Form C's computed values replace Form A's estimates.
"""
import logging
import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from engines.formatting import format_currency, format_number, format_percentage
from engines.formulas import is_missing, payback_months
from engines.shared_fields import load_shared_fields
from engines.store import load_form_data

PERIOD_MONTHS = 12


def _non_empty(items):
    return [i for i in (items or []) if i]


def _set_if_present(report, key, source, field):
    if source and not is_missing(source.get(field)):
        report[key] = source[field]


def build_report(store, user_id, project_id=None):
    shared = load_shared_fields(store, user_id, project_id)
    if not shared:
        logging.info(f"report: no shared fields for user {user_id}, nothing to report")
        return None

    report = {
        'sharedFields': shared,
        'totalCost': 0,
        'totalBenefit': 0,
        'roi': 0,
        'paybackPeriod': 0,
    }

    def load(form):
        return load_form_data(store, user_id, form, project_id)

    a = load('A')
    if a:
        report['currentSituation'] = a.get('currentSituation', '')
        report['stressPercentage'] = a.get('stressLevel')
        report['productionLossValue'] = a.get('productionLoss')
        report['sickLeaveValue'] = a.get('sickLeaveCost')
        report['causeAnalysis'] = a.get('causeAnalysis', '')
        report['goals'] = report['goalsDescription'] = a.get('goals', '')
        report['recommendation'] = a.get('recommendation') or ''
        interventions = _non_empty(a.get('interventions'))
        if interventions:
            report['interventionsArray'] = interventions

    b = load('B')
    if b:
        if b.get('initiativeDescription'):
            report['interventionDescription'] = b['initiativeDescription']
        report['interventionPurpose'] = b.get('purpose') or ''
        report['targetGroup'] = b.get('targetGroup') or ''
        plan = _non_empty(b.get('implementationPlan'))
        report['implementationPlan'] = ', '.join(plan)
        if plan:
            report['implementationPlanArray'] = plan
        if b.get('goals'):
            report['goalsDescription'] = b['goals']
    if 'interventionDescription' not in report and report.get('interventionsArray'):
        report['interventionDescription'] = ', '.join(report['interventionsArray'])

    c = load('C')
    if c:
        report['timePeriod'] = c.get('timePeriod') or ''
        _set_if_present(report, 'stressPercentage', c, 'percentHighStress')
        _set_if_present(report, 'productionLossValue', c, 'valueProductionLoss')
        _set_if_present(report, 'sickLeaveValue', c, 'totalCostSickLeaveMentalHealth')
        _set_if_present(report, 'totalMentalHealthCost', c, 'totalCostMentalHealth')

    d = load('D')
    if d:
        report['numberOfEmployees'] = d.get('numberOfEmployees')

    j = load('J')
    if j:
        _set_if_present(report, 'totalCost', j, 'totalInterventionCostAlt1')
        _set_if_present(report, 'totalBenefit', j, 'economicBenefitAlt1')
        _set_if_present(report, 'roi', j, 'roiPercentageAlt1')
        _set_if_present(report, 'totalMentalHealthCost', j, 'totalCostMentalHealthAlt1')
        _set_if_present(report, 'reducedStressPercentage', j, 'reducedStressPercentageAlt1')
        _set_if_present(report, 'totalMentalHealthCostAlt2', j, 'totalCostMentalHealthAlt2')
        _set_if_present(report, 'reducedStressPercentageAlt2', j, 'reducedStressPercentageAlt2')
        if not is_missing(j.get('maxInterventionCostAlt2')):
            report['totalCostAlt2'] = j['maxInterventionCostAlt2']
            report['totalBenefitAlt2'] = j.get('economicBenefitAlt1', 0)
            report['roiAlt2'] = 0
        _set_if_present(report, 'totalCostAlt3', j, 'totalInterventionCostAlt3')
        _set_if_present(report, 'totalMentalHealthCostAlt3', j, 'totalCostMentalHealthAlt3')
        if not is_missing(j.get('minEffectForBreakEvenAlt3')):
            report['minEffectForBreakEvenAlt3'] = j['minEffectForBreakEvenAlt3']
            report['totalBenefitAlt3'] = j.get('totalInterventionCostAlt3')
            report['roiAlt3'] = 0
        report['paybackPeriod'] = payback_months(report['totalCost'], report['totalBenefit'], PERIOD_MONTHS)

    return report


# ══════════════════════════════════════════════════════════════
#  EXCEL EXPORT
# ══════════════════════════════════════════════════════════════

HEADER_FONT = Font(bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E4A3F', end_color='2E4A3F', fill_type='solid')
THIN = Border(left=Side(style='thin'), right=Side(style='thin'),
              top=Side(style='thin'), bottom=Side(style='thin'))


def ws_write(ws, headers, rows):
    for c, h in enumerate(headers, 1):
        cell = ws.cell(row=1, column=c, value=h)
        cell.font = HEADER_FONT; cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal='center'); cell.border = THIN
    for r, row in enumerate(rows, 2):
        for c, val in enumerate(row, 1):
            ws.cell(row=r, column=c, value=val).border = THIN
    for col in ws.columns:
        ml = max(len(str(cell.value or '')) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(ml + 2, 60)


def export_report_xlsx(report, target, currency='SEK'):
    """Write report to an xlsx workbook at target (a path or binary file object)."""
    shared = report.get('sharedFields') or {}
    period = report.get('timePeriod') or ' - '.join(p for p in (shared.get('startDate'),
                                                                 shared.get('endDate')) if p)
    wb = openpyxl.Workbook()

    ws = wb.active; ws.title = 'Summary'
    ws_write(ws, ['Item', 'Value'], [
        ['Organisation', shared.get('organizationName', '')],
        ['Contact person', shared.get('contactPerson', '')],
        ['Period', period],
        ['Employees', format_number(report.get('numberOfEmployees'))],
        ['Share with high stress', format_percentage(report.get('stressPercentage') or 0)],
        ['Production loss', format_currency(report.get('productionLossValue'))],
        ['Sick leave (mental health)', format_currency(report.get('sickLeaveValue'))],
        ['Total cost of poor mental health', format_currency(report.get('totalMentalHealthCost'))],
        ['Intervention', report.get('interventionDescription', '')],
        ['Purpose', report.get('interventionPurpose', '')],
        ['Target group', report.get('targetGroup', '')],
        ['Recommendation', report.get('recommendation', '')],
        ['Payback period (months)', format_number(report.get('paybackPeriod'), 1)],
        ['Currency', currency],
    ])

    ws1 = wb.create_sheet('Alt 1 ROI')
    ws_write(ws1, ['Item', 'Value'], [
        ['Intervention cost', format_currency(report.get('totalCost'))],
        ['Reduced stress', format_percentage(report.get('reducedStressPercentage') or 0)],
        ['Economic benefit', format_currency(report.get('totalBenefit'))],
        ['ROI', format_percentage(report.get('roi') or 0)],
    ])

    ws2 = wb.create_sheet('Alt 2 Max cost')
    ws_write(ws2, ['Item', 'Value'], [
        ['Cost of poor mental health', format_currency(report.get('totalMentalHealthCostAlt2'))],
        ['Reduced stress', format_percentage(report.get('reducedStressPercentageAlt2') or 0)],
        ['Max intervention cost', format_currency(report.get('totalCostAlt2'))],
    ])

    ws3 = wb.create_sheet('Alt 3 Break-even')
    ws_write(ws3, ['Item', 'Value'], [
        ['Intervention cost', format_currency(report.get('totalCostAlt3'))],
        ['Cost of poor mental health', format_currency(report.get('totalMentalHealthCostAlt3'))],
        ['Min effect for break-even', format_percentage(report.get('minEffectForBreakEvenAlt3') or 0)],
    ])

    plan = report.get('implementationPlanArray') or []
    interventions = report.get('interventionsArray') or []
    if plan or interventions:
        ws4 = wb.create_sheet('Plan')
        ws_write(ws4, ['Kind', 'Step'], [['Intervention', i] for i in interventions]
                 + [['Implementation', p] for p in plan])

    wb.save(target)
    logging.info(f"report: exported workbook with {len(wb.sheetnames)} sheets")
    return target
