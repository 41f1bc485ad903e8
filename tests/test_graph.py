"""Tests for the recalculation controller."""

import pytest

from engines.errors import UnknownFormError
from engines.forms import new_g_cost, new_g_intervention, new_h_cost_item, new_h_intervention, \
    new_internal_cost, new_record
from engines.graph import DERIVED_FIELDS, FORMULAS, ORDER, dependents, is_derived, recalculate


class TestGraphShape:
    @pytest.mark.parametrize("form", list(FORMULAS))
    def test_every_input_is_resolved_before_its_reader(self, form):
        position = {fm.target: i for i, fm in enumerate(ORDER[form])}
        for fm in ORDER[form]:
            for name in fm.inputs:
                if name in position:
                    assert position[name] < position[fm.target]

    def test_no_field_is_its_own_input(self):
        for fms in FORMULAS.values():
            for fm in fms:
                assert fm.target not in fm.inputs

    def test_derived_fields(self):
        assert 'totalPersonnelCosts' in DERIVED_FIELDS['D']
        assert 'roiPercentageAlt1' in DERIVED_FIELDS['J']
        assert not DERIVED_FIELDS['A']
        assert is_derived('c', 'totalCostMentalHealth')
        assert not is_derived('C', 'percentHighStress')

    def test_unknown_form(self):
        with pytest.raises(UnknownFormError):
            recalculate('Z', {})

    def test_dependents_follow_the_chain(self):
        chain = dependents('D', 'averageMonthlySalary')
        assert chain.index('averageSocialFeesPerMonth') < chain.index('totalSalaryCosts')
        assert chain.index('totalSalaryCosts') < chain.index('totalPersonnelCosts')
        assert chain.index('totalPersonnelCosts') < chain.index('personnelCostPerHour')
        assert dependents('D', 'organizationName') == []


class TestFormD:
    def test_scenario_totals(self, form_d_record):
        out = recalculate('D', form_d_record)
        assert out['averageSocialFeesPerMonth'] == pytest.approx(12_000)
        assert out['totalSalaryCosts'] == pytest.approx(50_400_000)
        assert out['totalPersonnelOverhead'] == pytest.approx(10_080_000)
        assert out['totalPersonnelCosts'] == pytest.approx(60_480_000)
        assert out['personnelCostPerHour'] == pytest.approx(60_480_000 / 100 / 1760)
        assert out['totalShortSickDays'] == pytest.approx(550)
        assert out['totalShortSickLeaveCosts'] == pytest.approx(550 * 3000)
        assert out['totalLongSickDays'] == pytest.approx(660)
        assert out['totalLongSickLeaveCosts'] == pytest.approx(660 * 300)

    def test_input_is_not_mutated(self, form_d_record):
        before = dict(form_d_record)
        recalculate('D', form_d_record)
        assert form_d_record == before

    def test_idempotent(self, form_d_record):
        once = recalculate('D', form_d_record)
        assert recalculate('D', once) == once

    def test_missing_inputs_compute_as_zero_and_stay_missing(self):
        out = recalculate('D', new_record('D'))
        assert out['totalPersonnelCosts'] == 0
        assert out['averageMonthlySalary'] is None


class TestFormC:
    def test_production_loss_from_personnel_cost(self):
        record = new_record('C')
        record.update(totalPersonnelCosts=60_480_000, companyProfit=0,
                      percentHighStress=15, productionLossHighStress=9)
        out = recalculate('C', record)
        assert out['totalWorkValue'] == 60_480_000
        assert out['totalProductionLoss'] == pytest.approx(1.35)
        assert out['valueProductionLoss'] == pytest.approx(816_480)

    def test_total_cost_of_poor_mental_health(self):
        record = new_record('C')
        record.update(totalPersonnelCosts=1_000_000, companyProfit=500_000, percentHighStress=10,
                      costShortSickLeave=100_000, costLongSickLeave=50_000,
                      percentShortSickLeaveMentalHealth=99)
        out = recalculate('C', record)
        assert out['percentShortSickLeaveMentalHealth'] == 6
        assert out['percentLongSickLeaveMentalHealth'] == 40
        assert out['costShortSickLeaveMentalHealth'] == pytest.approx(6_000)
        assert out['costLongSickLeaveMentalHealth'] == pytest.approx(20_000)
        assert out['totalProductionLoss'] == pytest.approx(0.2)
        assert out['valueProductionLoss'] == pytest.approx(3_000)
        assert out['totalCostMentalHealth'] == pytest.approx(
            out['valueProductionLoss'] + out['totalCostSickLeaveMentalHealth'])

    def test_missing_reference_treated_as_zero(self):
        record = new_record('C')
        record.update(percentHighStress=10, companyProfit=100_000)
        out = recalculate('C', record)
        assert out['totalPersonnelCosts'] is None
        assert out['totalWorkValue'] == 100_000


class TestFormJ:
    def test_alternatives(self):
        record = new_record('J')
        record.update(totalCostMentalHealthAlt1=1_000_000, reducedStressPercentageAlt1=20,
                      totalInterventionCostAlt1=100_000,
                      totalCostMentalHealthAlt2=1_000_000, reducedStressPercentageAlt2=5,
                      totalInterventionCostAlt3=50_000, totalCostMentalHealthAlt3=1_000_000)
        out = recalculate('J', record)
        assert out['economicBenefitAlt1'] == pytest.approx(200_000)
        assert out['economicSurplusAlt1'] == pytest.approx(100_000)
        assert out['roiPercentageAlt1'] == pytest.approx(100)
        assert out['maxInterventionCostAlt2'] == pytest.approx(50_000)
        assert out['minEffectForBreakEvenAlt3'] == pytest.approx(5)

    def test_zero_cost_and_zero_base(self):
        out = recalculate('J', new_record('J'))
        assert out['roiPercentageAlt1'] == 0
        assert out['minEffectForBreakEvenAlt3'] == 0


class TestListForms:
    def test_g_row_and_form_totals(self):
        a, b = new_g_intervention('Coaching'), new_g_intervention('Training')
        c1, c2, c3 = new_g_cost('Sessions'), new_g_cost('Material'), new_g_cost('Days')
        c1.update(externalCost=10_000, internalCost=2_000)
        c2.update(externalCost=500.5)
        c3.update(externalCost=1_000, internalCost=4_000)
        a['costs'] = [c1, c2]
        b['costs'] = [c3]
        record = new_record('G')
        record['interventions'] = [a, b]

        out = recalculate('G', record)
        assert out['interventions'][0]['totalExternalCost'] == pytest.approx(10_500.5)
        assert out['interventions'][0]['totalCost'] == pytest.approx(12_500.5)
        assert out['totalExternalCost'] == pytest.approx(11_500.5)
        assert out['totalInternalCost'] == 6_000
        assert out['totalInterventionCost'] == pytest.approx(17_500.5)
        assert recalculate('G', out) == out

    def test_h_totals(self):
        iv = new_h_intervention('Coaching')
        iv['costItems'] = [new_h_cost_item('Coaching', 'Sessions', 10_000),
                           new_h_cost_item('Coaching', 'Travel', None)]
        record = new_record('H')
        record['interventions'] = [iv]
        out = recalculate('H', record)
        assert out['interventions'][0]['totalCost'] == 10_000
        assert out['totalExternalCosts'] == 10_000

    def test_i_hours_and_costs(self):
        row = new_internal_cost('Coaching', 'Sessions')
        row['staff'].update(minutesSpent=90, employeeCount=10, hourlyCost=400)
        row['managers'].update(minutesSpent=30, employeeCount=2, hourlyCost=600)
        record = new_record('I')
        record['internalCosts'] = [row]

        out = recalculate('I', record)
        staff = out['internalCosts'][0]['staff']
        assert staff['hoursSpent'] == pytest.approx(1.5)
        assert staff['totalHours'] == pytest.approx(15)
        assert staff['totalCost'] == pytest.approx(6_000)
        assert out['internalCosts'][0]['totalHours'] == pytest.approx(16)
        assert out['internalCosts'][0]['totalCost'] == pytest.approx(6_600)
        assert out['totalInternalCost'] == pytest.approx(6_600)
        assert recalculate('I', out) == out

    def test_malformed_rows_are_skipped(self):
        iv = new_g_intervention('Coaching')
        cost = new_g_cost('Sessions')
        cost['externalCost'] = 1_000
        iv['costs'] = [None, cost, 'x']
        record = dict(new_record('G'), interventions=[None, iv, 7])
        out = recalculate('G', record)
        assert out['totalInterventionCost'] == 1_000
        assert out['interventions'][1]['totalCost'] == 1_000

        assert recalculate('H', dict(new_record('H'), interventions=[None]))['totalExternalCosts'] == 0
        assert recalculate('I', dict(new_record('I'), internalCosts='x'))['totalInternalCost'] == 0
