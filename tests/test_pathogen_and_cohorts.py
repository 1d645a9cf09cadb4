import math

import numpy as np
import pytest

from immunoengine.cohorts import COHORT_FORMULAS, next_response
from immunoengine.pathogen import Pathogen
from immunoengine.patient import Patient
from immunoengine.types import LoadParams, Medicament


def test_cohort_differentiation():
    """
    beta=0.5, fatigue=0.2, I=10, L=100:
      young   = 10 + 0.5*sqrt(100) - 0.2*10 = 13
      adult   = 10 + 0.5*100      - 0.2*10 = 58
      elderly = 10 + 0.5*100      - 0.2*100 = 40
    """
    expected = {"young": 13.0, "adult": 58.0, "elderly": 40.0}
    for cohort, value in expected.items():
        pat = Patient(f"P-{cohort}", beta=0.5, fatigue_coeff=0.2, cohort=cohort)
        p = Pathogen(pathogen_id=1, load=0.0, growth_rate=0.0, alpha=0.0)
        pat.add_pathogen(p, 10.0)
        out = pat.update_immune_responses({p: 100.0})
        assert np.isclose(out[p], value)


def test_negative_load_is_floored_for_every_cohort():
    p = Pathogen(pathogen_id=1, load=0.0, growth_rate=0.0, alpha=0.0)
    for cohort in COHORT_FORMULAS:
        got = next_response(cohort, p, -100.0, 10.0, beta=0.5, fatigue_coeff=0.2)
        want = next_response(cohort, p, 0.0, 10.0, beta=0.5, fatigue_coeff=0.2)
        assert got == want
        assert got >= 0.0


def test_pathogen_load_is_clamped():
    p = Pathogen(pathogen_id=1, load=-3.0, growth_rate=0.1, alpha=0.1)
    assert p.load == 0.0
    p.load = -0.5
    assert p.load == 0.0


def test_compute_load_without_treatment_grows():
    p = Pathogen(pathogen_id=1, load=100.0, growth_rate=0.2, alpha=0.5,
                 sensitivity={"amox": 1.0})
    assert np.isclose(p.compute_load({}), 120.0)
    # pure: stored load untouched
    assert p.load == 100.0


def test_compute_load_missing_concentration_counts_as_zero():
    p = Pathogen(pathogen_id=1, load=50.0, growth_rate=0.1, alpha=0.5,
                 resistance={"cipro": 0.2}, sensitivity={"amox": 1.0, "cipro": 0.9})
    assert p.compute_load({"other": 1000.0}) == p.compute_load({})


def test_full_resistance_gives_no_suppression():
    resistant = Pathogen(pathogen_id=1, load=100.0, growth_rate=0.1, alpha=0.5,
                         resistance={"amox": 1.0}, sensitivity={"amox": 0.0})
    sensitive = Pathogen(pathogen_id=2, load=100.0, growth_rate=0.1, alpha=0.5,
                         resistance={"amox": 0.0}, sensitivity={"amox": 1.0})
    conc = {"amox": 0.5}

    assert np.isclose(resistant.compute_load(conc), 110.0)
    # 100 + 10 - 0.5 * 100 * (0.5 * 1.0) = 85
    assert np.isclose(sensitive.compute_load(conc), 85.0)


def test_suppression_scales_with_concentration():
    p = Pathogen(pathogen_id=1, load=100.0, growth_rate=0.0, alpha=0.1,
                 sensitivity={"amox": 1.0})
    loads = [p.compute_load({"amox": c}) for c in (0.0, 1.0, 2.0, 4.0)]
    assert np.all(np.diff(loads) < 0)


def test_compute_load_clamps_at_zero():
    p = Pathogen(pathogen_id=1, load=10.0, growth_rate=0.0, alpha=1.0,
                 sensitivity={"amox": 1.0})
    assert p.compute_load({"amox": 50.0}) == 0.0


def test_immune_pressure_and_params():
    p = Pathogen(pathogen_id=1, load=100.0, growth_rate=0.0, alpha=0.0, immune_reactivity=0.01)
    # 100 - 0.01 * 10 * 100 = 90
    assert np.isclose(p.compute_load({}, immune_response=10.0), 90.0)
    assert np.isclose(p.compute_load({}, 10.0, LoadParams(immune_weight=0.0)), 100.0)


def test_logistic_growth_saturates():
    p = Pathogen(pathogen_id=1, load=1000.0, growth_rate=0.5, alpha=0.0)
    assert np.isclose(p.compute_load({}, params=LoadParams(carrying_capacity=1000.0)), 1000.0)
    p.load = 500.0
    assert np.isclose(p.compute_load({}, params=LoadParams(carrying_capacity=1000.0)), 625.0)


def test_medicament_validation_and_half_life():
    with pytest.raises(ValueError):
        Medicament("x", h=1.5)
    with pytest.raises(ValueError):
        Medicament("", h=0.5)
    with pytest.raises(ValueError):
        Medicament.from_half_life("x", half_life=0.0)

    m = Medicament.from_half_life("x", half_life=2.0)
    assert math.isclose(m.h, math.sqrt(0.5))
    assert Medicament.from_half_life("y", half_life=1.0).h == 0.5
