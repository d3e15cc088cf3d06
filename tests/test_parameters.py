import numpy as np
import pytest

from bw_model import InitMode, ModelInputError, derive_adult_constants
from bw_model.parameters import ChildInputs, cohort_vector, resting_metabolic_rate
from bw_model.forcing import GeneralizedLogistic

from .helpers import make_adult_inputs


def test_mifflin_st_jeor_rmr():
    rmr = resting_metabolic_rate(
        np.array([80.0, 62.0]), np.array([1.80, 1.65]), np.array([40.0, 35.0]), np.array([0.0, 1.0])
    )
    assert rmr[0] == pytest.approx(9.99 * 80 + 625 * 1.80 - 4.92 * 40 + 5)
    assert rmr[1] == pytest.approx(9.99 * 62 + 625 * 1.65 - 4.92 * 35 - 161)


def test_mode_inference():
    assert InitMode.infer(None, None) is InitMode.ESTIMATE_ALL
    assert InitMode.infer([2000.0], None) is InitMode.GIVEN_ENERGY
    assert InitMode.infer(None, [20.0]) is InitMode.GIVEN_FAT
    assert InitMode.infer([2000.0], [20.0]) is InitMode.GIVEN_ENERGY_AND_FAT


@pytest.mark.parametrize(
    "extra",
    [
        {},
        {"energy": [2600.0, 2100.0]},
        {"fat": [20.0, 22.0]},
        {"energy": [2600.0, 2100.0], "fat": [20.0, 22.0]},
    ],
)
def test_baseline_expenditure_equals_rmr_times_pal(extra):
    inputs = make_adult_inputs(**extra)
    c = derive_adult_constants(inputs)
    assert np.allclose(c.baseline_expenditure(), c.rmr * c.pal, rtol=1e-12)


@pytest.mark.parametrize("extra", [{}, {"fat": [20.0, 22.0]}])
def test_weight_identity_at_baseline(extra):
    c = derive_adult_constants(make_adult_inputs(**extra))
    assert np.allclose(c.lean + c.fat + c.ecf + 3.7 * c.glycogen, c.bw)
    assert np.all(c.glycogen == 0.5)
    assert np.all(c.thermogenesis == 0.0)


def test_given_values_are_used():
    inputs = make_adult_inputs(energy=[2600.0, 2100.0], fat=[20.0, 22.0])
    c = derive_adult_constants(inputs)
    assert inputs.mode is InitMode.GIVEN_ENERGY_AND_FAT
    assert np.array_equal(c.energy_intake, [2600.0, 2100.0])
    assert np.array_equal(c.fat, [20.0, 22.0])
    assert np.allclose(c.carb_intake, 0.5 * c.energy_intake)
    assert np.allclose(c.k_G, c.carb_intake / 0.25)


def test_estimate_all_intake_is_steady_state(adult_inputs):
    c = derive_adult_constants(adult_inputs)
    assert np.array_equal(c.energy_intake, c.steady_state)


def test_explicit_mode_requires_its_vectors():
    with pytest.raises(ModelInputError):
        make_adult_inputs(mode=InitMode.GIVEN_ENERGY)
    with pytest.raises(ModelInputError):
        make_adult_inputs(mode=InitMode.GIVEN_FAT, energy=[2600.0, 2100.0])


def test_cohort_length_mismatch():
    with pytest.raises(ModelInputError):
        make_adult_inputs(ht=[1.80, 1.65, 1.70])
    with pytest.raises(ModelInputError):
        make_adult_inputs(ei_change=np.zeros((10, 3)), na_change=np.zeros((10, 2)))


def test_invalid_sex_rejected():
    with pytest.raises(ModelInputError):
        make_adult_inputs(sex=[0, 0.5])


def test_scalars_broadcast_over_cohort():
    inputs = make_adult_inputs(pal=1.7)
    assert np.array_equal(inputs.pal, [1.7, 1.7])
    assert cohort_vector("x", 3.0, 4).shape == (4,)


def test_adult_subset_keeps_mode_and_columns():
    inputs = make_adult_inputs(fat=[20.0, 22.0], ei=-100.0)
    sub = inputs.subset([1])
    assert sub.cohort_size == 1
    assert sub.mode is InitMode.GIVEN_FAT
    assert np.array_equal(sub.fat, [22.0])
    assert sub.ei_change.values.shape == (366, 1)


def test_child_intake_sources():
    default = ChildInputs(age=6.0, sex=0, ffm=19.9, fm=2.9)
    assert isinstance(default.logistic, GeneralizedLogistic)
    assert default.intake is None

    with pytest.raises(ModelInputError):
        ChildInputs(age=6.0, sex=0, ffm=19.9, fm=2.9, intake=np.full((10, 1), 1500.0), logistic=GeneralizedLogistic())


def test_logistic_parameters_must_match_cohort():
    with pytest.raises(ModelInputError):
        ChildInputs(age=[6.0], sex=[0], ffm=[19.9], fm=[2.9], logistic=GeneralizedLogistic(K=np.array([1700.0, 1600.0, 1500.0])))

    inputs = ChildInputs(
        age=[6.0, 8.0], sex=[0, 1], ffm=[19.9, 23.3], fm=[2.9, 5.2], logistic=GeneralizedLogistic(K=[1700.0, 1600.0])
    )
    assert np.array_equal(inputs.logistic.K, [1700.0, 1600.0])
    assert inputs.logistic.Q == 10.0
