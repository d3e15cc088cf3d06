import numpy as np
import pytest

from bw_model import (
    ChildModel,
    ForcingIndexError,
    GeneralizedLogistic,
    ModelInputError,
    child_weight,
    intake_reference,
    mass_reference,
    simulate_child,
)
from bw_model.child import child_step_count
from bw_model.reference import knot_lookup

from .helpers import make_child_inputs


def test_knot_lookup_interpolates_and_clamps():
    table = np.array([[1.0, 10.0], [3.0, 20.0], [7.0, 40.0]])
    assert np.allclose(knot_lookup(table, np.array([2.0, 2.0])), [1.0, 10.0])
    assert np.allclose(knot_lookup(table, np.array([2.5, 3.5])), [2.0, 30.0])
    assert np.allclose(knot_lookup(table, np.array([4.0, 4.0])), [7.0, 40.0])
    assert np.allclose(knot_lookup(table, np.array([0.5, 30.0])), [1.0, 40.0])


def test_mass_reference_at_knots():
    ffm, fm = mass_reference([2.0, 2.0, 18.0, 25.0], [0, 1, 0, 1])
    assert np.allclose(ffm, [10.134, 9.477, 60.0, 42.6])
    assert np.allclose(fm, [2.456, 2.433, 8.8, 14.3])


def test_mass_reference_between_knots():
    ffm, fm = mass_reference(2.5, 0)
    assert ffm[0] == pytest.approx(0.5 * (10.134 + 12.099))
    assert fm[0] == pytest.approx(0.5 * (2.456 + 2.576))


def test_intake_reference_shape():
    ref = intake_reference([6.0, 9.0, 12.0], [0, 1, 0], 30)
    assert ref.shape == (31, 3)
    assert np.all(np.isfinite(ref))
    assert np.all(ref > 0.0)


def test_default_logistic_curve():
    curve = GeneralizedLogistic()
    assert curve(np.array([10.0]))[0] == pytest.approx(2700.0)
    expected = 3.0 + 2697.0 / 11.0 ** 0.25
    assert curve(np.array([0.0]))[0] == pytest.approx(expected)


def test_step_count_is_floor():
    assert child_step_count(10.5, 1.0) == 10
    assert child_step_count(10.0, 0.5) == 20


def test_run_with_intake_table(child_inputs):
    res = simulate_child(child_inputs, 100)
    assert res.correct_values
    assert res["Model_Type"] == "Child"
    assert res.n_steps == 100
    assert res["Fat_Mass"].shape == (101, 2)
    assert np.allclose(res["Body_Weight"], res["Fat_Free_Mass"] + res["Fat_Mass"])
    assert np.allclose(res["Age"][-1], np.array([6.0, 8.0]) + 100 / 365.0)
    assert np.array_equal(res["Energy_Intake"], child_inputs.intake.values)


def test_more_intake_more_fat():
    low = simulate_child(make_child_inputs(n_rows=181), 180)
    high = simulate_child(make_child_inputs(n_rows=181, offset=200.0), 180)
    assert np.all(high["Fat_Mass"][-1] > low["Fat_Mass"][-1])
    assert np.all(high["Body_Weight"][-1] > low["Body_Weight"][-1])


def test_default_logistic_run():
    res = simulate_child(make_child_inputs(), 365)
    assert res.correct_values
    assert np.all(np.isfinite(res["Body_Weight"]))
    assert np.all(res["Fat_Free_Mass"] > 0.0)
    assert np.allclose(res["Energy_Intake"][0], GeneralizedLogistic()(np.array([6.0, 8.0])))


def test_short_intake_table_rejected():
    with pytest.raises(ForcingIndexError):
        simulate_child(make_child_inputs(n_rows=50), 100)


def test_invalid_baseline_stops():
    res = simulate_child(make_child_inputs(n_rows=11, fm=[0.0, 4.3]), 10)
    assert not res.correct_values
    assert res.n_steps == 0


def test_reference_intake_row_zero_matches_model():
    model = ChildModel(make_child_inputs())
    ref = intake_reference([6.0, 8.0], [0, 1], 0)
    assert np.allclose(ref[0], model.reference.intake(np.array([6.0, 8.0])))


def test_mismatched_logistic_fails_before_running():
    with pytest.raises(ModelInputError):
        child_weight(
            age=[6.0],
            sex=[0],
            ffm=[19.9],
            fm=[2.9],
            logistic=GeneralizedLogistic(K=np.array([1700.0, 1600.0, 1500.0])),
            days=5,
        )
