import numpy as np
import pytest

from bw_model import ModelInputError, load_scenario
from bw_model.config import adult_scenario_from_dict

ADULT_YAML = """
model: adult
dt: 1.0
days: 60
cohort:
  bw:  [80.0, 62.0]
  ht:  [1.80, 1.65]
  age: [40, 35]
  sex: [0, 1]
  pal: 1.6
forcing:
  times: [0, 30, 60]
  mode: Linear
  energy_change: [[0, -300, -300],
                  [0, -200, -100]]
"""

CHILD_YAML = """
model: child
days: 90
cohort:
  age: [6, 8]
  sex: [0, 1]
  ffm: [17.4, 20.5]
  fm:  [2.8, 4.3]
logistic:
  K: [1700, 1600]
"""


def test_adult_scenario_file(tmp_path):
    path = tmp_path / "adult.yaml"
    path.write_text(ADULT_YAML)
    scenario = load_scenario(path)
    assert scenario.model == "adult"
    assert scenario.inputs.ei_change.values.shape == (61, 2)
    assert np.all(scenario.inputs.na_change.values == 0.0)
    assert scenario.inputs.ei_change.values[15, 0] == pytest.approx(-150.0)

    res = scenario.run()
    assert res.correct_values
    assert res.n_steps == 60
    assert np.all(res["Body_Weight"][-1] < res["Body_Weight"][0])


def test_child_scenario_file(tmp_path):
    path = tmp_path / "child.yaml"
    path.write_text(CHILD_YAML)
    scenario = load_scenario(path)
    assert scenario.model == "child"
    assert np.array_equal(scenario.inputs.logistic.K, [1700.0, 1600.0])

    res = scenario.run()
    assert res["Model_Type"] == "Child"
    assert res.n_steps == 90


def test_child_scenario_with_intake_table(tmp_path):
    path = tmp_path / "child.yaml"
    path.write_text(
        "model: child\n"
        "days: 20\n"
        "cohort: {age: [6], sex: [0], ffm: [17.4], fm: [2.8]}\n"
        "intake: {times: [0, 20], mode: Stepwise_L, values: [[1600, 1700]]}\n"
    )
    scenario = load_scenario(path)
    assert scenario.inputs.logistic is None
    assert scenario.inputs.intake.n_rows == 21
    assert scenario.run().n_steps == 20


def test_unknown_model(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("model: mouse\n")
    with pytest.raises(ModelInputError):
        load_scenario(path)


def test_missing_section():
    with pytest.raises(ModelInputError):
        adult_scenario_from_dict({"cohort": {"bw": [80.0], "ht": [1.8], "age": [40], "sex": [0]}})
