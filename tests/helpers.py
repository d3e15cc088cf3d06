import numpy as np

from bw_model import AdultInputs, ChildInputs, intake_reference
def make_adult_inputs(n_rows=366, ei=0.0, na=0.0, **overrides):
    """Two-person adult cohort (one man, one woman) with constant forcing."""
    kwargs = dict(
        bw=[80.0, 62.0],
        ht=[1.80, 1.65],
        age=[40.0, 35.0],
        sex=[0, 1],
        pal=[1.6, 1.5],
        pcarb_base=0.5,
        pcarb=0.5,
        dt=1.0,
    )
    kwargs.update(overrides)
    n = len(np.atleast_1d(kwargs["bw"]))
    kwargs.setdefault("ei_change", np.full((n_rows, n), ei, dtype=float))
    kwargs.setdefault("na_change", np.full((n_rows, n), na, dtype=float))
    return AdultInputs(**kwargs)


def make_child_inputs(n_rows=None, offset=0.0, **overrides):
    """
    Two children (a 6-year-old boy, an 8-year-old girl) at reference body composition.

    With ``n_rows`` the intake is a table of reference intake plus ``offset`` kcal/d;
    without it the default logistic curve applies.
    """
    kwargs = dict(
        age=[6.0, 8.0],
        sex=[0, 1],
        ffm=[17.4, 20.5],
        fm=[2.8, 4.3],
        dt=1.0,
    )
    kwargs.update(overrides)
    if n_rows is not None:
        kwargs["intake"] = intake_reference(kwargs["age"], kwargs["sex"], n_rows - 1) + offset
    return ChildInputs(**kwargs)
