import argparse
import json
import logging
from pathlib import Path

import numpy as np

from bw_model import load_scenario


def summarize(result) -> dict:
    weight = result["Body_Weight"]
    summary = {
        "model_type": result.model_type,
        "correct_values": bool(result.correct_values),
        "n_steps": int(result.n_steps),
        "final_time_days": float(result.time[-1]),
        "baseline_weight_kg": weight[0].tolist(),
        "final_weight_kg": weight[-1].tolist(),
        "weight_change_kg": (weight[-1] - weight[0]).tolist(),
        "final_fat_mass_kg": result["Fat_Mass"][-1].tolist(),
    }
    if "BMI_Category" in result:
        summary["final_bmi_category"] = [str(c) for c in result["BMI_Category"][-1]]
    return summary


def main():
    parser = argparse.ArgumentParser(description="Run a body-weight scenario from a YAML file.")
    parser.add_argument("--scenario", type=str, required=True, help="Path to scenario YAML")
    parser.add_argument("--outdir", type=str, default="outputs", help="Output directory")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    scenario_path = Path(args.scenario)
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    scenario = load_scenario(scenario_path)
    result = scenario.run()
    summary = summarize(result)

    # Save outputs
    stem = scenario_path.stem
    result.to_frame().to_csv(outdir / f"{stem}_trajectory.csv", index=False)
    np.save(outdir / f"{stem}_body_weight.npy", result["Body_Weight"])
    with (outdir / f"{stem}_summary.json").open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)

    print("Simulation finished.")
    print("Summary:")
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
