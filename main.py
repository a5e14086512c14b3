#!/usr/bin/env python3
"""
Demo script for dimensioned and uncertain quantities.
"""

# Walkthrough:
# 1) Heat conduction through a slab with inputs in mixed units, including a
#    unit mismatch that is rejected.
# 2) Legal combinations: products, dimensionless powers, square roots and
#    array-valued pressures.
# 3) Uncertainty propagation with correlated operands and the uncertainty
#    budget of a derived quantity.
# 4) A straight-line projection from uncertain points, tabulated and plotted.

import logging
import os
import sys
import time

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import numpy as np

from ucdim import UC, DimVar, UnitMismatchError, contribution_table, summary_frame
from ucdim.plotting import apply_global_style, plot_linear_projection, save_figure
from ucdim.uncertainty import seed_identities


def conduction_demo():
    """Unit-checked heat conduction with inputs in mixed units."""
    k1 = DimVar(16, "W/m-K")
    L1 = DimVar(1, "in")
    A1 = DimVar(1, "ft^2")
    DT1 = DimVar(20, "C", relative=True)

    k2 = DimVar(4, "BTU-in/hr-ft^2-F")
    L2 = DimVar(5, "mm")
    A2 = DimVar(10, "cm^2")
    DT2 = DimVar(500, "R") - DimVar(200, "K")

    Q1 = k1 * A1 / L2 * DT1
    Q2 = k2 * A2 / L2 * DT2
    logging.info("Q1 = %s", Q1.convert_to("W"))
    logging.info("Q2 = %s", Q2.convert_to("W"))

    try:
        A1 + L1
    except UnitMismatchError as err:
        logging.info("Rejected: %s", err)

    x = A1 * L1
    y = A1 ** (L2 / L1)
    z = L1 + A1.sqrt()
    logging.info("x = %s", x)
    logging.info("y = %s", y)
    logging.info("z = %s", z.convert_to("in"))

    P = DimVar(np.arange(0, 11), "bar")
    p0 = DimVar(1, "atm")
    logging.info("P  = %s", P)
    logging.info("Pr = %s", P / p0)
    logging.info("dP = %s", (P - p0).convert_to("psi"))


def uncertainty_demo():
    """Correlation-aware propagation and an uncertainty budget."""
    A = UC(2.0, 0.1, name="A")
    B = UC(2.0, 0.1, name="B")
    logging.info("A - A = %s, A - B = %s", A - A, A - B)
    logging.info("A * A = %s, A * B = %s", A * A, A * B)

    mass = UC(0.250, 0.002, name="m")
    length = UC(0.120, 0.001, name="L")
    period = UC(1.52, 0.03, name="T")
    inertia = mass * length**2 / 12
    omega = 2 * np.pi / period
    energy = 0.5 * inertia * omega**2
    logging.info("Rotational energy: %s J", energy.format())
    logging.info("Uncertainty budget:\n%s", contribution_table(energy).to_string())

    speed = DimVar(UC(30.0, 0.5, name="v"), "km/hr")
    logging.info("Speed: %s", speed.convert_to("m/s"))
    return energy


def projection_demo(output_dir):
    """Project a fitted calibration line and save the figure."""
    x = UC([10.0, 20.0, 30.0, 40.0, 50.0], [0.2, 0.2, 0.2, 0.2, 0.2], name="x")
    y = UC([1.02, 1.98, 3.05, 3.96, 5.01], [0.05, 0.05, 0.05, 0.05, 0.05], name="y")

    apply_global_style()
    ax, result = plot_linear_projection(x, y, 65.0, xlabel="x", ylabel="y")
    logging.info(
        "Projection at x0=65: %.4f ± %.4f (stat %.4f, propagated %.4f)",
        result.value,
        result.err,
        result.err_stat,
        result.err_proj,
    )
    path = save_figure(ax.figure, os.path.join(output_dir, "linear_projection"))
    return result, path


def main():
    """Run all demos and write a summary table and figure."""
    start_time = time.time()
    seed_identities(0)
    logging.info("Running dimensioned-quantity demo")
    conduction_demo()

    logging.info("Running uncertainty demo")
    energy = uncertainty_demo()

    output_dir = "output"
    os.makedirs(output_dir, exist_ok=True)
    result, figure_path = projection_demo(output_dir)

    table = summary_frame(
        energy=energy,
        projection=UC(result.value, result.err),
        slope=UC(result.slope.value, result.slope.err),
    )
    csv_path = os.path.join(output_dir, "summary.csv")
    table.to_csv(csv_path, index=False)

    logging.info("Total execution time: %.2f seconds", time.time() - start_time)
    logging.info("Generated output files:")
    logging.info("  - Projection figure: %s", figure_path)
    logging.info("  - Summary CSV: %s", csv_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
