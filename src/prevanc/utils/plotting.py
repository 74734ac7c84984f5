import matplotlib.pyplot as plt
import numpy as np

from prevanc.data import RegionData
from prevanc.reporting import VECTOR_QUANTITIES


def plot_region_estimates(report, quantity, ax=None, z=1.96):
    """Point estimate and +/- z * se interval for a per-region quantity"""
    if quantity not in VECTOR_QUANTITIES:
        raise ValueError(f"{quantity} is not a per-region quantity")
    rows = report.table[report.table["quantity"] == quantity]
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 4.5))
    pos = np.arange(len(rows))
    ax.errorbar(pos, rows["estimate"], yerr=z * rows["std_error"],
                fmt="o", capsize=3, lw=1.5, label=quantity)
    ax.set_xticks(pos)
    ax.set_xticklabels(rows["region"], rotation=45, ha="right")
    ax.set_ylabel(quantity)
    ax.set_title(f"{quantity} by region")
    ax.grid(alpha=0.25)
    return ax


def plot_observed_vs_fitted(report, data: RegionData, ax=None):
    """Empirical y/m against fitted rho for the survey and ANC arms"""
    observed = data.observed_prevalence()
    if ax is None:
        fig, ax = plt.subplots(figsize=(5, 5))
    ax.scatter(observed["prev"], report.estimates("rho_prev"), label="Survey")
    ax.scatter(observed["anc"], report.estimates("rho_anc"), marker="s", label="ANC")
    hi = float(max(observed.to_numpy().max(), report.estimates("rho_anc").max(),
                   report.estimates("rho_prev").max()))
    ax.plot([0, hi], [0, hi], lw=1, linestyle="--", color="grey")
    ax.set_xlabel("Observed prevalence")
    ax.set_ylabel("Fitted prevalence")
    ax.legend()
    ax.grid(alpha=0.25)
    return ax
