"""
===========================================================
data.py
Last Updated: 2026-10-19
===========================================================
Region-level observations for the joint survey / ANC / ART model

One entry per region i:
    y_prev, m_prev: household survey positives / number tested
    y_anc, m_anc:   ANC positives / number tested
    A_art, N_art:   number on ART / population size

All vectors are validated on construction and frozen for the
lifetime of a fit.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Optional, Sequence

from prevanc.errors import DataContractViolation

# (count, denominator) pairs
ARMS = (("y_prev", "m_prev"), ("y_anc", "m_anc"), ("A_art", "N_art"))
FIELDS = ("y_prev", "m_prev", "y_anc", "m_anc", "A_art", "N_art")


@dataclass(frozen=True, eq=False)
class RegionData:
    """
    Container for per-region survey, ANC and ART observations.

    Attributes:
    -----------
    y_prev, m_prev: np.ndarray
        Survey positives and sample sizes
    y_anc, m_anc: np.ndarray
        ANC positives and sample sizes
    A_art, N_art: np.ndarray
        Number of people on ART and total population
    regions: tuple of str, optional
        Region labels, defaults to "0" .. "n-1"
    """

    y_prev: np.ndarray
    m_prev: np.ndarray
    y_anc: np.ndarray
    m_anc: np.ndarray
    A_art: np.ndarray
    N_art: np.ndarray
    regions: Optional[Sequence[str]] = field(default=None)

    def __post_init__(self):
        arrays = {}
        for name in FIELDS:
            try:
                arr = np.array(getattr(self, name), dtype=float)
            except (TypeError, ValueError) as e:
                raise DataContractViolation(f"{name} is not numeric: {e}") from e
            if arr.ndim != 1:
                raise DataContractViolation(f"{name} must be one-dimensional, got shape {arr.shape}")
            arrays[name] = arr

        lengths = {name: len(arr) for name, arr in arrays.items()}
        if len(set(lengths.values())) != 1:
            raise DataContractViolation(f"Observation vectors differ in length: {lengths}")
        n = lengths["y_prev"]
        if n == 0:
            raise DataContractViolation("At least one region is required")

        for name, arr in arrays.items():
            if not np.all(np.isfinite(arr)):
                raise DataContractViolation(f"{name} contains non-finite values")

        for count, denom in ARMS:
            y, m = arrays[count], arrays[denom]
            bad = np.flatnonzero(m <= 0)
            if bad.size:
                raise DataContractViolation(
                    f"{denom} must be strictly positive (regions {bad.tolist()})")
            bad = np.flatnonzero(y < 0)
            if bad.size:
                raise DataContractViolation(
                    f"{count} must be non-negative (regions {bad.tolist()})")
            bad = np.flatnonzero(y > m)
            if bad.size:
                raise DataContractViolation(
                    f"{count} exceeds {denom} (regions {bad.tolist()})")

        regions = self.regions
        if regions is None:
            regions = [str(i) for i in range(n)]
        regions = tuple(str(r) for r in regions)
        if len(regions) != n:
            raise DataContractViolation(
                f"Got {len(regions)} region labels for {n} regions")

        for name, arr in arrays.items():
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        object.__setattr__(self, "regions", regions)

    @property
    def n(self) -> int:
        """Number of regions"""
        return len(self.y_prev)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, region_col: Optional[str] = None) -> "RegionData":
        """Build from a DataFrame with one row per region and columns named after the fields"""
        required = FIELDS + ((region_col,) if region_col else ())
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise DataContractViolation(
                f"Missing columns {missing}. Available: {list(df.columns)}")
        regions = df[region_col].astype(str).tolist() if region_col else None
        return cls(**{c: df[c].to_numpy(dtype=float) for c in FIELDS}, regions=regions)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per region, indexed by region label"""
        df = pd.DataFrame({name: getattr(self, name) for name in FIELDS})
        df.index = pd.Index(self.regions, name="region")
        return df

    def observed_prevalence(self) -> pd.DataFrame:
        """Empirical survey and ANC prevalence (y / m) per region"""
        return pd.DataFrame(
            {"prev": self.y_prev / self.m_prev, "anc": self.y_anc / self.m_anc},
            index=pd.Index(self.regions, name="region"),
        )
