"""
===========================================================
errors.py
Last Updated: 2026-10-19
===========================================================
Exceptions raised by the prevalence / ANC / ART model.

License: MIT
===========================================================
"""


class PrevAncError(Exception):
    """Base class for model errors"""


class DataContractViolation(PrevAncError, ValueError):
    """Region observations failed validation (raised before any fitting)"""


class DomainError(PrevAncError, ValueError):
    """A derived quantity is undefined for the given data.

    Raised for alpha_art when A_art is zero in some region, since
    log(A_art) has no finite value there.
    """

    def __init__(self, message, regions=None):
        super().__init__(message)
        self.regions = list(regions) if regions is not None else []
