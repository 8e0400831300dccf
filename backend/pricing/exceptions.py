from typing import List


class PricingError(Exception):
    """Base exception for estimation errors"""
    pass


class InvalidWeightError(PricingError):
    """Raised when the actual weight is missing or not strictly positive"""
    pass


class InvalidDimensionsError(PricingError):
    """Raised when a dimension used for a volume is zero or negative"""
    pass


class PricingConfigError(PricingError):
    """Raised when a pricing configuration is incomplete or out of range"""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))
