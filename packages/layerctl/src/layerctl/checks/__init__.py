"""Check runners built on the layering core."""

from .layering import LayeringReport, check_layering, run_layering_check

__all__ = ["LayeringReport", "check_layering", "run_layering_check"]
