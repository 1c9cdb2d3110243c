"""Parse-then-analyze front end shared by the converter and its tests."""

from .pipeline import FrontEndResult, mask_hashbang, run_frontend

__all__ = ["FrontEndResult", "mask_hashbang", "run_frontend"]
