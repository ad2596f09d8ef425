"""Concurrency control exports."""

from .admission_controller import AdmissionCancelledError, AdmissionController, AdmissionPermit
from .run_cancellation import RunCancellation

__all__ = [
    "AdmissionController",
    "AdmissionPermit",
    "AdmissionCancelledError",
    "RunCancellation",
]
