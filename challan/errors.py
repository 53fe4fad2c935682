"""Error taxonomy for the challan pipeline.

Only capability delegations (camera, vision, OCR, record store) and the
payment transition can fail. Pure computations never raise on well-formed
input, so every class here describes an interaction with something outside
the core.
"""

from __future__ import annotations


class ChallanError(Exception):
    """Base class for all pipeline errors."""


class CameraUnavailableError(ChallanError, RuntimeError):
    """The camera (or video source) could not be opened.

    Raised by ``start_session``; the core never retries on its own.
    """


class StoreUnavailableError(ChallanError):
    """A create/get/update call against the record store failed."""


class TransitionConflictError(ChallanError):
    """A payment was attempted on a challan that is missing or already paid."""

    def __init__(self, challan_id: str, reason: str) -> None:
        super().__init__(f"Challan {challan_id}: {reason}")
        self.challan_id = challan_id
        self.reason = reason
