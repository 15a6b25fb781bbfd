"""End-to-end flows composed from the core and the terminal shell."""

from .approval_flow import run_approval_flow

__all__ = ["run_approval_flow"]
