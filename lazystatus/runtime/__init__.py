"""Interactive terminal runtime for the status pager."""

from .loop import run_status_pager

__all__ = ["run_status_pager"]
