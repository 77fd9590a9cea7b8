"""Cancellation primitives shared by the sync and async retry paths.

Key Components:
    - CancellationToken: caller-owned, thread-safe stop signal with a reason
    - pause / apause: sleep that returns early when the token fires
"""

from __future__ import annotations

from .cancel import CancellationToken, apause, pause

__all__ = ["CancellationToken", "pause", "apause"]
