#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/exceptions.py
# Purpose: Error taxonomy shared by connectors, gateway and caches.
#
# Author: Tim Canady
# Created: 2026-10-13
#
# Version: 0.1.0
# Last Modified: 2026-10-13 by Tim Canady
###################################################################
#
from typing import Optional


class BridgesError(Exception):
    """Base exception for all bridges_app errors."""
    pass


class UpstreamError(BridgesError):
    """Raised when an upstream origin is unreachable or answers non-2xx."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ParseError(BridgesError):
    """Raised when an upstream payload does not have the expected shape."""
    pass
