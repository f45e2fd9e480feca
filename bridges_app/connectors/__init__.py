#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/connectors/__init__.py
# Purpose: Upstream connectors (traffic page, Open-Meteo, EC alerts)
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.2.0
# Last Modified: 2026-10-15 by Tim Canady
###################################################################
#
__all__ = ['traffic', 'weather', 'alerts']
