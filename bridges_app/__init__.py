#!/usr/bin/env python3
#
###################################################################
# Project: HalifaxBridges
# File: bridges_app/__init__.py
# Purpose: Package init
#
# Description of code and how it works:
#
# Author: Tim Canady
# Created: 2026-10-12
#
# Version: 0.3.0
# Last Modified: 2026-10-17 by Tim Canady
#
# Revision History:
# - 0.3.0 (2026-10-17): Export cache + gateway modules.
# - 0.1.0 (2026-10-12): Initial package layout.
###################################################################
#
__all__ = ['classifiers', 'sayings', 'schemas', 'cache', 'gateway', 'config', 'exceptions', 'logging_config', 'connectors', 'main']
