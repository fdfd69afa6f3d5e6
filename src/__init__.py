#!/usr/bin/env -S python3 -B -u
"""
reachtest - Fleet Network Reachability Tester

Runs TCP connect and DNS probes from declared source hosts to declared
destinations over ssh, driven by a rules-file grammar.
"""

__version__ = '1.0.0'
__author__ = 'Network Analysis Tool'
__license__ = 'MIT'

# Package metadata
__all__ = [
    'core',
    'executors',
    'scripts',
]
