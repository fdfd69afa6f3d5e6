"""
Core Package

Rule parsing, range expansion, data models, statistics, reporting and
the run loop for the reachability tester.
"""
