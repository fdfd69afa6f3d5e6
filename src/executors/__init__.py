"""
Executors Package

Remote command execution over ssh and the probes built on top of it:
host reachability checks, TCP/DNS path probes and traceroute escalation.
"""
