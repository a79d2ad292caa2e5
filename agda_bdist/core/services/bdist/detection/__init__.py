"""
L3 Detection — read-only probes of the host system.
"""
