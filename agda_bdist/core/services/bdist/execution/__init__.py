"""
L4 Execution — subprocess, network and file-system side effects.
"""
