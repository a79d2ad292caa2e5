"""
Platform toolkits — per-OS implementations of ICU setup and binary inspection.
"""
