"""
L5 Orchestration — sequences the lower layers into a run.
"""
