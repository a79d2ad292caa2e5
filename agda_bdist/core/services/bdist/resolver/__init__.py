"""
L2 Resolver — turns raw inputs into resolved BuildOptions.
"""
