"""
Realtor Tools: financial calculators for real estate agents.
"""
