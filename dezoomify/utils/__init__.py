"""
Small helpers shared by the other layers.
"""
