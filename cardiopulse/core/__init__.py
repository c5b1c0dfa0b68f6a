"""
Core computation layer: pulse detection, stress scoring, BP estimation.
"""
