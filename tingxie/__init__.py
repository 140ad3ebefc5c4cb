"""
Tingxie: spaced repetition scheduling for vocabulary drills.
"""

__version__ = "1.0.0"
