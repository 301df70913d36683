"""
DraftGEMPy: homology-based draft reconstruction of genome-scale metabolic models
from a MetaCyc reference model.
"""

__version__ = "1.0.0"
