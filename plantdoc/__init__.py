"""
PlantDoc: plant species identification and disease diagnosis assistant
"""

__version__ = "1.0.0"
