"""
Data and authorization back end for a nutrition-aware food ordering app.
"""
__version__ = '0.1.0'
