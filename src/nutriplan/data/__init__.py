"""
Data layer: dataclass models and the SQLite database interface.
"""
