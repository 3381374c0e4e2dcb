# bnd/__init__.py

"""Reading, extracting and repacking of BND asset archives."""

__version__ = "1.0.0"
