"""Database-backed managers.

Import managers from their modules (e.g. spatialdm.managers.location_manager);
the spatial index builds on BaseManager, so this package stays import-free.
"""
