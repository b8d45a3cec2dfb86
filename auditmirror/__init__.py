"""auditmirror: mirrors record mutations into on-demand audit tables.

Mutations are queued without blocking the caller and written by a fixed
pool of workers to MySQL or PostgreSQL audit tables that are created the
first time they are needed.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
