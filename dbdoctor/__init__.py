"""
dbdoctor
--------
Referential integrity audit and repair for hierarchical content databases.

- core: Paths, exceptions, logging, console and CLI options
- database: Row store, schema metadata, rootline and tree helpers
- health: Check catalogue and runner
- renderers: Tables of affected records and pages
- cli: Command-line interface
"""

__version__ = "0.1.0"
