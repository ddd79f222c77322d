"""`Ripen` - bake a raster image into a slowly decaying relational bucket store.

Subpackages:
- image: Image decoding into an intensity grid
- store: SQLite bucket store (provisioning, prepared row deletes)
- pipeline: Thresholds, row executors, column baker, scheduler, orchestrator
- schemas: Pydantic configuration
"""

__version__ = "0.1.0"
