"""Row bucket store.

- bucket_store: SQLite schema with one bucket table per image row
"""

from ripen.store.bucket_store import BucketStore, RowDeleteHandle

__all__ = ['BucketStore', 'RowDeleteHandle']
