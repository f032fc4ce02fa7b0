"""
S3 thumbnail service package.

Exposes reusable primitives for reading storage notifications, fetching
source images, rendering square PNG thumbnails, and writing them to the
companion "-thumbs" bucket.
"""
