"""
precompress - post-build asset compression for bundler output.

Scans the files a build produced and, stage by stage:
- Compresses eligible assets with one or more codecs (gzip, brotli, custom)
- Memoizes compressed results against the uncompressed content
- Keeps or discards each result based on its compression ratio
- Emits the compressed variants and annotates or deletes the originals
"""

__version__ = "0.1.0"
__author__ = "precompress Contributors"
