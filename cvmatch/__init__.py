"""
cvmatch - CV to job description matching pipeline.

Scores candidate CVs against job requirements with sentence embeddings
and skill keyword overlap, driven by a MongoDB-backed task queue.
"""

__version__ = "0.1.0"
__app_name__ = "cvmatch"
