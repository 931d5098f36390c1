"""
Machine Learning modules for the CV match pipeline.

Submodules:
- nlp: document text extraction and CV section detection
- embeddings: sentence embeddings for semantic similarity
"""
