"""
Core business logic for the CV match pipeline.

Submodules:
- matching: similarity, skill overlap and score fusion
- processing: match queue, worker and the collaborator-facing service
"""
