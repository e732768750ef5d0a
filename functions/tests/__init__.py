"""
Test Suite for the Planning Sync Engine

This package contains tests organized by category:
- unit/: Unit tests for individual modules
- integration/: Engine flow tests against in-memory collaborators
- conftest.py: Shared pytest fixtures, mock collaborators and data factory
"""
