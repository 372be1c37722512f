"""
Tests package - unit test suite for the interoperator resource engine.

Contains:
- unit/: Unit tests for individual components and the ResourceManager
- fixtures/: In-memory cluster client and sample catalog resources
"""
