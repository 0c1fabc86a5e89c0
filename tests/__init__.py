"""
ADToolkit Test Suite

Test organization:
- unit/: Unit tests for individual modules
- property/: Property-based tests using Hypothesis
- fakes.py: In-memory DirectoryConnection / DirectoryEntry doubles
"""
