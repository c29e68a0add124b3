"""
DynamoDB Graph Test Suite.

This package contains:
- unit/: Unit tests (store doubles and mocked clients, no DynamoDB)
- integration/: Full graph flows over the in-memory table double
"""
