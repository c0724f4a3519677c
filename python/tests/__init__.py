"""
Test suite for the portal zip generator.

This package contains tests for every stage of the archive pipeline,
including unit tests, end-to-end runs and CLI tests.

Test Categories:
- Unit tests: Scanning, writing, retry, reporting and configuration in isolation
- Integration tests: Full runs through ZipGenerator and the CLI adapter
- Edge case tests: Unreadable inputs, broken configs and failing output streams
"""
