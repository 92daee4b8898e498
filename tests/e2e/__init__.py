"""End-to-end tests against real provider CLIs.

These tests are:
- Skipped by default (require ASKAI_E2E environment variable)
- Dependent on real CLI tools (gemini, claude) being installed and logged in
- Slower than unit tests
"""
