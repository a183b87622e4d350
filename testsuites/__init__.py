"""
Test suites package.

Kept importable so that:
  - fixtures and tests can import the framework as `testsuites.ui_testing.framework`
  - programmatic runners (e.g., `run_tests.py`) and IDEs resolve the modules

  unit/        framework tests, no browser required
  ui_testing/  Selenium session framework and browser (e2e) tests
"""
