"""Report helpers for Allure."""
