"""Parsing and aggregation of acceptance-test result files."""
