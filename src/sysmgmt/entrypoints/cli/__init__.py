"""SYSMGMT command-line interface."""
