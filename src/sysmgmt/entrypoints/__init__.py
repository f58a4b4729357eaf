"""Entry points for SYSMGMT (command-line interface)."""
