"""Shared pytest setup: keep test runs from writing log files."""
import os

os.environ.setdefault("AUTOFIGHT_LOG_TO_FILE", "false")
