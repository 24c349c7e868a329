"""
flinkops - Lifecycle tooling for Flink SQL statements in Confluent Cloud.

This package provides a CLI for deploying, listing, stopping, deleting and
cleaning up statements, plus helpers that turn consumer group offsets into
Flink connector configuration.
"""

__version__ = "0.1.0"
