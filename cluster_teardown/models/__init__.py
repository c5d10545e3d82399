"""Data models for teardown planning, execution and auditing."""
