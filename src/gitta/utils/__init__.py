"""Shared utilities for gitta."""
