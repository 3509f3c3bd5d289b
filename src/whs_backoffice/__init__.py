"""Warehouse back-office screens built on whs_client_sdk."""
