"""Aspic - Solidity language server."""
