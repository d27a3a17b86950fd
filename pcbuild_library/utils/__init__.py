"""Utility helpers for pcbuild_library."""
