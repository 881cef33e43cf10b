"""
Core modules for Case Configs.

This package contains the attach and submit operations, the update broker
and the two list views that share it.
"""
