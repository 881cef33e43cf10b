"""
Case Configs.

Attach catalog configs to a case and submit them to an external system.
"""
