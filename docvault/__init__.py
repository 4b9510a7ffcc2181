"""
DocVault: user accounts, sessions and two-factor authentication for a
document management backend.
"""
